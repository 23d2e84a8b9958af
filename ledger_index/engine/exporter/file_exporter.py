"""File based exporter supporting JSON/CSV/TXT."""

from __future__ import annotations

import csv
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..records import FileEntry
from .base import BaseExporter

ROW_FIELDS = (
    "identifier",
    "name",
    "type",
    "mimeType",
    "pieceCid",
    "owner",
    "contractAddress",
    "accessGranted",
    "accessType",
)
FORMATS = ("json", "csv", "txt")


class FileExporter(BaseExporter):
    """Write listing rows to a local file in one of several formats."""

    def __init__(self, output_dir: Path, address: str, fmt: str, run_tag: str | None = None) -> None:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        self.output_dir = output_dir
        self.address = address
        self.format = fmt
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_tag = run_tag or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        slug = re.sub(r"[^0-9A-Za-z_-]+", "_", address.strip().lower()) or "address"
        self.path = self.output_dir / f"{slug}-{self.run_tag}.{self._extension}"
        self._file = self.path.open("w", encoding="utf-8", newline="")
        self._csv_writer: Optional[csv.DictWriter] = None
        self._counter = 0

    @property
    def _extension(self) -> str:
        if self.format == "json":
            return "jsonl"
        return self.format

    def export(self, entry: FileEntry) -> None:
        row = entry.as_row()
        if self.format == "json":
            json.dump(row, self._file, ensure_ascii=False)
            self._file.write("\n")
        elif self.format == "csv":
            if not self._csv_writer:
                self._csv_writer = csv.DictWriter(self._file, fieldnames=list(ROW_FIELDS))
                self._csv_writer.writeheader()
            self._csv_writer.writerow(row)
        else:
            self._counter += 1
            self._file.write(self._format_txt(row, index=self._counter))

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    def _format_txt(self, row: dict, index: int) -> str:
        lines = [f"{index}. {row.get('name') or 'Unnamed File'}"]
        lines.append(f"   Identifier: {row['identifier']}")
        lines.append(f"   Piece CID: {row.get('pieceCid') or 'N/A'}")
        lines.append(f"   Type: {row.get('type') or 'Unknown'}")
        if row.get("mimeType"):
            lines.append(f"   MIME Type: {row['mimeType']}")
        lines.append(f"   Owner: {row['owner']}")
        lines.append(f"   Access Granted: {'Yes' if row['accessGranted'] else 'No'}")
        lines.append(f"   Contract: {row['contractAddress']}")
        return "\n".join(lines) + "\n\n"


__all__ = ["FORMATS", "FileExporter", "ROW_FIELDS"]
