"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..records import FileEntry


class BaseExporter(ABC):
    """Uniform exporter contract for writing listing results."""

    @abstractmethod
    def export(self, entry: FileEntry) -> None:
        """Persist a single entry."""

    def export_many(self, entries: Iterable[FileEntry]) -> None:
        for entry in entries:
            self.export(entry)

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self) -> "BaseExporter":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.flush()
        self.close()


__all__ = ["BaseExporter"]
