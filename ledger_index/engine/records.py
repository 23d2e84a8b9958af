"""Data carried between the fetch, normalize, merge and project stages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

JSON_NULL = "null"


class FeedKind(str, Enum):
    """The two ledgers that can be paged for an address."""

    OWNER = "owner"
    MINTER = "minter"


class RecordKind(str, Enum):
    DEPLOYED = "deployed"
    ACCESS_GRANTED = "access_granted"


@dataclass(frozen=True, slots=True)
class RawRecord:
    """One record as returned by a feed page."""

    identifier: str
    contract_address: str
    # Owner address for deployed records, minter address for access-granted ones.
    party_address: str
    metadata_blob: str
    kind: RecordKind

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], kind: RecordKind) -> "RawRecord":
        party = payload.get("fileOwner")
        if party is None:
            party = payload.get("fileMinter", "")
        return cls(
            identifier=str(payload["fileIdentifier"]),
            contract_address=str(payload.get("fileContractAddress", "")),
            party_address=str(party),
            metadata_blob=payload.get("fileMetadata", ""),
            kind=kind,
        )


@dataclass(slots=True)
class FeedPage:
    deployed: list[RawRecord] = field(default_factory=list)
    access_granted: list[RawRecord] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


@dataclass(slots=True)
class FeedRecords:
    """Everything one feed loop accumulated across its pages."""

    feed: FeedKind
    deployed: list[RawRecord] = field(default_factory=list)
    access_granted: list[RawRecord] = field(default_factory=list)
    pages_fetched: int = 0

    def extend(self, page: FeedPage) -> None:
        self.deployed.extend(page.deployed)
        self.access_granted.extend(page.access_granted)
        self.pages_fetched += 1


@dataclass(frozen=True, slots=True)
class OpaqueMetadata:
    """Original metadata blob, decoded only when somebody asks for it."""

    raw: str

    def decode(self) -> dict[str, Any]:
        value = json.loads(self.raw)
        return value if isinstance(value, dict) else {}

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class NormalizedMetadata:
    name: str | None
    type: str | None
    mime_type: str | None
    subtype: str | None
    storage_locator: str | None
    access_type: str | None
    raw: OpaqueMetadata

    # Lookups answered from the normalized view; everything else reads the blob.
    _DERIVED_FIELDS = {
        "pieceCid": "storage_locator",
        "pieceCID": "storage_locator",
        "accessType": "access_type",
    }

    def get(self, field_name: str) -> Any:
        """Return a metadata field by wire name, or ``None`` when the key is absent.

        A key that is present with a JSON ``null`` yields ``"null"``, the way the
        ledger's JSON clients stringify it, so it still counts as present.
        """

        attr = self._DERIVED_FIELDS.get(field_name)
        if attr is not None:
            return getattr(self, attr)
        decoded = self.raw.decode()
        if field_name not in decoded:
            return None
        value = decoded[field_name]
        return JSON_NULL if value is None else value


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Canonical merged unit keyed by lowercased identifier."""

    identifier: str
    contract_address: str
    owner: str
    metadata: NormalizedMetadata
    access_granted: bool

    def field_value(self, field_name: str) -> Any:
        return self.metadata.get(field_name)

    def as_row(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "name": self.metadata.name,
            "type": self.metadata.type,
            "mimeType": self.metadata.mime_type,
            "pieceCid": self.metadata.storage_locator,
            "owner": self.owner,
            "contractAddress": self.contract_address,
            "accessGranted": self.access_granted,
            "accessType": self.metadata.access_type,
        }


ResultSet = dict[str, FileEntry]


__all__ = [
    "FeedKind",
    "FeedPage",
    "FeedRecords",
    "FileEntry",
    "NormalizedMetadata",
    "OpaqueMetadata",
    "RawRecord",
    "RecordKind",
    "ResultSet",
]
