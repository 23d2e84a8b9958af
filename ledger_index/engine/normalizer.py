"""Metadata blob parsing, storage locator extraction and the listing gate."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

import structlog

from ..errors import MalformedMetadataError
from .records import NormalizedMetadata, OpaqueMetadata, RawRecord

logger = structlog.get_logger("ledger_index.normalizer")

STORAGE_INFO_KEY = "filecoinStorageInfo"
ACCESS_TYPES = frozenset({"public", "private"})

LocatorExtractor = Callable[[Mapping[str, Any]], Any]


def _nested(key: str) -> LocatorExtractor:
    def extract(metadata: Mapping[str, Any]) -> Any:
        info = metadata.get(STORAGE_INFO_KEY)
        return info.get(key) if isinstance(info, Mapping) else None

    extract.__name__ = f"{STORAGE_INFO_KEY}.{key}"
    return extract


def _top_level(key: str) -> LocatorExtractor:
    def extract(metadata: Mapping[str, Any]) -> Any:
        return metadata.get(key)

    extract.__name__ = key
    return extract


# Tried in order; the first non-empty string wins.
LOCATOR_EXTRACTORS: tuple[LocatorExtractor, ...] = (
    _nested("pieceCID"),
    _nested("pieceCid"),
    _top_level("pieceCID"),
    _top_level("pieceCid"),
)


def parse_blob(record: RawRecord) -> dict[str, Any]:
    """Parse the record's metadata blob into a mapping or raise."""

    try:
        value = json.loads(record.metadata_blob)
    except (TypeError, ValueError) as exc:
        raise MalformedMetadataError(record.identifier, str(exc)) from exc
    if not isinstance(value, dict):
        raise MalformedMetadataError(record.identifier, "metadata is not a JSON object")
    return value


def extract_locator(metadata: Mapping[str, Any]) -> str | None:
    for extractor in LOCATOR_EXTRACTORS:
        value = extractor(metadata)
        if isinstance(value, str) and value:
            return value
    return None


def has_pointer_marker(metadata: Mapping[str, Any]) -> bool:
    """True for encrypted uploads that only carry an interim IPFS pointer."""

    encrypted = metadata.get("encryptedData")
    return isinstance(encrypted, Mapping) and bool(encrypted.get("ipfsHash"))


def _optional_str(metadata: Mapping[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    return None if value is None else str(value)


def normalize(record: RawRecord) -> NormalizedMetadata | None:
    """Return normalized metadata, or ``None`` when the record is not listable yet."""

    metadata = parse_blob(record)
    locator = extract_locator(metadata)
    if locator is None or has_pointer_marker(metadata):
        logger.debug(
            "record_gated",
            identifier=record.identifier,
            kind=record.kind.value,
            has_locator=locator is not None,
        )
        return None
    access_type = metadata.get("accessType")
    return NormalizedMetadata(
        name=_optional_str(metadata, "name"),
        type=_optional_str(metadata, "type"),
        mime_type=_optional_str(metadata, "mimeType"),
        subtype=_optional_str(metadata, "subtype"),
        storage_locator=locator,
        access_type=access_type if access_type in ACCESS_TYPES else None,
        raw=OpaqueMetadata(record.metadata_blob),
    )


__all__ = [
    "LOCATOR_EXTRACTORS",
    "extract_locator",
    "has_pointer_marker",
    "normalize",
    "parse_blob",
]
