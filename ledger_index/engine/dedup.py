"""Deduplicating merge of owner and minter feed records."""

from __future__ import annotations

from typing import Iterable, Iterator

import structlog

from .normalizer import normalize
from .records import FeedRecords, FileEntry, RawRecord, ResultSet

logger = structlog.get_logger("ledger_index.dedup")


def access_granted_ids(*feeds: FeedRecords) -> set[str]:
    """Union of lowercased identifiers seen in any access-granted stream."""

    return {record.identifier.lower() for feed in feeds for record in feed.access_granted}


def precedence_streams(owner: FeedRecords, minter: FeedRecords) -> Iterator[Iterable[RawRecord]]:
    """Yield the four streams in the order that decides which copy wins."""

    yield owner.deployed
    yield owner.access_granted
    yield minter.deployed
    yield minter.access_granted


def merge(owner: FeedRecords, minter: FeedRecords) -> ResultSet:
    """Merge both feeds into one identifier-keyed table, first seen wins.

    Records rejected by the metadata gate never claim their identifier, so a
    later stream's copy of the same file can still be inserted. The
    ``access_granted`` flag depends only on membership in an access-granted
    stream, not on which stream supplied the entry.
    """

    granted = access_granted_ids(owner, minter)
    entries: ResultSet = {}
    duplicates = 0
    gated = 0
    for stream in precedence_streams(owner, minter):
        for record in stream:
            identifier = record.identifier.lower()
            if identifier in entries:
                duplicates += 1
                continue
            metadata = normalize(record)
            if metadata is None:
                gated += 1
                continue
            entries[identifier] = FileEntry(
                identifier=identifier,
                contract_address=record.contract_address,
                owner=record.party_address,
                metadata=metadata,
                access_granted=identifier in granted,
            )
    logger.info("feeds_merged", entries=len(entries), duplicates=duplicates, gated=gated)
    return entries


__all__ = ["access_granted_ids", "merge", "precedence_streams"]
