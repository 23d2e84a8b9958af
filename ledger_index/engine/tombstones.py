"""Removal of deleted files via one batch existence check."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Sequence

import structlog

from .records import ResultSet

logger = structlog.get_logger("ledger_index.tombstones")

ExistenceCheck = Callable[[Sequence[str]], Awaitable[dict[str, bool]]]


class TombstoneStatus(str, Enum):
    FILTERED = "filtered"
    SKIPPED = "skipped"


@dataclass(slots=True)
class TombstoneOutcome:
    """Result of the tombstone pass, including which path was taken."""

    status: TombstoneStatus
    entries: ResultSet
    deleted: frozenset[str] = field(default_factory=frozenset)
    error: Exception | None = None

    @property
    def skipped(self) -> bool:
        return self.status is TombstoneStatus.SKIPPED


def _chunks(items: Sequence[str], size: int | None) -> list[Sequence[str]]:
    if not size:
        return [items]
    return [items[i : i + size] for i in range(0, len(items), size)]


async def filter_deleted(
    entries: ResultSet,
    existence_check: ExistenceCheck,
    chunk_size: int | None = None,
) -> TombstoneOutcome:
    """Drop entries confirmed deleted; keep everything if the check fails."""

    identifiers = list(entries)
    if not identifiers:
        return TombstoneOutcome(TombstoneStatus.FILTERED, dict(entries))

    deleted: set[str] = set()
    try:
        for chunk in _chunks(identifiers, chunk_size):
            statuses = await existence_check(chunk)
            deleted.update(key.lower() for key, flag in statuses.items() if flag)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "tombstone_check_failed",
            identifiers=len(identifiers),
            error=str(exc),
        )
        return TombstoneOutcome(TombstoneStatus.SKIPPED, dict(entries), error=exc)

    survivors = {key: entry for key, entry in entries.items() if key not in deleted}
    removed = frozenset(key for key in entries if key in deleted)
    for key in removed:
        logger.debug("tombstoned_entry_removed", identifier=key)
    logger.info("tombstones_applied", checked=len(identifiers), removed=len(removed))
    return TombstoneOutcome(TombstoneStatus.FILTERED, survivors, deleted=removed)


__all__ = ["ExistenceCheck", "TombstoneOutcome", "TombstoneStatus", "filter_deleted"]
