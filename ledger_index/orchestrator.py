"""Reconciliation orchestrator wiring together fetch, merge, tombstones and projection."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
import structlog

from .config import IndexConfig, PaginationConfig, ReconcileOptions
from .engine import (
    FeedKind,
    FeedRecords,
    LedgerClient,
    ResultSet,
    TombstoneOutcome,
    filter_deleted,
    merge,
    project,
)
from .logging_conf import configure_logging


@dataclass(slots=True)
class ReconcileResult:
    """Final listing plus the diagnostics of how it was produced."""

    entries: ResultSet
    owner_pages: int
    minter_pages: int
    merged_count: int
    tombstones: TombstoneOutcome

    @property
    def tombstone_check_skipped(self) -> bool:
        return self.tombstones.skipped


class Reconciler:
    """Build the "files visible to me" view for one address per call.

    Every call creates its own accumulators, so concurrent reconciliations for
    different addresses never share state.
    """

    def __init__(
        self,
        config: IndexConfig | None = None,
        client: httpx.AsyncClient | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config or IndexConfig()
        self._client = client
        self.logger = logger or configure_logging().bind(component="reconciler")

    async def reconcile(self, address: str, options: ReconcileOptions | None = None) -> ReconcileResult:
        options = options or ReconcileOptions()
        pagination = options.pagination or self.config.pagination
        log = self.logger.bind(address=address)
        log.info(
            "reconcile_started",
            page_size=pagination.page_size,
            max_pages=pagination.max_pages,
        )
        fetch_logger = structlog.get_logger("ledger_index.fetcher").bind(address=address)
        async with LedgerClient(self.config, client=self._client, logger=fetch_logger) as ledger:
            owner, minter = await self._fetch_feeds(ledger, address, pagination, log)
            if options.debug:
                log.info(
                    "feeds_fetched",
                    owner_deployed=len(owner.deployed),
                    owner_access_granted=len(owner.access_granted),
                    minter_deployed=len(minter.deployed),
                    minter_access_granted=len(minter.access_granted),
                )
            merged = merge(owner, minter)
            outcome = await filter_deleted(
                merged,
                ledger.check_deleted,
                chunk_size=self.config.tombstone_chunk_size,
            )
        entries = project(outcome.entries, options.filter_by, options.sort_by)
        log.info(
            "reconcile_finished",
            merged=len(merged),
            tombstone_status=outcome.status.value,
            returned=len(entries),
        )
        return ReconcileResult(
            entries=entries,
            owner_pages=owner.pages_fetched,
            minter_pages=minter.pages_fetched,
            merged_count=len(merged),
            tombstones=outcome,
        )

    async def _fetch_feeds(
        self,
        ledger: LedgerClient,
        address: str,
        pagination: PaginationConfig,
        log: structlog.BoundLogger,
    ) -> tuple[FeedRecords, FeedRecords]:
        """Page both feeds concurrently; the first failure cancels the other loop."""

        tasks = [
            asyncio.create_task(ledger.fetch_all(feed, address, pagination.page_size, pagination.max_pages))
            for feed in (FeedKind.OWNER, FeedKind.MINTER)
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                task.cancel()
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                log.warning("feed_fetch_failed", error=str(outcome))
                raise outcome
        owner, minter = outcomes
        return owner, minter


async def reconcile(
    address: str,
    options: ReconcileOptions | None = None,
    config: IndexConfig | None = None,
) -> ResultSet:
    """Convenience wrapper returning only the final listing."""

    result = await Reconciler(config).reconcile(address, options)
    return result.entries


__all__ = ["ReconcileResult", "Reconciler", "reconcile"]
