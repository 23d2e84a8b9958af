"""Paginated HTTP access to the ledger query service."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Iterable, Mapping

import httpx
import structlog

from ..config import IndexConfig
from ..errors import ExistenceCheckError, FetchError, MalformedPageError, RateLimitExceededError
from .records import FeedKind, FeedPage, FeedRecords, RawRecord, RecordKind
from .retry import build_chain

DEPLOYED_KEY = "permissionedFileDeployeds"
ACCESS_GRANTED_KEY = "permissionedFileAccessMinteds"
DELETED_KEY = "permissionedFileDeleteds"

_ENDPOINTS: dict[FeedKind, tuple[str, str]] = {
    FeedKind.OWNER: ("filesByOwner", "fileOwnerAddress"),
    FeedKind.MINTER: ("filesByMinter", "fileMinterAddress"),
}

Sleeper = Callable[[float], Awaitable[None]]


class LedgerClient:
    """Read-only client for the feed and existence-check endpoints."""

    def __init__(
        self,
        config: IndexConfig,
        client: httpx.AsyncClient | None = None,
        logger: structlog.BoundLogger | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("ledger_index.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=config.timeout,
            headers={"Content-Type": "application/json"},
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    async def fetch_all(
        self,
        feed: FeedKind,
        address: str,
        page_size: int | None = None,
        max_pages: int | None = None,
    ) -> FeedRecords:
        """Page through one feed until a short page or the page budget."""

        page_size = page_size or self.config.pagination.page_size
        if max_pages is None:
            max_pages = self.config.pagination.max_pages
        records = FeedRecords(feed=feed)
        skip = 0
        has_more = True
        while has_more and (max_pages is None or records.pages_fetched < max_pages):
            page = await self.fetch_page(feed, address, skip=skip, first=page_size)
            records.extend(page)
            has_more = len(page.deployed) == page_size
            skip += page_size
            self.logger.debug(
                "page_fetched",
                feed=feed.value,
                page=records.pages_fetched,
                deployed=len(page.deployed),
                access_granted=len(page.access_granted),
                has_more=has_more,
            )
        self.logger.info(
            "feed_exhausted" if not has_more else "feed_page_budget_reached",
            feed=feed.value,
            pages=records.pages_fetched,
            deployed=len(records.deployed),
            access_granted=len(records.access_granted),
        )
        return records

    async def fetch_page(self, feed: FeedKind, address: str, *, skip: int, first: int) -> FeedPage:
        endpoint, address_param = _ENDPOINTS[feed]
        url = f"{self.config.api_url}/graph/{endpoint}"
        params = {address_param: address, "skip": skip, "first": first}
        payload = await self._get_json(url, params)
        return parse_page(payload, url=url)

    async def check_deleted(self, identifiers: Iterable[str]) -> dict[str, bool]:
        """Batch tombstone lookup; raises ``ExistenceCheckError`` on any failure."""

        ids = list(identifiers)
        url = f"{self.config.api_url}/graph/isDeleted"
        try:
            payload = await self._get_json(url, {"fileIdentifiers": json.dumps(ids)})
        except FetchError as exc:
            raise ExistenceCheckError(str(exc.args[0]), details={"count": len(ids)}) from exc
        deleted = payload.get("deletedFiles", {})
        if not isinstance(deleted, dict):
            raise ExistenceCheckError("deletedFiles must be a mapping", details={"count": len(ids)})
        if not all(isinstance(flag, bool) for flag in deleted.values()):
            raise ExistenceCheckError("deletedFiles flags must be booleans", details={"count": len(ids)})
        return {str(key).lower(): flag for key, flag in deleted.items()}

    # ------------------------------------------------------------------
    async def _get_json(self, url: str, params: Mapping[str, Any]) -> dict[str, Any]:
        context, chain = build_chain(self.config.retry)
        while True:
            directive = chain.prepare(context)
            if directive.delay:
                self.logger.warning(
                    "rate_limited",
                    url=url,
                    attempt=context.attempt,
                    delay=directive.delay,
                )
                await self._sleep(directive.delay)
            try:
                response = await self._client.get(url, params=params)
            except httpx.TransportError as exc:
                chain.notify_failure(context, None, exc)
                raise FetchError(f"Request to {url} failed: {exc}", details={"url": url}) from exc

            if response.is_success:
                chain.notify_success(context, response)
                try:
                    payload = response.json()
                except ValueError as exc:
                    raise MalformedPageError(f"Response from {url} is not JSON", details={"url": url}) from exc
                if not isinstance(payload, dict):
                    raise MalformedPageError(f"Response from {url} is not a JSON object", details={"url": url})
                return payload

            chain.notify_failure(context, response, None)
            if not chain.should_retry(context):
                break

        status = response.status_code
        if context.retryable:
            raise RateLimitExceededError(
                f"Rate limited by {url} after {context.max_attempts} attempts",
                status_code=status,
                details={"url": url},
            )
        raise FetchError(
            f"API request failed with status {status}",
            status_code=status,
            details={"url": url},
        )


def parse_page(payload: Mapping[str, Any], url: str = "") -> FeedPage:
    """Turn one page payload into typed records."""

    try:
        return FeedPage(
            deployed=[RawRecord.from_payload(item, RecordKind.DEPLOYED) for item in payload.get(DEPLOYED_KEY) or []],
            access_granted=[
                RawRecord.from_payload(item, RecordKind.ACCESS_GRANTED)
                for item in payload.get(ACCESS_GRANTED_KEY) or []
            ],
            deleted=[
                str(item.get("fileIdentifier", "")).lower()
                for item in payload.get(DELETED_KEY) or []
            ],
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise MalformedPageError(f"Unexpected page shape from {url}: {exc}", details={"url": url}) from exc


__all__ = ["LedgerClient", "parse_page"]
