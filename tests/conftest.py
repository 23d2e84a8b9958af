"""Pytest configuration providing a fake ledger service and record builders."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from ledger_index.config import ConfigLocator, ConfigRepository, IndexConfig, RetryPolicy
from ledger_index.engine.records import FeedKind, FeedRecords, RawRecord, RecordKind


def make_blob(locator: str | None = "baga-cid", **fields: Any) -> str:
    """Metadata blob with the locator nested under the storage info key."""

    payload: dict[str, Any] = dict(fields)
    if locator is not None:
        payload.setdefault("filecoinStorageInfo", {"pieceCID": locator})
    return json.dumps(payload)


def record_payload(
    identifier: str,
    *,
    owner: str = "0xowner",
    contract: str = "0xcontract",
    blob: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    return {
        "fileIdentifier": identifier,
        "fileContractAddress": contract,
        "fileOwner": owner,
        "fileMetadata": blob if blob is not None else make_blob(name=f"{identifier}.txt", **fields),
    }


def make_record(
    identifier: str,
    kind: RecordKind = RecordKind.DEPLOYED,
    **kwargs: Any,
) -> RawRecord:
    return RawRecord.from_payload(record_payload(identifier, **kwargs), kind)


def make_feed(
    feed: FeedKind,
    deployed: Iterable[RawRecord] = (),
    access_granted: Iterable[RawRecord] = (),
) -> FeedRecords:
    return FeedRecords(feed=feed, deployed=list(deployed), access_granted=list(access_granted), pages_fetched=1)


class FakeLedgerService:
    """In-memory stand-in for the ledger query service."""

    def __init__(self) -> None:
        self.pages: dict[str, list[dict[str, Any]]] = {"filesByOwner": [], "filesByMinter": []}
        self.deleted: dict[str, Any] = {}
        self.deleted_status = 200
        self.failures: dict[str, list[int]] = {}
        self.requests: list[httpx.Request] = []
        # Endpoints that answer every page with one fresh record, forever.
        self.endless: set[str] = set()

    def add_page(self, endpoint: str, deployed=(), access_granted=()) -> None:
        self.pages[endpoint].append(
            {
                "permissionedFileDeployeds": list(deployed),
                "permissionedFileAccessMinteds": list(access_granted),
            }
        )

    def fail_next(self, endpoint: str, *statuses: int) -> None:
        self.failures.setdefault(endpoint, []).extend(statuses)

    def requests_to(self, endpoint: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith(endpoint)]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # Yield like a real network round trip so concurrent feed loops interleave.
        await asyncio.sleep(0)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        queued = self.failures.get(endpoint)
        if queued:
            return httpx.Response(queued.pop(0), json={"error": "failure"})
        if endpoint == "isDeleted":
            if self.deleted_status != 200:
                return httpx.Response(self.deleted_status, json={"error": "unavailable"})
            ids = json.loads(request.url.params["fileIdentifiers"])
            return httpx.Response(200, json={"deletedFiles": {i: self.deleted.get(i, False) for i in ids}})
        skip = int(request.url.params["skip"])
        if endpoint in self.endless:
            return httpx.Response(
                200,
                json={"permissionedFileDeployeds": [record_payload(f"0x{endpoint}{skip}")]},
            )
        first = int(request.url.params["first"])
        pages = self.pages[endpoint]
        index = skip // first
        payload = pages[index] if index < len(pages) else {
            "permissionedFileDeployeds": [],
            "permissionedFileAccessMinteds": [],
        }
        return httpx.Response(200, json=payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("LEDGER_INDEX_HOME", str(tmp_path))
    monkeypatch.delenv("LEDGER_INDEX_API_URL", raising=False)
    return tmp_path


@pytest.fixture
def index_config() -> IndexConfig:
    return IndexConfig(
        api_url="https://ledger.test",
        retry=RetryPolicy(max_retries=2, base_delay=0.0, max_delay=0.0),
    )


@pytest.fixture
def ledger_service() -> FakeLedgerService:
    return FakeLedgerService()


@pytest.fixture
def record_builder() -> Callable[..., RawRecord]:
    return make_record


@pytest.fixture
def blob_builder() -> Callable[..., str]:
    return make_blob


@pytest.fixture
def payload_builder() -> Callable[..., dict[str, Any]]:
    return record_payload


@pytest.fixture
def feed_builder() -> Callable[..., FeedRecords]:
    return make_feed


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path))
