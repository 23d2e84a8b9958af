from __future__ import annotations

from pathlib import Path

import pytest

from ledger_index.config import FilterSpec, IndexConfig, PaginationConfig, RetryPolicy, SortSpec


def test_pagination_page_size_bounds() -> None:
    assert PaginationConfig().page_size == 100
    with pytest.raises(ValueError):
        PaginationConfig(page_size=0)
    with pytest.raises(ValueError):
        PaginationConfig(page_size=101)
    with pytest.raises(ValueError):
        PaginationConfig(max_pages=0)
    assert PaginationConfig(page_size=1, max_pages=3).max_pages == 3


def test_retry_policy_validation() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)
    with pytest.raises(ValueError):
        RetryPolicy(base_delay=5.0, max_delay=1.0)
    assert RetryPolicy(base_delay=0.0, max_delay=0.0).max_delay == 0.0


def test_filter_and_sort_literals() -> None:
    assert FilterSpec(field="name", value="x").operator == "equals"
    with pytest.raises(ValueError):
        FilterSpec(field="name", value="x", operator="regex")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        FilterSpec(field=" ", value="x")
    with pytest.raises(ValueError):
        SortSpec(field="name", direction="up")  # type: ignore[arg-type]


def test_index_config_normalises_values() -> None:
    config = IndexConfig(api_url=" https://ledger.test/ ", output_dir="exports")
    assert config.api_url == "https://ledger.test"
    assert config.output_dir == Path("exports")
    with pytest.raises(ValueError):
        IndexConfig(api_url="ftp://ledger.test")
    with pytest.raises(ValueError):
        IndexConfig(tombstone_chunk_size=0)
