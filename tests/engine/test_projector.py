from __future__ import annotations

import pytest

from ledger_index.config import FilterSpec, SortSpec
from ledger_index.engine.dedup import merge
from ledger_index.engine.projector import project, stringify
from ledger_index.engine.records import FeedKind


@pytest.fixture
def build_entries(record_builder, feed_builder, blob_builder):
    def _build(*rows: tuple[str, dict]):
        deployed = [record_builder(identifier, blob=blob_builder(**fields)) for identifier, fields in rows]
        return merge(feed_builder(FeedKind.OWNER, deployed=deployed), feed_builder(FeedKind.MINTER))

    return _build


def test_sort_missing_values_last_ascending(build_entries) -> None:
    entries = build_entries(("0x1", {"f": "b"}), ("0x2", {}), ("0x3", {"f": "a"}))
    result = project(entries, sort_spec=SortSpec(field="f", direction="asc"))
    assert [entry.field_value("f") for entry in result.values()] == ["a", "b", None]


def test_sort_missing_values_first_descending(build_entries) -> None:
    entries = build_entries(("0x1", {"f": "b"}), ("0x2", {}), ("0x3", {"f": "a"}))
    result = project(entries, sort_spec=SortSpec(field="f", direction="desc"))
    assert [entry.field_value("f") for entry in result.values()] == [None, "b", "a"]


def test_sort_is_stable_for_equal_keys(build_entries) -> None:
    entries = build_entries(
        ("0x1", {"type": "doc"}),
        ("0x2", {"type": "img"}),
        ("0x3", {"type": "doc"}),
    )
    ascending = project(entries, sort_spec=SortSpec(field="type"))
    assert list(ascending) == ["0x1", "0x3", "0x2"]
    descending = project(entries, sort_spec=SortSpec(field="type", direction="desc"))
    assert list(descending) == ["0x2", "0x1", "0x3"]


def test_no_sort_preserves_merge_order(build_entries) -> None:
    entries = build_entries(("0x3", {"name": "c"}), ("0x1", {"name": "a"}), ("0x2", {"name": "b"}))
    assert list(project(entries)) == ["0x3", "0x1", "0x2"]


def test_filter_contains_is_case_insensitive(build_entries) -> None:
    entries = build_entries(("0x1", {"name": "my report.pdf"}), ("0x2", {"name": "photo.png"}))
    result = project(entries, FilterSpec(field="name", value="REPORT", operator="contains"))
    assert list(result) == ["0x1"]


@pytest.mark.parametrize(
    ("operator", "value", "expected"),
    [
        ("equals", "Photo.PNG", ["0x2"]),
        ("startsWith", "MY", ["0x1"]),
        ("endsWith", ".PDF", ["0x1"]),
        ("contains", "o", ["0x1", "0x2"]),
    ],
)
def test_filter_operators(build_entries, operator, value, expected) -> None:
    entries = build_entries(("0x1", {"name": "my report.pdf"}), ("0x2", {"name": "photo.png"}))
    assert list(project(entries, FilterSpec(field="name", value=value, operator=operator))) == expected


def test_filter_excludes_missing_fields(build_entries) -> None:
    entries = build_entries(("0x1", {"mimeType": "text/plain"}), ("0x2", {}))
    result = project(entries, FilterSpec(field="mimeType", value="", operator="contains"))
    assert list(result) == ["0x1"]


def test_filter_on_passthrough_field(build_entries) -> None:
    entries = build_entries(("0x1", {"archived": True}), ("0x2", {"archived": False}))
    result = project(entries, FilterSpec(field="archived", value=True))
    assert list(result) == ["0x1"]


def test_filter_then_sort(build_entries) -> None:
    entries = build_entries(
        ("0x1", {"name": "b-report"}),
        ("0x2", {"name": "a-report"}),
        ("0x3", {"name": "photo"}),
    )
    result = project(
        entries,
        FilterSpec(field="name", value="report", operator="endsWith"),
        SortSpec(field="name"),
    )
    assert list(result) == ["0x2", "0x1"]


def test_stringify_matches_json_rendering() -> None:
    assert stringify(True) == "true"
    assert stringify(3.0) == "3"
    assert stringify(2.5) == "2.5"


def test_sort_ignores_case_for_ordering(build_entries) -> None:
    entries = build_entries(("0x1", {"name": "banana"}), ("0x2", {"name": "Cherry"}), ("0x3", {"name": "apple"}))
    ascending = project(entries, sort_spec=SortSpec(field="name"))
    assert [entry.metadata.name for entry in ascending.values()] == ["apple", "banana", "Cherry"]
    descending = project(entries, sort_spec=SortSpec(field="name", direction="desc"))
    assert [entry.metadata.name for entry in descending.values()] == ["Cherry", "banana", "apple"]


def test_null_field_counts_as_present(build_entries) -> None:
    entries = build_entries(("0x1", {"label": None}), ("0x2", {}), ("0x3", {"label": "ok"}))
    assert list(project(entries, FilterSpec(field="label", value="null"))) == ["0x1"]
    result = project(entries, sort_spec=SortSpec(field="label"))
    assert list(result) == ["0x1", "0x3", "0x2"]
