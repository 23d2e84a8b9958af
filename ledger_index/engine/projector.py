"""Field filter and stable sort over the surviving entries."""

from __future__ import annotations

from typing import Any, Callable

from ..config import FilterSpec, SortSpec
from .records import FileEntry, ResultSet

_OPERATORS: dict[str, Callable[[str, str], bool]] = {
    "equals": lambda field, value: field == value,
    "contains": lambda field, value: value in field,
    "startsWith": lambda field, value: field.startswith(value),
    "endsWith": lambda field, value: field.endswith(value),
}


def stringify(value: Any) -> str:
    """Render a field value the way the ledger's JSON clients print it."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches(entry: FileEntry, spec: FilterSpec) -> bool:
    field_value = entry.field_value(spec.field)
    if field_value is None:
        return False
    compare = _OPERATORS[spec.operator]
    return compare(stringify(field_value).lower(), stringify(spec.value).lower())


def _sort_key(spec: SortSpec) -> Callable[[FileEntry], tuple[bool, str, str]]:
    def key(entry: FileEntry) -> tuple[bool, str, str]:
        value = entry.field_value(spec.field)
        if value is None:
            # Missing sorts after every present value before direction is applied.
            return (True, "", "")
        text = stringify(value)
        # Case-folded first so "apple" < "Cherry"; raw text breaks ties.
        return (False, text.casefold(), text)

    return key


def project(
    entries: ResultSet,
    filter_spec: FilterSpec | None = None,
    sort_spec: SortSpec | None = None,
) -> ResultSet:
    """Apply the optional filter, then the optional sort.

    Without a sort the merge insertion order is kept. ``sorted`` is stable for
    both directions, so ties keep their incoming order.
    """

    selected = [
        entry for entry in entries.values() if filter_spec is None or matches(entry, filter_spec)
    ]
    if sort_spec is not None:
        selected = sorted(selected, key=_sort_key(sort_spec), reverse=sort_spec.direction == "desc")
    return {entry.identifier: entry for entry in selected}


__all__ = ["matches", "project", "stringify"]
