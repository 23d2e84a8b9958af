"""Pydantic models used across the ledger index configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

MAX_PAGE_SIZE = 100

FilterOperator = Literal["equals", "contains", "startsWith", "endsWith"]
SortDirection = Literal["asc", "desc"]


class RetryPolicy(BaseModel):
    """Backoff settings applied when the ledger service rate-limits us."""

    max_retries: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0

    @model_validator(mode="after")
    def _validate_delays(self) -> "RetryPolicy":
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self


class PaginationConfig(BaseModel):
    """Page size and page budget for one feed."""

    page_size: int = MAX_PAGE_SIZE
    max_pages: int | None = None

    @field_validator("page_size")
    @classmethod
    def _check_page_size(cls, value: int) -> int:
        if not 1 <= value <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        return value

    @field_validator("max_pages")
    @classmethod
    def _check_max_pages(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("max_pages must be >= 1 when set")
        return value


class FilterSpec(BaseModel):
    """Single-field predicate applied to merged entries."""

    field: str
    value: str | int | float | bool
    operator: FilterOperator = "equals"

    @field_validator("field")
    @classmethod
    def _non_empty_field(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("filter field cannot be empty")
        return value


class SortSpec(BaseModel):
    """Stable single-key sort applied to merged entries."""

    field: str
    direction: SortDirection = "asc"


class ReconcileOptions(BaseModel):
    """Per-call knobs for a reconciliation run."""

    filter_by: FilterSpec | None = None
    sort_by: SortSpec | None = None
    pagination: PaginationConfig | None = None
    debug: bool = False


class IndexConfig(BaseModel):
    """Global controls shared by every reconciliation."""

    api_url: str = "https://api.keypo.io"
    timeout: float = 30.0
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    # Unset means one unchunked existence check call.
    tombstone_chunk_size: int | None = None
    output_dir: Path = Field(default=Path("data/outputs"))

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("api_url must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("tombstone_chunk_size")
    @classmethod
    def _check_chunk(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("tombstone_chunk_size must be >= 1 when set")
        return value

    @field_validator("output_dir", mode="before")
    @classmethod
    def _coerce_dir(cls, value: Any) -> Path:
        return Path(value)


__all__ = [
    "FilterOperator",
    "FilterSpec",
    "IndexConfig",
    "MAX_PAGE_SIZE",
    "PaginationConfig",
    "ReconcileOptions",
    "RetryPolicy",
    "SortDirection",
    "SortSpec",
]
