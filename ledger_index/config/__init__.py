"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    FilterSpec,
    IndexConfig,
    PaginationConfig,
    ReconcileOptions,
    RetryPolicy,
    SortSpec,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "FilterSpec",
    "IndexConfig",
    "PaginationConfig",
    "ReconcileOptions",
    "RetryPolicy",
    "SortSpec",
]
