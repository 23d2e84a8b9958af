"""Reconciled file index over paginated ownership ledgers."""

from .config import FilterSpec, IndexConfig, PaginationConfig, ReconcileOptions, SortSpec
from .orchestrator import ReconcileResult, Reconciler, reconcile

__all__ = [
    "FilterSpec",
    "IndexConfig",
    "PaginationConfig",
    "ReconcileOptions",
    "ReconcileResult",
    "Reconciler",
    "SortSpec",
    "reconcile",
]
