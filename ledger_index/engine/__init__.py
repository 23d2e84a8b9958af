"""Engine components orchestrating fetch → normalize → merge → tombstones → project."""

from .dedup import merge
from .fetcher import LedgerClient
from .normalizer import normalize
from .projector import project
from .records import FeedKind, FeedRecords, FileEntry, NormalizedMetadata, RawRecord, RecordKind, ResultSet
from .tombstones import TombstoneOutcome, TombstoneStatus, filter_deleted

__all__ = [
    "FeedKind",
    "FeedRecords",
    "FileEntry",
    "LedgerClient",
    "NormalizedMetadata",
    "RawRecord",
    "RecordKind",
    "ResultSet",
    "TombstoneOutcome",
    "TombstoneStatus",
    "filter_deleted",
    "merge",
    "normalize",
    "project",
]
