"""
Storage package for the Bookstore API.

This package contains:
- Entity models for users and books
- The JSON-file record store and its in-memory counterpart
"""

from storage.models import BookRecord, EntityKind, UserRecord
from storage.record_store import (
    InMemoryRecordStore,
    JSONFileRecordStore,
    LoadOutcome,
    LoadResult,
    RecordStore,
)

__all__ = [
    "BookRecord",
    "EntityKind",
    "UserRecord",
    "InMemoryRecordStore",
    "JSONFileRecordStore",
    "LoadOutcome",
    "LoadResult",
    "RecordStore",
]
