"""Record stores for the live database."""

from .base import RecordStore, StoreError, StoreUnavailableError
from .memory_store import InMemoryStore
from .rest_store import RestRecordStore

__all__ = [
    "RecordStore",
    "StoreError",
    "StoreUnavailableError",
    "InMemoryStore",
    "RestRecordStore",
]
