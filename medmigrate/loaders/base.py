"""Base record-store interface for the live database."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A single store call failed (lookup, insert, update or audit append)."""


class StoreUnavailableError(StoreError):
    """The store cannot be reached at all."""


class RecordStore(ABC):
    """
    Base class for record stores.

    A store is the only way the migration core touches the live database:
    it looks rows up by a unique column, inserts, updates by row id and
    appends audit entries. Every call either returns or raises StoreError.
    """

    def __init__(self, dry_run: bool = False):
        """
        Initialize the store.

        Args:
            dry_run: If True, perform lookups but simulate writes
        """
        self.dry_run = dry_run

    @abstractmethod
    def lookup(self, table: str, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Find the row whose `field` equals `value`.

        Returns:
            The row (at least its `id`), or None if there is none
        """
        pass

    @abstractmethod
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new row and return it as stored."""
        pass

    @abstractmethod
    def update(self, table: str, row_id: Any, record: Dict[str, Any]) -> Dict[str, Any]:
        """Update the row with id `row_id` and return it as stored."""
        pass

    @abstractmethod
    def append_audit_entry(self, entry: Dict[str, Any]) -> None:
        """Append an entry to the activity log."""
        pass

    def validate_connection(self) -> bool:
        """Validate the connection to the store."""
        return True
