"""In-memory record store for trial runs and tests."""

import copy
import logging
import uuid
from typing import Any, Dict, List, Optional

from .base import RecordStore, StoreError

logger = logging.getLogger(__name__)


class InMemoryStore(RecordStore):
    """
    Record store backed by plain dictionaries.

    Behaves like the live database where the migration cares: rows get an
    `id` when they arrive without one, and inserting a second row with an
    existing `id` fails like a primary-key violation would.
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, dry_run: bool = False):
        super().__init__(dry_run=dry_run)
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables) if tables else {}
        self.audit_log: List[Dict[str, Any]] = []

    def rows(self, table: str) -> List[Dict[str, Any]]:
        """All rows of a table, as stored."""
        return self.tables.setdefault(table, [])

    def lookup(self, table: str, field: str, value: Any) -> Optional[Dict[str, Any]]:
        for row in self.rows(table):
            if row.get(field) == value:
                return copy.deepcopy(row)
        return None

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        row = copy.deepcopy(record)
        if row.get("id") is None:
            row["id"] = str(uuid.uuid4())
        elif self._find(table, row["id"]) is not None:
            raise StoreError(f"duplicate key value violates unique constraint \"{table}_pkey\" (id={row['id']})")

        if self.dry_run:
            logger.debug(f"Dry run: would insert into {table}: {row['id']}")
            return row

        self.rows(table).append(row)
        return copy.deepcopy(row)

    def update(self, table: str, row_id: Any, record: Dict[str, Any]) -> Dict[str, Any]:
        row = self._find(table, row_id)
        if row is None:
            raise StoreError(f"No row in {table} with id {row_id}")

        if self.dry_run:
            logger.debug(f"Dry run: would update {table} row {row_id}")
            return {**row, **record}

        row.update(copy.deepcopy(record))
        return copy.deepcopy(row)

    def append_audit_entry(self, entry: Dict[str, Any]) -> None:
        self.audit_log.append(copy.deepcopy(entry))

    def _find(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        for row in self.rows(table):
            if row.get("id") == row_id:
                return row
        return None
