"""Transformation engine for renaming legacy records into target rows."""

import json
import logging
from typing import Any, Dict, Optional

from ..models.record import (
    SourceRecord,
    TransformedRecord,
)

logger = logging.getLogger(__name__)

METADATA_FIELD = "open_metadata"


class TransformEngine:
    """
    Renames record fields according to a mapping.

    Mapped fields are renamed to their target column. Everything else,
    including fields mapped to an empty value or to the catch-all column
    itself, is kept under its original name in the record's open metadata,
    so no source value is ever dropped.
    """

    def __init__(self, metadata_field: str = METADATA_FIELD):
        self.metadata_field = metadata_field

    def transform_record(
        self,
        record: SourceRecord,
        mappings: Dict[str, str],
        target: str,
        metadata_field: Optional[str] = None
    ) -> TransformedRecord:
        """
        Split a source record into mapped data and open metadata.

        Args:
            record: Extracted source record
            mappings: Source field -> target column
            target: Target table name
            metadata_field: Catch-all column, defaults to the engine's

        Returns:
            TransformedRecord with data and open_metadata filled in
        """
        metadata_field = metadata_field or self.metadata_field
        mapped_data: Dict[str, Any] = {}
        open_metadata: Dict[str, Any] = {}
        owners: Dict[str, str] = {}

        for source_field, value in record.data.items():
            target_field = mappings.get(source_field)

            if target_field and target_field != metadata_field:
                if target_field in owners:
                    # Later field wins the column; the earlier value moves to metadata
                    previous = owners[target_field]
                    logger.debug(f"Record {record.id}: {source_field} replaces {previous} in {target_field}")
                    open_metadata[previous] = mapped_data[target_field]
                owners[target_field] = source_field
                mapped_data[target_field] = value
            else:
                open_metadata[source_field] = value

        return TransformedRecord(
            id=record.id,
            target=str(getattr(target, "value", target)),
            data=mapped_data,
            open_metadata=open_metadata,
            source_record=record,
        )

    def attach_metadata(self, record: TransformedRecord, metadata_field: Optional[str] = None) -> Dict[str, Any]:
        """Return the row payload with open metadata serialized into the catch-all column."""
        metadata_field = metadata_field or self.metadata_field
        payload = dict(record.data)
        payload[metadata_field] = serialize_metadata(record.open_metadata)
        return payload


def serialize_metadata(open_metadata: Dict[str, Any]) -> str:
    """Serialize unmapped fields for the catch-all JSON column."""
    return json.dumps(open_metadata, default=str, sort_keys=True)
