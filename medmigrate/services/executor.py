"""Migration executor: writes transformed legacy records into the live store."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..models.migration import MigrationResult
from ..models.record import RecordStatus, SourceRecord, TransformedRecord
from ..models.schema import TargetSchema
from ..loaders.base import RecordStore, StoreError, StoreUnavailableError
from .schema_registry import SchemaRegistry
from .schema_mapper import SchemaMapper
from .transformer import TransformEngine
from .validator import RecordValidator

logger = logging.getLogger(__name__)

AUDIT_ACTION = "DATA_MIGRATION"


class RecordSkipped(Exception):
    """A record could not be written; the message goes into the run's error list."""


@dataclass
class _RunCounters:
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def skip(self, message: str) -> None:
        self.skipped += 1
        self.errors.append(message)

    def freeze(self) -> MigrationResult:
        return MigrationResult(
            records_processed=self.processed,
            records_inserted=self.inserted,
            records_updated=self.updated,
            records_skipped=self.skipped,
            errors=tuple(self.errors),
        )


class MigrationExecutor:
    """
    Upserts records into a target table one at a time.

    Each record is transformed, validated and upserted on its own: any
    failure is recorded as a skip with an error message and the run moves
    on to the next record. Re-running the same dump is safe because rows are
    matched on the target's unique key.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: Optional[SchemaRegistry] = None,
        transformer: Optional[TransformEngine] = None,
        validator: Optional[RecordValidator] = None
    ):
        """
        Initialize the executor.

        Args:
            store: Live record store (lookup / insert / update / audit)
            registry: Schema registry with target schemas
            transformer: Record transformer
            validator: Row validator
        """
        self.store = store
        self.registry = registry or SchemaRegistry()
        self.mapper = SchemaMapper(self.registry)
        self.transformer = transformer or TransformEngine()
        self.validator = validator or RecordValidator()

    def execute(
        self,
        records: Sequence[SourceRecord],
        source: str,
        target: str,
        mappings: Dict[str, str],
        user_id: Optional[str] = None
    ) -> MigrationResult:
        """
        Migrate records into the target table.

        Args:
            records: All extracted records
            source: Legacy table identity (for the audit entry)
            target: Live table identity
            mappings: Confirmed source field -> target column mapping
            user_id: Operator running the migration

        Returns:
            MigrationResult with per-run counters and error messages

        Raises:
            MappingError: The mapping targets columns the table does not have
            StoreUnavailableError: The store cannot be reached
        """
        source = getattr(source, "value", source)
        target = getattr(target, "value", target)
        schema = self.registry.require_target(target)
        self.mapper.check_mapping(mappings, target)
        self._warn_stray_fields(records, mappings)

        if not self.store.validate_connection():
            raise StoreUnavailableError(f"Failed to connect to the store for {target}")

        counters = _RunCounters()
        logger.info(f"Migrating {len(records)} {source} records into {target}")

        for record in records:
            counters.processed += 1
            try:
                status = self.migrate_record(record, schema, mappings)
            except RecordSkipped as e:
                counters.skip(str(e))
                logger.warning(f"Skipped record {record.id}: {e}")
                continue
            except Exception as e:
                counters.skip(f"Error processing record {record.id}: {e}")
                logger.error(f"Failed to process record {record.id}: {e}")
                continue

            if status == RecordStatus.INSERTED:
                counters.inserted += 1
            else:
                counters.updated += 1

        result = counters.freeze()
        logger.info(f"Migration {source} -> {target} finished ({result.outcome.value}): {result.summary()}")

        self._log_activity(result, source, target, user_id)
        return result

    def migrate_record(
        self,
        record: SourceRecord,
        schema: TargetSchema,
        mappings: Dict[str, str]
    ) -> RecordStatus:
        """
        Transform, validate and upsert a single record.

        Returns:
            RecordStatus.INSERTED or RecordStatus.UPDATED

        Raises:
            RecordSkipped: The record was not written
        """
        transformed = self.transformer.transform_record(
            record, mappings, schema.name, metadata_field=schema.metadata_field
        )
        payload = self.transformer.attach_metadata(transformed, schema.metadata_field)

        transformed.validation_errors = self.validator.validate_record(payload, schema)
        if not transformed.is_valid:
            details = json.dumps([e.to_dict() for e in transformed.validation_errors], default=str)
            raise RecordSkipped(f"Validation failed for record {record.id}: {details}")

        transformed.status = self._upsert(transformed, payload, schema)
        return transformed.status

    def _upsert(self, record: TransformedRecord, payload: Dict[str, Any], schema: TargetSchema) -> RecordStatus:
        """Update the row matching the unique key, or insert a new one."""
        unique_field = self.resolve_unique_field(payload, schema)
        if unique_field is None:
            raise RecordSkipped(
                f"Missing unique identifier ({' or '.join(schema.unique_keys)}) for record {record.id}"
            )

        try:
            existing = self.store.lookup(schema.name, unique_field, payload[unique_field])
        except StoreError as e:
            raise RecordSkipped(f"Error checking for existing record {record.id}: {e}") from e

        if existing:
            try:
                self.store.update(schema.name, existing["id"], payload)
            except StoreError as e:
                raise RecordSkipped(f"Error updating record {record.id}: {e}") from e
            return RecordStatus.UPDATED

        try:
            self.store.insert(schema.name, payload)
        except StoreError as e:
            raise RecordSkipped(f"Error inserting record {record.id}: {e}") from e
        return RecordStatus.INSERTED

    def resolve_unique_field(self, payload: Dict[str, Any], schema: TargetSchema) -> Optional[str]:
        """First unique key of the target that has a value in the payload."""
        for key in schema.unique_keys:
            value = payload.get(key)
            if value is not None and value != "":
                return key
        return None

    def _warn_stray_fields(self, records: Sequence[SourceRecord], mappings: Dict[str, str]) -> None:
        seen = set()
        for record in records:
            seen.update(record.fields)
        stray = [name for name in mappings if name not in seen]
        if stray:
            logger.warning(f"Mapping names fields absent from the dump, ignored: {', '.join(stray)}")

    def _log_activity(self, result: MigrationResult, source: str, target: str, user_id: Optional[str]) -> None:
        """Append the run summary to the activity log; failures here never fail the run."""
        details = {
            "source": source,
            "target": target,
            "recordsProcessed": result.records_processed,
            "recordsInserted": result.records_inserted,
            "recordsUpdated": result.records_updated,
            "recordsSkipped": result.records_skipped,
        }
        entry = {
            "user_id": user_id,
            "action": AUDIT_ACTION,
            "details": json.dumps(details),
            "description": f"Migrated {source} into {target}: {result.summary()}",
        }
        try:
            self.store.append_audit_entry(entry)
        except Exception as e:
            logger.warning(f"Failed to record migration activity: {e}")
