"""Migration orchestrator - coordinates extraction, mapping and execution."""

import logging
from typing import Dict, Optional, Union

from .models.migration import (
    MigrationConfig,
    MigrationPreview,
    MigrationResult,
    MigrationSource,
    MigrationTarget,
)
from .services.schema_registry import SchemaRegistry
from .services.schema_mapper import SchemaMapper
from .services.executor import MigrationExecutor
from .extractors.base import ExtractionResult, NoDataFoundError
from .extractors.sql_extractor import SqlDumpExtractor
from .loaders.base import RecordStore
from .loaders.memory_store import InMemoryStore
from .loaders.rest_store import RestRecordStore

logger = logging.getLogger(__name__)


def create_store(config: MigrationConfig) -> RecordStore:
    """Create the record store described by a config."""
    if not config.store_url:
        raise ValueError("No store URL configured (set store_url or MEDMIGRATE_STORE_URL)")

    return RestRecordStore(
        base_url=config.store_url,
        api_key=config.store_api_key,
        audit_table=config.audit_table,
        dry_run=config.dry_run,
        rate_limit=config.rate_limit,
        timeout=config.request_timeout,
    )


class MigrationOrchestrator:
    """
    Orchestrates a legacy SQL migration session.

    Handles:
    - Extracting records from a dump
    - Building a preview with default mappings and suggestions
    - Executing the confirmed mapping against the live store
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        registry: Optional[SchemaRegistry] = None,
        config: Optional[MigrationConfig] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Live record store; defaults to an in-memory store
            registry: Schema registry with target schemas and known mappings
            config: Migration configuration
        """
        self.config = config or MigrationConfig()
        self.registry = registry or SchemaRegistry(catalog_dir=self.config.catalog_dir)
        if store is None:
            logger.warning("No record store given, migrations will only write to an in-memory store")
            store = InMemoryStore(dry_run=self.config.dry_run)
        self.store = store
        self.mapper = SchemaMapper(self.registry)
        self.executor = MigrationExecutor(self.store, self.registry)

    def extract_data(self, content: str, source: Union[str, MigrationSource]) -> ExtractionResult:
        """
        Extract every record from a dump.

        Raises:
            NoDataFoundError: The dump holds no rows and is not a structure-only dump
        """
        source = MigrationSource(source)
        result = SqlDumpExtractor(source).extract(content)

        if not result.records and not result.ddl_only:
            raise NoDataFoundError(f"No data found in the SQL file for {source.value}")

        return result

    def generate_preview(
        self,
        content: str,
        source: Union[str, MigrationSource],
        target: Union[str, MigrationTarget]
    ) -> MigrationPreview:
        """Extract a dump and propose a mapping without writing anything."""
        source = MigrationSource(source)
        target = MigrationTarget(target)

        extraction = self.extract_data(content, source)
        fields = extraction.fields
        schema_mapping = self.mapper.map_schema_to_database(fields, source, target)
        suggestions = self.mapper.suggest_mappings(schema_mapping.unmapped_fields, target)

        return MigrationPreview(
            source=source,
            target=target,
            fields=fields,
            data=extraction.data[:self.config.preview_limit],
            mappings=schema_mapping.mappings,
            unmapped_fields=schema_mapping.unmapped_fields,
            suggestions=suggestions,
            total_records=extraction.total_extracted,
        )

    def migrate_data(
        self,
        content: str,
        source: Union[str, MigrationSource],
        target: Union[str, MigrationTarget],
        mappings: Dict[str, str],
        user_id: Optional[str] = None
    ) -> MigrationResult:
        """
        Extract a dump and upsert every record with the confirmed mapping.

        A dump with no data yields a failed result rather than an exception;
        mapping and connection problems still raise.
        """
        source = MigrationSource(source)
        target = MigrationTarget(target)
        user_id = user_id or self.config.user_id

        try:
            extraction = self.extract_data(content, source)
        except NoDataFoundError as e:
            logger.error(f"Migration failed: {e}")
            return MigrationResult(errors=(f"Migration failed: {e}",))

        return self.executor.execute(
            extraction.records,
            source,
            target,
            mappings,
            user_id=user_id,
        )
