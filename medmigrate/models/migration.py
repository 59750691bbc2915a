"""Migration execution models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum
import os


class MigrationSource(str, Enum):
    """Legacy tables a dump can come from."""
    PATIENT = "patient_tbl"
    MEDICAL_TEST = "medical_test_tbl"
    HISTORY = "history_tbl"
    RECORD_LOG = "record_log_tbl"


class MigrationTarget(str, Enum):
    """Live tables a dump can be migrated into."""
    PATIENTS = "patients"
    LAB_RESULTS = "lab_results"
    ACTIVITY_LOGS = "activity_logs"


class MigrationOutcome(str, Enum):
    """Overall outcome of a migration run."""
    SUCCESS = "success"  # no errors
    PARTIAL = "partial"  # errors, but some rows were written
    FAILURE = "failure"  # errors and nothing written


@dataclass(frozen=True)
class MigrationResult:
    """Aggregate result of one migration run."""
    records_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    errors: Tuple[str, ...] = ()

    @property
    def records_written(self) -> int:
        return self.records_inserted + self.records_updated

    @property
    def outcome(self) -> MigrationOutcome:
        if not self.errors:
            return MigrationOutcome.SUCCESS
        if self.records_written > 0:
            return MigrationOutcome.PARTIAL
        return MigrationOutcome.FAILURE

    @property
    def success(self) -> bool:
        """True unless the run failed outright; partial runs count as usable."""
        return self.outcome != MigrationOutcome.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "success": self.success,
            "outcome": self.outcome.value,
            "records_processed": self.records_processed,
            "records_inserted": self.records_inserted,
            "records_updated": self.records_updated,
            "records_skipped": self.records_skipped,
            "errors": list(self.errors),
        }

    def summary(self) -> str:
        return (
            f"{self.records_processed} processed, {self.records_inserted} inserted, "
            f"{self.records_updated} updated, {self.records_skipped} skipped"
        )


@dataclass
class MigrationPreview:
    """What a dump would look like once migrated, before anything is written."""
    source: MigrationSource
    target: MigrationTarget
    fields: List[str]
    data: List[Dict[str, Any]]
    mappings: Dict[str, str]
    unmapped_fields: List[str]
    suggestions: Dict[str, List[str]] = field(default_factory=dict)
    total_records: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source.value,
            "target": self.target.value,
            "fields": self.fields,
            "data": self.data,
            "mappings": self.mappings,
            "unmapped_fields": self.unmapped_fields,
            "suggestions": self.suggestions,
            "total_records": self.total_records,
        }


@dataclass
class MigrationConfig:
    """Configuration for migrations."""
    name: str = "legacy-sql-migration"

    # Target store
    store_url: Optional[str] = None
    store_api_key: Optional[str] = None
    audit_table: str = "user_activities"
    rate_limit: float = 10.0  # Requests per second
    request_timeout: float = 30.0

    # Catalog
    catalog_dir: Optional[str] = None  # Extra targets/mappings on top of the bundled ones

    # Execution options
    dry_run: bool = False
    preview_limit: int = 10
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "store_url": self.store_url,
            "audit_table": self.audit_table,
            "rate_limit": self.rate_limit,
            "request_timeout": self.request_timeout,
            "catalog_dir": self.catalog_dir,
            "dry_run": self.dry_run,
            "preview_limit": self.preview_limit,
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", "legacy-sql-migration"),
            store_url=data.get("store_url"),
            store_api_key=data.get("store_api_key"),
            audit_table=data.get("audit_table", "user_activities"),
            rate_limit=data.get("rate_limit", 10.0),
            request_timeout=data.get("request_timeout", 30.0),
            catalog_dir=data.get("catalog_dir"),
            dry_run=data.get("dry_run", False),
            preview_limit=data.get("preview_limit", 10),
            user_id=data.get("user_id"),
        )

    @classmethod
    def from_env(cls, base: Optional["MigrationConfig"] = None) -> "MigrationConfig":
        """Overlay MEDMIGRATE_* environment variables on a config."""
        config = base or cls()
        config.store_url = os.environ.get("MEDMIGRATE_STORE_URL", config.store_url)
        config.store_api_key = os.environ.get("MEDMIGRATE_STORE_KEY", config.store_api_key)
        config.catalog_dir = os.environ.get("MEDMIGRATE_CATALOG_DIR", config.catalog_dir)
        config.user_id = os.environ.get("MEDMIGRATE_USER_ID", config.user_id)
        return config
