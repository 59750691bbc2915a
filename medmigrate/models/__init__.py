"""Data models for the migration application."""

from .schema import (
    RuleType,
    FieldRule,
    TargetSchema,
    KnownMapping,
    SchemaMapping,
)
from .migration import (
    MigrationConfig,
    MigrationSource,
    MigrationTarget,
    MigrationOutcome,
    MigrationResult,
    MigrationPreview,
)
from .record import (
    FieldValue,
    RecordStatus,
    SourceRecord,
    TransformedRecord,
    ValidationError,
)

__all__ = [
    "RuleType",
    "FieldRule",
    "TargetSchema",
    "KnownMapping",
    "SchemaMapping",
    "MigrationConfig",
    "MigrationSource",
    "MigrationTarget",
    "MigrationOutcome",
    "MigrationResult",
    "MigrationPreview",
    "FieldValue",
    "RecordStatus",
    "SourceRecord",
    "TransformedRecord",
    "ValidationError",
]
