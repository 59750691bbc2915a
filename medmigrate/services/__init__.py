"""Service layer for the migration application."""

from .schema_registry import SchemaRegistry
from .schema_mapper import SchemaMapper, MappingError, levenshtein_distance
from .transformer import TransformEngine
from .validator import RecordValidator
from .executor import MigrationExecutor

__all__ = [
    "SchemaRegistry",
    "SchemaMapper",
    "MappingError",
    "levenshtein_distance",
    "TransformEngine",
    "RecordValidator",
    "MigrationExecutor",
]
