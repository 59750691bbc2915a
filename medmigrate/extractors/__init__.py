"""Data extractors for legacy dumps."""

from .base import BaseExtractor, ExtractionResult, NoDataFoundError
from .sql_extractor import SqlDumpExtractor, coerce_literal, format_literal

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "NoDataFoundError",
    "SqlDumpExtractor",
    "coerce_literal",
    "format_literal",
]
