"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from ..models.record import FieldValue, SourceRecord
from ..models.migration import MigrationSource

logger = logging.getLogger(__name__)


class NoDataFoundError(ValueError):
    """Raised when a dump holds nothing that can be previewed or migrated."""


@dataclass
class ExtractionResult:
    """Result of an extraction operation."""
    source: MigrationSource
    records: List[SourceRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    ddl_only: bool = False  # Dump held table structure and no rows
    statements_parsed: int = 0
    statements_skipped: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_extracted(self) -> int:
        return len(self.records)

    @property
    def fields(self) -> List[str]:
        """Field names across all records, in the order they were first seen."""
        seen: Dict[str, None] = {}
        for record in self.records:
            for name in record.data:
                seen.setdefault(name, None)
        return list(seen)

    @property
    def data(self) -> List[Dict[str, FieldValue]]:
        return [record.data for record in self.records]

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


class BaseExtractor(ABC):
    """
    Base class for all data extractors.

    Extractors turn raw dump text into SourceRecord objects. They know
    nothing about the target schema.
    """

    def __init__(self, source: MigrationSource):
        """
        Initialize the extractor.

        Args:
            source: Legacy table the dump was taken from
        """
        self.source = source
        self._warnings: List[str] = []
        self._record_count = 0

    @abstractmethod
    def extract(self, content: str) -> ExtractionResult:
        """
        Extract all records from dump text.

        Args:
            content: Raw dump text

        Returns:
            ExtractionResult containing all extracted records
        """
        pass

    def create_record(
        self,
        data: Dict[str, FieldValue],
        table_name: str = "",
        metadata: Optional[Dict[str, Any]] = None
    ) -> SourceRecord:
        """Create a SourceRecord, numbering records in extraction order."""
        self._record_count += 1
        return SourceRecord(
            id=str(self._record_count),
            source=self.source.value,
            table_name=table_name,
            data=data,
            metadata=metadata or {},
        )

    def add_warning(self, message: str) -> None:
        """Add a warning to the extraction."""
        self._warnings.append(message)
        logger.warning(f"Extraction warning: {message}")

    def get_extraction_result(self, records: List[SourceRecord]) -> ExtractionResult:
        """Create an ExtractionResult from extracted records."""
        return ExtractionResult(
            source=self.source,
            records=records,
            warnings=self._warnings.copy(),
        )

    def reset(self) -> None:
        """Reset the extractor state."""
        self._warnings = []
        self._record_count = 0
