"""Record models for migration data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from enum import Enum
from datetime import datetime


# Value types the SQL extractor can produce for a single field.
FieldValue = Union[str, int, float, bool, None]


class RecordStatus(str, Enum):
    """Status of a record during migration."""
    TRANSFORMED = "transformed"
    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass
class ValidationError:
    """A validation error on a record."""
    field: str
    message: str
    error_type: str = "validation"
    value: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "field": self.field,
            "message": self.message,
            "error_type": self.error_type,
            "value": self.value,
        }


@dataclass
class SourceRecord:
    """A record extracted from a legacy SQL dump."""
    id: str
    source: str
    data: Dict[str, FieldValue]
    table_name: str = ""
    extracted_at: datetime = field(default_factory=datetime.utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def fields(self) -> List[str]:
        return list(self.data.keys())


@dataclass
class TransformedRecord:
    """A record renamed for the target table, with leftovers kept aside."""
    id: str
    target: str
    data: Dict[str, Any]
    open_metadata: Dict[str, Any] = field(default_factory=dict)
    source_record: Optional[SourceRecord] = None
    status: RecordStatus = RecordStatus.TRANSFORMED
    validation_errors: List[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if record passed validation."""
        return not self.validation_errors
