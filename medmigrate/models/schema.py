"""Schema models for target tables and known field mappings."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
import json


class RuleType(str, Enum):
    """Value types a validation rule can check."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    EMAIL = "email"


@dataclass
class FieldRule:
    """Validation rule for one column of a target table."""
    name: str
    type: RuleType = RuleType.STRING
    required: bool = False
    max_length: Optional[int] = None
    enum_values: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "type": self.type.value,
            "required": self.required,
        }
        if self.max_length:
            result["max_length"] = self.max_length
        if self.enum_values:
            result["enum"] = self.enum_values
        return result

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "FieldRule":
        """Create from dictionary representation."""
        rule_type = data.get("type", "string")
        try:
            rule_type = RuleType(rule_type)
        except ValueError:
            raise ValueError(f"Unknown rule type for {name}: {rule_type}")

        return cls(
            name=name,
            type=rule_type,
            required=data.get("required", False),
            max_length=data.get("max_length"),
            enum_values=data.get("enum"),
        )


@dataclass
class TargetSchema:
    """
    Schema of a live table that legacy records can be migrated into.

    `fields` is the whitelist of columns a mapping may point at.
    `unique_keys` is tried in order to find the column used to match an
    existing row for upserts.
    """
    name: str
    fields: List[str] = field(default_factory=list)
    unique_keys: List[str] = field(default_factory=lambda: ["id"])
    metadata_field: str = "open_metadata"
    rules: Dict[str, FieldRule] = field(default_factory=dict)
    description: str = ""

    @property
    def mappable_fields(self) -> List[str]:
        """Whitelisted columns excluding the catch-all metadata column."""
        return [f for f in self.fields if f != self.metadata_field]

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "description": self.description,
            "fields": self.fields,
            "unique_keys": self.unique_keys,
            "metadata_field": self.metadata_field,
            "rules": {k: v.to_dict() for k, v in self.rules.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetSchema":
        """Create from dictionary representation."""
        rules = {
            name: FieldRule.from_dict(name, rule)
            for name, rule in data.get("rules", {}).items()
        }
        return cls(
            name=data["name"],
            fields=list(data.get("fields", [])),
            unique_keys=list(data.get("unique_keys", ["id"])),
            metadata_field=data.get("metadata_field", "open_metadata"),
            rules=rules,
            description=data.get("description", ""),
        )

    @classmethod
    def from_json_file(cls, path: str) -> "TargetSchema":
        """Load from a JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


@dataclass
class KnownMapping:
    """Known field correspondences between one legacy table and one live table."""
    source: str
    target: str
    fields: Dict[str, str] = field(default_factory=dict)
    description: str = ""

    @property
    def key(self) -> str:
        return f"{self.source}-{self.target}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "target": self.target,
            "description": self.description,
            "fields": self.fields,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnownMapping":
        """Create from dictionary representation."""
        return cls(
            source=data["source"],
            target=data["target"],
            fields=dict(data.get("fields", {})),
            description=data.get("description", ""),
        )

    @classmethod
    def from_json_file(cls, path: str) -> "KnownMapping":
        """Load from a JSON file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


@dataclass
class SchemaMapping:
    """Default mapping for a set of extracted fields."""
    mappings: Dict[str, str] = field(default_factory=dict)
    unmapped_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mappings": self.mappings,
            "unmapped_fields": self.unmapped_fields,
        }
