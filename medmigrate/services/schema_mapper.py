"""Maps legacy dump fields onto live table columns."""

import logging
from typing import Dict, Iterable, List, Optional

from ..models.schema import SchemaMapping
from .schema_registry import SchemaRegistry

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5
MAX_EDIT_DISTANCE = 3


class MappingError(ValueError):
    """Raised when a mapping points at columns the target does not have."""


def levenshtein_distance(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance, case-sensitive."""
    previous = list(range(len(b) + 1))

    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(
                    previous[j - 1] + 1,  # substitution
                    current[j - 1] + 1,   # insertion
                    previous[j] + 1,      # deletion
                ))
        previous = current

    return previous[-1]


class SchemaMapper:
    """
    Produces the default field mapping for an extracted dump.

    Known correspondences come from the registry catalog; fields it does not
    know about are reported as unmapped, and can be given advisory
    suggestions by string similarity. Suggestions are never applied.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None):
        self.registry = registry or SchemaRegistry()

    def map_schema_to_database(
        self,
        source_fields: Iterable[str],
        source: str,
        target: str
    ) -> SchemaMapping:
        """
        Map each extracted field through the known mapping for the pair.

        Args:
            source_fields: Field names present in the extracted records
            source: Legacy table identity
            target: Live table identity

        Returns:
            SchemaMapping where every field is either mapped or unmapped
        """
        source = getattr(source, "value", source)
        target = getattr(target, "value", target)
        known = self.registry.get_known_mapping(source, target)
        if not known:
            logger.info(f"No known mapping for {source}-{target}, all fields unmapped")

        result = SchemaMapping()
        for field_name in source_fields:
            if field_name in result.mappings or field_name in result.unmapped_fields:
                continue
            if field_name in known:
                result.mappings[field_name] = known[field_name]
            else:
                result.unmapped_fields.append(field_name)

        return result

    def suggest_mappings(self, unmapped_fields: Iterable[str], target: str) -> Dict[str, List[str]]:
        """Suggest up to five similar target columns for each unmapped field."""
        target = getattr(target, "value", target)
        schema = self.registry.get_target(target)
        candidates = schema.mappable_fields if schema else []

        return {
            field_name: self.find_similar_fields(field_name, candidates)
            for field_name in unmapped_fields
        }

    def find_similar_fields(self, field_name: str, candidates: List[str]) -> List[str]:
        """Candidates containing / contained in the field, or within edit distance 3."""
        scored = []
        for position, candidate in enumerate(candidates):
            distance = levenshtein_distance(field_name, candidate)
            if field_name in candidate or candidate in field_name or distance <= MAX_EDIT_DISTANCE:
                scored.append((distance, position, candidate))

        scored.sort()
        return [candidate for _, _, candidate in scored[:MAX_SUGGESTIONS]]

    def check_mapping(self, mappings: Dict[str, str], target: str) -> None:
        """Raise MappingError if the mapping targets columns outside the whitelist."""
        target = getattr(target, "value", target)
        errors = self.registry.validate_mapping(mappings, target)
        if errors:
            raise MappingError("; ".join(errors))
