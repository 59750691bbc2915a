"""Schema registry for target tables and known legacy mappings."""

import json
import logging
from typing import Dict, List, Optional
from pathlib import Path

from ..models.schema import (
    TargetSchema,
    KnownMapping,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent.parent / "catalog"


class SchemaRegistry:
    """
    Registry for target table schemas and known field mappings.

    Both are declarative JSON: a catalog directory holds `targets/*.json`
    (one file per live table) and `mappings/*.json` (one file per
    legacy/live table pair). New pairs are added by dropping in a file.
    """

    def __init__(self, catalog_dir: Optional[str] = None, load_defaults: bool = True):
        """
        Initialize the schema registry.

        Args:
            catalog_dir: Extra catalog directory loaded after the bundled one
            load_defaults: Whether to load the bundled catalog
        """
        self.targets: Dict[str, TargetSchema] = {}
        self.mappings: Dict[str, KnownMapping] = {}

        if load_defaults:
            self.load_catalog(str(DEFAULT_CATALOG_DIR))
        if catalog_dir:
            self.load_catalog(catalog_dir)

    def load_catalog(self, directory: str) -> int:
        """Load targets and mappings from a catalog directory."""
        path = Path(directory)
        if not path.exists():
            logger.warning(f"Catalog directory does not exist: {directory}")
            return 0

        loaded = self.load_targets_from_directory(str(path / "targets"))
        loaded += self.load_mappings_from_directory(str(path / "mappings"))
        return loaded

    def load_targets_from_directory(self, directory: str) -> int:
        """
        Load all target schema files from a directory.

        Returns:
            Number of schemas loaded
        """
        loaded = 0
        path = Path(directory)

        if not path.exists():
            return 0

        for file_path in sorted(path.glob("*.json")):
            try:
                schema = TargetSchema.from_json_file(str(file_path))
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Failed to load target schema from {file_path}: {e}")
                continue
            self.register_target(schema)
            loaded += 1
            logger.debug(f"Loaded target schema: {schema.name} from {file_path}")

        return loaded

    def load_mappings_from_directory(self, directory: str) -> int:
        """
        Load all known-mapping files from a directory.

        Returns:
            Number of mappings loaded
        """
        loaded = 0
        path = Path(directory)

        if not path.exists():
            return 0

        for file_path in sorted(path.glob("*.json")):
            try:
                mapping = KnownMapping.from_json_file(str(file_path))
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Failed to load mapping from {file_path}: {e}")
                continue
            self.register_mapping(mapping)
            loaded += 1
            logger.debug(f"Loaded mapping: {mapping.key} from {file_path}")

        return loaded

    def register_target(self, schema: TargetSchema) -> None:
        """Register a target schema."""
        self.targets[schema.name.lower()] = schema

    def register_mapping(self, mapping: KnownMapping) -> None:
        """Register a known mapping."""
        self.mappings[mapping.key.lower()] = mapping

    def get_target(self, target: str) -> Optional[TargetSchema]:
        """Get a target schema by table name."""
        return self.targets.get(str(target).lower())

    def require_target(self, target: str) -> TargetSchema:
        schema = self.get_target(target)
        if schema is None:
            raise ValueError(f"Unknown migration target: {target}")
        return schema

    def get_known_mapping(self, source: str, target: str) -> Dict[str, str]:
        """Known field correspondences for a pair; empty when the pair is unknown."""
        mapping = self.mappings.get(f"{source}-{target}".lower())
        return dict(mapping.fields) if mapping else {}

    def list_targets(self) -> List[str]:
        """List all registered target names."""
        return list(self.targets.keys())

    def list_mappings(self) -> List[str]:
        """List all registered `source-target` keys."""
        return list(self.mappings.keys())

    def export_target(self, target: str, file_path: str) -> bool:
        """Export a target schema to a JSON file."""
        schema = self.get_target(target)
        if not schema:
            return False

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(schema.to_dict(), f, indent=2)
        return True

    def validate_mapping(self, mappings: Dict[str, str], target: str) -> List[str]:
        """
        Validate a (possibly hand-edited) mapping against a target's whitelist.

        Returns:
            List of validation error messages
        """
        schema = self.get_target(target)
        if not schema:
            return [f"Target schema not found: {target}"]

        errors = []
        for source_field, target_field in mappings.items():
            if not target_field or target_field == schema.metadata_field:
                continue
            if not schema.has_field(target_field):
                errors.append(f"Target field not found in {schema.name}: {target_field} (from {source_field})")

        return errors
