"""Command line interface for legacy SQL migrations."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from .models.migration import (
    MigrationConfig,
    MigrationPreview,
    MigrationSource,
    MigrationTarget,
)
from .extractors.base import NoDataFoundError
from .loaders.base import StoreError
from .loaders.memory_store import InMemoryStore
from .services.schema_registry import SchemaRegistry
from .services.schema_mapper import MappingError
from .orchestrator import MigrationOrchestrator, create_store

logger = logging.getLogger(__name__)

SOURCES = [s.value for s in MigrationSource]
TARGETS = [t.value for t in MigrationTarget]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medmigrate",
        description="Migrate legacy hospital SQL dumps into the live schema",
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    preview = subparsers.add_parser("preview", help="Show extracted records and the default mapping")
    preview.add_argument("dump", help="SQL dump file")
    preview.add_argument("--source", required=True, choices=SOURCES)
    preview.add_argument("--target", required=True, choices=TARGETS)
    preview.add_argument("--json", action="store_true", help="Print the preview as JSON")
    preview.add_argument("--save-mapping", help="Write the default mapping to this file for review")

    run = subparsers.add_parser("run", help="Migrate a dump into the live store")
    run.add_argument("dump", help="SQL dump file")
    run.add_argument("--source", required=True, choices=SOURCES)
    run.add_argument("--target", required=True, choices=TARGETS)
    run.add_argument("--mapping", help="Reviewed mapping JSON; defaults to the known mapping")
    run.add_argument("--store", choices=["rest", "memory"], default="rest")
    run.add_argument("--dry-run", action="store_true", help="Look rows up but do not write")
    run.add_argument("--user-id", help="Operator recorded in the activity log")

    subparsers.add_parser("targets", help="List target tables and known mappings")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    config = load_config(args.config)

    if args.command == "preview":
        return run_preview(args, config)
    elif args.command == "run":
        return run_migration(args, config)
    elif args.command == "targets":
        return list_targets(config)
    else:
        parser.print_help()
        return 1


def load_config(path: Optional[str]) -> MigrationConfig:
    """Config file (if any) overlaid with MEDMIGRATE_* environment variables."""
    config = MigrationConfig()
    if path:
        with open(path, encoding="utf-8") as f:
            config = MigrationConfig.from_dict(json.load(f))
    return MigrationConfig.from_env(config)


def read_dump(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def run_preview(args, config: MigrationConfig) -> int:
    """Preview a dump."""
    orchestrator = MigrationOrchestrator(store=InMemoryStore(), config=config)

    try:
        preview = orchestrator.generate_preview(read_dump(args.dump), args.source, args.target)
    except NoDataFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.save_mapping:
        with open(args.save_mapping, "w", encoding="utf-8") as f:
            json.dump(preview.mappings, f, indent=2)
        print(f"Default mapping saved to {args.save_mapping}")

    if args.json:
        print(json.dumps(preview.to_dict(), indent=2, default=str))
    else:
        print_preview(preview)
    return 0


def print_preview(preview: MigrationPreview) -> None:
    print("\n" + "=" * 60)
    print(f"  {preview.source.value} -> {preview.target.value}: {preview.total_records} records")
    print("=" * 60)

    print(f"\nMapped fields ({len(preview.mappings)}):")
    for source_field, target_field in preview.mappings.items():
        print(f"  {source_field} -> {target_field}")

    print(f"\nUnmapped fields ({len(preview.unmapped_fields)}), stored in open_metadata:")
    for field_name in preview.unmapped_fields:
        suggestions = preview.suggestions.get(field_name) or []
        hint = f"  (suggested: {', '.join(suggestions)})" if suggestions else ""
        print(f"  {field_name}{hint}")

    print(f"\nFirst {len(preview.data)} records:")
    for row in preview.data:
        print(f"  {json.dumps(row, default=str)}")


def run_migration(args, config: MigrationConfig) -> int:
    """Run a migration."""
    if args.dry_run:
        config.dry_run = True

    if args.store == "memory":
        store = InMemoryStore(dry_run=config.dry_run)
    else:
        try:
            store = create_store(config)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

    orchestrator = MigrationOrchestrator(store=store, config=config)
    content = read_dump(args.dump)

    try:
        mappings = load_mapping(args.mapping) if args.mapping else None
        if mappings is None:
            mappings = orchestrator.generate_preview(content, args.source, args.target).mappings
        result = orchestrator.migrate_data(content, args.source, args.target, mappings, user_id=args.user_id)
    except (NoDataFoundError, MappingError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n" + "=" * 60)
    print("MIGRATION COMPLETE")
    print("=" * 60)
    print(f"Outcome: {result.outcome.value}")
    print(f"Records Processed: {result.records_processed}")
    print(f"Inserted: {result.records_inserted}")
    print(f"Updated: {result.records_updated}")
    print(f"Skipped: {result.records_skipped}")
    for error in result.errors:
        print(f"  - {error}")

    return 0 if result.success else 1


def load_mapping(path: str) -> Dict[str, str]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise MappingError(f"Mapping file must hold a JSON object: {path}")
    return {str(k): str(v) if v is not None else "" for k, v in data.items()}


def list_targets(config: MigrationConfig) -> int:
    """List targets and known mappings."""
    registry = SchemaRegistry(catalog_dir=config.catalog_dir)

    print("\n=== Targets ===")
    for name in registry.list_targets():
        schema = registry.get_target(name)
        print(f"\n{schema.name} (unique: {', '.join(schema.unique_keys)})")
        print(f"   Fields: {', '.join(schema.fields)}")

    print("\n=== Known mappings ===")
    for key in registry.list_mappings():
        print(f"  {key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
