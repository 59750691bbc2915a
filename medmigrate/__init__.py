"""
Legacy Hospital Data Migration

Moves records out of SQL dumps of the legacy hospital database and into the
live patient-management schema.

Supports:
- Parsing INSERT-statement dumps (with a CSV-like fallback)
- Known field mappings per legacy/live table pair, with fuzzy suggestions
  for the fields nobody mapped yet
- Upserting records one at a time, keeping unmapped columns in open_metadata
- Previewing a migration before anything is written
"""

__version__ = "0.1.0"
