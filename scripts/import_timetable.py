"""Import a timetable workbook from the command line.

Run:
  PYTHONPATH=backend python scripts/import_timetable.py path/to/timetable.xlsx [--dry-run]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from gridsched.core.config import get_settings
from gridsched.core.exceptions import AppError
from gridsched.db.bootstrap import ensure_runtime_schema_compatibility
from gridsched.db.row_store import RowStore
from gridsched.db.session import SessionLocal
from gridsched.services.importer import run_import

logger = logging.getLogger("gridsched.import")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a section-wise timetable workbook.")
    parser.add_argument("workbook", type=Path, help="Path to the .xlsx file")
    parser.add_argument("--dry-run", action="store_true", help="Parse and report without writing")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    payload = args.workbook.read_bytes()
    if not payload:
        logger.error("%s is empty", args.workbook)
        return 1

    if args.dry_run:
        outcome = run_import(None, payload, dry_run=True, settings=settings)
        print(json.dumps(outcome.model_dump(by_alias=True), indent=2))
        return 0

    ensure_runtime_schema_compatibility()
    db = SessionLocal()
    try:
        outcome = run_import(RowStore(db), payload, settings=settings)
    except AppError as exc:
        logger.error("Import failed: %s", exc.message)
        return 1
    finally:
        db.close()

    print(json.dumps(outcome.model_dump(by_alias=True), indent=2))
    return 0 if outcome.results.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
