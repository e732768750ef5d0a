"""
Remove duplicate planning records.

Loads every sheet of a year from the planning service and deletes all but the
first record per natural key (see fn_planning_sync.dedupe).

Usage:
    python dedupe_sheets.py --year 2025
    python dedupe_sheets.py --year 2025 --sheet monthly --dry-run

Environment (or .env):
    PLANNING_API_BASE_URL, PLANNING_API_TOKEN, PLANNING_API_USER
"""

import argparse
import logging
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add shared module to path
sys.path.insert(0, str(Path(__file__).parent / "functions"))

from planning_shared import SheetKind, SHEET_LABELS, Column, build_rest_collaborators, is_blank  # noqa: E402
from fn_planning_sync import PlanningSyncEngine, NATURAL_KEYS  # noqa: E402

# Load environment variables
load_dotenv()

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Delete duplicate planning records by natural key")
    parser.add_argument("--year", type=int, required=True, help="Planning year to reconcile")
    parser.add_argument(
        "--sheet",
        choices=[sheet.value for sheet in SheetKind],
        action="append",
        help="Sheet to reconcile (repeatable, default: all four)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only report the duplicates")
    return parser.parse_args(argv)


def find_duplicates(sheet: SheetKind, rows):
    """Saved rows that dedupe would delete, in order."""
    key_fn = NATURAL_KEYS[sheet]
    seen = set()
    duplicates = []
    for row in rows:
        key = key_fn(row)
        if key is None:
            continue
        if key in seen:
            duplicates.append((key, row.get(Column.COMMON.ID)))
        else:
            seen.add(key)
    return duplicates


def main(argv=None) -> int:
    args = parse_args(argv)
    sheets = [SheetKind(value) for value in args.sheet] if args.sheet else list(SheetKind)

    engine = PlanningSyncEngine(build_rest_collaborators(), year=args.year)
    engine.load()

    failed = 0
    for sheet in sheets:
        rows = [row for row in engine.workbook.rows(sheet) if not is_blank(row.get(Column.COMMON.ID))]
        if args.dry_run:
            duplicates = find_duplicates(sheet, rows)
            logger.info(f"{SHEET_LABELS[sheet]}: {len(duplicates)} duplicates")
            for key, record_id in duplicates:
                logger.info(f"  would delete {record_id} {key}")
            continue

        result = engine.dedupe(sheet, rows, reload=False)
        failed += len(result.failed_ids)
        logger.info(
            f"{SHEET_LABELS[sheet]}: deleted {len(result.deleted_ids)}, "
            f"failed {len(result.failed_ids)}"
        )

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
