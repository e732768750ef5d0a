"""
Unit Tests for the dedupe_sheets maintenance script
"""

import pytest
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))))

import dedupe_sheets
from planning_shared.sheet_config import SheetKind


@pytest.fixture
def seeded_duplicates(storage, factory):
    for _ in range(2):
        storage.seed(SheetKind.MONTHLY, factory.monthly_row(month=6))
    storage.seed(SheetKind.EVENTS, factory.events_row(month=6))
    return storage


@pytest.mark.unit
class TestDedupeSheets:
    """Tests for the CLI entry point."""

    def test_find_duplicates(self, factory):
        rows = [factory.monthly_row(month=1, id=1), factory.monthly_row(month=1, id=2)]
        assert dedupe_sheets.find_duplicates(SheetKind.MONTHLY, rows) == [((1,), 2)]

    def test_dry_run_deletes_nothing(self, collaborators, seeded_duplicates):
        with patch.object(dedupe_sheets, "build_rest_collaborators", return_value=collaborators):
            assert dedupe_sheets.main(["--year", "2025", "--dry-run"]) == 0
        assert len(seeded_duplicates.records[SheetKind.MONTHLY]) == 2
        assert collaborators[SheetKind.MONTHLY].calls_of("delete") == []

    def test_selected_sheet(self, collaborators, seeded_duplicates):
        with patch.object(dedupe_sheets, "build_rest_collaborators", return_value=collaborators):
            assert dedupe_sheets.main(["--year", "2025", "--sheet", "monthly"]) == 0
        assert len(seeded_duplicates.records[SheetKind.MONTHLY]) == 1
        assert collaborators[SheetKind.EVENTS].calls_of("delete") == []

    def test_failed_delete_exit_code(self, collaborators, seeded_duplicates):
        duplicate_id = max(seeded_duplicates.records[SheetKind.MONTHLY])
        collaborators[SheetKind.MONTHLY].fail_delete_ids.add(duplicate_id)
        with patch.object(dedupe_sheets, "build_rest_collaborators", return_value=collaborators):
            assert dedupe_sheets.main(["--year", "2025"]) == 1

    def test_year_required(self):
        with pytest.raises(SystemExit):
            dedupe_sheets.parse_args([])
