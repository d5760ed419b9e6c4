"""Tests for export file categorization and loading."""

from pathlib import Path

import pandas as pd
import pytest
from studiostats.metrics.exceptions import MissingInputError, StudioStatsError
from studiostats.metrics.files import categorize_files, load_rows, process_files


def _write_csv(path: Path, rows: list[dict]) -> Path:
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


class TestCategorizeFiles:
    """Test categorize_files()."""

    def test_roles_by_name(self):
        """Test that each export is recognised from its filename."""
        files = categorize_files(
            ["exports/New_Clients.csv", "exports/Bookings-Jan.csv", "exports/Payments.csv"]
        )

        assert files.new == Path("exports/New_Clients.csv")
        assert files.bookings == Path("exports/Bookings-Jan.csv")
        assert files.payments == Path("exports/Payments.csv")
        assert files.unknown == []

    def test_singular_payment(self):
        """Test that "payment" also identifies the payments export."""
        assert categorize_files(["payment.csv"]).payments == Path("payment.csv")

    def test_unknown_files_are_collected(self):
        """Test that unrecognised files are kept aside."""
        files = categorize_files(["notes.csv"])
        assert files.unknown == [Path("notes.csv")]

    def test_missing_new_file(self):
        """Test that the new-visitor export is required."""
        with pytest.raises(MissingInputError, match='"new"'):
            categorize_files(["bookings.csv"]).require()

    def test_missing_bookings_file(self):
        """Test that the bookings export is required."""
        with pytest.raises(MissingInputError) as exc_info:
            categorize_files(["new.csv", "payments.csv"]).require()

        assert exc_info.value.role == "Bookings"
        assert isinstance(exc_info.value, StudioStatsError)

    def test_payments_optional(self):
        """Test that a missing payments export is allowed."""
        files = categorize_files(["new.csv", "bookings.csv"]).require()
        assert files.payments is None


class TestLoadRows:
    """Test load_rows()."""

    def test_values_read_as_strings(self, tmp_path, booking_row):
        """Test that cells stay strings and blanks become empty strings."""
        path = _write_csv(tmp_path / "bookings.csv", [booking_row(**{"Sold by": ""})])

        rows = load_rows(path)

        assert rows[0]["Sale Value"] == "0"
        assert rows[0]["Sold by"] == ""
        assert rows[0]["Teacher"] == "Jane"


class TestProcessFiles:
    """Test process_files()."""

    def test_end_to_end(self, tmp_path, example_rows):
        """Test processing a set of CSV exports from disk."""
        new_rows, booking_rows, sale_rows = example_rows
        paths = [
            _write_csv(tmp_path / "new_clients.csv", new_rows),
            _write_csv(tmp_path / "bookings.csv", booking_rows),
            _write_csv(tmp_path / "payments.csv", sale_rows),
        ]

        result = process_files(paths)

        group = result.teacher_data[0]
        assert group.teacher_name == "Jane"
        assert group.retained_clients == 1
        assert group.total_revenue == 150.0

    def test_missing_required_export(self, tmp_path, example_rows):
        """Test that processing stops when the bookings export is absent."""
        new_rows, _, _ = example_rows
        path = _write_csv(tmp_path / "new_clients.csv", new_rows)

        with pytest.raises(MissingInputError):
            process_files([path])
