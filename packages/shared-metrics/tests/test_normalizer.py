"""Tests for record normalization (dates, amounts, labels, field variants)."""

import math

import pandas as pd
from studiostats.metrics.config import FieldMap, default_sale_fields
from studiostats.metrics.normalizer import (
    RecordNormalizer,
    clean_label,
    format_date,
    parse_amount,
    period_of,
    period_sort_key,
    week_start,
)


class TestFormatDate:
    """Test format_date."""

    def test_iso_date_unchanged(self):
        """Test that an ISO date is returned as-is."""
        assert format_date("2024-01-05") == "2024-01-05"

    def test_time_component_discarded(self):
        """Test that a trailing comma-separated time is dropped."""
        assert format_date("2025-03-01, 10:15 AM") == "2025-03-01"

    def test_us_format_parsed(self):
        """Test that month/day/year input is converted to ISO."""
        assert format_date("03/15/2024") == "2024-03-15"

    def test_unparseable_passes_through(self):
        """Test that a value that is not a date is returned unchanged."""
        assert format_date("not a date") == "not a date"

    def test_relative_keywords_pass_through(self):
        """Test that words pandas reads relative to today are not dates."""
        assert format_date("now") == "now"
        assert format_date("today") == "today"
        assert period_of("now") == "Unknown"

    def test_empty_and_missing(self):
        """Test that empty and missing values yield an empty string."""
        assert format_date("") == ""
        assert format_date(None) == ""
        assert format_date(float("nan")) == ""


class TestParseAmount:
    """Test parse_amount."""

    def test_currency_string(self):
        """Test currency symbols and thousands separators are stripped."""
        assert parse_amount("$1,250.50") == 1250.50

    def test_negative_value(self):
        """Test that a minus sign is kept."""
        assert parse_amount("-20.00") == -20.0

    def test_numeric_passthrough(self):
        """Test that numbers are returned as floats."""
        assert parse_amount(150) == 150.0
        assert parse_amount(99.5) == 99.5

    def test_non_numeric_is_zero(self):
        """Test that non-numeric and empty input yields 0."""
        assert parse_amount("n/a") == 0.0
        assert parse_amount("") == 0.0
        assert parse_amount(None) == 0.0
        assert parse_amount(float("nan")) == 0.0

    def test_malformed_number_is_zero(self):
        """Test that leftovers that still are not a number yield 0."""
        assert parse_amount("1.2.3") == 0.0
        assert parse_amount("-") == 0.0


class TestCleanLabel:
    """Test clean_label."""

    def test_removes_class_prefix(self):
        """Test that a leading 'Class - ' prefix is removed."""
        assert clean_label("Class - Barre 60") == "Barre 60"
        assert clean_label("class-Barre 60") == "Barre 60"

    def test_collapses_whitespace(self):
        """Test that runs of whitespace collapse to one space."""
        assert clean_label("  Barre   60  ") == "Barre 60"

    def test_idempotent(self):
        """Test that cleaning twice equals cleaning once."""
        once = clean_label("Class -   Trial   Class ")
        assert clean_label(once) == once


class TestPeriods:
    """Test period and week helpers."""

    def test_period_label(self):
        """Test month-year label format."""
        assert period_of("2024-01-05") == "Jan 24"
        assert period_of("2023-12-31") == "Dec 23"

    def test_unknown_period(self):
        """Test that an unparseable date yields the Unknown period."""
        assert period_of("garbage") == "Unknown"

    def test_period_sort_key_orders_chronologically(self):
        """Test that periods sort by date rather than alphabetically."""
        periods = ["Feb 24", "Dec 23", "Jan 24"]
        assert sorted(periods, key=period_sort_key) == ["Dec 23", "Jan 24", "Feb 24"]

    def test_week_start_is_sunday(self):
        """Test that weeks start on Sunday."""
        # 2024-01-20 is a Saturday, 2024-01-21 a Sunday
        assert week_start("2024-01-20") == "2024-01-14"
        assert week_start("2024-01-21") == "2024-01-21"
        assert week_start("bad") is None


class TestRecordNormalizer:
    """Test RecordNormalizer."""

    def test_normalize_new_visitor(self, new_row):
        """Test that new-visitor rows are cleaned and raw data preserved."""
        normalizer = RecordNormalizer()
        row = new_row(**{"First visit at": "2024-01-05, 9:00 AM", "First visit": "Class - Trial Class"})

        visitors = normalizer.normalize_new_visitors([row])

        assert len(visitors) == 1
        visitor = visitors[0]
        assert visitor.first_visit_at == "2024-01-05"
        assert visitor.first_visit == "Trial Class"
        assert visitor.email == "a@x.com"
        assert visitor.full_name == "Ada Lovelace"
        assert visitor.raw_data["First visit"] == "Class - Trial Class"

    def test_normalize_booking_amounts(self, booking_row):
        """Test that booking sale values are coerced to numbers."""
        normalizer = RecordNormalizer()

        bookings = normalizer.normalize_bookings([booking_row(**{"Sale Value": "$25.00"})])

        assert bookings[0].sale_value == 25.0
        assert bookings[0].cancelled == "NO"

    def test_sale_payer_email_variants(self, sale_row):
        """Test that the payer email is read from either header variant."""
        normalizer = RecordNormalizer()
        paying = sale_row(**{"Paying Customer Email": "p@x.com", "Customer Email": "c@x.com"})
        fallback = sale_row(**{"Paying Customer Email": "", "Customer Email": "c@x.com"})

        sales = normalizer.normalize_sales([paying, fallback])

        assert sales[0].payer_email == "p@x.com"
        assert sales[1].payer_email == "c@x.com"

    def test_missing_sales_input(self):
        """Test that a missing payments export yields no sales."""
        assert RecordNormalizer().normalize_sales(None) == []

    def test_normalize_from_dataframe(self, booking_row):
        """Test normalizing from a pandas DataFrame with missing cells."""
        df = pd.DataFrame([
            booking_row(),
            {"Class Date": "2024-02-01", "Teacher": "Sam"},
        ])

        bookings = RecordNormalizer().normalize_bookings(df)

        assert len(bookings) == 2
        assert bookings[1].teacher == "Sam"
        assert bookings[1].customer_email == ""
        assert not math.isnan(bookings[1].sale_value)
        assert bookings[1].sale_value == 0.0

    def test_custom_field_map(self, sale_row):
        """Test overriding the header variants for a field."""
        field_map = FieldMap(sale={**default_sale_fields(), "payer_email": ["Buyer"]})
        normalizer = RecordNormalizer(field_map)

        sales = normalizer.normalize_sales([sale_row(Buyer="b@x.com")])

        assert sales[0].payer_email == "b@x.com"
