"""
Record normalizers - transform raw export rows into typed records.

Each export is normalized separately:
- new visitors: first-visit date and class label cleaned
- bookings: class date, class label and sale value cleaned
- sales: sale date, item label and sale value cleaned, payer email resolved
  from whichever of the payer-email columns is populated

Malformed values never raise. Unparseable dates pass through unchanged and
unparseable amounts become 0.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd
from studiostats.metrics.config import FieldMap
from studiostats.metrics.patterns import first_present
from studiostats.metrics.schema import (
    UNKNOWN_PERIOD,
    Booking,
    NewVisitor,
    Sale,
)

logger = logging.getLogger(__name__)

RowData = pd.DataFrame | Iterable[Mapping[str, Any]] | None

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_CLASS_PREFIX = re.compile(r"^Class\s*-\s*", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

PERIOD_FORMAT = "%b %y"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return value is pd.NaT


def text(value: Any) -> str:
    """Return a stripped string, treating None and NaN as empty."""
    if _is_missing(value):
        return ""
    return str(value).strip()


def format_date(value: Any) -> str:
    """Normalize a date-like value to ``YYYY-MM-DD``.

    A trailing comma-separated time component (``"2025-03-01, 10:15 AM"``)
    is discarded before parsing. If the value cannot be parsed the original
    string is returned unchanged.

    Examples:
        >>> format_date("2025-03-01, 10:15 AM")
        '2025-03-01'
        >>> format_date("not a date")
        'not a date'
    """
    if _is_missing(value):
        return ""
    if isinstance(value, datetime | date):
        return value.strftime("%Y-%m-%d")

    raw = str(value)
    candidate = raw.split(",")[0].strip()
    # Keywords such as "now" or "today" would resolve to the run date
    if not any(ch.isdigit() for ch in candidate):
        return raw

    parsed = pd.to_datetime(candidate, errors="coerce")
    if pd.isna(parsed):
        logger.debug(f"Could not parse date {raw!r}, passing through")
        return raw
    return parsed.strftime("%Y-%m-%d")


def parse_amount(value: Any) -> float:
    """Coerce a currency or numeric value to float.

    Every character other than digits, ``.`` and ``-`` is stripped before
    parsing. Empty or non-numeric input yields 0.

    Examples:
        >>> parse_amount("$1,250.50")
        1250.5
        >>> parse_amount("n/a")
        0.0
    """
    if _is_missing(value):
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        logger.debug(f"Could not parse amount {value!r}, using 0")
        return 0.0


def clean_label(value: Any) -> str:
    """Clean a class or membership label.

    Removes a leading ``"Class - "`` prefix, trims, and collapses runs of
    whitespace. Applying it twice gives the same result as applying it once.
    """
    label = text(value)
    if not label:
        return ""
    label = _CLASS_PREFIX.sub("", label)
    return _WHITESPACE.sub(" ", label).strip()


def to_date(value: str) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string, returning None when it is not one."""
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def period_of(value: str) -> str:
    """Return the month-year period label (e.g. ``"Jan 24"``) for a date."""
    parsed = to_date(value) or to_date(format_date(value))
    if parsed is None:
        return UNKNOWN_PERIOD
    return parsed.strftime(PERIOD_FORMAT)


def period_sort_key(period: str) -> date:
    """Sort key placing periods chronologically; unknown periods sort first."""
    try:
        return datetime.strptime(period, PERIOD_FORMAT).date()
    except ValueError:
        return date.min


def week_start(value: str) -> str | None:
    """Return the Sunday that starts the week containing ``value``."""
    parsed = to_date(value)
    if parsed is None:
        return None
    offset = (parsed.weekday() + 1) % 7
    return (parsed - timedelta(days=offset)).isoformat()


class RecordNormalizer:
    """
    Normalize the three booking-platform exports.

    Accepts either a DataFrame or a sequence of row mappings, where each row
    maps CSV header names to raw values.

    Example:
        normalizer = RecordNormalizer()
        visitors = normalizer.normalize_new_visitors(new_rows)
        bookings = normalizer.normalize_bookings(booking_rows)
        sales = normalizer.normalize_sales(sale_rows)
    """

    def __init__(self, field_map: FieldMap | None = None):
        """
        Initialize normalizer.

        Args:
            field_map: Header variants for each logical field
        """
        self.field_map = field_map or FieldMap()

    def _to_records(self, data: RowData) -> list[Mapping[str, Any]]:
        """Convert input to a list of row mappings."""
        if data is None:
            return []
        if isinstance(data, pd.DataFrame):
            return data.to_dict(orient="records")
        return list(data)

    def normalize_new_visitors(self, data: RowData) -> list[NewVisitor]:
        """Normalize new-visitor rows."""
        fields = self.field_map.new_visitor
        visitors = []

        for row in self._to_records(data):
            visitors.append(
                NewVisitor(
                    first_name=text(first_present(row, fields["first_name"])),
                    last_name=text(first_present(row, fields["last_name"])),
                    email=text(first_present(row, fields["email"])),
                    phone=text(first_present(row, fields["phone"])),
                    payment_method=text(first_present(row, fields["payment_method"])),
                    membership_used=clean_label(first_present(row, fields["membership_used"])),
                    first_visit_at=format_date(first_present(row, fields["first_visit_at"])),
                    first_visit=clean_label(first_present(row, fields["first_visit"])),
                    first_visit_location=text(first_present(row, fields["first_visit_location"])),
                    visit_type=text(first_present(row, fields["visit_type"])),
                    home_location=text(first_present(row, fields["home_location"])),
                    raw_data=dict(row),
                )
            )

        logger.info(f"Normalized {len(visitors)} new visitor rows")
        return visitors

    def normalize_bookings(self, data: RowData) -> list[Booking]:
        """Normalize booking rows."""
        fields = self.field_map.booking
        bookings = []

        for row in self._to_records(data):
            bookings.append(
                Booking(
                    sale_date=format_date(first_present(row, fields["sale_date"])),
                    class_name=clean_label(first_present(row, fields["class_name"])),
                    class_date=format_date(first_present(row, fields["class_date"])),
                    location=text(first_present(row, fields["location"])),
                    teacher=text(first_present(row, fields["teacher"])),
                    customer_email=text(first_present(row, fields["customer_email"])),
                    payment_method=text(first_present(row, fields["payment_method"])),
                    membership_used=clean_label(first_present(row, fields["membership_used"])),
                    sale_value=parse_amount(first_present(row, fields["sale_value"], 0)),
                    sales_tax=parse_amount(first_present(row, fields["sales_tax"], 0)),
                    cancelled=text(first_present(row, fields["cancelled"])),
                    late_cancelled=text(first_present(row, fields["late_cancelled"])),
                    no_show=text(first_present(row, fields["no_show"])),
                    sold_by=text(first_present(row, fields["sold_by"])),
                    refunded=text(first_present(row, fields["refunded"])),
                    home_location=text(first_present(row, fields["home_location"])),
                )
            )

        logger.info(f"Normalized {len(bookings)} booking rows")
        return bookings

    def normalize_sales(self, data: RowData) -> list[Sale]:
        """Normalize payment rows. Missing input yields an empty list."""
        fields = self.field_map.sale
        sales = []

        for row in self._to_records(data):
            sales.append(
                Sale(
                    category=text(first_present(row, fields["category"])),
                    item=clean_label(first_present(row, fields["item"])),
                    date=format_date(first_present(row, fields["date"])),
                    sale_value=parse_amount(first_present(row, fields["sale_value"], 0)),
                    tax=parse_amount(first_present(row, fields["tax"], 0)),
                    refunded=text(first_present(row, fields["refunded"])),
                    payment_method=text(first_present(row, fields["payment_method"])),
                    sold_by=text(first_present(row, fields["sold_by"])),
                    payer_email=text(first_present(row, fields["payer_email"])),
                    payer_name=text(first_present(row, fields["payer_name"])),
                    location=text(first_present(row, fields["location"])),
                    note=text(first_present(row, fields["note"])),
                )
            )

        logger.info(f"Normalized {len(sales)} sale rows")
        return sales
