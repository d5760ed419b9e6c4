"""Filter processed metrics the way the dashboard filter bar does."""

from __future__ import annotations

from studiostats.metrics.schema import GroupMetrics

# Filter values meaning "no filter"
ALL_LOCATIONS = "all-locations"
ALL_TEACHERS = "all-teachers"
ALL_PERIODS = "all-periods"


def _active(value: str | None, sentinel: str) -> bool:
    return bool(value) and value != sentinel


def filter_results(
    records: list[GroupMetrics],
    location: str | None = None,
    teacher: str | None = None,
    period: str | None = None,
    search: str | None = None,
) -> list[GroupMetrics]:
    """Filter metrics records by location, teacher, period and search text.

    Args:
        records: Records to filter, typically ``ProcessingResult.processed_data``.
        location: Exact location, or None / "all-locations" for any.
        teacher: Exact teacher name, or None / "all-teachers" for any.
        period: Exact period label, or None / "all-periods" for any.
        search: Case-insensitive substring of the teacher name.

    Returns:
        Matching records in their original order.
    """
    filtered = list(records)

    if _active(location, ALL_LOCATIONS):
        filtered = [r for r in filtered if r.location == location]

    if _active(teacher, ALL_TEACHERS):
        filtered = [r for r in filtered if r.teacher_name == teacher]

    if _active(period, ALL_PERIODS):
        filtered = [r for r in filtered if r.period == period]

    if search:
        needle = search.lower()
        filtered = [r for r in filtered if needle in r.teacher_name.lower()]

    return filtered


def split_results(
    records: list[GroupMetrics],
) -> tuple[list[GroupMetrics], list[GroupMetrics]]:
    """Separate teacher-level records from studio-level records."""
    teacher_rows = [r for r in records if not r.is_studio]
    studio_rows = [r for r in records if r.is_studio]
    return teacher_rows, studio_rows
