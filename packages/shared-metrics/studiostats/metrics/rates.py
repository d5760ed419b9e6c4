"""Rate calculations shared by the evaluators and the aggregator."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from studiostats.metrics.normalizer import period_of
from studiostats.metrics.schema import Booking

YES = "YES"
NO = "NO"


def percentage(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator * 100``, or 0 when the denominator is 0.

    The result is not clamped to [0, 100].
    """
    if not denominator:
        return 0.0
    return (numerator / denominator) * 100


def safe_divide(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator``, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


@dataclass
class BookingRates:
    """No-show and late-cancellation rates over a set of bookings."""

    total_bookings: int = 0
    no_shows: int = 0
    late_cancellations: int = 0

    @property
    def no_show_rate(self) -> float:
        return percentage(self.no_shows, self.total_bookings)

    @property
    def late_cancellation_rate(self) -> float:
        return percentage(self.late_cancellations, self.total_bookings)


def booking_rates(bookings: list[Booking]) -> BookingRates:
    """Count no-shows and late cancellations in ``bookings``."""
    return BookingRates(
        total_bookings=len(bookings),
        no_shows=sum(1 for b in bookings if b.no_show == YES),
        late_cancellations=sum(1 for b in bookings if b.late_cancelled == YES),
    )


def group_bookings(bookings: list[Booking]) -> dict[tuple[str, str, str], list[Booking]]:
    """Index bookings by (teacher, location, class-date period)."""
    groups: dict[tuple[str, str, str], list[Booking]] = defaultdict(list)
    for booking in bookings:
        groups[(booking.teacher, booking.location, period_of(booking.class_date))].append(booking)
    return dict(groups)
