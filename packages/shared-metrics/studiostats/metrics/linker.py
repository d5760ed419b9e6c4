"""Link new visitors to the booking of their first class.

The new-visitor export records what a client's first class was but not who
taught it. The teacher is recovered from the bookings export by finding the
booking for the same client, class, date and location.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import asdict

from studiostats.metrics.schema import (
    UNKNOWN_TEACHER,
    Booking,
    EnrichedNewClient,
    NewVisitor,
)

logger = logging.getLogger(__name__)


class VisitLinker:
    """Resolve the teacher of each new visitor's first visit.

    A booking matches a visitor when all of these are equal:

    - booking customer email == visitor email
    - booking class name == visitor first-visit label
    - booking class date == visitor first-visit date
    - booking location == visitor first-visit location

    When several bookings match, the first one in export order wins.
    Visitors without a match are tagged with the "Unknown" teacher.

    Example:
        >>> linker = VisitLinker(bookings)
        >>> enriched = linker.link(visitors)
        >>> enriched[0].teacher
        'Jane'
    """

    def __init__(self, bookings: list[Booking]) -> None:
        """Index bookings by customer email, preserving export order.

        Args:
            bookings: Normalized booking rows.
        """
        self._by_email: dict[str, list[Booking]] = defaultdict(list)
        for booking in bookings:
            self._by_email[booking.customer_email].append(booking)

    def find_first_booking(self, visitor: NewVisitor) -> Booking | None:
        """Return the first booking representing the visitor's first visit."""
        for booking in self._by_email.get(visitor.email, []):
            if (
                booking.class_name == visitor.first_visit
                and booking.class_date == visitor.first_visit_at
                and booking.location == visitor.first_visit_location
            ):
                return booking
        return None

    def link(self, visitors: list[NewVisitor]) -> list[EnrichedNewClient]:
        """Tag every visitor with the teacher of their first class.

        Args:
            visitors: Normalized new-visitor rows.

        Returns:
            One EnrichedNewClient per visitor, in input order.
        """
        enriched = []
        unmatched = 0

        for visitor in visitors:
            booking = self.find_first_booking(visitor)
            if booking is None or not booking.teacher:
                unmatched += 1
                teacher = UNKNOWN_TEACHER
            else:
                teacher = booking.teacher

            enriched.append(EnrichedNewClient(**asdict(visitor), teacher=teacher))

        logger.info(
            f"Linked {len(visitors) - unmatched} of {len(visitors)} new visitors "
            f"to a first booking ({unmatched} unknown teacher)"
        )
        return enriched
