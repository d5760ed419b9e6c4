"""Retention - find new clients who came back for another class."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from studiostats.metrics.cohort import Cohort
from studiostats.metrics.normalizer import to_date
from studiostats.metrics.rates import NO, percentage
from studiostats.metrics.schema import (
    AuditRecord,
    Booking,
    ClientDetail,
    EnrichedNewClient,
)


@dataclass
class RetentionResult:
    """Retained clients of one cohort."""

    new_clients: int
    details: list[ClientDetail] = field(default_factory=list)
    audit: list[AuditRecord] = field(default_factory=list)

    @property
    def retained_clients(self) -> int:
        return len(self.details)

    @property
    def retention_rate(self) -> float:
        return percentage(self.retained_clients, self.new_clients)


class RetentionEvaluator:
    """
    Decide which new clients were retained.

    A client is retained when at least one booking under their email:
    - has a class date strictly after the client's first visit
    - was not cancelled, late cancelled or a no-show (all three "NO")

    Retention counts unique emails, not visits. Bookings whose dates could
    not be parsed never qualify.

    Example:
        >>> evaluator = RetentionEvaluator(bookings)
        >>> result = evaluator.evaluate(cohort)
        >>> result.retention_rate
        100.0
    """

    def __init__(self, bookings: list[Booking]) -> None:
        self._by_email: dict[str, list[Booking]] = defaultdict(list)
        for booking in bookings:
            self._by_email[booking.customer_email].append(booking)

    def qualifying_visits(self, client: EnrichedNewClient) -> list[Booking]:
        """Bookings that count as a return visit for ``client``."""
        first_visit = to_date(client.first_visit_at)
        if first_visit is None or not client.email:
            return []

        visits = []
        for booking in self._by_email.get(client.email, []):
            class_date = to_date(booking.class_date)
            if class_date is None or class_date <= first_visit:
                continue
            if booking.cancelled != NO or booking.late_cancelled != NO or booking.no_show != NO:
                continue
            visits.append(booking)
        return visits

    def evaluate(self, cohort: Cohort) -> RetentionResult:
        """Evaluate retention for every client in ``cohort``."""
        result = RetentionResult(new_clients=cohort.size)
        seen: set[str] = set()

        for client in cohort.clients:
            if client.email in seen:
                continue
            seen.add(client.email)

            visits = self.qualifying_visits(client)
            if not visits:
                continue

            first_return = min(visits, key=lambda b: to_date(b.class_date))
            result.details.append(
                ClientDetail(
                    email=client.email,
                    name=client.full_name,
                    date=first_return.class_date,
                    visit_count=len(visits),
                )
            )
            result.audit.append(
                AuditRecord(
                    record=dict(client.raw_data),
                    reason=(
                        f"Returned for {len(visits)} qualifying visit(s), "
                        f"first on {first_return.class_date}"
                    ),
                )
            )

        return result
