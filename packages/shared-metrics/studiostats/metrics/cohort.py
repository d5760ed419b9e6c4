"""Cohort selection and acquisition-source classification.

A cohort is the set of new clients whose first visit was taught by one
teacher, at one location, in one period. Visitors whose membership or first
class marks them as friends, family or staff are excluded before any
cohort is built.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from studiostats.metrics.config import ClassificationRules, SourceRule
from studiostats.metrics.normalizer import period_of, period_sort_key
from studiostats.metrics.patterns import matches
from studiostats.metrics.schema import (
    SOURCE_ORDER,
    UNKNOWN_TEACHER,
    AuditRecord,
    Booking,
    ClientDetail,
    ClientSource,
    EnrichedNewClient,
    SourceCount,
)

logger = logging.getLogger(__name__)

_FIELD_LABELS = {
    "membership_used": "Membership used",
    "first_visit": "First visit",
}


@dataclass
class Cohort:
    """New clients of one teacher/location/period group with their buckets."""

    teacher: str
    location: str
    period: str
    clients: list[EnrichedNewClient] = field(default_factory=list)
    sources: list[ClientSource] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.clients)

    def count(self, source: ClientSource) -> int:
        """Number of clients classified into ``source``."""
        return sum(1 for s in self.sources if s == source)

    @property
    def others(self) -> int:
        """Clients in no named bucket, as the remainder of the total."""
        named = sum(self.count(s) for s in SOURCE_ORDER if s != ClientSource.OTHER)
        return self.size - named

    def emails_in(self, source: ClientSource) -> set[str]:
        """Emails of the clients classified into ``source``."""
        return {c.email for c, s in zip(self.clients, self.sources) if s == source}

    def source_counts(self) -> list[SourceCount]:
        """Five-entry source distribution in fixed order."""
        counts = []
        for source in SOURCE_ORDER:
            count = self.others if source == ClientSource.OTHER else self.count(source)
            counts.append(SourceCount(source=source.label, count=count))
        return counts

    def details(self) -> list[ClientDetail]:
        return [
            ClientDetail(
                email=c.email,
                name=c.full_name,
                date=c.first_visit_at,
                membership_type=c.membership_used,
            )
            for c in self.clients
        ]


class CohortClassifier:
    """Exclude, group and bucket enriched new clients.

    Example:
        >>> classifier = CohortClassifier()
        >>> eligible, excluded = classifier.partition(enriched)
        >>> groups = classifier.group_clients(eligible)
        >>> cohort = classifier.build_cohort(
        ...     groups[("Jane", "Downtown", "Jan 24")], "Jane", "Downtown", "Jan 24"
        ... )
        >>> cohort.count(ClientSource.TRIAL)
        1
    """

    def __init__(self, rules: ClassificationRules | None = None) -> None:
        self.rules = rules or ClassificationRules()

    def exclusion_reason(self, client: EnrichedNewClient) -> str | None:
        """Return why a visitor is excluded from metrics, or None if eligible."""
        pattern = self.rules.exclusion_pattern
        for attr in ("membership_used", "first_visit"):
            value = getattr(client, attr)
            if matches(value, pattern):
                return (
                    f'{_FIELD_LABELS[attr]} "{value}" matches excluded pattern '
                    f"({pattern.replace('|', '/')})"
                )
        return None

    def partition(
        self, clients: list[EnrichedNewClient]
    ) -> tuple[list[EnrichedNewClient], list[AuditRecord]]:
        """Split visitors into eligible clients and excluded audit records.

        Returns:
            Tuple of (eligible clients, excluded records with reasons).
        """
        eligible = []
        excluded = []

        for client in clients:
            reason = self.exclusion_reason(client)
            if reason is None:
                eligible.append(client)
            else:
                excluded.append(AuditRecord(record=dict(client.raw_data), reason=reason))

        logger.info(
            f"{len(eligible)} eligible new clients, {len(excluded)} excluded "
            "as friends/family/staff"
        )
        return eligible, excluded

    def dimensions(
        self,
        clients: list[EnrichedNewClient],
        bookings: list[Booking],
    ) -> tuple[list[str], list[str], list[str]]:
        """Enumerate the distinct teachers, locations and periods.

        Teachers come from the bookings export (sorted alphabetically),
        locations from first-visit locations (in first-seen order) and periods
        from first-visit dates (chronological).
        """
        teachers = sorted(
            {b.teacher for b in bookings if b.teacher and b.teacher != UNKNOWN_TEACHER}
        )
        locations = list(dict.fromkeys(c.first_visit_location for c in clients))
        periods = sorted(
            {period_of(c.first_visit_at) for c in clients},
            key=period_sort_key,
        )
        return teachers, locations, periods

    def classify(self, client: EnrichedNewClient) -> ClientSource:
        """Assign the first bucket whose rule matches, else OTHER."""
        for rule in self.rules.source_rules:
            if self._rule_matches(rule, client):
                return rule.source
        return ClientSource.OTHER

    def _rule_matches(self, rule: SourceRule, client: EnrichedNewClient) -> bool:
        value = getattr(client, rule.field, "")
        if rule.exact:
            return value == rule.pattern
        return matches(value, rule.pattern)

    def group_clients(
        self, clients: list[EnrichedNewClient]
    ) -> dict[tuple[str, str, str], list[EnrichedNewClient]]:
        """Index eligible clients by (teacher, location, period), keeping order."""
        groups: dict[tuple[str, str, str], list[EnrichedNewClient]] = defaultdict(list)
        for c in clients:
            groups[(c.teacher, c.first_visit_location, period_of(c.first_visit_at))].append(c)
        return dict(groups)

    def build_cohort(
        self,
        members: list[EnrichedNewClient],
        teacher: str,
        location: str,
        period: str,
    ) -> Cohort:
        """Classify the clients of one teacher/location/period group."""
        return Cohort(
            teacher=teacher,
            location=location,
            period=period,
            clients=members,
            sources=[self.classify(c) for c in members],
        )

    def included_records(self, cohort: Cohort) -> list[AuditRecord]:
        """Audit records for every client counted in a cohort."""
        return [
            AuditRecord(record=dict(c.raw_data), reason=self.rules.included_reason)
            for c in cohort.clients
        ]
