"""
Studio metrics data model.

Normalized input records for the three booking-platform exports and the
result records produced by the engine:

- NewVisitor / Booking / Sale: cleaned rows from the new-visitor,
  bookings and payments exports
- EnrichedNewClient: a new visitor tagged with the teacher of their first class
- GroupMetrics: metrics for one teacher/location/period group, or for a
  whole studio when teacher_name is the studio sentinel
- TrainerStats / PerformanceScore: booking behaviour per trainer and the
  weighted teacher ranking
- AuditRecord: a raw new-visitor row with the reason it was included or
  excluded

``to_dict()`` on the result records produces the camelCase structure
consumed by the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ClientSource(str, Enum):
    """Acquisition source bucket of a new client."""

    TRIAL = "trial"
    REFERRAL = "referral"
    HOSTED = "hosted"
    INFLUENCER = "influencer"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Display label used in the source distribution series."""
        return _SOURCE_LABELS[self]


_SOURCE_LABELS = {
    ClientSource.TRIAL: "Trials",
    ClientSource.REFERRAL: "Referrals",
    ClientSource.HOSTED: "Hosted",
    ClientSource.INFLUENCER: "Influencer",
    ClientSource.OTHER: "Others",
}

# Fixed order of the clientsBySource series
SOURCE_ORDER = (
    ClientSource.TRIAL,
    ClientSource.REFERRAL,
    ClientSource.HOSTED,
    ClientSource.INFLUENCER,
    ClientSource.OTHER,
)

# Sentinels
UNKNOWN_TEACHER = "Unknown"
UNKNOWN_PERIOD = "Unknown"
STUDIO_TEACHER = "All Teachers"
STUDIO_PERIOD = "All Periods"
TOTAL_LOCATION = "All Locations"


@dataclass
class NewVisitor:
    """Normalized row of the new-visitor export.

    ``first_visit_at`` holds an ISO ``YYYY-MM-DD`` date when the raw value
    could be parsed, otherwise the raw string.
    """

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    payment_method: str = ""
    membership_used: str = ""
    first_visit_at: str = ""
    first_visit: str = ""
    first_visit_location: str = ""
    visit_type: str = ""
    home_location: str = ""

    # Raw data preservation for audit lists
    raw_data: dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class EnrichedNewClient(NewVisitor):
    """New visitor tagged with the teacher of the matching first booking."""

    teacher: str = UNKNOWN_TEACHER


@dataclass
class Booking:
    """Normalized row of the bookings export."""

    sale_date: str = ""
    class_name: str = ""
    class_date: str = ""
    location: str = ""
    teacher: str = ""
    customer_email: str = ""
    payment_method: str = ""
    membership_used: str = ""
    sale_value: float = 0.0
    sales_tax: float = 0.0
    cancelled: str = ""  # "YES" / "NO"
    late_cancelled: str = ""  # "YES" / "NO"
    no_show: str = ""  # "YES" / "NO"
    sold_by: str = ""
    refunded: str = ""
    home_location: str = ""


@dataclass
class Sale:
    """Normalized row of the payments export."""

    category: str = ""
    item: str = ""
    date: str = ""
    sale_value: float = 0.0
    tax: float = 0.0
    refunded: str = ""  # "YES" / "NO"
    payment_method: str = ""
    sold_by: str = ""
    payer_email: str = ""
    payer_name: str = ""
    location: str = ""
    note: str = ""


@dataclass
class ClientDetail:
    """Display projection of one client in a new/retained/converted list."""

    email: str
    name: str
    date: str
    value: float | None = None
    visit_count: int | None = None
    membership_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting unset optional fields."""
        data: dict[str, Any] = {
            "email": self.email,
            "name": self.name,
            "date": self.date,
        }
        if self.value is not None:
            data["value"] = self.value
        if self.visit_count is not None:
            data["visitCount"] = self.visit_count
        if self.membership_type is not None:
            data["membershipType"] = self.membership_type
        return data


@dataclass
class WeeklyRevenue:
    """Revenue for the week starting on ``week`` (a Sunday, ISO date)."""

    week: str
    revenue: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"week": self.week, "revenue": self.revenue}


@dataclass
class SourceCount:
    """Number of new clients in one acquisition source bucket."""

    source: str
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "count": self.count}


def empty_source_counts() -> list[SourceCount]:
    """Return the five-entry source series with zero counts."""
    return [SourceCount(source=source.label) for source in SOURCE_ORDER]


@dataclass
class GroupMetrics:
    """
    Metrics for one teacher/location/period group.

    Studio-level records share this shape with ``teacher_name`` set to the
    studio sentinel ("All Teachers").

    Invariant:
        new_clients == trials + referrals + hosted + influencer_signups + others

    All rates are percentages and are 0 when their denominator is 0. They
    are not clamped, so inconsistent inputs can produce values above 100.
    """

    teacher_name: str
    location: str
    period: str

    # Acquisition
    new_clients: int = 0
    trials: int = 0
    referrals: int = 0
    hosted: int = 0
    influencer_signups: int = 0
    others: int = 0

    # Retention
    retained_clients: int = 0
    retention_rate: float = 0.0

    # Conversion
    converted_clients: int = 0
    conversion_rate: float = 0.0
    total_revenue: float = 0.0
    average_revenue_per_client: float = 0.0

    # Booking behaviour
    no_show_rate: float = 0.0
    late_cancellation_rate: float = 0.0

    # Sales insights
    first_time_buyer_rate: float = 0.0
    influencer_conversion_rate: float = 0.0
    referral_conversion_rate: float = 0.0
    trial_to_membership_conversion: float = 0.0

    # Converted clients per bucket, kept so studio rates can be recomputed
    trial_conversions: int = 0
    referral_conversions: int = 0
    influencer_conversions: int = 0

    # Detail lists
    new_client_details: list[ClientDetail] = field(default_factory=list)
    retained_client_details: list[ClientDetail] = field(default_factory=list)
    converted_client_details: list[ClientDetail] = field(default_factory=list)

    # Chart series
    revenue_by_week: list[WeeklyRevenue] = field(default_factory=list)
    clients_by_source: list[SourceCount] = field(default_factory=empty_source_counts)

    @property
    def is_studio(self) -> bool:
        """Return True if this is a studio-level (all teachers) record."""
        return self.teacher_name == STUDIO_TEACHER

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase dictionary consumed by the dashboard."""
        return {
            "teacherName": self.teacher_name,
            "location": self.location,
            "period": self.period,
            "newClients": self.new_clients,
            "trials": self.trials,
            "referrals": self.referrals,
            "hosted": self.hosted,
            "influencerSignups": self.influencer_signups,
            "others": self.others,
            "retainedClients": self.retained_clients,
            "retentionRate": self.retention_rate,
            "convertedClients": self.converted_clients,
            "conversionRate": self.conversion_rate,
            "totalRevenue": self.total_revenue,
            "averageRevenuePerClient": self.average_revenue_per_client,
            "noShowRate": self.no_show_rate,
            "lateCancellationRate": self.late_cancellation_rate,
            "firstTimeBuyerRate": self.first_time_buyer_rate,
            "influencerConversionRate": self.influencer_conversion_rate,
            "referralConversionRate": self.referral_conversion_rate,
            "trialToMembershipConversion": self.trial_to_membership_conversion,
            "newClientDetails": [d.to_dict() for d in self.new_client_details],
            "retainedClientDetails": [d.to_dict() for d in self.retained_client_details],
            "convertedClientDetails": [d.to_dict() for d in self.converted_client_details],
            "revenueByWeek": [w.to_dict() for w in self.revenue_by_week],
            "clientsBySource": [s.to_dict() for s in self.clients_by_source],
        }



@dataclass
class TrainerStats:
    """Booking behaviour of all classes taught by one trainer.

    Each booking counts in at most one of check-ins, cancellations and
    no-shows; late cancellations are a subset of cancellations.
    """

    trainer_name: str
    total_bookings: int = 0
    checkins: int = 0
    cancellations: int = 0
    late_cancellations: int = 0
    no_shows: int = 0
    classes: int = 0
    unique_members: int = 0

    @property
    def check_in_rate(self) -> float:
        if not self.total_bookings:
            return 0.0
        return self.checkins / self.total_bookings * 100

    @property
    def cancellation_rate(self) -> float:
        if not self.total_bookings:
            return 0.0
        return self.cancellations / self.total_bookings * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "trainerName": self.trainer_name,
            "totalBookings": self.total_bookings,
            "checkins": self.checkins,
            "cancellations": self.cancellations,
            "lateCancellations": self.late_cancellations,
            "noShows": self.no_shows,
            "classes": self.classes,
            "uniqueMembers": self.unique_members,
            "checkInRate": self.check_in_rate,
            "cancellationRate": self.cancellation_rate,
        }


class PerformanceBand(str, Enum):
    """Position of a teacher's score relative to the average score."""

    HIGH = "high"
    AVERAGE = "average"
    LOW = "low"


@dataclass
class PerformanceScore:
    """Weighted performance score of one teacher across all their groups."""

    teacher_name: str
    location: str
    new_clients: int = 0
    converted_clients: int = 0
    retained_clients: int = 0
    total_revenue: float = 0.0

    # From the trainer's bookings
    total_visits: int = 0
    no_shows: int = 0
    cancellations: int = 0
    total_classes: int = 0

    conversion_rate: float = 0.0
    retention_rate: float = 0.0
    no_show_rate: float = 0.0
    cancellation_rate: float = 0.0
    revenue_per_client: float = 0.0
    class_utilization: float = 0.0
    score: float = 0.0
    band: PerformanceBand = PerformanceBand.AVERAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "teacherName": self.teacher_name,
            "location": self.location,
            "newClients": self.new_clients,
            "convertedClients": self.converted_clients,
            "retainedClients": self.retained_clients,
            "totalRevenue": self.total_revenue,
            "totalVisits": self.total_visits,
            "noShows": self.no_shows,
            "cancellations": self.cancellations,
            "totalClasses": self.total_classes,
            "conversionRate": self.conversion_rate,
            "retentionRate": self.retention_rate,
            "noShowRate": self.no_show_rate,
            "cancellationRate": self.cancellation_rate,
            "revenuePerClient": self.revenue_per_client,
            "classUtilization": self.class_utilization,
            "performanceScore": self.score,
            "band": self.band.value,
        }


@dataclass
class AuditRecord:
    """A raw new-visitor row annotated with why it was included or excluded."""

    record: dict[str, Any]
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {**self.record, "reason": self.reason}


@dataclass
class ProgressUpdate:
    """Progress notification sent to the host between pipeline stages."""

    percentage: int
    step: str


@dataclass
class ProcessingResult:
    """Output of one pipeline run."""

    processed_data: list[GroupMetrics] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    teachers: list[str] = field(default_factory=list)
    periods: list[str] = field(default_factory=list)

    # Grand total over every group, and booking-side teacher analytics
    totals: GroupMetrics | None = None
    trainer_stats: list[TrainerStats] = field(default_factory=list)
    performance: list[PerformanceScore] = field(default_factory=list)

    # Audit lists
    included: list[AuditRecord] = field(default_factory=list)
    excluded: list[AuditRecord] = field(default_factory=list)
    new_clients: list[AuditRecord] = field(default_factory=list)
    converted_clients: list[AuditRecord] = field(default_factory=list)
    retained_clients: list[AuditRecord] = field(default_factory=list)

    @property
    def teacher_data(self) -> list[GroupMetrics]:
        """Teacher-level group records."""
        return [r for r in self.processed_data if not r.is_studio]

    @property
    def studio_data(self) -> list[GroupMetrics]:
        """Studio-level records, one per location."""
        return [r for r in self.processed_data if r.is_studio]

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain JSON-serialisable structures."""
        return {
            "processedData": [r.to_dict() for r in self.processed_data],
            "locations": list(self.locations),
            "teachers": list(self.teachers),
            "periods": list(self.periods),
            "totals": self.totals.to_dict() if self.totals is not None else None,
            "trainerStats": [t.to_dict() for t in self.trainer_stats],
            "performance": [p.to_dict() for p in self.performance],
            "includedRecords": [a.to_dict() for a in self.included],
            "excludedRecords": [a.to_dict() for a in self.excluded],
            "newClientRecords": [a.to_dict() for a in self.new_clients],
            "convertedClientRecords": [a.to_dict() for a in self.converted_clients],
            "retainedClientRecords": [a.to_dict() for a in self.retained_clients],
        }
