"""Fold teacher-level group metrics into studio records per location and a grand total."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from studiostats.metrics.rates import percentage, safe_divide
from studiostats.metrics.schema import (
    STUDIO_PERIOD,
    STUDIO_TEACHER,
    TOTAL_LOCATION,
    GroupMetrics,
    SourceCount,
    WeeklyRevenue,
)

logger = logging.getLogger(__name__)

_SUMMED_FIELDS = (
    "new_clients",
    "trials",
    "referrals",
    "hosted",
    "influencer_signups",
    "others",
    "retained_clients",
    "converted_clients",
    "total_revenue",
    "trial_conversions",
    "referral_conversions",
    "influencer_conversions",
)


def merge_weekly_revenue(
    target: list[WeeklyRevenue], weeks: list[WeeklyRevenue]
) -> list[WeeklyRevenue]:
    """Add ``weeks`` into ``target`` by week key; unmatched weeks are appended.

    Returns:
        The merged series ordered by week.
    """
    by_week = {w.week: w for w in target}
    for week in weeks:
        existing = by_week.get(week.week)
        if existing is None:
            existing = WeeklyRevenue(week=week.week)
            by_week[week.week] = existing
            target.append(existing)
        existing.revenue += week.revenue
    target.sort(key=lambda w: w.week)
    return target


def merge_source_counts(
    target: list[SourceCount], counts: list[SourceCount]
) -> list[SourceCount]:
    """Add ``counts`` into ``target`` position by position."""
    for total, count in zip(target, counts):
        total.count += count.count
    return target


def finalize_rates(metrics: GroupMetrics) -> GroupMetrics:
    """Recompute derived rates from the summed counts of a studio record.

    Booking rates (no-show, late cancellation) are not recomputed.
    """
    metrics.retention_rate = percentage(metrics.retained_clients, metrics.new_clients)
    metrics.conversion_rate = percentage(metrics.converted_clients, metrics.new_clients)
    metrics.first_time_buyer_rate = percentage(metrics.converted_clients, metrics.new_clients)
    metrics.average_revenue_per_client = safe_divide(
        metrics.total_revenue, metrics.converted_clients
    )
    metrics.trial_to_membership_conversion = percentage(
        metrics.trial_conversions, metrics.trials
    )
    metrics.referral_conversion_rate = percentage(
        metrics.referral_conversions, metrics.referrals
    )
    metrics.influencer_conversion_rate = percentage(
        metrics.influencer_conversions, metrics.influencer_signups
    )
    return metrics


def fold_group(target: GroupMetrics, group: GroupMetrics) -> GroupMetrics:
    """Add one group's counts, details and series into ``target``.

    Rates on ``target`` are left stale until ``finalize_rates`` is called.
    """
    for name in _SUMMED_FIELDS:
        setattr(target, name, getattr(target, name) + getattr(group, name))

    target.new_client_details.extend(group.new_client_details)
    target.retained_client_details.extend(group.retained_client_details)
    target.converted_client_details.extend(group.converted_client_details)

    merge_weekly_revenue(target.revenue_by_week, group.revenue_by_week)
    merge_source_counts(target.clients_by_source, group.clients_by_source)
    return target


@dataclass
class StudioAggregator:
    """
    Accumulate group metrics into one studio record per location.

    Groups must be added in a fixed order so that concatenated detail lists
    are reproducible between runs.

    Example:
        >>> aggregator = StudioAggregator()
        >>> for group in groups:
        ...     aggregator.add(group)
        >>> studios = aggregator.results()
    """

    studios: dict[str, GroupMetrics] = field(default_factory=dict)

    def add(self, group: GroupMetrics) -> None:
        """Fold one teacher-level group into its location's studio record."""
        studio = self.studios.get(group.location)
        if studio is None:
            studio = GroupMetrics(
                teacher_name=STUDIO_TEACHER,
                location=group.location,
                period=STUDIO_PERIOD,
            )
            self.studios[group.location] = studio

        fold_group(studio, group)

    def results(self) -> list[GroupMetrics]:
        """Return finalized studio records in the order locations were first seen."""
        studios = [finalize_rates(studio) for studio in self.studios.values()]
        logger.info(f"Aggregated {len(studios)} studio summaries")
        return studios


def aggregate_studios(groups: list[GroupMetrics]) -> list[GroupMetrics]:
    """Build studio-level records from teacher-level groups."""
    aggregator = StudioAggregator()
    for group in groups:
        aggregator.add(group)
    return aggregator.results()


def aggregate_totals(groups: list[GroupMetrics]) -> GroupMetrics:
    """Build the single all-teachers, all-locations, all-periods record.

    Counts and revenue are summed over every group and rates recomputed from
    the sums, as for studio records. An empty input gives a zeroed record.
    """
    totals = GroupMetrics(
        teacher_name=STUDIO_TEACHER,
        location=TOTAL_LOCATION,
        period=STUDIO_PERIOD,
    )
    for group in groups:
        fold_group(totals, group)
    return finalize_rates(totals)
