"""
Trainer analytics - booking behaviour per trainer and a weighted teacher ranking.

Booking outcome is read from the three booking flags:
- checked in: not cancelled, not late cancelled and not a no-show
- cancelled: cancelled or late cancelled (late cancellations also counted
  on their own)
- no-show: marked as a no-show without being cancelled

The performance score blends client outcomes from the group metrics with
booking behaviour from the trainer stats.
"""

from __future__ import annotations

import logging

from studiostats.metrics.rates import NO, YES, percentage, safe_divide
from studiostats.metrics.schema import (
    UNKNOWN_TEACHER,
    Booking,
    GroupMetrics,
    PerformanceBand,
    PerformanceScore,
    TrainerStats,
)

logger = logging.getLogger(__name__)

# Score weights
CONVERSION_WEIGHT = 0.25
RETENTION_WEIGHT = 0.25
ATTENDANCE_WEIGHT = 0.15
COMMITMENT_WEIGHT = 0.15
REVENUE_WEIGHT = 0.1
UTILIZATION_WEIGHT = 0.1

# Points either side of the average score that mark high and low performers
BAND_MARGIN = 10.0


def trainer_stats(bookings: list[Booking]) -> list[TrainerStats]:
    """Count booking outcomes, distinct classes and members for each trainer.

    Bookings without a teacher are counted under "Unknown". A class is a
    distinct (class name, class date) pair.

    Returns:
        One record per trainer, busiest first; ties keep first-seen order.
    """
    stats: dict[str, TrainerStats] = {}
    members: dict[str, set[str]] = {}
    classes: dict[str, set[tuple[str, str]]] = {}

    for booking in bookings:
        name = booking.teacher or UNKNOWN_TEACHER
        trainer = stats.get(name)
        if trainer is None:
            trainer = stats[name] = TrainerStats(trainer_name=name)
            members[name] = set()
            classes[name] = set()

        trainer.total_bookings += 1
        if booking.cancelled == NO and booking.late_cancelled == NO and booking.no_show == NO:
            trainer.checkins += 1
        elif booking.cancelled == YES or booking.late_cancelled == YES:
            trainer.cancellations += 1
            if booking.late_cancelled == YES:
                trainer.late_cancellations += 1
        elif booking.no_show == YES:
            trainer.no_shows += 1

        if booking.customer_email:
            members[name].add(booking.customer_email)
        if booking.class_name and booking.class_date:
            classes[name].add((booking.class_name, booking.class_date))

    for name, trainer in stats.items():
        trainer.unique_members = len(members[name])
        trainer.classes = len(classes[name])

    logger.info(f"Computed booking stats for {len(stats)} trainers")
    return sorted(stats.values(), key=lambda t: t.total_bookings, reverse=True)


def score_teacher(entry: PerformanceScore) -> PerformanceScore:
    """Fill in the derived rates and weighted score of one teacher."""
    entry.conversion_rate = percentage(entry.converted_clients, entry.new_clients)
    entry.retention_rate = percentage(entry.retained_clients, entry.new_clients)
    entry.no_show_rate = percentage(entry.no_shows, entry.total_visits)
    entry.cancellation_rate = percentage(entry.cancellations, entry.total_visits)
    entry.revenue_per_client = safe_divide(entry.total_revenue, entry.new_clients)
    entry.class_utilization = safe_divide(entry.total_visits, entry.total_classes)

    entry.score = (
        entry.conversion_rate * CONVERSION_WEIGHT
        + entry.retention_rate * RETENTION_WEIGHT
        + (100 - entry.no_show_rate) * ATTENDANCE_WEIGHT
        + (100 - entry.cancellation_rate) * COMMITMENT_WEIGHT
        + min(entry.revenue_per_client / 100, 100) * REVENUE_WEIGHT
        + min(entry.class_utilization / 10, 100) * UTILIZATION_WEIGHT
    )
    return entry


def performance_scores(
    groups: list[GroupMetrics],
    trainers: list[TrainerStats] | None = None,
) -> list[PerformanceScore]:
    """Rank teachers by a weighted performance score.

    Args:
        groups: Group metrics; studio records are ignored. A teacher's groups
            are summed across locations and periods, and the first location
            seen is reported.
        trainers: Booking stats supplying visits, no-shows, cancellations and
            classes. Teachers without stats score 100 on attendance and
            commitment and 0 on utilization.

    Returns:
        Scores highest first, each banded HIGH or LOW when more than
        ``BAND_MARGIN`` points from the average score.
    """
    by_trainer = {t.trainer_name: t for t in trainers or []}
    entries: dict[str, PerformanceScore] = {}

    for group in groups:
        if group.is_studio:
            continue
        entry = entries.get(group.teacher_name)
        if entry is None:
            entry = PerformanceScore(teacher_name=group.teacher_name, location=group.location)
            booked = by_trainer.get(group.teacher_name)
            if booked is not None:
                entry.total_visits = booked.total_bookings
                entry.no_shows = booked.no_shows
                entry.cancellations = booked.cancellations
                entry.total_classes = booked.classes
            entries[group.teacher_name] = entry

        entry.new_clients += group.new_clients
        entry.converted_clients += group.converted_clients
        entry.retained_clients += group.retained_clients
        entry.total_revenue += group.total_revenue

    scores = sorted(
        (score_teacher(entry) for entry in entries.values()),
        key=lambda s: s.score,
        reverse=True,
    )
    if not scores:
        return scores

    average = sum(s.score for s in scores) / len(scores)
    for s in scores:
        if s.score > average + BAND_MARGIN:
            s.band = PerformanceBand.HIGH
        elif s.score < average - BAND_MARGIN:
            s.band = PerformanceBand.LOW

    return scores
