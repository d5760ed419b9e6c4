"""Metrics pipeline.

Runs the five processing stages in order:
1. Clean - normalize the three exports
2. Link - tag each new visitor with the teacher of their first class
3. Enumerate - exclude friends/family/staff and index teacher/location/period groups
4. Compute - acquisition, retention, conversion and booking metrics per group
5. Aggregate - fold groups into one studio record per location and a grand
   total, and rank teachers using per-trainer booking stats

A progress sink is notified before each stage. One group failing does not
affect the others; the failed group is logged and left out of the results.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from studiostats.metrics.aggregator import aggregate_studios, aggregate_totals
from studiostats.metrics.cohort import Cohort, CohortClassifier
from studiostats.metrics.config import ClassificationRules, FieldMap
from studiostats.metrics.conversion import ConversionEvaluator
from studiostats.metrics.exceptions import GroupComputationError
from studiostats.metrics.linker import VisitLinker
from studiostats.metrics.normalizer import RecordNormalizer, RowData, period_sort_key
from studiostats.metrics.rates import booking_rates, group_bookings
from studiostats.metrics.retention import RetentionEvaluator
from studiostats.metrics.schema import (
    AuditRecord,
    Booking,
    ClientSource,
    GroupMetrics,
    ProcessingResult,
    ProgressUpdate,
)
from studiostats.metrics.trainers import performance_scores, trainer_stats

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[ProgressUpdate], None]


@dataclass
class GroupOutcome:
    """Metrics and audit entries produced by one group."""

    metrics: GroupMetrics
    included: list[AuditRecord] = field(default_factory=list)
    retained: list[AuditRecord] = field(default_factory=list)
    converted: list[AuditRecord] = field(default_factory=list)


class MetricsPipeline:
    """
    Compute teacher and studio metrics from the three booking-platform exports.

    Example:
        >>> pipeline = MetricsPipeline()
        >>> result = pipeline.run(
        ...     new_rows,
        ...     booking_rows,
        ...     sale_rows,
        ...     progress=lambda u: print(u.percentage, u.step),
        ... )
        >>> [m.teacher_name for m in result.processed_data]
        ['Jane', 'All Teachers']
    """

    def __init__(
        self,
        rules: ClassificationRules | None = None,
        field_map: FieldMap | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            rules: Exclusion, bucket and sale-qualification rules.
            field_map: Header variants for the three exports.
        """
        self.rules = rules or ClassificationRules()
        self.normalizer = RecordNormalizer(field_map)
        self.classifier = CohortClassifier(self.rules)

    def _report(self, progress: ProgressReporter | None, percentage: int, step: str) -> None:
        logger.debug(f"[{percentage}%] {step}")
        if progress is None:
            return
        try:
            progress(ProgressUpdate(percentage=percentage, step=step))
        except Exception:
            logger.exception("Progress reporter failed; continuing")

    def run(
        self,
        new_rows: RowData,
        booking_rows: RowData,
        sale_rows: RowData = None,
        progress: ProgressReporter | None = None,
    ) -> ProcessingResult:
        """Run the full pipeline.

        Args:
            new_rows: New-visitor export rows.
            booking_rows: Bookings export rows.
            sale_rows: Payments export rows, or None if no payments file.
            progress: Optional sink for progress updates.

        Returns:
            ProcessingResult with teacher-level records followed by
            studio-level records, the filter dimensions and audit lists.
        """
        result = ProcessingResult()

        # Stage 1: Clean
        self._report(progress, 5, "Cleaning and validating data...")
        visitors = self.normalizer.normalize_new_visitors(new_rows)
        bookings = self.normalizer.normalize_bookings(booking_rows)
        sales = self.normalizer.normalize_sales(sale_rows)

        # Stage 2: Link
        self._report(progress, 20, "Matching records and extracting teacher data...")
        enriched = VisitLinker(bookings).link(visitors)

        # Stage 3: Enumerate
        self._report(progress, 40, "Calculating metrics by location, teacher, and period...")
        teachers, locations, periods = self.classifier.dimensions(enriched, bookings)
        eligible, result.excluded = self.classifier.partition(enriched)
        client_groups = self.classifier.group_clients(eligible)
        booking_groups = group_bookings(bookings)

        # Stage 4: Compute
        self._report(progress, 60, "Calculating client acquisition metrics...")
        retention = RetentionEvaluator(bookings)
        conversion = ConversionEvaluator(sales, self.rules)

        self._report(progress, 80, "Calculating retention and revenue metrics...")
        groups: list[GroupMetrics] = []
        for teacher in teachers:
            for location in locations:
                for period in periods:
                    key = (teacher, location, period)
                    members = client_groups.get(key)
                    if not members:
                        continue
                    try:
                        outcome = self.compute_group(
                            self.classifier.build_cohort(members, *key),
                            booking_groups.get(key, []),
                            retention,
                            conversion,
                        )
                    except GroupComputationError:
                        logger.exception("Skipping group")
                        continue

                    groups.append(outcome.metrics)
                    result.included.extend(outcome.included)
                    result.new_clients.extend(outcome.included)
                    result.retained_clients.extend(outcome.retained)
                    result.converted_clients.extend(outcome.converted)

        logger.info(f"Computed metrics for {len(groups)} teacher/location/period groups")

        # Stage 5: Aggregate
        self._report(progress, 90, "Aggregating studio totals...")
        result.processed_data = groups + aggregate_studios(groups)
        result.totals = aggregate_totals(groups)
        result.trainer_stats = trainer_stats(bookings)
        result.performance = performance_scores(groups, result.trainer_stats)
        result.locations = locations
        result.teachers = teachers
        result.periods = sorted(periods, key=period_sort_key, reverse=True)

        self._report(progress, 100, "Processing complete!")
        return result

    def compute_group(
        self,
        cohort: Cohort,
        bookings: list[Booking],
        retention: RetentionEvaluator,
        conversion: ConversionEvaluator,
    ) -> GroupOutcome:
        """Compute metrics for one non-empty cohort.

        Args:
            cohort: Classified clients of the group.
            bookings: Bookings taught by the group's teacher at its location
                in its period, used for booking-behaviour rates.
            retention: Evaluator over all bookings.
            conversion: Evaluator over all sales.

        Raises:
            GroupComputationError: If any metric could not be computed.
        """
        try:
            retained = retention.evaluate(cohort)
            converted = conversion.evaluate(cohort)
            booked = booking_rates(bookings)

            metrics = GroupMetrics(
                teacher_name=cohort.teacher,
                location=cohort.location,
                period=cohort.period,
                new_clients=cohort.size,
                trials=cohort.count(ClientSource.TRIAL),
                referrals=cohort.count(ClientSource.REFERRAL),
                hosted=cohort.count(ClientSource.HOSTED),
                influencer_signups=cohort.count(ClientSource.INFLUENCER),
                others=cohort.others,
                retained_clients=retained.retained_clients,
                retention_rate=retained.retention_rate,
                converted_clients=converted.converted_clients,
                conversion_rate=converted.conversion_rate,
                total_revenue=converted.total_revenue,
                average_revenue_per_client=converted.average_revenue_per_client,
                no_show_rate=booked.no_show_rate,
                late_cancellation_rate=booked.late_cancellation_rate,
                first_time_buyer_rate=converted.first_time_buyer_rate,
                influencer_conversion_rate=converted.bucket_rate(ClientSource.INFLUENCER),
                referral_conversion_rate=converted.bucket_rate(ClientSource.REFERRAL),
                trial_to_membership_conversion=converted.bucket_rate(ClientSource.TRIAL),
                trial_conversions=converted.bucket_conversions[ClientSource.TRIAL],
                referral_conversions=converted.bucket_conversions[ClientSource.REFERRAL],
                influencer_conversions=converted.bucket_conversions[ClientSource.INFLUENCER],
                new_client_details=cohort.details(),
                retained_client_details=retained.details,
                converted_client_details=converted.details,
                revenue_by_week=converted.revenue_by_week,
                clients_by_source=cohort.source_counts(),
            )
        except Exception as e:
            raise GroupComputationError(cohort.teacher, cohort.location, cohort.period) from e

        return GroupOutcome(
            metrics=metrics,
            included=self.classifier.included_records(cohort),
            retained=retained.audit,
            converted=converted.audit,
        )


def process_data(
    new_rows: RowData,
    booking_rows: RowData,
    sale_rows: RowData = None,
    progress: ProgressReporter | None = None,
    rules: ClassificationRules | None = None,
) -> ProcessingResult:
    """Run the metrics pipeline with default configuration."""
    return MetricsPipeline(rules=rules).run(new_rows, booking_rows, sale_rows, progress)
