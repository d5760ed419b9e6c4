"""
Conversion - find new clients who made a qualifying purchase.

A sale qualifies for a client when:
- the payer email equals the client's email
- the sale date is strictly after the client's first visit
- the category is not a product or money credit
- the item is not a "2 for 1" intro offer
- the sale value is positive and the sale was not refunded

Every qualifying sale counts toward revenue, including repeat purchases by
a client who has already converted.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from studiostats.metrics.cohort import Cohort
from studiostats.metrics.config import ClassificationRules
from studiostats.metrics.normalizer import to_date, week_start
from studiostats.metrics.patterns import matches
from studiostats.metrics.rates import YES, percentage, safe_divide
from studiostats.metrics.schema import (
    AuditRecord,
    ClientDetail,
    ClientSource,
    EnrichedNewClient,
    Sale,
    WeeklyRevenue,
)

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Converted clients and revenue of one cohort."""

    new_clients: int
    details: list[ClientDetail] = field(default_factory=list)
    audit: list[AuditRecord] = field(default_factory=list)
    total_revenue: float = 0.0
    revenue_by_week: list[WeeklyRevenue] = field(default_factory=list)

    # Converted clients per acquisition bucket
    bucket_conversions: dict[ClientSource, int] = field(default_factory=dict)
    bucket_sizes: dict[ClientSource, int] = field(default_factory=dict)

    @property
    def converted_clients(self) -> int:
        return len(self.details)

    @property
    def conversion_rate(self) -> float:
        return percentage(self.converted_clients, self.new_clients)

    @property
    def average_revenue_per_client(self) -> float:
        return safe_divide(self.total_revenue, self.converted_clients)

    @property
    def first_time_buyer_rate(self) -> float:
        # Every converted client is a first-time buyer by construction
        return percentage(self.converted_clients, self.new_clients)

    def bucket_rate(self, source: ClientSource) -> float:
        """Share of a bucket's clients who converted, as a percentage."""
        return percentage(
            self.bucket_conversions.get(source, 0),
            self.bucket_sizes.get(source, 0),
        )


class ConversionEvaluator:
    """
    Decide which new clients converted and total their revenue.

    Example:
        >>> evaluator = ConversionEvaluator(sales)
        >>> result = evaluator.evaluate(cohort)
        >>> result.total_revenue
        150.0
    """

    def __init__(
        self,
        sales: list[Sale] | None,
        rules: ClassificationRules | None = None,
    ) -> None:
        """
        Index sales by payer email.

        Args:
            sales: Normalized sale rows. None or empty means no payments
                export was supplied and nobody converts.
            rules: Category and item patterns that disqualify a sale.
        """
        self.rules = rules or ClassificationRules()
        self._by_email: dict[str, list[Sale]] = defaultdict(list)
        for sale in sales or []:
            self._by_email[sale.payer_email].append(sale)

    def is_qualifying(self, sale: Sale) -> bool:
        """Check the date-independent conditions on a sale."""
        if matches(sale.category, self.rules.excluded_sale_categories):
            return False
        if matches(sale.item, self.rules.excluded_sale_items):
            return False
        if sale.sale_value <= 0:
            return False
        return sale.refunded != YES

    def qualifying_sales(self, client: EnrichedNewClient) -> list[Sale]:
        """Qualifying sales for ``client``, earliest first."""
        first_visit = to_date(client.first_visit_at)
        if first_visit is None or not client.email:
            return []

        dated = []
        for sale in self._by_email.get(client.email, []):
            sale_date = to_date(sale.date)
            if sale_date is None or sale_date <= first_visit:
                continue
            try:
                qualifying = self.is_qualifying(sale)
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed sale for {client.email} on {sale.date}: {e}")
                continue
            if qualifying:
                dated.append((sale_date, sale))

        # Stable sort keeps export order for same-day sales
        dated.sort(key=lambda pair: pair[0])
        return [sale for _, sale in dated]

    def evaluate(self, cohort: Cohort) -> ConversionResult:
        """Evaluate conversion for every client in ``cohort``."""
        result = ConversionResult(new_clients=cohort.size)
        weekly: dict[str, float] = {}
        converted: set[str] = set()
        seen: set[str] = set()

        for client in cohort.clients:
            if client.email in seen:
                continue
            seen.add(client.email)

            sales = self.qualifying_sales(client)
            if not sales:
                continue

            converted.add(client.email)
            value = sum(s.sale_value for s in sales)
            first_sale = sales[0]
            result.total_revenue += value

            for sale in sales:
                week = week_start(sale.date)
                weekly[week] = weekly.get(week, 0.0) + sale.sale_value

            result.details.append(
                ClientDetail(
                    email=client.email,
                    name=client.full_name,
                    date=first_sale.date,
                    value=value,
                    membership_type=first_sale.item,
                )
            )
            result.audit.append(
                AuditRecord(
                    record=dict(client.raw_data),
                    reason=f"Purchased {first_sale.item} on {first_sale.date}",
                )
            )

        result.revenue_by_week = [
            WeeklyRevenue(week=week, revenue=revenue)
            for week, revenue in sorted(weekly.items())
        ]

        for source in (ClientSource.TRIAL, ClientSource.REFERRAL, ClientSource.INFLUENCER):
            emails = cohort.emails_in(source)
            result.bucket_sizes[source] = cohort.count(source)
            result.bucket_conversions[source] = len(emails & converted)

        return result
