"""Configuration for column mappings and classification rules.

The bucket rules are data rather than code: reordering ``source_rules``
changes which bucket wins for a visitor whose labels match several patterns
(``x``, ``p57`` and ``physique`` appear in both the hosted and influencer
rules), so any reordering changes reported counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from studiostats.metrics.schema import ClientSource


@dataclass(frozen=True)
class SourceRule:
    """One row of the acquisition-source rule table.

    Attributes:
        source: Bucket assigned when the rule matches.
        field: NewVisitor attribute the rule inspects
            ("membership_used" or "first_visit").
        pattern: ``|``-separated literal substrings, or the exact value when
            ``exact`` is set.
        exact: Require the field to equal ``pattern`` instead of containing it.
    """

    source: ClientSource
    field: str
    pattern: str
    exact: bool = False


def default_source_rules() -> list[SourceRule]:
    """Bucket rules in precedence order; the first match wins."""
    return [
        SourceRule(
            ClientSource.TRIAL,
            "membership_used",
            "Studio Open Barre Class|Newcomers 2 For 1",
        ),
        SourceRule(
            ClientSource.REFERRAL,
            "membership_used",
            "Studio Complimentary Referral Class",
            exact=True,
        ),
        SourceRule(
            ClientSource.HOSTED,
            "first_visit",
            "hosted|x|p57|physique|weword|rugby|outdoor|birthday|bridal|shower",
        ),
        SourceRule(
            ClientSource.INFLUENCER,
            "membership_used",
            "sign-up|link|influencer|twain|ooo|lrs|x|p57|physique|complimentary",
        ),
    ]


@dataclass
class ClassificationRules:
    """Rules for excluding visitors, bucketing sources and qualifying sales."""

    exclusion_pattern: str = "friends|family|staff"
    source_rules: list[SourceRule] = field(default_factory=default_source_rules)

    # Sales that never count toward conversion
    excluded_sale_categories: str = "product|money-credit"
    excluded_sale_items: str = "2 for 1"

    included_reason: str = "First time visitor"


def default_new_visitor_fields() -> dict[str, list[str]]:
    """Header variants for the new-visitor export."""
    return {
        "first_name": ["First name", "First Name"],
        "last_name": ["Last name", "Last Name"],
        "email": ["Email", "email"],
        "phone": ["Phone number", "Phone Number", "Phone"],
        "payment_method": ["Payment method", "Payment Method"],
        "membership_used": ["Membership used", "Membership Used"],
        "first_visit_at": ["First visit at", "First Visit At"],
        "first_visit": ["First visit", "First Visit"],
        "first_visit_location": ["First visit location", "First Visit Location"],
        "visit_type": ["Visit type", "Visit Type"],
        "home_location": ["Home location", "Home Location"],
    }


def default_booking_fields() -> dict[str, list[str]]:
    """Header variants for the bookings export."""
    return {
        "sale_date": ["Sale Date", "Sale date"],
        "class_name": ["Class Name", "Class name"],
        "class_date": ["Class Date", "Class date"],
        "location": ["Location"],
        "teacher": ["Teacher"],
        "customer_email": ["Customer Email", "Customer email"],
        "payment_method": ["Payment Method", "Payment method"],
        "membership_used": ["Membership used", "Membership Used"],
        "sale_value": ["Sale Value", "Sale value"],
        "sales_tax": ["Sales tax", "Sales Tax"],
        "cancelled": ["Cancelled"],
        "late_cancelled": ["Late Cancelled", "Late cancelled"],
        "no_show": ["No Show", "No show"],
        "sold_by": ["Sold by", "Sold By"],
        "refunded": ["Refunded"],
        "home_location": ["Home location", "Home Location"],
    }


def default_sale_fields() -> dict[str, list[str]]:
    """Header variants for the payments export."""
    return {
        "category": ["Category"],
        "item": ["Item", "Item name"],
        "date": ["Date", "Sale Date"],
        "sale_value": ["Sale Value", "Sale value"],
        "tax": ["Tax", "Sales tax", "Sales Tax"],
        "refunded": ["Refunded"],
        "payment_method": ["Payment method", "Payment Method", "Payment status"],
        "sold_by": ["Sold by", "Sold By"],
        "payer_email": [
            "Paying Customer Email",
            "Paying customer email",
            "Customer Email",
            "Customer email",
        ],
        "payer_name": ["Paying Customer Name", "Paying customer", "Customer Name"],
        "location": ["Location"],
        "note": ["Note", "Notes"],
    }


@dataclass
class FieldMap:
    """Mapping of logical field names to the CSV header variants that hold them.

    Example:
        field_map = FieldMap(
            sale={**default_sale_fields(), "payer_email": ["Buyer Email"]},
        )
    """

    new_visitor: dict[str, list[str]] = field(default_factory=default_new_visitor_fields)
    booking: dict[str, list[str]] = field(default_factory=default_booking_fields)
    sale: dict[str, list[str]] = field(default_factory=default_sale_fields)
