"""Pytest fixtures for shared-metrics tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest


def make_new_row(**overrides: Any) -> dict[str, Any]:
    """Build a new-visitor export row with sensible defaults."""
    row = {
        "First name": "Ada",
        "Last name": "Lovelace",
        "Email": "a@x.com",
        "Phone number": "555-0100",
        "Payment method": "Card",
        "Membership used": "Studio Open Barre Class",
        "First visit at": "2024-01-05",
        "First visit": "Trial Class",
        "First visit location": "Downtown",
        "Visit type": "In person",
        "Home location": "Downtown",
    }
    row.update(overrides)
    return row


def make_booking_row(**overrides: Any) -> dict[str, Any]:
    """Build a bookings export row with sensible defaults."""
    row = {
        "Sale Date": "2024-01-01",
        "Class Name": "Trial Class",
        "Class Date": "2024-01-05",
        "Location": "Downtown",
        "Teacher": "Jane",
        "Customer Email": "a@x.com",
        "Payment Method": "Card",
        "Membership used": "Studio Open Barre Class",
        "Sale Value": "0",
        "Sales tax": "0",
        "Cancelled": "NO",
        "Late Cancelled": "NO",
        "No Show": "NO",
        "Sold by": "Front Desk",
        "Refunded": "NO",
        "Home location": "Downtown",
    }
    row.update(overrides)
    return row


def make_sale_row(**overrides: Any) -> dict[str, Any]:
    """Build a payments export row with sensible defaults."""
    row = {
        "Category": "membership",
        "Item": "Monthly Unlimited",
        "Date": "2024-01-20",
        "Sale Value": 150,
        "Tax": "0",
        "Refunded": "NO",
        "Payment method": "Card",
        "Sold by": "Front Desk",
        "Customer Email": "a@x.com",
        "Paying Customer Name": "Ada Lovelace",
        "Location": "Downtown",
        "Note": "",
    }
    row.update(overrides)
    return row


@pytest.fixture
def new_row() -> Callable[..., dict[str, Any]]:
    """Factory for new-visitor rows."""
    return make_new_row


@pytest.fixture
def booking_row() -> Callable[..., dict[str, Any]]:
    """Factory for booking rows."""
    return make_booking_row


@pytest.fixture
def sale_row() -> Callable[..., dict[str, Any]]:
    """Factory for payment rows."""
    return make_sale_row


@pytest.fixture
def example_rows() -> tuple[list[dict], list[dict], list[dict]]:
    """One trial client who returned a week later and bought a membership."""
    new_rows = [make_new_row()]
    booking_rows = [
        make_booking_row(),
        make_booking_row(**{"Class Name": "Barre 60", "Class Date": "2024-01-12"}),
    ]
    sale_rows = [make_sale_row()]
    return new_rows, booking_rows, sale_rows
