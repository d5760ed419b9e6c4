"""Shared pytest fixtures for Studio Stats packages."""

import pytest


@pytest.fixture
def sample_new_visitor_rows():
    """Sample new-visitor export rows for testing."""
    return [
        {
            "First name": "Ada",
            "Last name": "Lovelace",
            "Email": "ada@example.com",
            "Membership used": "Studio Open Barre Class",
            "First visit at": "2024-01-05, 6:30 PM",
            "First visit": "Class - Trial Class",
            "First visit location": "Downtown",
        },
        {
            "First name": "Grace",
            "Last name": "Hopper",
            "Email": "grace@example.com",
            "Membership used": "Staff Complimentary",
            "First visit at": "2024-01-06",
            "First visit": "Barre 60",
            "First visit location": "Downtown",
        },
    ]


@pytest.fixture
def sample_booking_rows():
    """Sample bookings export rows for testing."""
    return [
        {
            "Class Name": "Trial Class",
            "Class Date": "01/05/2024",
            "Location": "Downtown",
            "Teacher": "Jane",
            "Customer Email": "ada@example.com",
            "Cancelled": "NO",
            "Late Cancelled": "NO",
            "No Show": "NO",
        },
        {
            "Class Name": "Barre 60",
            "Class Date": "2024-01-06",
            "Location": "Downtown",
            "Teacher": "Jane",
            "Customer Email": "grace@example.com",
            "Cancelled": "NO",
            "Late Cancelled": "NO",
            "No Show": "NO",
        },
        {
            "Class Name": "Barre 60",
            "Class Date": "2024-01-12",
            "Location": "Downtown",
            "Teacher": "Jane",
            "Customer Email": "ada@example.com",
            "Cancelled": "NO",
            "Late Cancelled": "NO",
            "No Show": "NO",
        },
    ]


@pytest.fixture
def sample_sale_rows():
    """Sample payments export rows for testing."""
    return [
        {
            "Category": "Membership",
            "Item": "Monthly Unlimited",
            "Date": "2024-01-20",
            "Sale Value": "$150.00",
            "Refunded": "NO",
            "Paying Customer Email": "ada@example.com",
        },
        {
            "Category": "Product",
            "Item": "Grip Socks",
            "Date": "2024-01-20",
            "Sale Value": "$15.00",
            "Refunded": "NO",
            "Paying Customer Email": "ada@example.com",
        },
    ]
