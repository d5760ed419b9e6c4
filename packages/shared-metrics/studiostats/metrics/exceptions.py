"""Custom exceptions for the metrics engine."""

from __future__ import annotations


class StudioStatsError(Exception):
    """Base exception for Studio Stats errors."""

    pass


class MissingInputError(StudioStatsError):
    """Raised when a required export file was not supplied."""

    def __init__(self, role: str, hint: str):
        self.role = role
        super().__init__(
            f"Missing {role} file. Please upload a file with \"{hint}\" in the name"
        )


class GroupComputationError(StudioStatsError):
    """Raised when metrics for a single teacher/location/period group fail."""

    def __init__(self, teacher: str, location: str, period: str):
        self.teacher = teacher
        self.location = location
        self.period = period
        super().__init__(
            f"Failed to compute metrics for {teacher} / {location} / {period}"
        )
