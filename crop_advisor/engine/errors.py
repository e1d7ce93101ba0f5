"""
Exception hierarchy for the crop advisor.

``RowParseError`` never escapes the CSV loader — a bad row is logged and
dropped. ``InsufficientDataError`` is raised only under the ``"strict"``
matching policy. ``PlanServiceError`` is caught by the plan composer,
which substitutes the templated plan.
"""

from __future__ import annotations


class CropAdvisorError(Exception):
    """Base class for all crop advisor errors."""


class RowParseError(CropAdvisorError):
    """A dataset row could not be converted into a typed record."""

    def __init__(self, line_no: int, reason: str) -> None:
        self.line_no = line_no
        self.reason = reason
        super().__init__(f"Row {line_no}: {reason}")


class InsufficientDataError(CropAdvisorError):
    """Too few historical records matched to give a reliable answer.

    Attributes:
        found: Number of matching records (or confidence percent).
        required: Minimum needed.
    """

    def __init__(self, message: str, found: int = 0, required: int = 0) -> None:
        self.found = found
        self.required = required
        super().__init__(message)


class PlanServiceError(CropAdvisorError):
    """The generative plan service failed or returned an unusable plan."""
