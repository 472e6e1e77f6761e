# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Domain errors raised by repositories and services.

All errors are ``ValueError`` subclasses so callers that only know about
validation failures keep working.
"""


class TimeTrackingError(ValueError):
    """Base class for domain errors, with a machine-readable code."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NotFoundError(TimeTrackingError):
    """A referenced record does not exist."""

    code = "NOT_FOUND"


class PermissionDeniedError(TimeTrackingError):
    """The acting user may not touch the record."""

    code = "FORBIDDEN"


class DateRangeConflictError(TimeTrackingError):
    """A vacation, sick leave or settings period collides with another."""

    code = "DATE_RANGE_CONFLICT"


class OverlapError(TimeTrackingError):
    """A time entry overlaps another entry of the same user."""

    code = "TIME_ENTRY_OVERLAP"
