# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Period-aware lookup of employee settings."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Protocol

from timetracking.calendar_utils import clamp_range, count_workdays
from timetracking.models import EmployeeSettings, EmploymentType
from timetracking.repository import TimeTrackingRepository

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYMENT_TYPE = EmploymentType.CONTRACT
DEFAULT_WEEKLY_HOURS = 40.0
DEFAULT_VACATION_DAYS = 20.0


class SettingsWindow(Protocol):
    """Anything with a validity window and weekly hours."""

    valid_from: date | None
    valid_to: date | None
    weekly_hours: float


@dataclass
class ResolvedSettings:
    """Employment settings in effect, detached from the database row."""

    employment_type: EmploymentType
    weekly_hours: float
    vacation_days_per_year: float
    hourly_rate: float | None = None
    max_total_hours: float | None = None
    employment_start: date | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    is_default: bool = False

    @property
    def daily_hours(self) -> float:
        """Contract hours per day on a five-day week."""
        return self.weekly_hours / 5

    @classmethod
    def from_model(cls, settings: EmployeeSettings) -> "ResolvedSettings":
        """Copy a settings row."""
        return cls(
            employment_type=EmploymentType(settings.employment_type),
            weekly_hours=settings.weekly_hours,
            vacation_days_per_year=settings.vacation_days_per_year,
            hourly_rate=settings.hourly_rate,
            max_total_hours=settings.max_total_hours,
            employment_start=settings.employment_start,
            valid_from=settings.valid_from,
            valid_to=settings.valid_to,
        )

    @classmethod
    def default(cls) -> "ResolvedSettings":
        """Settings assumed for users without any record."""
        return cls(
            employment_type=DEFAULT_EMPLOYMENT_TYPE,
            weekly_hours=DEFAULT_WEEKLY_HOURS,
            vacation_days_per_year=DEFAULT_VACATION_DAYS,
            is_default=True,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with report field names."""
        return {
            "employmentType": self.employment_type.value,
            "weeklyHours": self.weekly_hours,
            "vacationDaysPerYear": self.vacation_days_per_year,
            "hourlyRate": self.hourly_rate,
            "maxTotalHours": self.max_total_hours,
            "employmentStart": _iso(self.employment_start),
            "validFrom": _iso(self.valid_from),
            "validTo": _iso(self.valid_to),
        }


@dataclass
class AggregatedSettings:
    """Workday-weighted settings over a date range."""

    employment_type: EmploymentType
    weekly_hours: float
    vacation_days_per_year: float
    hourly_rate: float | None
    max_total_hours: float | None
    periods: list[ResolvedSettings] = field(default_factory=list)

    @property
    def daily_hours(self) -> float:
        """Weighted contract hours per day."""
        return self.weekly_hours / 5

    def to_dict(self) -> dict[str, Any]:
        """Serialize with values rounded for reporting."""
        return {
            "employmentType": self.employment_type.value,
            "weeklyHours": round(self.weekly_hours, 2),
            "dailyHours": round(self.daily_hours, 2),
            "vacationDaysPerYear": round(self.vacation_days_per_year, 2),
            "hourlyRate": (
                round(self.hourly_rate, 2) if self.hourly_rate is not None else None
            ),
            "maxTotalHours": self.max_total_hours,
            "periods": [period.to_dict() for period in self.periods],
        }


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def expected_hours_across_periods(
    periods: Sequence[SettingsWindow],
    range_start: date,
    range_end: date,
) -> float:
    """Sum contract hours over the workdays each period covers in a range.

    Each period contributes its own ``weekly_hours / 5`` per Mon-Fri day of
    its validity clamped to the range, so a mid-range change of hours is
    reflected exactly.

    Args:
        periods: Settings periods.
        range_start: First day of the range.
        range_end: Last day of the range.

    Returns:
        Unrounded expected hours.
    """
    expected = 0.0
    for period in periods:
        sub_range = clamp_range(
            period.valid_from, period.valid_to, range_start, range_end
        )
        if sub_range is None:
            continue
        expected += count_workdays(*sub_range) * (period.weekly_hours / 5)
    return expected


class SettingsResolver:
    """Resolve settings for a user at a date or across a range."""

    def __init__(self, repository: TimeTrackingRepository) -> None:
        """Initialize the resolver.

        Args:
            repository: Data source for settings periods.
        """
        self.repository = repository

    def current_settings(self, user_id: str) -> ResolvedSettings:
        """Current record of a user, or the built-in default."""
        current = self.repository.find_current_settings(user_id)
        if current is None:
            return ResolvedSettings.default()
        return ResolvedSettings.from_model(current)

    def settings_at(self, user_id: str, day: date) -> ResolvedSettings:
        """Get the settings in effect on a day.

        Overlapping periods resolve to the first one in repository order.

        Args:
            user_id: The user ID.
            day: The day to resolve.

        Returns:
            The matching period, the current record, or the default.
        """
        periods = self.repository.find_settings_periods_in_range(user_id, day, day)
        if periods:
            if len(periods) > 1:
                logger.warning(
                    f"User {user_id} has {len(periods)} overlapping settings "
                    f"periods on {day}, using the earliest"
                )
            return ResolvedSettings.from_model(periods[0])
        return self.current_settings(user_id)

    def aggregate_over_range(
        self, user_id: str, start: date, end: date
    ) -> AggregatedSettings:
        """Weight settings of all periods overlapping a range by workdays.

        Weekly hours and vacation days are divided by the range's workday
        count, the hourly rate by the workdays of periods that carry one.
        Divisors of zero are replaced by one.

        Args:
            user_id: The user ID.
            start: First day of the range.
            end: Last day of the range.

        Returns:
            The aggregated settings with the contributing periods, each
            clamped to the range.
        """
        rows = self.repository.find_settings_periods_in_range(user_id, start, end)
        if not rows:
            fallback = replace(
                self.current_settings(user_id), valid_from=start, valid_to=end
            )
            return AggregatedSettings(
                employment_type=fallback.employment_type,
                weekly_hours=fallback.weekly_hours,
                vacation_days_per_year=fallback.vacation_days_per_year,
                hourly_rate=fallback.hourly_rate,
                max_total_hours=fallback.max_total_hours,
                periods=[fallback],
            )

        total_workdays = count_workdays(start, end) or 1
        weekly_hours = 0.0
        vacation_days = 0.0
        rate_sum = 0.0
        rate_workdays = 0
        has_rate = False
        type_workdays: dict[EmploymentType, int] = {}
        periods: list[ResolvedSettings] = []

        for row in rows:
            period = ResolvedSettings.from_model(row)
            sub_range = clamp_range(period.valid_from, period.valid_to, start, end)
            if sub_range is None:
                continue
            period.valid_from, period.valid_to = sub_range
            workdays = count_workdays(*sub_range)

            weekly_hours += period.weekly_hours * workdays
            vacation_days += period.vacation_days_per_year * workdays
            if period.hourly_rate:
                has_rate = True
                rate_sum += period.hourly_rate * workdays
                rate_workdays += workdays
            type_workdays[period.employment_type] = (
                type_workdays.get(period.employment_type, 0) + workdays
            )
            periods.append(period)

        # Dict order is first appearance, so ties go to the earlier period
        dominant_type = DEFAULT_EMPLOYMENT_TYPE
        most_workdays = -1
        for employment_type, workdays in type_workdays.items():
            if workdays > most_workdays:
                dominant_type = employment_type
                most_workdays = workdays

        return AggregatedSettings(
            employment_type=dominant_type,
            weekly_hours=weekly_hours / total_workdays,
            vacation_days_per_year=vacation_days / total_workdays,
            hourly_rate=rate_sum / (rate_workdays or 1) if has_rate else None,
            max_total_hours=periods[0].max_total_hours if len(periods) == 1 else None,
            periods=periods,
        )
