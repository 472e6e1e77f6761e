# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Vacation entitlement and balance calculations.

Entitlement follows the full-month rule of §5 BUrlG: a settings period earns
one twelfth of its annual vacation days for every calendar month it covers
completely. Unused days carry over into the following year without limit,
and overspent days carry over as a negative balance.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from timetracking.calendar_utils import clamp_range, count_full_months, year_range
from timetracking.models import VacationStatus, capabilities_for
from timetracking.repository import TimeTrackingRepository
from timetracking.settings_resolver import SettingsResolver

logger = logging.getLogger(__name__)


@dataclass
class VacationBalance:
    """Vacation balance of a user for one year."""

    year: int
    entitlement: float
    carry_over: float
    used: float
    pending: float

    @property
    def total_days(self) -> float:
        """Entitlement plus carry-over."""
        return self.entitlement + self.carry_over

    @property
    def remaining(self) -> float:
        """Days left after approved and pending requests."""
        return self.total_days - self.used - self.pending

    @property
    def available(self) -> float:
        """Days left after approved requests only."""
        return self.total_days - self.used

    def to_dict(self) -> dict[str, Any]:
        """Serialize with report field names."""
        return {
            "year": self.year,
            "entitlement": round(self.entitlement, 2),
            "carryOver": round(self.carry_over, 2),
            "totalDays": round(self.total_days, 2),
            "usedDays": round(self.used, 2),
            "pendingDays": round(self.pending, 2),
            "remainingDays": round(self.remaining, 2),
            "availableDays": round(self.available, 2),
        }


class VacationBalanceCalculator:
    """Compute prorated entitlements, carry-over and balances."""

    def __init__(self, repository: TimeTrackingRepository) -> None:
        """Initialize the calculator.

        Args:
            repository: Data source for settings periods and vacations.
        """
        self.repository = repository
        self.resolver = SettingsResolver(repository)

    def prorated_vacation_days(self, user_id: str, year: int) -> float:
        """Calculate the vacation entitlement earned in a year.

        Args:
            user_id: The user ID.
            year: The calendar year.

        Returns:
            Entitlement in days, rounded to 2 decimals.
        """
        year_span = year_range(year)
        periods = self.repository.find_settings_periods_in_range(
            user_id, year_span.start, year_span.end
        )
        if not periods:
            current = self.resolver.current_settings(user_id)
            if not capabilities_for(current.employment_type).counts_for_vacation:
                return 0.0
            return max(current.vacation_days_per_year, 0.0)

        entitlement = 0.0
        for period in periods:
            if period.vacation_days_per_year <= 0:
                continue
            if not capabilities_for(period.employment_type).counts_for_vacation:
                continue
            sub_range = clamp_range(
                period.valid_from, period.valid_to, year_span.start, year_span.end
            )
            if sub_range is None:
                continue
            sub_start, sub_end = sub_range
            hired = period.employment_start
            if hired is not None and hired in year_span and hired > sub_start:
                sub_start = hired
            if sub_end < sub_start:
                continue
            full_months = count_full_months(sub_start, sub_end)
            entitlement += period.vacation_days_per_year * (full_months / 12)

        return round(entitlement, 2)

    def first_year(self, user_id: str) -> int | None:
        """Year employment started, from periods or the current record."""
        starts: list[date] = []
        for period in self.repository.find_all_settings_periods(user_id):
            start = period.employment_start or period.valid_from
            if start is not None:
                starts.append(start)
        if not starts:
            current = self.repository.find_current_settings(user_id)
            if current is not None and current.employment_start is not None:
                starts.append(current.employment_start)
        return min(starts).year if starts else None

    def carry_over(self, user_id: str, year: int) -> float:
        """Sum of unused entitlement of every earlier year of employment.

        Args:
            user_id: The user ID.
            year: The year the carry-over flows into.

        Returns:
            The carried days, negative if earlier years were overspent.
        """
        first_year = self.first_year(user_id)
        if first_year is None or first_year >= year:
            return 0.0

        carried = 0.0
        for past_year in range(first_year, year):
            entitlement = self.prorated_vacation_days(user_id, past_year)
            used = self.repository.sum_approved_vacation_days(user_id, past_year)
            carried += entitlement - used
        logger.debug(
            f"Carry-over into {year} for user {user_id}: {carried:.2f} days "
            f"from {year - first_year} years"
        )
        return carried

    def balance(self, user_id: str, year: int) -> VacationBalance:
        """Compute the vacation balance of a user for a year.

        Args:
            user_id: The user ID.
            year: The calendar year.

        Returns:
            Entitlement, carry-over, used and pending days.
        """
        year_span = year_range(year)
        used = 0.0
        pending = 0.0
        for vacation in self.repository.find_vacations_in_range(
            user_id, year_span.start, year_span.end
        ):
            if vacation.status == VacationStatus.APPROVED.value:
                used += vacation.days
            elif vacation.status == VacationStatus.PENDING.value:
                pending += vacation.days

        return VacationBalance(
            year=year,
            entitlement=self.prorated_vacation_days(user_id, year),
            carry_over=self.carry_over(user_id, year),
            used=used,
            pending=pending,
        )
