# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Credit vacation, sick leave and public holidays as hours."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from timetracking.calendar_utils import clamp_range, iter_days
from timetracking.models import EmploymentType, VacationStatus, capabilities_for
from timetracking.repository import TimeTrackingRepository

# Holidays are credited Monday to Saturday for six-day weeks
LAST_HOLIDAY_CREDIT_WEEKDAY = 5


@dataclass
class CreditedHours:
    """Credited days and hours of a user in a range."""

    daily_hours: float
    vacation_days: float = 0.0
    sick_days: float = 0.0
    public_holiday_days: float = 0.0
    vacation_dates: list[str] = field(default_factory=list)
    sick_dates: list[str] = field(default_factory=list)
    holiday_dates: list[str] = field(default_factory=list)

    @property
    def total_credited_days(self) -> float:
        """Sum of the three day counts."""
        return self.vacation_days + self.sick_days + self.public_holiday_days

    @property
    def total_credited_hours(self) -> float:
        """Credited days converted at the daily contract hours."""
        return round(self.total_credited_days * self.daily_hours, 2)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with report field names."""
        return {
            "vacationDays": self.vacation_days,
            "vacationHours": round(self.vacation_days * self.daily_hours, 2),
            "sickDays": self.sick_days,
            "sickHours": round(self.sick_days * self.daily_hours, 2),
            "publicHolidayDays": self.public_holiday_days,
            "publicHolidayHours": round(self.public_holiday_days * self.daily_hours, 2),
            "totalCreditedDays": self.total_credited_days,
            "totalCreditedHours": self.total_credited_hours,
            "vacationDates": list(self.vacation_dates),
            "sickDates": list(self.sick_dates),
            "holidayDates": list(self.holiday_dates),
        }


class CreditedHoursCalculator:
    """Compute credited hours with each date counted in one category only.

    Priority is vacation, then sick leave, then public holidays.
    """

    def __init__(self, repository: TimeTrackingRepository) -> None:
        self.repository = repository

    def credited_hours(
        self,
        user_id: str,
        start: date,
        end: date,
        daily_hours: float,
        employment_type: EmploymentType | str,
    ) -> CreditedHours:
        """Collect credited days for a user.

        Args:
            user_id: The user ID.
            start: First day of the range.
            end: Last day of the range.
            daily_hours: Hours credited per day.
            employment_type: Decides whether sick leave and holidays count.

        Returns:
            The credited days, hours and dates.
        """
        capabilities = capabilities_for(employment_type)
        result = CreditedHours(daily_hours=daily_hours)

        vacation_dates: set[str] = set()
        for vacation in self.repository.find_vacations_in_range(user_id, start, end):
            if vacation.status != VacationStatus.APPROVED.value:
                continue
            result.vacation_days += vacation.days
            vacation_dates.update(
                self._dates_in_range(vacation.start_date, vacation.end_date, start, end)
            )
        result.vacation_dates = sorted(vacation_dates)

        sick_dates: set[str] = set()
        if capabilities.counts_for_sick_pay:
            sick_days = self.repository.find_sick_days_in_range(user_id, start, end)
            for sick_day in sick_days:
                result.sick_days += sick_day.days
                sick_dates.update(
                    self._dates_in_range(
                        sick_day.start_date, sick_day.end_date, start, end
                    )
                )
            sick_dates -= vacation_dates
        result.sick_dates = sorted(sick_dates)

        holiday_dates: set[str] = set()
        if capabilities.counts_for_holiday_credit:
            claimed = vacation_dates | sick_dates
            for holiday in self.repository.find_public_holidays_in_range(start, end):
                if holiday.date.weekday() > LAST_HOLIDAY_CREDIT_WEEKDAY:
                    continue
                day = holiday.date.isoformat()
                if day not in claimed:
                    holiday_dates.add(day)
        result.holiday_dates = sorted(holiday_dates)
        result.public_holiday_days = float(len(holiday_dates))

        return result

    @staticmethod
    def _dates_in_range(
        record_start: date, record_end: date, start: date, end: date
    ) -> list[str]:
        sub_range = clamp_range(record_start, record_end, start, end)
        if sub_range is None:
            return []
        return [day.isoformat() for day in iter_days(*sub_range)]
