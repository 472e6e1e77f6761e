# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for credited vacation, sick and holiday hours."""

from datetime import date

import pytest

from timetracking.credited_hours import CreditedHoursCalculator
from timetracking.models import (
    EmploymentType,
    PublicHoliday,
    SickDay,
    Vacation,
    VacationStatus,
)
from timetracking.repository import SqlAlchemyRepository

OCTOBER_START = date(2024, 10, 1)
OCTOBER_END = date(2024, 10, 31)


@pytest.fixture
def calculator(db_session) -> CreditedHoursCalculator:
    return CreditedHoursCalculator(SqlAlchemyRepository(db_session))


@pytest.fixture
def unity_day(db_session) -> PublicHoliday:
    holiday = PublicHoliday(date=date(2024, 10, 3), name="Tag der Deutschen Einheit")
    db_session.add(holiday)
    db_session.commit()
    return holiday


def _vacation(db_session, start, end, days, status=VacationStatus.APPROVED):
    db_session.add(
        Vacation(
            user_id="alice",
            start_date=start,
            end_date=end,
            days=days,
            status=status.value,
        )
    )
    db_session.commit()


def _sick(db_session, start, end, days):
    db_session.add(SickDay(user_id="alice", start_date=start, end_date=end, days=days))
    db_session.commit()


class TestCreditedHours:
    """Tests for CreditedHoursCalculator."""

    def test_holiday_inside_vacation_counts_once(
        self, db_session, calculator, unity_day
    ) -> None:
        """A holiday during approved vacation is credited as vacation only."""
        _vacation(db_session, date(2024, 10, 2), date(2024, 10, 4), 2.0)

        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 8.0, EmploymentType.CONTRACT
        )

        assert "2024-10-03" in credited.vacation_dates
        assert credited.holiday_dates == []
        assert credited.public_holiday_days == 0.0
        assert credited.vacation_days == 2.0
        assert credited.total_credited_hours == 16.0

    def test_holiday_credited(self, calculator, unity_day) -> None:
        """A weekday holiday is credited at the daily hours."""
        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 7.5, EmploymentType.CONTRACT
        )
        assert credited.holiday_dates == ["2024-10-03"]
        assert credited.to_dict()["publicHolidayHours"] == 7.5

    def test_saturday_holiday_credited_sunday_not(
        self, db_session, calculator
    ) -> None:
        """Holidays are credited Monday to Saturday."""
        db_session.add_all(
            [
                PublicHoliday(date=date(2024, 6, 8), name="Samstag"),
                PublicHoliday(date=date(2024, 6, 9), name="Sonntag"),
            ]
        )
        db_session.commit()
        credited = calculator.credited_hours(
            "alice", date(2024, 6, 1), date(2024, 6, 30), 8.0, EmploymentType.CONTRACT
        )
        assert credited.holiday_dates == ["2024-06-08"]

    def test_sick_dates_exclude_vacation(self, db_session, calculator) -> None:
        """Sick days overlapping vacation are listed as vacation."""
        _vacation(db_session, date(2024, 10, 7), date(2024, 10, 8), 2.0)
        _sick(db_session, date(2024, 10, 8), date(2024, 10, 9), 2.0)

        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 8.0, EmploymentType.CONTRACT
        )

        assert credited.vacation_dates == ["2024-10-07", "2024-10-08"]
        assert credited.sick_dates == ["2024-10-09"]
        assert credited.sick_days == 2.0

    def test_pending_vacation_ignored(self, db_session, calculator) -> None:
        """Only approved vacation is credited."""
        _vacation(
            db_session,
            date(2024, 10, 7),
            date(2024, 10, 8),
            2.0,
            status=VacationStatus.PENDING,
        )
        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 8.0, EmploymentType.CONTRACT
        )
        assert credited.vacation_days == 0.0
        assert credited.vacation_dates == []

    def test_intern_gets_no_sick_or_holiday_credit(
        self, db_session, calculator, unity_day
    ) -> None:
        """Interns are credited vacation only."""
        _vacation(db_session, date(2024, 10, 14), date(2024, 10, 14), 1.0)
        _sick(db_session, date(2024, 10, 21), date(2024, 10, 22), 2.0)

        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 4.0, EmploymentType.INTERN
        )

        assert credited.vacation_days == 1.0
        assert credited.sick_days == 0.0
        assert credited.public_holiday_days == 0.0
        assert credited.total_credited_hours == 4.0

    def test_vacation_clamped_to_range(self, db_session, calculator) -> None:
        """Dates outside the range are not listed."""
        _vacation(db_session, date(2024, 9, 30), date(2024, 10, 1), 2.0)
        credited = calculator.credited_hours(
            "alice", OCTOBER_START, OCTOBER_END, 8.0, EmploymentType.CONTRACT
        )
        assert credited.vacation_dates == ["2024-10-01"]
