# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for vacation entitlement, carry-over and balance."""

from datetime import date

import pytest

from timetracking.models import EmploymentType, Vacation, VacationStatus
from timetracking.repository import SqlAlchemyRepository
from timetracking.vacation_balance import VacationBalanceCalculator


@pytest.fixture
def calculator(db_session) -> VacationBalanceCalculator:
    return VacationBalanceCalculator(SqlAlchemyRepository(db_session))


@pytest.fixture
def add_vacation(db_session):
    """Factory for vacations."""

    def _add_vacation(
        user_id: str,
        start: date,
        end: date,
        days: float,
        status: VacationStatus = VacationStatus.APPROVED,
    ) -> Vacation:
        vacation = Vacation(
            user_id=user_id,
            start_date=start,
            end_date=end,
            days=days,
            status=status.value,
        )
        db_session.add(vacation)
        db_session.commit()
        return vacation

    return _add_vacation


class TestProratedVacationDays:
    """Tests for the full-month entitlement rule."""

    def test_full_year(self, calculator, add_settings) -> None:
        """An unbroken period over the year earns the full entitlement."""
        add_settings(
            "alice",
            vacation_days_per_year=30.0,
            employment_start=date(2020, 1, 1),
            valid_from=date(2020, 1, 1),
        )
        assert calculator.prorated_vacation_days("alice", 2024) == 30.0

    def test_mid_year_hire(self, calculator, add_settings) -> None:
        """Hired on July 1st, six full months earn half the days."""
        add_settings(
            "alice",
            vacation_days_per_year=24.0,
            employment_start=date(2024, 7, 1),
            valid_from=date(2024, 1, 1),
        )
        assert calculator.prorated_vacation_days("alice", 2024) == 12.0

    def test_hire_on_second_of_month(self, calculator, add_settings) -> None:
        """The month of a hire after the 1st does not count."""
        add_settings(
            "alice",
            vacation_days_per_year=24.0,
            employment_start=date(2024, 7, 2),
            valid_from=date(2024, 7, 2),
        )
        assert calculator.prorated_vacation_days("alice", 2024) == 10.0

    def test_change_of_entitlement(self, calculator, add_settings) -> None:
        """Each period contributes its own share."""
        add_settings(
            "alice",
            vacation_days_per_year=24.0,
            valid_from=date(2024, 1, 1),
            valid_to=date(2024, 3, 31),
        )
        add_settings(
            "alice",
            vacation_days_per_year=30.0,
            valid_from=date(2024, 4, 1),
        )
        # 3 months of 24 days, 9 months of 30 days
        assert calculator.prorated_vacation_days("alice", 2024) == 28.5

    def test_freelance_earns_nothing(self, calculator, add_settings) -> None:
        """Freelancers have no vacation entitlement."""
        add_settings(
            "fred",
            employment_type=EmploymentType.FREELANCE,
            vacation_days_per_year=25.0,
            valid_from=date(2024, 1, 1),
        )
        assert calculator.prorated_vacation_days("fred", 2024) == 0.0

    def test_undated_record_is_flat(self, calculator, add_settings) -> None:
        """A record without validity dates grants the full annual days."""
        add_settings("alice", vacation_days_per_year=26.0)
        assert calculator.prorated_vacation_days("alice", 2024) == 26.0

    def test_no_settings_uses_default(self, calculator) -> None:
        """Users without settings get the default 20 days."""
        assert calculator.prorated_vacation_days("nobody", 2024) == 20.0


class TestVacationBalance:
    """Tests for carry-over and balance."""

    def test_carry_over_sums_previous_years(
        self, calculator, add_settings, add_vacation
    ) -> None:
        """Unused and overspent days of earlier years are carried forward."""
        add_settings(
            "alice",
            vacation_days_per_year=24.0,
            employment_start=date(2022, 1, 1),
            valid_from=date(2022, 1, 1),
        )
        add_vacation("alice", date(2022, 8, 1), date(2022, 8, 12), 10.0)
        add_vacation("alice", date(2023, 7, 3), date(2023, 8, 11), 30.0)

        expected = sum(
            calculator.prorated_vacation_days("alice", year)
            - calculator.repository.sum_approved_vacation_days("alice", year)
            for year in (2022, 2023)
        )
        assert calculator.carry_over("alice", 2024) == pytest.approx(expected)
        assert calculator.carry_over("alice", 2024) == pytest.approx(8.0)

    def test_no_carry_over_in_first_year(self, calculator, add_settings) -> None:
        """The year of hire has nothing to carry."""
        add_settings(
            "alice",
            employment_start=date(2024, 3, 1),
            valid_from=date(2024, 3, 1),
        )
        assert calculator.carry_over("alice", 2024) == 0.0

    def test_balance(self, calculator, add_settings, add_vacation) -> None:
        """Used and pending days reduce the balance differently."""
        add_settings(
            "alice",
            vacation_days_per_year=24.0,
            employment_start=date(2023, 1, 1),
            valid_from=date(2023, 1, 1),
        )
        add_vacation("alice", date(2023, 8, 1), date(2023, 8, 16), 12.0)
        add_vacation("alice", date(2024, 5, 6), date(2024, 5, 10), 5.0)
        add_vacation(
            "alice",
            date(2024, 9, 2),
            date(2024, 9, 3),
            2.0,
            status=VacationStatus.PENDING,
        )
        add_vacation(
            "alice",
            date(2024, 10, 7),
            date(2024, 10, 8),
            2.0,
            status=VacationStatus.REJECTED,
        )

        balance = calculator.balance("alice", 2024).to_dict()

        assert balance == {
            "year": 2024,
            "entitlement": 24.0,
            "carryOver": 12.0,
            "totalDays": 36.0,
            "usedDays": 5.0,
            "pendingDays": 2.0,
            "remainingDays": 29.0,
            "availableDays": 31.0,
        }
