# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for period-aware settings resolution."""

from datetime import date

import pytest

from timetracking.models import EmploymentType
from timetracking.repository import SqlAlchemyRepository
from timetracking.settings_resolver import (
    SettingsResolver,
    expected_hours_across_periods,
)

JUNE_START = date(2024, 6, 1)
JUNE_END = date(2024, 6, 30)


@pytest.fixture
def resolver(db_session) -> SettingsResolver:
    return SettingsResolver(SqlAlchemyRepository(db_session))


class TestSettingsAt:
    """Tests for settings in effect on a day."""

    def test_default_without_records(self, resolver) -> None:
        """Users without settings get the built-in default."""
        settings = resolver.settings_at("alice", date(2024, 6, 3))
        assert settings.is_default
        assert settings.employment_type == EmploymentType.CONTRACT
        assert settings.weekly_hours == 40.0
        assert settings.vacation_days_per_year == 20.0

    def test_period_in_effect(self, resolver, add_settings) -> None:
        """The period covering the day wins over the current record."""
        add_settings(
            "alice",
            weekly_hours=40.0,
            valid_from=date(2024, 1, 1),
            valid_to=date(2024, 6, 30),
        )
        add_settings(
            "alice",
            employment_type=EmploymentType.STUDENT,
            weekly_hours=20.0,
            valid_from=date(2024, 7, 1),
        )
        assert resolver.settings_at("alice", date(2024, 6, 30)).weekly_hours == 40.0
        july = resolver.settings_at("alice", date(2024, 7, 1))
        assert july.weekly_hours == 20.0
        assert july.employment_type == EmploymentType.STUDENT

    def test_before_first_period_uses_current(self, resolver, add_settings) -> None:
        """Days before any period fall back to the current record."""
        add_settings("alice", weekly_hours=30.0, valid_from=date(2024, 1, 1))
        assert resolver.settings_at("alice", date(2023, 6, 1)).weekly_hours == 30.0

    def test_ended_employment_uses_default(self, resolver, add_settings) -> None:
        """Closed periods are not reused after they end."""
        add_settings(
            "alice",
            weekly_hours=30.0,
            hourly_rate=55.0,
            valid_from=date(2023, 1, 1),
            valid_to=date(2023, 12, 31),
        )
        settings = resolver.settings_at("alice", date(2024, 6, 3))
        assert settings.is_default
        assert settings.weekly_hours == 40.0
        assert resolver.current_settings("alice").is_default

    def test_overlapping_periods_use_earliest(self, resolver, add_settings) -> None:
        """Overlapping periods resolve to the earliest one."""
        add_settings("alice", weekly_hours=40.0, valid_from=date(2024, 1, 1))
        add_settings("alice", weekly_hours=25.0, valid_from=date(2024, 3, 1))
        assert resolver.settings_at("alice", date(2024, 6, 3)).weekly_hours == 40.0


class TestAggregateOverRange:
    """Tests for workday-weighted aggregation."""

    def test_mid_month_change(self, resolver, add_settings) -> None:
        """Weekly hours are weighted by the workdays of each period."""
        add_settings(
            "alice",
            weekly_hours=40.0,
            hourly_rate=50.0,
            valid_from=date(2024, 1, 1),
            valid_to=date(2024, 6, 16),
        )
        add_settings(
            "alice",
            weekly_hours=20.0,
            hourly_rate=70.0,
            valid_from=date(2024, 6, 17),
        )

        aggregated = resolver.aggregate_over_range("alice", JUNE_START, JUNE_END)

        assert aggregated.weekly_hours == pytest.approx(30.0)
        assert aggregated.daily_hours == pytest.approx(6.0)
        assert aggregated.hourly_rate == pytest.approx(60.0)
        assert aggregated.max_total_hours is None
        assert [p.valid_from for p in aggregated.periods] == [
            JUNE_START,
            date(2024, 6, 17),
        ]
        assert expected_hours_across_periods(
            aggregated.periods, JUNE_START, JUNE_END
        ) == pytest.approx(120.0)

    def test_dominant_type_by_workdays(self, resolver, add_settings) -> None:
        """The type with most workdays dominates, ties go to the earlier one."""
        add_settings(
            "alice",
            employment_type=EmploymentType.INTERN,
            valid_from=date(2024, 1, 1),
            valid_to=date(2024, 6, 14),
        )
        add_settings(
            "alice",
            employment_type=EmploymentType.CONTRACT,
            valid_from=date(2024, 6, 15),
        )
        aggregated = resolver.aggregate_over_range("alice", JUNE_START, JUNE_END)
        assert aggregated.employment_type == EmploymentType.INTERN

    def test_max_total_hours_single_period(self, resolver, add_settings) -> None:
        """The hour cap is only reported for a single period."""
        add_settings(
            "fred",
            employment_type=EmploymentType.FREELANCE,
            vacation_days_per_year=0.0,
            max_total_hours=500.0,
            valid_from=date(2024, 1, 1),
        )
        aggregated = resolver.aggregate_over_range("fred", JUNE_START, JUNE_END)
        assert aggregated.employment_type == EmploymentType.FREELANCE
        assert aggregated.max_total_hours == 500.0

    def test_fallback_spans_range(self, resolver, add_settings) -> None:
        """Without dated periods the current record covers the whole range."""
        add_settings("alice", weekly_hours=32.0)
        aggregated = resolver.aggregate_over_range("alice", JUNE_START, JUNE_END)
        assert aggregated.weekly_hours == 32.0
        assert len(aggregated.periods) == 1
        assert aggregated.periods[0].valid_from == JUNE_START
        assert aggregated.periods[0].valid_to == JUNE_END

    def test_weekend_range_does_not_divide_by_zero(
        self, resolver, add_settings
    ) -> None:
        """A range without workdays still aggregates."""
        add_settings("alice", weekly_hours=40.0, valid_from=date(2024, 1, 1))
        aggregated = resolver.aggregate_over_range(
            "alice", date(2024, 6, 1), date(2024, 6, 2)
        )
        assert aggregated.weekly_hours == 0.0
