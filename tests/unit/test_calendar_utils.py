# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for calendar arithmetic and report periods."""

from datetime import date

import pytest

from timetracking.calendar_utils import (
    DateRange,
    PeriodType,
    clamp_range,
    count_full_months,
    count_workdays,
    day_end_timestamp,
    day_start_timestamp,
    german_public_holidays,
    period_label,
    resolve_period,
    timestamp_to_local_date,
)


class TestWorkdays:
    """Tests for count_workdays."""

    def test_full_month(self) -> None:
        """June 2024 has 20 workdays."""
        assert count_workdays(date(2024, 6, 1), date(2024, 6, 30)) == 20

    def test_weekend_only(self) -> None:
        """A weekend has no workdays."""
        assert count_workdays(date(2024, 6, 1), date(2024, 6, 2)) == 0

    def test_reversed_range(self) -> None:
        """An empty range has no workdays."""
        assert count_workdays(date(2024, 6, 10), date(2024, 6, 3)) == 0

    def test_single_monday(self) -> None:
        """A single Monday counts once."""
        assert count_workdays(date(2024, 6, 3), date(2024, 6, 3)) == 1


class TestRanges:
    """Tests for clamping and full-month counting."""

    def test_clamp_open_window(self) -> None:
        """Open ends are bounded by the range."""
        assert clamp_range(None, None, date(2024, 1, 1), date(2024, 12, 31)) == (
            date(2024, 1, 1),
            date(2024, 12, 31),
        )

    def test_clamp_partial_window(self) -> None:
        """A window starting inside the range keeps its start."""
        assert clamp_range(
            date(2024, 7, 1), None, date(2024, 1, 1), date(2024, 12, 31)
        ) == (date(2024, 7, 1), date(2024, 12, 31))

    def test_clamp_disjoint_window(self) -> None:
        """A window outside the range clamps to nothing."""
        window = (date(2023, 1, 1), date(2023, 12, 31))
        assert clamp_range(*window, date(2024, 1, 1), date(2024, 12, 31)) is None

    def test_full_months_second_half(self) -> None:
        """July to December are six full months."""
        assert count_full_months(date(2024, 7, 1), date(2024, 12, 31)) == 6

    def test_partial_first_month_not_counted(self) -> None:
        """A month started on the 2nd does not count."""
        assert count_full_months(date(2024, 7, 2), date(2024, 12, 31)) == 5

    def test_partial_last_month_not_counted(self) -> None:
        """A month ending before its last day does not count."""
        assert count_full_months(date(2024, 1, 1), date(2024, 2, 28)) == 1

    def test_date_range_contains(self) -> None:
        """Both bounds belong to the range."""
        date_range = DateRange(date(2024, 6, 1), date(2024, 6, 30))
        assert date(2024, 6, 1) in date_range
        assert date(2024, 6, 30) in date_range
        assert date(2024, 7, 1) not in date_range
        assert date_range.overlaps(date(2024, 6, 30), date(2024, 7, 5))


class TestTimestamps:
    """Tests for local day boundaries."""

    def test_day_bounds_map_to_same_date(self) -> None:
        """Start and end of a local day convert back to that day."""
        day = date(2024, 3, 31)  # daylight saving time starts
        assert timestamp_to_local_date(day_start_timestamp(day)) == day
        assert timestamp_to_local_date(day_end_timestamp(day)) == day

    def test_day_end_is_one_second_before_next_day(self) -> None:
        """The day ends at 23:59:59."""
        day = date(2024, 6, 3)
        next_day = date(2024, 6, 4)
        assert day_start_timestamp(next_day) - day_end_timestamp(day) == 1


class TestResolvePeriod:
    """Tests for report period resolution."""

    def test_month(self) -> None:
        """A month covers its first to last day."""
        assert resolve_period(PeriodType.MONTH, year=2024, month=2) == DateRange(
            date(2024, 2, 1), date(2024, 2, 29)
        )

    def test_quarter(self) -> None:
        """The second quarter runs from April to June."""
        assert resolve_period(PeriodType.QUARTER, year=2024, quarter=2) == DateRange(
            date(2024, 4, 1), date(2024, 6, 30)
        )

    def test_year(self) -> None:
        """A year runs from January 1st to December 31st."""
        date_range = resolve_period(PeriodType.YEAR, year=2024)
        assert date_range.start == date(2024, 1, 1)
        assert date_range.end == date(2024, 12, 31)

    def test_total(self) -> None:
        """The total period ends today."""
        date_range = resolve_period(
            PeriodType.TOTAL, total_start=date(2021, 5, 1), today=date(2024, 6, 15)
        )
        assert date_range == DateRange(date(2021, 5, 1), date(2024, 6, 15))

    def test_custom_reversed(self) -> None:
        """A custom period must not end before it starts."""
        with pytest.raises(ValueError):
            resolve_period(
                PeriodType.CUSTOM,
                custom_start=date(2024, 6, 30),
                custom_end=date(2024, 6, 1),
            )

    def test_invalid_quarter(self) -> None:
        """Quarters are numbered one to four."""
        with pytest.raises(ValueError):
            resolve_period(PeriodType.QUARTER, year=2024, quarter=5)

    def test_missing_month(self) -> None:
        """A monthly period needs a month."""
        with pytest.raises(ValueError):
            resolve_period(PeriodType.MONTH, year=2024)

    def test_unknown_type(self) -> None:
        """Unknown period types are rejected."""
        with pytest.raises(ValueError, match="Unknown period type"):
            resolve_period("week", year=2024)


class TestPeriodLabel:
    """Tests for German period labels."""

    def test_labels(self) -> None:
        """Each period type has its own label."""
        assert period_label(PeriodType.MONTH, 2024, 3) == "März 2024"
        assert period_label(PeriodType.QUARTER, 2024, quarter=2) == "Q2 2024"
        assert period_label(PeriodType.YEAR, 2024) == "2024"
        assert (
            period_label(
                PeriodType.CUSTOM,
                custom_start=date(2024, 6, 1),
                custom_end=date(2024, 6, 30),
            )
            == "01.06.2024 - 30.06.2024"
        )
        assert period_label(PeriodType.TOTAL) == "Gesamt"


class TestPublicHolidays:
    """Tests for German public holidays."""

    def test_national_holiday(self) -> None:
        """German Unity Day is a holiday in every state."""
        assert date(2024, 10, 3) in german_public_holidays(2024, "BE")

    def test_state_holiday(self) -> None:
        """Corpus Christi is a holiday in NW but not in Berlin."""
        assert date(2024, 5, 30) in german_public_holidays(2024, "NW")
        assert date(2024, 5, 30) not in german_public_holidays(2024, "BE")
