# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Calendar arithmetic shared by the report and compliance engines."""

from calendar import monthrange
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import holidays

from timetracking.config import settings

GERMAN_MONTHS = [
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
]

# Start of the "total" period when nobody has an employment start on record
EARLIEST_DATE = date(2000, 1, 1)


class PeriodType:
    """Supported report period types."""

    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"
    TOTAL = "total"
    PROJECT_PERIOD = "project_period"


@dataclass
class DateRange:
    """Inclusive calendar date range."""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        """Check overlap with another inclusive range."""
        return start <= self.end and end >= self.start


# --- Day iteration ---


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_workdays(start: date, end: date) -> int:
    """Count Monday to Friday dates in an inclusive range.

    Args:
        start: First day of the range.
        end: Last day of the range.

    Returns:
        Number of workdays, 0 for an empty range.
    """
    if end < start:
        return 0
    full_weeks, remainder = divmod((end - start).days + 1, 7)
    workdays = full_weeks * 5
    for offset in range(remainder):
        if (start + timedelta(days=full_weeks * 7 + offset)).weekday() < 5:
            workdays += 1
    return workdays


def clamp_range(
    valid_from: date | None,
    valid_to: date | None,
    start: date,
    end: date,
) -> tuple[date, date] | None:
    """Clamp an open-ended validity window to ``[start, end]``.

    Args:
        valid_from: Window start, None meaning unbounded.
        valid_to: Window end, None meaning open-ended.
        start: Range start.
        end: Range end.

    Returns:
        The clamped sub-range, or None if it is empty.
    """
    sub_start = max(valid_from or start, start)
    sub_end = min(valid_to or end, end)
    if sub_end < sub_start:
        return None
    return sub_start, sub_end


def count_full_months(start: date, end: date) -> int:
    """Count calendar months covered from their first to their last day."""
    months = 0
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        last_day = monthrange(year, month)[1]
        if start <= date(year, month, 1) and end >= date(year, month, last_day):
            months += 1
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


# --- Timestamps ---


def local_timezone() -> ZoneInfo:
    """Return the configured timezone for calendar dates."""
    return ZoneInfo(settings.timezone)


def timestamp_to_local_date(timestamp: int) -> date:
    """Convert a Unix timestamp to its calendar date in the local timezone."""
    return datetime.fromtimestamp(timestamp, tz=local_timezone()).date()


def day_start_timestamp(day: date) -> int:
    """Unix timestamp of local midnight at the start of a day."""
    return int(datetime.combine(day, time.min, tzinfo=local_timezone()).timestamp())


def day_end_timestamp(day: date) -> int:
    """Unix timestamp of 23:59:59 local time on a day."""
    return int(
        datetime.combine(day, time(23, 59, 59), tzinfo=local_timezone()).timestamp()
    )


# --- Report periods ---


def month_range(year: int, month: int) -> DateRange:
    """Return the first and last day of a month."""
    last_day = monthrange(year, month)[1]
    return DateRange(date(year, month, 1), date(year, month, last_day))


def quarter_range(year: int, quarter: int) -> DateRange:
    """Return the first and last day of a quarter (1-4)."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"Invalid quarter: {quarter}")
    start_month = (quarter - 1) * 3 + 1
    return DateRange(
        date(year, start_month, 1), month_range(year, start_month + 2).end
    )


def year_range(year: int) -> DateRange:
    """Return January 1st to December 31st of a year."""
    return DateRange(date(year, 1, 1), date(year, 12, 31))


def resolve_period(
    period_type: str,
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    custom_start: date | None = None,
    custom_end: date | None = None,
    total_start: date | None = None,
    today: date | None = None,
) -> DateRange:
    """Resolve a report period to a concrete date range.

    Args:
        period_type: One of month, quarter, year, custom or total.
        year: Calendar year for month, quarter and year periods.
        month: Month number for month periods.
        quarter: Quarter number for quarter periods.
        custom_start: First day of a custom period.
        custom_end: Last day of a custom period.
        total_start: Earliest date of the "total" period.
        today: Last day of the "total" period, defaults to today.

    Returns:
        The inclusive date range.

    Raises:
        ValueError: If required parameters are missing or the type is unknown.
    """
    if period_type == PeriodType.MONTH:
        if year is None or month is None:
            raise ValueError("Month period requires year and month")
        return month_range(year, month)
    if period_type == PeriodType.QUARTER:
        if year is None or quarter is None:
            raise ValueError("Quarter period requires year and quarter")
        return quarter_range(year, quarter)
    if period_type == PeriodType.YEAR:
        if year is None:
            raise ValueError("Year period requires a year")
        return year_range(year)
    if period_type == PeriodType.CUSTOM:
        if custom_start is None or custom_end is None:
            raise ValueError("Custom period requires start and end dates")
        if custom_end < custom_start:
            raise ValueError("Custom period ends before it starts")
        return DateRange(custom_start, custom_end)
    if period_type == PeriodType.TOTAL:
        return DateRange(total_start or EARLIEST_DATE, today or date.today())
    raise ValueError(f"Unknown period type: {period_type}")


def period_label(
    period_type: str,
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    custom_start: date | None = None,
    custom_end: date | None = None,
) -> str:
    """Build the German display label of a report period."""
    if period_type == PeriodType.MONTH and year and month:
        return f"{GERMAN_MONTHS[month - 1]} {year}"
    if period_type == PeriodType.QUARTER and year and quarter:
        return f"Q{quarter} {year}"
    if period_type == PeriodType.YEAR and year:
        return str(year)
    if period_type == PeriodType.CUSTOM and custom_start and custom_end:
        return f"{custom_start:%d.%m.%Y} - {custom_end:%d.%m.%Y}"
    if period_type == PeriodType.PROJECT_PERIOD:
        start = custom_start.isoformat() if custom_start else "?"
        end = custom_end.isoformat() if custom_end else "?"
        return f"Projektzeitraum ({start} - {end})"
    return "Gesamt"


# --- Public holidays ---


def german_public_holidays(
    year: int,
    subdivision: str | None = None,
) -> dict[date, str]:
    """Get German public holidays for a year.

    Args:
        year: The year to get holidays for.
        subdivision: Federal state code (e.g., "NW"), defaults to the
            configured one.

    Returns:
        Dictionary mapping dates to holiday names.
    """
    de_holidays = holidays.country_holidays(
        settings.holiday_country,
        subdiv=subdivision or settings.holiday_subdivision,
        years=year,
        language="de",
    )
    return dict(sorted(de_holidays.items()))
