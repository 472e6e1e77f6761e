# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Working-time compliance checks (Arbeitszeitgesetz)."""

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from timetracking.calendar_utils import (
    day_end_timestamp,
    day_start_timestamp,
    german_public_holidays,
    iter_days,
    timestamp_to_local_date,
)
from timetracking.models import TimeEntry
from timetracking.repository import TimeTrackingRepository
from timetracking.schemas import ComplianceFinding

logger = logging.getLogger(__name__)

SUNDAY = 6


@dataclass
class ComplianceResult:
    """Result of a compliance check over a period."""

    start: date
    end: date
    violations: list[ComplianceFinding] = field(default_factory=list)
    warnings: list[ComplianceFinding] = field(default_factory=list)
    statistics: dict[str, Any] = field(default_factory=dict)

    @property
    def compliant(self) -> bool:
        """True if no violation was found."""
        return not self.violations

    def add(self, findings: list[ComplianceFinding]) -> None:
        """Sort findings into violations and warnings."""
        for finding in findings:
            if finding.is_violation:
                self.violations.append(finding)
            else:
                self.warnings.append(finding)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with report field names."""
        return {
            "compliant": self.compliant,
            "violationCount": len(self.violations),
            "warningCount": len(self.warnings),
            "violations": [finding.to_dict() for finding in self.violations],
            "warnings": [finding.to_dict() for finding in self.warnings],
            "period": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "statistics": self.statistics,
        }


class ComplianceValidator(ABC):
    """Base class for country-specific labor law validation."""

    @abstractmethod
    def validate_daily_hours(self, day: date, minutes: int) -> list[ComplianceFinding]:
        """Check daily hour limits."""
        ...

    @abstractmethod
    def validate_weekly_hours(
        self, week_start: date, minutes: int
    ) -> list[ComplianceFinding]:
        """Check the hour limit of a seven-day window."""
        ...

    @abstractmethod
    def validate_breaks(
        self, day: date, worked_minutes: int, break_minutes: int
    ) -> list[ComplianceFinding]:
        """Check mandatory breaks."""
        ...

    @abstractmethod
    def validate_rest_period(
        self, day: date, previous_end: int | None, first_start: int | None
    ) -> list[ComplianceFinding]:
        """Check rest between the previous day's work and today's."""
        ...

    @abstractmethod
    def validate_rest_day(
        self, day: date, minutes: int, holiday_name: str | None = None
    ) -> list[ComplianceFinding]:
        """Check work on Sundays and public holidays."""
        ...


class GermanComplianceValidator(ComplianceValidator):
    """German labor law (Arbeitszeitgesetz) validator.

    Key rules:
    - Regular 8 hours per day, extendable to at most 10 hours (§3)
    - At most 48 hours in any seven consecutive days (§3)
    - 30 minutes break above 6 hours, 45 minutes above 9 hours (§4)
    - Minimum 11 hours rest between working days (§5)
    - Sundays and public holidays require a substitute rest day (§9, §11)
    """

    DAILY_NORMAL_HOURS = 8
    DAILY_MAX_HOURS = 10
    WEEKLY_MAX_HOURS = 48
    MIN_REST_HOURS = 11
    BREAK_THRESHOLD_6H = 6
    BREAK_THRESHOLD_9H = 9
    MIN_BREAK_AFTER_6H = 30
    MIN_BREAK_AFTER_9H = 45
    BREAK_SOON_HOURS = 5.5
    BREAK_SOON_MIN_BREAK = 15

    def validate_daily_hours(self, day: date, minutes: int) -> list[ComplianceFinding]:
        """Check daily hour limits per §3 ArbZG.

        Args:
            day: The calendar day.
            minutes: Minutes worked that day.

        Returns:
            A violation above 10 hours, a warning above 8 hours.
        """
        hours = round(minutes / 60, 2)
        if minutes > self.DAILY_MAX_HOURS * 60:
            return [
                ComplianceFinding(
                    type="DAILY_HOURS_EXCEEDED",
                    level="violation",
                    severity="high",
                    date=day.isoformat(),
                    hours=hours,
                    limit=self.DAILY_MAX_HOURS,
                    message=(
                        f"Tägliche Arbeitszeit von {hours:g} Stunden überschreitet "
                        f"das Maximum von {self.DAILY_MAX_HOURS} Stunden (§3 ArbZG)"
                    ),
                    law_reference="§3 ArbZG",
                )
            ]
        if minutes > self.DAILY_NORMAL_HOURS * 60:
            return [
                ComplianceFinding(
                    type="DAILY_HOURS_EXTENDED",
                    level="warning",
                    severity="medium",
                    date=day.isoformat(),
                    hours=hours,
                    limit=self.DAILY_NORMAL_HOURS,
                    message=(
                        f"Tägliche Arbeitszeit von {hours:g} Stunden überschreitet "
                        f"die Regelarbeitszeit von {self.DAILY_NORMAL_HOURS} Stunden. "
                        "Ausgleich erforderlich (§3 ArbZG)"
                    ),
                    law_reference="§3 ArbZG",
                )
            ]
        return []

    def validate_weekly_hours(
        self, week_start: date, minutes: int
    ) -> list[ComplianceFinding]:
        """Check the 48-hour limit of the window starting at week_start.

        Args:
            week_start: First day of the seven-day window.
            minutes: Minutes worked in the window.

        Returns:
            A violation if the limit is exceeded.
        """
        if minutes <= self.WEEKLY_MAX_HOURS * 60:
            return []
        hours = round(minutes / 60, 2)
        return [
            ComplianceFinding(
                type="WEEKLY_HOURS_EXCEEDED",
                level="violation",
                severity="high",
                week_start=week_start.isoformat(),
                week_end=(week_start + timedelta(days=6)).isoformat(),
                hours=hours,
                limit=self.WEEKLY_MAX_HOURS,
                message=(
                    f"Wöchentliche Arbeitszeit von {hours:g} Stunden überschreitet "
                    f"das Maximum von {self.WEEKLY_MAX_HOURS} Stunden (§3 ArbZG)"
                ),
                law_reference="§3 ArbZG",
            )
        ]

    def validate_breaks(
        self, day: date, worked_minutes: int, break_minutes: int
    ) -> list[ComplianceFinding]:
        """Check §4 ArbZG break rules.

        Args:
            day: The calendar day.
            worked_minutes: Minutes worked that day.
            break_minutes: Minutes between consecutive work periods.

        Returns:
            A violation for a missing break, or a hint shortly before the
            six-hour threshold.
        """
        hours = round(worked_minutes / 60, 2)
        required_break = 0
        if worked_minutes > self.BREAK_THRESHOLD_9H * 60:
            required_break = self.MIN_BREAK_AFTER_9H
        elif worked_minutes > self.BREAK_THRESHOLD_6H * 60:
            required_break = self.MIN_BREAK_AFTER_6H

        if required_break and break_minutes < required_break:
            return [
                ComplianceFinding(
                    type="INSUFFICIENT_BREAK",
                    level="violation",
                    severity="high",
                    date=day.isoformat(),
                    hours=hours,
                    required_break=required_break,
                    actual_break=break_minutes,
                    message=(
                        f"Bei {hours:g} Stunden Arbeitszeit sind mindestens "
                        f"{required_break} Minuten Pause vorgeschrieben. Bisher nur "
                        f"{break_minutes} Minuten Pause. (§4 ArbZG)"
                    ),
                    law_reference="§4 ArbZG",
                )
            ]

        if (
            self.BREAK_SOON_HOURS * 60 < worked_minutes <= self.BREAK_THRESHOLD_6H * 60
            and break_minutes < self.BREAK_SOON_MIN_BREAK
        ):
            return [
                ComplianceFinding(
                    type="BREAK_SOON_REQUIRED",
                    level="warning",
                    severity="low",
                    date=day.isoformat(),
                    hours=hours,
                    message=(
                        "Arbeitszeit nähert sich 6 Stunden. Ab 6 Stunden sind "
                        "30 Minuten Pause Pflicht (§4 ArbZG)"
                    ),
                    law_reference="§4 ArbZG",
                )
            ]
        return []

    def validate_rest_period(
        self, day: date, previous_end: int | None, first_start: int | None
    ) -> list[ComplianceFinding]:
        """Check the 11-hour rest requirement of §5 ArbZG.

        Args:
            day: The day being checked.
            previous_end: Last end timestamp of the previous day.
            first_start: First start timestamp of the day.

        Returns:
            A violation if the rest was too short.
        """
        if previous_end is None or first_start is None:
            return []
        rest_hours = (first_start - previous_end) / 3600
        if rest_hours >= self.MIN_REST_HOURS:
            return []
        return [
            ComplianceFinding(
                type="INSUFFICIENT_REST",
                level="violation",
                severity="high",
                date=day.isoformat(),
                previous_date=(day - timedelta(days=1)).isoformat(),
                rest_hours=round(rest_hours, 2),
                required=self.MIN_REST_HOURS,
                message=(
                    f"Nur {rest_hours:.1f} Stunden Ruhezeit seit gestern. "
                    f"Mindestens {self.MIN_REST_HOURS} Stunden erforderlich (§5 ArbZG)"
                ),
                law_reference="§5 ArbZG",
            )
        ]

    def validate_rest_day(
        self, day: date, minutes: int, holiday_name: str | None = None
    ) -> list[ComplianceFinding]:
        """Flag work on Sundays and public holidays (§9 ArbZG).

        Args:
            day: The calendar day.
            minutes: Minutes worked that day.
            holiday_name: Name of the public holiday on that day, if any.

        Returns:
            Warnings for Sunday and holiday work.
        """
        if minutes <= 0:
            return []
        findings = []
        if day.weekday() == SUNDAY:
            findings.append(
                ComplianceFinding(
                    type="SUNDAY_WORK",
                    level="warning",
                    severity="medium",
                    date=day.isoformat(),
                    hours=round(minutes / 60, 2),
                    message=(
                        f"Sonntagsarbeit am {day.isoformat()}. "
                        "Ersatzruhetag erforderlich (§9 ArbZG)"
                    ),
                    law_reference="§9 ArbZG",
                )
            )
        if holiday_name:
            findings.append(
                ComplianceFinding(
                    type="HOLIDAY_WORK",
                    level="warning",
                    severity="medium",
                    date=day.isoformat(),
                    hours=round(minutes / 60, 2),
                    message=(
                        f"Feiertagsarbeit am {day.isoformat()} ({holiday_name}). "
                        "Ersatzruhetag erforderlich (§9 ArbZG)"
                    ),
                    law_reference="§9 ArbZG",
                )
            )
        return findings

    def get_public_holidays(
        self,
        year: int,
        region: str | None = None,
    ) -> dict[date, str]:
        """Get German public holidays for a year.

        Args:
            year: The year to get holidays for.
            region: Optional federal state code (e.g., "NW").

        Returns:
            Dictionary mapping dates to holiday names.
        """
        return german_public_holidays(year, region)


def get_validator(country_code: str = "DE") -> ComplianceValidator:
    """Get the appropriate compliance validator for a country.

    Args:
        country_code: ISO 2-letter country code.

    Returns:
        The appropriate compliance validator.

    Raises:
        ValueError: If no validator exists for the country.
    """
    validators = {
        "DE": GermanComplianceValidator,
    }

    validator_class = validators.get(country_code)
    if validator_class is None:
        raise ValueError(f"No compliance validator for country: {country_code}")

    return validator_class()


# --- Compliance engine ---


def group_minutes_by_day(entries: list[TimeEntry]) -> dict[date, int]:
    """Sum completed entry minutes per local calendar day."""
    minutes_by_day: dict[date, int] = defaultdict(int)
    for entry in entries:
        if entry.duration_minutes is None:
            continue
        minutes_by_day[timestamp_to_local_date(entry.start_timestamp)] += (
            entry.duration_minutes
        )
    return dict(minutes_by_day)


class ComplianceEngine:
    """Run compliance checks over a user's time entries.

    Exemptions by employment type are decided by callers before invoking
    the engine.
    """

    def __init__(
        self,
        repository: TimeTrackingRepository,
        validator: ComplianceValidator | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            repository: Data source for time entries and holidays.
            validator: Rule set, defaults to the German one.
        """
        self.repository = repository
        self.validator = validator or GermanComplianceValidator()

    def check_compliance(
        self, user_id: str, start: date, end: date
    ) -> ComplianceResult:
        """Check daily and weekly limits and Sunday work over a period.

        Args:
            user_id: The user ID.
            start: First day of the period.
            end: Last day of the period.

        Returns:
            Violations, warnings and statistics.
        """
        entries = self.repository.find_time_entries_by_user(
            user_id, day_start_timestamp(start), day_end_timestamp(end)
        )
        minutes_by_day = group_minutes_by_day(entries)
        result = ComplianceResult(start=start, end=end)

        for day in sorted(minutes_by_day):
            minutes = minutes_by_day[day]
            result.add(self.validator.validate_daily_hours(day, minutes))
            if day.weekday() == SUNDAY:
                result.add(self.validator.validate_rest_day(day, minutes))

        for week_start in iter_days(start, end):
            week_minutes = sum(
                minutes_by_day.get(week_start + timedelta(days=offset), 0)
                for offset in range(7)
            )
            result.add(self.validator.validate_weekly_hours(week_start, week_minutes))

        worked = [minutes for minutes in minutes_by_day.values() if minutes > 0]
        total_hours = sum(worked) / 60
        result.statistics = {
            "totalDays": len(worked),
            "averageDailyHours": round(total_hours / len(worked), 2) if worked else 0,
            "maxDailyHours": round(max(worked) / 60, 2) if worked else 0,
            "totalHours": round(total_hours, 2),
        }

        logger.debug(
            f"Compliance check for {user_id} {start}..{end}: "
            f"{len(result.violations)} violations, {len(result.warnings)} warnings"
        )
        return result

    def check_daily_compliance(
        self, user_id: str, day: date, now: int | None = None
    ) -> dict[str, Any]:
        """Check one day including a running timer, for live feedback.

        Args:
            user_id: The user ID.
            day: The day to check.
            now: Current Unix timestamp used as the end of a running timer.

        Returns:
            Violations, warnings and statistics of the day.
        """
        now = int(time.time()) if now is None else now
        entries = self.repository.find_time_entries_by_user(
            user_id, day_start_timestamp(day), day_end_timestamp(day)
        )
        periods = sorted(
            (entry.start_timestamp, entry.end_timestamp or now) for entry in entries
        )
        worked_minutes = sum(max(end - start, 0) for start, end in periods) // 60
        break_minutes = 0
        for (_, previous_end), (next_start, _) in zip(periods, periods[1:]):
            if next_start > previous_end:
                break_minutes += (next_start - previous_end) // 60

        result = ComplianceResult(start=day, end=day)
        result.add(self.validator.validate_daily_hours(day, worked_minutes))
        result.add(self.validator.validate_breaks(day, worked_minutes, break_minutes))

        holiday_names = {
            holiday.date: holiday.name
            for holiday in self.repository.find_public_holidays_in_range(day, day)
        }
        result.add(
            self.validator.validate_rest_day(
                day, worked_minutes, holiday_names.get(day)
            )
        )

        previous_day = day - timedelta(days=1)
        previous_entries = self.repository.find_time_entries_by_user(
            user_id, day_start_timestamp(previous_day), day_end_timestamp(previous_day)
        )
        previous_ends = [
            entry.end_timestamp
            for entry in previous_entries
            if entry.end_timestamp is not None
        ]
        if previous_ends and periods:
            result.add(
                self.validator.validate_rest_period(
                    day, max(previous_ends), periods[0][0]
                )
            )

        report = result.to_dict()
        del report["period"]
        report["date"] = day.isoformat()
        report["statistics"] = {
            "totalHours": round(worked_minutes / 60, 2),
            "totalBreakMinutes": break_minutes,
            "workPeriods": len(periods),
        }
        return report
