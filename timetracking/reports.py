# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Billing, employee and compliance report aggregation.

All reports distinguish adjusted hours from actual hours. ``hours`` and
``billableHours`` are raw worked hours multiplied by the employment-type
multiplier of the project, resolved for the type the employee had on the
day of the entry. ``actualHours`` and ``actualBillableHours`` are raw.
Values are rounded to two decimals only when they are put into a report.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Any

from timetracking.calendar_utils import (
    EARLIEST_DATE,
    DateRange,
    PeriodType,
    day_end_timestamp,
    day_start_timestamp,
    period_label,
    resolve_period,
    timestamp_to_local_date,
)
from timetracking.compliance import ComplianceEngine
from timetracking.credited_hours import CreditedHours, CreditedHoursCalculator
from timetracking.exceptions import NotFoundError
from timetracking.models import (
    Customer,
    EmploymentType,
    Project,
    TimeEntry,
    capabilities_for,
)
from timetracking.repository import TimeTrackingRepository, UserDirectory
from timetracking.schemas import CustomerResponse, ProjectResponse
from timetracking.settings_resolver import (
    SettingsResolver,
    expected_hours_across_periods,
)

logger = logging.getLogger(__name__)

# Daily summary type priority, highest first
DAY_TYPE_PRIORITY = ("vacation", "sick", "holiday", "work")


def _project_dict(project: Project) -> dict[str, Any]:
    return ProjectResponse.model_validate(project).model_dump(
        by_alias=True, mode="json"
    )


def _customer_dict(customer: Customer) -> dict[str, Any]:
    return CustomerResponse.model_validate(customer).model_dump(
        by_alias=True, mode="json"
    )


def _period_dict(
    period_type: str,
    label: str,
    date_range: DateRange | None,
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
) -> dict[str, Any]:
    return {
        "type": period_type,
        "label": label,
        "year": year,
        "month": month,
        "quarter": quarter,
        "startDate": (
            date_range.start.isoformat() if date_range and date_range.start else None
        ),
        "endDate": (
            date_range.end.isoformat() if date_range and date_range.end else None
        ),
    }


class HoursTally:
    """Running sums of adjusted and actual hours."""

    def __init__(self) -> None:
        self.hours = 0.0
        self.billable_hours = 0.0
        self.actual_hours = 0.0
        self.actual_billable_hours = 0.0
        self.amount = 0.0
        self.entry_count = 0

    def add(self, actual: float, adjusted: float, billable: bool, rate: float) -> None:
        """Add one entry."""
        self.actual_hours += actual
        self.hours += adjusted
        self.entry_count += 1
        if billable:
            self.actual_billable_hours += actual
            self.billable_hours += adjusted
            self.amount += adjusted * rate

    def merge(self, other: "HoursTally") -> None:
        """Add another tally's sums."""
        self.hours += other.hours
        self.billable_hours += other.billable_hours
        self.actual_hours += other.actual_hours
        self.actual_billable_hours += other.actual_billable_hours
        self.amount += other.amount
        self.entry_count += other.entry_count

    def to_dict(self, with_amount: bool = True) -> dict[str, Any]:
        """Serialize rounded to two decimals."""
        totals = {
            "hours": round(self.hours, 2),
            "billableHours": round(self.billable_hours, 2),
            "actualHours": round(self.actual_hours, 2),
            "actualBillableHours": round(self.actual_billable_hours, 2),
        }
        if with_amount:
            totals["amount"] = round(self.amount, 2)
        return totals


class BillingContext:
    """Per-report caches for employment types and multipliers."""

    def __init__(
        self, repository: TimeTrackingRepository, resolver: SettingsResolver
    ) -> None:
        self.repository = repository
        self.resolver = resolver
        self._types: dict[tuple[str, date], EmploymentType] = {}
        self._multipliers: dict[tuple[int, EmploymentType], float] = {}

    def employment_type_at(self, user_id: str, day: date) -> EmploymentType:
        """Employment type of a user on a day."""
        key = (user_id, day)
        if key not in self._types:
            self._types[key] = self.resolver.settings_at(user_id, day).employment_type
        return self._types[key]

    def multiplier(
        self, project_id: int | None, employment_type: EmploymentType
    ) -> float:
        """Effective multiplier of a project for an employment type."""
        if project_id is None:
            return 1.0
        key = (project_id, employment_type)
        if key not in self._multipliers:
            self._multipliers[key] = self.repository.get_effective_multiplier(
                project_id, employment_type.value
            )
        return self._multipliers[key]

    def adjusted_hours(self, entry: TimeEntry) -> float:
        """Raw hours of an entry times the applicable multiplier."""
        day = timestamp_to_local_date(entry.start_timestamp)
        employment_type = self.employment_type_at(entry.user_id, day)
        return entry.hours * self.multiplier(entry.project_id, employment_type)


class ReportService:
    """Build report structures from repository data."""

    def __init__(
        self,
        repository: TimeTrackingRepository,
        users: UserDirectory,
        today: date | None = None,
    ) -> None:
        """Initialize the report service.

        Args:
            repository: Data source.
            users: Display name lookup.
            today: Fixed "today" for the total period, defaults to the
                current date.
        """
        self.repository = repository
        self.users = users
        self.today = today
        self.resolver = SettingsResolver(repository)
        self.credited = CreditedHoursCalculator(repository)
        self.compliance = ComplianceEngine(repository)

    # --- Helpers ---

    def _today(self) -> date:
        return self.today or date.today()

    def _total_start(self, user_ids: list[str]) -> date:
        """Earliest employment start or validity start of the given users."""
        starts = []
        for user_id in user_ids:
            for period in self.repository.find_all_settings_periods(user_id):
                start = period.employment_start or period.valid_from
                if start is not None:
                    starts.append(start)
        return min(starts) if starts else EARLIEST_DATE

    def _resolve(
        self,
        period_type: str,
        year: int | None,
        month: int | None,
        quarter: int | None,
        start: date | None = None,
        end: date | None = None,
        user_ids: list[str] | None = None,
    ) -> tuple[DateRange, dict[str, Any]]:
        total_start = None
        if period_type == PeriodType.TOTAL:
            total_start = self._total_start(
                user_ids if user_ids is not None else self.repository.list_user_ids()
            )
        date_range = resolve_period(
            period_type,
            year=year,
            month=month,
            quarter=quarter,
            custom_start=start,
            custom_end=end,
            total_start=total_start,
            today=self._today(),
        )
        label = period_label(period_type, year, month, quarter, start, end)
        period = _period_dict(period_type, label, date_range, year, month, quarter)
        return date_range, period

    @staticmethod
    def _completed(entries: list[TimeEntry]) -> list[TimeEntry]:
        return [entry for entry in entries if not entry.is_running]

    def _entries_by_user(self, user_id: str, date_range: DateRange) -> list[TimeEntry]:
        return self._completed(
            self.repository.find_time_entries_by_user(
                user_id,
                day_start_timestamp(date_range.start),
                day_end_timestamp(date_range.end),
            )
        )

    def _entries_by_project(
        self, project_id: int, start: date | None, end: date | None
    ) -> list[TimeEntry]:
        return self._completed(
            self.repository.find_time_entries_by_project(
                project_id,
                day_start_timestamp(start) if start else None,
                day_end_timestamp(end) if end else None,
            )
        )

    # --- Customer and project reports ---

    def customer_report(
        self,
        customer_id: int,
        period_type: str,
        year: int | None = None,
        month: int | None = None,
        quarter: int | None = None,
    ) -> dict[str, Any]:
        """Hours and amounts of every project of a customer.

        Args:
            customer_id: The customer ID.
            period_type: month, quarter, year or total.
            year: Calendar year.
            month: Month number for monthly reports.
            quarter: Quarter number for quarterly reports.

        Returns:
            The customer report. Projects without hours are left out.

        Raises:
            NotFoundError: If the customer does not exist.
        """
        customer = self.repository.get_customer(customer_id)
        date_range, period = self._resolve(period_type, year, month, quarter)
        context = BillingContext(self.repository, self.resolver)

        projects = []
        totals = HoursTally()
        for project in self.repository.list_projects(customer_id):
            rate = project.hourly_rate or 0.0
            tally = HoursTally()
            for entry in self._entries_by_project(
                project.id, date_range.start, date_range.end
            ):
                adjusted = context.adjusted_hours(entry)
                tally.add(entry.hours, adjusted, entry.billable, rate)
            if tally.actual_hours > 0:
                projects.append(
                    {
                        "project": _project_dict(project),
                        **tally.to_dict(),
                        "hourlyRate": project.hourly_rate,
                        "entryCount": tally.entry_count,
                    }
                )
            totals.merge(tally)

        return {
            "customer": _customer_dict(customer),
            "period": period,
            "projects": projects,
            "totals": totals.to_dict(),
        }

    def project_report(
        self,
        project_id: int,
        period_type: str,
        year: int | None = None,
        month: int | None = None,
        quarter: int | None = None,
    ) -> dict[str, Any]:
        """Hours of a project per employee, with budget usage.

        ``project_period`` uses the project's own start and end dates; an
        unset bound leaves that side of the range open.

        Raises:
            NotFoundError: If the project or its customer does not exist.
        """
        project = self.repository.get_project(project_id)
        customer = self.repository.get_customer(project.customer_id)

        if period_type == PeriodType.PROJECT_PERIOD:
            start, end = project.start_date, project.end_date
            label = period_label(period_type, custom_start=start, custom_end=end)
            period = {
                "type": period_type,
                "label": label,
                "year": year,
                "month": month,
                "quarter": quarter,
                "startDate": start.isoformat() if start else None,
                "endDate": end.isoformat() if end else None,
            }
        else:
            date_range, period = self._resolve(period_type, year, month, quarter)
            start, end = date_range.start, date_range.end

        context = BillingContext(self.repository, self.resolver)
        rate = project.hourly_rate or 0.0
        totals = HoursTally()
        per_user: dict[str, HoursTally] = {}
        for entry in self._entries_by_project(project_id, start, end):
            adjusted = context.adjusted_hours(entry)
            totals.add(entry.hours, adjusted, entry.billable, rate)
            per_user.setdefault(entry.user_id, HoursTally()).add(
                entry.hours, adjusted, entry.billable, rate
            )

        user_summary = [
            {
                "userId": user_id,
                "displayName": self.users.get_display_name(user_id),
                **tally.to_dict(with_amount=False),
                "entryCount": tally.entry_count,
            }
            for user_id, tally in sorted(
                per_user.items(), key=lambda item: (-item[1].hours, item[0])
            )
        ]

        report = {
            "project": _project_dict(project),
            "customer": _customer_dict(customer),
            "period": period,
            "totals": totals.to_dict(),
            "userSummary": user_summary,
        }
        if project.budget_hours:
            used = totals.actual_hours
            report["budget"] = {
                "budgetHours": project.budget_hours,
                "usedHours": round(used, 2),
                "remainingHours": round(project.budget_hours - used, 2),
                "usagePercent": round(used / project.budget_hours * 100, 1),
            }
        return report

    # --- Employee reports ---

    def employee_report(
        self,
        user_id: str,
        period_type: str,
        year: int | None = None,
        month: int | None = None,
        quarter: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[str, Any]:
        """Worked, credited and expected hours of one employee.

        Args:
            user_id: The user ID.
            period_type: month, quarter, year, custom or total.
            year: Calendar year.
            month: Month number for monthly reports.
            quarter: Quarter number for quarterly reports.
            start: First day of a custom period.
            end: Last day of a custom period.

        Returns:
            The employee report with daily and project summaries.
        """
        date_range, period = self._resolve(
            period_type, year, month, quarter, start, end, user_ids=[user_id]
        )
        aggregated = self.resolver.aggregate_over_range(
            user_id, date_range.start, date_range.end
        )
        context = BillingContext(self.repository, self.resolver)

        daily_hours: dict[date, float] = defaultdict(float)
        per_project: dict[int | None, HoursTally] = {}
        totals = HoursTally()
        for entry in self._entries_by_user(user_id, date_range):
            adjusted = context.adjusted_hours(entry)
            totals.add(entry.hours, adjusted, entry.billable, 0.0)
            per_project.setdefault(entry.project_id, HoursTally()).add(
                entry.hours, adjusted, entry.billable, 0.0
            )
            daily_hours[timestamp_to_local_date(entry.start_timestamp)] += entry.hours

        worked_hours = totals.actual_hours
        report_totals: dict[str, Any] = {
            **totals.to_dict(with_amount=False),
            "workDays": sum(1 for hours in daily_hours.values() if hours > 0),
        }

        credited: CreditedHours | None = None
        if (
            aggregated.employment_type == EmploymentType.FREELANCE
            and aggregated.max_total_hours
        ):
            all_time = sum(
                entry.hours
                for entry in self._completed(
                    self.repository.find_time_entries_by_user(user_id)
                )
            )
            report_totals["totalHoursAllTime"] = round(all_time, 2)
            report_totals["maxTotalHours"] = aggregated.max_total_hours
            report_totals["remainingHours"] = round(
                aggregated.max_total_hours - all_time, 2
            )
            report_totals["percentageUsed"] = round(
                all_time / aggregated.max_total_hours * 100, 1
            )
        else:
            expected = expected_hours_across_periods(
                aggregated.periods, date_range.start, date_range.end
            )
            credited = self.credited.credited_hours(
                user_id,
                date_range.start,
                date_range.end,
                aggregated.daily_hours,
                aggregated.employment_type,
            )
            effective = worked_hours + credited.total_credited_hours
            report_totals["weeklyHours"] = round(aggregated.weekly_hours, 2)
            report_totals["expectedHours"] = round(expected, 2)
            report_totals["creditedHours"] = credited.to_dict()
            report_totals["effectiveHours"] = round(effective, 2)
            report_totals["balance"] = round(effective - expected, 2)

        if aggregated.hourly_rate:
            report_totals["hourlyRate"] = round(aggregated.hourly_rate, 2)
            report_totals["revenue"] = round(worked_hours * aggregated.hourly_rate, 2)

        return {
            "userId": user_id,
            "displayName": self.users.get_display_name(user_id),
            "employeeSettings": aggregated.to_dict(),
            "period": period,
            "dailySummary": self._daily_summary(daily_hours, credited),
            "projectSummary": self._project_summary(per_project),
            "totals": report_totals,
        }

    def _daily_summary(
        self, daily_hours: dict[date, float], credited: CreditedHours | None
    ) -> list[dict]:
        day_types: dict[str, set[str]] = defaultdict(set)
        for day, hours in daily_hours.items():
            if hours > 0:
                day_types[day.isoformat()].add("work")
        if credited is not None:
            for day in credited.vacation_dates:
                day_types[day].add("vacation")
            for day in credited.sick_dates:
                day_types[day].add("sick")
            for day in credited.holiday_dates:
                day_types[day].add("holiday")

        worked = {day.isoformat(): hours for day, hours in daily_hours.items()}
        summary = []
        for day in sorted(day_types):
            day_type = next(t for t in DAY_TYPE_PRIORITY if t in day_types[day])
            summary.append(
                {"date": day, "hours": round(worked.get(day, 0.0), 2), "type": day_type}
            )
        return summary

    def _project_summary(self, per_project: dict[int | None, HoursTally]) -> list[dict]:
        summary = []
        for project_id, tally in per_project.items():
            project = None
            if project_id is not None:
                try:
                    project = _project_dict(self.repository.get_project(project_id))
                except NotFoundError:
                    logger.debug(f"Project {project_id} no longer exists")
            summary.append(
                {
                    "projectId": project_id,
                    "project": project,
                    **tally.to_dict(with_amount=False),
                    "entryCount": tally.entry_count,
                }
            )
        summary.sort(key=lambda item: (-item["hours"], item["projectId"] or 0))
        return summary

    def all_employees_report(
        self,
        period_type: str,
        year: int | None = None,
        month: int | None = None,
        quarter: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> dict[str, Any]:
        """Summary line per employee with entries in the period."""
        date_range, period = self._resolve(
            period_type, year, month, quarter, start, end
        )
        context = BillingContext(self.repository, self.resolver)

        employees = []
        totals = HoursTally()
        total_work_days = 0
        total_revenue = 0.0
        for user_id in self.repository.list_user_ids():
            entries = self._entries_by_user(user_id, date_range)
            if not entries:
                continue

            tally = HoursTally()
            work_days = set()
            for entry in entries:
                adjusted = context.adjusted_hours(entry)
                tally.add(entry.hours, adjusted, entry.billable, 0.0)
                work_days.add(timestamp_to_local_date(entry.start_timestamp))

            aggregated = self.resolver.aggregate_over_range(
                user_id, date_range.start, date_range.end
            )
            employee = {
                "userId": user_id,
                "displayName": self.users.get_display_name(user_id),
                **tally.to_dict(with_amount=False),
                "workDays": len(work_days),
                "entryCount": tally.entry_count,
                "employmentType": aggregated.employment_type.value,
                "weeklyHours": round(aggregated.weekly_hours, 2),
            }
            if aggregated.hourly_rate:
                revenue = tally.actual_hours * aggregated.hourly_rate
                employee["hourlyRate"] = round(aggregated.hourly_rate, 2)
                employee["revenue"] = round(revenue, 2)
                total_revenue += revenue
            if capabilities_for(aggregated.employment_type).counts_for_vacation:
                credited = self.credited.credited_hours(
                    user_id,
                    date_range.start,
                    date_range.end,
                    aggregated.daily_hours,
                    aggregated.employment_type,
                )
                employee["creditedHours"] = credited.to_dict()
                employee["effectiveHours"] = round(
                    tally.actual_hours + credited.total_credited_hours, 2
                )

            employees.append(employee)
            totals.merge(tally)
            total_work_days += len(work_days)

        employees.sort(key=lambda item: (-item["hours"], item["userId"]))
        return {
            "period": period,
            "employees": employees,
            "totals": {
                **totals.to_dict(with_amount=False),
                "workDays": total_work_days,
                "revenue": round(total_revenue, 2),
            },
        }

    def employee_compliance(
        self, user_id: str, start: date, end: date
    ) -> dict[str, Any]:
        """ArbZG compliance of one employee, or the reason for an exemption.

        The employment type dominating the range decides the exemption.
        """
        employee: dict[str, Any] = {
            "userId": user_id,
            "displayName": self.users.get_display_name(user_id),
        }
        aggregated = self.resolver.aggregate_over_range(user_id, start, end)
        capabilities = capabilities_for(aggregated.employment_type)
        if capabilities.counts_for_compliance:
            employee["exempt"] = False
            result = self.compliance.check_compliance(user_id, start, end)
            employee.update(result.to_dict())
            return employee

        employee.update(
            {
                "exempt": True,
                "exemptReason": capabilities.exemption_reason,
                "compliant": True,
                "violationCount": 0,
                "warningCount": 0,
                "violations": [],
                "warnings": [],
                "period": {"start": start.isoformat(), "end": end.isoformat()},
                "statistics": {
                    "totalHours": 0,
                    "averageDailyHours": 0,
                    "maxDailyHours": 0,
                },
            }
        )
        return employee

    def all_compliance_report(
        self,
        period_type: str,
        year: int,
        month: int | None = None,
    ) -> dict[str, Any]:
        """ArbZG compliance of every employee with entries in the period.

        Employment types exempt from the Arbeitszeitgesetz are reported with
        the legal reason instead of being checked.

        Args:
            period_type: "month" or "year".
            year: Calendar year.
            month: Month number for monthly reports.

        Returns:
            Per-employee results and a summary.
        """
        if period_type != PeriodType.MONTH:
            period_type = PeriodType.YEAR
        date_range = resolve_period(period_type, year=year, month=month)

        employees = []
        for user_id in self.repository.list_user_ids():
            if not self._entries_by_user(user_id, date_range):
                continue

            employee = self.employee_compliance(
                user_id, date_range.start, date_range.end
            )
            del employee["period"]
            employees.append(employee)

        employees.sort(
            key=lambda item: (
                item["exempt"],
                item["compliant"],
                -item["violationCount"],
                item["userId"],
            )
        )
        checked = [employee for employee in employees if not employee["exempt"]]
        return {
            "period": {
                "type": period_type,
                "label": period_label(period_type, year, month),
                "year": year,
                "month": month,
            },
            "employees": employees,
            "summary": {
                "totalEmployees": len(employees),
                "allCompliant": all(employee["compliant"] for employee in checked),
                "totalViolations": sum(e["violationCount"] for e in checked),
                "totalWarnings": sum(e["warningCount"] for e in checked),
                "exemptCount": len(employees) - len(checked),
                "compliantCount": sum(1 for e in checked if e["compliant"]),
                "nonCompliantCount": sum(1 for e in checked if not e["compliant"]),
            },
        }

    # --- Overview ---

    def overview(
        self,
        period_type: str = PeriodType.MONTH,
        year: int | None = None,
        month: int | None = None,
    ) -> dict[str, Any]:
        """Customers, their projects and the employees working on them.

        Args:
            period_type: month, year or total.
            year: Calendar year, defaults to the current one.
            month: Month number, defaults to the current one.

        Returns:
            The overview, each level sorted by hours descending.

        Raises:
            ValueError: If the period type is not supported.
        """
        if period_type not in (PeriodType.MONTH, PeriodType.YEAR, PeriodType.TOTAL):
            raise ValueError(f"Invalid period type: {period_type}")
        today = self._today()
        if period_type == PeriodType.TOTAL:
            year = month = None
        else:
            year = year or today.year
            if period_type == PeriodType.MONTH:
                month = month or today.month
            else:
                month = None
        date_range, period = self._resolve(period_type, year, month, None)
        context = BillingContext(self.repository, self.resolver)

        customers = []
        totals = HoursTally()
        for customer in self.repository.list_customers():
            customer_tally = HoursTally()
            projects = []
            for project in self.repository.list_projects(customer.id):
                entries = self._entries_by_project(
                    project.id, date_range.start, date_range.end
                )
                if not entries:
                    continue
                rate = project.hourly_rate or 0.0
                project_tally = HoursTally()
                per_user: dict[str, HoursTally] = {}
                for entry in entries:
                    adjusted = context.adjusted_hours(entry)
                    project_tally.add(entry.hours, adjusted, entry.billable, rate)
                    per_user.setdefault(entry.user_id, HoursTally()).add(
                        entry.hours, adjusted, entry.billable, rate
                    )
                employees = [
                    {
                        "userId": user_id,
                        "displayName": self.users.get_display_name(user_id),
                        "hours": round(tally.hours, 2),
                        "actualHours": round(tally.actual_hours, 2),
                    }
                    for user_id, tally in per_user.items()
                ]
                employees.sort(key=lambda item: (-item["hours"], item["userId"]))
                projects.append(
                    {
                        "project": _project_dict(project),
                        "employees": employees,
                        "totals": project_tally.to_dict(),
                    }
                )
                customer_tally.merge(project_tally)

            if not projects:
                continue
            projects.sort(
                key=lambda item: (-item["totals"]["hours"], item["project"]["id"])
            )
            customers.append(
                {
                    "customer": _customer_dict(customer),
                    "projects": projects,
                    "totals": customer_tally.to_dict(),
                }
            )
            totals.merge(customer_tally)

        customers.sort(
            key=lambda item: (-item["totals"]["hours"], item["customer"]["id"])
        )
        return {"period": period, "customers": customers, "totals": totals.to_dict()}
