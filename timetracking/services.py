# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Write-side services: time entries, settings periods, leave and billing.

The report engines never write. Everything that changes stored data goes
through the services in this module, each bound to one database session.
"""

import logging
import time
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from timetracking.calendar_utils import (
    german_public_holidays,
    local_timezone,
    timestamp_to_local_date,
)
from timetracking.exceptions import (
    DateRangeConflictError,
    NotFoundError,
    OverlapError,
    PermissionDeniedError,
    TimeTrackingError,
)
from timetracking.models import (
    Customer,
    DefaultMultiplier,
    EmployeeSettings,
    EmploymentType,
    Project,
    ProjectMultiplier,
    PublicHoliday,
    SickDay,
    TimeEntry,
    Vacation,
    VacationStatus,
    capabilities_for,
)
from timetracking.repository import SqlAlchemyRepository
from timetracking.settings_resolver import DEFAULT_VACATION_DAYS, SettingsResolver

logger = logging.getLogger(__name__)

MIN_MULTIPLIER = 0.01
MAX_MULTIPLIER = 2.0
MULTIPLIER_EPSILON = 0.0001


def clamp_multiplier(value: float) -> float:
    """Clamp a multiplier to the allowed range."""
    return min(max(float(value), MIN_MULTIPLIER), MAX_MULTIPLIER)


# --- Time Entry Service ---


class TimeEntryService:
    """Service for managing time entries and the running timer."""

    def __init__(self, db: Session) -> None:
        """Initialize the service.

        Args:
            db: Database session.
        """
        self.db = db
        self.repository = SqlAlchemyRepository(db)
        self.resolver = SettingsResolver(self.repository)

    def get_entry(self, entry_id: int) -> TimeEntry:
        """Load an entry or raise NotFoundError."""
        entry = self.db.get(TimeEntry, entry_id)
        if entry is None:
            raise NotFoundError(f"Time entry {entry_id} not found")
        return entry

    def list_entries(
        self,
        user_id: str,
        start_ts: int | None = None,
        end_ts: int | None = None,
        project_id: int | None = None,
    ) -> list[TimeEntry]:
        """List a user's entries, or a project's entries if one is given."""
        if project_id is not None:
            return self.repository.find_time_entries_by_project(
                project_id, start_ts, end_ts
            )
        return self.repository.find_time_entries_by_user(user_id, start_ts, end_ts)

    def create_entry(
        self,
        user_id: str,
        project_id: int,
        start_ts: int,
        end_ts: int | None = None,
        description: str | None = None,
        billable: bool = True,
    ) -> TimeEntry:
        """Create a completed entry, or a running one without an end.

        Args:
            user_id: The user ID.
            project_id: The project worked on.
            start_ts: Start as Unix timestamp.
            end_ts: End as Unix timestamp, None for a running timer.
            description: Optional description.
            billable: Whether the time is billable.

        Returns:
            The created entry.

        Raises:
            NotFoundError: If the project does not exist.
            OverlapError: If the entry overlaps another entry.
            TimeTrackingError: If the date is restricted, a description is
                missing or a timer is already running.
        """
        project = self.repository.get_project(project_id)
        self._check_date_restriction(user_id, start_ts)

        if end_ts is None:
            self._ensure_no_running_timer(user_id)
        else:
            self._validate_interval(start_ts, end_ts)
            self._check_description(project, description)
            self._validate_no_overlap(user_id, start_ts, end_ts)

        entry = TimeEntry(
            user_id=user_id,
            project_id=project_id,
            start_timestamp=start_ts,
            end_timestamp=end_ts,
            description=description,
            billable=billable,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def update_entry(
        self,
        entry_id: int,
        user_id: str,
        start_ts: int,
        end_ts: int | None = None,
        project_id: int | None = None,
        description: str | None = None,
        billable: bool | None = None,
        now: int | None = None,
    ) -> TimeEntry:
        """Update an entry of the current month.

        Args:
            entry_id: The entry ID.
            user_id: The acting user, who must own the entry.
            start_ts: New start.
            end_ts: New end, None keeps the stored end.
            project_id: New project, None keeps the current one.
            description: New description, None keeps the current one.
            billable: New billable flag, None keeps the current one.
            now: Current Unix timestamp for the month lock.

        Returns:
            The updated entry.

        Raises:
            OverlapError: If the new interval overlaps another entry.
            TimeTrackingError: If the entry or its new start lies in a past
                month, the interval is empty or a description is missing.
        """
        entry = self._get_own_entry(entry_id, user_id)
        for timestamp in (entry.start_timestamp, start_ts):
            self._check_editable(
                timestamp, now, "bearbeitet", "PAST_MONTH_EDIT_NOT_ALLOWED"
            )
        self._check_date_restriction(user_id, start_ts)

        # A running timer keeps running when no end is given
        effective_end = end_ts if end_ts is not None else entry.end_timestamp
        if effective_end is not None:
            self._validate_interval(start_ts, effective_end)
            self._validate_no_overlap(
                user_id, start_ts, effective_end, exclude_id=entry.id
            )

        target_project_id = project_id if project_id is not None else entry.project_id
        project = (
            self.repository.get_project(target_project_id)
            if target_project_id is not None
            else None
        )
        new_description = description if description is not None else entry.description
        description_changes = project_id is not None or description is not None
        if project is not None and effective_end is not None and description_changes:
            self._check_description(project, new_description)

        entry.start_timestamp = start_ts
        entry.end_timestamp = effective_end
        entry.project_id = target_project_id
        entry.description = new_description
        if billable is not None:
            entry.billable = billable

        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete_entry(self, entry_id: int, user_id: str, now: int | None = None) -> None:
        """Delete an entry of the current month owned by the user."""
        entry = self._get_own_entry(entry_id, user_id)
        self._check_editable(
            entry.start_timestamp, now, "gelöscht", "PAST_MONTH_DELETE_NOT_ALLOWED"
        )
        self.db.delete(entry)
        self.db.commit()

    def start_timer(
        self,
        user_id: str,
        project_id: int | None = None,
        description: str | None = None,
        now: int | None = None,
    ) -> TimeEntry:
        """Start a timer at the current time.

        Raises:
            TimeTrackingError: If a timer is already running or the day is
                restricted.
        """
        now = int(time.time()) if now is None else now
        self._ensure_no_running_timer(user_id)
        self._check_date_restriction(user_id, now)
        if project_id is not None:
            self.repository.get_project(project_id)

        entry = TimeEntry(
            user_id=user_id,
            project_id=project_id,
            start_timestamp=now,
            description=description,
            billable=True,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"Timer started for user {user_id} (entry {entry.id})")
        return entry

    def stop_timer(
        self,
        user_id: str,
        project_id: int | None = None,
        description: str | None = None,
        billable: bool | None = True,
        now: int | None = None,
    ) -> TimeEntry:
        """Stop the running timer at the current time.

        Project and description may be supplied now if they were not set
        when the timer started.

        Raises:
            TimeTrackingError: If no timer runs, the project is missing or
                the project requires a description.
            OverlapError: If the finished entry overlaps another one.
        """
        now = int(time.time()) if now is None else now
        running = self.repository.find_running_timer(user_id)
        if running is None:
            raise TimeTrackingError("No running timer", code="NO_RUNNING_TIMER")

        if project_id is not None:
            running.project_id = project_id
        if description is not None:
            running.description = description
        if billable is not None:
            running.billable = billable
        if not running.project_id:
            raise TimeTrackingError("Project is required", code="PROJECT_REQUIRED")

        project = self.repository.get_project(running.project_id)
        self._check_description(project, running.description)
        self._validate_no_overlap(
            user_id, running.start_timestamp, now, exclude_id=running.id
        )

        running.end_timestamp = now
        self.db.commit()
        self.db.refresh(running)
        logger.info(
            f"Timer stopped for user {user_id} (entry {running.id}, "
            f"{running.duration_minutes} min)"
        )
        return running

    def _get_own_entry(self, entry_id: int, user_id: str) -> TimeEntry:
        entry = self.get_entry(entry_id)
        if entry.user_id != user_id:
            raise PermissionDeniedError("Unauthorized")
        return entry

    def _ensure_no_running_timer(self, user_id: str) -> None:
        if self.repository.find_running_timer(user_id) is not None:
            raise TimeTrackingError("Timer already running", code="TIMER_RUNNING")

    @staticmethod
    def _validate_interval(start_ts: int, end_ts: int) -> None:
        if end_ts <= start_ts:
            raise TimeTrackingError("End time must be after start time")

    @staticmethod
    def _check_description(project: Project, description: str | None) -> None:
        if project.require_description and not (description or "").strip():
            raise TimeTrackingError(
                f"Project {project.name!r} requires a description",
                code="DESCRIPTION_REQUIRED",
            )

    def _check_date_restriction(self, user_id: str, timestamp: int) -> None:
        """Reject work on Sundays and public holidays for ArbZG employees.

        Raises:
            TimeTrackingError: With code SUNDAY_NOT_ALLOWED or
                HOLIDAY_NOT_ALLOWED.
        """
        day = timestamp_to_local_date(timestamp)
        employment_type = self.resolver.settings_at(user_id, day).employment_type
        if not capabilities_for(employment_type).counts_for_compliance:
            return
        if day.weekday() == 6:
            raise TimeTrackingError(
                "Zeiterfassung an Sonntagen ist nicht erlaubt",
                code="SUNDAY_NOT_ALLOWED",
            )
        if self.repository.find_public_holidays_in_range(day, day):
            raise TimeTrackingError(
                "Zeiterfassung an Feiertagen ist nicht erlaubt",
                code="HOLIDAY_NOT_ALLOWED",
            )

    @staticmethod
    def _check_editable(
        start_ts: int, now: int | None, action: str, code: str
    ) -> None:
        """Only entries starting in the current month may be changed."""
        now = int(time.time()) if now is None else now
        entry_day = timestamp_to_local_date(start_ts)
        today = timestamp_to_local_date(now)
        if (entry_day.year, entry_day.month) != (today.year, today.month):
            raise TimeTrackingError(
                f"Einträge aus vergangenen Monaten können nicht {action} werden",
                code=code,
            )

    def _validate_no_overlap(
        self,
        user_id: str,
        start_ts: int,
        end_ts: int,
        exclude_id: int | None = None,
    ) -> None:
        """Validate that the interval does not overlap completed entries.

        Entries that only touch (one ends when the other starts) are allowed.

        Raises:
            OverlapError: If overlap detected.
        """
        query = self.db.query(TimeEntry).filter(
            TimeEntry.user_id == user_id,
            TimeEntry.end_timestamp.isnot(None),
            TimeEntry.start_timestamp < end_ts,
            TimeEntry.end_timestamp > start_ts,
        )
        if exclude_id is not None:
            query = query.filter(TimeEntry.id != exclude_id)
        if query.first() is not None:
            logger.warning(f"Rejected overlapping time entry for user {user_id}")
            raise OverlapError("Time entry overlaps with an existing entry")


# --- Settings Service ---


class SettingsService:
    """Service for employee settings periods."""

    def __init__(self, db: Session) -> None:
        """Initialize the service.

        Args:
            db: Database session.
        """
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    def list_periods(self, user_id: str) -> list[EmployeeSettings]:
        """All dated settings periods of a user, oldest first."""
        return self.repository.find_all_settings_periods(user_id)

    def create_period(
        self,
        user_id: str,
        valid_from: date,
        employment_type: EmploymentType = EmploymentType.CONTRACT,
        weekly_hours: float = 40.0,
        vacation_days_per_year: float | None = None,
        hourly_rate: float | None = None,
        max_total_hours: float | None = None,
        employment_start: date | None = None,
    ) -> EmployeeSettings:
        """Start a new settings period and end the currently open one.

        The open period that started before ``valid_from`` is closed the day
        before. Any other period reaching into the new one is a conflict.

        Args:
            user_id: The user ID.
            valid_from: First day of the new period.
            employment_type: Employment category.
            weekly_hours: Contract hours per week.
            vacation_days_per_year: Annual vacation, defaults to 20 and is
                always 0 for freelancers.
            hourly_rate: Optional hourly rate.
            max_total_hours: Lifetime hour cap, kept for freelancers only.
            employment_start: Hire date.

        Returns:
            The new period.

        Raises:
            DateRangeConflictError: If the period collides with history.
        """
        employment_type = EmploymentType(employment_type)
        if employment_type == EmploymentType.FREELANCE:
            vacation_days_per_year = 0.0
        else:
            max_total_hours = None
            if vacation_days_per_year is None:
                vacation_days_per_year = DEFAULT_VACATION_DAYS

        to_close = []
        for period in self.repository.find_all_settings_periods(user_id):
            is_predecessor = period.valid_to is None and period.valid_from < valid_from
            if is_predecessor:
                to_close.append(period)
            elif period.valid_to is None or period.valid_to >= valid_from:
                raise DateRangeConflictError(
                    f"Settings period starting {valid_from} overlaps the period "
                    f"from {period.valid_from}"
                )

        for period in to_close:
            period.valid_to = valid_from - timedelta(days=1)

        if employment_start is None and to_close:
            employment_start = to_close[-1].employment_start

        period = EmployeeSettings(
            user_id=user_id,
            employment_type=employment_type.value,
            weekly_hours=weekly_hours,
            vacation_days_per_year=vacation_days_per_year,
            hourly_rate=hourly_rate,
            max_total_hours=max_total_hours,
            employment_start=employment_start,
            valid_from=valid_from,
        )
        self.db.add(period)
        self.db.commit()
        self.db.refresh(period)
        logger.info(
            f"Settings period for {user_id} from {valid_from} "
            f"({employment_type.value}, {weekly_hours}h)"
        )
        return period


# --- Leave Service ---


class LeaveService:
    """Service for vacations and sick days."""

    def __init__(self, db: Session) -> None:
        """Initialize the service.

        Args:
            db: Database session.
        """
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    # Vacations

    def list_vacations(self, user_id: str, year: int | None = None) -> list[Vacation]:
        """A user's vacations, optionally limited to one year."""
        if year is not None:
            return self.repository.find_vacations_in_range(
                user_id, date(year, 1, 1), date(year, 12, 31)
            )
        return (
            self.db.query(Vacation)
            .filter(Vacation.user_id == user_id)
            .order_by(Vacation.start_date.desc())
            .all()
        )

    def create_vacation(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        days: float,
        notes: str | None = None,
        created_by_admin: bool = False,
    ) -> Vacation:
        """File a vacation request.

        Requests filed by an administrator are approved immediately.

        Raises:
            DateRangeConflictError: If it overlaps another vacation.
        """
        self._validate_range(start_date, end_date, days)
        self._check_vacation_overlap(user_id, start_date, end_date)
        status = VacationStatus.APPROVED if created_by_admin else VacationStatus.PENDING
        vacation = Vacation(
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            days=days,
            notes=notes,
            status=status.value,
        )
        self.db.add(vacation)
        self.db.commit()
        self.db.refresh(vacation)
        logger.info(
            f"Vacation {vacation.id} for {user_id} {start_date}..{end_date} "
            f"created as {status.value}"
        )
        return vacation

    def update_vacation(
        self,
        vacation_id: int,
        user_id: str,
        start_date: date,
        end_date: date,
        days: float,
        notes: str | None = None,
    ) -> Vacation:
        """Change a pending vacation request of the user."""
        vacation = self._get_own_pending_vacation(vacation_id, user_id, "update")
        self._validate_range(start_date, end_date, days)
        self._check_vacation_overlap(
            user_id, start_date, end_date, exclude_id=vacation.id
        )
        vacation.start_date = start_date
        vacation.end_date = end_date
        vacation.days = days
        vacation.notes = notes
        self.db.commit()
        self.db.refresh(vacation)
        return vacation

    def delete_vacation(self, vacation_id: int, user_id: str) -> None:
        """Withdraw a pending vacation request of the user."""
        vacation = self._get_own_pending_vacation(vacation_id, user_id, "delete")
        self.db.delete(vacation)
        self.db.commit()

    def set_vacation_status(self, vacation_id: int, status: VacationStatus) -> Vacation:
        """Approve or reject a vacation request."""
        vacation = self._get_vacation(vacation_id)
        vacation.status = VacationStatus(status).value
        self.db.commit()
        self.db.refresh(vacation)
        logger.info(f"Vacation {vacation_id} set to {vacation.status}")
        return vacation

    def _get_vacation(self, vacation_id: int) -> Vacation:
        vacation = self.db.get(Vacation, vacation_id)
        if vacation is None:
            raise NotFoundError(f"Vacation {vacation_id} not found")
        return vacation

    def _get_own_pending_vacation(
        self, vacation_id: int, user_id: str, action: str
    ) -> Vacation:
        vacation = self._get_vacation(vacation_id)
        if vacation.user_id != user_id:
            raise PermissionDeniedError("Unauthorized")
        if vacation.status != VacationStatus.PENDING.value:
            raise TimeTrackingError(
                f"Cannot {action} approved or rejected vacation",
                code="VACATION_NOT_PENDING",
            )
        return vacation

    def _check_vacation_overlap(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        exclude_id: int | None = None,
    ) -> None:
        for vacation in self.repository.find_vacations_in_range(
            user_id, start_date, end_date
        ):
            if vacation.id == exclude_id:
                continue
            if vacation.status == VacationStatus.REJECTED.value:
                continue
            logger.warning(f"Rejected overlapping vacation for user {user_id}")
            raise DateRangeConflictError(
                f"Vacation overlaps existing vacation "
                f"{vacation.start_date} - {vacation.end_date}"
            )

    # Sick days

    def list_sick_days(self, user_id: str, year: int | None = None) -> list[SickDay]:
        """A user's sick days, optionally limited to one year."""
        if year is not None:
            return self.repository.find_sick_days_in_range(
                user_id, date(year, 1, 1), date(year, 12, 31)
            )
        return (
            self.db.query(SickDay)
            .filter(SickDay.user_id == user_id)
            .order_by(SickDay.start_date.desc())
            .all()
        )

    def create_sick_day(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        days: float,
        notes: str | None = None,
    ) -> SickDay:
        """Record sick leave.

        Raises:
            DateRangeConflictError: If it overlaps other sick leave.
        """
        self._validate_range(start_date, end_date, days)
        self._check_sick_overlap(user_id, start_date, end_date)
        sick_day = SickDay(
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            days=days,
            notes=notes,
        )
        self.db.add(sick_day)
        self.db.commit()
        self.db.refresh(sick_day)
        return sick_day

    def update_sick_day(
        self,
        sick_day_id: int,
        user_id: str,
        start_date: date,
        end_date: date,
        days: float,
        notes: str | None = None,
    ) -> SickDay:
        """Change a sick leave record of the user."""
        sick_day = self._get_own_sick_day(sick_day_id, user_id)
        self._validate_range(start_date, end_date, days)
        self._check_sick_overlap(user_id, start_date, end_date, exclude_id=sick_day.id)
        sick_day.start_date = start_date
        sick_day.end_date = end_date
        sick_day.days = days
        sick_day.notes = notes
        self.db.commit()
        self.db.refresh(sick_day)
        return sick_day

    def delete_sick_day(self, sick_day_id: int, user_id: str) -> None:
        """Delete a sick leave record of the user."""
        sick_day = self._get_own_sick_day(sick_day_id, user_id)
        self.db.delete(sick_day)
        self.db.commit()

    def _get_own_sick_day(self, sick_day_id: int, user_id: str) -> SickDay:
        sick_day = self.db.get(SickDay, sick_day_id)
        if sick_day is None:
            raise NotFoundError(f"Sick day {sick_day_id} not found")
        if sick_day.user_id != user_id:
            raise PermissionDeniedError("Unauthorized")
        return sick_day

    def _check_sick_overlap(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        exclude_id: int | None = None,
    ) -> None:
        for sick_day in self.repository.find_sick_days_in_range(
            user_id, start_date, end_date
        ):
            if sick_day.id != exclude_id:
                raise DateRangeConflictError(
                    f"Sick leave overlaps existing record "
                    f"{sick_day.start_date} - {sick_day.end_date}"
                )

    @staticmethod
    def _validate_range(start_date: date, end_date: date, days: float) -> None:
        if end_date < start_date:
            raise TimeTrackingError("End date must not be before start date")
        if days <= 0:
            raise TimeTrackingError("Days must be positive")


# --- Customer and project services ---

PROJECT_FIELDS = (
    "name",
    "description",
    "hourly_rate",
    "budget_hours",
    "start_date",
    "end_date",
    "active",
    "require_description",
)
REQUIRED_PROJECT_FIELDS = {"name", "active", "require_description"}


class CustomerService:
    """Service for customers."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    def create_customer(self, name: str, currency: str = "EUR") -> Customer:
        """Create an active customer."""
        customer = Customer(name=name, currency=currency, active=True)
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} ({name})")
        return customer

    def update_customer(
        self,
        customer_id: int,
        name: str | None = None,
        active: bool | None = None,
        currency: str | None = None,
    ) -> Customer:
        """Update the given fields of a customer."""
        customer = self.repository.get_customer(customer_id)
        if name is not None:
            customer.name = name
        if active is not None:
            customer.active = active
        if currency is not None:
            customer.currency = currency
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: int) -> None:
        """Delete a customer together with its projects."""
        customer = self.repository.get_customer(customer_id)
        projects = ProjectService(self.db)
        for project in self.repository.list_projects(customer_id):
            projects.delete_project(project.id, commit=False)
        self.db.delete(customer)
        self.db.commit()
        logger.info(f"Deleted customer {customer_id}")


class ProjectService:
    """Service for projects and their maintenance."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    def create_project(
        self,
        customer_id: int,
        name: str,
        description: str | None = None,
        hourly_rate: float | None = None,
        budget_hours: float | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        require_description: bool = False,
    ) -> Project:
        """Create an active project for a customer.

        Raises:
            NotFoundError: If the customer does not exist.
            TimeTrackingError: If the end date is before the start date.
        """
        self.repository.get_customer(customer_id)
        self._validate_dates(start_date, end_date)
        project = Project(
            customer_id=customer_id,
            name=name,
            description=description,
            hourly_rate=hourly_rate,
            budget_hours=budget_hours,
            start_date=start_date,
            end_date=end_date,
            active=True,
            require_description=require_description,
        )
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"Created project {project.id} ({name}) for customer {customer_id}")
        return project

    def update_project(self, project_id: int, **changes: Any) -> Project:
        """Update project fields.

        Only the given fields change. None clears optional fields and is
        ignored for required ones.

        Args:
            project_id: The project ID.
            **changes: New values keyed by project field name.

        Returns:
            The updated project.

        Raises:
            NotFoundError: If the project does not exist.
            TimeTrackingError: If a field is unknown or the date range is
                inverted.
        """
        project = self.repository.get_project(project_id)
        unknown = set(changes) - set(PROJECT_FIELDS)
        if unknown:
            raise TimeTrackingError(f"Unknown project fields: {sorted(unknown)}")
        self._validate_dates(
            changes.get("start_date", project.start_date),
            changes.get("end_date", project.end_date),
        )
        for key, value in changes.items():
            if value is None and key in REQUIRED_PROJECT_FIELDS:
                continue
            setattr(project, key, value)
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete_project(self, project_id: int, commit: bool = True) -> None:
        """Delete a project and its multiplier overrides.

        Time entries of the project are kept without a project.
        """
        project = self.repository.get_project(project_id)
        self.db.query(ProjectMultiplier).filter(
            ProjectMultiplier.project_id == project_id
        ).delete(synchronize_session=False)
        self.db.query(TimeEntry).filter(TimeEntry.project_id == project_id).update(
            {TimeEntry.project_id: None}, synchronize_session=False
        )
        self.db.delete(project)
        if commit:
            self.db.commit()
            logger.info(f"Deleted project {project_id}")

    @staticmethod
    def _validate_dates(start_date: date | None, end_date: date | None) -> None:
        if start_date and end_date and end_date < start_date:
            raise TimeTrackingError("End date must not be before start date")

    def reconcile_project_status(self, today: date | None = None) -> list[Project]:
        """Deactivate active projects whose end date has passed.

        Safe to run repeatedly; already inactive projects are untouched.

        Args:
            today: Reference date, defaults to the local current date.

        Returns:
            The projects that were deactivated.
        """
        today = today or datetime.now(local_timezone()).date()
        expired = (
            self.db.query(Project)
            .filter(
                Project.active.is_(True),
                Project.end_date.isnot(None),
                Project.end_date < today,
            )
            .all()
        )
        for project in expired:
            project.active = False
            logger.info(f"Deactivated project {project.id} (ended {project.end_date})")
        if expired:
            self.db.commit()
        return expired


class MultiplierService:
    """Service for default and project-specific hour multipliers."""

    def __init__(self, db: Session) -> None:
        """Initialize the service.

        Args:
            db: Database session.
        """
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    def get_default_multipliers(self) -> dict[str, float]:
        """Default multiplier of every employment type."""
        return {
            employment_type.value: (
                self.repository.get_default_multiplier(employment_type.value) or 1.0
            )
            for employment_type in EmploymentType
        }

    def set_default_multipliers(
        self, multipliers: dict[EmploymentType | str, float]
    ) -> dict[str, float]:
        """Store default multipliers, clamped to the allowed range."""
        for employment_type, value in multipliers.items():
            key = EmploymentType(employment_type).value
            default = (
                self.db.query(DefaultMultiplier)
                .filter(DefaultMultiplier.employment_type == key)
                .first()
            )
            if default is None:
                default = DefaultMultiplier(employment_type=key)
                self.db.add(default)
            default.multiplier = clamp_multiplier(value)
        self.db.commit()
        return self.get_default_multipliers()

    def get_project_multipliers(self, project_id: int) -> dict[str, float]:
        """Effective multiplier of every employment type for a project."""
        self.repository.get_project(project_id)
        return {
            employment_type.value: self.repository.get_effective_multiplier(
                project_id, employment_type.value
            )
            for employment_type in EmploymentType
        }

    def set_project_multipliers(
        self,
        project_id: int,
        multipliers: dict[EmploymentType | str, float | None],
    ) -> dict[str, float]:
        """Store project overrides.

        An override that is unset or equal to the default is removed, so the
        project follows later changes of the default.

        Args:
            project_id: The project ID.
            multipliers: Value per employment type, None to remove.

        Returns:
            The effective multipliers afterwards.
        """
        self.repository.get_project(project_id)
        for employment_type, value in multipliers.items():
            key = EmploymentType(employment_type).value
            override = (
                self.db.query(ProjectMultiplier)
                .filter(
                    ProjectMultiplier.project_id == project_id,
                    ProjectMultiplier.employment_type == key,
                )
                .first()
            )
            default = self.repository.get_default_multiplier(key) or 1.0
            unchanged = (
                value is not None
                and abs(clamp_multiplier(value) - default) < MULTIPLIER_EPSILON
            )
            if value is None or unchanged:
                if override is not None:
                    self.db.delete(override)
                continue
            if override is None:
                override = ProjectMultiplier(project_id=project_id, employment_type=key)
                self.db.add(override)
            override.multiplier = clamp_multiplier(value)
        self.db.commit()
        return self.get_project_multipliers(project_id)


# --- Holiday Service ---


class HolidayService:
    """Service for public holidays."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repository = SqlAlchemyRepository(db)

    def list_holidays(self, year: int) -> list[PublicHoliday]:
        """Public holidays of a year."""
        return self.repository.find_public_holidays_in_range(
            date(year, 1, 1), date(year, 12, 31)
        )

    def create_holiday(self, holiday_date: date, name: str) -> PublicHoliday:
        """Add a single public holiday."""
        existing = (
            self.db.query(PublicHoliday)
            .filter(PublicHoliday.date == holiday_date, PublicHoliday.name == name)
            .first()
        )
        if existing is not None:
            raise DateRangeConflictError(f"Holiday {name!r} on {holiday_date} exists")
        holiday = PublicHoliday(date=holiday_date, name=name)
        self.db.add(holiday)
        self.db.commit()
        self.db.refresh(holiday)
        return holiday

    def delete_holiday(self, holiday_id: int) -> None:
        """Remove a public holiday."""
        holiday = self.db.get(PublicHoliday, holiday_id)
        if holiday is None:
            raise NotFoundError(f"Public holiday {holiday_id} not found")
        self.db.delete(holiday)
        self.db.commit()

    def import_german_holidays(
        self, year: int, subdivision: str | None = None
    ) -> list[PublicHoliday]:
        """Import a state's public holidays for a year.

        Dates that already carry a holiday are skipped.

        Args:
            year: The year to import.
            subdivision: Federal state code, defaults to the configured one.

        Returns:
            The holidays that were added.
        """
        existing_dates = {holiday.date for holiday in self.list_holidays(year)}
        imported = []
        for holiday_date, name in german_public_holidays(year, subdivision).items():
            if holiday_date in existing_dates:
                continue
            holiday = PublicHoliday(date=holiday_date, name=name)
            self.db.add(holiday)
            imported.append(holiday)
        self.db.commit()
        logger.info(f"Imported {len(imported)} public holidays for {year}")
        return imported
