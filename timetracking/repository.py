# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Repository interfaces consumed by the computation engines.

The engines only read through :class:`TimeTrackingRepository`. Writes happen
in the service layer on the same session.
"""

from abc import ABC, abstractmethod
from datetime import date

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from timetracking.exceptions import NotFoundError
from timetracking.models import (
    Customer,
    DefaultMultiplier,
    EmployeeSettings,
    Project,
    ProjectMultiplier,
    PublicHoliday,
    SickDay,
    TimeEntry,
    Vacation,
    VacationStatus,
)

DEFAULT_MULTIPLIER = 1.0


class TimeTrackingRepository(ABC):
    """Read access to time tracking data."""

    # --- Time entries ---

    @abstractmethod
    def find_time_entries_by_user(
        self,
        user_id: str,
        start_ts: int | None = None,
        end_ts: int | None = None,
    ) -> list[TimeEntry]:
        """Entries of a user whose start lies in the range, newest first."""
        ...

    @abstractmethod
    def find_time_entries_by_project(
        self,
        project_id: int,
        start_ts: int | None = None,
        end_ts: int | None = None,
    ) -> list[TimeEntry]:
        """Entries of a project whose start lies in the range, newest first."""
        ...

    @abstractmethod
    def find_running_timer(self, user_id: str) -> TimeEntry | None:
        """The user's entry without an end, if any."""
        ...

    # --- Settings periods ---

    @abstractmethod
    def find_settings_periods_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[EmployeeSettings]:
        """Periods overlapping the range, ordered by valid_from."""
        ...

    @abstractmethod
    def find_current_settings(self, user_id: str) -> EmployeeSettings | None:
        """The open-ended settings record, None once every period has ended."""
        ...

    @abstractmethod
    def find_all_settings_periods(self, user_id: str) -> list[EmployeeSettings]:
        """Every dated period of the user, ordered by valid_from."""
        ...

    # --- Leave ---

    @abstractmethod
    def find_vacations_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[Vacation]:
        """Vacations of any status overlapping the range."""
        ...

    @abstractmethod
    def sum_approved_vacation_days(self, user_id: str, year: int) -> float:
        """Sum of days of approved vacations overlapping the year."""
        ...

    @abstractmethod
    def find_sick_days_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[SickDay]:
        """Sick days overlapping the range."""
        ...

    @abstractmethod
    def find_public_holidays_in_range(
        self, start: date, end: date
    ) -> list[PublicHoliday]:
        """Public holidays between start and end."""
        ...

    # --- Billing ---

    @abstractmethod
    def get_effective_multiplier(self, project_id: int, employment_type: str) -> float:
        """Project override, else global default, else 1.0."""
        ...

    @abstractmethod
    def get_default_multiplier(self, employment_type: str) -> float | None:
        """The global default multiplier, None if unset."""
        ...

    @abstractmethod
    def get_customer(self, customer_id: int) -> Customer:
        """Load a customer or raise NotFoundError."""
        ...

    @abstractmethod
    def get_project(self, project_id: int) -> Project:
        """Load a project or raise NotFoundError."""
        ...

    @abstractmethod
    def list_customers(self) -> list[Customer]:
        """All customers ordered by name."""
        ...

    @abstractmethod
    def list_projects(self, customer_id: int | None = None) -> list[Project]:
        """Projects, optionally of one customer, ordered by name."""
        ...

    @abstractmethod
    def list_user_ids(self) -> list[str]:
        """Every user known through settings or time entries."""
        ...


class SqlAlchemyRepository(TimeTrackingRepository):
    """Repository backed by a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        """Initialize the repository.

        Args:
            db: Database session.
        """
        self.db = db

    def find_time_entries_by_user(
        self,
        user_id: str,
        start_ts: int | None = None,
        end_ts: int | None = None,
    ) -> list[TimeEntry]:
        query = self.db.query(TimeEntry).filter(TimeEntry.user_id == user_id)
        return self._filter_entries(query, start_ts, end_ts)

    def find_time_entries_by_project(
        self,
        project_id: int,
        start_ts: int | None = None,
        end_ts: int | None = None,
    ) -> list[TimeEntry]:
        query = self.db.query(TimeEntry).filter(TimeEntry.project_id == project_id)
        return self._filter_entries(query, start_ts, end_ts)

    def find_running_timer(self, user_id: str) -> TimeEntry | None:
        return (
            self.db.query(TimeEntry)
            .filter(TimeEntry.user_id == user_id, TimeEntry.end_timestamp.is_(None))
            .first()
        )

    def find_settings_periods_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[EmployeeSettings]:
        return (
            self.db.query(EmployeeSettings)
            .filter(
                EmployeeSettings.user_id == user_id,
                EmployeeSettings.valid_from.isnot(None),
                EmployeeSettings.valid_from <= end,
                or_(
                    EmployeeSettings.valid_to.is_(None),
                    EmployeeSettings.valid_to >= start,
                ),
            )
            .order_by(EmployeeSettings.valid_from.asc(), EmployeeSettings.id.asc())
            .all()
        )

    def find_current_settings(self, user_id: str) -> EmployeeSettings | None:
        return (
            self.db.query(EmployeeSettings)
            .filter(
                EmployeeSettings.user_id == user_id,
                EmployeeSettings.valid_to.is_(None),
            )
            .order_by(
                EmployeeSettings.valid_from.is_(None),
                EmployeeSettings.valid_from.desc(),
                EmployeeSettings.id.desc(),
            )
            .first()
        )

    def find_all_settings_periods(self, user_id: str) -> list[EmployeeSettings]:
        return (
            self.db.query(EmployeeSettings)
            .filter(
                EmployeeSettings.user_id == user_id,
                EmployeeSettings.valid_from.isnot(None),
            )
            .order_by(EmployeeSettings.valid_from.asc(), EmployeeSettings.id.asc())
            .all()
        )

    def find_vacations_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[Vacation]:
        return (
            self.db.query(Vacation)
            .filter(
                Vacation.user_id == user_id,
                Vacation.start_date <= end,
                Vacation.end_date >= start,
            )
            .order_by(Vacation.start_date.asc(), Vacation.id.asc())
            .all()
        )

    def sum_approved_vacation_days(self, user_id: str, year: int) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Vacation.days), 0.0))
            .filter(
                Vacation.user_id == user_id,
                Vacation.status == VacationStatus.APPROVED.value,
                Vacation.start_date <= date(year, 12, 31),
                Vacation.end_date >= date(year, 1, 1),
            )
            .scalar()
        )
        return float(total)

    def find_sick_days_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[SickDay]:
        return (
            self.db.query(SickDay)
            .filter(
                SickDay.user_id == user_id,
                SickDay.start_date <= end,
                SickDay.end_date >= start,
            )
            .order_by(SickDay.start_date.asc(), SickDay.id.asc())
            .all()
        )

    def find_public_holidays_in_range(
        self, start: date, end: date
    ) -> list[PublicHoliday]:
        return (
            self.db.query(PublicHoliday)
            .filter(PublicHoliday.date >= start, PublicHoliday.date <= end)
            .order_by(PublicHoliday.date.asc())
            .all()
        )

    def get_effective_multiplier(self, project_id: int, employment_type: str) -> float:
        override = (
            self.db.query(ProjectMultiplier)
            .filter(
                ProjectMultiplier.project_id == project_id,
                ProjectMultiplier.employment_type == employment_type,
            )
            .first()
        )
        if override is not None:
            return override.multiplier
        default = self.get_default_multiplier(employment_type)
        return default if default is not None else DEFAULT_MULTIPLIER

    def get_default_multiplier(self, employment_type: str) -> float | None:
        default = (
            self.db.query(DefaultMultiplier)
            .filter(DefaultMultiplier.employment_type == employment_type)
            .first()
        )
        return default.multiplier if default is not None else None

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def get_project(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def list_customers(self) -> list[Customer]:
        return self.db.query(Customer).order_by(Customer.name.asc()).all()

    def list_projects(self, customer_id: int | None = None) -> list[Project]:
        query = self.db.query(Project)
        if customer_id is not None:
            query = query.filter(Project.customer_id == customer_id)
        return query.order_by(Project.name.asc(), Project.id.asc()).all()

    def list_user_ids(self) -> list[str]:
        settings_users = {
            row[0] for row in self.db.query(EmployeeSettings.user_id).distinct()
        }
        entry_users = {row[0] for row in self.db.query(TimeEntry.user_id).distinct()}
        return sorted(settings_users | entry_users)

    def _filter_entries(
        self,
        query,
        start_ts: int | None,
        end_ts: int | None,
    ) -> list[TimeEntry]:
        if start_ts is not None:
            query = query.filter(TimeEntry.start_timestamp >= start_ts)
        if end_ts is not None:
            query = query.filter(TimeEntry.start_timestamp <= end_ts)
        return query.order_by(
            TimeEntry.start_timestamp.desc(), TimeEntry.id.desc()
        ).all()


class UserDirectory(ABC):
    """Display names of users, supplied by the host platform."""

    @abstractmethod
    def get_display_name(self, user_id: str) -> str:
        """Return a human-readable name for a user."""
        ...


class PlainUserDirectory(UserDirectory):
    """Directory that uses optional known names and falls back to the id."""

    def __init__(self, names: dict[str, str] | None = None) -> None:
        self.names = names or {}

    def get_display_name(self, user_id: str) -> str:
        return self.names.get(user_id, user_id)
