# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Time tracking database models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from timetracking.database import Base


class EmploymentType(str, Enum):
    """Employment categories of a settings period."""

    DIRECTOR = "director"
    CONTRACT = "contract"
    FREELANCE = "freelance"
    INTERN = "intern"
    STUDENT = "student"


class VacationStatus(str, Enum):
    """Approval state of a vacation request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class EmploymentCapabilities:
    """Which rules and credits apply to an employment type."""

    counts_for_compliance: bool
    counts_for_vacation: bool
    counts_for_sick_pay: bool
    counts_for_holiday_credit: bool
    exemption_reason: str | None = None


CAPABILITIES: dict[EmploymentType, EmploymentCapabilities] = {
    EmploymentType.DIRECTOR: EmploymentCapabilities(
        counts_for_compliance=False,
        counts_for_vacation=True,
        counts_for_sick_pay=True,
        counts_for_holiday_credit=True,
        exemption_reason="Geschäftsführer (§18 Abs. 1 Nr. 1 ArbZG)",
    ),
    EmploymentType.CONTRACT: EmploymentCapabilities(
        counts_for_compliance=True,
        counts_for_vacation=True,
        counts_for_sick_pay=True,
        counts_for_holiday_credit=True,
    ),
    EmploymentType.FREELANCE: EmploymentCapabilities(
        counts_for_compliance=False,
        counts_for_vacation=False,
        counts_for_sick_pay=False,
        counts_for_holiday_credit=False,
        exemption_reason="Freie Mitarbeiter sind keine Arbeitnehmer (§2 Abs. 2 ArbZG)",
    ),
    EmploymentType.INTERN: EmploymentCapabilities(
        counts_for_compliance=True,
        counts_for_vacation=True,
        counts_for_sick_pay=False,
        counts_for_holiday_credit=False,
    ),
    EmploymentType.STUDENT: EmploymentCapabilities(
        counts_for_compliance=True,
        counts_for_vacation=True,
        counts_for_sick_pay=True,
        counts_for_holiday_credit=True,
    ),
}


def capabilities_for(employment_type: str | EmploymentType) -> EmploymentCapabilities:
    """Look up the capability row for an employment type.

    Args:
        employment_type: Enum member or its string value.

    Returns:
        The capabilities of that type.

    Raises:
        ValueError: If the type is unknown.
    """
    return CAPABILITIES[EmploymentType(employment_type)]


# --- Billing ---


class Customer(Base):
    """A customer owning projects."""

    __tablename__ = "tt_customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    currency = Column(String(3), default="EUR", nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Customer(id={self.id}, name={self.name!r})>"


class Project(Base):
    """A billable project of a customer."""

    __tablename__ = "tt_projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(
        Integer, ForeignKey("tt_customers.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    hourly_rate = Column(Float, nullable=True)
    budget_hours = Column(Float, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    require_description = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("idx_tt_project_customer", "customer_id"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Project(id={self.id}, name={self.name!r}, active={self.active})>"


class DefaultMultiplier(Base):
    """Global hour multiplier per employment type."""

    __tablename__ = "tt_default_multipliers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employment_type = Column(String(20), unique=True, nullable=False)
    multiplier = Column(Float, default=1.0, nullable=False)


class ProjectMultiplier(Base):
    """Project-specific override of a default multiplier."""

    __tablename__ = "tt_project_multipliers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(
        Integer, ForeignKey("tt_projects.id", ondelete="CASCADE"), nullable=False
    )
    employment_type = Column(String(20), nullable=False)
    multiplier = Column(Float, default=1.0, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "project_id", "employment_type", name="uq_tt_project_multiplier"
        ),
    )


# --- Time tracking ---


class TimeEntry(Base):
    """A worked interval against a project.

    Start and end are Unix timestamps. An entry without an end is a running
    timer; each user has at most one.
    """

    __tablename__ = "tt_time_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(
        Integer, ForeignKey("tt_projects.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(String(64), nullable=False)
    start_timestamp = Column(Integer, nullable=False)
    end_timestamp = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    billable = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_tt_entry_user_start", "user_id", "start_timestamp"),
        Index("idx_tt_entry_project_start", "project_id", "start_timestamp"),
    )

    @property
    def is_running(self) -> bool:
        """Check if this entry is a running timer."""
        return self.end_timestamp is None

    @property
    def duration_minutes(self) -> int | None:
        """Whole minutes between start and end, None while running."""
        if self.end_timestamp is None:
            return None
        return (self.end_timestamp - self.start_timestamp) // 60

    @property
    def hours(self) -> float:
        """Worked hours, zero for a running timer."""
        return (self.duration_minutes or 0) / 60

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<TimeEntry(id={self.id}, user={self.user_id}, "
            f"start={self.start_timestamp}, end={self.end_timestamp})>"
        )


class EmployeeSettings(Base):
    """Contract terms of a user for a validity window.

    A row with ``valid_to`` unset is open-ended. A row without ``valid_from``
    is a legacy undated record used as the current-settings fallback.
    """

    __tablename__ = "tt_employee_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    employment_type = Column(
        String(20), default=EmploymentType.CONTRACT.value, nullable=False
    )
    weekly_hours = Column(Float, default=40.0, nullable=False)
    max_total_hours = Column(Float, nullable=True)
    vacation_days_per_year = Column(Float, default=20.0, nullable=False)
    hourly_rate = Column(Float, nullable=True)
    employment_start = Column(Date, nullable=True)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("idx_tt_settings_user_from", "user_id", "valid_from"),)

    @property
    def daily_hours(self) -> float:
        """Contract hours per day on a five-day week."""
        return self.weekly_hours / 5

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<EmployeeSettings(id={self.id}, user={self.user_id}, "
            f"type={self.employment_type}, {self.valid_from}..{self.valid_to})>"
        )


class Vacation(Base):
    """A vacation request. ``days`` is entered, not derived from the span."""

    __tablename__ = "tt_vacations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Float, nullable=False)
    status = Column(String(20), default=VacationStatus.PENDING.value, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("idx_tt_vacation_user_start", "user_id", "start_date"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<Vacation(id={self.id}, user={self.user_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )


class SickDay(Base):
    """A sick leave record."""

    __tablename__ = "tt_sick_days"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("idx_tt_sick_user_start", "user_id", "start_date"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<SickDay(id={self.id}, user={self.user_id}, {self.start_date})>"


class PublicHoliday(Base):
    """A public holiday, imported per year."""

    __tablename__ = "tt_public_holidays"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    name = Column(String(200), nullable=False)

    __table_args__ = (UniqueConstraint("date", "name", name="uq_tt_holiday_date_name"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PublicHoliday(id={self.id}, date={self.date}, name={self.name!r})>"
