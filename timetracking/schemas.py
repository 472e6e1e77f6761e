# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Pydantic schemas for requests, responses and compliance findings."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from timetracking.models import EmploymentType, VacationStatus


class CamelModel(BaseModel):
    """Base schema serializing to camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Compliance ---


class ComplianceFinding(CamelModel):
    """A violation or warning produced by a compliance check."""

    type: str
    level: str  # "violation" or "warning"
    severity: str  # "high", "medium", "low"
    message: str
    date: str | None = None
    hours: float | None = None
    limit: float | None = None
    week_start: str | None = None
    week_end: str | None = None
    previous_date: str | None = None
    rest_hours: float | None = None
    required: float | None = None
    required_break: int | None = None
    actual_break: int | None = None
    law_reference: str | None = None

    @property
    def is_violation(self) -> bool:
        """Check if this finding breaks the law rather than warns."""
        return self.level == "violation"

    def to_dict(self) -> dict:
        """Serialize without unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Time Entry Schemas ---


class TimeEntryCreate(CamelModel):
    """Schema for creating a completed or running time entry."""

    project_id: int
    start_time: datetime
    end_time: datetime | None = None
    description: str | None = None
    billable: bool = True


class TimeEntryUpdate(CamelModel):
    """Schema for updating a time entry."""

    start_time: datetime
    end_time: datetime | None = None
    project_id: int | None = None
    description: str | None = None
    billable: bool | None = None


class TimerStart(CamelModel):
    """Request schema for starting a timer."""

    project_id: int | None = None
    description: str | None = None


class TimerStop(CamelModel):
    """Request schema for stopping the running timer."""

    project_id: int | None = None
    description: str | None = None
    billable: bool | None = True


class TimeEntryResponse(CamelModel):
    """Schema for time entry responses."""

    id: int
    project_id: int | None = None
    user_id: str
    start_timestamp: int
    end_timestamp: int | None = None
    duration_minutes: int | None = None
    description: str | None = None
    billable: bool
    is_running: bool = False


# --- Employee Settings Schemas ---


class SettingsPeriodCreate(CamelModel):
    """Schema for starting a new settings period."""

    employment_type: EmploymentType = EmploymentType.CONTRACT
    weekly_hours: float = Field(default=40.0, ge=0, le=168)
    max_total_hours: float | None = Field(default=None, ge=0)
    vacation_days_per_year: float | None = Field(default=None, ge=0)
    hourly_rate: float | None = Field(default=None, ge=0)
    employment_start: date | None = None
    valid_from: date


class EmployeeSettingsResponse(CamelModel):
    """Schema for settings period responses."""

    id: int
    user_id: str
    employment_type: EmploymentType
    weekly_hours: float
    max_total_hours: float | None = None
    vacation_days_per_year: float
    hourly_rate: float | None = None
    employment_start: date | None = None
    valid_from: date | None = None
    valid_to: date | None = None


# --- Leave Schemas ---


class LeaveCreate(CamelModel):
    """Schema for creating a vacation or sick leave record."""

    start_date: date
    end_date: date
    days: float = Field(gt=0)
    notes: str | None = None
    user_id: str | None = None  # admins may file for another user


class LeaveUpdate(CamelModel):
    """Schema for updating a vacation or sick leave record."""

    start_date: date
    end_date: date
    days: float = Field(gt=0)
    notes: str | None = None


class VacationResponse(CamelModel):
    """Schema for vacation responses."""

    id: int
    user_id: str
    start_date: date
    end_date: date
    days: float
    status: VacationStatus
    notes: str | None = None


class SickDayResponse(CamelModel):
    """Schema for sick day responses."""

    id: int
    user_id: str
    start_date: date
    end_date: date
    days: float
    notes: str | None = None


class PublicHolidayResponse(CamelModel):
    """Schema for public holiday responses."""

    id: int
    date: date
    name: str


# --- Project Schemas ---


class ProjectResponse(CamelModel):
    """Schema for project responses."""

    id: int
    customer_id: int
    name: str
    description: str | None = None
    hourly_rate: float | None = None
    budget_hours: float | None = None
    start_date: date | None = None
    end_date: date | None = None
    active: bool
    require_description: bool


class CustomerResponse(CamelModel):
    """Schema for customer responses."""

    id: int
    name: str
    currency: str
    active: bool


class MultiplierUpdate(CamelModel):
    """Multipliers per employment type; null removes a project override."""

    multipliers: dict[EmploymentType, float | None]


class VacationStatusUpdate(CamelModel):
    """Schema for approving or rejecting a vacation request."""

    status: VacationStatus


class PublicHolidayCreate(CamelModel):
    """Schema for adding a single public holiday."""

    holiday_date: date = Field(alias="date")
    name: str = Field(min_length=1, max_length=200)


class CustomerCreate(CamelModel):
    """Schema for creating a customer."""

    name: str = Field(min_length=1, max_length=200)
    currency: str = Field(default="EUR", min_length=3, max_length=3)


class CustomerUpdate(CamelModel):
    """Schema for updating a customer."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    active: bool | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class ProjectCreate(CamelModel):
    """Schema for creating a project, optionally with multiplier overrides."""

    customer_id: int
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    budget_hours: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    require_description: bool = False
    multipliers: dict[EmploymentType, float | None] | None = None


class ProjectUpdate(CamelModel):
    """Schema for updating a project; unset fields stay unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    budget_hours: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    active: bool | None = None
    require_description: bool | None = None
    multipliers: dict[EmploymentType, float | None] | None = None
