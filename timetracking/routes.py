# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Time tracking API routes."""

from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from timetracking.calendar_utils import (
    PeriodType,
    day_end_timestamp,
    day_start_timestamp,
    local_timezone,
)
from timetracking.compliance import ComplianceEngine
from timetracking.deps import (
    CurrentUser,
    get_current_admin,
    get_current_user,
    get_db,
    get_user_directory,
)
from timetracking.exceptions import (
    DateRangeConflictError,
    NotFoundError,
    OverlapError,
    PermissionDeniedError,
)
from timetracking.repository import SqlAlchemyRepository, UserDirectory
from timetracking.reports import ReportService
from timetracking.schemas import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    EmployeeSettingsResponse,
    LeaveCreate,
    LeaveUpdate,
    MultiplierUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    PublicHolidayCreate,
    PublicHolidayResponse,
    SettingsPeriodCreate,
    SickDayResponse,
    TimeEntryCreate,
    TimeEntryResponse,
    TimeEntryUpdate,
    TimerStart,
    TimerStop,
    VacationResponse,
    VacationStatusUpdate,
)
from timetracking.services import (
    CustomerService,
    HolidayService,
    LeaveService,
    MultiplierService,
    ProjectService,
    SettingsService,
    TimeEntryService,
)
from timetracking.settings_resolver import SettingsResolver
from timetracking.vacation_balance import VacationBalanceCalculator

router = APIRouter(tags=["time-tracking"])


# --- Helper functions ---


def _http_error(error: ValueError) -> HTTPException:
    """Translate a domain error into an HTTP error."""
    if isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, PermissionDeniedError):
        status_code = 403
    elif isinstance(error, DateRangeConflictError | OverlapError):
        status_code = 409
    else:
        status_code = 400

    code = getattr(error, "code", None)
    detail: Any = {"code": code, "message": str(error)} if code else str(error)
    return HTTPException(status_code=status_code, detail=detail)


def _to_timestamp(value: datetime) -> int:
    """Unix timestamp of a datetime; naive values are local time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_timezone())
    return int(value.timestamp())


def _target_user(current_user: CurrentUser, user_id: str | None) -> str:
    """Resolve whose data is requested; other users need the admin role."""
    if user_id is None or user_id == current_user.id:
        return current_user.id
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id


def _report_service(db: Session, users: UserDirectory) -> ReportService:
    return ReportService(SqlAlchemyRepository(db), users)


# --- Reports ---


@router.get("/reports/customers/{customer_id}")
def customer_report(
    customer_id: int,
    period: str = Query(default=PeriodType.MONTH),
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict:
    """Billing report of one customer."""
    try:
        return _report_service(db, users).customer_report(
            customer_id, period, year=year, month=month, quarter=quarter
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/reports/projects/{project_id}")
def project_report(
    project_id: int,
    period: str = Query(default=PeriodType.MONTH),
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict:
    """Hours and budget usage of one project."""
    try:
        return _report_service(db, users).project_report(
            project_id, period, year=year, month=month, quarter=quarter
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/reports/employees")
def all_employees_report(
    period: str = Query(default=PeriodType.MONTH),
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict:
    """Summary of every employee with time entries in the period."""
    try:
        return _report_service(db, users).all_employees_report(
            period, year=year, month=month, quarter=quarter, start=start, end=end
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/reports/employees/{user_id}")
def employee_report(
    user_id: str,
    period: str = Query(default=PeriodType.MONTH),
    year: int | None = None,
    month: int | None = None,
    quarter: int | None = None,
    start: date | None = None,
    end: date | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Worked, credited and expected hours of one employee."""
    user_id = _target_user(current_user, user_id)
    try:
        return _report_service(db, users).employee_report(
            user_id,
            period,
            year=year,
            month=month,
            quarter=quarter,
            start=start,
            end=end,
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/reports/compliance")
def all_compliance_report(
    year: int,
    period: str = Query(default=PeriodType.MONTH),
    month: int | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict:
    """ArbZG compliance of all employees."""
    try:
        return _report_service(db, users).all_compliance_report(
            period, year=year, month=month
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/reports/overview")
def overview_report(
    period: str = Query(default=PeriodType.MONTH),
    year: int | None = None,
    month: int | None = None,
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict:
    """Customers, projects and employees with their hours."""
    try:
        return _report_service(db, users).overview(period, year=year, month=month)
    except ValueError as e:
        raise _http_error(e) from None


# --- Compliance ---


@router.get("/compliance")
def check_compliance(
    start: date,
    end: date,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Check ArbZG rules over a date range."""
    user_id = _target_user(current_user, user_id)
    if end < start:
        raise HTTPException(status_code=400, detail="End must not be before start")
    return _report_service(db, users).employee_compliance(user_id, start, end)


@router.get("/compliance/daily")
def check_daily_compliance(
    day: date | None = Query(default=None, alias="date"),
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Live check of one day, counting a running timer up to now."""
    user_id = _target_user(current_user, user_id)
    day = day or datetime.now(local_timezone()).date()
    engine = ComplianceEngine(SqlAlchemyRepository(db))
    return engine.check_daily_compliance(user_id, day)


# --- Vacation balance and settings ---


@router.get("/vacation-balance")
def vacation_balance(
    year: int | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Entitlement, carry-over and usage of vacation days in a year."""
    user_id = _target_user(current_user, user_id)
    year = year or datetime.now(local_timezone()).year
    calculator = VacationBalanceCalculator(SqlAlchemyRepository(db))
    return calculator.balance(user_id, year).to_dict()


@router.get("/settings")
def current_settings(
    on: date | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> dict:
    """Settings in effect today, or on the given date."""
    user_id = _target_user(current_user, user_id)
    resolver = SettingsResolver(SqlAlchemyRepository(db))
    if on is None:
        return resolver.current_settings(user_id).to_dict()
    return resolver.settings_at(user_id, on).to_dict()


@router.get(
    "/settings/{user_id}/periods", response_model=list[EmployeeSettingsResponse]
)
def list_settings_periods(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> list[EmployeeSettingsResponse]:
    """History of a user's settings periods."""
    user_id = _target_user(current_user, user_id)
    periods = SettingsService(db).list_periods(user_id)
    return [EmployeeSettingsResponse.model_validate(p) for p in periods]


@router.post(
    "/settings/{user_id}/periods",
    response_model=EmployeeSettingsResponse,
    status_code=201,
)
def create_settings_period(
    user_id: str,
    data: SettingsPeriodCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> EmployeeSettingsResponse:
    """Start a new settings period for a user."""
    try:
        period = SettingsService(db).create_period(
            user_id,
            valid_from=data.valid_from,
            employment_type=data.employment_type,
            weekly_hours=data.weekly_hours,
            vacation_days_per_year=data.vacation_days_per_year,
            hourly_rate=data.hourly_rate,
            max_total_hours=data.max_total_hours,
            employment_start=data.employment_start,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return EmployeeSettingsResponse.model_validate(period)


# --- Time entries ---


@router.get("/entries", response_model=list[TimeEntryResponse])
def list_entries(
    start: date | None = None,
    end: date | None = None,
    project_id: int | None = Query(default=None, alias="projectId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> list[TimeEntryResponse]:
    """List the current user's time entries."""
    entries = TimeEntryService(db).list_entries(
        current_user.id,
        day_start_timestamp(start) if start else None,
        day_end_timestamp(end) if end else None,
    )
    if project_id is not None:
        entries = [entry for entry in entries if entry.project_id == project_id]
    return [TimeEntryResponse.model_validate(entry) for entry in entries]


@router.post("/entries", response_model=TimeEntryResponse, status_code=201)
def create_entry(
    data: TimeEntryCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimeEntryResponse:
    """Create a time entry."""
    try:
        entry = TimeEntryService(db).create_entry(
            user_id=current_user.id,
            project_id=data.project_id,
            start_ts=_to_timestamp(data.start_time),
            end_ts=_to_timestamp(data.end_time) if data.end_time else None,
            description=data.description,
            billable=data.billable,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return TimeEntryResponse.model_validate(entry)


@router.put("/entries/{entry_id}", response_model=TimeEntryResponse)
def update_entry(
    entry_id: int,
    data: TimeEntryUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimeEntryResponse:
    """Update a time entry of the current month."""
    try:
        entry = TimeEntryService(db).update_entry(
            entry_id,
            current_user.id,
            start_ts=_to_timestamp(data.start_time),
            end_ts=_to_timestamp(data.end_time) if data.end_time else None,
            project_id=data.project_id,
            description=data.description,
            billable=data.billable,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return TimeEntryResponse.model_validate(entry)


@router.delete("/entries/{entry_id}", status_code=204)
def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    """Delete a time entry of the current month."""
    try:
        TimeEntryService(db).delete_entry(entry_id, current_user.id)
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/timer", response_model=TimeEntryResponse | None)
def running_timer(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimeEntryResponse | None:
    """The running timer of the current user, if any."""
    entry = SqlAlchemyRepository(db).find_running_timer(current_user.id)
    return TimeEntryResponse.model_validate(entry) if entry else None


@router.post("/timer/start", response_model=TimeEntryResponse, status_code=201)
def start_timer(
    data: TimerStart,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimeEntryResponse:
    """Start a timer now."""
    try:
        entry = TimeEntryService(db).start_timer(
            current_user.id, project_id=data.project_id, description=data.description
        )
    except ValueError as e:
        raise _http_error(e) from None
    return TimeEntryResponse.model_validate(entry)


@router.post("/timer/stop", response_model=TimeEntryResponse)
def stop_timer(
    data: TimerStop,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TimeEntryResponse:
    """Stop the running timer now."""
    try:
        entry = TimeEntryService(db).stop_timer(
            current_user.id,
            project_id=data.project_id,
            description=data.description,
            billable=data.billable,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return TimeEntryResponse.model_validate(entry)


# --- Vacations ---


@router.get("/vacations", response_model=list[VacationResponse])
def list_vacations(
    year: int | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> list[VacationResponse]:
    """List vacations of the current user."""
    user_id = _target_user(current_user, user_id)
    vacations = LeaveService(db).list_vacations(user_id, year)
    return [VacationResponse.model_validate(v) for v in vacations]


@router.post("/vacations", response_model=VacationResponse, status_code=201)
def create_vacation(
    data: LeaveCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> VacationResponse:
    """Request vacation; administrators' entries are approved directly."""
    user_id = _target_user(current_user, data.user_id)
    try:
        vacation = LeaveService(db).create_vacation(
            user_id,
            data.start_date,
            data.end_date,
            data.days,
            notes=data.notes,
            created_by_admin=current_user.is_admin,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return VacationResponse.model_validate(vacation)


@router.put("/vacations/{vacation_id}", response_model=VacationResponse)
def update_vacation(
    vacation_id: int,
    data: LeaveUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> VacationResponse:
    """Change a pending vacation request."""
    try:
        vacation = LeaveService(db).update_vacation(
            vacation_id,
            current_user.id,
            data.start_date,
            data.end_date,
            data.days,
            notes=data.notes,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return VacationResponse.model_validate(vacation)


@router.delete("/vacations/{vacation_id}", status_code=204)
def delete_vacation(
    vacation_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    """Withdraw a pending vacation request."""
    try:
        LeaveService(db).delete_vacation(vacation_id, current_user.id)
    except ValueError as e:
        raise _http_error(e) from None


@router.put("/vacations/{vacation_id}/status", response_model=VacationResponse)
def set_vacation_status(
    vacation_id: int,
    data: VacationStatusUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> VacationResponse:
    """Approve or reject a vacation request."""
    try:
        vacation = LeaveService(db).set_vacation_status(vacation_id, data.status)
    except ValueError as e:
        raise _http_error(e) from None
    return VacationResponse.model_validate(vacation)


# --- Sick days ---


@router.get("/sick-days", response_model=list[SickDayResponse])
def list_sick_days(
    year: int | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> list[SickDayResponse]:
    """List sick leave of the current user."""
    user_id = _target_user(current_user, user_id)
    sick_days = LeaveService(db).list_sick_days(user_id, year)
    return [SickDayResponse.model_validate(s) for s in sick_days]


@router.post("/sick-days", response_model=SickDayResponse, status_code=201)
def create_sick_day(
    data: LeaveCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SickDayResponse:
    """Record sick leave."""
    user_id = _target_user(current_user, data.user_id)
    try:
        sick_day = LeaveService(db).create_sick_day(
            user_id, data.start_date, data.end_date, data.days, notes=data.notes
        )
    except ValueError as e:
        raise _http_error(e) from None
    return SickDayResponse.model_validate(sick_day)


@router.put("/sick-days/{sick_day_id}", response_model=SickDayResponse)
def update_sick_day(
    sick_day_id: int,
    data: LeaveUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SickDayResponse:
    """Change a sick leave record."""
    try:
        sick_day = LeaveService(db).update_sick_day(
            sick_day_id,
            current_user.id,
            data.start_date,
            data.end_date,
            data.days,
            notes=data.notes,
        )
    except ValueError as e:
        raise _http_error(e) from None
    return SickDayResponse.model_validate(sick_day)


@router.delete("/sick-days/{sick_day_id}", status_code=204)
def delete_sick_day(
    sick_day_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    """Delete a sick leave record."""
    try:
        LeaveService(db).delete_sick_day(sick_day_id, current_user.id)
    except ValueError as e:
        raise _http_error(e) from None


# --- Public holidays ---


@router.get("/holidays", response_model=list[PublicHolidayResponse])
def list_holidays(
    year: int,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> list[PublicHolidayResponse]:
    """Public holidays of a year."""
    holidays = HolidayService(db).list_holidays(year)
    return [PublicHolidayResponse.model_validate(h) for h in holidays]


@router.post("/holidays", response_model=PublicHolidayResponse, status_code=201)
def create_holiday(
    data: PublicHolidayCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> PublicHolidayResponse:
    """Add a public holiday."""
    try:
        holiday = HolidayService(db).create_holiday(data.holiday_date, data.name)
    except ValueError as e:
        raise _http_error(e) from None
    return PublicHolidayResponse.model_validate(holiday)


@router.delete("/holidays/{holiday_id}", status_code=204)
def delete_holiday(
    holiday_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> None:
    """Remove a public holiday."""
    try:
        HolidayService(db).delete_holiday(holiday_id)
    except ValueError as e:
        raise _http_error(e) from None


@router.post(
    "/holidays/import", response_model=list[PublicHolidayResponse], status_code=201
)
def import_holidays(
    year: int,
    subdivision: str | None = None,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> list[PublicHolidayResponse]:
    """Import German public holidays of a year."""
    try:
        imported = HolidayService(db).import_german_holidays(year, subdivision)
    except NotImplementedError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return [PublicHolidayResponse.model_validate(h) for h in imported]


# --- Customers, projects and multipliers ---


@router.get("/customers", response_model=list[CustomerResponse])
def list_customers(
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> list[CustomerResponse]:
    """All customers."""
    customers = SqlAlchemyRepository(db).list_customers()
    return [CustomerResponse.model_validate(c) for c in customers]


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> CustomerResponse:
    """A single customer."""
    try:
        customer = SqlAlchemyRepository(db).get_customer(customer_id)
    except ValueError as e:
        raise _http_error(e) from None
    return CustomerResponse.model_validate(customer)


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> CustomerResponse:
    """Create a customer."""
    customer = CustomerService(db).create_customer(data.name, data.currency)
    return CustomerResponse.model_validate(customer)


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> CustomerResponse:
    """Rename, (de)activate or change the currency of a customer."""
    try:
        customer = CustomerService(db).update_customer(
            customer_id, name=data.name, active=data.active, currency=data.currency
        )
    except ValueError as e:
        raise _http_error(e) from None
    return CustomerResponse.model_validate(customer)


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> None:
    """Delete a customer and its projects."""
    try:
        CustomerService(db).delete_customer(customer_id)
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/projects", response_model=list[ProjectResponse])
def list_projects(
    customer_id: int | None = Query(default=None, alias="customerId"),
    active_only: bool = Query(default=False, alias="activeOnly"),
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> list[ProjectResponse]:
    """Projects, optionally of one customer."""
    projects = SqlAlchemyRepository(db).list_projects(customer_id)
    if active_only:
        projects = [project for project in projects if project.active]
    return [ProjectResponse.model_validate(p) for p in projects]


@router.post("/projects/reconcile", response_model=list[ProjectResponse])
def reconcile_projects(
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> list[ProjectResponse]:
    """Deactivate projects whose end date has passed."""
    deactivated = ProjectService(db).reconcile_project_status()
    return [ProjectResponse.model_validate(p) for p in deactivated]


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
) -> ProjectResponse:
    """A single project."""
    try:
        project = SqlAlchemyRepository(db).get_project(project_id)
    except ValueError as e:
        raise _http_error(e) from None
    return ProjectResponse.model_validate(project)


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> ProjectResponse:
    """Create a project with optional multiplier overrides."""
    try:
        project = ProjectService(db).create_project(
            **data.model_dump(exclude={"multipliers"})
        )
        if data.multipliers:
            MultiplierService(db).set_project_multipliers(project.id, data.multipliers)
    except ValueError as e:
        raise _http_error(e) from None
    return ProjectResponse.model_validate(project)


@router.put("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> ProjectResponse:
    """Update the given project fields and multiplier overrides."""
    changes = data.model_dump(exclude_unset=True, exclude={"multipliers"})
    try:
        project = ProjectService(db).update_project(project_id, **changes)
        if data.multipliers is not None:
            MultiplierService(db).set_project_multipliers(project_id, data.multipliers)
    except ValueError as e:
        raise _http_error(e) from None
    return ProjectResponse.model_validate(project)


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> None:
    """Delete a project; its time entries are kept without project."""
    try:
        ProjectService(db).delete_project(project_id)
    except ValueError as e:
        raise _http_error(e) from None


@router.get("/multipliers")
def get_default_multipliers(
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict[str, float]:
    """Default multiplier per employment type."""
    return MultiplierService(db).get_default_multipliers()


@router.put("/multipliers")
def set_default_multipliers(
    data: MultiplierUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict[str, float]:
    """Update default multipliers."""
    values = {
        key: value for key, value in data.multipliers.items() if value is not None
    }
    return MultiplierService(db).set_default_multipliers(values)


@router.get("/projects/{project_id}/multipliers")
def get_project_multipliers(
    project_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict[str, float]:
    """Effective multipliers of a project."""
    try:
        return MultiplierService(db).get_project_multipliers(project_id)
    except ValueError as e:
        raise _http_error(e) from None


@router.put("/projects/{project_id}/multipliers")
def set_project_multipliers(
    project_id: int,
    data: MultiplierUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin),
) -> dict[str, float]:
    """Set or remove project multiplier overrides."""
    try:
        return MultiplierService(db).set_project_multipliers(
            project_id, data.multipliers
        )
    except ValueError as e:
        raise _http_error(e) from None
