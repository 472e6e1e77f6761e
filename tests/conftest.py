# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
import os
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app
os.environ["TIMETRACKING_DATABASE_URL"] = "sqlite://"
os.environ["TIMETRACKING_TIMEZONE"] = "Europe/Berlin"
os.environ["TIMETRACKING_HOLIDAY_SUBDIVISION"] = "NW"

from timetracking import models  # noqa: E402
from timetracking.calendar_utils import local_timezone  # noqa: E402
from timetracking.database import Base, get_db  # noqa: E402
from timetracking.main import app  # noqa: E402

# Test database setup
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Identity headers of a regular employee."""
    return {"X-User-Id": "alice"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Identity headers of an administrator."""
    return {"X-User-Id": "boss", "X-User-Role": "admin"}


@pytest.fixture
def ts():
    """Build a Unix timestamp from local wall-clock time."""

    def _ts(day: date, hour: int, minute: int = 0) -> int:
        return int(
            datetime(
                day.year, day.month, day.day, hour, minute, tzinfo=local_timezone()
            ).timestamp()
        )

    return _ts


@pytest.fixture
def customer(db_session) -> models.Customer:
    """Create a test customer."""
    customer = models.Customer(name="Acme GmbH", currency="EUR")
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def project(db_session, customer) -> models.Project:
    """Create a billable project with rate and budget."""
    project = models.Project(
        customer_id=customer.id,
        name="Website Relaunch",
        hourly_rate=100.0,
        budget_hours=100.0,
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def add_settings(db_session):
    """Factory for employee settings periods."""

    def _add_settings(user_id: str, **kwargs) -> models.EmployeeSettings:
        values = {
            "employment_type": models.EmploymentType.CONTRACT.value,
            "weekly_hours": 40.0,
            "vacation_days_per_year": 20.0,
        }
        values.update(kwargs)
        if isinstance(values["employment_type"], models.EmploymentType):
            values["employment_type"] = values["employment_type"].value
        settings = models.EmployeeSettings(user_id=user_id, **values)
        db_session.add(settings)
        db_session.commit()
        db_session.refresh(settings)
        return settings

    return _add_settings


@pytest.fixture
def add_entry(db_session, ts):
    """Factory for completed time entries."""

    def _add_entry(
        user_id: str,
        project_id: int | None,
        day: date,
        start_hour: int,
        end_hour: int | None,
        start_minute: int = 0,
        end_minute: int = 0,
        billable: bool = True,
    ) -> models.TimeEntry:
        entry = models.TimeEntry(
            user_id=user_id,
            project_id=project_id,
            start_timestamp=ts(day, start_hour, start_minute),
            end_timestamp=(
                ts(day, end_hour, end_minute) if end_hour is not None else None
            ),
            billable=billable,
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _add_entry
