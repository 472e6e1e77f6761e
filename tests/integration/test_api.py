# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Integration tests for the time tracking API."""

from datetime import date

from timetracking.models import Vacation

API = "/api/v1"


def _entry(project_id: int, day: str, start: str, end: str) -> dict:
    return {
        "projectId": project_id,
        "startTime": f"{day}T{start}:00+02:00",
        "endTime": f"{day}T{end}:00+02:00",
        "description": "Implementation",
    }


class TestAuthentication:
    """Tests for identity and role checks."""

    def test_health(self, client) -> None:
        """The health endpoint needs no identity."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_missing_identity(self, client) -> None:
        """Requests without a user are rejected."""
        response = client.get(f"{API}/entries")
        assert response.status_code == 401

    def test_admin_report_requires_admin(self, client, user_headers, customer) -> None:
        """Billing reports are for administrators."""
        response = client.get(
            f"{API}/reports/customers/{customer.id}",
            params={"period": "month", "year": 2024, "month": 6},
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_foreign_employee_report(self, client, user_headers) -> None:
        """Employees only see their own report."""
        response = client.get(
            f"{API}/reports/employees/bob",
            params={"period": "month", "year": 2024, "month": 6},
            headers=user_headers,
        )
        assert response.status_code == 403


class TestTimeEntriesApi:
    """Tests for time entry endpoints."""

    def test_create_and_list(self, client, user_headers, project) -> None:
        """Entries are created and listed for the current user."""
        response = client.post(
            f"{API}/entries",
            json=_entry(project.id, "2024-06-03", "08:00", "12:00"),
            headers=user_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["durationMinutes"] == 240
        assert data["userId"] == "alice"
        assert data["isRunning"] is False

        response = client.get(
            f"{API}/entries",
            params={"start": "2024-06-01", "end": "2024-06-30"},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_overlap_conflict(self, client, user_headers, project) -> None:
        """Overlapping entries return 409."""
        client.post(
            f"{API}/entries",
            json=_entry(project.id, "2024-06-03", "08:00", "12:00"),
            headers=user_headers,
        )
        response = client.post(
            f"{API}/entries",
            json=_entry(project.id, "2024-06-03", "11:00", "13:00"),
            headers=user_headers,
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "TIME_ENTRY_OVERLAP"

    def test_sunday_rejected(self, client, user_headers, project) -> None:
        """Sunday work is refused for employees."""
        response = client.post(
            f"{API}/entries",
            json=_entry(project.id, "2024-06-09", "10:00", "12:00"),
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "SUNDAY_NOT_ALLOWED"

    def test_unknown_project(self, client, user_headers) -> None:
        """Unknown projects return 404."""
        response = client.post(
            f"{API}/entries",
            json=_entry(999, "2024-06-03", "08:00", "12:00"),
            headers=user_headers,
        )
        assert response.status_code == 404

    def test_past_month_delete_locked(self, client, user_headers, project) -> None:
        """Entries of past months cannot be deleted."""
        created = client.post(
            f"{API}/entries",
            json=_entry(project.id, "2024-06-03", "08:00", "12:00"),
            headers=user_headers,
        ).json()
        response = client.delete(
            f"{API}/entries/{created['id']}", headers=user_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "PAST_MONTH_DELETE_NOT_ALLOWED"

    def test_timer(self, client, admin_headers, project, add_settings) -> None:
        """Freelancers can start and stop a timer at any time."""
        add_settings("boss", employment_type="freelance", valid_from=date(2000, 1, 1))
        response = client.post(
            f"{API}/timer/start", json={"projectId": project.id}, headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["isRunning"] is True

        response = client.get(f"{API}/timer", headers=admin_headers)
        assert response.json()["projectId"] == project.id

        response = client.post(f"{API}/timer/stop", json={}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["isRunning"] is False


class TestSettingsAndLeaveApi:
    """Tests for settings periods, leave and balances."""

    def test_settings_period(self, client, admin_headers, user_headers) -> None:
        """Administrators maintain settings periods."""
        response = client.post(
            f"{API}/settings/alice/periods",
            json={
                "employmentType": "student",
                "weeklyHours": 20,
                "validFrom": "2024-01-01",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["vacationDaysPerYear"] == 20.0

        response = client.get(
            f"{API}/settings", params={"on": "2024-06-03"}, headers=user_headers
        )
        assert response.json()["employmentType"] == "student"
        assert response.json()["weeklyHours"] == 20.0

        response = client.post(
            f"{API}/settings/alice/periods",
            json={"validFrom": "2024-01-01"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_settings_period_requires_admin(self, client, user_headers) -> None:
        """Employees cannot change their own settings."""
        response = client.post(
            f"{API}/settings/alice/periods",
            json={"validFrom": "2024-01-01"},
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_vacation_flow(self, client, user_headers, admin_headers) -> None:
        """Requests are pending until an administrator decides."""
        response = client.post(
            f"{API}/vacations",
            json={"startDate": "2024-08-05", "endDate": "2024-08-09", "days": 5},
            headers=user_headers,
        )
        assert response.status_code == 201
        vacation = response.json()
        assert vacation["status"] == "pending"

        response = client.post(
            f"{API}/vacations",
            json={"startDate": "2024-08-09", "endDate": "2024-08-12", "days": 2},
            headers=user_headers,
        )
        assert response.status_code == 409

        response = client.put(
            f"{API}/vacations/{vacation['id']}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        response = client.get(
            f"{API}/vacation-balance", params={"year": 2024}, headers=user_headers
        )
        assert response.status_code == 200
        assert response.json()["usedDays"] == 5.0

    def test_admin_files_vacation(self, client, admin_headers, db_session) -> None:
        """Vacation filed by an administrator is approved immediately."""
        response = client.post(
            f"{API}/vacations",
            json={
                "startDate": "2024-08-05",
                "endDate": "2024-08-09",
                "days": 5,
                "userId": "alice",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["status"] == "approved"
        assert db_session.query(Vacation).one().user_id == "alice"

    def test_sick_day(self, client, user_headers) -> None:
        """Sick leave is recorded for the current user."""
        response = client.post(
            f"{API}/sick-days",
            json={"startDate": "2024-06-04", "endDate": "2024-06-05", "days": 2},
            headers=user_headers,
        )
        assert response.status_code == 201
        response = client.get(
            f"{API}/sick-days", params={"year": 2024}, headers=user_headers
        )
        assert [s["days"] for s in response.json()] == [2.0]


class TestReportsApi:
    """Tests for report endpoints."""

    def test_customer_report(
        self, client, admin_headers, customer, project, add_entry
    ) -> None:
        """The customer report returns adjusted and actual totals."""
        add_entry("alice", project.id, date(2024, 6, 3), 8, 12)
        response = client.get(
            f"{API}/reports/customers/{customer.id}",
            params={"period": "month", "year": 2024, "month": 6},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["totals"]["actualHours"] == 4.0
        assert response.json()["totals"]["amount"] == 400.0

    def test_missing_period_parameters(self, client, admin_headers, customer) -> None:
        """Incomplete periods are a bad request."""
        response = client.get(
            f"{API}/reports/customers/{customer.id}",
            params={"period": "month", "year": 2024},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_own_employee_report(
        self, client, user_headers, project, add_entry
    ) -> None:
        """Employees can read their own report."""
        add_entry("alice", project.id, date(2024, 6, 3), 8, 12)
        response = client.get(
            f"{API}/reports/employees/alice",
            params={"period": "month", "year": 2024, "month": 6},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["totals"]["actualHours"] == 4.0

    def test_compliance(self, client, user_headers, add_entry) -> None:
        """The compliance check reports violations."""
        add_entry("alice", None, date(2024, 6, 3), 7, 18)
        response = client.get(
            f"{API}/compliance",
            params={"start": "2024-06-01", "end": "2024-06-30"},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["violationCount"] == 1
        assert response.json()["exempt"] is False

        response = client.get(
            f"{API}/compliance/daily",
            params={"date": "2024-06-03"},
            headers=user_headers,
        )
        assert response.status_code == 200
        assert response.json()["statistics"]["totalHours"] == 11.0


class TestAdministrationApi:
    """Tests for multipliers, holidays and project maintenance."""

    def test_multipliers(self, client, admin_headers, project) -> None:
        """Defaults and project overrides are maintained separately."""
        response = client.put(
            f"{API}/multipliers",
            json={"multipliers": {"contract": 1.2}},
            headers=admin_headers,
        )
        assert response.json()["contract"] == 1.2

        response = client.put(
            f"{API}/projects/{project.id}/multipliers",
            json={"multipliers": {"contract": 5}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["contract"] == 2.0
        assert response.json()["intern"] == 1.0

    def test_holiday_import(self, client, admin_headers, user_headers) -> None:
        """Holidays are imported once."""
        response = client.post(
            f"{API}/holidays/import", params={"year": 2024}, headers=admin_headers
        )
        assert response.status_code == 201
        imported = len(response.json())
        assert imported > 0

        response = client.get(
            f"{API}/holidays", params={"year": 2024}, headers=user_headers
        )
        assert len(response.json()) == imported

        response = client.post(
            f"{API}/holidays/import", params={"year": 2024}, headers=admin_headers
        )
        assert response.json() == []

    def test_reconcile_projects(self, client, admin_headers, db_session, project):
        """Projects past their end date are deactivated."""
        project.end_date = date(2020, 12, 31)
        db_session.commit()
        response = client.post(f"{API}/projects/reconcile", headers=admin_headers)
        assert [p["id"] for p in response.json()] == [project.id]
        assert response.json()[0]["active"] is False

    def test_customer_and_project_management(
        self, client, admin_headers, user_headers
    ) -> None:
        """Administrators maintain customers and projects."""
        response = client.post(
            f"{API}/customers", json={"name": "Initech"}, headers=admin_headers
        )
        assert response.status_code == 201
        customer = response.json()
        assert customer["currency"] == "EUR"

        response = client.post(
            f"{API}/projects",
            json={
                "customerId": customer["id"],
                "name": "TPS Reports",
                "hourlyRate": 80,
                "requireDescription": True,
                "multipliers": {"student": 0.5},
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        project = response.json()
        assert project["requireDescription"] is True
        assert project["active"] is True

        response = client.get(
            f"{API}/projects/{project['id']}/multipliers", headers=admin_headers
        )
        assert response.json()["student"] == 0.5

        response = client.put(
            f"{API}/projects/{project['id']}",
            json={"active": False, "endDate": "2024-12-31"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["active"] is False
        assert response.json()["endDate"] == "2024-12-31"
        assert response.json()["name"] == "TPS Reports"

        response = client.get(
            f"{API}/projects/{project['id']}", headers=user_headers
        )
        assert response.json()["hourlyRate"] == 80.0

        response = client.delete(
            f"{API}/customers/{customer['id']}", headers=admin_headers
        )
        assert response.status_code == 204
        response = client.get(
            f"{API}/projects/{project['id']}", headers=user_headers
        )
        assert response.status_code == 404

    def test_project_management_requires_admin(
        self, client, user_headers, customer
    ) -> None:
        """Employees cannot create projects."""
        response = client.post(
            f"{API}/projects",
            json={"customerId": customer.id, "name": "Side project"},
            headers=user_headers,
        )
        assert response.status_code == 403

    def test_project_for_unknown_customer(self, client, admin_headers) -> None:
        """Projects of unknown customers return 404."""
        response = client.post(
            f"{API}/projects",
            json={"customerId": 999, "name": "Orphan"},
            headers=admin_headers,
        )
        assert response.status_code == 404
