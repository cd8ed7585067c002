from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from payroll_console.application import reset_wizard_state
from payroll_console.infrastructure import FrappeClient, reset_erp_client

BASE_URL = "https://erp.example.com"

DUPLICATE_MESSAGE = (
    "frappe.exceptions.ValidationError: Salary Slip of employee {employee} "
    "already created for this period"
)


class FakeFrappe:
    """In-memory stand-in for the Frappe resource API.

    Salary slips are unique per employee and period, like the real backend.
    """

    def __init__(self) -> None:
        self.employees: list[dict[str, Any]] = [
            {"name": "EMP-001", "employee_name": "Alice Johnson", "designation": "Engineer", "status": "Active"},
            {"name": "EMP-002", "employee_name": "Bob Smith", "designation": "Designer", "status": "Active"},
            {"name": "EMP-003", "employee_name": "Carol White", "designation": "Intern", "status": "Active"},
        ]
        self.assignments: list[dict[str, Any]] = [
            {
                "name": "SSA-0001",
                "employee": "EMP-001",
                "salary_structure": "Monthly Staff",
                "base": 160000,
                "from_date": "2024-01-01",
                "docstatus": 1,
            },
            {
                "name": "SSA-0002",
                "employee": "EMP-002",
                "salary_structure": "Monthly Staff",
                "base": 80000,
                "from_date": "2024-01-01",
                "docstatus": 1,
            },
        ]
        self.bank_accounts: list[dict[str, Any]] = [
            {"party_type": "Employee", "party": "EMP-001", "bank": "First Bank", "bank_account_no": "001-234"},
        ]
        self.slips: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.create_failures: dict[str, httpx.Response] = {}
        self.fail_slip_listing = False
        self.fail_employee_listing = False
        self.fail_assignment_for: set[str] = set()
        self._counter = 0

    # ------------------------------------------------------------------
    # seeding helpers
    # ------------------------------------------------------------------
    def add_slip(self, employee: str, start: str, end: str, posting_date: str | None = None) -> dict[str, Any]:
        self._counter += 1
        name = f"Sal Slip/{employee}/{self._counter:05d}"
        employee_name = next(
            (row["employee_name"] for row in self.employees if row["name"] == employee),
            employee,
        )
        slip = {
            "name": name,
            "employee": employee,
            "employee_name": employee_name,
            "posting_date": posting_date or end,
            "start_date": start,
            "end_date": end,
            "salary_structure": "Monthly Staff",
            "company": "Example Co",
            "earnings": [{"salary_component": "Basic", "abbr": "B", "amount": 160000}],
            "deductions": [{"salary_component": "Professional Tax", "abbr": "PT", "amount": 200}],
            "gross_pay": 160000,
            "total_deduction": 200,
            "net_pay": 159800,
            "payment_days": 20,
            "total_working_days": 22,
            "docstatus": 0,
        }
        self.slips[name] = slip
        return slip

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith("/api/resource/"):
            return httpx.Response(404, json={"exception": f"No route for {path}"})

        doctype, _, name = path[len("/api/resource/"):].partition("/")
        if request.method == "GET" and name:
            return self._get_slip(name)
        if request.method == "GET":
            return self._list(doctype, request)
        if request.method == "POST" and doctype == "Salary Slip":
            return self._create_slip(json.loads(request.content.decode("utf-8")))
        return httpx.Response(405, json={"exception": "Method not allowed"})

    def _list(self, doctype: str, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        filters = json.loads(params.get("filters", "[]"))
        if doctype == "Employee":
            if self.fail_employee_listing:
                return httpx.Response(500, json={"exception": "Employee table is locked"})
            rows = [dict(row) for row in self.employees]
        elif doctype == "Salary Structure Assignment":
            employee = _filter_value(filters, "employee")
            if employee in self.fail_assignment_for:
                return httpx.Response(403, json={"message": "Not permitted"})
            rows = _apply(self.assignments, filters)
        elif doctype == "Bank Account":
            rows = _apply(self.bank_accounts, filters)
        elif doctype == "Salary Slip":
            if self.fail_slip_listing:
                return httpx.Response(500, json={"exception": "Slip listing unavailable"})
            rows = _apply(self.slips.values(), filters)
            rows.sort(key=lambda row: row["posting_date"], reverse=True)
        else:
            return httpx.Response(404, json={"exception": f"DocType {doctype} not found"})

        fields = json.loads(params.get("fields", '["*"]'))
        if fields != ["*"]:
            rows = [{key: row.get(key) for key in fields} for row in rows]
        limit = params.get("limit_page_length")
        if limit:
            rows = rows[: int(limit)]
        return httpx.Response(200, json={"data": rows})

    def _get_slip(self, name: str) -> httpx.Response:
        slip = self.slips.get(name)
        if slip is None:
            return httpx.Response(404, json={"exception": f"Salary Slip {name} not found"})
        return httpx.Response(200, json={"data": slip})

    def _create_slip(self, body: dict[str, Any]) -> httpx.Response:
        employee = body["employee"]
        if employee in self.create_failures:
            return self.create_failures[employee]
        for slip in self.slips.values():
            if (
                slip["employee"] == employee
                and slip["start_date"] == body["start_date"]
                and slip["end_date"] == body["end_date"]
                and slip["docstatus"] != 2
            ):
                return httpx.Response(417, json={"exception": DUPLICATE_MESSAGE.format(employee=employee)})
        slip = self.add_slip(employee, body["start_date"], body["end_date"], body["posting_date"])
        slip["payment_days"] = body["payment_days"]
        slip["earnings"] = slip["earnings"] + body.get("earnings", [])
        return httpx.Response(200, json={"data": slip})

    # ------------------------------------------------------------------
    # inspection helpers
    # ------------------------------------------------------------------
    def created_bodies(self) -> list[dict[str, Any]]:
        return [
            json.loads(request.content.decode("utf-8"))
            for request in self.requests
            if request.method == "POST"
        ]


def _filter_value(filters: list[list[Any]], field: str) -> Any:
    for name, operator, value in filters:
        if name == field and operator == "=":
            return value
    return None


def _matches(row: dict[str, Any], name: str, operator: str, value: Any) -> bool:
    current = row.get(name)
    if operator == "=":
        return current == value
    if operator == ">=":
        return current is not None and current >= value
    if operator == "<=":
        return current is not None and current <= value
    raise AssertionError(f"unsupported operator {operator}")


def _apply(rows, filters: list[list[Any]]) -> list[dict[str, Any]]:
    return [
        dict(row)
        for row in rows
        if all(_matches(row, name, operator, value) for name, operator, value in filters)
    ]


@pytest.fixture(autouse=True)
def reset_state():
    reset_wizard_state()
    reset_erp_client()
    yield
    reset_wizard_state()
    reset_erp_client()


@pytest.fixture()
def fake_frappe() -> FakeFrappe:
    return FakeFrappe()


@pytest.fixture()
def frappe_client(fake_frappe: FakeFrappe) -> FrappeClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_frappe.handler))
    return FrappeClient(BASE_URL, "key", "secret", http_client=http_client)
