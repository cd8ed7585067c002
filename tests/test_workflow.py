from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from payroll_console.infrastructure import configure_erp_client, reset_erp_client

PERIOD = {"start": "2025-01-01", "end": "2025-01-31"}


@pytest.fixture()
def client(frappe_client):
    from payroll_console.app import create_app

    app = create_app()
    configure_erp_client(frappe_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def unconfigured_client():
    from payroll_console.app import create_app

    app = create_app()
    reset_erp_client()
    with TestClient(app) as test_client:
        yield test_client


def _amount(value) -> Decimal:
    return Decimal(str(value))


def _start_and_select(client) -> str:
    response = client.post("/api/payroll/wizards", json=PERIOD)
    assert response.status_code == 200
    wizard_id = response.json()["wizard_id"]
    response = client.post(f"/api/payroll/wizards/{wizard_id}/selection")
    assert response.status_code == 200
    for _ in range(2):
        response = client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "next"})
        assert response.status_code == 200
    assert response.json()["step"] == 4
    return wizard_id


def test_end_to_end_payroll_run(client, fake_frappe):
    # 1. start a run and inspect the roster
    response = client.post("/api/payroll/wizards", json=PERIOD)
    assert response.status_code == 200
    wizard = response.json()
    wizard_id = wizard["wizard_id"]
    assert wizard["step"] == 1
    assert wizard["period"] == PERIOD
    roster = {entry["id"]: entry for entry in wizard["roster"]}
    assert roster["EMP-001"]["has_compensation_structure"] is True
    assert roster["EMP-001"]["selected"] is True
    assert roster["EMP-003"]["has_compensation_structure"] is False
    assert roster["EMP-003"]["selected"] is False
    assert [step["status"] for step in wizard["steps"]] == ["current", "pending", "pending", "pending", "pending"]

    response = client.get(f"/api/payroll/wizards/{wizard_id}/roster", params={"q": "ALI"})
    assert [entry["id"] for entry in response.json()["items"]] == ["EMP-001"]

    # ineligible employees cannot be selected
    response = client.post(
        f"/api/payroll/wizards/{wizard_id}/roster/toggle",
        json={"mode": "one", "employee_id": "EMP-003"},
    )
    assert response.status_code == 200
    assert response.json()["selected"] == 2

    # 2. confirm the selection
    response = client.post(f"/api/payroll/wizards/{wizard_id}/selection")
    assert response.status_code == 200
    wizard = response.json()
    assert wizard["step"] == 2
    employees = {employee["id"]: employee for employee in wizard["employees"]}
    assert set(employees) == {"EMP-001", "EMP-002"}
    assert employees["EMP-001"]["bank_name"] == "First Bank"
    assert employees["EMP-002"]["bank_name"] == ""
    assert _amount(employees["EMP-001"]["total_pay"]) == Decimal("160000")

    # 3. hours and earnings
    response = client.patch(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-001/earnings",
        json={"overtime_hours": 10, "additional_earnings": 5000, "additional_earnings_type": "bonus"},
    )
    assert response.status_code == 200
    assert _amount(response.json()["total_pay"]) == Decimal("180000")

    response = client.put(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-002/total-pay",
        json={"amount": 90000},
    )
    assert response.status_code == 200
    assert response.json()["total_pay_overridden"] is True

    response = client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "next"})
    assert response.json()["step"] == 3

    # 4. time off is display only
    response = client.patch(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-002/time-off",
        json={"paid_time_off": 8, "sick_leave": 4},
    )
    assert response.status_code == 200
    assert _amount(response.json()["total_pay"]) == Decimal("90000")

    response = client.get(f"/api/payroll/wizards/{wizard_id}/time-off")
    overview = response.json()
    assert overview["totals"]["total"] == 12
    rows = {row["employee_id"]: row for row in overview["employees"]}
    assert rows["EMP-002"]["paid_time_off_remaining"] == 92

    response = client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "next"})
    assert response.json()["step"] == 4

    # 5. review
    response = client.get(f"/api/payroll/wizards/{wizard_id}/review")
    summary = response.json()
    assert _amount(summary["grand_total"]) == Decimal("270000")
    assert _amount(summary["total_overtime_premium"]) == Decimal("5000")
    assert _amount(summary["total_additional_earnings"]) == Decimal("5000")

    # 6. generate
    response = client.post(f"/api/payroll/wizards/{wizard_id}/generate", json={"posting_date": "2025-01-31"})
    assert response.status_code == 200
    report = response.json()
    assert report["summary"] == {"succeeded": 2, "created": 2, "existing": 0, "failed": 0}
    bodies = {body["employee"]: body for body in fake_frappe.created_bodies()}
    assert bodies["EMP-001"]["earnings"] == [
        {"salary_component": "Overtime", "amount": 15000},
        {"salary_component": "Bonus", "amount": 5000},
    ]
    assert "earnings" not in bodies["EMP-002"]
    assert bodies["EMP-002"]["payment_days"] == 20

    response = client.get(f"/api/payroll/wizards/{wizard_id}")
    assert response.json()["step"] == 5

    # 7. slip detail and bank export
    alice = next(outcome for outcome in report["succeeded"] if outcome["employee_id"] == "EMP-001")
    response = client.get(alice["detail_url"])
    assert response.status_code == 200
    detail = response.json()
    assert detail["name"] == alice["statement_name"]
    assert detail["status"] == "Draft"
    assert "download_pdf" in detail["pdf_url"]
    assert [row["earning"]["description"] for row in detail["rows"]] == ["Basic", "Overtime", "Bonus"]

    response = client.get(f"/api/payroll/wizards/{wizard_id}/export/bank.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("employee,employee_name,bank_name")
    assert len(lines) == 3

    response = client.delete(f"/api/payroll/wizards/{wizard_id}")
    assert response.status_code == 200
    assert client.get(f"/api/payroll/wizards/{wizard_id}").status_code == 404


def test_rerun_reconciles_existing_slips(client, fake_frappe):
    first = _start_and_select(client)
    client.post(f"/api/payroll/wizards/{first}/generate", json={})

    second = _start_and_select(client)
    response = client.post(f"/api/payroll/wizards/{second}/generate", json={})

    report = response.json()
    assert report["summary"] == {"succeeded": 2, "created": 0, "existing": 2, "failed": 0}
    assert all(outcome["is_existing"] for outcome in report["succeeded"])
    assert len(fake_frappe.slips) == 2

    response = client.get("/api/payroll/wizards")
    assert [item["wizard_id"] for item in response.json()["items"]] == [first, second]


def test_partial_failure_is_reported(client, fake_frappe):
    import httpx

    fake_frappe.create_failures["EMP-002"] = httpx.Response(
        417, json={"exception": "No active salary structure for EMP-002"}
    )
    wizard_id = _start_and_select(client)

    report = client.post(f"/api/payroll/wizards/{wizard_id}/generate", json={}).json()

    assert report["summary"]["succeeded"] == 1
    assert report["failed"][0]["employee_id"] == "EMP-002"
    assert report["failed"][0]["error"] == "No active salary structure for EMP-002"
    assert [segment["label"] for segment in report["chart"]] == ["Salary"]

    csv_lines = client.get(f"/api/payroll/wizards/{wizard_id}/export/bank.csv").text.strip().splitlines()
    assert len(csv_lines) == 2


def test_salary_slip_listing(client, fake_frappe):
    fake_frappe.add_slip("EMP-001", "2024-12-01", "2024-12-31")
    current = fake_frappe.add_slip("EMP-001", "2025-01-01", "2025-01-31")

    response = client.get(
        "/api/salary-slips",
        params={"employee": "EMP-001", "start_date": "2025-01-01", "end_date": "2025-01-31"},
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["name"] for item in items] == [current["name"]]
    assert items[0]["detail_url"] == "/api/salary-slips/Sal%20Slip/EMP-001/00002"

    response = client.get("/api/salary-slips", params={"employee": "EMP-001"})
    assert len(response.json()["items"]) == 2

    response = client.get("/api/salary-slips", params={"employee": "EMP-001", "start_date": "2025-01-01"})
    assert response.status_code == 400


def test_missing_slip_detail_is_bad_gateway(client):
    response = client.get("/api/salary-slips/Sal%20Slip/EMP-001/99999")

    assert response.status_code == 502
    assert "not found" in response.json()["detail"]


def test_step_rules_and_validation(client):
    response = client.post("/api/payroll/wizards", json=PERIOD)
    wizard_id = response.json()["wizard_id"]

    response = client.patch(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-001/earnings",
        json={"worked_hours": 120},
    )
    assert response.status_code == 400

    response = client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "next"})
    assert response.status_code == 400

    client.post(f"/api/payroll/wizards/{wizard_id}/roster/toggle", json={"mode": "none"})
    response = client.post(f"/api/payroll/wizards/{wizard_id}/selection")
    assert response.status_code == 400

    client.post(f"/api/payroll/wizards/{wizard_id}/roster/toggle", json={"mode": "all"})
    assert client.post(f"/api/payroll/wizards/{wizard_id}/selection").status_code == 200

    response = client.patch(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-001/earnings",
        json={"worked_hours": 800},
    )
    assert response.status_code == 400

    response = client.patch(
        f"/api/payroll/wizards/{wizard_id}/employees/EMP-003/earnings",
        json={"worked_hours": 120},
    )
    assert response.status_code == 404

    response = client.get(f"/api/payroll/wizards/{wizard_id}/report")
    assert response.status_code == 400

    response = client.put(f"/api/payroll/wizards/{wizard_id}/period", json={"start": "2025-02-01", "end": "2025-01-01"})
    assert response.status_code == 400


def test_unknown_wizard_is_not_found(client):
    assert client.get("/api/payroll/wizards/run-99999").status_code == 404
    assert client.delete("/api/payroll/wizards/run-99999").status_code == 404


def test_roster_failure_is_retryable(client, fake_frappe):
    fake_frappe.fail_employee_listing = True

    response = client.post("/api/payroll/wizards", json=PERIOD)

    assert response.status_code == 502
    assert response.json()["retry"] is True
    assert "Employee table is locked" in response.json()["detail"]
    assert client.get("/api/payroll/wizards").json()["items"] == []


def test_assignment_failure_leaves_employee_ineligible(client, fake_frappe):
    fake_frappe.fail_assignment_for.add("EMP-002")

    response = client.post("/api/payroll/wizards", json=PERIOD)

    roster = {entry["id"]: entry for entry in response.json()["roster"]}
    assert roster["EMP-001"]["selected"] is True
    assert roster["EMP-002"]["has_compensation_structure"] is False


def test_unconfigured_erp_returns_service_unavailable(unconfigured_client):
    response = unconfigured_client.post("/api/payroll/wizards", json=PERIOD)

    assert response.status_code == 503
    assert response.json()["detail"] == "ERP client not configured"


def test_generation_waits_for_review_and_locks_the_run(client, fake_frappe):
    response = client.post("/api/payroll/wizards", json=PERIOD)
    wizard_id = response.json()["wizard_id"]
    client.post(f"/api/payroll/wizards/{wizard_id}/selection")

    response = client.post(f"/api/payroll/wizards/{wizard_id}/generate", json={})
    assert response.status_code == 400
    assert fake_frappe.slips == {}

    for _ in range(2):
        client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "next"})
    assert client.post(f"/api/payroll/wizards/{wizard_id}/generate", json={}).status_code == 200

    employee_url = f"/api/payroll/wizards/{wizard_id}/employees/EMP-001"
    assert client.patch(f"{employee_url}/earnings", json={"worked_hours": 10}).status_code == 400
    assert client.put(f"{employee_url}/total-pay", json={"amount": 1}).status_code == 400
    assert client.patch(f"{employee_url}/time-off", json={"paid_time_off": 8}).status_code == 400
    response = client.post(f"/api/payroll/wizards/{wizard_id}/step", json={"direction": "previous"})
    assert response.status_code == 400

    csv_text = client.get(f"/api/payroll/wizards/{wizard_id}/export/bank.csv").text
    assert "EMP-001,Alice Johnson,First Bank,001-234,Digital Transfer,160000," in csv_text

    response = client.post(f"/api/payroll/wizards/{wizard_id}/generate", json={})
    assert response.json()["summary"]["existing"] == 2


def test_base_salary_edit_rederives_total_pay(client):
    wizard_id = _start_and_select(client)
    employee_url = f"/api/payroll/wizards/{wizard_id}/employees/EMP-001"
    client.put(f"{employee_url}/total-pay", json={"amount": 1})

    response = client.patch(f"{employee_url}/earnings", json={"base_salary": 80000})

    assert response.status_code == 200
    assert response.json()["total_pay_overridden"] is False
    assert _amount(response.json()["total_pay"]) == Decimal("80000")
