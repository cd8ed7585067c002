from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Response

from payroll_console.application import get_wizard_service
from payroll_console.core.reporting import serialise_outcome, serialise_report
from payroll_console.core.review import serialise_summary
from payroll_console.domain import PayPeriod, WizardEmployee, WizardState

router = APIRouter(prefix="/payroll/wizards", tags=["payroll"])


def _parse_date(value: Any, field: str) -> date:
    if not value:
        raise HTTPException(status_code=400, detail=f"{field} is required")
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"{field} must be an ISO date") from exc


def _serialise_employee(employee: WizardEmployee) -> dict[str, Any]:
    data = asdict(employee)
    data["additional_earnings_type"] = employee.additional_earnings_type.value
    data["total_pay"] = employee.total_pay_amount
    data["total_pay_overridden"] = employee.is_overridden
    return data


def _serialise_wizard(wizard: WizardState) -> dict[str, Any]:
    service = get_wizard_service()
    return {
        "wizard_id": wizard.wizard_id,
        "period": {"start": wizard.period.start, "end": wizard.period.end},
        "step": wizard.step.value,
        "steps": service.get_progress(wizard.wizard_id),
        "roster": [asdict(entry) for entry in wizard.roster],
        "employees": [_serialise_employee(employee) for employee in wizard.employees],
        "outcomes": [serialise_outcome(outcome) for outcome in wizard.outcomes],
    }


@router.get("")
async def list_wizards() -> dict:
    service = get_wizard_service()
    return {"items": service.list_wizards()}


@router.post("")
async def start_wizard(payload: dict | None = None) -> dict:
    payload = payload or {}
    period = None
    if payload.get("start") or payload.get("end"):
        period = PayPeriod(start=_parse_date(payload.get("start"), "start"), end=_parse_date(payload.get("end"), "end"))
    service = get_wizard_service()
    wizard = await service.start_wizard(period)
    return _serialise_wizard(wizard)


@router.get("/{wizard_id}")
async def get_wizard(wizard_id: str) -> dict:
    service = get_wizard_service()
    return _serialise_wizard(service.get_wizard(wizard_id))


@router.delete("/{wizard_id}")
async def discard_wizard(wizard_id: str) -> dict:
    service = get_wizard_service()
    service.discard_wizard(wizard_id)
    return {"wizard_id": wizard_id, "status": "discarded"}


@router.put("/{wizard_id}/period")
async def update_period(wizard_id: str, payload: dict) -> dict:
    start = _parse_date(payload.get("start"), "start")
    end = _parse_date(payload.get("end"), "end")
    service = get_wizard_service()
    wizard = service.set_period(wizard_id, start, end)
    return {"wizard_id": wizard_id, "period": {"start": wizard.period.start, "end": wizard.period.end}}


@router.post("/{wizard_id}/step")
async def move_step(wizard_id: str, payload: dict) -> dict:
    service = get_wizard_service()
    wizard = service.move(wizard_id, str(payload.get("direction") or ""))
    return {"wizard_id": wizard_id, "step": wizard.step.value, "steps": service.get_progress(wizard_id)}


@router.get("/{wizard_id}/roster")
async def get_roster(wizard_id: str, q: str | None = Query(default=None)) -> dict:
    service = get_wizard_service()
    entries = service.list_roster(wizard_id, q)
    return {
        "items": [asdict(entry) for entry in entries],
        "selected": sum(1 for entry in entries if entry.selected),
    }


@router.post("/{wizard_id}/roster/toggle")
async def toggle_roster(wizard_id: str, payload: dict) -> dict:
    service = get_wizard_service()
    wizard = service.toggle_selection(
        wizard_id,
        employee_id=payload.get("employee_id"),
        mode=str(payload.get("mode") or "one"),
    )
    return {
        "items": [asdict(entry) for entry in wizard.roster],
        "selected": sum(1 for entry in wizard.roster if entry.selected),
    }


@router.post("/{wizard_id}/selection")
async def confirm_selection(wizard_id: str) -> dict:
    service = get_wizard_service()
    wizard = await service.confirm_selection(wizard_id)
    return _serialise_wizard(wizard)


@router.patch("/{wizard_id}/employees/{employee_id}/earnings")
async def update_earnings(wizard_id: str, employee_id: str, payload: dict) -> dict:
    service = get_wizard_service()
    employee = service.update_earnings(wizard_id, employee_id, payload)
    return _serialise_employee(employee)


@router.put("/{wizard_id}/employees/{employee_id}/total-pay")
async def override_total_pay(wizard_id: str, employee_id: str, payload: dict) -> dict:
    if payload.get("amount") is None:
        raise HTTPException(status_code=400, detail="amount is required")
    service = get_wizard_service()
    employee = service.override_total_pay(wizard_id, employee_id, payload["amount"])
    return _serialise_employee(employee)


@router.patch("/{wizard_id}/employees/{employee_id}/time-off")
async def update_time_off(wizard_id: str, employee_id: str, payload: dict) -> dict:
    unknown = set(payload) - {"paid_time_off", "paid_holiday", "sick_leave"}
    if unknown:
        raise HTTPException(status_code=400, detail=f"unknown fields: {', '.join(sorted(unknown))}")
    service = get_wizard_service()
    employee = service.update_time_off(wizard_id, employee_id, payload)
    return _serialise_employee(employee)


@router.get("/{wizard_id}/time-off")
async def get_time_off(wizard_id: str) -> dict:
    service = get_wizard_service()
    return service.time_off_overview(wizard_id)


@router.get("/{wizard_id}/review")
async def get_review(wizard_id: str) -> dict:
    service = get_wizard_service()
    return serialise_summary(service.review(wizard_id))


@router.post("/{wizard_id}/generate")
async def generate_slips(wizard_id: str, payload: dict | None = None) -> dict:
    payload = payload or {}
    posting_date = _parse_date(payload["posting_date"], "posting_date") if payload.get("posting_date") else None
    service = get_wizard_service()
    await service.generate(wizard_id, posting_date)
    return serialise_report(service.report(wizard_id))


@router.get("/{wizard_id}/report")
async def get_report(wizard_id: str) -> dict:
    service = get_wizard_service()
    return serialise_report(service.report(wizard_id))


@router.get("/{wizard_id}/export/bank.csv")
async def export_bank_csv(wizard_id: str) -> Response:
    service = get_wizard_service()
    content = service.export_bank_csv(wizard_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{wizard_id}-bank.csv"'},
    )
