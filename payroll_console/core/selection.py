"""Employee and pay period selection for a payroll run."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Iterable

from payroll_console.core import earnings
from payroll_console.core.schema import Employee
from payroll_console.domain import RosterEntry, WizardEmployee
from payroll_console.infrastructure.erp import (
    ERPConfigurationError,
    ERPError,
    ERPGateway,
    RosterLookupError,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKED_HOURS = 160
DEFAULT_PAYMENT_TYPE = "Digital Transfer"


async def _annotate(gateway: ERPGateway, employee: Employee) -> RosterEntry:
    entry = RosterEntry(
        id=employee.id,
        name=employee.name,
        avatar_color=employee.avatar_color,
        total_hours=employee.total_hours or DEFAULT_WORKED_HOURS,
        overtime_hours=employee.overtime_hours or 0,
        paid_time_off=employee.paid_time_off,
        paid_holiday=employee.paid_holiday,
        sick_leave=employee.sick_leave,
        employment_type=employee.employment_type,
    )
    try:
        assignment = await gateway.get_compensation_assignment(employee.id)
    except (ERPError, ValueError) as exc:
        logger.warning("Compensation lookup failed for %s: %s", employee.id, exc)
        return entry

    if assignment is not None:
        entry.has_compensation_structure = True
        entry.structure_name = assignment.salary_structure
        entry.base_salary = assignment.base or Decimal("0")
        entry.selected = True
    return entry


async def load_roster(gateway: ERPGateway) -> list[RosterEntry]:
    """Load employees and look up their compensation structures concurrently.

    Eligible employees come back selected.  A failed structure lookup keeps the
    employee on the roster as ineligible; a failed roster fetch raises
    :class:`RosterLookupError`.
    """

    try:
        employees = await gateway.list_employees()
    except ERPConfigurationError:
        raise
    except ERPError as exc:
        raise RosterLookupError(f"Failed to load employees: {exc.message}", status_code=exc.status_code) from exc

    roster = await asyncio.gather(*(_annotate(gateway, employee) for employee in employees))
    eligible = sum(1 for entry in roster if entry.has_compensation_structure)
    logger.info("Roster loaded: %d employees, %d eligible", len(roster), eligible)
    return list(roster)


def _find(roster: Iterable[RosterEntry], employee_id: str) -> RosterEntry:
    for entry in roster:
        if entry.id == employee_id:
            return entry
    raise KeyError(employee_id)


def toggle(roster: list[RosterEntry], employee_id: str) -> RosterEntry:
    entry = _find(roster, employee_id)
    entry.selected = not entry.selected if entry.has_compensation_structure else False
    return entry


def toggle_all(roster: list[RosterEntry]) -> None:
    """Select every eligible employee, or clear them all when all are selected."""

    selectable = [entry for entry in roster if entry.has_compensation_structure]
    all_selected = all(entry.selected for entry in selectable)
    for entry in selectable:
        entry.selected = not all_selected


def unselect_all(roster: list[RosterEntry]) -> None:
    for entry in roster:
        entry.selected = False


def search(roster: Iterable[RosterEntry], query: str | None) -> list[RosterEntry]:
    if not query:
        return list(roster)
    keyword = query.strip().lower()
    return [entry for entry in roster if keyword in entry.name.lower()]


def selected_entries(roster: Iterable[RosterEntry]) -> list[RosterEntry]:
    return [entry for entry in roster if entry.selected and entry.has_compensation_structure]


async def _to_wizard_employee(
    gateway: ERPGateway,
    entry: RosterEntry,
    std_hours: Decimal,
) -> WizardEmployee:
    employee = WizardEmployee(
        id=entry.id,
        name=entry.name,
        avatar_color=entry.avatar_color,
        has_compensation_structure=entry.has_compensation_structure,
        structure_name=entry.structure_name,
        base_salary=entry.base_salary or Decimal("0"),
        worked_hours=entry.total_hours or DEFAULT_WORKED_HOURS,
        overtime_hours=entry.overtime_hours,
        paid_time_off=entry.paid_time_off,
        paid_holiday=entry.paid_holiday,
        sick_leave=entry.sick_leave,
        payment_type=DEFAULT_PAYMENT_TYPE,
    )
    earnings.recompute(employee, std_hours)

    try:
        account = await gateway.get_bank_account(entry.id)
    except (ERPError, ValueError) as exc:
        logger.warning("Bank lookup failed for %s: %s", entry.id, exc)
        account = None
    employee.bank_name = account.bank if account else ""
    employee.account_number = account.bank_account_no if account else ""
    return employee


async def finalize_selection(
    gateway: ERPGateway,
    roster: Iterable[RosterEntry],
    std_hours: Decimal = earnings.STD_HOURS,
) -> list[WizardEmployee]:
    """Build wizard employees for the selected, eligible roster entries."""

    entries = selected_entries(roster)
    employees = await asyncio.gather(*(_to_wizard_employee(gateway, entry, std_hours) for entry in entries))
    return list(employees)
