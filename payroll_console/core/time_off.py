from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from payroll_console.core.validation import validate_hours
from payroll_console.domain import WizardEmployee

DEFAULT_ALLOWANCE_HOURS = 100

TIME_OFF_FIELDS = ("paid_time_off", "paid_holiday", "sick_leave")


@dataclass(slots=True)
class TimeOffTotals:
    paid_time_off: int = 0
    paid_holiday: int = 0
    sick_leave: int = 0

    @property
    def total(self) -> int:
        return self.paid_time_off + self.paid_holiday + self.sick_leave


def update_time_off(employee: WizardEmployee, **hours: Any) -> WizardEmployee:
    """Record time-off hours for display.

    The values are informational and do not alter the employee's total pay.
    """

    for name, value in hours.items():
        if name not in TIME_OFF_FIELDS:
            raise TypeError(f"unknown time-off field: {name}")
        if value is None:
            continue
        setattr(employee, name, validate_hours(value, field=name))
    return employee


def remaining(used: int, allowance: int = DEFAULT_ALLOWANCE_HOURS) -> int:
    return allowance - used


def summarise(employees: Iterable[WizardEmployee]) -> TimeOffTotals:
    totals = TimeOffTotals()
    for employee in employees:
        totals.paid_time_off += employee.paid_time_off
        totals.paid_holiday += employee.paid_holiday
        totals.sick_leave += employee.sick_leave
    return totals


def employee_rows(employees: Iterable[WizardEmployee]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for employee in employees:
        row: dict[str, Any] = {"employee_id": employee.id, "name": employee.name}
        for name in TIME_OFF_FIELDS:
            used = getattr(employee, name)
            row[name] = used
            row[f"{name}_remaining"] = remaining(used)
        rows.append(row)
    return rows
