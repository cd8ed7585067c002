"""Hours and earnings computation for wizard employees.

Total pay follows a fixed formula over a monthly hour basis::

    hourly_rate  = base_salary / STD_HOURS
    regular_pay  = worked_hours * hourly_rate
    overtime_pay = overtime_hours * hourly_rate * 1.5
    total_pay    = round(regular_pay + overtime_pay + additional_earnings)

``base_salary`` is a monthly amount.  Time-off hours never enter the formula.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from payroll_console.core.validation import ValidationError, validate_amount, validate_hours
from payroll_console.domain import Derived, EarningCategory, Overridden, WizardEmployee

STD_HOURS = Decimal("160")
OVERTIME_MULTIPLIER = Decimal("1.5")
OVERTIME_PREMIUM = OVERTIME_MULTIPLIER - Decimal("1")
HOURS_PER_PAYMENT_DAY = Decimal("8")

_UNSET: Any = object()


def round_currency(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def to_decimal(value: Any, *, field: str = "amount") -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    return validate_amount(result, field=field)


def hourly_rate(base_salary: Decimal | None, std_hours: Decimal = STD_HOURS) -> Decimal:
    if not base_salary:
        return Decimal("0")
    return base_salary / std_hours


def regular_pay(employee: WizardEmployee, std_hours: Decimal = STD_HOURS) -> Decimal:
    return employee.worked_hours * hourly_rate(employee.base_salary, std_hours)


def overtime_pay(employee: WizardEmployee, std_hours: Decimal = STD_HOURS) -> Decimal:
    return employee.overtime_hours * hourly_rate(employee.base_salary, std_hours) * OVERTIME_MULTIPLIER


def overtime_premium(employee: WizardEmployee, std_hours: Decimal = STD_HOURS) -> Decimal:
    """Incremental part of overtime pay above the regular hourly rate."""

    return employee.overtime_hours * hourly_rate(employee.base_salary, std_hours) * OVERTIME_PREMIUM


def derive_total_pay(employee: WizardEmployee, std_hours: Decimal = STD_HOURS) -> Decimal:
    gross = regular_pay(employee, std_hours) + overtime_pay(employee, std_hours) + employee.additional_earnings
    return round_currency(gross)


def payment_days(employee: WizardEmployee) -> int:
    return int(round_currency(Decimal(employee.worked_hours) / HOURS_PER_PAYMENT_DAY))


def recompute(employee: WizardEmployee, std_hours: Decimal = STD_HOURS) -> WizardEmployee:
    """Replace the total pay with the formula value, dropping any override."""

    employee.total_pay = Derived(derive_total_pay(employee, std_hours))
    return employee


def update_earnings(
    employee: WizardEmployee,
    *,
    worked_hours: Any = _UNSET,
    overtime_hours: Any = _UNSET,
    additional_earnings: Any = _UNSET,
    additional_earnings_type: Any = _UNSET,
    base_salary: Any = _UNSET,
    std_hours: Decimal = STD_HOURS,
) -> WizardEmployee:
    """Apply operator edits from the total hours step.

    Only the supplied fields change.  When any formula input changes the
    total pay is derived again, which also clears a manual override.
    """

    changed = False

    if worked_hours is not _UNSET:
        worked_hours = validate_hours(worked_hours, field="worked_hours")
        changed = changed or worked_hours != employee.worked_hours
        employee.worked_hours = worked_hours

    if overtime_hours is not _UNSET:
        overtime_hours = validate_hours(overtime_hours, field="overtime_hours")
        changed = changed or overtime_hours != employee.overtime_hours
        employee.overtime_hours = overtime_hours

    if base_salary is not _UNSET:
        base_salary = None if base_salary is None else to_decimal(base_salary, field="base_salary")
        changed = changed or base_salary != employee.base_salary
        employee.base_salary = base_salary

    category = employee.additional_earnings_type
    if additional_earnings_type is not _UNSET:
        try:
            category = EarningCategory(additional_earnings_type or EarningCategory.NONE)
        except ValueError as exc:
            raise ValidationError(f"unknown additional earnings type: {additional_earnings_type}") from exc

    amount = employee.additional_earnings
    if additional_earnings is not _UNSET:
        amount = to_decimal(additional_earnings, field="additional_earnings")
    if category is EarningCategory.NONE:
        if additional_earnings is not _UNSET and amount > 0:
            raise ValidationError("additional earnings require a category")
        amount = Decimal("0")

    changed = changed or amount != employee.additional_earnings
    employee.additional_earnings = amount
    employee.additional_earnings_type = category

    if changed:
        recompute(employee, std_hours)
    return employee


def override_total_pay(employee: WizardEmployee, amount: Any) -> WizardEmployee:
    employee.total_pay = Overridden(round_currency(to_decimal(amount, field="total_pay")))
    return employee


def set_payment_type(employee: WizardEmployee, payment_type: str) -> WizardEmployee:
    payment_type = payment_type.strip()
    if not payment_type:
        raise ValidationError("payment type must not be empty")
    employee.payment_type = payment_type
    return employee


def set_note(employee: WizardEmployee, note: str) -> WizardEmployee:
    employee.notes = note
    return employee
