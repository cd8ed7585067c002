"""Period level totals shown before any salary slip is created.

The overtime line reports only the 0.5x premium, recomputed from hours and
rate, while the grand total is the sum of each employee's total pay (which
already carries the full 1.5x overtime pay).  The breakdown lines do not add
up to the grand total.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from payroll_console.core import earnings
from payroll_console.core.time_off import TimeOffTotals, summarise
from payroll_console.domain import PayPeriod, WizardEmployee


@dataclass(slots=True)
class EmployeeReviewRow:
    employee_id: str
    name: str
    worked_hours: int
    overtime_hours: int
    regular_pay: Decimal
    overtime_pay: Decimal
    additional_earnings: Decimal
    additional_earnings_type: str
    total_pay: Decimal
    total_pay_overridden: bool
    payment_type: str
    notes: str
    bank_name: str | None
    account_number: str | None


@dataclass(slots=True)
class PayrollSummary:
    period: PayPeriod
    employee_count: int = 0
    total_net_wages: Decimal = Decimal("0")
    total_overtime_premium: Decimal = Decimal("0")
    total_additional_earnings: Decimal = Decimal("0")
    time_off: TimeOffTotals = field(default_factory=TimeOffTotals)
    rows: list[EmployeeReviewRow] = field(default_factory=list)

    @property
    def grand_total(self) -> Decimal:
        return self.total_net_wages


def _row(employee: WizardEmployee, std_hours: Decimal) -> EmployeeReviewRow:
    return EmployeeReviewRow(
        employee_id=employee.id,
        name=employee.name,
        worked_hours=employee.worked_hours,
        overtime_hours=employee.overtime_hours,
        regular_pay=earnings.round_currency(earnings.regular_pay(employee, std_hours)),
        overtime_pay=earnings.round_currency(earnings.overtime_pay(employee, std_hours)),
        additional_earnings=employee.additional_earnings,
        additional_earnings_type=employee.additional_earnings_type.label,
        total_pay=employee.total_pay_amount,
        total_pay_overridden=employee.is_overridden,
        payment_type=employee.payment_type,
        notes=employee.notes,
        bank_name=employee.bank_name,
        account_number=employee.account_number,
    )


def review_payroll(
    employees: Iterable[WizardEmployee],
    period: PayPeriod,
    std_hours: Decimal = earnings.STD_HOURS,
) -> PayrollSummary:
    employees = list(employees)
    summary = PayrollSummary(period=period, employee_count=len(employees))
    for employee in employees:
        summary.total_net_wages += employee.total_pay_amount
        summary.total_overtime_premium += earnings.overtime_premium(employee, std_hours)
        summary.total_additional_earnings += employee.additional_earnings
        summary.rows.append(_row(employee, std_hours))
    summary.total_overtime_premium = earnings.round_currency(summary.total_overtime_premium)
    summary.time_off = summarise(employees)
    return summary


def serialise_summary(summary: PayrollSummary) -> dict[str, object]:
    return {
        "period": {"start": summary.period.start, "end": summary.period.end},
        "employee_count": summary.employee_count,
        "total_net_wages": summary.total_net_wages,
        "total_overtime_premium": summary.total_overtime_premium,
        "total_additional_earnings": summary.total_additional_earnings,
        "grand_total": summary.grand_total,
        "time_off": {
            "paid_time_off": summary.time_off.paid_time_off,
            "paid_holiday": summary.time_off.paid_holiday,
            "sick_leave": summary.time_off.sick_leave,
            "total": summary.time_off.total,
        },
        "employees": [
            {
                "employee_id": row.employee_id,
                "name": row.name,
                "worked_hours": row.worked_hours,
                "overtime_hours": row.overtime_hours,
                "regular_pay": row.regular_pay,
                "overtime_pay": row.overtime_pay,
                "additional_earnings": row.additional_earnings,
                "additional_earnings_type": row.additional_earnings_type,
                "total_pay": row.total_pay,
                "total_pay_overridden": row.total_pay_overridden,
                "payment_type": row.payment_type,
                "notes": row.notes,
                "bank_name": row.bank_name,
                "account_number": row.account_number,
            }
            for row in summary.rows
        ],
    }
