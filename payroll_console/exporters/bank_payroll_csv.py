from __future__ import annotations

from io import StringIO
from typing import Iterable

import pandas as pd

from payroll_console.domain import PayPeriod, PayStatementOutcome, WizardEmployee

COLUMNS = [
    "employee",
    "employee_name",
    "bank_name",
    "account_number",
    "payment_type",
    "amount",
    "period_start",
    "period_end",
    "salary_slip",
]


def bank_payroll_frame(
    employees: Iterable[WizardEmployee],
    outcomes: Iterable[PayStatementOutcome],
    period: PayPeriod,
) -> pd.DataFrame:
    """One transfer row per employee whose salary slip exists."""

    slips = {outcome.employee_id: outcome.statement_name for outcome in outcomes if outcome.success}
    records = []
    for employee in employees:
        if employee.id not in slips:
            continue
        records.append(
            {
                "employee": employee.id,
                "employee_name": employee.name,
                "bank_name": employee.bank_name or "",
                "account_number": employee.account_number or "",
                "payment_type": employee.payment_type,
                "amount": str(employee.total_pay_amount),
                "period_start": period.start.isoformat(),
                "period_end": period.end.isoformat(),
                "salary_slip": slips[employee.id],
            }
        )
    return pd.DataFrame(records, columns=COLUMNS)


def render_bank_payroll(
    employees: Iterable[WizardEmployee],
    outcomes: Iterable[PayStatementOutcome],
    period: PayPeriod,
) -> str:
    buffer = StringIO()
    bank_payroll_frame(employees, outcomes, period).to_csv(buffer, index=False)
    return buffer.getvalue()
