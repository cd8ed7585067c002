"""Salary slip detail view."""
from __future__ import annotations

from itertools import zip_longest
from typing import Any

from payroll_console.core.schema import PayStatement, SalaryDetail


def _line(detail: SalaryDetail | None) -> dict[str, Any] | None:
    if detail is None:
        return None
    return {"description": detail.salary_component, "amount": detail.amount}


def paired_lines(statement: PayStatement) -> list[dict[str, Any]]:
    """Pair earnings and deductions row by row, padding the shorter side."""

    return [
        {"earning": _line(earning), "deduction": _line(deduction)}
        for earning, deduction in zip_longest(statement.earnings, statement.deductions)
    ]


def detail_view(statement: PayStatement, *, pdf_url: str | None = None) -> dict[str, Any]:
    return {
        "name": statement.name,
        "status": statement.status,
        "period": {"start": statement.start_date, "end": statement.end_date},
        "posting_date": statement.posting_date,
        "employee": {
            "id": statement.employee,
            "name": statement.employee_name,
            "designation": statement.designation,
            "department": statement.department,
            "branch": statement.branch,
            "date_of_joining": statement.date_of_joining,
            "bank_name": statement.bank_name,
            "bank_account_no": statement.bank_account_no,
            "pan_number": statement.pan_number,
            "uan": statement.uan,
        },
        "payment_days": statement.payment_days,
        "total_working_days": statement.total_working_days,
        "earnings": [_line(item) for item in statement.earnings],
        "deductions": [_line(item) for item in statement.deductions],
        "rows": paired_lines(statement),
        "gross_pay": statement.gross_pay,
        "total_deduction": statement.total_deduction,
        "net_pay": statement.net_pay,
        "total_in_words": statement.total_in_words,
        "pdf_url": pdf_url,
    }
