"""Outcome report shown once salary slips have been generated."""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
from urllib.parse import quote

from payroll_console.core import earnings
from payroll_console.domain import EarningCategory, PayStatementOutcome, WizardEmployee

SLIP_DETAIL_PREFIX = "/api/salary-slips"

SEGMENT_COLORS: dict[str, str] = {
    "Salary": "#F7D046",
    "Bonus": "#FF9F43",
    "Commission": "#54A0FF",
    "Allowance": "#00D2D3",
    "Reimbursement": "#26DE81",
    "Overtime": "#FD79A8",
}


@dataclass(slots=True)
class ChartSegment:
    label: str
    amount: Decimal
    percentage: Decimal
    color: str


@dataclass(slots=True)
class OutcomeReport:
    succeeded: list[PayStatementOutcome] = field(default_factory=list)
    failed: list[PayStatementOutcome] = field(default_factory=list)
    chart: list[ChartSegment] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return sum(1 for outcome in self.succeeded if not outcome.is_existing)

    @property
    def existing_count(self) -> int:
        return sum(1 for outcome in self.succeeded if outcome.is_existing)


def slip_detail_url(name: str) -> str:
    return f"{SLIP_DETAIL_PREFIX}/{quote(name, safe='/')}"


def partition(outcomes: Iterable[PayStatementOutcome]) -> tuple[list[PayStatementOutcome], list[PayStatementOutcome]]:
    succeeded: list[PayStatementOutcome] = []
    failed: list[PayStatementOutcome] = []
    for outcome in outcomes:
        (succeeded if outcome.success else failed).append(outcome)
    return succeeded, failed


def breakdown(employees: Iterable[WizardEmployee], std_hours: Decimal = earnings.STD_HOURS) -> list[ChartSegment]:
    """Split paid amounts into salary, overtime and additional-earning segments."""

    amounts: OrderedDict[str, Decimal] = OrderedDict((label, Decimal("0")) for label in SEGMENT_COLORS)
    for employee in employees:
        amounts["Salary"] += earnings.regular_pay(employee, std_hours)
        amounts["Overtime"] += earnings.overtime_pay(employee, std_hours)
        category = employee.additional_earnings_type
        if category is not EarningCategory.NONE:
            amounts[category.label] += employee.additional_earnings

    total = sum(amounts.values(), Decimal("0"))
    if total <= 0:
        return []

    segments: list[ChartSegment] = []
    for label, amount in amounts.items():
        if amount <= 0:
            continue
        percentage = (amount / total * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        segments.append(
            ChartSegment(
                label=label,
                amount=earnings.round_currency(amount),
                percentage=percentage,
                color=SEGMENT_COLORS[label],
            )
        )
    return segments


def build_report(
    outcomes: Iterable[PayStatementOutcome],
    employees: Iterable[WizardEmployee],
    std_hours: Decimal = earnings.STD_HOURS,
) -> OutcomeReport:
    succeeded, failed = partition(outcomes)
    succeeded_ids = {outcome.employee_id for outcome in succeeded}
    paid = [employee for employee in employees if employee.id in succeeded_ids]
    return OutcomeReport(succeeded=succeeded, failed=failed, chart=breakdown(paid, std_hours))


def serialise_outcome(outcome: PayStatementOutcome) -> dict[str, object]:
    name = outcome.statement_name
    return {
        "employee_id": outcome.employee_id,
        "employee_name": outcome.employee_name,
        "success": outcome.success,
        "is_existing": outcome.is_existing,
        "statement": outcome.statement.model_dump(mode="json") if outcome.statement else None,
        "statement_name": name,
        "detail_url": slip_detail_url(name) if name else None,
        "error": outcome.error,
    }


def serialise_report(report: OutcomeReport) -> dict[str, object]:
    return {
        "summary": {
            "succeeded": len(report.succeeded),
            "created": report.created_count,
            "existing": report.existing_count,
            "failed": len(report.failed),
        },
        "succeeded": [serialise_outcome(outcome) for outcome in report.succeeded],
        "failed": [serialise_outcome(outcome) for outcome in report.failed],
        "chart": [
            {
                "label": segment.label,
                "amount": segment.amount,
                "percentage": segment.percentage,
                "color": segment.color,
            }
            for segment in report.chart
        ],
    }
