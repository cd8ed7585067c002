"""Domain entities for a payroll run wizard."""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_console.core.schema import StatementHandle
from payroll_console.core.validation import validate_period


class EarningCategory(str, Enum):
    """Additional-earning categories offered on the total hours step."""

    NONE = "none"
    REIMBURSEMENT = "reimbursement"
    BONUS = "bonus"
    COMMISSION = "commission"
    ALLOWANCE = "allowance"

    @property
    def label(self) -> str:
        return "" if self is EarningCategory.NONE else self.value.capitalize()


class WizardStep(int, Enum):
    EMPLOYEES = 1
    TOTAL_HOURS = 2
    TIME_OFF = 3
    REVIEW = 4
    SUCCESS = 5


@dataclass(slots=True, frozen=True)
class PayPeriod:
    start: date
    end: date

    def __post_init__(self) -> None:
        validate_period(self.start, self.end)

    @classmethod
    def current_month(cls, today: date | None = None) -> "PayPeriod":
        today = today or date.today()
        last_day = calendar.monthrange(today.year, today.month)[1]
        return cls(start=today.replace(day=1), end=today.replace(day=last_day))


@dataclass(slots=True, frozen=True)
class Derived:
    """Total pay computed from the earnings formula."""

    amount: Decimal


@dataclass(slots=True, frozen=True)
class Overridden:
    """Total pay typed in by the operator."""

    amount: Decimal


TotalPay = Derived | Overridden


@dataclass(slots=True)
class RosterEntry:
    """Employee-for-payroll, as shown on the selection step."""

    id: str
    name: str
    avatar_color: str
    has_compensation_structure: bool = False
    structure_name: str | None = None
    base_salary: Decimal | None = None
    total_hours: int = 0
    overtime_hours: int = 0
    paid_time_off: int = 0
    paid_holiday: int = 0
    sick_leave: int = 0
    employment_type: str | None = None
    selected: bool = False


@dataclass(slots=True)
class WizardEmployee:
    id: str
    name: str
    avatar_color: str
    has_compensation_structure: bool
    structure_name: str | None = None
    base_salary: Decimal | None = None
    worked_hours: int = 160
    overtime_hours: int = 0
    additional_earnings: Decimal = Decimal("0")
    additional_earnings_type: EarningCategory = EarningCategory.NONE
    paid_time_off: int = 0
    paid_holiday: int = 0
    sick_leave: int = 0
    total_pay: TotalPay = field(default_factory=lambda: Derived(Decimal("0")))
    payment_type: str = "Digital Transfer"
    notes: str = ""
    bank_name: str | None = None
    account_number: str | None = None

    @property
    def total_pay_amount(self) -> Decimal:
        return self.total_pay.amount

    @property
    def is_overridden(self) -> bool:
        return isinstance(self.total_pay, Overridden)


@dataclass(slots=True)
class PayStatementOutcome:
    employee_id: str
    employee_name: str
    success: bool
    is_existing: bool = False
    statement: StatementHandle | None = None
    error: str | None = None

    @property
    def statement_name(self) -> str | None:
        return self.statement.name if self.statement else None


@dataclass(slots=True)
class WizardState:
    """In-memory record carried through the payroll run steps."""

    wizard_id: str
    period: PayPeriod
    step: WizardStep = WizardStep.EMPLOYEES
    roster: list[RosterEntry] = field(default_factory=list)
    employees: list[WizardEmployee] = field(default_factory=list)
    outcomes: list[PayStatementOutcome] = field(default_factory=list)

    def find_employee(self, employee_id: str) -> WizardEmployee | None:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None
