from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

STATUS_BY_DOCSTATUS = {0: "Draft", 1: "Submitted", 2: "Cancelled"}


class Employee(BaseModel):
    """Roster row as returned by the ERP employee resource."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    avatar_color: str = "bg-gray-400"
    designation: str | None = None
    employment_type: str | None = None
    total_hours: int = 0
    overtime_hours: int = 0
    paid_time_off: int = 0
    paid_holiday: int = 0
    sick_leave: int = 0


class CompensationAssignment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    employee: str
    salary_structure: str
    base: Decimal = Decimal("0")
    from_date: date | None = None


class BankAccount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bank: str = ""
    bank_account_no: str = ""


class SalaryDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    salary_component: str
    amount: Decimal = Decimal("0")
    abbr: str | None = None


class StatementHandle(BaseModel):
    """Minimal view of a salary slip returned by create and list calls."""

    model_config = ConfigDict(extra="ignore")

    name: str
    employee: str | None = None
    employee_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    posting_date: date | None = None
    net_pay: Decimal | None = None
    docstatus: int = 0


class PayStatement(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    employee: str
    employee_name: str | None = None
    posting_date: date | None = None
    start_date: date
    end_date: date
    salary_structure: str | None = None
    company: str | None = None
    designation: str | None = None
    department: str | None = None
    branch: str | None = None
    date_of_joining: date | None = None
    bank_name: str | None = None
    bank_account_no: str | None = None
    pan_number: str | None = None
    uan: str | None = None
    earnings: list[SalaryDetail] = Field(default_factory=list)
    deductions: list[SalaryDetail] = Field(default_factory=list)
    gross_pay: Decimal = Decimal("0")
    total_deduction: Decimal = Decimal("0")
    net_pay: Decimal = Decimal("0")
    payment_days: Decimal = Decimal("0")
    total_working_days: Decimal = Decimal("0")
    total_in_words: str | None = None
    docstatus: int = 0
    status: Literal["Draft", "Submitted", "Cancelled"] = "Draft"

    @model_validator(mode="before")
    @classmethod
    def _status_from_docstatus(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("status") not in STATUS_BY_DOCSTATUS.values():
            data = dict(data)
            data["status"] = STATUS_BY_DOCSTATUS.get(int(data.get("docstatus") or 0), "Draft")
        return data


class EarningLine(BaseModel):
    salary_component: str
    amount: Decimal


class PayStatementRequest(BaseModel):
    employee: str
    posting_date: date
    start_date: date
    end_date: date
    payment_days: int
    earnings: list[EarningLine] = Field(default_factory=list)
