"""Domain layer definitions."""

from .payroll import (
    Derived,
    EarningCategory,
    Overridden,
    PayPeriod,
    PayStatementOutcome,
    RosterEntry,
    TotalPay,
    WizardEmployee,
    WizardState,
    WizardStep,
)

__all__ = [
    "Derived",
    "EarningCategory",
    "Overridden",
    "PayPeriod",
    "PayStatementOutcome",
    "RosterEntry",
    "TotalPay",
    "WizardEmployee",
    "WizardState",
    "WizardStep",
]
