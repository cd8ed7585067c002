"""ERP gateway hooks.

The payroll run only reaches the HR backend through the operations of
:class:`ERPGateway`.  The application installs a concrete client during
start-up with ``configure_erp_client``; tests install their own doubles.
"""
from __future__ import annotations

from datetime import date
from typing import Protocol

from payroll_console.core.schema import (
    BankAccount,
    CompensationAssignment,
    Employee,
    PayStatement,
    PayStatementRequest,
    StatementHandle,
)

CONFLICT_MARKERS = (
    "already created for this period",
    "salary slip already exists",
)


class ERPError(RuntimeError):
    """Raised when the HR backend rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ERPConfigurationError(ERPError):
    """Raised when no ERP client has been configured."""


class RosterLookupError(ERPError):
    """Raised when the employee roster cannot be loaded."""


def is_conflict_error(error: BaseException) -> bool:
    """Return ``True`` when ``error`` says a slip already exists for the period."""

    if not isinstance(error, ERPError) or isinstance(error, ERPConfigurationError):
        return False
    if error.status_code == 409:
        return True
    message = error.message.lower()
    return any(marker in message for marker in CONFLICT_MARKERS)


class ERPGateway(Protocol):
    """Contract for the HR backend resource API."""

    async def list_employees(self) -> list[Employee]: ...

    async def get_compensation_assignment(self, employee_id: str) -> CompensationAssignment | None: ...

    async def get_bank_account(self, employee_id: str) -> BankAccount | None: ...

    async def create_pay_statement(self, request: PayStatementRequest) -> StatementHandle: ...

    async def list_pay_statements(
        self,
        employee_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[StatementHandle]: ...

    async def get_pay_statement_detail(self, name: str) -> PayStatement: ...

    def pay_statement_pdf_url(self, name: str) -> str: ...


class UnconfiguredERPClient:
    """Placeholder used until the application installs a real client."""

    def _fail(self) -> ERPConfigurationError:
        return ERPConfigurationError("ERP client not configured", status_code=503)

    async def list_employees(self) -> list[Employee]:
        raise self._fail()

    async def get_compensation_assignment(self, employee_id: str) -> CompensationAssignment | None:
        raise self._fail()

    async def get_bank_account(self, employee_id: str) -> BankAccount | None:
        raise self._fail()

    async def create_pay_statement(self, request: PayStatementRequest) -> StatementHandle:
        raise self._fail()

    async def list_pay_statements(
        self,
        employee_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[StatementHandle]:
        raise self._fail()

    async def get_pay_statement_detail(self, name: str) -> PayStatement:
        raise self._fail()

    def pay_statement_pdf_url(self, name: str) -> str:
        raise self._fail()


_client: ERPGateway = UnconfiguredERPClient()


def configure_erp_client(client: ERPGateway) -> None:
    """Install the ERP client used by the payroll run."""

    global _client
    _client = client


def get_erp_client() -> ERPGateway:
    """Return the currently configured ERP client."""

    return _client


def reset_erp_client() -> None:
    configure_erp_client(UnconfiguredERPClient())
