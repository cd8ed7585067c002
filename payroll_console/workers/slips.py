from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from payroll_console.core import earnings
from payroll_console.core.schema import EarningLine, PayStatementRequest
from payroll_console.domain import PayPeriod, PayStatementOutcome, WizardEmployee
from payroll_console.infrastructure.erp import ERPError, ERPGateway, get_erp_client, is_conflict_error

logger = logging.getLogger(__name__)

OVERTIME_COMPONENT = "Overtime"


@dataclass
class GenerationRequest:
    period: PayPeriod
    employees: list[WizardEmployee]
    posting_date: date
    std_hours: Decimal = earnings.STD_HOURS


def build_earning_lines(employee: WizardEmployee, std_hours: Decimal = earnings.STD_HOURS) -> list[EarningLine]:
    lines: list[EarningLine] = []
    if employee.overtime_hours > 0:
        amount = earnings.round_currency(earnings.overtime_pay(employee, std_hours))
        lines.append(EarningLine(salary_component=OVERTIME_COMPONENT, amount=amount))
    if employee.additional_earnings > 0 and employee.additional_earnings_type.label:
        lines.append(
            EarningLine(
                salary_component=employee.additional_earnings_type.label,
                amount=employee.additional_earnings,
            )
        )
    return lines


def build_statement_request(
    employee: WizardEmployee,
    period: PayPeriod,
    posting_date: date,
    std_hours: Decimal = earnings.STD_HOURS,
) -> PayStatementRequest:
    return PayStatementRequest(
        employee=employee.id,
        posting_date=posting_date,
        start_date=period.start,
        end_date=period.end,
        payment_days=earnings.payment_days(employee),
        earnings=build_earning_lines(employee, std_hours),
    )


class SlipGenerationWorker:
    """Creates one salary slip per employee, reusing slips that already exist."""

    def __init__(self, gateway: ERPGateway) -> None:
        self._gateway = gateway

    async def _reconcile(
        self,
        employee: WizardEmployee,
        period: PayPeriod,
        conflict: ERPError,
    ) -> PayStatementOutcome:
        try:
            existing = await self._gateway.list_pay_statements(employee.id, period.start, period.end)
        except (ERPError, ValueError) as exc:
            logger.warning("Reconciliation failed for %s: %s", employee.id, exc)
            return PayStatementOutcome(
                employee_id=employee.id,
                employee_name=employee.name,
                success=False,
                error=str(exc),
            )

        if not existing:
            logger.warning("Conflict for %s but no slip found for the period", employee.id)
            return PayStatementOutcome(
                employee_id=employee.id,
                employee_name=employee.name,
                success=False,
                error=conflict.message,
            )

        statement = existing[0]
        logger.info("Reusing existing slip %s for %s", statement.name, employee.id)
        return PayStatementOutcome(
            employee_id=employee.id,
            employee_name=employee.name,
            success=True,
            is_existing=True,
            statement=statement,
        )

    async def generate_one(self, employee: WizardEmployee, request: GenerationRequest) -> PayStatementOutcome:
        payload = build_statement_request(employee, request.period, request.posting_date, request.std_hours)
        try:
            statement = await self._gateway.create_pay_statement(payload)
        except ERPError as exc:
            if is_conflict_error(exc):
                logger.info("Slip already exists for %s, reconciling", employee.id)
                return await self._reconcile(employee, request.period, exc)
            logger.warning("Slip creation failed for %s: %s", employee.id, exc)
            return PayStatementOutcome(
                employee_id=employee.id,
                employee_name=employee.name,
                success=False,
                error=exc.message,
            )
        except ValueError as exc:
            logger.warning("Unreadable slip response for %s: %s", employee.id, exc)
            return PayStatementOutcome(
                employee_id=employee.id,
                employee_name=employee.name,
                success=False,
                error=str(exc),
            )

        logger.info("Created slip %s for %s", statement.name, employee.id)
        return PayStatementOutcome(
            employee_id=employee.id,
            employee_name=employee.name,
            success=True,
            statement=statement,
        )

    async def generate(self, request: GenerationRequest) -> list[PayStatementOutcome]:
        """Run every employee concurrently and wait for all of them to resolve."""

        eligible = list(_eligible(request.employees))
        results = await asyncio.gather(
            *(self.generate_one(employee, request) for employee in eligible),
            return_exceptions=True,
        )
        outcomes: list[PayStatementOutcome] = []
        for employee, result in zip(eligible, results):
            if isinstance(result, Exception):
                logger.error(
                    "Slip generation crashed for %s",
                    employee.id,
                    exc_info=(type(result), result, result.__traceback__),
                )
                result = PayStatementOutcome(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    success=False,
                    error=str(result) or type(result).__name__,
                )
            elif isinstance(result, BaseException):
                raise result
            outcomes.append(result)
        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(
            "Generation finished for %s..%s: %d succeeded, %d failed",
            request.period.start,
            request.period.end,
            succeeded,
            len(outcomes) - succeeded,
        )
        return list(outcomes)


def _eligible(employees: Iterable[WizardEmployee]) -> Iterable[WizardEmployee]:
    return (employee for employee in employees if employee.has_compensation_structure)


def get_slip_worker(gateway: ERPGateway | None = None) -> SlipGenerationWorker:
    return SlipGenerationWorker(gateway or get_erp_client())
