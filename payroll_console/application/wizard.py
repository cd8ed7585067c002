"""Application service layer for payroll run orchestration."""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_console.config import get_settings
from payroll_console.core import earnings, reporting, selection, time_off
from payroll_console.core.review import PayrollSummary, review_payroll
from payroll_console.core.validation import ValidationError
from payroll_console.domain import PayPeriod, RosterEntry, WizardEmployee, WizardState, WizardStep
from payroll_console.exporters.bank_payroll_csv import render_bank_payroll
from payroll_console.infrastructure import (
    ERPGateway,
    InMemoryWizardRepository,
    WizardRepository,
    get_erp_client,
)
from payroll_console.workers.slips import GenerationRequest, get_slip_worker

logger = logging.getLogger(__name__)


class WizardNotFoundError(KeyError):
    """Raised when a wizard or one of its employees does not exist."""


class PayrollWizardService:
    """Coordinates the payroll run steps for in-memory wizards."""

    STEP_DEFINITIONS: list[dict[str, object]] = [
        {
            "id": WizardStep.EMPLOYEES,
            "label": "Pay period & Employee",
            "description": "Select employees and review their working hours",
        },
        {
            "id": WizardStep.TOTAL_HOURS,
            "label": "Total Hours",
            "description": "Check employee total hours, time off and additional earning",
        },
        {
            "id": WizardStep.TIME_OFF,
            "label": "Time off",
            "description": "Review and adjust time off for employees",
        },
        {
            "id": WizardStep.REVIEW,
            "label": "Review payroll",
            "description": "Final review before generating salary slips",
        },
        {
            "id": WizardStep.SUCCESS,
            "label": "Success",
            "description": "Payroll generated successfully",
        },
    ]

    EDITABLE_STEPS = (WizardStep.TOTAL_HOURS, WizardStep.TIME_OFF, WizardStep.REVIEW)

    def __init__(self, repository: WizardRepository, gateway: ERPGateway | None = None) -> None:
        self._repository = repository
        self._gateway = gateway

    @property
    def gateway(self) -> ERPGateway:
        return self._gateway or get_erp_client()

    @property
    def std_hours(self) -> Decimal:
        return get_settings().standard_hours

    # ------------------------------------------------------------------
    # wizard lifecycle
    # ------------------------------------------------------------------
    async def start_wizard(self, period: PayPeriod | None = None) -> WizardState:
        wizard = self._repository.create_wizard(period or PayPeriod.current_month())
        try:
            wizard.roster = await selection.load_roster(self.gateway)
        except Exception:
            self._repository.delete_wizard(wizard.wizard_id)
            raise
        logger.info("Started payroll run %s for %s..%s", wizard.wizard_id, wizard.period.start, wizard.period.end)
        return wizard

    def get_wizard(self, wizard_id: str) -> WizardState:
        wizard = self._repository.get_wizard(wizard_id)
        if wizard is None:
            raise WizardNotFoundError(wizard_id)
        return wizard

    def list_wizards(self) -> list[dict[str, object]]:
        return [
            {
                "wizard_id": wizard.wizard_id,
                "period": {"start": wizard.period.start, "end": wizard.period.end},
                "step": wizard.step.value,
                "employees": len(wizard.employees),
                "outcomes": len(wizard.outcomes),
            }
            for wizard in self._repository.list_wizards()
        ]

    def discard_wizard(self, wizard_id: str) -> None:
        if not self._repository.delete_wizard(wizard_id):
            raise WizardNotFoundError(wizard_id)
        logger.info("Discarded payroll run %s", wizard_id)

    def set_period(self, wizard_id: str, start: date, end: date) -> WizardState:
        wizard = self.get_wizard(wizard_id)
        if wizard.step is WizardStep.SUCCESS:
            raise ValidationError("pay period cannot change after slips were generated")
        wizard.period = PayPeriod(start=start, end=end)
        return wizard

    def move(self, wizard_id: str, direction: str) -> WizardState:
        wizard = self.get_wizard(wizard_id)
        if wizard.step is WizardStep.SUCCESS:
            raise ValidationError("payroll run is complete")
        if direction == "previous":
            if wizard.step is WizardStep.EMPLOYEES:
                raise ValidationError("already at the first step")
            wizard.step = WizardStep(wizard.step.value - 1)
        elif direction == "next":
            if wizard.step not in (WizardStep.TOTAL_HOURS, WizardStep.TIME_OFF):
                raise ValidationError("use the selection or generate action to leave this step")
            wizard.step = WizardStep(wizard.step.value + 1)
        else:
            raise ValidationError("direction must be next or previous")
        return wizard

    def get_progress(self, wizard_id: str) -> list[dict[str, object]]:
        wizard = self.get_wizard(wizard_id)
        steps: list[dict[str, object]] = []
        for step in self.STEP_DEFINITIONS:
            step_id = step["id"]
            if step_id < wizard.step:  # type: ignore[operator]
                status = "completed"
            elif step_id == wizard.step:
                status = "current"
            else:
                status = "pending"
            steps.append(
                {
                    "id": int(step_id),  # type: ignore[call-overload]
                    "label": step["label"],
                    "description": step["description"],
                    "status": status,
                }
            )
        return steps

    # ------------------------------------------------------------------
    # step 1: employee selection
    # ------------------------------------------------------------------
    def list_roster(self, wizard_id: str, query: str | None = None) -> list[RosterEntry]:
        return selection.search(self.get_wizard(wizard_id).roster, query)

    def toggle_selection(self, wizard_id: str, *, employee_id: str | None = None, mode: str = "one") -> WizardState:
        wizard = self._require_step(wizard_id, WizardStep.EMPLOYEES)
        if mode == "all":
            selection.toggle_all(wizard.roster)
        elif mode == "none":
            selection.unselect_all(wizard.roster)
        elif mode == "one":
            if not employee_id:
                raise ValidationError("employee_id is required")
            try:
                selection.toggle(wizard.roster, employee_id)
            except KeyError as exc:
                raise WizardNotFoundError(employee_id) from exc
        else:
            raise ValidationError("mode must be one, all or none")
        return wizard

    async def confirm_selection(self, wizard_id: str) -> WizardState:
        wizard = self._require_step(wizard_id, WizardStep.EMPLOYEES)
        if not selection.selected_entries(wizard.roster):
            raise ValidationError("select at least one employee with a salary structure")
        wizard.employees = await selection.finalize_selection(self.gateway, wizard.roster, self.std_hours)
        wizard.outcomes = []
        wizard.step = WizardStep.TOTAL_HOURS
        return wizard

    # ------------------------------------------------------------------
    # steps 2 and 3: earnings and time off
    # ------------------------------------------------------------------
    def update_earnings(self, wizard_id: str, employee_id: str, changes: dict[str, Any]) -> WizardEmployee:
        employee = self._employee(wizard_id, employee_id)
        formula_fields = {
            key: changes[key]
            for key in (
                "worked_hours",
                "overtime_hours",
                "additional_earnings",
                "additional_earnings_type",
                "base_salary",
            )
            if key in changes
        }
        earnings.update_earnings(employee, std_hours=self.std_hours, **formula_fields)
        if changes.get("payment_type") is not None:
            earnings.set_payment_type(employee, str(changes["payment_type"]))
        if changes.get("notes") is not None:
            earnings.set_note(employee, str(changes["notes"]))
        return employee

    def override_total_pay(self, wizard_id: str, employee_id: str, amount: Any) -> WizardEmployee:
        return earnings.override_total_pay(self._employee(wizard_id, employee_id), amount)

    def update_time_off(self, wizard_id: str, employee_id: str, changes: dict[str, Any]) -> WizardEmployee:
        return time_off.update_time_off(self._employee(wizard_id, employee_id), **changes)

    def time_off_overview(self, wizard_id: str) -> dict[str, object]:
        wizard = self.get_wizard(wizard_id)
        totals = time_off.summarise(wizard.employees)
        return {
            "employees": time_off.employee_rows(wizard.employees),
            "totals": {
                "paid_time_off": totals.paid_time_off,
                "paid_holiday": totals.paid_holiday,
                "sick_leave": totals.sick_leave,
                "total": totals.total,
            },
        }

    # ------------------------------------------------------------------
    # step 4: review and generation
    # ------------------------------------------------------------------
    def review(self, wizard_id: str) -> PayrollSummary:
        wizard = self._require_selection(wizard_id)
        return review_payroll(wizard.employees, wizard.period, self.std_hours)

    async def generate(self, wizard_id: str, posting_date: date | None = None) -> WizardState:
        wizard = self.get_wizard(wizard_id)
        if wizard.step not in (WizardStep.REVIEW, WizardStep.SUCCESS):
            raise ValidationError("review the payroll before generating salary slips")
        request = GenerationRequest(
            period=wizard.period,
            employees=wizard.employees,
            posting_date=posting_date or date.today(),
            std_hours=self.std_hours,
        )
        wizard.outcomes = await get_slip_worker(self.gateway).generate(request)
        wizard.step = WizardStep.SUCCESS
        return wizard

    # ------------------------------------------------------------------
    # step 5: outcome report
    # ------------------------------------------------------------------
    def report(self, wizard_id: str) -> reporting.OutcomeReport:
        wizard = self._require_step(wizard_id, WizardStep.SUCCESS)
        return reporting.build_report(wizard.outcomes, wizard.employees, self.std_hours)

    def export_bank_csv(self, wizard_id: str) -> str:
        wizard = self._require_step(wizard_id, WizardStep.SUCCESS)
        return render_bank_payroll(wizard.employees, wizard.outcomes, wizard.period)

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _require_step(self, wizard_id: str, step: WizardStep) -> WizardState:
        wizard = self.get_wizard(wizard_id)
        if wizard.step is not step:
            raise ValidationError(f"payroll run is at step {wizard.step.value}, expected step {step.value}")
        return wizard

    def _require_selection(self, wizard_id: str) -> WizardState:
        wizard = self.get_wizard(wizard_id)
        if wizard.step is WizardStep.EMPLOYEES or not wizard.employees:
            raise ValidationError("employee selection has not been confirmed")
        return wizard

    def _employee(self, wizard_id: str, employee_id: str) -> WizardEmployee:
        wizard = self.get_wizard(wizard_id)
        if wizard.step not in self.EDITABLE_STEPS:
            raise ValidationError(f"employees cannot be edited at step {wizard.step.value}")
        employee = wizard.find_employee(employee_id)
        if employee is None:
            raise WizardNotFoundError(employee_id)
        return employee

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryWizardRepository()
_service = PayrollWizardService(_repository)


def get_wizard_service() -> PayrollWizardService:
    """Return the singleton wizard service for the process."""

    return _service


def reset_wizard_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _service.reset()
