"""Infrastructure layer for wizard session storage."""
from __future__ import annotations

from typing import Protocol

from payroll_console.domain import PayPeriod, WizardState


class WizardRepository(Protocol):
    """Storage contract for in-flight payroll run wizards."""

    def create_wizard(self, period: PayPeriod) -> WizardState: ...

    def get_wizard(self, wizard_id: str) -> WizardState | None: ...

    def list_wizards(self) -> list[WizardState]: ...

    def delete_wizard(self, wizard_id: str) -> bool: ...

    def reset(self) -> None: ...


class InMemoryWizardRepository:
    """Keeps wizard state for the lifetime of the process only."""

    def __init__(self) -> None:
        self._wizards: dict[str, WizardState] = {}
        self._counter = 0

    def _next_id(self) -> str:
        self._counter += 1
        return f"run-{self._counter:05d}"

    def create_wizard(self, period: PayPeriod) -> WizardState:
        wizard = WizardState(wizard_id=self._next_id(), period=period)
        self._wizards[wizard.wizard_id] = wizard
        return wizard

    def get_wizard(self, wizard_id: str) -> WizardState | None:
        return self._wizards.get(wizard_id)

    def list_wizards(self) -> list[WizardState]:
        return list(self._wizards.values())

    def delete_wizard(self, wizard_id: str) -> bool:
        return self._wizards.pop(wizard_id, None) is not None

    def reset(self) -> None:
        self._wizards.clear()
        self._counter = 0
