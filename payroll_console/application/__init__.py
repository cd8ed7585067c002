"""Application services."""

from .wizard import PayrollWizardService, WizardNotFoundError, get_wizard_service, reset_wizard_state

__all__ = [
    "PayrollWizardService",
    "WizardNotFoundError",
    "get_wizard_service",
    "reset_wizard_state",
]
