"""Infrastructure layer exports."""

from .erp import (
    ERPConfigurationError,
    ERPError,
    ERPGateway,
    RosterLookupError,
    configure_erp_client,
    get_erp_client,
    is_conflict_error,
    reset_erp_client,
)
from .frappe import FrappeClient
from .wizards import InMemoryWizardRepository, WizardRepository

__all__ = [
    "ERPConfigurationError",
    "ERPError",
    "ERPGateway",
    "FrappeClient",
    "InMemoryWizardRepository",
    "RosterLookupError",
    "WizardRepository",
    "configure_erp_client",
    "get_erp_client",
    "is_conflict_error",
    "reset_erp_client",
]
