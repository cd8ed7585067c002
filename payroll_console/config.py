"""Configuration for the payroll run service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    frappe_url: str | None
    frappe_api_key: str | None
    frappe_api_secret: str | None
    frappe_timeout: float
    cors_origins: tuple[str, ...]
    log_level: str
    standard_hours: Decimal

    @property
    def erp_configured(self) -> bool:
        return bool(self.frappe_url and self.frappe_api_key and self.frappe_api_secret)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        origins_env = os.getenv("API_CORS_ORIGINS", "")
        origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())

        return cls(
            frappe_url=os.getenv("FRAPPE_URL") or None,
            frappe_api_key=os.getenv("FRAPPE_API_KEY") or None,
            frappe_api_secret=os.getenv("FRAPPE_API_SECRET") or None,
            frappe_timeout=float(os.getenv("FRAPPE_TIMEOUT", "30")),
            cors_origins=origins or DEFAULT_CORS_ORIGINS,
            log_level=os.getenv("PAYROLL_LOG_LEVEL", "INFO").upper(),
            standard_hours=Decimal(os.getenv("PAYROLL_STANDARD_HOURS", "160")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
