# backend/tablebook/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    # Database
    database_url: str = Field(
        default="sqlite:///./tablebook.db",
        description="SQLAlchemy URL for the reservation store",
    )
    database_echo: bool = False

    # API
    api_prefix: str = "/api/v1"
    principal_id_header: str = "X-Principal-Id"
    principal_role_header: str = "X-Principal-Role"

    # Notifications
    notifications_enabled: bool = True
    notification_workers: int = Field(default=4, ge=1, le=64)
    resend_api_key: str | None = Field(
        default=None,
        description="Resend API key; console delivery is used when unset",
    )
    from_email: str = f"{BRAND_NAME} <reservations@tablebook.app>"

    # Service observability
    slow_operation_seconds: float = Field(default=1.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def is_testing(self) -> bool:
        return self.environment == "test" or is_running_tests()

    @property
    def email_delivery_configured(self) -> bool:
        return bool(self.resend_api_key)


settings = Settings()
