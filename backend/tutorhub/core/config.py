# backend/tutorhub/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME, MAX_AUTO_COMPLETE_BATCH_SIZE


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = _BACKEND_ROOT / ".env"
    logger.info(f"[CONFIG] Looking for .env at: {env_path} (exists: {env_path.exists()})")
    load_dotenv(env_path)


_CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Settings(BaseSettings):
    app_name: str = BRAND_NAME
    environment: Literal["development", "test", "staging", "production"] = "development"
    is_testing: bool = False  # Set to True when running tests

    # Auth (identity is an external concern; we only verify bearer tokens)
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me"),
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"

    # Database
    database_url: str = Field(
        default="sqlite+pysqlite:///./tutorhub.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Celery / Redis
    redis_url: str = "redis://localhost:6379/0"

    # Scheduling rules
    default_timezone: str = Field(
        default="UTC",
        description="Timezone used for tutors that have not configured one",
    )
    default_slot_step_minutes: int = Field(default=60, ge=15, le=240)
    min_slot_step_minutes: int = 15
    max_slot_step_minutes: int = 240
    default_open_time: str = Field(default="09:00", pattern=_CLOCK_PATTERN)
    default_close_time: str = Field(default="17:00", pattern=_CLOCK_PATTERN)
    default_session_duration_minutes: int = 60
    max_session_duration_minutes: int = 240
    session_duration_increment_minutes: int = 15
    initial_session_status: Literal["pending", "scheduled"] = Field(
        default="scheduled",
        description="Status assigned to newly booked sessions",
    )

    # Auto-completion sweep
    auto_complete_batch_size: int = Field(default=400, ge=1, le=MAX_AUTO_COMPLETE_BATCH_SIZE)
    auto_complete_interval_minutes: int = 15
    cron_secret: Optional[SecretStr] = Field(
        default=None,
        description="Shared secret required in X-Cron-Secret for cron endpoints (optional in dev)",
    )

    # Use ConfigDict instead of Config class (Pydantic V2 style)
    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        import pytz

        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @model_validator(mode="after")
    def _validate_step_bounds(self) -> "Settings":
        if self.min_slot_step_minutes > self.max_slot_step_minutes:
            raise ValueError("min_slot_step_minutes must not exceed max_slot_step_minutes")
        if not (
            self.min_slot_step_minutes
            <= self.default_slot_step_minutes
            <= self.max_slot_step_minutes
        ):
            raise ValueError("default_slot_step_minutes must lie within the step bounds")
        return self


settings = Settings()
