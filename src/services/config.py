"""Configuration loading for the rent billing service.

Loads settings from .env file and environment variables with sensible defaults.
Validates scheduler settings and provides clear error messages.
"""

import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class BillingConfig:
    """Configuration for the billing service and its daily scheduler."""

    database_url: str = "sqlite:///./rolling_rent.db"
    """SQLAlchemy database URL (default: local SQLite)"""

    log_file: str = "logs/billing.log"
    """Path to log file (default: logs/billing.log)"""

    run_at: time = time(1, 30)
    """Local time of the daily rolling rent run (default: 01:30)"""

    timezone: str = "Europe/London"
    """IANA timezone the run time is expressed in"""

    scheduler_enabled: bool = True
    """Whether src.main starts the daily scheduler next to the API"""

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def parse_run_at(value: str) -> time:
    """Parse an HH:MM run time.

    Raises:
        ValueError: If the value is not a valid 24h HH:MM time
    """
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except ValueError as e:
        raise ValueError(
            f"ROLLING_PAYMENTS_RUN_AT must be HH:MM (24h), got {value!r}"
        ) from e


def load_config() -> BillingConfig:
    """
    Load configuration from .env file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, ROLLING_PAYMENTS_RUN_AT, etc.)
    2. .env file in project root
    3. Default values

    Returns:
        BillingConfig with all settings

    Raises:
        ValueError: If a setting is invalid

    Example:
        Create .env file:
        ```
        DATABASE_URL=postgresql://lettings@localhost/lettings
        ROLLING_PAYMENTS_RUN_AT=01:30
        ROLLING_PAYMENTS_TIMEZONE=Europe/London
        ```

        Then call:
        ```
        config = load_config()
        ```
    """
    # Load .env file from project root
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./rolling_rent.db")
    log_file = os.getenv("LOG_FILE", "logs/billing.log")
    run_at = parse_run_at(os.getenv("ROLLING_PAYMENTS_RUN_AT", "01:30"))
    timezone = os.getenv("ROLLING_PAYMENTS_TIMEZONE", "Europe/London")
    scheduler_enabled = (
        os.getenv("ROLLING_PAYMENTS_SCHEDULER_ENABLED", "true").strip().lower() in TRUE_VALUES
    )

    # Validate timezone
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(
            f"ROLLING_PAYMENTS_TIMEZONE is not a known timezone: {timezone!r}"
        ) from e

    return BillingConfig(
        database_url=database_url,
        log_file=log_file,
        run_at=run_at,
        timezone=timezone,
        scheduler_enabled=scheduler_enabled,
    )
