"""Configuration for the campaign sync store and CLI."""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings


class DashboardSettings(BaseSettings):
    """Settings for the campaign dashboard core.

    Read from CROWDFUND_* environment variables or a .env file.
    """

    # Ledger
    ledger_url: str = "http://localhost:8899"
    fetch_timeout_seconds: float = 10.0

    # Schedules
    refresh_interval_seconds: float = 15.0
    deadline_watch_interval_seconds: float = 1.0

    # Display
    page_size: int = 9
    currency_decimals: int = 9
    currency_symbol: str = "SOL"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {
        "env_prefix": "CROWDFUND_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_intervals(self) -> "DashboardSettings":
        if self.fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        if self.deadline_watch_interval_seconds <= 0:
            raise ValueError("deadline_watch_interval_seconds must be positive")
        if self.deadline_watch_interval_seconds >= self.refresh_interval_seconds:
            raise ValueError(
                "deadline_watch_interval_seconds must be shorter than refresh_interval_seconds"
            )
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        return self


@lru_cache
def get_settings() -> DashboardSettings:
    """Get cached settings instance."""
    return DashboardSettings()
