"""Configuration management for the time-to-pay engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

PRORATION_STRATEGIES = ("average", "calendar")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str

    # Salary / recurring contractor proration
    proration_strategy: str
    pay_period_anchor_date: date

    # Punch noise filtering windows
    burst_window_seconds: int
    duplicate_window_seconds: int
    break_cancel_window_seconds: int

    # Session policy
    short_session_minutes: int
    exclude_abnormally_short: bool

    # Overtime
    weekly_overtime_threshold_hours: int
    overtime_multiplier: Decimal

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        strategy = os.getenv("PRORATION_STRATEGY", "average").lower()
        if strategy not in PRORATION_STRATEGIES:
            raise ValueError(
                f"PRORATION_STRATEGY must be one of {PRORATION_STRATEGIES}, got '{strategy}'"
            )

        anchor = os.getenv("PAY_PERIOD_ANCHOR_DATE", "2024-01-01")
        try:
            pay_period_anchor_date = date.fromisoformat(anchor)
        except ValueError as e:
            raise ValueError(
                f"PAY_PERIOD_ANCHOR_DATE must be an ISO date (YYYY-MM-DD), got '{anchor}'"
            ) from e

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            proration_strategy=strategy,
            pay_period_anchor_date=pay_period_anchor_date,
            burst_window_seconds=int(os.getenv("BURST_WINDOW_SECONDS", "60")),
            duplicate_window_seconds=int(os.getenv("DUPLICATE_WINDOW_SECONDS", "60")),
            break_cancel_window_seconds=int(os.getenv("BREAK_CANCEL_WINDOW_SECONDS", "120")),
            short_session_minutes=int(os.getenv("SHORT_SESSION_MINUTES", "3")),
            exclude_abnormally_short=(
                os.getenv("EXCLUDE_ABNORMALLY_SHORT", "false").lower() == "true"
            ),
            weekly_overtime_threshold_hours=int(
                os.getenv("WEEKLY_OVERTIME_THRESHOLD_HOURS", "40")
            ),
            overtime_multiplier=Decimal(os.getenv("OVERTIME_MULTIPLIER", "1.5")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
