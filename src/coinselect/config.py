"""
Configuration management using pydantic-settings.

Every field can be overridden with a ``COINSELECT_``-prefixed environment
variable or an ``.env`` file, e.g. ``COINSELECT_BNB_TIMEOUT_MS=250``.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from coinselect.constants import (
    DEFAULT_AVOID_CHANGE_MAX_CANDIDATES,
    DEFAULT_BNB_MAX_NODES,
    DEFAULT_BNB_TIMEOUT_MS,
    DEFAULT_DUST_FLOOR,
    DEFAULT_EVENT_HISTORY_SIZE,
    DEFAULT_FEE_RATE,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COINSELECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_fee_rate: Decimal = Field(default=DEFAULT_FEE_RATE, gt=0)

    # Branch-and-Bound bounds (MinimizeChange)
    bnb_timeout_ms: int = Field(default=DEFAULT_BNB_TIMEOUT_MS, gt=0)
    bnb_max_nodes: int = Field(default=DEFAULT_BNB_MAX_NODES, gt=0)

    # Candidate subsets AvoidChange may explore before falling back
    avoid_change_max_candidates: int = Field(default=DEFAULT_AVOID_CHANGE_MAX_CANDIDATES, gt=0)

    # Fixed seed for the privacy strategies; None derives one from the coins
    privacy_seed: int | None = None

    dust_floor: int = Field(default=DEFAULT_DUST_FLOOR, ge=0)

    event_history_size: int = Field(default=DEFAULT_EVENT_HISTORY_SIZE, ge=0)

    log_level: str = "INFO"

    @property
    def bnb_timeout(self) -> float:
        """Search timeout in seconds."""
        return self.bnb_timeout_ms / 1000


def get_settings() -> Settings:
    return Settings()
