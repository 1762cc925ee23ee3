"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AppConfig:
    """Application configuration."""

    # URLs
    pm_ws_market_url: str = "wss://ws-subscriptions-clob.polymarket.com/ws/market"
    gamma_api_url: str = "https://gamma-api.polymarket.com"

    # Market discovery
    market_slug_prefix: str = "btc-updown-15m"
    market_interval_s: int = 900  # 15 minute markets

    # Update notifier buffer per subscriber
    update_capacity: int = 64

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        try:
            return cls(
                pm_ws_market_url=os.getenv(
                    "PM_WS_MARKET_URL",
                    "wss://ws-subscriptions-clob.polymarket.com/ws/market",
                ),
                gamma_api_url=os.getenv("GAMMA_API_URL", "https://gamma-api.polymarket.com"),
                market_slug_prefix=os.getenv("MARKET_SLUG_PREFIX", "btc-updown-15m"),
                market_interval_s=int(os.getenv("MARKET_INTERVAL_S", "900")),
                update_capacity=int(os.getenv("UPDATE_CAPACITY", "64")),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.pm_ws_market_url.startswith(("ws://", "wss://")):
            errors.append("PM_WS_MARKET_URL must be a ws:// or wss:// URL")

        if not self.gamma_api_url.startswith(("http://", "https://")):
            errors.append("GAMMA_API_URL must be an http:// or https:// URL")

        if not self.market_slug_prefix:
            errors.append("MARKET_SLUG_PREFIX is required")

        if self.market_interval_s <= 0:
            errors.append("MARKET_INTERVAL_S must be positive")

        if self.update_capacity < 1:
            errors.append("UPDATE_CAPACITY must be at least 1")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

        return errors
