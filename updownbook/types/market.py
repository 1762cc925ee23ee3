"""Market discovery types."""

from dataclasses import dataclass

from .market_data import OrderbookConfig


@dataclass(frozen=True, slots=True)
class MarketDescriptor:
    """
    Resolved Up/Down market.

    Only the two token ids are consumed by the data layer; title and
    expiry are for display.
    """
    title: str
    end_ts: int  # Expiry, epoch seconds (0 if unknown)
    slug: str
    token_up: str
    token_down: str

    def orderbook_config(self) -> OrderbookConfig:
        """Build the data layer config for this market."""
        return OrderbookConfig(token_up=self.token_up, token_down=self.token_down)

    def ttl_seconds(self, now_ts: int) -> int:
        """Seconds until expiry (negative once expired)."""
        return self.end_ts - now_ts
