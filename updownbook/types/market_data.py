"""
Order book data types.

Types for representing the combined Up/Down top of book and the
partial updates decoded from the market feed.
"""

from dataclasses import dataclass
from typing import Optional

from .core import Instrument


@dataclass(frozen=True, slots=True)
class OrderbookConfig:
    """
    Instrument identifiers the data layer subscribes to.

    Created once at startup; never changes for the life of the layer.
    """
    token_up: str
    token_down: str

    def instrument_for(self, asset_id: str) -> Optional[Instrument]:
        """Map a feed asset id to the configured instrument, if any."""
        if asset_id == self.token_up:
            return Instrument.UP
        if asset_id == self.token_down:
            return Instrument.DOWN
        return None


@dataclass(slots=True)
class OrderbookState:
    """
    Top-of-book state for both instruments of the market.

    Prices and sizes are kept as the decimal strings the feed sends.
    Empty string means "not seen yet".
    """
    up_bid_price: str = ""
    up_bid_size: str = ""
    up_ask_price: str = ""
    up_ask_size: str = ""
    down_bid_price: str = ""
    down_bid_size: str = ""
    down_ask_price: str = ""
    down_ask_size: str = ""
    last_update_ms: int = 0  # Wall clock epoch ms of the last mutation

    @property
    def has_data(self) -> bool:
        """Check if any update has been applied."""
        return self.last_update_ms > 0

    def set_bid(self, instrument: Instrument, price: str, size: str) -> None:
        """Set best bid for one instrument."""
        if instrument is Instrument.UP:
            self.up_bid_price = price
            self.up_bid_size = size
        else:
            self.down_bid_price = price
            self.down_bid_size = size

    def set_ask(self, instrument: Instrument, price: str, size: str) -> None:
        """Set best ask for one instrument."""
        if instrument is Instrument.UP:
            self.up_ask_price = price
            self.up_ask_size = size
        else:
            self.down_ask_price = price
            self.down_ask_size = size


@dataclass(frozen=True, slots=True)
class BookLevel:
    """A single price level as sent by the feed."""
    price: str
    size: str


@dataclass(frozen=True, slots=True)
class TopOfBookUpdate:
    """
    Partial top-of-book update for one instrument.

    Either side may be None when the frame carried no usable level for it.
    """
    instrument: Instrument
    best_bid: Optional[BookLevel] = None
    best_ask: Optional[BookLevel] = None

    @property
    def is_empty(self) -> bool:
        """True if neither side carried a usable level."""
        return self.best_bid is None and self.best_ask is None


@dataclass(frozen=True, slots=True)
class StateUpdated:
    """Content-free signal: the order book state changed, re-read it."""
