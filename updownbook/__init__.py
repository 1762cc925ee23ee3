"""
updownbook - live top of book for Polymarket Up/Down markets.

Streams the Polymarket market WebSocket for the two complementary tokens
of a binary Up/Down market and keeps a combined, self-consistent top of
book that consumers read on every change signal.
"""

__version__ = "0.1.0"

# Core types
from .types import (
    # Enums
    Instrument,
    UpdateOutcome,
    LayerState,
    LayerExit,
    # Order book data
    OrderbookConfig,
    OrderbookState,
    BookLevel,
    TopOfBookUpdate,
    StateUpdated,
    MarketDescriptor,
    # Utilities
    wall_ms,
    complement_price,
)

# Errors
from .errors import (
    UpDownBookError,
    FeedConnectionError,
    DecodeError,
    NotifierClosed,
    ConfigurationError,
    GammaAPIError,
)

# State and notification
from .state_store import OrderbookStore
from .notifier import UpdateNotifier, UpdateReceiver

# Data layer
from .feeds import (
    FeedConnection,
    PM_MARKET_WS_URL,
    MessageInterpreter,
    OrderbookDataLayer,
    OrderbookHandle,
    spawn,
)

# Market discovery
from .clients import GammaClient, UpDownMarketFinder

# Application
from .config import AppConfig

__all__ = [
    # Version
    "__version__",
    # Enums
    "Instrument",
    "UpdateOutcome",
    "LayerState",
    "LayerExit",
    # Order book data
    "OrderbookConfig",
    "OrderbookState",
    "BookLevel",
    "TopOfBookUpdate",
    "StateUpdated",
    "MarketDescriptor",
    # Utilities
    "wall_ms",
    "complement_price",
    # Errors
    "UpDownBookError",
    "FeedConnectionError",
    "DecodeError",
    "NotifierClosed",
    "ConfigurationError",
    "GammaAPIError",
    # State and notification
    "OrderbookStore",
    "UpdateNotifier",
    "UpdateReceiver",
    # Data layer
    "FeedConnection",
    "PM_MARKET_WS_URL",
    "MessageInterpreter",
    "OrderbookDataLayer",
    "OrderbookHandle",
    "spawn",
    # Market discovery
    "GammaClient",
    "UpDownMarketFinder",
    # Application
    "AppConfig",
]
