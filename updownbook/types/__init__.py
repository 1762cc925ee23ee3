"""
Order book layer types.

This module re-exports all types so callers can import from one place.

Example:
    from updownbook.types import OrderbookState, Instrument, wall_ms
"""

# Core enums
from .core import (
    Instrument,
    UpdateOutcome,
    LayerState,
    LayerExit,
)

# Utility functions
from .utils import (
    wall_ms,
    complement_price,
)

# Order book data
from .market_data import (
    OrderbookConfig,
    OrderbookState,
    BookLevel,
    TopOfBookUpdate,
    StateUpdated,
)

# Market discovery
from .market import MarketDescriptor

__all__ = [
    # Enums
    "Instrument",
    "UpdateOutcome",
    "LayerState",
    "LayerExit",
    # Utilities
    "wall_ms",
    "complement_price",
    # Order book data
    "OrderbookConfig",
    "OrderbookState",
    "BookLevel",
    "TopOfBookUpdate",
    "StateUpdated",
    # Market discovery
    "MarketDescriptor",
]
