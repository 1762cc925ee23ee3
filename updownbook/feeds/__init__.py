"""
Data feeds for the order book layer.

Contains the Polymarket market WebSocket pipeline:
- FeedConnection: WebSocket transport and book subscriptions
- MessageInterpreter: frame decoding and complementary price derivation
- OrderbookDataLayer: ingestion loop supervisor
- OrderbookHandle / spawn: public entry points for consumers
"""

from .connection import FeedConnection, PM_MARKET_WS_URL, build_subscribe_message, connect_feed
from .interpreter import MessageInterpreter, apply_update, decode_message, interpret
from .orderbook_feed import OrderbookDataLayer, OrderbookHandle, spawn

__all__ = [
    "FeedConnection",
    "PM_MARKET_WS_URL",
    "build_subscribe_message",
    "connect_feed",
    "MessageInterpreter",
    "apply_update",
    "decode_message",
    "interpret",
    "OrderbookDataLayer",
    "OrderbookHandle",
    "spawn",
]
