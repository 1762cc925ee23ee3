"""Polymarket market WebSocket connection."""

import logging
from typing import AsyncIterator

import orjson
import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from ..errors import FeedConnectionError

logger = logging.getLogger(__name__)

# Default WebSocket URL
PM_MARKET_WS_URL = "wss://ws-subscriptions-clob.polymarket.com/ws/market"


def build_subscribe_message(asset_id: str) -> bytes:
    """Build the book-channel subscription frame for one asset."""
    msg = {
        "type": "subscribe",
        "channel": "book",
        "assets_ids": [asset_id],
    }
    return orjson.dumps(msg)


class FeedConnection:
    """
    One market WebSocket connection.

    Owns the transport for a single run of the data layer. There is no
    reconnect: once frames() ends, the connection is spent.

    No keepalive pings, open timeout or read timeouts are configured.
    """

    def __init__(self, ws: ClientConnection, ws_url: str):
        self._ws = ws
        self._ws_url = ws_url
        self._closed = False

    @classmethod
    async def open(cls, ws_url: str = PM_MARKET_WS_URL) -> "FeedConnection":
        """
        Establish the WebSocket connection.

        Raises:
            FeedConnectionError: If the transport could not be established
        """
        logger.info(f"Connecting to Polymarket market WS: {ws_url[:50]}...")
        try:
            ws = await websockets.connect(
                ws_url,
                ping_interval=None,
                open_timeout=None,
                max_size=2**20,
            )
        except (OSError, WebSocketException) as e:
            raise FeedConnectionError(f"Connect to {ws_url} failed: {e}") from e
        logger.info("Connected to Polymarket market WS")
        return cls(ws, ws_url)

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    async def subscribe(self, asset_id: str) -> None:
        """
        Subscribe to the book channel for one asset.

        Raises:
            FeedConnectionError: If the frame could not be sent
        """
        try:
            # Sent as text: the feed only accepts textual JSON
            await self._ws.send(build_subscribe_message(asset_id).decode("utf-8"))
        except (ConnectionClosed, OSError) as e:
            raise FeedConnectionError(f"Subscribe {asset_id[:20]}... failed: {e}") from e
        logger.info(f"Subscribed to book for {asset_id[:20]}...")

    async def frames(self) -> AsyncIterator[str]:
        """
        Yield inbound text frames until the connection ends.

        Binary frames are skipped. A normal close or a transport error
        both simply end the sequence.
        """
        try:
            async for message in self._ws:
                if not isinstance(message, str):
                    logger.debug("Skipping binary frame")
                    continue
                yield message
        except ConnectionClosedOK:
            logger.info("Market WS closed by peer")
        except ConnectionClosed as e:
            logger.warning(f"Market WS connection closed: {e}")

    async def close(self) -> None:
        """Close the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug(f"Error closing market WS: {e}")
        logger.info("Market WS connection closed")


async def connect_feed(ws_url: str) -> FeedConnection:
    """Default connector used by the data layer."""
    return await FeedConnection.open(ws_url)

