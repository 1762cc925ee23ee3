"""
Order book data layer.

Runs one market WebSocket connection in a background asyncio task,
keeps the combined Up/Down top of book in an OrderbookStore, and signals
subscribers whenever it changes.

Lifecycle: CONNECTING -> SUBSCRIBING -> STREAMING -> STOPPED
- Any failure before STREAMING is fatal for the run (no reconnect)
- STREAMING races the next frame against the shutdown request
- STOPPED is terminal: connection closed, notifier closed
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol

from .connection import PM_MARKET_WS_URL, connect_feed
from .interpreter import MessageInterpreter
from ..errors import FeedConnectionError
from ..notifier import DEFAULT_CAPACITY, UpdateNotifier, UpdateReceiver
from ..state_store import OrderbookStore
from ..types import (
    LayerExit,
    LayerState,
    OrderbookConfig,
    OrderbookState,
    StateUpdated,
    UpdateOutcome,
)

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """What the data layer needs from a feed connection."""

    async def subscribe(self, asset_id: str) -> None: ...

    def frames(self) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Connection]]


class OrderbookDataLayer:
    """
    Supervisor for the order book feed.

    Responsibilities:
    - Connect and send one book subscription per instrument
    - Route every frame through the MessageInterpreter
    - Publish StateUpdated only after the store write is committed
    - Stop on shutdown request or end of stream, releasing the connection

    Create with spawn(); interact through the returned OrderbookHandle.
    """

    def __init__(
        self,
        config: OrderbookConfig,
        ws_url: str = PM_MARKET_WS_URL,
        update_capacity: int = DEFAULT_CAPACITY,
        connector: Connector = connect_feed,
    ):
        """
        Initialize the data layer.

        Args:
            config: Up/Down instrument ids
            ws_url: Market WebSocket URL
            update_capacity: Per-subscriber signal buffer
            connector: Coroutine factory opening a connection for a URL
        """
        self._config = config
        self._ws_url = ws_url
        self._connector = connector

        self.store = OrderbookStore()
        self.notifier = UpdateNotifier(capacity=update_capacity)
        self._interpreter = MessageInterpreter(config, self.store)

        self._state = LayerState.CONNECTING
        self._shutdown_event = asyncio.Event()
        self._conn: Optional[Connection] = None
        self.error: Optional[FeedConnectionError] = None

    @property
    def config(self) -> OrderbookConfig:
        """Instrument configuration."""
        return self._config

    @property
    def state(self) -> LayerState:
        """Current lifecycle state."""
        return self._state

    @property
    def interpreter(self) -> MessageInterpreter:
        """Interpreter (exposes frame stats)."""
        return self._interpreter

    def request_shutdown(self) -> None:
        """Wake the loop and make it exit at its next suspension point."""
        self._shutdown_event.set()

    async def run(self) -> LayerExit:
        """
        Main loop: connect, subscribe, and process frames until stopped.

        Returns:
            Why the layer stopped. Fatal exits also set self.error.
        """
        try:
            return await self._run()
        finally:
            await self._stop()

    async def _run(self) -> LayerExit:
        # CONNECTING
        try:
            self._conn = await self._connect()
        except FeedConnectionError as e:
            self.error = e
            logger.error(f"Orderbook WS connect error: {e}")
            return LayerExit.CONNECT_FAILED

        if self._conn is None or self._shutdown_event.is_set():
            logger.info("Orderbook shutdown requested while connecting")
            return LayerExit.SHUTDOWN

        # SUBSCRIBING
        self._state = LayerState.SUBSCRIBING
        for label, token in (("UP", self._config.token_up), ("DOWN", self._config.token_down)):
            try:
                await self._conn.subscribe(token)
            except FeedConnectionError as e:
                self.error = e
                logger.error(f"Orderbook subscribe {label} failed: {e}")
                return LayerExit.SUBSCRIBE_FAILED

        # STREAMING
        self._state = LayerState.STREAMING
        logger.info(
            f"Orderbook streaming UP={self._config.token_up[:16]}... "
            f"DOWN={self._config.token_down[:16]}..."
        )
        return await self._stream(self._conn.frames())

    async def _connect(self) -> Optional[Connection]:
        """
        Race the connect against shutdown.

        Returns:
            Connection, or None if shutdown won (the connect is cancelled)
        """
        connecting = asyncio.ensure_future(self._connector(self._ws_url))
        shutdown_wait = asyncio.ensure_future(self._shutdown_event.wait())
        try:
            await asyncio.wait(
                {connecting, shutdown_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            shutdown_wait.cancel()
            if not connecting.done():
                connecting.cancel()
                await asyncio.gather(connecting, return_exceptions=True)

        if connecting.cancelled():
            return None
        # Raises FeedConnectionError if the connect failed. A connection
        # that completed alongside shutdown is still returned so _stop()
        # closes it.
        return connecting.result()

    async def _stream(self, frames: AsyncIterator[str]) -> LayerExit:
        """Race next frame vs shutdown until one of them ends the loop."""
        shutdown_wait = asyncio.ensure_future(self._shutdown_event.wait())
        next_frame: Optional[asyncio.Future] = None
        try:
            while True:
                next_frame = asyncio.ensure_future(frames.__anext__())
                await asyncio.wait(
                    {next_frame, shutdown_wait},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                # Shutdown wins ties: no frame is processed after the request
                if shutdown_wait.done():
                    logger.info("Orderbook shutdown requested")
                    return LayerExit.SHUTDOWN

                try:
                    raw = next_frame.result()
                except StopAsyncIteration:
                    logger.info("Orderbook feed ended")
                    return LayerExit.STREAM_ENDED
                next_frame = None

                self._handle_frame(raw)
        finally:
            if next_frame is not None and not next_frame.done():
                next_frame.cancel()
                await asyncio.gather(next_frame, return_exceptions=True)
            shutdown_wait.cancel()
            await _aclose(frames)

    def _handle_frame(self, raw: str) -> None:
        """Interpret a frame; signal only once the write is committed."""
        outcome = self._interpreter.interpret(raw)
        if outcome is UpdateOutcome.APPLIED:
            self.notifier.publish(StateUpdated())

    async def _stop(self) -> None:
        self._state = LayerState.STOPPED
        if self._conn is not None:
            await self._conn.close()
        self.notifier.close()
        logger.info(
            f"Orderbook stopped (frames={self._interpreter.frames_seen}, "
            f"applied={self._interpreter.applied})"
        )


async def _aclose(frames: AsyncIterator[str]) -> None:
    aclose = getattr(frames, "aclose", None)
    if aclose is not None:
        await aclose()


class OrderbookHandle:
    """
    Handle to a running data layer.

    - get_current_state(): consistent copy of the book, returns promptly
    - subscribe_updates(): new receiver of StateUpdated signals
    - shutdown(): single-shot stop request
    - join(): wait for the layer to stop, get its LayerExit
    """

    def __init__(self, layer: OrderbookDataLayer, task: "asyncio.Task[LayerExit]"):
        self._layer = layer
        self._task = task
        self._shutdown_sent = False

    @property
    def status(self) -> LayerState:
        """Current lifecycle state."""
        return self._layer.state

    @property
    def error(self) -> Optional[FeedConnectionError]:
        """Fatal connection error, if the layer stopped because of one."""
        return self._layer.error

    @property
    def stopped(self) -> bool:
        """True once the background task has finished."""
        return self._task.done()

    def get_current_state(self) -> OrderbookState:
        """Read the current order book state."""
        return self._layer.store.read()

    def subscribe_updates(self) -> UpdateReceiver:
        """Subscribe to state updates."""
        return self._layer.notifier.subscribe()

    def shutdown(self) -> None:
        """Stop the data layer. Only the first call has any effect."""
        if self._shutdown_sent:
            return
        self._shutdown_sent = True
        self._layer.request_shutdown()

    async def join(self) -> LayerExit:
        """
        Wait until the layer has stopped.

        Returns:
            LayerExit; check .is_fatal or handle.error to decide on restart
        """
        return await asyncio.shield(self._task)


def spawn(
    config: OrderbookConfig,
    ws_url: str = PM_MARKET_WS_URL,
    update_capacity: int = DEFAULT_CAPACITY,
    connector: Connector = connect_feed,
) -> OrderbookHandle:
    """
    Start the order book data layer in a background task.

    Must be called from a running event loop.
    """
    layer = OrderbookDataLayer(
        config,
        ws_url=ws_url,
        update_capacity=update_capacity,
        connector=connector,
    )
    task = asyncio.create_task(layer.run(), name="orderbook")
    return OrderbookHandle(layer, task)
