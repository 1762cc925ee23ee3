"""
Console application.

Wires market discovery to the order book data layer and renders the
top of book on a single, continuously rewritten console line until the
market expires.
"""

import asyncio
import logging
import signal
import sys
from time import time
from typing import Callable, Optional, TextIO

from .clients import GammaClient, UpDownMarketFinder
from .config import AppConfig
from .errors import ConfigurationError
from .feeds import OrderbookHandle, spawn
from .types import LayerExit, MarketDescriptor, OrderbookState
from .util import setup_logging

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def format_state_line(state: OrderbookState, ttl_seconds: int) -> str:
    """Render one status line: TTL, then Up and Down bid/ask with sizes."""
    return (
        f"TTL:{ttl_seconds:>4}s | "
        f"UP {state.up_bid_price}/{state.up_bid_size} - "
        f"{state.up_ask_price}/{state.up_ask_size} | "
        f"DOWN {state.down_bid_price}/{state.down_bid_size} - "
        f"{state.down_ask_price}/{state.down_ask_size}    "
    )


class ConsoleApp:
    """
    Presentation loop.

    Component graph:
    GammaClient -> UpDownMarketFinder -> MarketDescriptor
    MarketDescriptor -> spawn() -> OrderbookHandle
    OrderbookHandle.subscribe_updates() -> redraw on every signal
    """

    def __init__(
        self,
        config: AppConfig,
        out: TextIO = sys.stdout,
        clock: Callable[[], float] = time,
        spawner: Callable[..., OrderbookHandle] = spawn,
    ):
        """
        Initialize the application.

        Args:
            config: Application configuration
            out: Stream the status line is written to
            clock: Wall clock in epoch seconds
            spawner: Data layer factory
        """
        self.config = config
        self._out = out
        self._clock = clock
        self._spawner = spawner
        self.handle: Optional[OrderbookHandle] = None

    async def discover(self) -> Optional[MarketDescriptor]:
        """Resolve the active market once."""
        async with GammaClient(base_url=self.config.gamma_api_url) as gamma:
            finder = UpDownMarketFinder(
                gamma,
                slug_prefix=self.config.market_slug_prefix,
                interval_s=self.config.market_interval_s,
            )
            return await finder.find_active()

    async def watch(self, market: MarketDescriptor) -> int:
        """
        Stream the market's book until it expires or the layer stops.

        Returns:
            Process exit code
        """
        self._out.write(f"{market.title}\n")
        self._out.flush()

        self.handle = self._spawner(
            market.orderbook_config(),
            ws_url=self.config.pm_ws_market_url,
            update_capacity=self.config.update_capacity,
        )
        updates = self.handle.subscribe_updates()

        try:
            async for _ in updates:
                state = self.handle.get_current_state()
                ttl = market.ttl_seconds(int(self._clock()))

                self._out.write("\r" + format_state_line(state, ttl))
                self._out.flush()

                if ttl <= 0:
                    self._out.write("\nMarket expired!\n")
                    self._out.flush()
                    self.handle.shutdown()
                    await self.handle.join()
                    return 0
        finally:
            self.handle.shutdown()

        exit_reason = await self.handle.join()
        if exit_reason.is_fatal:
            logger.error(f"Orderbook layer failed: {self.handle.error}")
            return 1
        logger.info(f"Orderbook layer stopped: {exit_reason.name}")
        return 0 if exit_reason is LayerExit.SHUTDOWN else 1

    async def run(self) -> int:
        """
        Run until the market expires or a shutdown signal arrives.

        Returns:
            Process exit code
        """
        market = await self.discover()
        if market is None:
            logger.error("No active market found")
            return 1

        loop = asyncio.get_running_loop()
        installed = []
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._handle_signal)
            except NotImplementedError:
                # Not supported on this platform's event loop
                continue
            installed.append(sig)

        try:
            return await self.watch(market)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    def _handle_signal(self) -> None:
        """Handle shutdown signal."""
        logger.info("Received shutdown signal")
        if self.handle is not None:
            self.handle.shutdown()


def main() -> None:
    """Entry point for the application."""
    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Configuration error: {error}", file=sys.stderr)
        sys.exit(2)

    setup_logging("updownbook", level=config.log_level)
    logger.info(f"Starting with config: market_slug_prefix={config.market_slug_prefix}")

    app = ConsoleApp(config)
    sys.exit(asyncio.run(app.run()))


if __name__ == "__main__":
    main()
