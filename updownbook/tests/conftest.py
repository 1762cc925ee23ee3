"""Shared fixtures: an in-memory feed connection for the data layer."""

import asyncio

import orjson
import pytest

from updownbook.errors import FeedConnectionError
from updownbook.types import LayerState, OrderbookConfig

UP_ID = "UP_ID"
DOWN_ID = "DOWN_ID"


class FakeConnection:
    """In-memory stand-in for FeedConnection."""

    def __init__(self, fail_subscribe_on=None):
        self.subscribed: list[str] = []
        self.closed = False
        self.fail_subscribe_on = fail_subscribe_on
        self._frames: asyncio.Queue = asyncio.Queue()

    async def subscribe(self, asset_id: str) -> None:
        if asset_id == self.fail_subscribe_on:
            raise FeedConnectionError("send failed")
        self.subscribed.append(asset_id)

    def push(self, frame) -> None:
        """Queue a frame; dicts are JSON encoded."""
        if isinstance(frame, dict):
            frame = orjson.dumps(frame).decode("utf-8")
        self._frames.put_nowait(frame)

    def end(self) -> None:
        """End the frame sequence as if the peer closed."""
        self._frames.put_nowait(None)

    async def frames(self):
        while True:
            frame = await self._frames.get()
            if frame is None:
                return
            yield frame

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config():
    """Up/Down config used across tests."""
    return OrderbookConfig(token_up=UP_ID, token_down=DOWN_ID)


@pytest.fixture
def fake_conn():
    """Fresh fake connection."""
    return FakeConnection()


@pytest.fixture
def connector(fake_conn):
    """Connector returning the fake connection and recording the URL."""
    urls = []

    async def _connect(url):
        urls.append(url)
        return fake_conn

    _connect.urls = urls
    return _connect


@pytest.fixture
def wait_for_status():
    """Coroutine that yields to the loop until the layer reaches a status."""

    async def _wait(handle, status: LayerState, steps: int = 100) -> None:
        for _ in range(steps):
            if handle.status is status:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"Layer never reached {status.name}, stuck at {handle.status.name}")

    return _wait
