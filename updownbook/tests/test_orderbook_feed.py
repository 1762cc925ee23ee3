"""Tests for the order book data layer supervisor and handle."""

import asyncio

import pytest

from updownbook.errors import FeedConnectionError, NotifierClosed
from updownbook.feeds import spawn
from updownbook.types import LayerExit, LayerState


def up_bid(price: str, size: str = "100") -> dict:
    return {"asset_id": "UP_ID", "bids": [{"price": price, "size": size}]}


class TestOrderbookLayerLifecycle:
    """Connect, subscribe, stream, stop."""

    @pytest.mark.asyncio
    async def test_subscribes_up_then_down(self, config, fake_conn, connector, wait_for_status):
        handle = spawn(config, ws_url="wss://example.test/ws", connector=connector)
        await wait_for_status(handle, LayerState.STREAMING)

        assert connector.urls == ["wss://example.test/ws"]
        assert fake_conn.subscribed == ["UP_ID", "DOWN_ID"]

        handle.shutdown()
        assert await handle.join() is LayerExit.SHUTDOWN

    @pytest.mark.asyncio
    async def test_shutdown_while_waiting_for_frame(self, config, fake_conn, connector, wait_for_status):
        handle = spawn(config, connector=connector)
        receiver = handle.subscribe_updates()
        await wait_for_status(handle, LayerState.STREAMING)

        handle.shutdown()
        # A frame arriving together with the shutdown is not processed
        fake_conn.push(up_bid("0.40"))

        exit_reason = await asyncio.wait_for(handle.join(), timeout=1.0)
        assert exit_reason is LayerExit.SHUTDOWN
        assert not exit_reason.is_fatal
        assert handle.status is LayerState.STOPPED
        assert handle.error is None
        assert fake_conn.closed
        assert handle.get_current_state().up_bid_price == ""
        with pytest.raises(NotifierClosed):
            await receiver.recv()

    @pytest.mark.asyncio
    async def test_shutdown_is_single_shot(self, config, connector, wait_for_status):
        handle = spawn(config, connector=connector)
        await wait_for_status(handle, LayerState.STREAMING)

        handle.shutdown()
        handle.shutdown()
        assert await handle.join() is LayerExit.SHUTDOWN
        handle.shutdown()
        assert handle.stopped

    @pytest.mark.asyncio
    async def test_shutdown_before_subscribing(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector)
        handle.shutdown()

        assert await handle.join() is LayerExit.SHUTDOWN
        assert fake_conn.subscribed == []
        assert fake_conn.closed

    @pytest.mark.asyncio
    async def test_shutdown_while_connecting(self, config):
        """A handshake that never completes does not block shutdown."""
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def hang(url):
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        handle = spawn(config, connector=hang)
        await asyncio.wait_for(started.wait(), timeout=1.0)
        assert handle.status is LayerState.CONNECTING

        handle.shutdown()
        exit_reason = await asyncio.wait_for(handle.join(), timeout=1.0)

        assert exit_reason is LayerExit.SHUTDOWN
        assert not exit_reason.is_fatal
        assert handle.error is None
        assert handle.status is LayerState.STOPPED
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_stream_end_stops_layer(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector)
        receiver = handle.subscribe_updates()
        fake_conn.push(up_bid("0.40"))
        fake_conn.end()

        signals = [signal async for signal in receiver]
        assert len(signals) == 1

        exit_reason = await handle.join()
        assert exit_reason is LayerExit.STREAM_ENDED
        assert not exit_reason.is_fatal
        assert fake_conn.closed
        # State survives the stop for a final read
        assert handle.get_current_state().up_bid_price == "0.40"

    @pytest.mark.asyncio
    async def test_connect_failure_is_fatal(self, config):
        async def refuse(url):
            raise FeedConnectionError("connection refused")

        handle = spawn(config, connector=refuse)
        receiver = handle.subscribe_updates()

        exit_reason = await handle.join()
        assert exit_reason is LayerExit.CONNECT_FAILED
        assert exit_reason.is_fatal
        assert isinstance(handle.error, FeedConnectionError)
        assert handle.status is LayerState.STOPPED
        with pytest.raises(NotifierClosed):
            await receiver.recv()

    @pytest.mark.asyncio
    async def test_subscribe_failure_is_fatal(self, config, fake_conn, connector):
        fake_conn.fail_subscribe_on = "DOWN_ID"

        handle = spawn(config, connector=connector)
        exit_reason = await handle.join()

        assert exit_reason is LayerExit.SUBSCRIBE_FAILED
        assert exit_reason.is_fatal
        assert fake_conn.subscribed == ["UP_ID"]
        assert fake_conn.closed
        assert "send failed" in str(handle.error)


class TestOrderbookLayerStreaming:
    """Frame routing, signalling and ordering."""

    @pytest.mark.asyncio
    async def test_applied_frame_signals_and_is_readable(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector)
        receiver = handle.subscribe_updates()

        fake_conn.push('{"asset_id":"UP_ID","bids":[{"price":"0.40","size":"100"}]}')
        await asyncio.wait_for(receiver.recv(), timeout=1.0)

        state = handle.get_current_state()
        assert state.up_bid_price == "0.40"
        assert state.up_bid_size == "100"
        assert state.down_ask_price == "0.60"
        assert state.down_ask_size == "100"

        handle.shutdown()
        await handle.join()

    @pytest.mark.asyncio
    async def test_irrelevant_frames_do_not_signal(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector)
        receiver = handle.subscribe_updates()

        fake_conn.push({"asset_id": "UNRELATED", "bids": [{"price": "0.40", "size": "1"}]})
        fake_conn.push({"asset_id": "UP_ID", "bids": [], "asks": []})
        fake_conn.push("not json")
        fake_conn.push({"asset_id": "DOWN_ID", "asks": [{"price": "0.30", "size": "5"}]})
        fake_conn.end()

        signals = [signal async for signal in receiver]
        assert len(signals) == 1
        assert await handle.join() is LayerExit.STREAM_ENDED

        state = handle.get_current_state()
        assert state.down_ask_price == "0.30"
        assert state.up_bid_price == "0.70"
        assert state.up_ask_price == ""
        assert state.down_bid_price == ""

    @pytest.mark.asyncio
    async def test_signal_never_precedes_mutation(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector)
        receiver = handle.subscribe_updates()
        pushed = [f"0.{n:02d}" for n in range(10, 40)]
        for price in pushed:
            fake_conn.push(up_bid(price))
        fake_conn.end()

        received = 0
        async for _ in receiver:
            received += 1
            state = handle.get_current_state()
            assert state.up_bid_price in pushed
            # At least as many writes as signals seen so far
            assert pushed.index(state.up_bid_price) + 1 >= received

        assert await handle.join() is LayerExit.STREAM_ENDED
        assert received == len(pushed)
        assert handle.get_current_state().up_bid_price == pushed[-1]

    @pytest.mark.asyncio
    async def test_multiple_subscribers(self, config, fake_conn, connector):
        handle = spawn(config, connector=connector, update_capacity=4)
        a = handle.subscribe_updates()
        b = handle.subscribe_updates()
        for price in ("0.41", "0.42", "0.43", "0.44", "0.45", "0.46"):
            fake_conn.push(up_bid(price))
        fake_conn.end()

        assert await handle.join() is LayerExit.STREAM_ENDED

        # Nobody read while frames streamed: each buffer kept the newest 4
        assert a.pending == 4 and a.missed == 2
        assert b.pending == 4 and b.missed == 2
        assert handle.get_current_state().up_bid_price == "0.46"
