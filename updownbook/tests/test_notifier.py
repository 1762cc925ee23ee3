"""Tests for the lossy update notifier."""

import asyncio
import gc

import pytest

from updownbook.errors import NotifierClosed
from updownbook.notifier import UpdateNotifier
from updownbook.types import StateUpdated


class TestUpdateNotifier:
    """Tests for UpdateNotifier and UpdateReceiver."""

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            UpdateNotifier(capacity=0)

    def test_publish_without_receivers(self):
        notifier = UpdateNotifier()
        assert notifier.publish() == 0
        assert notifier.published == 1

    def test_every_receiver_gets_every_signal(self):
        notifier = UpdateNotifier(capacity=8)
        a = notifier.subscribe()
        b = notifier.subscribe()

        assert notifier.publish(StateUpdated()) == 2
        assert notifier.publish() == 2

        assert a.pending == 2
        assert b.pending == 2
        assert isinstance(a.try_recv(), StateUpdated)
        assert b.try_recv() is not None

    def test_only_signals_after_subscribe(self):
        notifier = UpdateNotifier()
        notifier.publish()
        late = notifier.subscribe()
        assert late.try_recv() is None
        notifier.publish()
        assert late.try_recv() is not None

    def test_slow_receiver_drops_oldest(self):
        notifier = UpdateNotifier(capacity=3)
        slow = notifier.subscribe()
        for _ in range(5):
            notifier.publish()

        assert slow.pending == 3
        assert slow.missed == 2

    def test_lag_is_per_receiver(self):
        notifier = UpdateNotifier(capacity=2)
        slow = notifier.subscribe()
        fast = notifier.subscribe()
        for _ in range(3):
            notifier.publish()
            fast.try_recv()

        assert fast.missed == 0
        assert slow.missed == 1

    def test_unsubscribe(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()
        notifier.unsubscribe(receiver)
        assert notifier.publish() == 0
        assert receiver.pending == 0

    def test_dropped_receiver_is_released(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()
        assert notifier.receiver_count == 1
        del receiver
        gc.collect()
        assert notifier.receiver_count == 0

    def test_close_drains_then_raises(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()
        notifier.publish()
        notifier.close()

        assert receiver.closed
        assert receiver.try_recv() is not None
        with pytest.raises(NotifierClosed):
            receiver.try_recv()
        assert notifier.publish() == 0

    def test_subscribe_after_close(self):
        notifier = UpdateNotifier()
        notifier.close()
        notifier.close()
        receiver = notifier.subscribe()
        with pytest.raises(NotifierClosed):
            receiver.try_recv()

    @pytest.mark.asyncio
    async def test_recv_waits_for_publish(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()

        waiter = asyncio.create_task(receiver.recv())
        await asyncio.sleep(0)
        assert not waiter.done()

        notifier.publish()
        signal = await asyncio.wait_for(waiter, timeout=1.0)
        assert isinstance(signal, StateUpdated)

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_receiver(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()

        waiter = asyncio.create_task(receiver.recv())
        await asyncio.sleep(0)
        notifier.close()

        with pytest.raises(NotifierClosed):
            await asyncio.wait_for(waiter, timeout=1.0)

    @pytest.mark.asyncio
    async def test_async_iteration_ends_on_close(self):
        notifier = UpdateNotifier()
        receiver = notifier.subscribe()
        notifier.publish()
        notifier.publish()
        notifier.close()

        received = [signal async for signal in receiver]
        assert len(received) == 2
