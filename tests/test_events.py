"""
Tests for the event bus, update stream and best-effort notifier.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from contentflow.workflow.events import EventBus
from contentflow.workflow.notify import Notifier, UpdateStream


# ============================================================================
# EventBus
# ============================================================================

class TestEventBus:

    @pytest.mark.asyncio
    async def test_emit_returns_before_handler_runs(self):
        bus = EventBus(retry_backoff=0)
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow(data):
            started.set()
            await release.wait()

        bus.subscribe("topic", slow)
        assert await bus.emit("topic", {"contentId": "c1"}) == 1
        assert bus.pending == 1

        await started.wait()
        release.set()
        await bus.join()
        assert bus.pending == 0

    @pytest.mark.asyncio
    async def test_no_subscribers(self):
        bus = EventBus()
        assert await bus.emit("nobody.listens", {}) == 0

    @pytest.mark.asyncio
    async def test_every_subscriber_receives_a_copy(self):
        bus = EventBus(retry_backoff=0)
        seen = []

        async def mutate(data):
            data["mutated"] = True
            seen.append(dict(data))

        async def read(data):
            seen.append(dict(data))

        bus.subscribe("topic", mutate)
        bus.subscribe("topic", read)
        await bus.emit("topic", {"contentId": "c1"})
        await bus.join()

        assert {"contentId": "c1"} in seen
        assert {"contentId": "c1", "mutated": True} in seen

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        bus = EventBus(retry_backoff=0)
        handler = AsyncMock(side_effect=[RuntimeError("flaky"), None])

        bus.subscribe("topic", handler, name="Flaky", max_attempts=2)
        await bus.emit("topic", {})
        await bus.join()

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        bus = EventBus(retry_backoff=0)
        handler = AsyncMock(side_effect=RuntimeError("broken"))

        bus.subscribe("topic", handler, name="Broken", max_attempts=3)
        await bus.emit("topic", {})
        await bus.join()

        assert handler.await_count == 3

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self):
        bus = EventBus(retry_backoff=0)
        calls = []

        async def hang(data):
            calls.append(1)
            await asyncio.sleep(5)

        bus.subscribe("topic", hang, max_attempts=2, timeout=0.01)
        await bus.emit("topic", {})
        await bus.join()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_join_waits_for_chained_emits(self):
        bus = EventBus(retry_backoff=0)
        order = []

        async def first(data):
            order.append("first")
            await bus.emit("second", data)

        async def second(data):
            await asyncio.sleep(0)
            order.append("second")

        bus.subscribe("first", first)
        bus.subscribe("second", second)
        await bus.emit("first", {})
        await bus.join()

        assert order == ["first", "second"]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            EventBus().subscribe("topic", AsyncMock(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(self):
        bus = EventBus()

        async def forever(data):
            await asyncio.sleep(60)

        bus.subscribe("topic", forever)
        await bus.emit("topic", {})
        await bus.close()
        assert bus.pending == 0


# ============================================================================
# UpdateStream & Notifier
# ============================================================================

class TestUpdateStream:

    @pytest.mark.asyncio
    async def test_subscriber_receives_group_messages(self):
        stream = UpdateStream()
        updates = stream.subscribe("c1")
        receive = asyncio.ensure_future(updates.__anext__())
        await asyncio.sleep(0)

        assert stream.subscriber_count("c1") == 1
        stream.publish("c2", {"type": "other"})
        stream.publish("c1", {"type": "analysis_completed"})

        assert await receive == {"type": "analysis_completed"}
        await updates.aclose()
        assert stream.subscriber_count("c1") == 0

    def test_publish_without_subscribers(self):
        assert UpdateStream().publish("c1", {"type": "x"}) == 0

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_oldest(self):
        stream = UpdateStream(max_queue_size=2)
        updates = stream.subscribe("c1")
        receive = asyncio.ensure_future(updates.__anext__())
        await asyncio.sleep(0)
        # first message is consumed by the pending receive
        stream.publish("c1", {"n": 0})
        assert await receive == {"n": 0}

        for n in range(1, 5):
            stream.publish("c1", {"n": n})

        assert await updates.__anext__() == {"n": 3}
        assert await updates.__anext__() == {"n": 4}
        await updates.aclose()


class TestNotifier:

    @pytest.mark.asyncio
    async def test_push_wraps_message(self):
        stream = MagicMock()
        notifier = Notifier(stream, EventBus())

        assert await notifier.push("c1", "validation_completed", {"status": "validated"}) is True

        group, message = stream.publish.call_args.args
        assert group == "c1"
        assert message["type"] == "validation_completed"
        assert message["data"]["status"] == "validated"
        assert message["data"]["contentId"] == "c1"
        assert message["data"]["timestamp"]

    @pytest.mark.asyncio
    async def test_push_failure_recorded_not_raised(self):
        stream = MagicMock()
        stream.publish.side_effect = ConnectionError("stream offline")
        notifier = Notifier(stream, EventBus())

        assert await notifier.push("c1", "analysis_completed", {}) is False

        failure = notifier.recent_failures()[0]
        assert failure.kind == "stream"
        assert failure.target == "analysis_completed"
        assert failure.content_id == "c1"
        assert "stream offline" in failure.error

    @pytest.mark.asyncio
    async def test_emit_failure_recorded_not_raised(self):
        bus = MagicMock()
        bus.emit = AsyncMock(side_effect=RuntimeError("bus down"))
        notifier = Notifier(UpdateStream(), bus)

        assert await notifier.emit("content.analyzed", {"contentId": "c1"}) is False
        assert notifier.failures[0].kind == "event"
        assert notifier.failures[0].content_id == "c1"

    @pytest.mark.asyncio
    async def test_failure_sink_is_bounded(self):
        stream = MagicMock()
        stream.publish.side_effect = RuntimeError("down")
        notifier = Notifier(stream, EventBus(), max_failures=3)

        for _ in range(5):
            await notifier.push("c1", "x", {})

        assert len(notifier.failures) == 3
