"""
Realtime Updates and Best-effort Notification

Every stage persists its authoritative state first and only then
notifies. UpdateStream fans update messages out to live subscribers
(served as Server-Sent Events). Notifier wraps both stream pushes and
event emission so their failures are recorded and logged but never
propagate into the stage or the HTTP response.
"""

import asyncio
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Deque, Dict, List, Optional, Set

from contentflow.models import utc_now_iso

logger = logging.getLogger(__name__)


class UpdateStream:
    """
    Per-group (content id) fan-out of update messages.

    Subscribers get a bounded queue; publish() never blocks and drops the
    oldest queued message when a slow subscriber falls behind.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = defaultdict(set)

    def publish(self, group_id: str, message: Dict[str, Any]) -> int:
        """Deliver a message to current subscribers of a group. Returns subscriber count."""
        queues = self._subscribers.get(group_id, set())
        for queue in list(queues):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(message)
        return len(queues)

    def subscriber_count(self, group_id: str) -> int:
        return len(self._subscribers.get(group_id, set()))

    async def subscribe(self, group_id: str) -> AsyncIterator[Dict[str, Any]]:
        """Yield messages for a group until the consumer stops iterating."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[group_id].add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers[group_id].discard(queue)
            if not self._subscribers[group_id]:
                del self._subscribers[group_id]


@dataclass
class NotificationFailure:
    """A best-effort side effect that did not go through."""
    kind: str           # "stream" or "event"
    target: str         # update type or topic
    content_id: Optional[str]
    error: str
    occurred_at: str = field(default_factory=utc_now_iso)


class Notifier:
    """
    Best-effort notify step.

    push() and emit() return True on success and False on failure; they
    never raise. Failures are kept in a bounded sink for inspection.
    """

    def __init__(self, stream: UpdateStream, bus, max_failures: int = 200):
        self.stream = stream
        self.bus = bus
        self.failures: Deque[NotificationFailure] = deque(maxlen=max_failures)

    def _record(self, kind: str, target: str, content_id: Optional[str], error: Exception) -> None:
        failure = NotificationFailure(
            kind=kind,
            target=target,
            content_id=content_id,
            error=f"{type(error).__name__}: {error}",
        )
        self.failures.append(failure)
        logger.warning(
            f"Failed to {'send stream update' if kind == 'stream' else 'emit event'} "
            f"{target} for {content_id} (non-critical): {failure.error}"
        )

    async def push(self, content_id: str, update_type: str, data: Dict[str, Any]) -> bool:
        """Send a realtime update to the item's viewers."""
        try:
            message = {
                "type": update_type,
                "data": {**data, "contentId": content_id, "timestamp": utc_now_iso()},
            }
            self.stream.publish(content_id, message)
            return True
        except Exception as e:
            self._record("stream", update_type, content_id, e)
            return False

    async def emit(self, topic: str, data: Dict[str, Any]) -> bool:
        """Emit the next workflow event."""
        try:
            await self.bus.emit(topic, data)
            return True
        except Exception as e:
            self._record("event", topic, data.get("contentId"), e)
            return False

    def recent_failures(self, limit: int = 20) -> List[NotificationFailure]:
        return list(self.failures)[-limit:]
