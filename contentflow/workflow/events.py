"""
In-process Event Bus

Stages are chained by named topics. emit() schedules every subscriber of
a topic as a background task and returns immediately; the emitter never
waits for downstream stages.

Each subscription carries its own delivery policy (attempts, per-attempt
timeout). A handler that raises or times out is retried until its
attempts run out, then the failure is logged.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]

# Topics
CONTENT_CREATED = "content.created"
CONTENT_VALIDATED = "content.validated"
CONTENT_REJECTED = "content.rejected"
CONTENT_ANALYZED = "content.analyzed"
CONTENT_COMPLETED = "content.completed"
IMPROVEMENT_REQUESTED = "content.improvement.requested"
IMPROVEMENT_COMPLETED = "content.improvement.completed"
COMMENT_ADDED = "comment.added"
VOTE_CAST = "vote.cast"

ALL_TOPICS = (
    CONTENT_CREATED,
    CONTENT_VALIDATED,
    CONTENT_REJECTED,
    CONTENT_ANALYZED,
    CONTENT_COMPLETED,
    IMPROVEMENT_REQUESTED,
    IMPROVEMENT_COMPLETED,
    COMMENT_ADDED,
    VOTE_CAST,
)


@dataclass
class Subscription:
    """A handler bound to a topic with its delivery policy."""
    topic: str
    name: str
    handler: Handler
    max_attempts: int = 1
    timeout: Optional[float] = None


class EventBus:
    """
    Fire-and-forget topic dispatch on the running event loop.

    Usage:
        bus = EventBus()
        bus.subscribe("content.created", validate, name="ValidateContent")
        await bus.emit("content.created", {"contentId": "..."})
        await bus.join()  # wait for the whole chain to settle
    """

    def __init__(self, retry_backoff: float = 1.0):
        self.retry_backoff = retry_backoff
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)
        self._tasks: Set[asyncio.Task] = set()

    def subscribe(
        self,
        topic: str,
        handler: Handler,
        *,
        name: Optional[str] = None,
        max_attempts: int = 1,
        timeout: Optional[float] = None,
    ) -> Subscription:
        """Register a handler for a topic."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        subscription = Subscription(
            topic=topic,
            name=name or getattr(handler, "__name__", repr(handler)),
            handler=handler,
            max_attempts=max_attempts,
            timeout=timeout,
        )
        self._subscriptions[topic].append(subscription)
        logger.debug(f"Subscribed {subscription.name} to {topic}")
        return subscription

    def subscribers(self, topic: str) -> List[Subscription]:
        return list(self._subscriptions.get(topic, []))

    async def emit(self, topic: str, data: Dict[str, Any]) -> int:
        """
        Schedule delivery of an event to every subscriber.

        Returns:
            Number of deliveries scheduled
        """
        subscriptions = self._subscriptions.get(topic, [])
        if not subscriptions:
            logger.debug(f"No subscribers for {topic}")
            return 0

        for subscription in subscriptions:
            task = asyncio.create_task(self._deliver(subscription, dict(data)))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.debug(f"Emitted {topic} to {len(subscriptions)} subscriber(s)")
        return len(subscriptions)

    async def _deliver(self, subscription: Subscription, data: Dict[str, Any]) -> None:
        for attempt in range(1, subscription.max_attempts + 1):
            try:
                if subscription.timeout:
                    await asyncio.wait_for(subscription.handler(data), timeout=subscription.timeout)
                else:
                    await subscription.handler(data)
                return
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if isinstance(e, asyncio.TimeoutError):
                    reason = f"timed out after {subscription.timeout}s"
                else:
                    reason = f"{type(e).__name__}: {e}"

                if attempt >= subscription.max_attempts:
                    logger.error(
                        f"{subscription.name} failed on {subscription.topic} "
                        f"after {attempt} attempt(s): {reason}"
                    )
                    return

                wait_time = self.retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    f"{subscription.name} failed on {subscription.topic} "
                    f"(attempt {attempt}/{subscription.max_attempts}), "
                    f"retrying in {wait_time}s: {reason}"
                )
                await asyncio.sleep(wait_time)

    @property
    def pending(self) -> int:
        """Deliveries still in flight."""
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until no deliveries are in flight, including ones emitted meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight deliveries."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
