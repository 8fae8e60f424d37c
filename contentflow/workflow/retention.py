"""
Retention Job

Daily sweep over stored content:
1. Delete terminal items older than the retention window
2. Aggregate processing metrics into the system collection

Items still moving through the workflow are never deleted, however old.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from contentflow.models import parse_iso, utc_now_iso
from contentflow.state import CONTENT, SYSTEM
from contentflow.utils.config import Settings, get_settings
from contentflow.workflow.repository import ContentRepository
from contentflow.workflow.status import WorkflowStatus, is_terminal

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 90
MAX_RECORDED_IDS = 100

METRICS_KEY = "daily_metrics"
LAST_RUN_KEY = "daily_processing_last_run"


def run_retention(
    repository: ContentRepository,
    now: Optional[datetime] = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> Dict[str, Any]:
    """
    Run one retention sweep.

    Args:
        repository: Content repository
        now: Reference time (defaults to current UTC time)
        retention_days: Age after which terminal items are deleted

    Returns:
        The metrics written to system/daily_metrics
    """
    now = now or datetime.now(timezone.utc)
    threshold = now - timedelta(days=retention_days)
    logger.info(f"Starting daily processing job (threshold: {threshold.isoformat()})")

    records = repository.store.get_group(CONTENT)

    deleted_ids: List[str] = []
    processing_times: List[float] = []

    for record in records:
        content_id = record.get("contentId")
        try:
            created_at = parse_iso(record["createdAt"])
            updated_at = parse_iso(record["updatedAt"])
            status = record.get("workflowStatus", WorkflowStatus.PENDING.value)

            if status == WorkflowStatus.COMPLETED.value:
                processing_times.append((updated_at - created_at).total_seconds() * 1000)

            if created_at < threshold and is_terminal(status):
                repository.purge(content_id)
                deleted_ids.append(content_id)
                logger.info(
                    f"Deleted stale content {content_id} "
                    f"(age: {(now - created_at).days} days, status: {status})"
                )
        except Exception as e:
            logger.warning(f"Error processing content item {content_id}: {e}")

    average_processing_time = (
        sum(processing_times) / len(processing_times) if processing_times else 0
    )

    metrics = {
        "processedAt": utc_now_iso(),
        "staleContentCount": len(deleted_ids),
        "totalContentProcessed": len(records),
        "deletedContentCount": len(deleted_ids),
        "averageProcessingTime": round(average_processing_time),
        "activeContentCount": len(records) - len(deleted_ids),
    }

    repository.store.set(SYSTEM, METRICS_KEY, metrics)
    repository.store.set(SYSTEM, LAST_RUN_KEY, {
        "timestamp": utc_now_iso(),
        "deletedContentIds": deleted_ids[:MAX_RECORDED_IDS],
    })

    logger.info(f"Daily processing completed: {metrics}")
    return metrics


def seconds_until_next_run(now: datetime, hour_utc: int) -> float:
    """Seconds from now until the next hour_utc:00 UTC."""
    now = now.astimezone(timezone.utc)
    next_run = now.replace(hour=hour_utc, minute=0, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


class RetentionScheduler:
    """
    Runs run_retention() once a day at a fixed UTC hour.

    Usage:
        scheduler = RetentionScheduler(repository)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, repository: ContentRepository, settings: Optional[Settings] = None):
        self.repository = repository
        self.settings = settings or get_settings()
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.last_metrics: Optional[Dict[str, Any]] = None

    @property
    def running(self) -> bool:
        return self._running

    async def run_once(self) -> Dict[str, Any]:
        """Run a sweep now, off the event loop thread."""
        self.last_metrics = await asyncio.to_thread(
            run_retention,
            self.repository,
            None,
            self.settings.RETENTION_DAYS,
        )
        return self.last_metrics

    async def start(self):
        """Start the daily loop."""
        if self._running:
            logger.warning("Retention scheduler already running")
            return

        self._running = True
        hour = self.settings.RETENTION_HOUR_UTC

        async def retention_loop():
            while self._running:
                delay = seconds_until_next_run(datetime.now(timezone.utc), hour)
                logger.info(f"Next retention run in {delay:.0f}s")
                await asyncio.sleep(delay)
                try:
                    await self.run_once()
                except Exception as e:
                    logger.error(f"Daily processing job failed: {e}")

        self._task = asyncio.create_task(retention_loop())
        logger.info(f"Retention scheduler started (daily at {hour:02d}:00 UTC)")

    async def stop(self):
        """Stop the daily loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Retention scheduler stopped")
