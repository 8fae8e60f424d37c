"""
Workflow Runtime

Builds the store, event bus, update stream and stage context, and
subscribes each background stage to its topic:

    content.created               -> validate_content
    content.validated             -> analyze_content
    content.analyzed              -> recommend
    content.improvement.requested -> generate_improvement
"""

import logging
from typing import Any, Dict, Optional

from contentflow.database import (
    check_db_connection,
    get_db_info,
    get_engine,
    get_session_factory,
    init_db,
    make_session_factory,
)
from contentflow.state import StateStore
from contentflow.utils.config import Settings, get_settings
from contentflow.workflow.context import LLMFactory, StageContext
from contentflow.workflow.events import (
    CONTENT_ANALYZED,
    CONTENT_CREATED,
    CONTENT_VALIDATED,
    IMPROVEMENT_REQUESTED,
    EventBus,
)
from contentflow.workflow.notify import Notifier, UpdateStream
from contentflow.workflow.repository import ContentRepository
from contentflow.workflow.retention import RetentionScheduler
from contentflow.workflow.stages import (
    analyze_content,
    generate_improvement,
    recommend,
    validate_content,
)

logger = logging.getLogger(__name__)


class WorkflowRuntime:
    """Everything a running application needs to drive the workflow."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine=None,
        llm_factory: Optional[LLMFactory] = None,
        retry_backoff: float = 1.0,
    ):
        self.settings = settings or get_settings()
        self.engine = engine or get_engine()
        session_factory = (
            make_session_factory(engine) if engine is not None else get_session_factory()
        )
        self.store = StateStore(session_factory)
        self.repository = ContentRepository(self.store)
        self.bus = EventBus(retry_backoff=retry_backoff)
        self.stream = UpdateStream()
        self.notifier = Notifier(self.stream, self.bus)

        ctx_kwargs = {}
        if llm_factory is not None:
            ctx_kwargs["llm_factory"] = llm_factory
        self.ctx = StageContext(
            repository=self.repository,
            notifier=self.notifier,
            settings=self.settings,
            **ctx_kwargs,
        )

        self.scheduler = RetentionScheduler(self.repository, self.settings)
        self._wire()

    def _wire(self):
        ctx = self.ctx
        llm_policy = {
            "max_attempts": self.settings.HANDLER_MAX_ATTEMPTS,
            "timeout": self.settings.HANDLER_TIMEOUT,
        }

        async def on_created(data):
            await validate_content(ctx, data)

        async def on_validated(data):
            await analyze_content(ctx, data)

        async def on_analyzed(data):
            await recommend(ctx, data)

        async def on_improvement_requested(data):
            await generate_improvement(ctx, data)

        self.bus.subscribe(CONTENT_CREATED, on_created, name="ValidateContent")
        self.bus.subscribe(CONTENT_VALIDATED, on_validated, name="AnalyzeWithAI", **llm_policy)
        self.bus.subscribe(CONTENT_ANALYZED, on_analyzed, name="GenerateRecommendations")
        self.bus.subscribe(
            IMPROVEMENT_REQUESTED,
            on_improvement_requested,
            name="GenerateImprovedContent",
            **llm_policy,
        )
        logger.info("Workflow stages subscribed")

    def init_db(self):
        init_db(self.engine)

    def check_db(self) -> bool:
        return check_db_connection(self.engine)

    def db_info(self) -> Dict[str, Any]:
        return get_db_info(self.engine)

    async def start(self):
        if self.settings.RETENTION_ENABLED:
            await self.scheduler.start()

    async def shutdown(self):
        """Stop the scheduler and let in-flight stages finish."""
        await self.scheduler.stop()
        await self.bus.join()
        await self.ctx.aclose()
        logger.info("Workflow runtime stopped")
