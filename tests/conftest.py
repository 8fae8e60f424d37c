"""
Pytest Configuration and Shared Fixtures

Provides an in-memory state store, a workflow runtime with a mocked
Claude client, and an HTTP client bound to the app.
"""

import json
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from contentflow.database import init_db, make_session_factory
from contentflow.state import StateStore
from contentflow.utils.config import Settings
from contentflow.workflow.context import StageContext
from contentflow.workflow.events import EventBus
from contentflow.workflow.notify import Notifier, UpdateStream
from contentflow.workflow.repository import ContentRepository
from contentflow.workflow.runtime import WorkflowRuntime


# ============================================================================
# Sample Content
# ============================================================================

def make_analysis_json(**overrides) -> str:
    """Analysis response as the model would return it."""
    data: Dict[str, Any] = {
        "sentiment": "positive",
        "topics": ["content", "workflow", "editing"],
        "readabilityScore": 72,
        "wordCount": 30,
        "qualityScore": 85,
        "summary": "An overview of a content workflow.",
        "strengths": ["clear structure"],
        "weaknesses": [],
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def analysis_json():
    """Factory for analysis responses."""
    return make_analysis_json


@pytest.fixture
def submission() -> Dict[str, Any]:
    return {
        "title": "T" * 10,
        "body": "x" * 150,
        "author": "A",
        "language": "en",
    }


# ============================================================================
# Database & State
# ============================================================================

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> StateStore:
    return StateStore(make_session_factory(engine))


# ============================================================================
# Workflow Runtime
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ANTHROPIC_API_KEY="test-key",
        RETENTION_ENABLED=False,
        ANALYSIS_TIMEOUT=5,
        IMPROVEMENT_TIMEOUT=5,
        HANDLER_TIMEOUT=10,
    )


@pytest.fixture
def mock_llm():
    """Claude client stand-in; set mock_llm.complete.return_value per test."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=make_analysis_json())
    client.close = AsyncMock()
    return client


@pytest.fixture
def runtime(settings, engine, mock_llm) -> WorkflowRuntime:
    return WorkflowRuntime(
        settings,
        engine=engine,
        llm_factory=lambda _settings: mock_llm,
        retry_backoff=0,
    )


@pytest.fixture
def stage_ctx(settings, store, mock_llm):
    """Stage context with no subscribers, so each stage can be run in isolation."""
    bus = EventBus(retry_backoff=0)
    return StageContext(
        repository=ContentRepository(store),
        notifier=Notifier(UpdateStream(), bus),
        settings=settings,
        llm_factory=lambda _settings: mock_llm,
    )


@pytest.fixture
def ctx(runtime):
    return runtime.ctx


@pytest.fixture
def repository(runtime):
    return runtime.repository


# ============================================================================
# HTTP
# ============================================================================

@pytest_asyncio.fixture
async def client(runtime):
    """HTTP client bound to an app wired to the test runtime."""
    from api.main import create_app

    app = create_app(runtime)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    await runtime.bus.join()
