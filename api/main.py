"""
Content Flow API

FastAPI application for the content workflow:
1. Accepts content submissions and serves their status
2. Drives validation, AI analysis and recommendations in the background
3. Streams live updates to viewers
4. Runs the daily retention sweep
"""

import logging
import sys
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contentflow import __version__
from contentflow.utils.config import get_settings
from contentflow.workflow.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    WorkflowError,
)
from contentflow.workflow.runtime import WorkflowRuntime

from api import auth, content
from api.middleware import ErrorClassificationMiddleware

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def error_status(error: WorkflowError) -> int:
    """HTTP status for a workflow error."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, InvalidInputError):
        return 400
    return 500


def create_app(runtime: Optional[WorkflowRuntime] = None) -> FastAPI:
    """
    Build the application.

    Args:
        runtime: Pre-built workflow runtime. When omitted one is created
            (and its database initialized) at startup.
    """
    settings = get_settings()

    app = FastAPI(
        title="Content Flow",
        description="Event-driven content analysis workflow powered by Claude",
        version=__version__,
    )
    app.state.runtime = runtime

    app.add_middleware(
        ErrorClassificationMiddleware,
        secure_cookies=settings.ENVIRONMENT == "production",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(request: Request, exc: WorkflowError):
        return JSONResponse(status_code=error_status(exc), content=exc.to_dict())

    # =========================================================================
    # STARTUP / SHUTDOWN
    # =========================================================================

    @app.on_event("startup")
    async def startup_event():
        """Initialize database and start background jobs."""
        if app.state.runtime is None:
            app.state.runtime = WorkflowRuntime(settings)

        logger.info("Initializing database...")
        try:
            app.state.runtime.init_db()
            if app.state.runtime.check_db():
                logger.info("Database connection verified")
            else:
                logger.warning("Database connection check failed - continuing anyway")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")

        await app.state.runtime.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.runtime is not None:
            await app.state.runtime.shutdown()

    # =========================================================================
    # HEALTH
    # =========================================================================

    async def health():
        """Health check including database status."""
        db_info = {"connected": False, "database_type": None, "tables": []}
        if app.state.runtime is not None:
            db_info = app.state.runtime.db_info()

        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
            "database": "connected" if db_info["connected"] else "disconnected",
            "databaseType": db_info["database_type"],
            "tables": db_info["tables"],
        }

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/health", health, methods=["GET"])

    app.include_router(content.router)
    app.include_router(auth.router)

    return app


app = create_app()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
