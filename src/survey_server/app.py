"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that builds the session registry, submission sink
    and summary renderer once
  - CORS middleware
  - Global exception handlers (engine errors → 4xx/5xx)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``survey-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from survey_db.engine import dispose_engine, get_engine
from survey_db.sink import SqlSubmissionSink
from survey_engine.errors import EmptySubmission, LoadError, SubmitError
from survey_engine.interfaces import DefinitionTransport, SubmissionSink
from survey_engine.submission import HttpSubmissionSink
from survey_engine.summary import SummaryRenderer

from survey_server.config import ServerSettings, load_settings
from survey_server.errors import (
    empty_submission_handler,
    generic_error_handler,
    key_error_handler,
    load_error_handler,
    submit_error_handler,
    value_error_handler,
)
from survey_server.registry import SessionRegistry
from survey_server.routes import register_routes

logger = logging.getLogger(__name__)


def build_sink(settings: ServerSettings) -> SubmissionSink:
    """HTTP sink when ``SURVEY_SUBMIT_URL`` is set, PostgreSQL otherwise."""
    if settings.submit_url:
        return HttpSubmissionSink(settings.submit_url)
    return SqlSubmissionSink()


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Build the submission sink (unless one was injected)
      2. Build the ``SessionRegistry`` and ``SummaryRenderer``
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Dispose the database engine's connection pool
    """
    settings: ServerSettings = app.state.settings

    sink = app.state.sink or build_sink(settings)
    app.state.sink = sink
    app.state.registry = SessionRegistry(
        settings, transport=app.state.transport, sink=sink,
    )
    app.state.renderer = SummaryRenderer()
    logger.info(
        "Survey server ready (sink=%s, resume_dir=%s, default source=%s)",
        type(sink).__name__, settings.resume_dir, settings.survey_source,
    )

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    *,
    transport: DefinitionTransport | None = None,
    sink: SubmissionSink | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    Args:
        transport: optional definition transport shared by all sessions.
        sink: optional submission sink (default: from settings).
    """
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey API Server",
        description="REST API for JSON-driven multi-step surveys",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan handler
    app.state.settings = settings
    app.state.transport = transport
    app.state.sink = sink

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(LoadError, load_error_handler)
    app.add_exception_handler(EmptySubmission, empty_submission_handler)
    app.add_exception_handler(SubmitError, submit_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — checks DB connectivity when the SQL sink is in use."""
        status = {"status": "ok", "sessions": len(app.state.registry)}
        if isinstance(app.state.sink, SqlSubmissionSink):
            try:
                async with get_engine().connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except Exception as exc:
                logger.error("Health check failed: %s", exc)
                return {"status": "error", "detail": str(exc)}
        return status

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn survey_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``survey-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
