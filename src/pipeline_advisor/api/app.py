"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from pipeline_advisor.api.middleware import RequestContextMiddleware
from pipeline_advisor.api.routes_analyze import router as analyze_router
from pipeline_advisor.api.routes_health import router as health_router
from pipeline_advisor.config.settings import Settings
from pipeline_advisor.observability.logger import get_logger, setup_logging
from pipeline_advisor.pipeline.factory import create_pipeline
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore

logger = get_logger("app")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.json_logs)
        app.state.settings = settings
        app.state.pipeline = await create_pipeline(settings)
        app.state.trace_store = SQLiteTraceStore(settings.trace_db_path)
        logger.info("startup_complete")
        yield
        logger.info("shutdown_complete")

    app = FastAPI(
        title="Pipeline Advisor",
        version="1.0.0",
        description="Picks a CI/CD pipeline type and its parameters from repository evidence",
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(analyze_router, tags=["analyze"])
    return app
