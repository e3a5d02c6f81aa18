"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.pipeline.analysis_pipeline import AnalysisPipeline
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore


def get_pipeline(request: Request) -> AnalysisPipeline:
    return request.app.state.pipeline


def get_trace_store(request: Request) -> SQLiteTraceStore:
    return request.app.state.trace_store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
