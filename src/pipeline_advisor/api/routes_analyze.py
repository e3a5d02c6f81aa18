"""Analysis endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException

from pipeline_advisor.api.dependencies import get_pipeline, get_trace_store
from pipeline_advisor.exceptions import FeaturesError
from pipeline_advisor.models.schemas import AnalyzeResponse, TraceResponse
from pipeline_advisor.pipeline.analysis_pipeline import AnalysisPipeline
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    features: dict = Body(...),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
) -> AnalyzeResponse:
    try:
        result = await pipeline.run(features)
    except FeaturesError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return AnalyzeResponse(
        trace_id=result.trace_id,
        values=result.parameters,
        classifier=result.trail,
    )


@router.get("/traces/{trace_id}", response_model=TraceResponse)
async def get_trace(
    trace_id: str,
    trace_store: SQLiteTraceStore = Depends(get_trace_store),
) -> TraceResponse:
    trace = await trace_store.get_trace(trace_id)
    if trace is None:
        raise HTTPException(status_code=404, detail=f"trace {trace_id} not found")
    return TraceResponse(
        trace_id=trace.trace_id,
        repo=trace.repo,
        timestamp=trace.timestamp.isoformat(),
        latency_ms=trace.latency_ms,
        project_type=trace.project_type,
        chosen=trace.chosen,
        classifier_status=trace.classifier_status,
        override_status=trace.override_status,
        reason_codes=trace.reason_codes,
        spans=trace.spans,
    )
