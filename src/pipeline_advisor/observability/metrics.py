"""Metric recording helpers for analysis runs."""

from __future__ import annotations

from pipeline_advisor.observability.logger import get_logger

logger = get_logger("metrics")


def log_detection_metrics(
    trace_id: str,
    repo: str,
    candidates: list,
    summary_len: int,
) -> None:
    logger.info(
        "detection_metrics",
        trace_id=trace_id,
        repo=repo,
        top=[(c.label, round(c.confidence, 4)) for c in candidates[:5]],
        num_candidates=len(candidates),
        summary_len=summary_len,
    )


def log_merge_metrics(
    trace_id: str,
    chosen: list[str],
    merged: list,
    classifier_status: str,
) -> None:
    logger.info(
        "merge_metrics",
        trace_id=trace_id,
        chosen=chosen,
        top=[(m.label, round(m.combined_score, 4)) for m in merged[:5]],
        classifier_status=classifier_status,
    )


def log_latency(trace_id: str, stage: str, duration_ms: float) -> None:
    logger.info(
        "latency",
        trace_id=trace_id,
        stage=stage,
        duration_ms=round(duration_ms, 2),
    )
