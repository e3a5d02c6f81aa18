"""Analysis run orchestrator: detect -> classify -> merge -> extract.

Only the classifier and override calls suspend on I/O; both are bounded by
timeouts inside their adapters and degrade instead of failing the run. A
malformed features document is the one error surfaced to the caller.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import aiosqlite
import structlog

from pipeline_advisor.classification.adapter import ClassifierAdapter
from pipeline_advisor.config.settings import Settings
from pipeline_advisor.detection.rules import RuleEngine
from pipeline_advisor.extraction.extractor import ParameterExtractor
from pipeline_advisor.features.normalizer import normalize_features, parse_features
from pipeline_advisor.merging.merger import SignalMerger
from pipeline_advisor.models.domain import Candidate, ClassifierResult, FeaturesDocument
from pipeline_advisor.models.schemas import ClassifierTrail, ParameterDocument
from pipeline_advisor.observability.logger import get_logger
from pipeline_advisor.observability.metrics import (
    log_detection_metrics,
    log_latency,
    log_merge_metrics,
)
from pipeline_advisor.observability.tracing import TraceContext
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore

logger = get_logger("analysis_pipeline")

BASE_LABEL_SPACE = ("node", "python", "java", "docker", "terraform", "monorepo", "generic")


def candidate_label_space(candidates: list[Candidate]) -> list[str]:
    """Rule labels in rank order, then the fixed base labels not already present."""
    labels = [c.label for c in candidates]
    labels.extend(label for label in BASE_LABEL_SPACE if label not in labels)
    return labels


@dataclass
class AnalysisResult:
    trace_id: str
    parameters: ParameterDocument
    trail: ClassifierTrail

    def to_values(self) -> dict:
        values = self.parameters.model_dump()
        values["_classifier"] = self.trail.model_dump()
        return values


class AnalysisPipeline:
    def __init__(
        self,
        rule_engine: RuleEngine,
        classifier: ClassifierAdapter,
        merger: SignalMerger,
        extractor: ParameterExtractor,
        trace_store: SQLiteTraceStore | None = None,
    ) -> None:
        self._rules = rule_engine
        self._classifier = classifier
        self._merger = merger
        self._extractor = extractor
        self._trace_store = trace_store

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        classifier: ClassifierAdapter,
        extractor: ParameterExtractor,
        trace_store: SQLiteTraceStore | None = None,
    ) -> AnalysisPipeline:
        return cls(
            rule_engine=RuleEngine(settings),
            classifier=classifier,
            merger=SignalMerger.from_settings(settings),
            extractor=extractor,
            trace_store=trace_store,
        )

    async def run(self, features: FeaturesDocument | dict | str | bytes) -> AnalysisResult:
        if isinstance(features, (str, bytes)):
            doc = parse_features(features)
        elif isinstance(features, dict):
            doc = normalize_features(features)
        else:
            doc = features

        trace = TraceContext()
        structlog.contextvars.bind_contextvars(trace_id=trace.trace_id, repo=doc.repo)
        try:
            return await self._run_stages(trace, doc)
        finally:
            structlog.contextvars.unbind_contextvars("trace_id", "repo")

    async def _run_stages(self, trace: TraceContext, doc: FeaturesDocument) -> AnalysisResult:
        with trace.span("detection") as span:
            detection = self._rules.detect(doc)
            span.metadata["candidates"] = len(detection.candidates)
        log_detection_metrics(
            trace.trace_id, doc.repo, detection.candidates, len(detection.summary)
        )

        with trace.span("classification") as span:
            labels = candidate_label_space(detection.candidates)
            classified = await self._classifier.classify(detection.summary, labels)
            span.metadata["source"] = classified.source
        log_latency(trace.trace_id, "classification", trace.last.duration_ms)

        with trace.span("merge"):
            signal = self._merger.signal(detection.candidates, classified)
        classifier_status = classified.raw.get("status", "ok")
        log_merge_metrics(trace.trace_id, signal.chosen, signal.merged, classifier_status)

        with trace.span("extraction") as span:
            extraction = await self._extractor.extract_detailed(doc, signal)
            span.metadata["override_status"] = extraction.override_status
        log_latency(trace.trace_id, "extraction", trace.last.duration_ms)

        reasons = self._degradation_reasons(
            classified, extraction.override_status, extraction.override_reason
        )
        trail = ClassifierTrail(
            rules=[asdict(c) for c in detection.candidates],
            classifier={
                "model": classified.model,
                "labels": classified.labels,
                "scores": classified.scores,
                "source": classified.source,
                "error": classified.raw.get("error", ""),
            },
            merged=[asdict(m) for m in signal.merged],
            chosen=signal.chosen,
            classifier_status=classifier_status,
            override_status=extraction.override_status,
            degraded=bool(reasons),
            reasons=reasons,
        )

        if self._trace_store is not None:
            await self._save_trace(trace, doc.repo, extraction.document, trail)

        logger.info(
            "analysis_complete",
            project_type=extraction.document.project_type,
            chosen=signal.chosen,
            degraded=trail.degraded,
            latency_ms=round(trace.elapsed_ms, 2),
            stages=trace.stage_durations(),
        )
        return AnalysisResult(trace_id=trace.trace_id, parameters=extraction.document, trail=trail)

    @staticmethod
    def _degradation_reasons(
        classified: ClassifierResult, override_status: str, override_reason: str
    ) -> list[str]:
        reasons = []
        status = classified.raw.get("status", "ok")
        if status != "ok":
            reasons.append(f"classifier_{status}: {classified.raw.get('error', '')}".rstrip(": "))
        if override_status == "failed":
            reasons.append(f"override_failed: {override_reason}")
        return reasons

    async def _save_trace(
        self,
        trace: TraceContext,
        repo: str,
        parameters: ParameterDocument,
        trail: ClassifierTrail,
    ) -> None:
        record = trace.to_trace(
            repo=repo,
            project_type=parameters.project_type,
            chosen=trail.chosen,
            classifier_status=trail.classifier_status,
            override_status=trail.override_status,
            reason_codes=trail.reasons,
        )
        try:
            await self._trace_store.save_trace(record)
        except aiosqlite.Error as e:
            logger.warning("trace_save_failed", error=str(e))
