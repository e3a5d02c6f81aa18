"""Construct the per-process services an analysis run needs from Settings."""

from __future__ import annotations

from pathlib import Path

from pipeline_advisor.classification.adapter import ClassifierAdapter
from pipeline_advisor.classification.cache import ClassificationCache
from pipeline_advisor.classification.hf_zero_shot import HuggingFaceZeroShotClassifier
from pipeline_advisor.config.settings import Settings
from pipeline_advisor.extraction.extractor import ParameterExtractor
from pipeline_advisor.generation.factory import create_text_generator
from pipeline_advisor.observability.logger import get_logger
from pipeline_advisor.pipeline.analysis_pipeline import AnalysisPipeline
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore

logger = get_logger("factory")


async def create_pipeline(settings: Settings, persist_traces: bool = True) -> AnalysisPipeline:
    paths = [settings.classifier_cache_db_path]
    if persist_traces:
        paths.append(settings.trace_db_path)
    for path in paths:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    client = None
    cache = None
    if settings.classifier_enabled:
        client = HuggingFaceZeroShotClassifier(
            api_token=settings.hf_token,
            model=settings.classifier_model,
            base_url=settings.classifier_base_url,
            timeout_s=settings.classifier_timeout_s,
        )
        cache = ClassificationCache(settings.classifier_cache_db_path)
        await cache.initialize()

    classifier = ClassifierAdapter(
        client=client,
        cache=cache,
        timeout_s=settings.classifier_timeout_s,
        heuristic_fallback=settings.classifier_heuristic_fallback,
    )
    extractor = ParameterExtractor(
        generator=create_text_generator(settings),
        timeout_s=settings.param_timeout_s,
        temperature=settings.param_temperature,
        max_tokens=settings.param_max_new_tokens,
    )

    trace_store = None
    if persist_traces:
        trace_store = SQLiteTraceStore(settings.trace_db_path)
        await trace_store.initialize()

    logger.info(
        "pipeline_ready",
        classifier_enabled=settings.classifier_enabled,
        override_enabled=settings.override_enabled,
        multi_template=settings.multi_template,
    )
    return AnalysisPipeline.from_settings(
        settings, classifier=classifier, extractor=extractor, trace_store=trace_store
    )
