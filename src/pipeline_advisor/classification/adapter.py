"""Classifier adapter: cache first, live model when configured, heuristic otherwise.

Never raises for an unavailable or failing service. The returned result carries
its provenance in ``source`` and the call outcome in ``raw["status"]``.
"""

from __future__ import annotations

import asyncio

import aiosqlite

from pipeline_advisor.classification.cache import ClassificationCache
from pipeline_advisor.classification.heuristic import HEURISTIC_MODEL, heuristic_classify
from pipeline_advisor.models.domain import CallOutcome, ClassifierResult
from pipeline_advisor.observability.logger import get_logger
from pipeline_advisor.protocols.classifier import ZeroShotClassifier

logger = get_logger("classifier_adapter")

PLACEHOLDER_SUMMARY = "Repository description for zero-shot classification."
MIN_SUMMARY_CHARS = 10


class ClassifierAdapter:
    def __init__(
        self,
        client: ZeroShotClassifier | None = None,
        cache: ClassificationCache | None = None,
        timeout_s: float = 30.0,
        heuristic_fallback: bool = True,
    ) -> None:
        self._client = client
        self._cache = cache
        self._timeout_s = timeout_s
        self._heuristic_fallback = heuristic_fallback

    @property
    def model(self) -> str:
        return self._client.model if self._client is not None else HEURISTIC_MODEL

    async def classify(
        self,
        summary: str,
        candidate_labels: list[str],
        multi_label: bool = True,
    ) -> ClassifierResult:
        outcome = await self.try_classify(summary, candidate_labels, multi_label)
        if outcome.status == "ok" and outcome.value is not None:
            outcome.value.raw.setdefault("status", "ok")
            return outcome.value
        return self._fallback(summary, candidate_labels, outcome)

    async def try_classify(
        self,
        summary: str,
        candidate_labels: list[str],
        multi_label: bool = True,
    ) -> CallOutcome[ClassifierResult]:
        if self._client is None:
            return CallOutcome.unavailable("no-token")

        text = summary if len(summary.strip()) >= MIN_SUMMARY_CHARS else PLACEHOLDER_SUMMARY
        model = self._client.model

        if self._cache is not None:
            try:
                cached = await self._cache.get(text, candidate_labels, model)
            except aiosqlite.Error as e:
                logger.warning("classifier_cache_read_failed", error=str(e))
                cached = None
            if cached is not None:
                logger.debug("classifier_cache_hit", model=model)
                return CallOutcome.ok(cached)

        try:
            result = await asyncio.wait_for(
                self._client.classify(text, candidate_labels, multi_label=multi_label),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("classifier_timeout", model=model, timeout_s=self._timeout_s)
            return CallOutcome.failed(f"timeout after {self._timeout_s}s")
        except Exception as e:
            logger.warning("classifier_failed", model=model, error=str(e))
            return CallOutcome.failed(str(e))

        if self._cache is not None:
            try:
                await self._cache.put(text, candidate_labels, model, result)
            except aiosqlite.Error as e:
                logger.warning("classifier_cache_write_failed", error=str(e))
        return CallOutcome.ok(result)

    def _fallback(
        self,
        summary: str,
        candidate_labels: list[str],
        outcome: CallOutcome[ClassifierResult],
    ) -> ClassifierResult:
        diagnostics = {"status": outcome.status, "error": outcome.reason}
        if self._heuristic_fallback:
            result = heuristic_classify(summary, candidate_labels)
            result.raw.update(diagnostics)
            return result
        return ClassifierResult(model=self.model, raw=diagnostics, source="none")
