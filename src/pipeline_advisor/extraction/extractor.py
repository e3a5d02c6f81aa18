"""Parameter extraction: deterministic base plus an optional, bounded model override."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pipeline_advisor.detection.summary import build_summary
from pipeline_advisor.exceptions import GenerationError
from pipeline_advisor.extraction.deterministic import deterministic_parameters
from pipeline_advisor.extraction.override import apply_overrides, extract_json_object
from pipeline_advisor.features.normalizer import normalize_features
from pipeline_advisor.generation.prompt_templates import (
    OVERRIDE_PROMPT,
    OVERRIDE_SYSTEM,
    format_defaults,
    format_signal_summary,
)
from pipeline_advisor.models.domain import CallOutcome, FeaturesDocument, MergeSignal
from pipeline_advisor.models.schemas import ParameterDocument
from pipeline_advisor.observability.logger import get_logger
from pipeline_advisor.protocols.llm import TextGenerator

logger = get_logger("extractor")


@dataclass
class ExtractionResult:
    document: ParameterDocument
    override_status: str  # "ok", "unavailable", "failed"
    override_reason: str = ""


class ParameterExtractor:
    def __init__(
        self,
        generator: TextGenerator | None = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
        max_tokens: int = 600,
    ) -> None:
        self._generator = generator
        self._timeout_s = timeout_s
        self._temperature = temperature
        self._max_tokens = max_tokens

    @staticmethod
    def deterministic(
        features: FeaturesDocument | dict, chosen: list[str] | None = None
    ) -> ParameterDocument:
        doc = features if isinstance(features, FeaturesDocument) else normalize_features(features)
        return deterministic_parameters(doc, chosen or [])

    async def extract(
        self, features: FeaturesDocument | dict, signal: MergeSignal | None = None
    ) -> ParameterDocument:
        result = await self.extract_detailed(features, signal)
        return result.document

    async def extract_detailed(
        self, features: FeaturesDocument | dict, signal: MergeSignal | None = None
    ) -> ExtractionResult:
        doc = features if isinstance(features, FeaturesDocument) else normalize_features(features)
        base = deterministic_parameters(doc, signal.chosen if signal else [])

        outcome = await self.try_override(doc, signal, base)
        if outcome.status == "ok" and outcome.value is not None:
            return ExtractionResult(document=outcome.value, override_status="ok")
        return ExtractionResult(
            document=base, override_status=outcome.status, override_reason=outcome.reason
        )

    async def try_override(
        self,
        doc: FeaturesDocument,
        signal: MergeSignal | None,
        base: ParameterDocument,
    ) -> CallOutcome[ParameterDocument]:
        if self._generator is None:
            return CallOutcome.unavailable("no override model configured")

        prompt = OVERRIDE_PROMPT.format(
            features_summary=build_summary(doc),
            signal_summary=format_signal_summary(signal),
            defaults=format_defaults(base.model_dump()),
            allowed_keys=", ".join(ParameterDocument.model_fields),
        )
        try:
            text = await asyncio.wait_for(
                self._generator.generate(
                    prompt,
                    system=OVERRIDE_SYSTEM,
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("override_timeout", timeout_s=self._timeout_s)
            return CallOutcome.failed(f"timeout after {self._timeout_s}s")
        except Exception as e:
            logger.warning("override_failed", error=str(e))
            return CallOutcome.failed(str(e))

        overrides = extract_json_object(text)
        if overrides is None:
            logger.warning("override_no_json", response_len=len(text))
            return CallOutcome.failed("no JSON object in model output")

        try:
            merged = apply_overrides(base, overrides)
        except GenerationError as e:
            logger.warning("override_rejected", error=str(e))
            return CallOutcome.failed(str(e))

        logger.info(
            "override_applied",
            keys=sorted(k for k in overrides if k in ParameterDocument.model_fields),
        )
        return CallOutcome.ok(merged)
