"""Fuse rule confidences with classifier scores: combined = w*rule + (1-w)*classifier."""

from __future__ import annotations

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.exceptions import ConfigurationError
from pipeline_advisor.models.domain import (
    Candidate,
    ClassifierResult,
    MergedCandidate,
    MergeSignal,
)
from pipeline_advisor.observability.logger import get_logger

logger = get_logger("merger")

DEFAULT_TEMPLATE = "generic"

STRONG_RULE = 0.9
STRONG_MODEL = 0.8
MATERIAL_GAP = 0.2


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def rule_weight(rule: float, model: float) -> tuple[float, str]:
    """Weight given to the rule score for one label, plus the reason for it."""
    if rule >= STRONG_RULE and model == 0:
        return 0.8, "strong rule evidence; no model evidence"
    if rule >= STRONG_RULE and model < rule:
        return 0.7, "strong rule-based evidence"
    if model >= STRONG_MODEL and rule == 0:
        return 0.2, "strong model confidence; no rule evidence"
    if model >= STRONG_MODEL and model > rule:
        return 0.3, "strong model confidence"
    if rule > 0 and model == 0:
        return 0.8, "no model evidence; rules only"
    if rule == 0 and model > 0:
        return 0.2, "no rule evidence; model only"
    if rule - model >= MATERIAL_GAP:
        return 0.6, "both sources; rules materially stronger"
    if model - rule >= MATERIAL_GAP:
        return 0.4, "both sources; model materially stronger"
    return 0.5, "both sources agree"


class SignalMerger:
    def __init__(
        self,
        dominant_threshold: float = 0.97,
        threshold: float = 0.5,
        multi_template: bool = False,
    ) -> None:
        for name, value in (("dominant_threshold", dominant_threshold), ("threshold", threshold)):
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        self._dominant_threshold = dominant_threshold
        self._threshold = threshold
        self._multi_template = multi_template

    @classmethod
    def from_settings(cls, settings: Settings) -> SignalMerger:
        return cls(
            dominant_threshold=settings.rule_dominant_threshold,
            threshold=settings.merge_threshold,
            multi_template=settings.multi_template,
        )

    def merge(
        self, candidates: list[Candidate], classifier_result: ClassifierResult
    ) -> list[MergedCandidate]:
        rule_map: dict[str, float] = {}
        rule_reasons: dict[str, str] = {}
        for c in candidates:
            conf = _clamp(c.confidence)
            if conf > rule_map.get(c.label, -1.0):
                rule_map[c.label] = conf
                rule_reasons[c.label] = c.reason

        top = max(rule_map.values(), default=0.0)
        if top >= self._dominant_threshold:
            merged = [
                MergedCandidate(
                    label=label,
                    rule_score=score,
                    classifier_score=0.0,
                    combined_score=score,
                    reasons=["rule-dominant", rule_reasons[label]],
                )
                for label, score in rule_map.items()
            ]
            return self._sorted(merged)

        model_map: dict[str, float] = {}
        for label, score in zip(classifier_result.labels, classifier_result.scores):
            model_map[label] = max(model_map.get(label, 0.0), _clamp(score))

        labels = list(rule_map)
        labels.extend(label for label in model_map if label not in rule_map)

        merged = []
        for label in labels:
            rule = rule_map.get(label, 0.0)
            model = model_map.get(label, 0.0)
            w, why = rule_weight(rule, model)
            reasons = [why]
            if label in rule_reasons:
                reasons.append(rule_reasons[label])
            merged.append(
                MergedCandidate(
                    label=label,
                    rule_score=rule,
                    classifier_score=model,
                    combined_score=rule * w + model * (1 - w),
                    reasons=reasons,
                )
            )
        return self._sorted(merged)

    def choose_templates(
        self, merged: list[MergedCandidate], threshold: float | None = None
    ) -> list[str]:
        """Single primary label by default; every label at or above the cutoff in multi mode."""
        if not merged:
            return [DEFAULT_TEMPLATE]
        if not self._multi_template:
            return [merged[0].label]
        cutoff = self._threshold if threshold is None else threshold
        accepted = [m.label for m in merged if m.combined_score >= cutoff]
        return accepted or [merged[0].label]

    def signal(
        self, candidates: list[Candidate], classifier_result: ClassifierResult
    ) -> MergeSignal:
        merged = self.merge(candidates, classifier_result)
        chosen = self.choose_templates(merged)
        logger.debug("templates_chosen", chosen=chosen, merged=len(merged))
        return MergeSignal(chosen=chosen, merged=merged, primary=chosen[0])

    @staticmethod
    def _sorted(merged: list[MergedCandidate]) -> list[MergedCandidate]:
        return sorted(merged, key=lambda m: (-m.combined_score, -m.rule_score))
