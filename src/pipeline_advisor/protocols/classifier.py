"""Protocol for zero-shot classification providers."""

from __future__ import annotations

from typing import Protocol

from pipeline_advisor.models.domain import ClassifierResult


class ZeroShotClassifier(Protocol):
    @property
    def model(self) -> str: ...

    async def classify(
        self,
        text: str,
        candidate_labels: list[str],
        multi_label: bool = True,
    ) -> ClassifierResult: ...
