"""Keyword heuristic that stands in for the zero-shot model when it is unavailable."""

from __future__ import annotations

import re

from pipeline_advisor.models.domain import ClassifierResult

HEURISTIC_MODEL = "keyword-heuristic"

LITERAL_SCORE = 0.7
ALIAS_SCORE = 0.3
MAX_ALIAS_BONUS = 0.9

LABEL_ALIASES: dict[str, tuple[str, ...]] = {
    "node": ("npm", "express", "react", "package.json", "yarn", "typescript", "javascript"),
    "python": ("pip", "flask", "django", "fastapi", "requirements.txt", "pytest"),
    "java": ("pom", "gradle", "maven", "spring"),
    "go": ("go.mod", "golang"),
    "docker": ("dockerfile", "container", "docker-compose"),
    "terraform": ("main.tf", "hcl"),
    "monorepo": ("packages/", "services/", "workspaces"),
}


def _contains(text: str, term: str) -> bool:
    if re.fullmatch(r"[a-z0-9-]+", term):
        return re.search(rf"(?<![\w.-]){re.escape(term)}(?![\w-])", text) is not None
    return term in text


def heuristic_classify(summary: str, candidate_labels: list[str]) -> ClassifierResult:
    # "Dockerfile: no" is negative evidence, not a docker mention
    text = summary.lower().replace("dockerfile: no", "")

    scored: list[tuple[str, float]] = []
    for label in candidate_labels:
        score = LITERAL_SCORE if _contains(text, label.lower()) else 0.0
        hits = sum(1 for alias in LABEL_ALIASES.get(label, ()) if _contains(text, alias))
        score += min(MAX_ALIAS_BONUS, hits * ALIAS_SCORE)
        score = min(1.0, score)
        if score > 0:
            scored.append((label, round(score, 4)))

    scored.sort(key=lambda kv: -kv[1])
    return ClassifierResult(
        model=HEURISTIC_MODEL,
        labels=[label for label, _ in scored],
        scores=[score for _, score in scored],
        raw={"heuristic": True},
        source="heuristic",
    )
