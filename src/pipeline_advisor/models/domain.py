"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Literal, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FeaturesDocument:
    """Canonical, read-only evidence about one repository.

    File names, framework names and package managers are lowercased at
    construction time by the normalizer; nothing downstream re-normalizes.
    """

    repo: str
    detected_files: tuple[str, ...] = ()
    file_type_keys: tuple[str, ...] = ()
    languages: dict[str, float] = field(default_factory=dict)
    dominant_language: str = ""
    frameworks: tuple[str, ...] = ()
    runtimes: tuple[str, ...] = ()
    package_managers: tuple[str, ...] = ()
    build_systems: tuple[str, ...] = ()
    node_scripts: dict[str, str] = field(default_factory=dict)
    node_version: str = ""
    python_has_pytest: bool = False
    test_frameworks: tuple[str, ...] = ()
    lint_tools: tuple[str, ...] = ()
    has_dockerfile: bool = False
    has_docker_compose: bool = False
    registry_reference: str = ""
    deployment_configs: tuple[str, ...] = ()
    workflow_count: int = 0
    existing_ci_tools: tuple[str, ...] = ()
    description: str = ""
    default_branch: str = "main"
    topics: tuple[str, ...] = ()
    total_files: int = 0
    monorepo: bool = False
    recommended_templates: tuple[str, ...] = ()

    @property
    def evidence(self) -> frozenset[str]:
        """Detected files, file-type keys and package managers as one set."""
        return frozenset(self.detected_files) | frozenset(self.file_type_keys) | frozenset(
            self.package_managers
        )


@dataclass(frozen=True)
class Candidate:
    label: str
    confidence: float
    reason: str


@dataclass(frozen=True)
class DetectionResult:
    candidates: list[Candidate]
    summary: str

    @property
    def top(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None


@dataclass
class ClassifierResult:
    model: str
    labels: list[str] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    raw: dict = field(default_factory=dict)
    source: str = "none"  # "model", "cache", "heuristic", "none"

    def __post_init__(self) -> None:
        if len(self.labels) != len(self.scores):
            raise ValueError(
                f"labels/scores length mismatch: {len(self.labels)} != {len(self.scores)}"
            )

    @property
    def is_empty(self) -> bool:
        return not self.labels

    def as_map(self) -> dict[str, float]:
        return dict(zip(self.labels, self.scores))


@dataclass(frozen=True)
class CallOutcome(Generic[T]):
    """Tagged result of an optional external call."""

    status: Literal["ok", "unavailable", "failed"]
    value: T | None = None
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> CallOutcome[T]:
        return cls(status="ok", value=value)

    @classmethod
    def unavailable(cls, reason: str) -> CallOutcome[T]:
        return cls(status="unavailable", reason=reason)

    @classmethod
    def failed(cls, reason: str) -> CallOutcome[T]:
        return cls(status="failed", reason=reason)


@dataclass
class MergedCandidate:
    label: str
    rule_score: float
    classifier_score: float
    combined_score: float
    reasons: list[str] = field(default_factory=list)


@dataclass
class MergeSignal:
    chosen: list[str]
    merged: list[MergedCandidate]
    primary: str


@dataclass
class AnalysisTrace:
    trace_id: str
    repo: str
    timestamp: datetime
    latency_ms: float
    project_type: str
    chosen: list[str]
    classifier_status: str
    override_status: str
    reason_codes: list[str]
    spans: list[dict]
