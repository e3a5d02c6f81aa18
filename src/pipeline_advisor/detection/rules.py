"""Deterministic rule engine: weighted label candidates from normalized evidence.

Every rule is independent and may emit any number of candidates. The only
cross-rule policy is the Java/Node co-occurrence discount: JS tooling in
templated monorepos often ships Maven/Gradle wrappers, so a Java build
descriptor next to a Node indicator emits a lower confidence.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.detection.summary import build_summary
from pipeline_advisor.features.normalizer import normalize_features
from pipeline_advisor.models.domain import Candidate, DetectionResult, FeaturesDocument
from pipeline_advisor.observability.logger import get_logger

logger = get_logger("rules")

# Confidence tiers
MANIFEST = 0.98
MANIFEST_SECONDARY = 0.95
JAVA_BUILD = 0.97
JAVA_BUILD_WITH_NODE = 0.85
LOCKFILE = 0.9
CONTAINER = 0.9
IAC = 0.9
FRAMEWORK = 0.9
FRONTEND_FRAMEWORK = 0.85
CI_CONFIG = 0.8
RECOMMENDED = 0.75
POLYGLOT = 0.75
MONOREPO = 0.7
DOMINANT_LANGUAGE = 0.6
GENERIC = 0.3

NODE_LOCKFILES = frozenset({"yarn.lock", "pnpm-lock.yaml", "package-lock.json"})
PYTHON_MANIFESTS = frozenset({"pyproject.toml", "pipfile", "setup.py", "setup.cfg"})
JAVA_DESCRIPTORS = frozenset({"pom.xml", "build.gradle", "build.gradle.kts", "gradlew", "mvnw"})
TERRAFORM_FILES = frozenset({"main.tf", "terraform.tf"})

FRAMEWORK_LABELS: dict[str, tuple[str, float]] = {
    "flask": ("python", FRAMEWORK),
    "django": ("python", FRAMEWORK),
    "fastapi": ("python", FRAMEWORK),
    "pyramid": ("python", FRAMEWORK),
    "express": ("node", FRAMEWORK),
    "nestjs": ("node", FRAMEWORK),
    "next.js": ("node", FRAMEWORK),
    "spring": ("java", FRAMEWORK),
    "springboot": ("java", FRAMEWORK),
    "spring boot": ("java", FRAMEWORK),
    "quarkus": ("java", FRAMEWORK),
    "micronaut": ("java", FRAMEWORK),
    "react": ("node", FRONTEND_FRAMEWORK),
    "vue": ("node", FRONTEND_FRAMEWORK),
    "angular": ("node", FRONTEND_FRAMEWORK),
}

DOMINANT_LABELS: dict[str, str] = {
    "python": "python",
    "javascript": "node",
    "typescript": "node",
    "html": "node",
    "java": "java",
    "kotlin": "java",
    "go": "go",
    "hcl": "terraform",
    "dockerfile": "docker",
}

RECOMMENDED_LABELS: dict[str, tuple[str, float]] = {
    "node-ci": ("node", RECOMMENDED),
    "python-ci": ("python", RECOMMENDED),
    "java-ci": ("java", RECOMMENDED),
    "docker-build": ("docker", 0.8),
}


@dataclass(frozen=True)
class RuleContext:
    doc: FeaturesDocument
    files: frozenset[str]
    polyglot_threshold_pct: float
    monorepo_file_count: int

    def has_any(self, names: Iterable[str]) -> bool:
        return not self.files.isdisjoint(names)

    @property
    def has_node_indicator(self) -> bool:
        if "package.json" in self.files or self.has_any(NODE_LOCKFILES):
            return True
        return any(FRAMEWORK_LABELS.get(f, ("",))[0] == "node" for f in self.doc.frameworks)


Rule = Callable[[RuleContext], Iterable[Candidate]]


def manifest_rule(ctx: RuleContext) -> Iterable[Candidate]:
    if "package.json" in ctx.files:
        yield Candidate("node", MANIFEST, "package.json present")
    if "requirements.txt" in ctx.files:
        yield Candidate("python", MANIFEST, "requirements.txt present")
    python_manifests = sorted(ctx.files & PYTHON_MANIFESTS)
    if python_manifests:
        yield Candidate("python", MANIFEST_SECONDARY, f"{python_manifests[0]} present")
    if "go.mod" in ctx.files:
        yield Candidate("go", MANIFEST_SECONDARY, "go.mod found")


def java_build_rule(ctx: RuleContext) -> Iterable[Candidate]:
    descriptors = sorted(ctx.files & JAVA_DESCRIPTORS)
    if not descriptors:
        return
    if ctx.has_node_indicator:
        yield Candidate(
            "java",
            JAVA_BUILD_WITH_NODE,
            f"maven/gradle descriptors ({', '.join(descriptors)}) alongside Node indicators",
        )
    else:
        yield Candidate("java", JAVA_BUILD, f"maven/gradle descriptors found: {', '.join(descriptors)}")


def lockfile_rule(ctx: RuleContext) -> Iterable[Candidate]:
    lockfiles = sorted(ctx.files & NODE_LOCKFILES)
    if lockfiles:
        yield Candidate("node", LOCKFILE, f"Node package lockfile detected: {lockfiles[0]}")


def container_rule(ctx: RuleContext) -> Iterable[Candidate]:
    if ctx.doc.has_dockerfile or "dockerfile" in ctx.files:
        yield Candidate("docker", CONTAINER, "Dockerfile present")
    elif ctx.doc.has_docker_compose:
        yield Candidate("docker", CONTAINER, "docker compose file present")


def iac_rule(ctx: RuleContext) -> Iterable[Candidate]:
    if ctx.has_any(TERRAFORM_FILES):
        yield Candidate("terraform", IAC, "Terraform IaC detected")


def framework_rule(ctx: RuleContext) -> Iterable[Candidate]:
    for name in ctx.doc.frameworks:
        hit = FRAMEWORK_LABELS.get(name)
        if hit:
            label, confidence = hit
            yield Candidate(label, confidence, f"{name} framework detected")


def ci_config_rule(ctx: RuleContext) -> Iterable[Candidate]:
    doc = ctx.doc
    if (
        ".github/workflows" in ctx.files
        or doc.workflow_count > 0
        or any(f.startswith(".github/workflows/") for f in doc.detected_files)
    ):
        yield Candidate("github-actions", CI_CONFIG, "GitHub Actions workflow detected")
    if ".gitlab-ci.yml" in ctx.files or "gitlab-ci.yml" in doc.existing_ci_tools:
        yield Candidate("gitlab-ci", CI_CONFIG, "GitLab CI detected")
    if ctx.has_any({".circleci/config.yml", "circleci/config.yml"}):
        yield Candidate("circleci", CI_CONFIG, "CircleCI config detected")


def dominant_language_rule(ctx: RuleContext) -> Iterable[Candidate]:
    dominant = ctx.doc.dominant_language
    label = DOMINANT_LABELS.get(dominant.strip().lower())
    if label:
        yield Candidate(label, DOMINANT_LANGUAGE, f"dominant language {dominant}")


def recommended_template_rule(ctx: RuleContext) -> Iterable[Candidate]:
    for template in ctx.doc.recommended_templates:
        hit = RECOMMENDED_LABELS.get(template)
        if hit:
            label, confidence = hit
            yield Candidate(label, confidence, f"analyzer recommends {template}")


def polyglot_rule(ctx: RuleContext) -> Iterable[Candidate]:
    major = [
        name
        for name, pct in ctx.doc.languages.items()
        if pct > ctx.polyglot_threshold_pct
    ]
    if len(major) > 1:
        yield Candidate("polyglot", POLYGLOT, f"Multiple major languages: {', '.join(major)}")


_MONOREPO_PATH_RE = re.compile(r"(^|/)(packages|services|apps)/")


def monorepo_rule(ctx: RuleContext) -> Iterable[Candidate]:
    doc = ctx.doc
    if doc.monorepo:
        yield Candidate("monorepo", MONOREPO, "analyzer flagged monorepo")
    elif any(_MONOREPO_PATH_RE.search(f) for f in doc.detected_files):
        yield Candidate("monorepo", MONOREPO, "monorepo-like structure")
    elif doc.total_files > ctx.monorepo_file_count:
        yield Candidate("monorepo", MONOREPO, f"large tree ({doc.total_files} files)")


DEFAULT_RULES: tuple[Rule, ...] = (
    manifest_rule,
    java_build_rule,
    lockfile_rule,
    container_rule,
    iac_rule,
    framework_rule,
    ci_config_rule,
    dominant_language_rule,
    recommended_template_rule,
    polyglot_rule,
    monorepo_rule,
)


def deduplicate(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Keep the max-confidence emission per label, sorted by descending confidence.

    Ties keep first-emission order so the output is stable for a given input.
    """
    best: dict[str, Candidate] = {}
    for c in candidates:
        current = best.get(c.label)
        if current is None or c.confidence > current.confidence:
            best[c.label] = c
    return sorted(best.values(), key=lambda c: -c.confidence)


class RuleEngine:
    def __init__(
        self,
        settings: Settings | None = None,
        rules: tuple[Rule, ...] = DEFAULT_RULES,
    ) -> None:
        settings = settings or Settings()
        self._rules = rules
        self._polyglot_threshold = settings.polyglot_threshold_pct
        self._monorepo_file_count = settings.monorepo_file_count
        self._max_files = settings.summary_max_files
        self._max_languages = settings.summary_max_languages

    def detect(self, features: FeaturesDocument | dict) -> DetectionResult:
        doc = features if isinstance(features, FeaturesDocument) else normalize_features(features)
        ctx = RuleContext(
            doc=doc,
            files=doc.evidence,
            polyglot_threshold_pct=self._polyglot_threshold,
            monorepo_file_count=self._monorepo_file_count,
        )

        raw: list[Candidate] = []
        for rule in self._rules:
            raw.extend(rule(ctx))

        if not raw:
            raw.append(Candidate("generic", GENERIC, "no strong rule match"))

        candidates = deduplicate(raw)
        summary = build_summary(
            doc, max_files=self._max_files, max_languages=self._max_languages
        )
        logger.debug(
            "rules_evaluated",
            repo=doc.repo,
            emissions=len(raw),
            candidates=[(c.label, c.confidence) for c in candidates],
        )
        return DetectionResult(candidates=candidates, summary=summary)
