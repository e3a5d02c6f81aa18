"""Map the analyzer's features JSON (nested or legacy flat shape) onto FeaturesDocument."""

from __future__ import annotations

import json
import re

from pipeline_advisor.exceptions import FeaturesError
from pipeline_advisor.models.domain import FeaturesDocument

DEFAULT_REPO = "OWNER/REPO"

_REPO_URL_RE = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s]+?)(?:\.git)?/?$", re.I)
_REPO_SLUG_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")
_REGISTRY_RE = re.compile(r"(ghcr\.io|docker\.io|quay\.io|gcr\.io|[a-z0-9.-]+\.azurecr\.io)", re.I)


def parse_features(text: str | bytes) -> FeaturesDocument:
    """Parse a serialized features document. Raises FeaturesError on invalid input."""
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FeaturesError(f"features document is not valid JSON: {e}") from e
    return normalize_features(raw)


def parse_repo_id(value: str) -> str:
    """Return ``owner/repo`` from a slug or a GitHub URL."""
    value = value.strip()
    match = _REPO_URL_RE.search(value)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    match = _REPO_SLUG_RE.match(value)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    raise FeaturesError(f"unparseable repository identifier: {value!r}")


def normalize_features(raw: object) -> FeaturesDocument:
    if not isinstance(raw, dict):
        raise FeaturesError(f"features document must be an object, got {type(raw).__name__}")

    comp = _section(raw, "composition")
    build = _section(raw, "build_and_dependency")
    container = _section(raw, "containerization_and_deployment")
    ci = _section(raw, "ci_cd")
    meta = _section(raw, "metadata")
    derived = _section(raw, "derived")
    testing = _section(raw, "testing_and_linting")
    node_meta = _section(build, "node_metadata")
    python_meta = _section(build, "python_metadata")

    repo_value = raw.get("repo") or raw.get("repository") or ""
    repo = parse_repo_id(str(repo_value)) if repo_value else DEFAULT_REPO

    detected_files = tuple(_lower_list(raw.get("detectedFiles") or raw.get("detected_files")))
    type_counts = comp.get("file_types_count") or raw.get("file_types_count") or {}
    file_type_keys = tuple(
        str(k).lower().split("/")[-1] for k in (type_counts if isinstance(type_counts, dict) else {})
    )

    languages = _languages(comp.get("languages") or raw.get("languages") or {})
    dominant = str(comp.get("dominant_language") or raw.get("dominant_language") or "")
    if not dominant and languages:
        dominant = max(languages.items(), key=lambda kv: kv[1])[0]

    frameworks = _lower_list(build.get("frameworks") or raw.get("frameworks"))

    has_dockerfile = bool(container.get("has_dockerfile")) or any(
        f == "dockerfile" or f.endswith("/dockerfile") for f in detected_files
    )
    has_compose = bool(container.get("has_docker_compose")) or any(
        "docker-compose" in f or f.endswith("compose.yaml") for f in detected_files
    )

    scripts = node_meta.get("scripts") or {}
    if isinstance(scripts, list):
        scripts = {str(name): "" for name in scripts}
    elif not isinstance(scripts, dict):
        scripts = {}

    return FeaturesDocument(
        repo=repo,
        detected_files=detected_files,
        file_type_keys=file_type_keys,
        languages=languages,
        dominant_language=dominant,
        frameworks=tuple(frameworks),
        runtimes=tuple(_lower_list(build.get("runtimes"))),
        package_managers=tuple(_lower_list(build.get("package_managers"))),
        build_systems=tuple(_lower_list(build.get("build_systems"))),
        node_scripts={str(k): str(v) for k, v in scripts.items()},
        node_version=str(node_meta.get("nodeVersion") or node_meta.get("node_version") or ""),
        python_has_pytest=bool(python_meta.get("has_pytest")),
        test_frameworks=tuple(_lower_list(testing.get("test_frameworks"))),
        lint_tools=tuple(_lower_list(testing.get("lint_tools"))),
        has_dockerfile=has_dockerfile,
        has_docker_compose=has_compose,
        registry_reference=_registry(container.get("registry_reference"), detected_files),
        deployment_configs=tuple(_lower_list(container.get("deployment_configs"))),
        workflow_count=_int(ci.get("workflow_count")),
        existing_ci_tools=tuple(_lower_list(ci.get("existing_ci_tools"))),
        description=str(meta.get("description") or raw.get("description") or ""),
        default_branch=str(meta.get("default_branch") or raw.get("default_branch") or "main"),
        topics=tuple(_lower_list(meta.get("topics"))),
        total_files=_int(comp.get("total_files")),
        monorepo=bool(derived.get("monorepo")),
        recommended_templates=tuple(_lower_list(derived.get("recommended_templates"))),
    )


def _section(parent: dict, key: str) -> dict:
    value = parent.get(key)
    return value if isinstance(value, dict) else {}


def _lower_list(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v).lower() for v in value if v is not None and str(v)]


def _languages(value: object) -> dict[str, float]:
    if not isinstance(value, dict):
        return {}
    out: dict[str, float] = {}
    for name, pct in value.items():
        try:
            out[str(name)] = float(pct)
        except (TypeError, ValueError):
            continue
    return out


def _int(value: object) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _registry(value: object, detected_files: tuple[str, ...]) -> str:
    """Registry host named by the analyzer or by a detected path; "" when none is specific."""
    if isinstance(value, str):
        match = _REGISTRY_RE.search(value)
        if match:
            return match.group(1).lower()
    for f in detected_files:
        match = _REGISTRY_RE.search(f)
        if match:
            return match.group(1).lower()
    return ""
