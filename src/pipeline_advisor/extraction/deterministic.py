"""Deterministic parameter extraction: always succeeds, pure function of its inputs.

Decision order is fixed: Docker-only short-circuit (only when no language
ecosystem is detected), then Node, then Python, then Java, then generic.
Container and static-site deployment settings are layered on top of whichever
ecosystem document was produced.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from pipeline_advisor.models.domain import FeaturesDocument
from pipeline_advisor.models.schemas import (
    CachingSpec,
    ContainerSpec,
    DeploymentSpec,
    ParameterDocument,
    TriggerSpec,
)

LANGUAGE_LABELS = frozenset({"node", "python", "java"})

NODE_VERSIONS = ["18.x", "20.x", "22.x"]
PYTHON_VERSIONS = ["3.10", "3.11", "3.12"]
JAVA_VERSIONS = ["17", "21"]

DEFAULT_NODE_VERSION = "20.x"
DEFAULT_PYTHON_VERSION = "3.12"
DEFAULT_JAVA_VERSION = "17"

DEFAULT_REGISTRY = "docker.io"
FIRST_PARTY_REGISTRY = "ghcr.io"

STATIC_HOSTS: dict[str, tuple[str, str]] = {
    "vercel.json": ("vercel", "VERCEL_TOKEN"),
    "netlify.toml": ("netlify", "NETLIFY_AUTH_TOKEN"),
    "firebase.json": ("firebase", "FIREBASE_TOKEN"),
}
STATIC_LANGUAGES = frozenset({"html", "css", "scss"})
STATIC_SHARE_PCT = 40.0

SUBPROJECT_MANIFESTS = frozenset(
    {"package.json", "requirements.txt", "pyproject.toml", "pom.xml", "build.gradle", "go.mod"}
)
MAX_PATH_FILTERS = 20


@dataclass(frozen=True)
class Ecosystems:
    node: bool
    python: bool
    java: bool
    docker_chosen: bool
    has_docker: bool

    @property
    def any_language(self) -> bool:
        return self.node or self.python or self.java


def detect_ecosystems(doc: FeaturesDocument, chosen: list[str]) -> Ecosystems:
    """Chosen labels decide first; file evidence only when no language label was chosen."""
    labels = set(chosen)
    files = doc.evidence
    dominant = doc.dominant_language.lower()

    if labels & LANGUAGE_LABELS:
        node, python, java = "node" in labels, "python" in labels, "java" in labels
    else:
        node = "package.json" in files or dominant in ("javascript", "typescript")
        python = "requirements.txt" in files or dominant == "python"
        java = bool(files & {"pom.xml", "build.gradle", "build.gradle.kts"})

    has_docker = (
        doc.has_dockerfile
        or "dockerfile" in files
        or any(lang.lower() == "dockerfile" for lang in doc.languages)
    )
    return Ecosystems(
        node=node,
        python=python,
        java=java,
        docker_chosen="docker" in labels,
        has_docker=has_docker,
    )


def base_document(doc: FeaturesDocument) -> ParameterDocument:
    return ParameterDocument(
        project_type="generic",
        language=doc.dominant_language.lower() or "unknown",
        triggers=TriggerSpec(branches=[doc.default_branch or "main"]),
    )


def deterministic_parameters(
    doc: FeaturesDocument, chosen: list[str] | str | None = None
) -> ParameterDocument:
    if isinstance(chosen, str):
        chosen = [chosen]
    eco = detect_ecosystems(doc, list(chosen or []))

    if eco.docker_chosen and not eco.any_language:
        return _docker_only(doc)

    if eco.node:
        out = _node(doc)
    elif eco.python:
        out = _python(doc)
    elif eco.java:
        out = _java(doc)
    else:
        out = base_document(doc)

    if eco.has_docker:
        _attach_container(out, doc)
    _attach_deployment(out, doc)
    out.paths_filters = path_filters(doc)
    return out


def _docker_only(doc: FeaturesDocument) -> ParameterDocument:
    out = base_document(doc)
    out.project_type = "docker"
    out.language = "docker"
    out.build_command = "docker build -t app ."
    _attach_container(out, doc)
    out.container.tags = ["latest"]
    return out


def _node(doc: FeaturesDocument) -> ParameterDocument:
    files = doc.evidence
    if "pnpm-lock.yaml" in files:
        pm, run, lockfile, cache_path = "pnpm", "pnpm run", "pnpm-lock.yaml", "~/.pnpm-store"
    elif "yarn.lock" in files:
        pm, run, lockfile, cache_path = "yarn", "yarn", "yarn.lock", "~/.cache/yarn"
    else:
        pm, run, lockfile, cache_path = "npm", "npm run", "package-lock.json", "~/.npm"

    scripts = doc.node_scripts
    out = base_document(doc)
    out.project_type = "node"
    out.language = "js"
    out.package_manager = pm
    out.runtime_version = doc.node_version or DEFAULT_NODE_VERSION
    # Missing scripts get a no-op fallback so CI does not hard-fail
    out.lint_command = f"{run} lint" if "lint" in scripts else f"{run} lint || echo 'No lint script'"
    out.test_command = f"{pm} test" if "test" in scripts else f"{pm} test || echo 'No tests found'"
    out.build_command = (
        f"{run} build" if "build" in scripts else f"{run} build || echo 'No build script'"
    )
    out.artifact_path = "dist/" if "build" in scripts else ""
    out.matrix = {"node_versions": list(NODE_VERSIONS)}
    out.caching = CachingSpec(
        paths=[cache_path],
        key=f"{pm}-cache-${{{{ hashFiles('**/{lockfile}') }}}}",
    )
    return out


def _python(doc: FeaturesDocument) -> ParameterDocument:
    files = doc.evidence
    if "poetry.lock" in files:
        pm, lockfile = "poetry", "poetry.lock"
    elif "pipfile" in files:
        pm, lockfile = "pipenv", "Pipfile.lock"
    else:
        pm, lockfile = "pip", "requirements.txt"

    has_pytest = doc.python_has_pytest or any("pytest" in t for t in doc.test_frameworks)
    packaged = bool(files & {"pyproject.toml", "setup.py", "setup.cfg"})

    out = base_document(doc)
    out.project_type = "python"
    out.language = "py"
    out.package_manager = pm
    out.runtime_version = DEFAULT_PYTHON_VERSION
    if any("ruff" in t for t in doc.lint_tools):
        out.lint_command = "ruff check ."
    else:
        out.lint_command = "flake8 . || echo 'No flake8 config'"
    out.test_command = "pytest" if has_pytest else "pytest || echo 'No tests found'"
    if packaged:
        out.build_command = "python -m build"
        out.artifact_path = "dist/"
    else:
        out.build_command = "echo 'No packaging metadata; skipping build'"
    out.matrix = {"python_versions": list(PYTHON_VERSIONS)}
    out.caching = CachingSpec(
        paths=["~/.cache/pip"],
        key=f"pip-cache-${{{{ hashFiles('**/{lockfile}') }}}}",
    )
    return out


def _java(doc: FeaturesDocument) -> ParameterDocument:
    files = doc.evidence
    has_pom = "pom.xml" in files
    has_gradle = bool(files & {"build.gradle", "build.gradle.kts"})

    out = base_document(doc)
    out.project_type = "java"
    out.language = "java"
    out.runtime_version = DEFAULT_JAVA_VERSION
    out.matrix = {"java_versions": list(JAVA_VERSIONS)}
    if has_pom:
        out.package_manager = "maven"
        out.build_command = "mvn -B -DskipTests package"
        out.test_command = "mvn -B test"
        out.artifact_path = "target/"
        out.caching = CachingSpec(
            paths=["~/.m2/repository"],
            key="maven-cache-${{ hashFiles('**/pom.xml') }}",
        )
    elif has_gradle:
        out.package_manager = "gradle"
        out.build_command = "./gradlew build --no-daemon -x test"
        out.test_command = "./gradlew test --no-daemon"
        out.artifact_path = "build/"
        out.caching = CachingSpec(
            paths=["~/.gradle/caches", "~/.gradle/wrapper"],
            key="gradle-cache-${{ hashFiles('**/*.gradle*') }}",
        )
    else:
        out.build_command = "echo 'No Maven or Gradle descriptor; skipping build'"
        out.test_command = "echo 'No Java build tool detected; skipping tests'"
    return out


def _attach_container(out: ParameterDocument, doc: FeaturesDocument) -> None:
    registry = doc.registry_reference or DEFAULT_REGISTRY
    out.container = ContainerSpec(
        enabled=True,
        image=f"{registry}/{doc.repo.lower()}",
        registry=registry,
        platforms=["linux/amd64"],
        cache=True,
        tags=["latest", "${{ github.sha }}"],
    )
    if registry == FIRST_PARTY_REGISTRY:
        _require(out, "GITHUB_TOKEN")
    else:
        _require(out, "DOCKER_USERNAME", "DOCKER_PASSWORD")


def _attach_deployment(out: ParameterDocument, doc: FeaturesDocument) -> None:
    configs = set(doc.deployment_configs) | doc.evidence
    for config_file, (provider, secret) in STATIC_HOSTS.items():
        if config_file in configs or any(c.endswith("/" + config_file) for c in configs):
            out.deployment = DeploymentSpec(
                enabled=True, provider=provider, config_file=config_file, mode="static"
            )
            _require(out, secret)
            return

    static_share = sum(
        pct for lang, pct in doc.languages.items() if lang.lower() in STATIC_LANGUAGES
    )
    if static_share >= STATIC_SHARE_PCT:
        out.deployment = DeploymentSpec(
            enabled=True, provider="github-pages", config_file="", mode="static"
        )
        _require(out, "GITHUB_TOKEN")


def path_filters(doc: FeaturesDocument) -> dict[str, str]:
    """Glob per sub-project directory that holds its own manifest."""
    dirs = sorted(
        {
            posixpath.dirname(f)
            for f in doc.detected_files
            if "/" in f and posixpath.basename(f) in SUBPROJECT_MANIFESTS
        }
    )
    if not dirs or (len(dirs) < 2 and not doc.monorepo):
        return {}
    return {d: f"{d}/**" for d in dirs[:MAX_PATH_FILTERS]}


def _require(out: ParameterDocument, *secrets: str) -> None:
    for secret in secrets:
        if secret not in out.secrets_required:
            out.secrets_required.append(secret)
