"""Pydantic models for the parameter document and API serialization."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CachingSpec(BaseModel):
    paths: list[str] = Field(default_factory=list)
    key: str = ""


class DeploymentSpec(BaseModel):
    enabled: bool = False
    provider: str = ""
    config_file: str = ""
    mode: str = ""


class ContainerSpec(BaseModel):
    enabled: bool = False
    image: str = ""
    registry: str = ""
    platforms: list[str] = Field(default_factory=lambda: ["linux/amd64"])
    cache: bool = False
    tags: list[str] = Field(default_factory=list)
    provenance: bool = False
    sbom: bool = False
    sign: bool = False


class TriggerSpec(BaseModel):
    branches: list[str] = Field(default_factory=lambda: ["main"])
    push: bool = True
    pull_request: bool = True
    release_on_tag: bool = True


class ParameterDocument(BaseModel):
    """Everything the workflow renderer needs. Every field always has a value."""

    model_config = {"extra": "ignore"}

    project_type: str = "generic"
    language: str = "unknown"
    package_manager: str = ""
    runtime_version: str = ""
    lint_command: str = ""
    test_command: str = ""
    build_command: str = ""
    artifact_path: str = ""
    matrix: dict[str, list[str]] = Field(default_factory=dict)
    caching: CachingSpec = Field(default_factory=CachingSpec)
    secrets_required: list[str] = Field(default_factory=list)
    deployment: DeploymentSpec = Field(default_factory=DeploymentSpec)
    container: ContainerSpec = Field(default_factory=ContainerSpec)
    triggers: TriggerSpec = Field(default_factory=TriggerSpec)
    paths_filters: dict[str, str] = Field(default_factory=dict)


class ClassifierTrail(BaseModel):
    """Per-source scores and reasons kept next to the chosen label for review."""

    rules: list[dict] = Field(default_factory=list)
    classifier: dict = Field(default_factory=dict)
    merged: list[dict] = Field(default_factory=list)
    chosen: list[str] = Field(default_factory=list)
    classifier_status: str = "unavailable"
    override_status: str = "unavailable"
    degraded: bool = False
    reasons: list[str] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    trace_id: str
    values: ParameterDocument
    classifier: ClassifierTrail


class HealthResponse(BaseModel):
    status: str
    classifier_enabled: bool
    override_enabled: bool


class TraceResponse(BaseModel):
    trace_id: str
    repo: str
    timestamp: str
    latency_ms: float
    project_type: str
    chosen: list[str]
    classifier_status: str
    override_status: str
    reason_codes: list[str]
    spans: list[dict]
