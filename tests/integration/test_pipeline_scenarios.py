"""End-to-end analysis runs through rules, classifier, merger and extractor."""

import pytest

from pipeline_advisor.classification.adapter import ClassifierAdapter
from pipeline_advisor.exceptions import FeaturesError
from pipeline_advisor.extraction.extractor import ParameterExtractor
from pipeline_advisor.merging.merger import SignalMerger
from pipeline_advisor.models.schemas import ParameterDocument
from pipeline_advisor.pipeline.analysis_pipeline import (
    BASE_LABEL_SPACE,
    AnalysisPipeline,
    candidate_label_space,
)
from pipeline_advisor.pipeline.factory import create_pipeline
from pipeline_advisor.storage.sqlite_trace_store import SQLiteTraceStore


def _pipeline(settings, client=None, generator=None, timeout_s=1.0, trace_store=None):
    return AnalysisPipeline.from_settings(
        settings,
        classifier=ClassifierAdapter(client=client, timeout_s=timeout_s),
        extractor=ParameterExtractor(generator=generator, timeout_s=timeout_s),
        trace_store=trace_store,
    )


async def test_node_repository(settings, node_features):
    result = await _pipeline(settings).run(node_features)

    assert result.trail.rules[0] == {
        "label": "node",
        "confidence": 0.98,
        "reason": "package.json present",
    }
    assert result.trail.chosen == ["node"]
    assert result.parameters.project_type == "node"
    assert result.parameters.package_manager == "npm"
    assert not result.parameters.container.enabled


async def test_node_repository_with_dockerfile(settings):
    features = {"repo": "acme/api", "detectedFiles": ["package.json", "Dockerfile"]}
    result = await _pipeline(settings).run(features)

    labels = [r["label"] for r in result.trail.rules]
    assert labels[:2] == ["node", "docker"]
    assert result.trail.chosen == ["node"]
    assert result.parameters.container.enabled
    assert result.parameters.container.image == "docker.io/acme/api"
    assert result.parameters.secrets_required == ["DOCKER_USERNAME", "DOCKER_PASSWORD"]


async def test_python_and_java_manifests(settings):
    features = {"detectedFiles": ["requirements.txt", "pom.xml"]}
    result = await _pipeline(settings).run(features)

    by_label = {r["label"]: r["confidence"] for r in result.trail.rules}
    assert by_label["python"] == 0.98
    assert by_label["java"] == 0.97
    assert result.trail.chosen == ["python"]
    assert result.parameters.project_type == "python"


async def test_no_recognized_markers(settings, empty_features):
    result = await _pipeline(settings).run(empty_features)

    assert result.trail.rules == [
        {"label": "generic", "confidence": 0.3, "reason": "no strong rule match"}
    ]
    assert result.trail.chosen == ["generic"]
    expected = ParameterDocument(language="unknown")
    assert result.parameters == expected


async def test_classifier_timeout_degrades(settings, fake_classifier_cls):
    client = fake_classifier_cls({"python": 0.99}, delay=1.0)
    features = {"composition": {"dominant_language": "Python"}}
    result = await _pipeline(settings, client=client, timeout_s=0.05).run(features)

    assert result.trail.classifier["source"] == "heuristic"
    assert result.trail.classifier_status == "failed"
    assert result.trail.degraded
    assert result.parameters.project_type == "python"
    assert set(result.to_values()) >= set(ParameterDocument.model_fields)


async def test_classifier_lifts_weak_rule(settings, fake_classifier_cls):
    client = fake_classifier_cls({"python": 0.9})
    features = {"composition": {"dominant_language": "Python"}}
    result = await _pipeline(settings, client=client).run(features)

    top = result.trail.merged[0]
    assert top["label"] == "python"
    assert top["classifier_score"] == pytest.approx(0.9)
    assert top["combined_score"] == pytest.approx(0.81)
    assert result.trail.classifier_status == "ok"
    assert not result.trail.degraded


async def test_rule_dominant_run_still_records_classifier(settings, fake_classifier_cls):
    client = fake_classifier_cls({"java": 0.99})
    result = await _pipeline(settings, client=client).run({"detectedFiles": ["package.json"]})

    assert client.calls == 1
    assert result.trail.classifier["labels"][0] == "java"
    assert result.trail.chosen == ["node"]


async def test_total_fallback(settings, fake_classifier_cls, fake_generator_cls, node_features):
    result = await _pipeline(
        settings,
        client=fake_classifier_cls(error=RuntimeError("down")),
        generator=fake_generator_cls(error=RuntimeError("also down")),
    ).run(node_features)

    assert result.parameters == ParameterExtractor.deterministic(node_features, ["node"])
    assert result.trail.classifier_status == "failed"
    assert result.trail.override_status == "failed"
    assert len(result.trail.reasons) == 2


async def test_override_flows_into_values(settings, fake_generator_cls, python_features):
    generator = fake_generator_cls('{"lint_command": "ruff check ."}')
    result = await _pipeline(settings, generator=generator).run(python_features)

    values = result.to_values()
    assert values["lint_command"] == "ruff check ."
    assert values["_classifier"]["override_status"] == "ok"


async def test_runs_are_idempotent(settings, node_features):
    pipeline = _pipeline(settings)
    first = await pipeline.run(node_features)
    second = await pipeline.run(node_features)

    assert first.trace_id != second.trace_id
    assert first.parameters == second.parameters
    assert first.trail == second.trail


async def test_accepts_serialized_input(settings, python_features):
    import json

    result = await _pipeline(settings).run(json.dumps(python_features))
    assert result.parameters.project_type == "python"


async def test_malformed_input_raises(settings):
    with pytest.raises(FeaturesError):
        await _pipeline(settings).run("{not json")


async def test_factory_pipeline_persists_traces(settings, node_features):
    pipeline = await create_pipeline(settings)
    result = await pipeline.run(node_features)

    trace = await SQLiteTraceStore(settings.trace_db_path).get_trace(result.trace_id)
    assert trace is not None
    assert trace.repo == "acme/web"
    assert trace.project_type == "node"
    assert trace.chosen == ["node"]
    assert [s["name"] for s in trace.spans] == [
        "detection",
        "classification",
        "merge",
        "extraction",
    ]


def test_label_space_keeps_rule_order_then_base():
    from pipeline_advisor.models.domain import Candidate

    labels = candidate_label_space([Candidate("docker", 0.9, "x"), Candidate("go", 0.95, "y")])
    assert labels[:2] == ["docker", "go"]
    assert set(BASE_LABEL_SPACE) <= set(labels)
    assert len(labels) == len(set(labels))


async def test_go_service_with_dockerfile_gets_container(settings):
    features = {"repo": "acme/svc", "detectedFiles": ["go.mod", "Dockerfile", "main.go"]}
    result = await _pipeline(settings).run(features)

    assert result.trail.chosen == ["go"]
    assert result.parameters.container.enabled
    assert result.parameters.container.image == "docker.io/acme/svc"


async def test_failing_stage_unbinds_log_context(settings):
    import structlog

    from pipeline_advisor.detection.rules import RuleEngine

    def broken_rule(ctx):
        raise RuntimeError("rule crashed")

    pipeline = AnalysisPipeline(
        rule_engine=RuleEngine(settings, rules=(broken_rule,)),
        classifier=ClassifierAdapter(),
        merger=SignalMerger(),
        extractor=ParameterExtractor(),
    )
    with pytest.raises(RuntimeError):
        await pipeline.run({"detectedFiles": ["package.json"]})

    context = structlog.contextvars.get_contextvars()
    assert "trace_id" not in context
    assert "repo" not in context
