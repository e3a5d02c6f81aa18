"""Tests for the parameter extractor with and without an override model."""

from pipeline_advisor.extraction.extractor import ParameterExtractor
from pipeline_advisor.models.domain import MergedCandidate, MergeSignal


def _signal(label: str) -> MergeSignal:
    return MergeSignal(
        chosen=[label],
        merged=[MergedCandidate(label, 0.98, 0.0, 0.98, ["rule-dominant"])],
        primary=label,
    )


async def test_deterministic_only_without_generator(python_features):
    result = await ParameterExtractor().extract_detailed(python_features, _signal("python"))
    assert result.override_status == "unavailable"
    assert result.document.project_type == "python"
    assert result.document == ParameterExtractor.deterministic(python_features, ["python"])


async def test_override_applied(fake_generator_cls, python_features):
    generator = fake_generator_cls('Here: {"test_command": "pytest -q --maxfail=1"}')
    extractor = ParameterExtractor(generator=generator)
    result = await extractor.extract_detailed(python_features, _signal("python"))

    assert result.override_status == "ok"
    assert result.document.test_command == "pytest -q --maxfail=1"
    assert result.document.package_manager == "pip"
    prompt = generator.prompts[0]
    assert "chosen: python" in prompt
    assert '"test_command": "pytest"' in prompt


async def test_garbage_output_keeps_deterministic(fake_generator_cls, python_features):
    extractor = ParameterExtractor(generator=fake_generator_cls("I cannot help with that."))
    result = await extractor.extract_detailed(python_features, _signal("python"))
    assert result.override_status == "failed"
    assert result.document == ParameterExtractor.deterministic(python_features, ["python"])


async def test_invalid_override_keeps_deterministic(fake_generator_cls, python_features):
    extractor = ParameterExtractor(generator=fake_generator_cls('{"matrix": "all of them"}'))
    result = await extractor.extract_detailed(python_features, _signal("python"))
    assert result.override_status == "failed"
    assert result.document.matrix == {"python_versions": ["3.10", "3.11", "3.12"]}


async def test_timeout_keeps_deterministic(fake_generator_cls, node_features):
    extractor = ParameterExtractor(
        generator=fake_generator_cls('{"test_command": "x"}', delay=1.0), timeout_s=0.05
    )
    result = await extractor.extract_detailed(node_features, _signal("node"))
    assert result.override_status == "failed"
    assert "timeout" in result.override_reason
    assert result.document.test_command == "npm test"


async def test_generator_error_keeps_deterministic(fake_generator_cls, node_features):
    extractor = ParameterExtractor(generator=fake_generator_cls(error=RuntimeError("quota")))
    document = await extractor.extract(node_features, _signal("node"))
    assert document.project_type == "node"


async def test_without_signal_uses_file_evidence(node_features):
    document = await ParameterExtractor().extract(node_features)
    assert document.project_type == "node"
