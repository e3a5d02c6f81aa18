"""Tests for the parameter document schema."""

import pytest

from pipeline_advisor.models.domain import ClassifierResult
from pipeline_advisor.models.schemas import ClassifierTrail, ParameterDocument

PARAMETER_KEYS = {
    "project_type",
    "language",
    "package_manager",
    "runtime_version",
    "lint_command",
    "test_command",
    "build_command",
    "artifact_path",
    "matrix",
    "caching",
    "secrets_required",
    "deployment",
    "container",
    "triggers",
    "paths_filters",
}


def test_every_field_has_a_default():
    dumped = ParameterDocument().model_dump()
    assert set(dumped) == PARAMETER_KEYS
    assert dumped["project_type"] == "generic"
    assert dumped["container"]["platforms"] == ["linux/amd64"]
    assert dumped["triggers"] == {
        "branches": ["main"],
        "push": True,
        "pull_request": True,
        "release_on_tag": True,
    }


def test_unknown_fields_ignored():
    doc = ParameterDocument.model_validate({"project_type": "node", "extra": 1})
    assert doc.project_type == "node"
    assert "extra" not in doc.model_dump()


def test_trail_defaults():
    trail = ClassifierTrail()
    assert trail.classifier_status == "unavailable"
    assert not trail.degraded


def test_classifier_result_requires_parallel_lists():
    with pytest.raises(ValueError):
        ClassifierResult(model="m", labels=["a", "b"], scores=[0.1])
