"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import pytest

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.models.domain import ClassifierResult


@pytest.fixture
def settings():
    """Test settings with temp paths and no external credentials."""
    tmp = tempfile.mkdtemp()
    return Settings(
        hf_token="",
        param_model="",
        param_api_key="",
        classifier_cache_db_path=str(Path(tmp) / "classifier_cache.db"),
        trace_db_path=str(Path(tmp) / "traces.db"),
        json_logs=False,
    )


@pytest.fixture
def tmp_dir():
    """Create a temporary directory."""
    return tempfile.mkdtemp()


@pytest.fixture
def node_features():
    return {
        "repo": "acme/web",
        "detectedFiles": ["package.json", "src/index.js", "README.md"],
        "composition": {
            "languages": {"JavaScript": "91.20", "CSS": "8.80"},
            "dominant_language": "JavaScript",
            "total_files": 3,
        },
        "build_and_dependency": {
            "frameworks": ["Express"],
            "node_metadata": {"scripts": {"test": "jest", "build": "tsc"}},
        },
        "metadata": {"description": "Small web service", "default_branch": "develop"},
    }


@pytest.fixture
def python_features():
    return {
        "repo": "acme/etl",
        "detectedFiles": ["requirements.txt", "etl/main.py", "tests/test_main.py"],
        "composition": {"languages": {"Python": 100.0}, "dominant_language": "Python"},
        "build_and_dependency": {"frameworks": ["Flask"], "python_metadata": {"has_pytest": True}},
    }


@pytest.fixture
def empty_features():
    return {"repo": "acme/notes", "detectedFiles": ["notes.txt"]}


class FakeClassifier:
    """Zero-shot classifier double that records calls and returns canned scores."""

    def __init__(
        self,
        scores: dict[str, float] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.scores = scores or {}
        self.delay = delay
        self.error = error
        self.calls = 0

    @property
    def model(self) -> str:
        return "fake/zero-shot"

    async def classify(self, text, candidate_labels, multi_label=True):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        ranked = sorted(
            ((label, self.scores.get(label, 0.01)) for label in candidate_labels),
            key=lambda kv: -kv[1],
        )
        return ClassifierResult(
            model=self.model,
            labels=[label for label, _ in ranked],
            scores=[score for _, score in ranked],
            raw={"fake": True},
            source="model",
        )


class FakeGenerator:
    """Text generator double returning a fixed response."""

    def __init__(self, response: str = "", delay: float = 0.0, error: Exception | None = None):
        self.response = response
        self.delay = delay
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt, system=None, temperature=0.2, max_tokens=600):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_classifier_cls():
    return FakeClassifier


@pytest.fixture
def fake_generator_cls():
    return FakeGenerator
