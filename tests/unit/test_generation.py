"""Tests for override providers, prompt formatting and provider selection."""

import json

import httpx
import pytest

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.exceptions import GenerationError
from pipeline_advisor.generation.factory import create_text_generator
from pipeline_advisor.generation.hf_text_provider import HuggingFaceTextProvider
from pipeline_advisor.generation.prompt_templates import (
    MAX_SECTION_CHARS,
    format_defaults,
    format_signal_summary,
)
from pipeline_advisor.models.domain import MergedCandidate, MergeSignal


def _provider(handler):
    return HuggingFaceTextProvider(
        api_token="hf_test",
        model="mistralai/Mistral-7B-Instruct",
        base_url="https://hf.test/models",
        transport=httpx.MockTransport(handler),
    )


async def test_hf_text_provider_returns_generated_text():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"generated_text": '{"test_command": "pytest"}'}])

    text = await _provider(handler).generate("prompt", system="system", max_tokens=50)

    assert text == '{"test_command": "pytest"}'
    assert captured["body"]["inputs"] == "system\n\nprompt"
    assert captured["body"]["parameters"]["max_new_tokens"] == 50
    assert captured["body"]["parameters"]["return_full_text"] is False


async def test_hf_text_provider_errors():
    def handler(request):
        return httpx.Response(429, json={"error": "rate limited"})

    with pytest.raises(GenerationError):
        await _provider(handler).generate("prompt")


async def test_hf_text_provider_unexpected_body():
    def handler(request):
        return httpx.Response(200, json={"error": "loading"})

    with pytest.raises(GenerationError):
        await _provider(handler).generate("prompt")


def test_factory_disabled_without_model():
    assert create_text_generator(Settings(_env_file=None, hf_token="t", param_model="")) is None


def test_factory_picks_huggingface():
    generator = create_text_generator(
        Settings(_env_file=None, hf_token="t", param_model="mistralai/Mistral-7B-Instruct")
    )
    assert isinstance(generator, HuggingFaceTextProvider)


def test_factory_picks_openai():
    from pipeline_advisor.generation.openai_provider import OpenAIProvider

    generator = create_text_generator(
        Settings(
            _env_file=None, param_provider="openai", param_model="gpt-4o-mini", param_api_key="k"
        )
    )
    assert isinstance(generator, OpenAIProvider)


def test_signal_summary():
    signal = MergeSignal(
        chosen=["node"],
        merged=[MergedCandidate("node", 0.98, 0.0, 0.98, ["rule-dominant"])],
        primary="node",
    )
    text = format_signal_summary(signal)
    assert text.splitlines() == [
        "chosen: node",
        "- node: combined=0.98 rule=0.98 model=0.00",
    ]
    assert format_signal_summary(None) == "none"


def test_defaults_are_capped():
    assert len(format_defaults({"blob": "x" * 5000})) == MAX_SECTION_CHARS
