"""Build the configured override text provider, or None when the phase is disabled."""

from __future__ import annotations

from pipeline_advisor.config.settings import Settings
from pipeline_advisor.protocols.llm import TextGenerator


def create_text_generator(settings: Settings) -> TextGenerator | None:
    if not settings.override_enabled:
        return None
    if settings.param_provider == "gemini":
        from pipeline_advisor.generation.gemini_provider import GeminiProvider

        return GeminiProvider(api_key=settings.param_api_key, model=settings.param_model)
    if settings.param_provider == "openai":
        from pipeline_advisor.generation.openai_provider import OpenAIProvider

        return OpenAIProvider(api_key=settings.param_api_key, model=settings.param_model)

    from pipeline_advisor.generation.hf_text_provider import HuggingFaceTextProvider

    return HuggingFaceTextProvider(
        api_token=settings.hf_token,
        model=settings.param_model,
        base_url=settings.classifier_base_url,
        timeout_s=settings.param_timeout_s,
    )
