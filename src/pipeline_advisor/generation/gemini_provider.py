"""Gemini override provider using the google-genai SDK. Asks for a JSON-only reply."""

from __future__ import annotations

from google import genai
from google.genai import types

from pipeline_advisor.exceptions import GenerationError


class GeminiProvider:
    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 600,
    ) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system or None,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model, contents=prompt, config=config
            )
        except Exception as e:
            raise GenerationError(f"Gemini override request failed: {e}") from e
        if not response.text:
            raise GenerationError("Gemini returned an empty override response")
        return response.text
