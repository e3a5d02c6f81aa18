"""Hugging Face Inference API text generation over httpx."""

from __future__ import annotations

import httpx

from pipeline_advisor.exceptions import GenerationError


class HuggingFaceTextProvider:
    def __init__(
        self,
        api_token: str,
        model: str,
        base_url: str = "https://api-inference.huggingface.co/models",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_s)
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 600,
    ) -> str:
        inputs = f"{system}\n\n{prompt}" if system else prompt
        payload = {
            "inputs": inputs,
            "parameters": {
                "max_new_tokens": max_tokens,
                "temperature": temperature,
                "return_full_text": False,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/{self._model}",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_token}"},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationError(f"Hugging Face generation failed: {e}") from e

        if isinstance(data, list) and data and isinstance(data[0], dict):
            data = data[0]
        if isinstance(data, dict) and "generated_text" in data:
            return str(data["generated_text"])
        raise GenerationError("Hugging Face generation returned no generated_text")
