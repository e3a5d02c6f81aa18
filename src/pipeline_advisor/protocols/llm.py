"""Protocol for generative text providers."""

from __future__ import annotations

from typing import Protocol


class TextGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 600,
    ) -> str: ...
