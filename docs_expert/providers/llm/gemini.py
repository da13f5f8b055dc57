"""
FILE: docs_expert/providers/llm/gemini.py

Gemini completion provider using the google-genai SDK.

Selected with LLM_PROVIDER=gemini; set CHAT_MODEL / CLASSIFIER_MODEL to Gemini
model ids (e.g. gemini-2.0-flash) alongside it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Optional

from google import genai
from google.genai import types as genai_types  # for GenerateContentConfig

from .base import ILLMProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeminiLLMConfig:
    api_key: Optional[str]
    model: str


class GeminiProvider(ILLMProvider):
    """
    Gemini provider on the SDK's native async surface (client.aio).

    The system prompt is passed as `system_instruction` rather than being
    concatenated into the user prompt.
    """

    def __init__(self, config: GeminiLLMConfig) -> None:
        self.config = config
        self._client: Optional[genai.Client] = None
        logger.info("GeminiProvider created (model=%s)", self.config.model)

    async def initialize(self) -> None:
        try:
            if not self.config.api_key:
                raise ValueError("GEMINI_API_KEY not set")
            self._client = genai.Client(api_key=self.config.api_key)
            logger.info("✓ Gemini initialized (model=%s)", self.config.model)
        except Exception as e:
            logger.error("Gemini init failed: %s", str(e), exc_info=True)
            raise

    def _require_client(self) -> genai.Client:
        if self._client is None:
            raise RuntimeError("GeminiProvider not initialized. Call initialize() first.")
        return self._client

    @staticmethod
    def _config(
        system_prompt: str, temperature: float, max_tokens: int
    ) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

    async def complete(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> str:
        client = self._require_client()
        resp = await client.aio.models.generate_content(
            model=model or self.config.model,
            contents=prompt,
            config=self._config(system_prompt, temperature, max_tokens),
        )
        return getattr(resp, "text", "") or ""

    async def stream(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        client = self._require_client()
        chunks = await client.aio.models.generate_content_stream(
            model=model or self.config.model,
            contents=prompt,
            config=self._config(system_prompt, temperature, max_tokens),
        )
        async for chunk in chunks:
            text = getattr(chunk, "text", None)
            if text:
                yield text

    async def shutdown(self) -> None:
        """google-genai does not require explicit close; just drop the client."""
        self._client = None
        logger.info("GeminiProvider shutdown complete")


def create_provider(settings: "Settings") -> GeminiProvider:
    return GeminiProvider(
        config=GeminiLLMConfig(
            api_key=settings.gemini_api_key,
            model=settings.chat_model,
        )
    )


__all__ = ["GeminiLLMConfig", "GeminiProvider", "create_provider"]
