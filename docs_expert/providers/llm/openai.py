"""
FILE: docs_expert/providers/llm/openai.py

OpenAI chat-completions provider (async SDK).

Layer-2 config is built from Settings in `create_provider()`; the container
imports this module when LLM_PROVIDER=openai.

Used with two models: CHAT_MODEL for answers (streamed) and CLASSIFIER_MODEL
for the generic/specific triage (one short completion).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, List, Optional

from openai import AsyncOpenAI

from .base import ILLMProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAILLMConfig:
    api_key: Optional[str]
    model: str
    timeout_s: float = 60.0
    max_retries: int = 0


class OpenAIProvider(ILLMProvider):
    """
    OpenAI provider using AsyncOpenAI.

    Notes:
    - SDK-level retries are disabled; callers decide on retry policy.
    - Streaming skips chunks without choices (usage/keep-alive chunks).
    """

    def __init__(self, config: OpenAILLMConfig) -> None:
        self.config = config
        self._client: Optional[AsyncOpenAI] = None
        logger.info("OpenAIProvider created (model=%s)", self.config.model)

    async def initialize(self) -> None:
        try:
            if not self.config.api_key:
                raise ValueError("OPENAI_API_KEY not set")
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                timeout=self.config.timeout_s,
                max_retries=self.config.max_retries,
            )
            logger.info("✓ OpenAI initialized (model=%s)", self.config.model)
        except Exception as e:
            logger.error("OpenAI init failed: %s", str(e), exc_info=True)
            raise

    def _require_client(self) -> AsyncOpenAI:
        if self._client is None:
            raise RuntimeError("OpenAIProvider not initialized. Call initialize() first.")
        return self._client

    @staticmethod
    def _messages(system_prompt: str, prompt: str) -> List[dict]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]

    async def complete(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> str:
        client = self._require_client()
        resp = await client.chat.completions.create(
            model=model or self.config.model,
            messages=self._messages(system_prompt, prompt),
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    async def stream(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        client = self._require_client()
        response = await client.chat.completions.create(
            model=model or self.config.model,
            messages=self._messages(system_prompt, prompt),
            temperature=temperature,
            max_tokens=max_tokens,
            stream=True,
        )
        async for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        logger.info("OpenAIProvider shutdown complete")


def create_provider(settings: "Settings") -> OpenAIProvider:
    return OpenAIProvider(
        config=OpenAILLMConfig(
            api_key=settings.openai_api_key,
            model=settings.chat_model,
            timeout_s=settings.llm_timeout,
        )
    )


__all__ = ["OpenAILLMConfig", "OpenAIProvider", "create_provider"]
