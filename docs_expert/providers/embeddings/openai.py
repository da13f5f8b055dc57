"""
FILE: docs_expert/providers/embeddings/openai.py

OpenAI embeddings provider (default: text-embedding-3-small, 1536 dims).
Selected with EMBEDDINGS_PROVIDER=openai.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from openai import AsyncOpenAI

from .base import IEmbeddingsProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAIEmbeddingsConfig:
    api_key: Optional[str]
    model: str
    timeout_s: float = 30.0


class OpenAIEmbeddingsProvider(IEmbeddingsProvider):
    def __init__(self, config: OpenAIEmbeddingsConfig):
        self.config = config
        self._client: Optional[AsyncOpenAI] = None
        logger.info("OpenAIEmbeddingsProvider created: model=%s", self.config.model)

    async def initialize(self) -> None:
        try:
            if not self.config.api_key:
                raise ValueError("OPENAI_API_KEY not set")
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                timeout=self.config.timeout_s,
                max_retries=0,
            )
            logger.info("✓ OpenAIEmbeddingsProvider initialized")
        except Exception as e:
            logger.error("OpenAIEmbeddingsProvider init failed: %s", str(e), exc_info=True)
            raise

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if self._client is None:
            raise RuntimeError("OpenAIEmbeddingsProvider not initialized. Call initialize() first.")

        if not texts:
            return []

        resp = await self._client.embeddings.create(model=self.config.model, input=texts)
        data = sorted(resp.data, key=lambda d: d.index)
        if len(data) != len(texts):
            raise ValueError(
                f"Embedding count mismatch: sent={len(texts)} received={len(data)}"
            )
        return [list(d.embedding) for d in data]

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        logger.info("OpenAIEmbeddingsProvider shutdown complete")


def create_provider(settings: "Settings") -> OpenAIEmbeddingsProvider:
    return OpenAIEmbeddingsProvider(
        config=OpenAIEmbeddingsConfig(
            api_key=settings.openai_api_key,
            model=settings.embeddings_model,
            timeout_s=settings.embeddings_timeout,
        )
    )


__all__ = ["OpenAIEmbeddingsConfig", "OpenAIEmbeddingsProvider", "create_provider"]
