"""
================================================================================
FILE: docs_expert/core/embeddings_handler.py
================================================================================

PURPOSE:
    Embedding client. Turns a query or a document chunk into a fixed-length
    vector through the configured embeddings provider.

WORKFLOW:
    1. Truncate each input to EMBEDDING_MAX_INPUT_CHARS (silent, not an error)
    2. Send inputs to the provider in batches of EMBEDDINGS_BATCH_SIZE
    3. Apply EMBEDDINGS_TIMEOUT to every provider call
    4. Convert any provider failure into EmbeddingError

KEY FACTS:
    - No automatic retries; callers decide
    - Same text always yields the same request, so embeddings are deterministic
      as far as the provider is
    - The raw provider error is kept in the exception context, never in the
      message shown to users
"""

import asyncio
import logging
from typing import List

from docs_expert.config.settings import Settings
from docs_expert.providers.embeddings.base import IEmbeddingsProvider
from docs_expert.utils import truncate_text

from .exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingsHandler:
    """
    Handles embeddings generation for queries and chunks.
    Supports truncation, batching and timeout protection.
    """

    def __init__(self, provider: IEmbeddingsProvider, settings: Settings):
        """
        Args:
            provider: Pre-initialized embeddings provider (created by ServiceContainer)
            settings: Application settings
        """
        self.provider = provider
        self.settings = settings
        logger.info("EmbeddingsHandler initialized")

    def truncate(self, text: str) -> str:
        limit = self.settings.embedding_max_input_chars
        if len(text) > limit:
            logger.debug(f"Truncating embedding input from {len(text)} to {limit} chars")
        return truncate_text(text, limit)

    async def _embed_batch(self, texts: List[str]) -> List[List[float]]:
        try:
            embeddings = await asyncio.wait_for(
                self.provider.embed_texts(texts),
                timeout=self.settings.embeddings_timeout,
            )
        except asyncio.TimeoutError:
            raise EmbeddingError(
                "Embedding service timed out",
                context={
                    "text_count": len(texts),
                    "timeout_s": self.settings.embeddings_timeout,
                },
            )
        except Exception as e:
            raise EmbeddingError(
                "Embedding service request failed",
                context={"text_count": len(texts), "reason": str(e)},
            )

        if len(embeddings) != len(texts) or any(not v for v in embeddings):
            raise EmbeddingError(
                "Embedding service returned malformed output",
                context={"text_count": len(texts), "vector_count": len(embeddings)},
            )
        return embeddings

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for many texts, one vector per input in order.

        Raises:
            EmbeddingError: on provider failure, timeout or malformed output
        """
        if not texts:
            return []

        prepared = [self.truncate(t) for t in texts]
        batch_size = self.settings.embeddings_batch_size
        vectors: List[List[float]] = []
        for start in range(0, len(prepared), batch_size):
            vectors.extend(await self._embed_batch(prepared[start:start + batch_size]))

        logger.debug(f"Embeddings generated: {len(texts)} texts → {len(vectors)} vectors")
        return vectors

    async def embed(self, text: str) -> List[float]:
        """Generate the embedding for a single text."""
        return (await self.embed_texts([text]))[0]
