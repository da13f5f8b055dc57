"""
FILE: docs_expert/providers/embeddings/huggingface.py

Local embeddings with sentence-transformers (`pip install -e ".[local]"`).
Selected with EMBEDDINGS_PROVIDER=huggingface; no API key needed.

Vectors come back unit-length, so scores from the vector index are on the
same cosine scale as the hosted provider and VECTOR_DB_MIN_SCORE still applies.
Re-ingest after switching providers: dimensions differ between models.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, List, Optional

from .base import IEmbeddingsProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)

LOCAL_FALLBACK_MODEL = "BAAI/bge-small-en-v1.5"
HOSTED_MODEL_PREFIX = "text-embedding-"


def resolve_local_model(configured: str) -> str:
    """EMBEDDINGS_MODEL defaults to a hosted model id; swap in a local one."""
    if not configured or configured.startswith(HOSTED_MODEL_PREFIX):
        return LOCAL_FALLBACK_MODEL
    return configured


class SentenceTransformerEmbeddings(IEmbeddingsProvider):
    def __init__(self, model_name: str, device: str = "cpu", batch_size: int = 64):
        self.model_name = model_name
        self.device = device
        self.batch_size = batch_size
        self._model: Optional[Any] = None
        self.dimension: Optional[int] = None

    async def initialize(self) -> None:
        from sentence_transformers import SentenceTransformer

        # Model download and load block for seconds
        self._model = await asyncio.to_thread(SentenceTransformer, self.model_name, device=self.device)
        self.dimension = self._model.get_sentence_embedding_dimension()
        logger.info(f"✓ Local embeddings initialized: {self.model_name} on {self.device} (dim={self.dimension})")

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        if self._model is None:
            raise RuntimeError(f"Local embeddings model {self.model_name} is not loaded")

        model = self._model
        matrix = await asyncio.to_thread(
            model.encode,
            list(texts),
            batch_size=self.batch_size,
            normalize_embeddings=True,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return [row.tolist() for row in matrix]

    async def shutdown(self) -> None:
        self._model = None
        logger.info(f"Local embeddings model {self.model_name} released")


def create_provider(settings: "Settings") -> SentenceTransformerEmbeddings:
    return SentenceTransformerEmbeddings(
        model_name=resolve_local_model(settings.embeddings_model),
        device=settings.embeddings_device,
        batch_size=settings.embeddings_batch_size,
    )


__all__ = ["SentenceTransformerEmbeddings", "create_provider", "resolve_local_model"]
