"""Embeddings providers (openai, huggingface)."""

from .base import IEmbeddingsProvider

__all__ = ["IEmbeddingsProvider"]
