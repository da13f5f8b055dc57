"""Vector index providers (qdrant, memory)."""

from .base import IVectorDBProvider

__all__ = ["IVectorDBProvider"]
