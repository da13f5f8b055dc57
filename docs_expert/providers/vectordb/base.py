"""
FILE: docs_expert/providers/vectordb/base.py

Vector index provider interface (contract).
A namespace is one domain's partition of the index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from docs_expert.pipeline.schemas import VectorMatch, VectorRecord


class IVectorDBProvider(ABC):
    """Abstract base class for vector index providers."""

    @abstractmethod
    async def initialize(self) -> None:
        """Connect / prepare storage."""
        raise NotImplementedError

    @abstractmethod
    async def upsert(self, namespace: str, records: List[VectorRecord]) -> None:
        """Insert or replace records (keyed by record id) in a namespace."""
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
    ) -> List[VectorMatch]:
        """
        Nearest neighbors by cosine similarity, best first.

        A namespace with no data returns an empty list. Never mutates state.
        """
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        """Cleanup resources."""
        raise NotImplementedError


__all__ = ["IVectorDBProvider"]
