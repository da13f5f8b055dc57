"""
FILE: docs_expert/providers/vectordb/memory.py

In-process vector index (numpy, exact cosine search). Selected with
VECTORDB_PROVIDER=memory; used for local development and tests. Contents are
lost when the process exits.

Layout:
    namespace -> {record_id: (unit vector, metadata)}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import numpy as np

from docs_expert.pipeline.schemas import VectorMatch, VectorRecord

from .base import IVectorDBProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)


def _unit(vector: List[float]) -> np.ndarray:
    arr = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return arr
    return arr / norm


class InMemoryVectorDBProvider(IVectorDBProvider):
    def __init__(self) -> None:
        self._namespaces: Dict[str, Dict[str, Tuple[np.ndarray, Dict[str, Any]]]] = {}

    async def initialize(self) -> None:
        logger.info("✓ In-memory vector index initialized")

    async def upsert(self, namespace: str, records: List[VectorRecord]) -> None:
        store = self._namespaces.setdefault(namespace, {})
        for r in records:
            store[r.id] = (_unit(r.vector), dict(r.metadata))

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
    ) -> List[VectorMatch]:
        store = self._namespaces.get(namespace)
        if not store:
            return []

        ids = list(store.keys())
        matrix = np.stack([store[i][0] for i in ids])
        scores = matrix @ _unit(vector)

        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-scores, kind="stable")[: int(top_k)]
        return [
            VectorMatch(id=ids[i], score=float(scores[i]), metadata=dict(store[ids[i]][1]))
            for i in order
        ]

    def count(self, namespace: Optional[str] = None) -> int:
        if namespace is not None:
            return len(self._namespaces.get(namespace, {}))
        return sum(len(s) for s in self._namespaces.values())

    async def shutdown(self) -> None:
        self._namespaces.clear()
        logger.info("In-memory vector index shutdown complete")


def create_provider(settings: "Settings") -> InMemoryVectorDBProvider:
    return InMemoryVectorDBProvider()


__all__ = ["InMemoryVectorDBProvider", "create_provider"]
