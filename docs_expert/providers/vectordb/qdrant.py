"""
FILE: docs_expert/providers/vectordb/qdrant.py

Qdrant vector index provider.

Namespace mapping:
    One collection per namespace, named "<VECTOR_INDEX_NAME>-<namespace>"
    (e.g. tech-docs-inngest-docs), created on first upsert with cosine
    distance and the dimension of the first vector written.

Point ids:
    Qdrant only accepts unsigned ints or UUIDs, so record ids are mapped to
    uuid5(record_id) and the original id is kept in the payload.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Set

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from docs_expert.pipeline.schemas import VectorMatch, VectorRecord

from .base import IVectorDBProvider

if TYPE_CHECKING:
    from docs_expert.config.settings import Settings

logger = logging.getLogger(__name__)

RECORD_ID_KEY = "record_id"


@dataclass(frozen=True)
class QdrantConfig:
    url: str
    api_key: Optional[str]
    index_name: str
    timeout_s: int


def point_id(record_id: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, record_id))


class QdrantProvider(IVectorDBProvider):
    def __init__(self, config: QdrantConfig):
        self.config = config
        self._client: Optional[AsyncQdrantClient] = None
        self._known_collections: Set[str] = set()
        logger.info("QdrantProvider created: url=%s index=%s", self.config.url, self.config.index_name)

    async def initialize(self) -> None:
        try:
            self._client = AsyncQdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=self.config.timeout_s,
            )
            logger.info("✓ Qdrant initialized: %s", self.config.url)
        except Exception as e:
            logger.error("Qdrant init failed: %s", str(e), exc_info=True)
            raise

    def collection_name(self, namespace: str) -> str:
        return f"{self.config.index_name}-{namespace}"

    def _require_client(self) -> AsyncQdrantClient:
        if self._client is None:
            raise RuntimeError("QdrantProvider not initialized")
        return self._client

    async def _ensure_collection(self, name: str, dimension: int) -> None:
        if name in self._known_collections:
            return
        client = self._require_client()
        if not await client.collection_exists(name):
            await client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
            )
            logger.info("Created Qdrant collection %s (dim=%d)", name, dimension)
        self._known_collections.add(name)

    async def upsert(self, namespace: str, records: List[VectorRecord]) -> None:
        if not records:
            return
        client = self._require_client()
        collection = self.collection_name(namespace)
        await self._ensure_collection(collection, len(records[0].vector))

        points = [
            PointStruct(
                id=point_id(r.id),
                vector=r.vector,
                payload={**r.metadata, RECORD_ID_KEY: r.id},
            )
            for r in records
        ]
        await client.upsert(collection_name=collection, points=points, wait=True)

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: int,
    ) -> List[VectorMatch]:
        client = self._require_client()
        collection = self.collection_name(namespace)
        if collection not in self._known_collections:
            if not await client.collection_exists(collection):
                return []
            self._known_collections.add(collection)

        response = await client.query_points(
            collection_name=collection,
            query=vector,
            limit=int(top_k),
            with_payload=True,
        )
        out: List[VectorMatch] = []
        for p in response.points:
            payload = dict(p.payload or {})
            record_id = str(payload.pop(RECORD_ID_KEY, p.id))
            out.append(VectorMatch(id=record_id, score=float(p.score), metadata=payload))
        return out

    async def shutdown(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        self._known_collections.clear()
        logger.info("QdrantProvider shutdown complete")


def create_provider(settings: "Settings") -> QdrantProvider:
    return QdrantProvider(
        config=QdrantConfig(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            index_name=settings.vector_index_name,
            timeout_s=int(settings.vector_db_timeout),
        )
    )


__all__ = ["QdrantConfig", "QdrantProvider", "create_provider", "point_id"]
