"""
================================================================================
FILE: docs_expert/core/vector_db_handler.py
================================================================================

PURPOSE:
    Vector index client. Stores (id, vector, metadata) records in a domain's
    namespace and runs nearest-neighbor queries against it.

WORKFLOW (upsert):
    1. Split records into batches of UPSERT_BATCH_SIZE
    2. Write batch N, wait UPSERT_BATCH_DELAY, write batch N+1 ...
    3. On the first failing batch, stop and raise StorageError carrying the
       number of records stored by the completed batches

WORKFLOW (query):
    1. Ask the provider for the top-K neighbors (VECTORDB_TIMEOUT applies)
    2. Return matches best-first; no threshold filtering here, the
       Retriever owns the domain's minimum score

KEY FACTS:
    - Batches are sequential to respect provider rate limits
    - Queries never mutate state
"""

import asyncio
import logging
from typing import List, Optional

from docs_expert.config.settings import Settings
from docs_expert.pipeline.schemas import VectorMatch, VectorRecord
from docs_expert.providers.vectordb.base import IVectorDBProvider

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class VectorDBHandler:
    """
    Handles batched upserts and similarity queries.
    All operations are async (non-blocking).
    """

    def __init__(self, provider: IVectorDBProvider, settings: Settings):
        """
        Args:
            provider: Pre-initialized vector DB provider (created by ServiceContainer)
            settings: Application settings
        """
        self.settings = settings
        self.provider = provider
        logger.info("VectorDBHandler initialized")

    async def upsert(
        self,
        namespace: str,
        records: List[VectorRecord],
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
    ) -> int:
        """
        Store records in bounded batches with a fixed delay between batches.

        Returns:
            Number of records stored

        Raises:
            StorageError: a batch failed; `stored_count` counts earlier batches
        """
        batch_size = batch_size or self.settings.upsert_batch_size
        batch_delay = self.settings.upsert_batch_delay if batch_delay is None else batch_delay

        stored = 0
        total_batches = (len(records) + batch_size - 1) // batch_size
        for batch_no, start in enumerate(range(0, len(records), batch_size), start=1):
            if batch_no > 1 and batch_delay > 0:
                await asyncio.sleep(batch_delay)

            batch = records[start:start + batch_size]
            try:
                await asyncio.wait_for(
                    self.provider.upsert(namespace, batch),
                    timeout=self.settings.vector_db_timeout,
                )
            except asyncio.TimeoutError:
                raise StorageError(
                    f"Vector index upsert timed out after storing {stored} record(s)",
                    stored_count=stored,
                    context={"namespace": namespace, "batch": batch_no},
                )
            except Exception as e:
                raise StorageError(
                    f"Vector index upsert failed after storing {stored} record(s)",
                    stored_count=stored,
                    context={"namespace": namespace, "batch": batch_no, "reason": str(e)},
                )

            stored += len(batch)
            logger.info(
                f"Upserted batch {batch_no}/{total_batches} into {namespace} ({stored}/{len(records)})"
            )

        return stored

    async def query(
        self,
        namespace: str,
        vector: List[float],
        top_k: Optional[int] = None,
    ) -> List[VectorMatch]:
        """
        Nearest neighbors in a namespace, best first.

        Raises:
            StorageError: provider failure or timeout
        """
        top_k = top_k or self.settings.vector_db_top_k
        try:
            matches = await asyncio.wait_for(
                self.provider.query(namespace, vector, top_k),
                timeout=self.settings.vector_db_timeout,
            )
        except asyncio.TimeoutError:
            raise StorageError(
                f"Vector index query timed out after {self.settings.vector_db_timeout}s",
                context={"namespace": namespace},
            )
        except Exception as e:
            raise StorageError(
                "Vector index query failed",
                context={"namespace": namespace, "reason": str(e)},
            )

        matches = sorted(matches, key=lambda m: m.score, reverse=True)[:top_k]
        logger.debug(f"Vector query on {namespace} returned {len(matches)} match(es)")
        return matches
