"""
================================================================================
FILE: docs_expert/tools/ingestion/service.py
================================================================================

PURPOSE:
    Mechanical chunk -> embed -> upsert ingestion into a domain's namespace.
    Used by POST /ingest and the `docs-expert ingest` command.

WORKFLOW:
    1. Resolve the domain (must already be registered; adapters call
       DomainRegistry.ensure() first when uploads may create domains)
    2. Extract text (files, URLs) and chunk it with MarkdownChunker
    3. Embed all chunk contents
    4. Upsert records in batches via VectorDBHandler

RECORDS:
    id:       "<domain>-<ordinal>-<epoch-ms>-<nonce>"
    metadata: chunk metadata + "content"; "domain" is always the target
              domain, whatever the chunk carried

KEY FACTS:
    - Failures raise typed exceptions; StorageError carries stored_count
    - Nothing is retried
"""

import logging
import uuid
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.embeddings_handler import EmbeddingsHandler
from docs_expert.core.exceptions import ValidationError
from docs_expert.core.vector_db_handler import VectorDBHandler
from docs_expert.pipeline.schemas import (
    ContentType,
    DocumentChunk,
    Domain,
    IngestionResult,
    VectorRecord,
    now_ms,
)
from docs_expert.tools.chunking import MarkdownChunker
from docs_expert.utils import extract_text_from_file

logger = logging.getLogger(__name__)


class IngestionService:
    """Chunks, embeds and stores documents for one domain at a time."""

    def __init__(
        self,
        registry: DomainRegistry,
        embeddings: EmbeddingsHandler,
        vector_index: VectorDBHandler,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.registry = registry
        self.embeddings = embeddings
        self.vector_index = vector_index
        self.settings = settings
        self.chunker = MarkdownChunker(
            max_chunk_size=settings.max_chunk_size,
            min_chunk_size=settings.min_chunk_size,
        )
        self._http_client = http_client
        logger.info("✓ IngestionService initialized")

    # ========================================================================
    # SECTION 1: STORE
    # ========================================================================

    async def store_chunks(self, chunks: List[DocumentChunk], domain: Domain) -> int:
        """
        Embed and upsert chunks into the domain's namespace.

        Raises:
            EmbeddingError: embedding failed (nothing stored)
            StorageError: a batch failed (stored_count = earlier batches)
        """
        if not chunks:
            return 0

        vectors = await self.embeddings.embed_texts([c.content for c in chunks])
        # Ordinals restart per call; the nonce keeps same-millisecond calls apart
        stamp = f"{now_ms()}-{uuid.uuid4().hex[:8]}"
        records = [
            VectorRecord(
                id=f"{domain.id}-{ordinal}-{stamp}",
                vector=vector,
                metadata={
                    "content": chunk.content,
                    **chunk.metadata.model_dump(mode="json"),
                    "domain": domain.id,
                },
            )
            for ordinal, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]

        logger.info(
            f"Storing {len(records)} chunk(s) in namespace {domain.namespace}",
            extra={"domain": domain.id},
        )
        return await self.vector_index.upsert(domain.namespace, records)

    # ========================================================================
    # SECTION 2: INGEST FROM TEXT
    # ========================================================================

    async def ingest_text(
        self,
        text: str,
        domain_id: str,
        source: str = constants.DEFAULT_UPLOAD_SOURCE,
        content_type: ContentType = ContentType.CUSTOM,
    ) -> IngestionResult:
        """
        Raises:
            DomainError: domain not registered or inactive
            ValidationError: empty text, or nothing survived chunking
            EmbeddingError / StorageError: see store_chunks
        """
        domain = self.registry.require_active(domain_id)
        if not text or not text.strip():
            raise ValidationError("No content provided", context={"source": source})

        chunks = self.chunker.chunk(text, domain.id, source=source, content_type=content_type)
        if not chunks:
            raise ValidationError(
                "No valid chunks created from the provided content",
                context={
                    "source": source,
                    "hint": f"Content must contain sections of at least {self.settings.min_chunk_size} characters",
                },
            )

        stored = await self.store_chunks(chunks, domain)
        logger.info(f"Ingested {stored} chunk(s) from {source} into {domain.id}")
        return IngestionResult(
            success=True,
            message=f"Successfully ingested {source} for {domain.name}: {stored} chunks",
            chunks=stored,
            domain=domain.id,
            source=source,
        )

    async def ingest_documents(
        self,
        documents: Iterable[Tuple[str, str]],
        domain_id: str,
        content_type: ContentType = ContentType.CUSTOM,
    ) -> IngestionResult:
        """Chunk several (content, source) documents and store them together."""
        domain = self.registry.require_active(domain_id)
        chunks: List[DocumentChunk] = []
        sources: List[str] = []
        for content, source in documents:
            sources.append(source)
            chunks.extend(self.chunker.chunk(content, domain.id, source=source, content_type=content_type))

        if not chunks:
            raise ValidationError(
                "No valid chunks created from the provided documents",
                context={"sources": sources},
            )

        stored = await self.store_chunks(chunks, domain)
        return IngestionResult(
            success=True,
            message=f"Successfully ingested {len(sources)} document(s) for {domain.name}: {stored} chunks",
            chunks=stored,
            domain=domain.id,
            source=", ".join(sources),
        )

    # ========================================================================
    # SECTION 3: INGEST FROM FILES AND URLS
    # ========================================================================

    def read_file(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """
        Size-check an upload and extract its text.

        Raises:
            UnsupportedFileTypeError: unknown file type
            ValidationError: oversized or unreadable file
        """
        max_bytes = self.settings.max_upload_size_mb * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationError(
                f"File {filename} exceeds {self.settings.max_upload_size_mb}MB",
                context={"filename": filename, "size": len(content)},
            )
        return extract_text_from_file(content, filename, content_type)

    async def ingest_file(
        self,
        filename: str,
        content: bytes,
        domain_id: str,
        content_type: Optional[str] = None,
    ) -> IngestionResult:
        text = self.read_file(filename, content, content_type)
        return await self.ingest_text(text, domain_id, source=f"uploaded-file: {filename}")

    async def fetch_url(self, url: str) -> str:
        """
        Download a document as text.

        Raises:
            ValidationError: network failure or non-200 response
        """
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient(
                    timeout=self.settings.http_fetch_timeout, follow_redirects=True
                ) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise ValidationError(
                f"Failed to fetch {url}",
                context={"url": url, "reason": str(e)},
            )

        if response.status_code != 200:
            raise ValidationError(
                f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}",
                context={"url": url, "status": response.status_code},
            )
        logger.info(f"Downloaded {len(response.text)} characters from {url}")
        return response.text

    async def ingest_url(self, url: str, domain_id: str) -> IngestionResult:
        text = await self.fetch_url(url)
        return await self.ingest_text(
            text, domain_id, source=url, content_type=ContentType.DOCUMENTATION
        )

    async def ingest_official_docs(self, domain_id: str) -> IngestionResult:
        """Ingest every plain-text official doc URL of the domain (e.g. llms-full.txt)."""
        domain = self.registry.require_active(domain_id)
        urls = [u for u in domain.official_doc_urls if urlparse(u).path.endswith(".txt")]
        if not urls:
            raise ValidationError(
                f"Domain '{domain.id}' has no plain-text official documentation URLs",
                context={"domain": domain.id, "official_doc_urls": domain.official_doc_urls},
            )

        documents = [(await self.fetch_url(url), url) for url in urls]
        result = await self.ingest_documents(
            documents, domain.id, content_type=ContentType.DOCUMENTATION
        )
        result.message = f"Successfully ingested {domain.name} official documentation: {result.chunks} chunks"
        return result
