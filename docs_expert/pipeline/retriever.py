"""
================================================================================
FILE: docs_expert/pipeline/retriever.py
================================================================================

PURPOSE:
    Turns a question into the passages that ground the answer, plus the
    sources those passages can be attributed to.

WORKFLOW:
    1. Resolve the domain (DomainError if unknown or inactive)
    2. Embed the query
    3. Query the domain's namespace for top-K neighbors
    4. Drop matches below the domain's minimum score, keep best-first order
    5. Extract sources (see extract_sources)

SOURCE TIERS:
    1. Documentation links inside the passages, plus passage sources that
       are URLs (normalized, deduplicated, sorted)
    2. Section / source metadata labels, prefixed with the domain label
    3. "<label> Reference N: <excerpt>..." for at most 3 passages

KEY FACTS:
    - No passages above threshold is a valid result, not an error
    - Same query + same index -> same passages and sources, same order
"""

import logging
from typing import List, Optional

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.embeddings_handler import EmbeddingsHandler
from docs_expert.core.vector_db_handler import VectorDBHandler

from .links import clean_link, extract_domain_links, is_url, merge_sources
from .schemas import Domain, RetrievalResult, SearchResult, VectorMatch

logger = logging.getLogger(__name__)


def _to_search_result(match: VectorMatch) -> SearchResult:
    metadata = dict(match.metadata)
    content = str(metadata.pop("content", "") or "")
    source = str(metadata.get("source", "") or "")
    return SearchResult(content=content, source=source, score=match.score, metadata=metadata)


def extract_sources(passages: List[SearchResult], domain: Domain) -> List[str]:
    """Three-tier source attribution for a non-empty passage list."""
    if not passages:
        return []

    # Tier 1: links
    urls: List[str] = []
    for passage in passages:
        urls = merge_sources(urls, extract_domain_links(passage.content, domain))
        if is_url(passage.source):
            cleaned = clean_link(passage.source, domain.site_url)
            if cleaned:
                urls = merge_sources(urls, [cleaned])
    if urls:
        return sorted(urls)

    # Tier 2: section / source labels
    labels: List[str] = []
    for passage in passages:
        for value in (passage.metadata.get("section"), passage.metadata.get("source"), passage.source):
            if isinstance(value, str) and value.strip():
                label = value if is_url(value) else f"{domain.source_label}: {value.strip()}"
                labels = merge_sources(labels, [label])
    if labels:
        return sorted(labels)

    # Tier 3: excerpt placeholders
    excerpts = []
    for index, passage in enumerate(passages[: constants.MAX_EXCERPT_SOURCES], start=1):
        excerpt = " ".join(passage.content.split())[: constants.EXCERPT_SOURCE_CHARS]
        excerpts.append(f"{domain.source_label} Reference {index}: {excerpt}...")
    return sorted(excerpts)


class Retriever:
    """Score-filtered semantic search scoped to one domain."""

    def __init__(
        self,
        registry: DomainRegistry,
        embeddings: EmbeddingsHandler,
        vector_index: VectorDBHandler,
        settings: Settings,
    ):
        self.registry = registry
        self.embeddings = embeddings
        self.vector_index = vector_index
        self.settings = settings
        logger.info("Retriever initialized")

    async def retrieve(
        self,
        query: str,
        domain_id: str,
        top_k: Optional[int] = None,
    ) -> RetrievalResult:
        """
        Raises:
            DomainError: unknown or inactive domain
            EmbeddingError: query embedding failed
            StorageError: vector index query failed
        """
        domain = self.registry.require_active(domain_id)
        top_k = top_k or domain.top_k or self.settings.vector_db_top_k
        min_score = domain.min_score if domain.min_score is not None else self.settings.vector_db_min_score

        vector = await self.embeddings.embed(query)
        matches = await self.vector_index.query(domain.namespace, vector, top_k=top_k)

        passages = [
            _to_search_result(m)
            for m in sorted(matches, key=lambda m: m.score, reverse=True)
            if m.score >= min_score
        ][:top_k]

        sources = extract_sources(passages, domain)
        logger.info(
            f"Retrieved {len(passages)}/{len(matches)} passage(s) above {min_score} "
            f"for '{query[:constants.LOG_QUERY_PREVIEW_CHARS]}'",
            extra={"domain": domain.id, "sources": len(sources)},
        )
        return RetrievalResult(passages=passages, sources=sources)
