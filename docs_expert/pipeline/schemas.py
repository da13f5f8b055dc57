"""
================================================================================
FILE: docs_expert/pipeline/schemas.py
================================================================================

PURPOSE:
    Data models shared by the pipeline, the delivery adapters and ingestion.
    Pydantic models for anything crossing a process boundary (bus events,
    API payloads, stored chunk metadata); str Enums for pipeline flags.

SECTIONS:
    1. Enumerations (classification label, response path, content type)
    2. Domain
    3. Document chunks and search results
    4. Message-bus events
    5. Ingestion results

KEY FACTS:
    - No imports from other docs_expert modules (prevents circular deps)
    - Bus events serialize with camelCase aliases (userId, channelId)
    - Search results are only built for matches that cleared the threshold
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Epoch milliseconds, the timestamp unit used on the bus and in record ids."""
    return int(time.time() * 1000)


# ================================================================================
# SECTION 1: ENUMERATIONS
# ================================================================================

class ClassificationLabel(str, Enum):
    """
    Triage label for an incoming message.

    GENERIC: greeting, test message, no real question
    SPECIFIC: needs retrieval (also the fallback on classifier failure)
    """
    GENERIC = "generic"
    SPECIFIC = "specific"


class ResponsePath(str, Enum):
    """Which branch of the generator produced the answer."""
    CANNED_GENERIC = "canned_generic"
    CANNED_MATCH = "canned_match"
    NO_CONTEXT = "no_context"
    GENERATE = "generate"


class ContentType(str, Enum):
    """Origin tag stored on every chunk."""
    DOCUMENTATION = "documentation"
    CUSTOM = "custom"
    MANUAL = "manual"


# ================================================================================
# SECTION 2: DOMAIN
# ================================================================================

class Domain(BaseModel):
    """
    A named knowledge scope with its own namespace and system prompt.

    Attributes:
        id: Registry key, also used in record ids and bus events
        name: Human-readable name
        namespace: Vector-index partition holding this domain's chunks
        system_prompt: Instructions for the completion model
        is_active: Inactive domains are rejected by retrieval and generation
        label: Prefix for metadata-derived sources (defaults to name)
        site_url: Base URL used to absolutize relative documentation links
        link_path_prefixes: Path prefixes recognized as documentation links
        official_doc_urls: Documents fetched by official-docs ingestion
        suggested_questions: Shown in greeting and no-context answers
        min_score / top_k: Optional per-domain retrieval overrides
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)
    system_prompt: str = Field(..., min_length=1)
    is_active: bool = True
    description: Optional[str] = None
    icon: Optional[str] = None
    label: Optional[str] = None
    source: Optional[str] = None
    site_url: Optional[str] = None
    link_path_prefixes: List[str] = Field(
        default_factory=lambda: ["docs", "guides", "reference", "learn", "blog"]
    )
    official_doc_urls: List[str] = Field(default_factory=list)
    suggested_questions: List[str] = Field(default_factory=list)
    min_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1, le=100)

    @property
    def source_label(self) -> str:
        return self.label or self.name

    @property
    def general_help_source(self) -> str:
        """Placeholder source attached to no-context answers."""
        return f"{self.id}-general-help"

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
        }


# ================================================================================
# SECTION 3: CHUNKS & SEARCH RESULTS
# ================================================================================

class ChunkMetadata(BaseModel):
    """Metadata stored next to every vector."""

    model_config = ConfigDict(extra="allow")

    source: str
    section: Optional[str] = None
    subsection: Optional[str] = None
    type: ContentType = ContentType.DOCUMENTATION
    chunk_index: int = Field(default=0, ge=0)
    domain: str


class DocumentChunk(BaseModel):
    """A bounded passage of source text plus its metadata."""

    content: str
    metadata: ChunkMetadata


class VectorRecord(BaseModel):
    """One (id, vector, metadata) triple handed to the vector index."""

    id: str
    vector: List[float]
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """Raw nearest-neighbor hit as returned by the vector index."""

    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    """A passage that cleared the domain's score threshold."""

    content: str
    source: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    """Ordered passages (descending score) plus their deduplicated sources."""

    passages: List[SearchResult] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.passages


class CannedResponse(BaseModel):
    """Pre-written answer returned without any model call."""

    key: str
    response: str
    sources: List[str]


# ================================================================================
# SECTION 4: MESSAGE-BUS EVENTS
# ================================================================================

class QueryEvent(BaseModel):
    """Inbound question on the query channel."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., alias="userId")
    channel_id: str = Field(..., alias="channelId")
    message: str
    domain: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)


class ResponseEvent(BaseModel):
    """Exactly one of these is published per QueryEvent."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(..., alias="userId")
    channel_id: str = Field(..., alias="channelId")
    response: str
    sources: List[str] = Field(default_factory=list)
    success: bool
    timestamp: int = Field(default_factory=now_ms)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ================================================================================
# SECTION 5: INGESTION
# ================================================================================

class IngestionResult(BaseModel):
    success: bool
    message: str
    chunks: int = 0
    domain: str
    source: Optional[str] = None
