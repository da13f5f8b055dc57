# ============================================================================
# API Models - Request, Response and Stream Event Schemas
# ============================================================================

"""
Pydantic models for API request/response validation and the SSE event
payloads. Used for type hints and OpenAPI documentation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# REQUEST MODELS
# ============================================================================


class ChatRequest(BaseModel):
    """
    Body of POST /chat.

    `message` is optional at the schema level so a missing message gets the
    same 400 as a blank one.
    """

    message: Optional[str] = Field(None, description="User question")
    domain: Optional[str] = Field(None, description="Domain id (defaults to DEFAULT_DOMAIN)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "How do I configure retries for a step?",
                "domain": "inngest",
            }
        }
    )


# ============================================================================
# STREAM EVENTS
# ============================================================================


class StreamEventType(str, Enum):
    METADATA = "metadata"
    CONTENT = "content"
    COMPLETION = "completion"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One `data:` line of the chat event stream."""

    type: StreamEventType
    content: Optional[str] = None
    sources: Optional[List[str]] = None
    error: Optional[str] = None
    domain: Optional[str] = None
    path: Optional[str] = None
    request_id: Optional[str] = Field(None, serialization_alias="requestId")
    timestamp: Optional[str] = None

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json(exclude_none=True, by_alias=True)}\n\n"

    @classmethod
    def metadata(cls, sources: List[str], domain: str, path: str, request_id: str) -> "StreamEvent":
        return cls(
            type=StreamEventType.METADATA,
            sources=sources,
            domain=domain,
            path=path,
            request_id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


# ============================================================================
# RESPONSE MODELS
# ============================================================================


class IngestResponse(BaseModel):
    success: bool
    domain: str
    chunks: int
    message: str


class IngestInfoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    info: str
    supported_formats: List[str] = Field(..., serialization_alias="supportedFormats")
    max_file_size: str = Field(..., serialization_alias="maxFileSize")
    domains: List[str]


class DomainSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


class DomainsResponse(BaseModel):
    domains: List[DomainSummary]


class HealthCheckResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx JSON response."""

    error: str
    error_code: Optional[str] = None
    details: Optional[dict] = None
    request_id: Optional[str] = None
