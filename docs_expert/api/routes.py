"""
================================================================================
FILE: docs_expert/api/routes.py
================================================================================

PURPOSE:
    HTTP endpoints.

ENDPOINTS:
    POST /chat     - classify/match/retrieve/generate, streamed as SSE
    POST /ingest   - multipart upload (files, url, text) into a domain
    GET  /ingest   - supported formats and known domains
    GET  /domains  - active domains
    GET  /health   - liveness

CHAT STREAM:
    data: {"type": "metadata", "sources": [...], ...}
    data: {"type": "content", "content": "..."}        (one per fragment)
    data: {"type": "completion", "sources": [...]}     (reconciled sources)
    or, if the stream breaks:
    data: {"type": "error", "error": "..."}

    Failures before the stream starts (blank message, unknown domain,
    embedding/search failure) are JSON errors from the exception handlers
    in main.py.
"""

import logging
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.exceptions import RAGPipelineException, ValidationError
from docs_expert.pipeline.generator import AnswerStream, ResponseGenerator
from docs_expert.tools.ingestion import IngestionService

from .dependencies import (
    get_generator,
    get_ingestion,
    get_registry,
    get_request_id,
    get_settings,
)
from .models import (
    ChatRequest,
    DomainsResponse,
    DomainSummary,
    HealthCheckResponse,
    IngestInfoResponse,
    IngestResponse,
    StreamEvent,
    StreamEventType,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DIRECT_INPUT_SOURCE = "Direct input"


# ============================================================================
# CHAT
# ============================================================================


async def stream_answer(answer: AnswerStream, request_id: str) -> AsyncIterator[str]:
    """Serialize an AnswerStream as SSE; always ends with completion or error."""
    yield StreamEvent.metadata(
        sources=answer.sources,
        domain=answer.domain,
        path=answer.path.value,
        request_id=request_id,
    ).to_sse()

    try:
        async for fragment in answer:
            yield StreamEvent(type=StreamEventType.CONTENT, content=fragment).to_sse()
    except RAGPipelineException as e:
        logger.error(
            f"Answer stream failed [{request_id}]: {e.message}",
            extra={"request_id": request_id, "error_code": e.error_code},
        )
        yield StreamEvent(type=StreamEventType.ERROR, error=constants.STREAM_FAILURE_MESSAGE).to_sse()
        return
    except Exception as e:
        logger.error(
            f"Unexpected answer stream failure [{request_id}]: {e}",
            extra={"request_id": request_id},
            exc_info=True,
        )
        yield StreamEvent(type=StreamEventType.ERROR, error=constants.STREAM_FAILURE_MESSAGE).to_sse()
        return

    yield StreamEvent(
        type=StreamEventType.COMPLETION,
        sources=answer.sources,
        path=answer.path.value,
    ).to_sse()
    logger.info(
        f"Answer streamed [{request_id}] ({len(answer.text)} chars, {len(answer.sources)} sources)",
        extra={"request_id": request_id, "path": answer.path.value},
    )


@router.post("/chat", tags=["chat"])
async def chat(
    body: ChatRequest,
    generator: ResponseGenerator = Depends(get_generator),
    request_id: str = Depends(get_request_id),
):
    """
    Answer a question as a server-sent event stream.

    Raises (converted to JSON by main.py handlers):
        ValidationError: missing/blank message -> 400
        DomainError: unknown/inactive domain -> 400
        EmbeddingError / StorageError: retrieval failed -> 500
    """
    message = (body.message or "").strip()
    logger.info(
        f"Chat request [{request_id}]: '{message[:constants.LOG_QUERY_PREVIEW_CHARS]}'",
        extra={"request_id": request_id, "domain": body.domain},
    )

    answer = await generator.generate(message, body.domain)

    return StreamingResponse(
        stream_answer(answer, request_id),
        media_type=constants.SSE_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ============================================================================
# INGESTION
# ============================================================================


@router.post("/ingest", response_model=IngestResponse, tags=["ingestion"])
async def ingest(
    files: Optional[List[UploadFile]] = File(None),
    url: Optional[str] = Form(None),
    text: Optional[str] = Form(None),
    domain: str = Form(constants.DEFAULT_UPLOAD_DOMAIN),
    ingestion: IngestionService = Depends(get_ingestion),
    registry: DomainRegistry = Depends(get_registry),
    request_id: str = Depends(get_request_id),
) -> IngestResponse:
    """
    Chunk and store uploaded content. Unknown domains are auto-provisioned.

    Raises (converted to JSON by main.py handlers):
        ValidationError: nothing provided, unsupported file, fetch failed -> 400
        EmbeddingError / StorageError -> 500
    """
    files = [f for f in (files or []) if f.filename]
    url = (url or "").strip()
    text = text or ""

    if not files and not url and not text.strip():
        raise ValidationError(
            "Please provide files, URL, or text content",
            context={"hint": "Send 'files', 'url' or 'text' form fields"},
        )

    documents = []
    for upload in files:
        content = await upload.read()
        documents.append((ingestion.read_file(upload.filename, content, upload.content_type), upload.filename))
    if url:
        documents.append((await ingestion.fetch_url(url), url))
    if text.strip():
        documents.append((text, DIRECT_INPUT_SOURCE))

    target = registry.ensure(domain)
    logger.info(
        f"Ingestion request [{request_id}]: {len(documents)} document(s) for {target.id}",
        extra={"request_id": request_id, "domain": target.id},
    )
    result = await ingestion.ingest_documents(documents, target.id)

    return IngestResponse(
        success=result.success,
        domain=result.domain,
        chunks=result.chunks,
        message=f"Successfully ingested {result.chunks} chunks into {result.domain} domain",
    )


@router.get("/ingest", response_model=IngestInfoResponse, response_model_by_alias=True, tags=["ingestion"])
async def ingest_info(
    registry: DomainRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> IngestInfoResponse:
    return IngestInfoResponse(
        info="Document Ingestion API",
        supported_formats=["text/plain", *constants.SUPPORTED_UPLOAD_EXTENSIONS],
        max_file_size=f"{settings.max_upload_size_mb}MB",
        domains=[d.id for d in registry.list_active()],
    )


# ============================================================================
# DOMAINS & HEALTH
# ============================================================================


@router.get("/domains", response_model=DomainsResponse, tags=["domains"])
async def list_domains(registry: DomainRegistry = Depends(get_registry)) -> DomainsResponse:
    return DomainsResponse(
        domains=[DomainSummary(**d.summary()) for d in registry.list_active()]
    )


@router.get("/health", response_model=HealthCheckResponse, tags=["health"])
async def health() -> HealthCheckResponse:
    return HealthCheckResponse(status="ok")
