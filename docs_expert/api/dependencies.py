"""
================================================================================
FILE: docs_expert/api/dependencies.py
================================================================================

PURPOSE:
    FastAPI dependency functions. Everything is read from app.state, which
    the lifespan handler fills at startup, so tests can build an app around
    a container of fakes.

DEPENDENCY CHAIN:
    get_settings()
    get_container()
    ├─ get_generator()   -> POST /chat
    ├─ get_ingestion()   -> POST /ingest
    └─ get_registry()    -> GET /ingest, GET /domains
    get_request_id()     -> every route (correlation)
"""

import logging

from fastapi import Depends, HTTPException, Request, status

from docs_expert.config.settings import Settings
from docs_expert.container.service_container import ServiceContainer
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.pipeline.generator import ResponseGenerator
from docs_expert.tools.ingestion import IngestionService
from docs_expert.utils import generate_request_id

logger = logging.getLogger(__name__)


async def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        logger.error("Settings not available (startup failed?)")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Service initialization failed",
        )
    return settings


async def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        logger.error("Container not available (startup failed?)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service container not initialized",
        )
    return container


async def get_generator(container: ServiceContainer = Depends(get_container)) -> ResponseGenerator:
    return container.get_generator()


async def get_ingestion(container: ServiceContainer = Depends(get_container)) -> IngestionService:
    return container.get_ingestion()


async def get_registry(container: ServiceContainer = Depends(get_container)) -> DomainRegistry:
    return container.registry


async def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or generate_request_id()
