"""
================================================================================
FILE: docs_expert/api/main.py
================================================================================

PURPOSE:
    FastAPI application factory: lifespan (settings + ServiceContainer),
    request-id middleware, CORS, exception handlers and routes.

WORKFLOW:
    1. create_app(settings=None, container=None)
    2. On startup: load Settings, validate runtime config (fatal on error),
       build and initialize the ServiceContainer, store both on app.state
    3. Every request gets an X-Request-ID
    4. RAGPipelineException -> JSON {error, error_code, details, request_id}
       (ValidationError / DomainError -> 400, everything else -> 500)
    5. On shutdown: ServiceContainer.shutdown()

KEY FACTS:
    - Provider error text never reaches clients ("reason" is stripped)
    - Tests pass their own settings and a container built from fakes
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.container.service_container import ServiceContainer
from docs_expert.core.exceptions import DomainError, RAGPipelineException, ValidationError
from docs_expert.utils import configure_logging, generate_request_id

from . import routes

logger = logging.getLogger(__name__)

# Context keys that may carry raw provider/library error text
_PRIVATE_CONTEXT_KEYS = {"reason"}


def _status_for(exc: RAGPipelineException) -> int:
    if isinstance(exc, (ValidationError, DomainError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _public_details(exc: RAGPipelineException) -> dict:
    return {k: v for k, v in exc.context.items() if k not in _PRIVATE_CONTEXT_KEYS}


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Pre-built settings (default: loaded from env/.env at startup)
        container: Pre-built container (default: built from settings at startup)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 80)
        logger.info("APPLICATION STARTUP")
        logger.info("=" * 80)

        app_settings = settings
        if app_settings is None:
            app_settings = Settings()
            configure_logging(app_settings.log_level, app_settings.log_format)

        app_container = container
        if app_container is None:
            # ConfigurationError aborts startup
            app_settings.validate_runtime()
            app_container = ServiceContainer(app_settings)

        try:
            await app_container.initialize()
        except Exception as e:
            logger.error(f"STARTUP FAILED: {e}", exc_info=True)
            raise

        app.state.settings = app_settings
        app.state.container = app_container
        logger.info(
            f"Providers: llm={app_settings.llm_provider} ({app_settings.chat_model}) | "
            f"embeddings={app_settings.embeddings_provider} | "
            f"vector_db={app_settings.vector_db_provider} | "
            f"default_domain={app_settings.default_domain}"
        )
        logger.info("APPLICATION STARTUP COMPLETE")

        yield

        logger.info("APPLICATION SHUTDOWN")
        await app_container.shutdown()
        logger.info("APPLICATION SHUTDOWN COMPLETE")

    app = FastAPI(
        title=constants.API_TITLE,
        description=constants.API_DESCRIPTION,
        version=constants.API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["X-Request-ID"],
    )

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================
    @app.exception_handler(RAGPipelineException)
    async def rag_exception_handler(request: Request, exc: RAGPipelineException):
        request_id = getattr(request.state, "request_id", "unknown")
        status_code = _status_for(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(
            f"Request failed [{request_id}]: {exc}",
            extra={"request_id": request_id, "error_code": exc.error_code, "context": exc.context},
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.message,
                "error_code": exc.error_code,
                "details": _public_details(exc),
                "request_id": request_id,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, "request_id", "unknown")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request",
                "error_code": "VALIDATION_ERROR",
                "details": {"errors": [e.get("msg") for e in exc.errors()]},
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(f"Unexpected error [request_id={request_id}]: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "details": {"message": "An unexpected error occurred"},
                "request_id": request_id,
            },
        )

    # =========================================================================
    # MIDDLEWARE
    # =========================================================================
    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next):
        request.state.request_id = generate_request_id()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.include_router(routes.router)
    return app


# Settings are read in the lifespan, so importing this module has no side effects
app = create_app()
