"""
================================================================================
FILE: docs_expert/config/settings.py
================================================================================

PURPOSE:
    Application settings loaded from environment variables (and an optional
    .env file). Uses pydantic-settings BaseSettings for validation and type
    coercion. Single source of truth for provider selection, credentials,
    retrieval limits, ingestion batching, message-bus channels and logging.

WORKFLOW:
    1. At startup, python-dotenv loads .env into the process environment
    2. Settings() reads every aliased field from the environment
    3. Range validation (top-K, score threshold, chunk bounds) fails fast
    4. validate_runtime() checks cross-field requirements (credentials for
       the selected provider, index name) and raises ConfigurationError
    5. The settings object is passed to ServiceContainer, handlers and
       pipeline components by constructor injection

CONFIGURATION CATEGORIES:
    1. Provider selection (llm / embeddings / vectordb)
    2. Credentials (OpenAI, Gemini, Qdrant)
    3. Models and generation parameters
    4. Timeouts
    5. Retrieval (index name, top-K, min score)
    6. Ingestion (chunk bounds, upsert batching, embedding truncation)
    7. Message bus (Redis URL, channels, client timeout)
    8. Domain defaults and generic-help sources
    9. Server and logging

KEY FACTS:
    - Every field has an alias equal to its environment variable name
    - Fields can also be set by name (populate_by_name) for tests
    - Secrets are redacted by to_dict(); never log the raw model dump
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docs_expert.config import constants
from docs_expert.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Prefer a .env in the working directory, fall back to the repo root.
_REPO_ROOT_ENV = Path(__file__).resolve().parents[2] / ".env"
_CWD_ENV = Path.cwd() / ".env"
_ENV_PATH = _CWD_ENV if _CWD_ENV.exists() else _REPO_ROOT_ENV

load_dotenv(dotenv_path=_ENV_PATH, override=False)

_SECRET_FIELDS = ("openai_api_key", "gemini_api_key", "qdrant_api_key")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables + .env.

    All fields have aliases matching the .env variable names.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ========================================================================
    # PROVIDER SELECTION
    # ========================================================================

    llm_provider: Literal["openai", "gemini"] = Field(
        default="openai",
        alias="LLM_PROVIDER",
        description="Completion provider module under docs_expert.providers.llm",
    )

    embeddings_provider: Literal["openai", "huggingface"] = Field(
        default="openai",
        alias="EMBEDDINGS_PROVIDER",
        description="Embeddings provider module under docs_expert.providers.embeddings",
    )

    vector_db_provider: Literal["qdrant", "memory"] = Field(
        default="qdrant",
        alias="VECTORDB_PROVIDER",
        description="Vector index provider module under docs_expert.providers.vectordb",
    )

    # ========================================================================
    # CREDENTIALS
    # ========================================================================

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    qdrant_api_key: Optional[str] = Field(default=None, alias="QDRANT_API_KEY")

    # ========================================================================
    # MODELS
    # ========================================================================

    chat_model: str = Field(
        default="gpt-4",
        alias="CHAT_MODEL",
        description="Model used for grounded and no-context answers",
    )

    classifier_model: str = Field(
        default="gpt-4o-mini",
        alias="CLASSIFIER_MODEL",
        description="Cheap model used for generic/specific triage",
    )

    embeddings_model: str = Field(
        default="text-embedding-3-small",
        alias="EMBEDDINGS_MODEL",
    )

    embeddings_device: str = Field(
        default="cpu",
        alias="EMBEDDINGS_DEVICE",
        description="Device for the local sentence-transformers provider",
    )

    embeddings_batch_size: int = Field(
        default=64,
        alias="EMBEDDINGS_BATCH_SIZE",
        ge=1,
        le=2048,
    )

    llm_temperature: float = Field(
        default=0.1,
        alias="LLM_TEMPERATURE",
        ge=0.0,
        le=2.0,
    )

    llm_max_tokens: int = Field(
        default=2048,
        alias="LLM_MAX_TOKENS",
        ge=1,
        le=32768,
    )

    # ========================================================================
    # TIMEOUTS (seconds)
    # ========================================================================

    llm_timeout: float = Field(
        default=60.0,
        alias="LLM_TIMEOUT",
        gt=0,
        description="Max wait for a completion, or for the next streamed fragment",
    )

    embeddings_timeout: float = Field(
        default=30.0,
        alias="EMBEDDINGS_TIMEOUT",
        gt=0,
    )

    vector_db_timeout: float = Field(
        default=15.0,
        alias="VECTORDB_TIMEOUT",
        gt=0,
    )

    redis_timeout: float = Field(
        default=5.0,
        alias="REDIS_TIMEOUT",
        gt=0,
    )

    http_fetch_timeout: float = Field(
        default=60.0,
        alias="HTTP_FETCH_TIMEOUT",
        gt=0,
        description="Timeout for downloading documents during URL ingestion",
    )

    # ========================================================================
    # RETRIEVAL
    # ========================================================================

    qdrant_url: str = Field(default="http://localhost:6333", alias="QDRANT_URL")

    vector_index_name: str = Field(
        default="tech-docs",
        alias="VECTOR_INDEX_NAME",
        description="Index name; namespaces become '<index>-<namespace>' collections",
    )

    vector_db_top_k: int = Field(
        default=constants.DEFAULT_TOP_K,
        alias="VECTOR_DB_TOP_K",
        ge=1,
        le=100,
    )

    vector_db_min_score: float = Field(
        default=constants.DEFAULT_MIN_SCORE,
        alias="VECTOR_DB_MIN_SCORE",
        ge=0.0,
        le=1.0,
    )

    # ========================================================================
    # INGESTION
    # ========================================================================

    max_chunk_size: int = Field(
        default=constants.MAX_CHUNK_SIZE,
        alias="MAX_CHUNK_SIZE",
        ge=50,
    )

    min_chunk_size: int = Field(
        default=constants.MIN_CHUNK_SIZE,
        alias="MIN_CHUNK_SIZE",
        ge=1,
    )

    upsert_batch_size: int = Field(
        default=constants.UPSERT_BATCH_SIZE,
        alias="UPSERT_BATCH_SIZE",
        ge=1,
        le=1000,
    )

    upsert_batch_delay: float = Field(
        default=constants.UPSERT_BATCH_DELAY_S,
        alias="UPSERT_BATCH_DELAY",
        ge=0.0,
    )

    embedding_max_input_chars: int = Field(
        default=constants.EMBEDDING_MAX_INPUT_CHARS,
        alias="EMBEDDING_MAX_INPUT_CHARS",
        ge=1,
    )

    max_upload_size_mb: int = Field(
        default=10,
        alias="MAX_UPLOAD_SIZE_MB",
        ge=1,
    )

    # ========================================================================
    # MESSAGE BUS
    # ========================================================================

    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    redis_pool_size: int = Field(default=10, alias="REDIS_POOL_SIZE", ge=1)

    query_channel: str = Field(
        default=constants.QUERY_CHANNEL,
        alias="RAG_QUERY_CHANNEL",
    )

    response_channel: str = Field(
        default=constants.RESPONSE_CHANNEL,
        alias="RAG_RESPONSE_CHANNEL",
    )

    bus_client_timeout: float = Field(
        default=30.0,
        alias="BUS_CLIENT_TIMEOUT",
        gt=0,
    )

    # ========================================================================
    # DOMAIN DEFAULTS
    # ========================================================================

    default_domain: str = Field(default="inngest", alias="DEFAULT_DOMAIN")

    docs_root_url: str = Field(
        default="https://www.inngest.com/docs",
        alias="DOCS_ROOT_URL",
    )

    community_url: str = Field(
        default="https://www.inngest.com/discord",
        alias="COMMUNITY_URL",
    )

    docs_status_file: str = Field(
        default=".docs-status.json",
        alias="DOCS_STATUS_FILE",
    )

    # ========================================================================
    # SERVER & LOGGING
    # ========================================================================

    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    server_port: int = Field(default=8001, alias="SERVER_PORT", ge=1, le=65535)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
    )

    log_format: Literal["json", "text"] = Field(default="text", alias="LOG_FORMAT")

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="ENVIRONMENT",
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("openai_api_key", "gemini_api_key", "qdrant_api_key", mode="before")
    @classmethod
    def _empty_key_is_none(cls, v: Any) -> Any:
        """Treat blank credentials in .env as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _check_chunk_bounds(self) -> "Settings":
        if self.min_chunk_size >= self.max_chunk_size:
            raise ValueError(
                f"MIN_CHUNK_SIZE ({self.min_chunk_size}) must be smaller than "
                f"MAX_CHUNK_SIZE ({self.max_chunk_size})"
            )
        return self

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def resolve_llm_api_key(self) -> Optional[str]:
        """API key for the configured completion provider."""
        if self.llm_provider == "gemini":
            return self.gemini_api_key
        return self.openai_api_key

    def validate_runtime(self) -> None:
        """
        Cross-field checks run once by the API app and the worker at startup.

        Raises:
            ConfigurationError: missing credential for the selected provider,
                                or an empty index name for qdrant
        """
        problems: List[str] = []

        if not self.resolve_llm_api_key():
            env_name = "GEMINI_API_KEY" if self.llm_provider == "gemini" else "OPENAI_API_KEY"
            problems.append(f"{env_name} is required when LLM_PROVIDER={self.llm_provider}")

        if self.embeddings_provider == "openai" and not self.openai_api_key:
            problems.append("OPENAI_API_KEY is required when EMBEDDINGS_PROVIDER=openai")

        if self.vector_db_provider == "qdrant" and not self.vector_index_name.strip():
            problems.append("VECTOR_INDEX_NAME must not be empty when VECTORDB_PROVIDER=qdrant")

        if problems:
            raise ConfigurationError(
                "Invalid runtime configuration: " + "; ".join(problems),
                context={"problems": problems},
            )

    def generic_help_sources(self) -> List[str]:
        return [self.docs_root_url, self.community_url]

    def to_dict(self) -> Dict[str, Any]:
        """Settings dictionary with secrets redacted."""
        d = self.model_dump()
        for k in _SECRET_FIELDS:
            if d.get(k):
                d[k] = "***REDACTED***"
        return d


__all__ = ["Settings"]
