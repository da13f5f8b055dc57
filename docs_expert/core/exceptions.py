"""
================================================================================
FILE: docs_expert/core/exceptions.py
================================================================================

PURPOSE:
    Exception hierarchy for the documentation-expert backend. Every failure
    the pipeline can surface is one of these types, so adapters can choose
    user-facing wording and HTTP status without inspecting provider errors.

WORKFLOW:
    1. RAGPipelineException is the root (message, error_code, context)
    2. RecoverableException: transient provider failure, a caller may retry
    3. FatalException: retrying will not help (bad config, bad input)
    4. Handlers wrap raw provider exceptions into the specific types below

KEY FACTS:
    - NO imports from docs_expert modules (prevents circular dependencies)
    - Nothing in the core retries; the split only tells callers what is safe
    - `message` is safe to show a user; raw provider text goes in `context`

EXCEPTION CATEGORIES:
    - RECOVERABLE:
        * EmbeddingError: embedding endpoint unreachable / rate-limited / malformed
        * CompletionError: chat endpoint failure, before or during streaming
        * StorageError: vector index upsert/query failure (carries stored_count)
        * BusError: Redis publish/subscribe failure
        * BusTimeoutError: no correlated response within the client timeout

    - FATAL:
        * ConfigurationError: missing credential, empty index name
        * DomainError: unknown or inactive domain
        * ValidationError: malformed inbound request
        * UnsupportedFileTypeError: upload with an extension we cannot read
        * ServiceInitializationError: provider failed to load at startup
"""

# ================================================================================
# IMPORTS
# ================================================================================

import asyncio
from typing import Any, Dict, Optional

# ================================================================================
# SECTION 1: BASE EXCEPTIONS
# ================================================================================

class RAGPipelineException(Exception):
    """
    Root exception for all pipeline errors.

    Attributes:
        message (str): Human-readable error message
        error_code (str): Machine-readable error code for categorization
        context (dict): Additional context for logs (optional)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dict for JSON response"""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context
        }


class RecoverableException(RAGPipelineException):
    """Transient failure; the caller decides whether to retry."""
    pass


class FatalException(RAGPipelineException):
    """Permanent failure; fail fast, never retry."""
    pass

# ================================================================================
# SECTION 2: PROVIDER EXCEPTIONS (recoverable)
# ================================================================================

class EmbeddingError(RecoverableException):
    """Embedding generation failure"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="EMBEDDING_ERROR", context=context)


class CompletionError(RecoverableException):
    """Chat completion failure (request or mid-stream)"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="COMPLETION_ERROR", context=context)


class StorageError(RecoverableException):
    """
    Vector index failure.

    For upserts, `stored_count` is the number of records written by the
    batches that completed before the failing one.
    """

    def __init__(
        self,
        message: str,
        stored_count: int = 0,
        context: Optional[Dict] = None
    ):
        context = dict(context or {})
        context.setdefault("stored_count", stored_count)
        super().__init__(message, error_code="STORAGE_ERROR", context=context)
        self.stored_count = stored_count


class BusError(RecoverableException):
    """Message bus (Redis pub/sub) failure"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="BUS_ERROR", context=context)


class BusTimeoutError(BusError, asyncio.TimeoutError):
    """No correlated response arrived before the client timeout"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, context=context)
        self.error_code = "BUS_TIMEOUT"

# ================================================================================
# SECTION 3: FATAL EXCEPTIONS
# ================================================================================

class ConfigurationError(FatalException):
    """Invalid or missing configuration"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class DomainError(FatalException):
    """Unknown or inactive domain requested"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="DOMAIN_ERROR", context=context)


class ValidationError(FatalException):
    """Malformed inbound request"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", context=context)


class UnsupportedFileTypeError(ValidationError):
    """Upload whose type cannot be turned into text"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, context=context)
        self.error_code = "UNSUPPORTED_FILE_TYPE"


class ServiceInitializationError(FatalException):
    """Provider failed to load or initialize at startup"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        super().__init__(message, error_code="INIT_ERROR", context=context)


__all__ = [
    "RAGPipelineException",
    "RecoverableException",
    "FatalException",
    "EmbeddingError",
    "CompletionError",
    "StorageError",
    "BusError",
    "BusTimeoutError",
    "ConfigurationError",
    "DomainError",
    "ValidationError",
    "UnsupportedFileTypeError",
    "ServiceInitializationError",
]
