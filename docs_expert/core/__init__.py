"""
Core layer: exception taxonomy, domain registry, and the handlers that wrap
the embedding, vector-index, completion and message-bus providers.

Handlers are imported from their modules directly
(`from docs_expert.core.llm_handler import LLMHandler`); only the
exceptions are re-exported here so that config can depend on them.
"""

from .exceptions import (
    BusError,
    BusTimeoutError,
    CompletionError,
    ConfigurationError,
    DomainError,
    EmbeddingError,
    FatalException,
    RAGPipelineException,
    RecoverableException,
    ServiceInitializationError,
    StorageError,
    UnsupportedFileTypeError,
    ValidationError,
)

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
