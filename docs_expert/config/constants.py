"""
================================================================================
FILE: docs_expert/config/constants.py
================================================================================

PURPOSE:
    Application-wide constants. Literal values used as defaults by Settings
    and directly by the pipeline, workers and adapters.

CONSTANT CATEGORIES:
    1. API configuration
    2. Retrieval defaults (top-K, score threshold)
    3. Ingestion limits (chunk bounds, batching, embedding truncation)
    4. Classification call parameters
    5. Message-bus channels and user-facing failure text
    6. Source attribution limits

KEY FACTS:
    - No imports from docs_expert modules (prevents circular deps)
    - Never modified at runtime
"""

# ================================================================================
# API CONFIGURATION
# ================================================================================

API_TITLE = "Docs Expert RAG"
API_DESCRIPTION = "Documentation expert: classify, match, retrieve and stream grounded answers"
API_VERSION = "1.0.0"

SSE_MEDIA_TYPE = "text/event-stream"

# ================================================================================
# RETRIEVAL DEFAULTS
# ================================================================================

DEFAULT_TOP_K = 5
DEFAULT_MIN_SCORE = 0.4

# ================================================================================
# INGESTION LIMITS
# ================================================================================

MAX_CHUNK_SIZE = 1000  # characters
MIN_CHUNK_SIZE = 100  # characters

UPSERT_BATCH_SIZE = 100
UPSERT_BATCH_DELAY_S = 1.0

# Safe input length for the embedding model; longer input is truncated silently
EMBEDDING_MAX_INPUT_CHARS = 8000

TEXT_UPLOAD_EXTENSIONS = (".md", ".markdown", ".txt")
JSON_UPLOAD_EXTENSIONS = (".json",)
BINARY_UPLOAD_EXTENSIONS = (".pdf", ".docx")
SUPPORTED_UPLOAD_EXTENSIONS = TEXT_UPLOAD_EXTENSIONS + JSON_UPLOAD_EXTENSIONS + BINARY_UPLOAD_EXTENSIONS

DEFAULT_UPLOAD_SOURCE = "custom-upload"
DEFAULT_UPLOAD_DOMAIN = "custom"

# ================================================================================
# CLASSIFICATION
# ================================================================================

CLASSIFIER_TEMPERATURE = 0.0
CLASSIFIER_MAX_TOKENS = 10

# ================================================================================
# MESSAGE BUS
# ================================================================================

QUERY_CHANNEL = "rag:query"
RESPONSE_CHANNEL = "rag:response"

WORKER_POLL_INTERVAL_S = 1.0

# Published as the response text whenever the worker fails a query
WORKER_FAILURE_MESSAGE = "I encountered an error processing your request. Please try again."

# Sent in the SSE error event when the answer stream breaks
STREAM_FAILURE_MESSAGE = "Something went wrong while generating the answer. Please try again."

# ================================================================================
# SOURCE ATTRIBUTION
# ================================================================================

# Links shorter than this are fragments, not usable sources
MIN_SOURCE_URL_LENGTH = 21

MAX_EXCERPT_SOURCES = 3
EXCERPT_SOURCE_CHARS = 50

# Logged query text is cut to this length
LOG_QUERY_PREVIEW_CHARS = 50
