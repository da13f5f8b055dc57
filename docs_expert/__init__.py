# docs_expert/__init__.py

"""
Documentation-expert RAG backend package.

This package contains:
- api: FastAPI routes (SSE chat, ingestion) and dependencies
- worker: Redis pub/sub worker and bus client
- config: settings, constants and built-in domains
- core: exceptions, domain registry and provider handlers
- pipeline: retrieval, classification, canned answers and generation
- tools: markdown chunking, ingestion and maintenance checks
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
