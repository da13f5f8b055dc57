"""Chunk -> embed -> upsert ingestion."""

from .service import IngestionService

__all__ = ["IngestionService"]
