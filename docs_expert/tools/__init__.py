"""Offline tooling: chunking, ingestion and index maintenance."""
