"""HTTP adapter: FastAPI app, SSE chat route and ingestion routes."""
