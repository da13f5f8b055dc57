"""Message-bus adapter: the RAG worker and the correlating bus client."""

from .bus_client import RAGBusClient
from .rag_worker import RAGWorker

__all__ = ["RAGBusClient", "RAGWorker"]
