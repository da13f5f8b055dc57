"""
================================================================================
SERVICE CONTAINER - PROVIDER DISCOVERY & WIRING
================================================================================

One instance of every provider, handler and pipeline component per process,
created at startup and injected everywhere else.

TWO-LAYER SWAPPABILITY:

Layer 1: .env selects the provider MODULE
  Example: LLM_PROVIDER=gemini  ->  docs_expert.providers.llm.gemini

Layer 2: the provider module's create_provider(settings) builds the instance
  with its own defaults baked in

USAGE:

  container = ServiceContainer(settings)
  await container.initialize()
  stream = await container.generator.generate("How do I retry a step?")
  ...
  await container.shutdown()

Tests pass pre-built providers (fakes) to the constructor; those skip Layer 1
and are still initialized and shut down by the container.
"""

import importlib
import logging
from typing import Any, Optional

from docs_expert.config.settings import Settings
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.embeddings_handler import EmbeddingsHandler
from docs_expert.core.exceptions import ServiceInitializationError
from docs_expert.core.llm_handler import LLMHandler
from docs_expert.core.vector_db_handler import VectorDBHandler
from docs_expert.pipeline.canned_responses import CannedResponseMatcher
from docs_expert.pipeline.classifier import QueryClassifier
from docs_expert.pipeline.generator import ResponseGenerator
from docs_expert.pipeline.retriever import Retriever
from docs_expert.providers.embeddings.base import IEmbeddingsProvider
from docs_expert.providers.llm.base import ILLMProvider
from docs_expert.providers.vectordb.base import IVectorDBProvider
from docs_expert.tools.ingestion import IngestionService

logger = logging.getLogger(__name__)

PROVIDER_PACKAGE = "docs_expert.providers"


class ServiceContainer:
    """
    Dependency injection container for providers and pipeline components.
    """

    def __init__(
        self,
        settings: Settings,
        llm_provider: Optional[ILLMProvider] = None,
        embeddings_provider: Optional[IEmbeddingsProvider] = None,
        vector_db_provider: Optional[IVectorDBProvider] = None,
        registry: Optional[DomainRegistry] = None,
        matcher: Optional[CannedResponseMatcher] = None,
    ) -> None:
        """
        Args:
            settings: Application settings
            llm_provider / embeddings_provider / vector_db_provider:
                Optional pre-built providers; skip dynamic loading
            registry: Optional domain registry (defaults to built-in domains)
            matcher: Optional canned-response matcher (defaults to the built-in table)
        """
        self.settings = settings

        self._llm: Optional[ILLMProvider] = llm_provider
        self._embeddings: Optional[IEmbeddingsProvider] = embeddings_provider
        self._vectordb: Optional[IVectorDBProvider] = vector_db_provider

        self.registry = registry or DomainRegistry()
        self.matcher = matcher or CannedResponseMatcher()

        self.llm_handler: Optional[LLMHandler] = None
        self.embeddings_handler: Optional[EmbeddingsHandler] = None
        self.vector_db_handler: Optional[VectorDBHandler] = None
        self.classifier: Optional[QueryClassifier] = None
        self.retriever: Optional[Retriever] = None
        self.generator: Optional[ResponseGenerator] = None
        self.ingestion: Optional[IngestionService] = None

        self._initialized = False
        logger.info("ServiceContainer instantiated")

    async def initialize(self) -> None:
        """
        Load and initialize providers, then wire handlers and pipeline.

        Raises:
            ServiceInitializationError: a provider could not be loaded or started
        """
        if self._initialized:
            return

        logger.info("=" * 80)
        logger.info("INITIALIZING SERVICE CONTAINER")
        logger.info("=" * 80)

        self._llm = await self._prepare("llm", self.settings.llm_provider, self._llm)
        self._embeddings = await self._prepare(
            "embeddings", self.settings.embeddings_provider, self._embeddings
        )
        self._vectordb = await self._prepare(
            "vectordb", self.settings.vector_db_provider, self._vectordb
        )

        self.llm_handler = LLMHandler(self._llm, self.settings)
        self.embeddings_handler = EmbeddingsHandler(self._embeddings, self.settings)
        self.vector_db_handler = VectorDBHandler(self._vectordb, self.settings)

        self.classifier = QueryClassifier(self.llm_handler, self.settings)
        self.retriever = Retriever(
            self.registry, self.embeddings_handler, self.vector_db_handler, self.settings
        )
        self.generator = ResponseGenerator(
            registry=self.registry,
            classifier=self.classifier,
            matcher=self.matcher,
            retriever=self.retriever,
            llm=self.llm_handler,
            settings=self.settings,
        )
        self.ingestion = IngestionService(
            self.registry, self.embeddings_handler, self.vector_db_handler, self.settings
        )

        self._initialized = True
        logger.info("=" * 80)
        logger.info("✓ ServiceContainer initialized successfully")
        logger.info("=" * 80)

    async def _prepare(self, provider_type: str, provider_name: str, provider: Optional[Any]) -> Any:
        if provider is None:
            provider = self._load_provider(provider_type, provider_name)
        else:
            logger.info(f"Using supplied {provider_type} provider: {provider.__class__.__name__}")

        try:
            await provider.initialize()
        except Exception as e:
            logger.error(f"Failed to initialize {provider_type} provider: {e}", exc_info=True)
            raise ServiceInitializationError(
                f"Failed to initialize {provider_type} provider '{provider_name}': {e}",
                context={"provider_type": provider_type, "provider": provider_name},
            )

        logger.info(f"✓ {provider_type.upper()} initialized: {provider.__class__.__name__}")
        return provider

    def _load_provider(self, provider_type: str, provider_name: str) -> Any:
        """
        Layer 1: import docs_expert.providers.<type>.<name>
        Layer 2: call its create_provider(settings)
        """
        full_path = f"{PROVIDER_PACKAGE}.{provider_type}.{provider_name}"
        logger.info(f"[Layer 1] Loading {provider_type} provider from {full_path}")

        try:
            module = importlib.import_module(full_path)
        except ImportError as e:
            raise ServiceInitializationError(
                f"Failed to import {provider_type} provider '{provider_name}' from {full_path}: {e}",
                context={"provider_type": provider_type, "provider": provider_name},
            )

        factory = getattr(module, "create_provider", None)
        if factory is None:
            raise ServiceInitializationError(
                f"Provider module {full_path} does not define create_provider(settings)",
                context={"provider_type": provider_type, "provider": provider_name},
            )

        provider = factory(self.settings)
        logger.info(f"[Layer 2] Built {provider.__class__.__name__}")
        return provider

    async def shutdown(self) -> None:
        """Shutdown all providers; errors are logged, not raised."""
        logger.info("Shutting down ServiceContainer...")

        providers = [
            ("LLM", self._llm),
            ("Embeddings", self._embeddings),
            ("VectorDB", self._vectordb),
        ]
        for name, provider in providers:
            if provider is None:
                continue
            try:
                await provider.shutdown()
                logger.info(f"✓ {name} shutdown complete")
            except Exception as e:
                logger.error(f"Error shutting down {name}: {e}")

        self._initialized = False
        logger.info("✓ ServiceContainer shutdown complete")

    # ========================================================================
    # ACCESSOR METHODS
    # ========================================================================

    def get_llm(self) -> ILLMProvider:
        if self._llm is None:
            raise RuntimeError("LLM provider not initialized")
        return self._llm

    def get_vector_db(self) -> IVectorDBProvider:
        if self._vectordb is None:
            raise RuntimeError("VectorDB provider not initialized")
        return self._vectordb

    def get_generator(self) -> ResponseGenerator:
        if self.generator is None:
            raise RuntimeError("ServiceContainer not initialized")
        return self.generator

    def get_ingestion(self) -> IngestionService:
        if self.ingestion is None:
            raise RuntimeError("ServiceContainer not initialized")
        return self.ingestion

    def get_retriever(self) -> Retriever:
        if self.retriever is None:
            raise RuntimeError("ServiceContainer not initialized")
        return self.retriever
