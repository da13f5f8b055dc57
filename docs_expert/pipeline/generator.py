"""
================================================================================
FILE: docs_expert/pipeline/generator.py
================================================================================

PURPOSE:
    Response generator. Decides, per message, which of four paths answers
    it and hands back a lazy fragment stream plus its sources. Both delivery
    adapters (SSE route, bus worker) consume the same AnswerStream.

STATE MACHINE:
    START -> classify
        generic  -> CANNED_GENERIC (fixed greeting, no embedding/search/LLM)
        specific -> MATCH_CACHE
    MATCH_CACHE
        canned hit -> CANNED_MATCH (pre-written answer, no model call)
        no hit     -> RETRIEVE
    RETRIEVE
        no passages -> NO_CONTEXT (one completion, sources = general-help placeholder)
        passages    -> GENERATE (grounded completion, sources reconciled at end)
    ERROR
        DomainError / EmbeddingError / StorageError raised from generate()
        CompletionError raised while iterating the stream

KEY FACTS:
    - Classification and canned matching never fail the request
    - Nothing here retries; adapters decide the user-facing wording
    - The stream is forward-only: iterating it twice raises RuntimeError
"""

import logging
from typing import AsyncIterator, Callable, List, Optional

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.domain_registry import DomainRegistry
from docs_expert.core.exceptions import ValidationError
from docs_expert.core.llm_handler import LLMHandler

from .canned_responses import CannedResponseMatcher
from .classifier import QueryClassifier
from .links import extract_domain_links, merge_sources
from .prompts import (
    build_greeting,
    build_grounded_prompt,
    build_no_context_prompt,
    build_no_context_system_prompt,
)
from .retriever import Retriever
from .schemas import ClassificationLabel, Domain, ResponsePath

logger = logging.getLogger(__name__)


async def _single(text: str) -> AsyncIterator[str]:
    yield text


class AnswerStream:
    """
    Lazy, finite, non-restartable sequence of answer fragments.

    `sources` holds what is known before streaming starts (sent in the SSE
    metadata event). Once the stream is exhausted, `finalize` (if any) is
    applied to the full answer text and `sources` becomes the reconciled list.
    """

    def __init__(
        self,
        fragments: AsyncIterator[str],
        path: ResponsePath,
        sources: List[str],
        domain: str,
        finalize: Optional[Callable[[str], List[str]]] = None,
    ):
        self.path = path
        self.sources = list(sources)
        self.domain = domain
        self.completed = False
        self._fragments = fragments
        self._finalize = finalize
        self._parts: List[str] = []
        self._consumed = False

    @classmethod
    def from_text(
        cls, text: str, path: ResponsePath, sources: List[str], domain: str
    ) -> "AnswerStream":
        return cls(_single(text), path, sources, domain)

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __aiter__(self) -> AsyncIterator[str]:
        if self._consumed:
            raise RuntimeError("AnswerStream can only be iterated once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        async for fragment in self._fragments:
            self._parts.append(fragment)
            yield fragment

        if self._finalize is not None:
            self.sources = self._finalize(self.text)
        self.completed = True

    async def collect(self) -> str:
        """Drain the stream into one string (bus worker, CLI)."""
        async for _ in self:
            pass
        return self.text


class ResponseGenerator:
    """Runs the classify -> match -> retrieve -> generate state machine."""

    def __init__(
        self,
        registry: DomainRegistry,
        classifier: QueryClassifier,
        matcher: CannedResponseMatcher,
        retriever: Retriever,
        llm: LLMHandler,
        settings: Settings,
    ):
        self.registry = registry
        self.classifier = classifier
        self.matcher = matcher
        self.retriever = retriever
        self.llm = llm
        self.settings = settings
        logger.info("✓ ResponseGenerator initialized")

    async def generate(self, message: str, domain_id: Optional[str] = None) -> AnswerStream:
        """
        Pick a path for `message` and return its answer stream.

        Args:
            message: User question
            domain_id: Domain to answer from (defaults to DEFAULT_DOMAIN)

        Raises:
            ValidationError: blank message
            DomainError: unknown or inactive domain
            EmbeddingError / StorageError: retrieval failed
        """
        if not message or not message.strip():
            raise ValidationError(
                "Message is required",
                context={"hint": "Send a non-empty 'message' field"},
            )

        domain = self.registry.require_active(domain_id or self.settings.default_domain)
        preview = message[: constants.LOG_QUERY_PREVIEW_CHARS]

        # ============================================================
        # STEP 1: Classify
        # ============================================================

        label = await self.classifier.classify(message)
        if label == ClassificationLabel.GENERIC:
            return self._answer_generic(domain, preview)

        # ============================================================
        # STEP 2: Canned answers
        # ============================================================

        if self.matcher.applies_to(domain.id):
            canned = self.matcher.match(message)
            if canned is not None:
                logger.info(
                    f"Path {ResponsePath.CANNED_MATCH.value} for '{preview}'",
                    extra={"domain": domain.id, "path": ResponsePath.CANNED_MATCH.value, "canned_key": canned.key},
                )
                return AnswerStream.from_text(
                    canned.response, ResponsePath.CANNED_MATCH, canned.sources, domain.id
                )

        # ============================================================
        # STEP 3: Retrieve
        # ============================================================

        retrieval = await self.retriever.retrieve(message, domain.id)

        if retrieval.is_empty:
            return self._answer_without_context(domain, message, preview)

        # ============================================================
        # STEP 4: Grounded generation
        # ============================================================

        logger.info(
            f"Path {ResponsePath.GENERATE.value} for '{preview}' "
            f"({len(retrieval.passages)} passage(s))",
            extra={"domain": domain.id, "path": ResponsePath.GENERATE.value},
        )
        fragments = self.llm.stream(
            system_prompt=domain.system_prompt,
            prompt=build_grounded_prompt(retrieval.passages, message),
            model=self.settings.chat_model,
        )
        retrieved_sources = list(retrieval.sources)

        def reconcile(answer: str) -> List[str]:
            return merge_sources(retrieved_sources, extract_domain_links(answer, domain))

        return AnswerStream(
            fragments,
            ResponsePath.GENERATE,
            retrieved_sources,
            domain.id,
            finalize=reconcile,
        )

    def _answer_generic(self, domain: Domain, preview: str) -> AnswerStream:
        sources = self.settings.generic_help_sources()
        logger.info(
            f"Path {ResponsePath.CANNED_GENERIC.value} for '{preview}'",
            extra={"domain": domain.id, "path": ResponsePath.CANNED_GENERIC.value},
        )
        return AnswerStream.from_text(
            build_greeting(domain, sources), ResponsePath.CANNED_GENERIC, sources, domain.id
        )

    def _answer_without_context(self, domain: Domain, message: str, preview: str) -> AnswerStream:
        logger.info(
            f"Path {ResponsePath.NO_CONTEXT.value} for '{preview}'",
            extra={"domain": domain.id, "path": ResponsePath.NO_CONTEXT.value},
        )
        fragments = self.llm.stream(
            system_prompt=build_no_context_system_prompt(domain),
            prompt=build_no_context_prompt(domain, message),
            model=self.settings.chat_model,
        )
        return AnswerStream(
            fragments, ResponsePath.NO_CONTEXT, [domain.general_help_source], domain.id
        )
