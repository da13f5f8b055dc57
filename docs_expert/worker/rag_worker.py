"""
================================================================================
FILE: docs_expert/worker/rag_worker.py
================================================================================

PURPOSE:
    Message-bus adapter. Listens on the query channel, runs each query
    through the ResponseGenerator, drains the answer into one string and
    publishes exactly one ResponseEvent per query.

WORKFLOW:
    start():  PING the bus, SUBSCRIBE to RAG_QUERY_CHANNEL
    run():    poll messages until stop(); one query at a time
    handle_message(raw):
        1. Unparseable JSON -> logged and dropped (no id to answer)
        2. Parsed but invalid -> success:false response if an id is present
        3. Valid QueryEvent -> process_query()
    process_query(event):
        generate -> collect -> publish success:true
        any exception -> publish success:false with a user-safe message
    stop():   idempotent; unsubscribe, close the pubsub and the pool

KEY FACTS:
    - Never lets an exception escape a message handler
    - No de-duplication of query ids (callers handle redelivery)
    - Correlation is by id only; responses may be published out of order
      across multiple workers
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.exceptions import BusError, RAGPipelineException
from docs_expert.core.redis_handler import RedisHandler
from docs_expert.pipeline.generator import ResponseGenerator
from docs_expert.pipeline.schemas import QueryEvent, ResponseEvent

logger = logging.getLogger(__name__)


class RAGWorker:
    """Pub/sub worker publishing one response per query."""

    def __init__(self, generator: ResponseGenerator, bus: RedisHandler, settings: Settings):
        self.generator = generator
        self.bus = bus
        self.settings = settings
        self._pubsub: Optional[Any] = None
        self._running = False
        self._loop_active = False
        self._closed = False
        self.processed = 0

    @property
    def is_running(self) -> bool:
        return self._running

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def start(self) -> None:
        """
        Raises:
            BusError: bus unreachable or subscription failed
        """
        if self._running:
            logger.info("RAG worker already running")
            return

        await self.bus.ping()
        logger.info("✓ Message bus connected")
        self._pubsub = await self.bus.subscribe(self.settings.query_channel)
        self._running = True
        self._closed = False
        logger.info(f"RAG worker started, listening on {self.settings.query_channel}")

    async def run(self) -> None:
        """Process messages until stop() is called."""
        if not self._running:
            await self.start()

        self._loop_active = True
        try:
            while self._running:
                try:
                    message = await self._pubsub.get_message(
                        ignore_subscribe_messages=True,
                        timeout=constants.WORKER_POLL_INTERVAL_S,
                    )
                except Exception as e:
                    raise BusError("Lost connection to the message bus", context={"reason": str(e)})

                if message is None:
                    continue
                await self.handle_message(message.get("data"))
        finally:
            self._loop_active = False
            await self._close()

    async def stop(self) -> None:
        """Stop listening; safe to call repeatedly and from signal handlers."""
        if self._running:
            logger.info("Stopping RAG worker...")
            self._running = False
        if self._loop_active:
            # run() closes the subscription when its loop exits
            return
        await self._close()

    async def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._running = False

        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe()
                await self._pubsub.aclose()
            except Exception as e:
                logger.warning(f"Error closing subscription: {e}")
            self._pubsub = None

        await self.bus.close()
        logger.info(f"✓ RAG worker stopped ({self.processed} queries processed)")

    # ========================================================================
    # MESSAGE HANDLING
    # ========================================================================

    async def handle_message(self, raw: Any) -> Optional[ResponseEvent]:
        """Parse one bus payload and answer it; returns the published response."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Dropping unparseable query payload: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Dropping query payload of type {type(data).__name__}")
            return None

        try:
            event = QueryEvent.model_validate(data)
        except PydanticValidationError as e:
            query_id = data.get("id")
            if not query_id:
                logger.error("Dropping invalid query payload without id")
                return None
            logger.error(f"Invalid query payload {query_id}: {e.error_count()} error(s)")
            return await self._publish(
                ResponseEvent(
                    id=str(query_id),
                    user_id=str(data.get("userId") or ""),
                    channel_id=str(data.get("channelId") or ""),
                    response=constants.WORKER_FAILURE_MESSAGE,
                    sources=[],
                    success=False,
                )
            )

        return await self.process_query(event)

    async def process_query(self, event: QueryEvent) -> ResponseEvent:
        logger.info(
            f"Processing query {event.id[:8]}...",
            extra={"query_id": event.id, "domain": event.domain},
        )

        try:
            answer = await self.generator.generate(event.message, event.domain)
            text = await answer.collect()
            response = ResponseEvent(
                id=event.id,
                user_id=event.user_id,
                channel_id=event.channel_id,
                response=text,
                sources=answer.sources,
                success=True,
            )
            logger.info(
                f"Completed query {event.id[:8]}... via {answer.path.value}",
                extra={"query_id": event.id, "path": answer.path.value},
            )
        except RAGPipelineException as e:
            logger.error(
                f"Failed to process query {event.id}: {e}",
                extra={"query_id": event.id, "error_code": e.error_code},
            )
            response = self._failure(event)
        except Exception as e:
            logger.error(f"Unexpected failure processing query {event.id}: {e}", exc_info=True)
            response = self._failure(event)

        self.processed += 1
        return await self._publish(response)

    def _failure(self, event: QueryEvent) -> ResponseEvent:
        return ResponseEvent(
            id=event.id,
            user_id=event.user_id,
            channel_id=event.channel_id,
            response=constants.WORKER_FAILURE_MESSAGE,
            sources=[],
            success=False,
        )

    async def _publish(self, response: ResponseEvent) -> ResponseEvent:
        try:
            await self.bus.publish(self.settings.response_channel, response.to_json())
        except BusError as e:
            # The caller's timeout is the only remaining signal
            logger.error(
                f"Could not publish response {response.id}: {e}",
                extra={"query_id": response.id},
            )
        return response
