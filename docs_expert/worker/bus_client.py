"""
Caller side of the bus protocol: publish a QueryEvent and wait for the
ResponseEvent with the same id.

The response channel is subscribed *before* the query is published so a
fast worker cannot answer into the void. Responses for other ids are
ignored. Delivery is not guaranteed, so every call has a timeout.
"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.exceptions import BusTimeoutError
from docs_expert.core.redis_handler import RedisHandler
from docs_expert.pipeline.schemas import QueryEvent, ResponseEvent
from docs_expert.utils import generate_request_id

logger = logging.getLogger(__name__)


class RAGBusClient:
    def __init__(self, bus: RedisHandler, settings: Settings):
        self.bus = bus
        self.settings = settings

    async def ask(
        self,
        message: str,
        user_id: str = "cli",
        channel_id: str = "cli",
        domain: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ResponseEvent:
        """
        Raises:
            BusTimeoutError: no matching response within `timeout` seconds
            BusError: publish/subscribe failed
        """
        timeout = self.settings.bus_client_timeout if timeout is None else timeout
        event = QueryEvent(
            id=generate_request_id(),
            user_id=user_id,
            channel_id=channel_id,
            message=message,
            domain=domain,
        )

        pubsub = await self.bus.subscribe(self.settings.response_channel)
        try:
            await self.bus.publish(
                self.settings.query_channel, event.model_dump_json(by_alias=True)
            )
            logger.info(f"Published query {event.id[:8]}..., waiting up to {timeout}s")
            return await self._wait_for(pubsub, event.id, timeout)
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()

    async def _wait_for(self, pubsub, query_id: str, timeout: float) -> ResponseEvent:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise BusTimeoutError(
                    f"No response for query {query_id} within {timeout}s",
                    context={"query_id": query_id},
                )

            message = await pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=min(remaining, constants.WORKER_POLL_INTERVAL_S),
            )
            if message is None:
                continue

            try:
                response = ResponseEvent.model_validate_json(message.get("data") or "")
            except PydanticValidationError:
                logger.debug("Ignoring malformed response payload")
                continue

            if response.id == query_id:
                return response
