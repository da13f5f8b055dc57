"""
================================================================================
FILE: docs_expert/core/redis_handler.py
================================================================================

PURPOSE:
    Redis pub/sub connection handle for the message bus. Used by the worker
    (subscribe to queries, publish responses) and by the bus client
    (subscribe to responses, publish queries).

WORKFLOW:
    1. connect() / `async with RedisHandler(settings)`: build a pool, ping
    2. subscribe(channel) returns a PubSub bound to that channel
    3. publish(channel, payload) with REDIS_TIMEOUT
    4. close() releases the pool

KEY FACTS:
    - One handler per process, reused for every message
    - Strings in, strings out (decode_responses=True)
    - Every failure surfaces as BusError
"""

import asyncio
import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio.client import PubSub

from docs_expert.config.settings import Settings

from .exceptions import BusError

logger = logging.getLogger(__name__)


# ================================================================================
# REDIS HANDLER CLASS
# ================================================================================

class RedisHandler:
    """
    Async Redis client for pub/sub messaging with connection pooling.
    """

    def __init__(self, settings: Settings):
        """
        Args:
            settings: Application settings (Redis URL, pool size, timeout)
        """
        self.settings = settings
        self.pool: Optional[redis.ConnectionPool] = None
        self.client: Optional[redis.Redis] = None
        logger.info("RedisHandler initialized")

    async def __aenter__(self) -> "RedisHandler":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self) -> None:
        """
        Establish the connection pool and verify it with PING.

        Raises:
            BusError: If connection fails
        """
        if self.client is not None:
            return
        try:
            self.pool = redis.ConnectionPool.from_url(
                self.settings.redis_url,
                max_connections=self.settings.redis_pool_size,
                decode_responses=True,  # Return strings, not bytes
                socket_connect_timeout=5,
                socket_keepalive=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)
            await self.ping()
            logger.info("Redis connection pool established and verified")
        except BusError:
            await self.close()
            raise
        except Exception as e:
            await self.close()
            logger.error(f"Failed to connect to Redis: {str(e)}")
            raise BusError(
                "Message bus connection failed",
                context={"reason": str(e)},
            )

    def _require_client(self) -> redis.Redis:
        if self.client is None:
            raise BusError("Message bus is not connected")
        return self.client

    async def ping(self) -> bool:
        client = self._require_client()
        try:
            return bool(
                await asyncio.wait_for(client.ping(), timeout=self.settings.redis_timeout)
            )
        except asyncio.TimeoutError:
            raise BusError(f"Redis PING timeout after {self.settings.redis_timeout}s")
        except Exception as e:
            raise BusError("Redis PING failed", context={"reason": str(e)})

    async def publish(self, channel: str, payload: str) -> int:
        """
        Publish a payload; returns the number of subscribers that received it.

        Raises:
            BusError: If operation fails
        """
        client = self._require_client()
        try:
            receivers = await asyncio.wait_for(
                client.publish(channel, payload),
                timeout=self.settings.redis_timeout,
            )
        except asyncio.TimeoutError:
            raise BusError(
                f"Redis PUBLISH timeout after {self.settings.redis_timeout}s",
                context={"channel": channel},
            )
        except Exception as e:
            raise BusError(
                "Redis PUBLISH failed",
                context={"channel": channel, "reason": str(e)},
            )

        logger.debug(f"Published {len(payload)} bytes to {channel} ({receivers} receiver(s))")
        return int(receivers)

    async def subscribe(self, channel: str) -> PubSub:
        """
        Open a PubSub subscribed to `channel`. The caller closes it.

        Raises:
            BusError: If subscription fails
        """
        client = self._require_client()
        pubsub = client.pubsub(ignore_subscribe_messages=True)
        try:
            await asyncio.wait_for(
                pubsub.subscribe(channel),
                timeout=self.settings.redis_timeout,
            )
        except Exception as e:
            await pubsub.aclose()
            raise BusError(
                "Redis SUBSCRIBE failed",
                context={"channel": channel, "reason": str(e)},
            )

        logger.info(f"Subscribed to {channel}")
        return pubsub

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            logger.info("Redis connection pool closed")
        if self.pool is not None:
            await self.pool.disconnect()
        self.client = None
        self.pool = None
