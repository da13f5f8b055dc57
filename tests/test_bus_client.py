"""Tests for the correlating bus client."""

import asyncio
import json

import pytest

from docs_expert.core.exceptions import BusTimeoutError
from docs_expert.pipeline.schemas import ResponseEvent
from docs_expert.worker import RAGBusClient


async def _answer_next_query(bus, settings, replies):
    """Wait for one query, then publish `replies(query_id)` on the response channel."""
    pubsub = await bus.subscribe(settings.query_channel)
    message = None
    while message is None:
        message = await pubsub.get_message(timeout=1.0)
    query = json.loads(message["data"])
    for payload in replies(query):
        await bus.publish(settings.response_channel, payload)
    return query


def _response(query_id, text, success=True):
    return ResponseEvent(
        id=query_id, user_id="u", channel_id="c", response=text, sources=[], success=success
    ).to_json()


async def test_ignores_other_ids_and_garbage(bus, settings):
    responder = asyncio.create_task(
        _answer_next_query(
            bus,
            settings,
            lambda q: [_response("someone-else", "wrong"), "{not json", _response(q["id"], "right")],
        )
    )
    await asyncio.sleep(0)

    response = await RAGBusClient(bus, settings).ask("How do steps work?", domain="inngest", timeout=5)
    query = await responder

    assert response.response == "right"
    assert response.id == query["id"]
    assert query["message"] == "How do steps work?"
    assert query["domain"] == "inngest"
    assert query["userId"] == "cli"
    assert query["channelId"] == "cli"


async def test_timeout_when_nobody_answers(bus, settings):
    with pytest.raises(BusTimeoutError):
        await RAGBusClient(bus, settings).ask("hello?", timeout=0.05)

    assert bus.subscribers[settings.response_channel] == []


async def test_timeout_is_an_asyncio_timeout(bus, settings):
    with pytest.raises(asyncio.TimeoutError):
        await RAGBusClient(bus, settings).ask("hello?", timeout=0.01)
