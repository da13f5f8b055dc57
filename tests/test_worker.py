"""Tests for the pub/sub worker: exactly one response per query."""

import asyncio
import json

import pytest

from docs_expert.config import constants
from docs_expert.pipeline.schemas import QueryEvent, ResponseEvent
from docs_expert.worker import RAGBusClient, RAGWorker


def _query(query_id="q-1", message="hi", **extra) -> str:
    payload = {"id": query_id, "userId": "u-1", "channelId": "c-1", "message": message}
    payload.update(extra)
    return json.dumps(payload)


@pytest.fixture()
def worker(generator, bus, settings):
    return RAGWorker(generator, bus, settings)


def _responses(bus, settings):
    return [ResponseEvent.model_validate_json(raw) for raw in bus.published_on(settings.response_channel)]


class TestHandleMessage:
    async def test_greeting_published_once(self, worker, bus, settings, llm):
        llm.classification = "generic"

        await worker.handle_message(_query())

        (response,) = _responses(bus, settings)
        assert response.id == "q-1"
        assert response.user_id == "u-1"
        assert response.channel_id == "c-1"
        assert response.success
        assert response.sources == [settings.docs_root_url, settings.community_url]
        assert worker.processed == 1

    async def test_payload_uses_camel_case(self, worker, bus, settings, llm):
        llm.classification = "generic"

        await worker.handle_message(_query())

        published = json.loads(bus.published_on(settings.response_channel)[0])
        assert {"id", "userId", "channelId", "response", "sources", "success", "timestamp"} <= set(published)

    async def test_no_context_answer_succeeds(self, worker, bus, settings, llm):
        llm.fragments = ["No docs matched, ", "try rephrasing."]

        await worker.handle_message(
            _query(message="Explain the exact retry backoff formula for obscure-feature-X")
        )

        (response,) = _responses(bus, settings)
        assert response.success
        assert response.response == "No docs matched, try rephrasing."
        assert response.sources == ["inngest-general-help"]

    async def test_mid_stream_failure_publishes_failure(self, worker, bus, settings, llm):
        llm.fail_after = 1

        await worker.handle_message(_query(message="Explain obscure-feature-X"))

        (response,) = _responses(bus, settings)
        assert not response.success
        assert response.response == constants.WORKER_FAILURE_MESSAGE
        assert response.sources == []

    async def test_unknown_domain_publishes_failure(self, worker, bus, settings):
        await worker.handle_message(_query(domain="nope"))

        (response,) = _responses(bus, settings)
        assert response.id == "q-1"
        assert not response.success

    async def test_duplicate_ids_are_answered_each_time(self, worker, bus, settings, llm):
        llm.classification = "generic"

        await worker.handle_message(_query())
        await worker.handle_message(_query())

        assert [r.id for r in _responses(bus, settings)] == ["q-1", "q-1"]

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", None])
    async def test_unparseable_payload_is_dropped(self, worker, bus, raw):
        assert await worker.handle_message(raw) is None
        assert bus.published == []

    async def test_invalid_payload_with_id_gets_failure(self, worker, bus, settings):
        await worker.handle_message(json.dumps({"id": "q-2", "message": "hi"}))

        (response,) = _responses(bus, settings)
        assert response.id == "q-2"
        assert not response.success

    async def test_invalid_payload_without_id_is_dropped(self, worker, bus):
        assert await worker.handle_message(json.dumps({"message": "hi"})) is None
        assert bus.published == []


class TestLifecycle:
    async def test_round_trip_through_bus(self, worker, bus, settings, llm):
        llm.classification = "generic"
        await worker.start()
        task = asyncio.create_task(worker.run())

        response = await RAGBusClient(bus, settings).ask("hi", timeout=5)

        assert response.success
        assert response.sources == [settings.docs_root_url, settings.community_url]

        await worker.stop()
        await asyncio.wait_for(task, timeout=5)
        assert not worker.is_running
        assert bus.closed
        assert bus.subscribers[settings.query_channel] == []

    async def test_stop_is_idempotent(self, worker, bus):
        await worker.start()
        await worker.stop()
        await worker.stop()

        assert not worker.is_running
        assert bus.closed

    async def test_stop_without_run_closes_subscription(self, worker, bus, settings):
        await worker.start()
        await worker.stop()

        assert not worker.is_running
        assert bus.subscribers[settings.query_channel] == []
        assert bus.closed


def test_query_event_accepts_field_names():
    event = QueryEvent(id="q", user_id="u", channel_id="c", message="m")
    assert json.loads(event.model_dump_json(by_alias=True))["userId"] == "u"
