"""Tests for the response state machine and the answer stream contract."""

import pytest

from docs_expert.core.exceptions import CompletionError, DomainError, ValidationError
from docs_expert.pipeline.canned_responses import FUNCTION_NOT_TRIGGERING
from docs_expert.pipeline.generator import AnswerStream
from docs_expert.pipeline.schemas import ResponsePath

PAYLOAD_DOC = """## Event payloads

Event payloads carry a name and a data object. Send them with inngest.send and
read them in the handler through event.data. See /docs/events/payload-format for
the field reference.
"""

PAYLOAD_QUESTION = (
    "Event payloads carry a name and a data object. Send them with inngest.send "
    "and read them in the handler through event.data."
)


class TestPaths:
    async def test_greeting_uses_generic_sources_without_retrieval(self, generator, llm, embeddings, settings):
        llm.classification = "generic"

        answer = await generator.generate("hi")
        text = await answer.collect()

        assert answer.path == ResponsePath.CANNED_GENERIC
        assert answer.sources == [settings.docs_root_url, settings.community_url]
        assert text
        assert embeddings.calls == []
        assert llm.stream_calls == []

    async def test_canned_match_skips_retrieval_and_generation(self, generator, llm, embeddings):
        answer = await generator.generate("My function isn't triggering")

        assert answer.path == ResponsePath.CANNED_MATCH
        assert await answer.collect() == FUNCTION_NOT_TRIGGERING
        assert answer.sources == [
            "https://www.inngest.com/docs/learn/serving-inngest-functions",
            "https://www.inngest.com/docs/events",
        ]
        assert embeddings.calls == []
        assert llm.stream_calls == []

    async def test_no_context_falls_back_to_general_help(self, generator, llm, settings):
        llm.fragments = ["I could not find ", "that in the documentation."]

        answer = await generator.generate("Explain the exact retry backoff formula for obscure-feature-X")
        text = await answer.collect()

        assert answer.path == ResponsePath.NO_CONTEXT
        assert text == "I could not find that in the documentation."
        assert answer.sources == ["inngest-general-help"]
        assert llm.stream_calls[0]["model"] == settings.chat_model

    async def test_grounded_answer_merges_answer_links(self, generator, ingestion, llm, settings):
        await ingestion.ingest_text(PAYLOAD_DOC, "inngest", source="events.md")
        llm.fragments = ["Use inngest.send. ", "See https://www.inngest.com/docs/reference/events/send."]

        answer = await generator.generate(PAYLOAD_QUESTION)
        assert answer.path == ResponsePath.GENERATE
        assert answer.sources == ["https://www.inngest.com/docs/events/payload-format"]

        fragments = [fragment async for fragment in answer]

        assert fragments == llm.fragments
        assert answer.completed
        assert answer.sources == [
            "https://www.inngest.com/docs/events/payload-format",
            "https://www.inngest.com/docs/reference/events/send",
        ]
        call = llm.stream_calls[0]
        assert call["model"] == settings.chat_model
        assert "Event payloads carry a name" in call["prompt"]
        assert PAYLOAD_QUESTION in call["prompt"]

    async def test_canned_table_not_used_for_other_domains(self, generator, container, llm):
        container.registry.ensure("acme")

        answer = await generator.generate("My function isn't triggering", "acme")

        assert answer.path == ResponsePath.NO_CONTEXT
        assert answer.sources == ["acme-general-help"]


class TestErrors:
    @pytest.mark.parametrize("message", ["", "   \n"])
    async def test_blank_message_rejected(self, generator, message):
        with pytest.raises(ValidationError):
            await generator.generate(message)

    async def test_unknown_domain_rejected(self, generator):
        with pytest.raises(DomainError):
            await generator.generate("How do steps work?", "does-not-exist")

    async def test_inactive_domain_rejected(self, generator, container):
        domain = container.registry.ensure("archived")
        container.registry.upsert(domain.model_copy(update={"is_active": False}))

        with pytest.raises(DomainError):
            await generator.generate("How do steps work?", "archived")

    async def test_mid_stream_failure_surfaces_while_iterating(self, generator, llm):
        llm.fail_after = 1

        answer = await generator.generate("Explain obscure-feature-X in detail")
        received = []
        with pytest.raises(CompletionError):
            async for fragment in answer:
                received.append(fragment)

        assert received == ["Here is "]
        assert not answer.completed


class TestAnswerStream:
    async def test_can_only_be_iterated_once(self):
        answer = AnswerStream.from_text("hello", ResponsePath.CANNED_GENERIC, [], "inngest")

        assert await answer.collect() == "hello"
        with pytest.raises(RuntimeError):
            async for _ in answer:
                pass

    async def test_finalize_replaces_sources_after_exhaustion(self):
        async def fragments():
            yield "see "
            yield "https://www.inngest.com/docs/guides/concurrency"

        answer = AnswerStream(
            fragments(),
            ResponsePath.GENERATE,
            ["before"],
            "inngest",
            finalize=lambda text: ["before", text.split()[-1]],
        )
        assert answer.sources == ["before"]

        await answer.collect()

        assert answer.sources == ["before", "https://www.inngest.com/docs/guides/concurrency"]
