"""Tests for the provider handlers: timeouts, truncation, batching and typed errors."""

import asyncio

import pytest

from docs_expert.core.embeddings_handler import EmbeddingsHandler
from docs_expert.core.exceptions import CompletionError, EmbeddingError, StorageError
from docs_expert.core.llm_handler import LLMHandler
from docs_expert.core.vector_db_handler import VectorDBHandler
from docs_expert.pipeline.schemas import VectorRecord

from .conftest import FlakyVectorDBProvider


class TestEmbeddingsHandler:
    async def test_long_input_is_truncated(self, make_settings, embeddings):
        handler = EmbeddingsHandler(embeddings, make_settings(embedding_max_input_chars=20))

        await handler.embed("a" * 50)

        assert embeddings.calls == [["a" * 20]]

    async def test_batches_preserve_order(self, make_settings, embeddings):
        handler = EmbeddingsHandler(embeddings, make_settings(embeddings_batch_size=2))
        texts = ["one", "two", "three", "four", "five"]

        vectors = await handler.embed_texts(texts)

        assert len(embeddings.calls) == 3
        assert vectors == [embeddings.vector(t) for t in texts]

    async def test_empty_input_makes_no_call(self, settings, embeddings):
        assert await EmbeddingsHandler(embeddings, settings).embed_texts([]) == []
        assert embeddings.calls == []

    async def test_provider_failure(self, settings, embeddings):
        embeddings.error = RuntimeError("401 Unauthorized")

        with pytest.raises(EmbeddingError) as exc_info:
            await EmbeddingsHandler(embeddings, settings).embed("hello")

        assert exc_info.value.context["reason"] == "401 Unauthorized"

    async def test_malformed_output(self, settings, embeddings):
        async def short(texts):
            return [[0.1, 0.2]]

        embeddings.embed_texts = short

        with pytest.raises(EmbeddingError):
            await EmbeddingsHandler(embeddings, settings).embed_texts(["a", "b"])

    async def test_timeout(self, make_settings, embeddings):
        async def slow(texts):
            await asyncio.sleep(1)
            return [[1.0] for _ in texts]

        embeddings.embed_texts = slow

        with pytest.raises(EmbeddingError):
            await EmbeddingsHandler(embeddings, make_settings(embeddings_timeout=0.01)).embed("slow")


class TestLLMHandler:
    async def test_complete_failure_is_typed(self, settings, llm):
        llm.complete_error = RuntimeError("503")

        with pytest.raises(CompletionError):
            await LLMHandler(llm, settings).complete("system", "prompt")

    async def test_stream_yields_fragments(self, settings, llm):
        fragments = [f async for f in LLMHandler(llm, settings).stream("system", "prompt")]
        assert fragments == ["Here is ", "the answer."]

    async def test_stream_failure_after_first_fragment(self, settings, llm):
        llm.fail_after = 1
        received = []

        with pytest.raises(CompletionError) as exc_info:
            async for fragment in LLMHandler(llm, settings).stream("system", "prompt"):
                received.append(fragment)

        assert received == ["Here is "]
        assert exc_info.value.context["fragments"] == 1


def _records(count):
    return [VectorRecord(id=f"r{i}", vector=[1.0, float(i)], metadata={"content": str(i)}) for i in range(count)]


class TestVectorDBHandler:
    async def test_upsert_in_batches(self, settings, vector_store):
        handler = VectorDBHandler(vector_store, settings)

        stored = await handler.upsert("ns", _records(5), batch_size=2, batch_delay=0)

        assert stored == 5
        assert vector_store.count("ns") == 5

    async def test_failed_batch_reports_previous_batches(self, settings):
        provider = FlakyVectorDBProvider(fail_on_call=2)
        handler = VectorDBHandler(provider, settings)

        with pytest.raises(StorageError) as exc_info:
            await handler.upsert("ns", _records(5), batch_size=2, batch_delay=0)

        assert exc_info.value.stored_count == 2
        assert provider.count("ns") == 2

    async def test_query_sorted_and_limited(self, settings, vector_store):
        handler = VectorDBHandler(vector_store, settings)
        await handler.upsert("ns", _records(4), batch_delay=0)

        matches = await handler.query("ns", [1.0, 3.0], top_k=2)

        assert [m.id for m in matches] == ["r3", "r2"]
        assert matches[0].score >= matches[1].score

    async def test_query_failure(self, settings, vector_store):
        async def broken(namespace, vector, top_k):
            raise ConnectionError("refused")

        vector_store.query = broken

        with pytest.raises(StorageError):
            await VectorDBHandler(vector_store, settings).query("ns", [1.0])
