"""Tests for provider loading and wiring in the ServiceContainer."""

import pytest

from docs_expert.container.service_container import ServiceContainer
from docs_expert.core.exceptions import ServiceInitializationError
from docs_expert.pipeline.generator import ResponseGenerator
from docs_expert.providers.vectordb.memory import InMemoryVectorDBProvider


async def test_wires_pipeline(container, embeddings):
    assert isinstance(container.get_generator(), ResponseGenerator)
    assert container.get_retriever() is container.retriever
    assert container.get_ingestion().registry is container.registry
    # Embeddings are reached only through the shared handler
    assert container.get_retriever().embeddings is container.get_ingestion().embeddings
    assert container.embeddings_handler.provider is embeddings
    assert not hasattr(container, "get_embeddings")


async def test_loads_memory_index_by_name(settings, llm, embeddings):
    container = ServiceContainer(settings, llm_provider=llm, embeddings_provider=embeddings)

    await container.initialize()

    assert isinstance(container.get_vector_db(), InMemoryVectorDBProvider)
    await container.shutdown()


async def test_provider_start_failure_is_wrapped(settings, llm, embeddings, vector_store):
    async def broken():
        raise RuntimeError("bad credentials")

    llm.initialize = broken
    container = ServiceContainer(
        settings, llm_provider=llm, embeddings_provider=embeddings, vector_db_provider=vector_store
    )

    with pytest.raises(ServiceInitializationError) as exc_info:
        await container.initialize()

    assert exc_info.value.context["provider_type"] == "llm"


def test_accessors_before_initialize(settings):
    container = ServiceContainer(settings)

    with pytest.raises(RuntimeError):
        container.get_generator()
    with pytest.raises(RuntimeError):
        container.get_llm()


class TestLocalEmbeddingsFactory:
    def test_hosted_model_name_falls_back_to_local_model(self, make_settings):
        from docs_expert.providers.embeddings.huggingface import LOCAL_FALLBACK_MODEL, create_provider

        provider = create_provider(make_settings(embeddings_provider="huggingface"))

        assert provider.model_name == LOCAL_FALLBACK_MODEL

    def test_explicit_local_model_is_kept(self, make_settings):
        from docs_expert.providers.embeddings.huggingface import create_provider

        settings = make_settings(
            embeddings_provider="huggingface",
            embeddings_model="sentence-transformers/all-MiniLM-L6-v2",
            embeddings_batch_size=8,
        )
        provider = create_provider(settings)

        assert provider.model_name == "sentence-transformers/all-MiniLM-L6-v2"
        assert provider.batch_size == 8

    async def test_embed_before_initialize_fails(self, make_settings):
        from docs_expert.providers.embeddings.huggingface import create_provider

        provider = create_provider(make_settings(embeddings_provider="huggingface"))

        with pytest.raises(RuntimeError):
            await provider.embed_texts(["hello"])
