"""Shared fixtures: deterministic fake providers, an in-process bus and a wired container."""

import asyncio
import hashlib
import re
from typing import Any, Dict, List, Optional

import pytest

from docs_expert.config.settings import Settings
from docs_expert.container.service_container import ServiceContainer
from docs_expert.providers.embeddings.base import IEmbeddingsProvider
from docs_expert.providers.llm.base import ILLMProvider
from docs_expert.providers.vectordb.memory import InMemoryVectorDBProvider


def pytest_configure(config):
    """Set pytest-asyncio mode to auto so async test functions work without markers."""
    config.option.asyncio_mode = "auto"


# ============================================================================
# FAKE PROVIDERS
# ============================================================================

_TOKEN = re.compile(r"[a-z0-9]+")


class HashingEmbeddingsProvider(IEmbeddingsProvider):
    """Bag-of-words vectors: identical wording scores 1.0, unrelated text close to 0."""

    def __init__(self, dimensions: int = 256):
        self.dimensions = dimensions
        self.calls: List[List[str]] = []
        self.error: Optional[Exception] = None

    async def initialize(self) -> None:
        pass

    def vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dimensions
        for token in _TOKEN.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vec[int.from_bytes(digest[:4], "little") % self.dimensions] += 1.0
        if not any(vec):
            vec[0] = 1.0
        return vec

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [self.vector(t) for t in texts]

    async def shutdown(self) -> None:
        pass


class ScriptedLLMProvider(ILLMProvider):
    """
    Returns `classification` from complete() and streams `fragments`.

    With `fail_after=n` the stream raises after yielding n fragments.
    """

    def __init__(self, classification: str = "specific", fragments: Optional[List[str]] = None):
        self.classification = classification
        self.fragments = fragments if fragments is not None else ["Here is ", "the answer."]
        self.fail_after: Optional[int] = None
        self.complete_error: Optional[Exception] = None
        self.complete_calls: List[Dict[str, Any]] = []
        self.stream_calls: List[Dict[str, Any]] = []

    async def initialize(self) -> None:
        pass

    async def complete(self, system_prompt, prompt, temperature, max_tokens, model=None) -> str:
        self.complete_calls.append(
            {"system_prompt": system_prompt, "prompt": prompt, "max_tokens": max_tokens, "model": model}
        )
        if self.complete_error is not None:
            raise self.complete_error
        return self.classification

    async def stream(self, system_prompt, prompt, temperature, max_tokens, model=None):
        self.stream_calls.append({"system_prompt": system_prompt, "prompt": prompt, "model": model})
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise RuntimeError("connection reset by peer")
            yield fragment
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise RuntimeError("connection reset by peer")

    async def shutdown(self) -> None:
        pass


class FlakyVectorDBProvider(InMemoryVectorDBProvider):
    """In-memory index whose n-th upsert call (1-based) fails."""

    def __init__(self, fail_on_call: int):
        super().__init__()
        self.fail_on_call = fail_on_call
        self.upsert_calls = 0

    async def upsert(self, namespace, records):
        self.upsert_calls += 1
        if self.upsert_calls == self.fail_on_call:
            raise ConnectionError("index unavailable")
        await super().upsert(namespace, records)


# ============================================================================
# FAKE MESSAGE BUS
# ============================================================================

class FakePubSub:
    def __init__(self, bus: "FakeBus", channel: str):
        self.bus = bus
        self.channel = channel
        self.queue: asyncio.Queue = asyncio.Queue()
        self.unsubscribed = False
        self.closed = False

    async def get_message(self, ignore_subscribe_messages: bool = True, timeout: float = 0.0):
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=max(timeout, 0.001))
        except asyncio.TimeoutError:
            return None

    async def unsubscribe(self) -> None:
        self.unsubscribed = True
        subscribers = self.bus.subscribers.get(self.channel, [])
        if self in subscribers:
            subscribers.remove(self)

    async def aclose(self) -> None:
        self.closed = True


class FakeBus:
    """Fan-out pub/sub with the RedisHandler surface used by the worker and bus client."""

    def __init__(self):
        self.subscribers: Dict[str, List[FakePubSub]] = {}
        self.published: List[Dict[str, str]] = []
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def publish(self, channel: str, payload: str) -> int:
        self.published.append({"channel": channel, "data": payload})
        receivers = list(self.subscribers.get(channel, []))
        for pubsub in receivers:
            pubsub.queue.put_nowait({"type": "message", "channel": channel, "data": payload})
        return len(receivers)

    async def subscribe(self, channel: str) -> FakePubSub:
        pubsub = FakePubSub(self, channel)
        self.subscribers.setdefault(channel, []).append(pubsub)
        return pubsub

    async def close(self) -> None:
        self.closed = True

    def published_on(self, channel: str) -> List[str]:
        return [m["data"] for m in self.published if m["channel"] == channel]


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture()
def make_settings(tmp_path):
    """Settings factory that never reads the real .env file."""

    def _make(**overrides) -> Settings:
        values = dict(
            llm_provider="openai",
            embeddings_provider="openai",
            vector_db_provider="memory",
            openai_api_key="test-key",
            upsert_batch_delay=0,
            docs_status_file=str(tmp_path / ".docs-status.json"),
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture()
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture()
def llm() -> ScriptedLLMProvider:
    return ScriptedLLMProvider()


@pytest.fixture()
def embeddings() -> HashingEmbeddingsProvider:
    return HashingEmbeddingsProvider()


@pytest.fixture()
def vector_store() -> InMemoryVectorDBProvider:
    return InMemoryVectorDBProvider()


@pytest.fixture()
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture()
def uninitialized_container(settings, llm, embeddings, vector_store) -> ServiceContainer:
    return ServiceContainer(
        settings,
        llm_provider=llm,
        embeddings_provider=embeddings,
        vector_db_provider=vector_store,
    )


@pytest.fixture()
async def container(uninitialized_container):
    await uninitialized_container.initialize()
    yield uninitialized_container
    await uninitialized_container.shutdown()


@pytest.fixture()
def generator(container):
    return container.get_generator()


@pytest.fixture()
def ingestion(container):
    return container.get_ingestion()
