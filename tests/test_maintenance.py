"""Tests for the coverage and freshness maintenance tools."""

import json

import httpx
import pytest

from docs_expert.core.exceptions import EmbeddingError
from docs_expert.pipeline.schemas import RetrievalResult, SearchResult
from docs_expert.tools.maintenance import (
    DocStatus,
    FreshnessState,
    check_freshness,
    load_status,
    verify_coverage,
)

DOCS_URL = "https://www.inngest.com/llms-full.txt"


class StubRetriever:
    def __init__(self, covered, failing=()):
        self.covered = covered
        self.failing = failing
        self.calls = []

    async def retrieve(self, query, domain_id, top_k=None):
        self.calls.append((query, domain_id, top_k))
        if query in self.failing:
            raise EmbeddingError("Embedding service request failed")
        if query in self.covered:
            return RetrievalResult(passages=[SearchResult(content="x", source="s", score=0.8)], sources=["s"])
        return RetrievalResult()


class TestCoverage:
    async def test_report(self):
        retriever = StubRetriever(covered={"a", "b", "c", "d"}, failing={"e"})

        report = await verify_coverage(retriever, "inngest", topics=["a", "b", "c", "d", "e"])

        assert report.found == 4
        assert report.ratio == 0.8
        assert report.is_excellent
        assert report.results[4].error == "Embedding service request failed"
        assert all(call[2] == 1 for call in retriever.calls)

    async def test_poor_coverage(self):
        report = await verify_coverage(StubRetriever(covered={"a"}), "inngest", topics=["a", "b"])
        assert not report.is_excellent

    async def test_against_real_index(self, container, ingestion):
        await ingestion.ingest_text(
            "## Concurrency\n\nConcurrency limits cap how many runs of a function execute at once. "
            "Set a key to apply the limit per user or per tenant.",
            "inngest",
        )

        report = await verify_coverage(
            container.get_retriever(),
            "inngest",
            topics=["Concurrency limits cap how many runs of a function execute at once"],
        )

        assert report.found == 1


def _client(etag=None, size="1024"):
    headers = {"content-length": size}
    if etag:
        headers["etag"] = etag

    def handler(request):
        assert request.method == "HEAD"
        return httpx.Response(200, headers=headers)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFreshness:
    async def test_first_then_unchanged_then_updated(self, tmp_path):
        status_file = tmp_path / ".docs-status.json"

        first = await check_freshness(DOCS_URL, status_file, http_client=_client('"v1"'))
        assert first.state == FreshnessState.FIRST_CHECK
        stored = json.loads(status_file.read_text())
        assert stored["etag"] == '"v1"'
        assert "lastChecked" in stored

        same = await check_freshness(DOCS_URL, status_file, http_client=_client('"v1"'))
        assert same.state == FreshnessState.UP_TO_DATE

        changed = await check_freshness(DOCS_URL, status_file, http_client=_client('"v2"', size="2048"))
        assert changed.state == FreshnessState.UPDATED
        assert changed.previous.etag == '"v1"'
        assert changed.current.size == 2048
        assert load_status(status_file).etag == '"v2"'

    async def test_missing_etag_leaves_status_untouched(self, tmp_path):
        status_file = tmp_path / ".docs-status.json"

        report = await check_freshness(DOCS_URL, status_file, http_client=_client())

        assert report.state == FreshnessState.NO_ETAG
        assert not status_file.exists()

    async def test_network_error_propagates(self, tmp_path):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        with pytest.raises(httpx.HTTPError):
            await check_freshness(DOCS_URL, tmp_path / "status.json", http_client=client)


def test_unreadable_status_file_is_ignored(tmp_path):
    path = tmp_path / "status.json"
    path.write_text("{broken")
    assert load_status(path) is None


def test_status_round_trips_with_camel_case(tmp_path):
    status = DocStatus(url=DOCS_URL, etag="e", last_checked="2024-01-01T00:00:00+00:00", size=3)
    assert DocStatus.model_validate(status.model_dump(by_alias=True)) == status
