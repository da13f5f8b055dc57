"""Tests for the ingestion service (chunk, embed, store) and upload extraction."""

import json

import httpx
import pytest

from docs_expert.container.service_container import ServiceContainer
from docs_expert.core.exceptions import (
    DomainError,
    StorageError,
    UnsupportedFileTypeError,
    ValidationError,
)
from docs_expert.pipeline.schemas import ContentType
from docs_expert.tools.ingestion import IngestionService
from docs_expert.utils import extract_text_from_file

from .conftest import FlakyVectorDBProvider

GUIDE = "\n\n".join(
    f"## Topic {i}\n\n" + f"Topic {i} covers step functions, event triggers and flow control in depth. " * 4
    for i in range(6)
)


class TestIngestText:
    async def test_chunks_are_stored_in_domain_namespace(self, ingestion, vector_store):
        result = await ingestion.ingest_text(GUIDE, "inngest", source="guide.md")

        assert result.success
        assert result.domain == "inngest"
        assert result.chunks == 6
        assert vector_store.count("inngest-docs") == 6

        matches = await vector_store.query("inngest-docs", [1.0] * 256, top_k=10)
        for match in matches:
            assert match.metadata["domain"] == "inngest"
            assert match.metadata["source"] == "guide.md"
            assert match.metadata["type"] == ContentType.CUSTOM.value
            assert match.metadata["content"].startswith("# Topic")
            assert match.id.startswith("inngest-")

    async def test_unknown_domain_is_not_auto_provisioned(self, ingestion):
        with pytest.raises(DomainError):
            await ingestion.ingest_text(GUIDE, "brand-new")

    async def test_empty_or_too_short_content(self, ingestion):
        with pytest.raises(ValidationError):
            await ingestion.ingest_text("   ", "inngest")
        with pytest.raises(ValidationError):
            await ingestion.ingest_text("## Hi\n\nshort", "inngest")

    async def test_documents_are_stored_together(self, ingestion, container, vector_store):
        domain = container.registry.ensure("acme")

        result = await ingestion.ingest_documents([(GUIDE, "a.md"), (GUIDE, "b.md")], domain.id)

        assert result.chunks == 12
        assert result.source == "a.md, b.md"
        assert vector_store.count("acme-docs") == 12

    async def test_same_millisecond_ingestions_keep_all_chunks(self, ingestion, vector_store, monkeypatch):
        from docs_expert.tools.ingestion import service

        monkeypatch.setattr(service, "now_ms", lambda: 1_700_000_000_000)

        first = await ingestion.ingest_text(GUIDE, "inngest", source="a.md")
        second = await ingestion.ingest_text(GUIDE, "inngest", source="b.md")

        assert vector_store.count("inngest-docs") == first.chunks + second.chunks


async def test_partial_storage_failure_reports_stored_count(make_settings, llm, embeddings):
    settings = make_settings(upsert_batch_size=2)
    container = ServiceContainer(
        settings,
        llm_provider=llm,
        embeddings_provider=embeddings,
        vector_db_provider=FlakyVectorDBProvider(fail_on_call=3),
    )
    await container.initialize()

    with pytest.raises(StorageError) as exc_info:
        await container.get_ingestion().ingest_text(GUIDE, "inngest")

    assert exc_info.value.stored_count == 4
    await container.shutdown()


class TestFiles:
    async def test_markdown_upload(self, ingestion):
        result = await ingestion.ingest_file("guide.md", GUIDE.encode("utf-8"), "inngest")
        assert result.chunks == 6
        assert result.source == "uploaded-file: guide.md"

    def test_unsupported_extension(self, ingestion):
        with pytest.raises(UnsupportedFileTypeError):
            ingestion.read_file("setup.exe", b"MZ")

    def test_oversized_upload(self, make_settings, container):
        service = IngestionService(
            container.registry,
            container.embeddings_handler,
            container.vector_db_handler,
            make_settings(max_upload_size_mb=1),
        )
        with pytest.raises(ValidationError):
            service.read_file("big.txt", b"x" * (1024 * 1024 + 1))

    def test_json_is_pretty_printed(self):
        text = extract_text_from_file(json.dumps({"event": "app/user.created"}).encode(), "payload.json")
        assert text == '{\n  "event": "app/user.created"\n}'

    def test_text_content_type_without_extension(self):
        assert extract_text_from_file(b"plain notes", "notes", "text/plain") == "plain notes"

    def test_latin1_fallback(self):
        assert extract_text_from_file("café".encode("latin-1"), "notes.txt") == "café"

    def test_broken_pdf(self):
        with pytest.raises(ValidationError):
            extract_text_from_file(b"not a pdf", "manual.pdf")


class TestUrls:
    def _service(self, container, settings, handler) -> IngestionService:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return IngestionService(
            container.registry,
            container.embeddings_handler,
            container.vector_db_handler,
            settings,
            http_client=client,
        )

    async def test_ingest_url(self, container, settings):
        service = self._service(container, settings, lambda request: httpx.Response(200, text=GUIDE))

        result = await service.ingest_url("https://docs.example.com/guide.md", "inngest")

        assert result.chunks == 6
        assert result.source == "https://docs.example.com/guide.md"

    async def test_http_error_status(self, container, settings):
        service = self._service(container, settings, lambda request: httpx.Response(404))

        with pytest.raises(ValidationError) as exc_info:
            await service.fetch_url("https://docs.example.com/missing")

        assert exc_info.value.context["status"] == 404

    async def test_network_failure(self, container, settings):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = self._service(container, settings, refuse)

        with pytest.raises(ValidationError):
            await service.fetch_url("https://docs.example.com/guide.md")

    async def test_official_docs_use_plain_text_urls(self, container, settings):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, text=GUIDE)

        service = self._service(container, settings, handler)

        result = await service.ingest_official_docs("inngest")

        assert requested == ["https://www.inngest.com/llms-full.txt"]
        assert result.chunks == 6
