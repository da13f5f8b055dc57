"""Tests for the header-aware markdown chunker."""

import math

import pytest

from docs_expert.pipeline.schemas import ContentType
from docs_expert.tools.chunking import MarkdownChunker, hard_split


def _paragraph(index: int, length: int = 248) -> str:
    words = f"Paragraph {index:02d} explains how steps, events and retries fit together. " * 10
    return words[:length].strip()


@pytest.fixture()
def chunker():
    return MarkdownChunker(max_chunk_size=1000, min_chunk_size=100)


class TestBounds:
    def test_five_thousand_characters(self, chunker):
        content = "\n\n".join(_paragraph(i) for i in range(20))
        assert 4900 <= len(content) <= 5100

        chunks = chunker.chunk(content, "inngest", source="guide.md")

        assert math.ceil(len(content) / 1000) <= len(chunks) <= 2 * math.ceil(len(content) / 1000)
        for chunk in chunks:
            assert 100 <= len(chunk.content) <= 1000
            assert chunk.metadata.domain == "inngest"
            assert chunk.metadata.source == "guide.md"

    def test_oversized_paragraph_is_hard_split(self, chunker):
        content = "## Reference\n\n" + ("token " * 600)

        chunks = chunker.chunk(content, "inngest")

        assert len(chunks) >= 4
        assert all(len(c.content) <= 1000 for c in chunks)
        assert [c.metadata.chunk_index for c in chunks] == list(range(len(chunks)))

    def test_short_sections_are_dropped(self, chunker):
        content = "## Tiny\n\nToo short.\n\n## Real\n\n" + _paragraph(1)

        chunks = chunker.chunk(content, "inngest")

        assert [c.metadata.section for c in chunks] == ["Real"]

    def test_empty_content(self, chunker):
        assert chunker.chunk("   \n", "inngest") == []

    def test_min_must_be_below_max(self):
        with pytest.raises(ValueError):
            MarkdownChunker(max_chunk_size=100, min_chunk_size=100)


class TestStructure:
    def test_sections_and_subsections(self, chunker):
        content = (
            _paragraph(0)
            + "\n\n## Functions\n\n"
            + _paragraph(1)
            + "\n\n### Triggers\n\n"
            + _paragraph(2)
        )

        chunks = chunker.chunk(content, "inngest", content_type=ContentType.CUSTOM)

        assert [(c.metadata.section, c.metadata.subsection) for c in chunks] == [
            ("Introduction", ""),
            ("Functions", ""),
            ("Functions", "Triggers"),
        ]
        assert chunks[0].content.startswith("# Introduction\n\n")
        assert chunks[2].content.startswith("# Functions - Triggers\n\n")
        assert all(c.metadata.type == ContentType.CUSTOM for c in chunks)


class TestHardSplit:
    def test_prefers_whitespace(self):
        pieces = hard_split("alpha beta gamma delta", 11)
        assert pieces == ["alpha beta", "gamma delta"]

    def test_cuts_unbroken_text(self):
        pieces = hard_split("x" * 25, 10)
        assert pieces == ["x" * 10, "x" * 10, "x" * 5]
