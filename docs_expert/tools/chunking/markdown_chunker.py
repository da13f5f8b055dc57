"""
================================================================================
MARKDOWN CHUNKER
docs_expert/tools/chunking/markdown_chunker.py

MODULE PURPOSE:
───────────────
Split a markdown document into bounded-size DocumentChunks that keep their
section context.

WORKING & METHODOLOGY:
──────────────────────
1. Split on "## " headers (text before the first one is "Introduction")
2. Split each section on "### " sub-headers
3. A piece that fits becomes one chunk; otherwise blank-line separated
   paragraphs are packed greedily
4. A single paragraph longer than the budget is cut on whitespace
5. Every chunk starts with "# <section>[ - <subsection>]"
6. Chunks shorter than min_chunk_size are dropped

CHUNK PROPERTIES:
─────────────────
- len(content) <= max_chunk_size, header prefix included
- len(content) >= min_chunk_size
- metadata: source, section, subsection, type, chunk_index, domain

================================================================================
"""

import logging
import re
from typing import Iterator, List, Tuple

from docs_expert.pipeline.schemas import ChunkMetadata, ContentType, DocumentChunk

logger = logging.getLogger(__name__)

_SECTION_SPLIT = re.compile(r"^## ", re.MULTILINE)
_SUBSECTION_SPLIT = re.compile(r"^### ", re.MULTILINE)
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

INTRODUCTION_TITLE = "Introduction"
PARAGRAPH_SEPARATOR = "\n\n"


def _split_titled(text: str, pattern: re.Pattern, first_title: str) -> Iterator[Tuple[str, str]]:
    """Yield (title, body) pairs; the part before the first header gets `first_title`."""
    for index, part in enumerate(pattern.split(text)):
        if not part.strip():
            continue
        if index == 0:
            yield first_title, part.strip()
            continue
        title, _, body = part.partition("\n")
        yield title.strip(), body.strip()


def hard_split(text: str, budget: int) -> List[str]:
    """Cut `text` into pieces of at most `budget` chars, preferring whitespace."""
    pieces: List[str] = []
    remaining = text.strip()
    while len(remaining) > budget:
        cut = remaining.rfind(" ", 0, budget + 1)
        if cut <= 0:
            cut = max(remaining.rfind("\n", 0, budget + 1), 0)
        if cut <= 0:
            cut = budget
        pieces.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip()
    if remaining:
        pieces.append(remaining)
    return pieces


class MarkdownChunker:
    """Header-aware markdown chunker with hard size bounds."""

    def __init__(self, max_chunk_size: int = 1000, min_chunk_size: int = 100):
        if min_chunk_size >= max_chunk_size:
            raise ValueError("min_chunk_size must be smaller than max_chunk_size")
        self.max_chunk_size = max_chunk_size
        self.min_chunk_size = min_chunk_size

    def chunk(
        self,
        content: str,
        domain: str,
        source: str = ContentType.DOCUMENTATION.value,
        content_type: ContentType = ContentType.DOCUMENTATION,
    ) -> List[DocumentChunk]:
        """
        Chunk a markdown (or plain text) document.

        Args:
            content: Document text
            domain: Domain id written into every chunk's metadata
            source: Source label (URL, file name, ...)
            content_type: Origin tag

        Returns:
            Chunks in document order (may be empty)
        """
        if not content or not content.strip():
            return []

        text = content.replace("\r\n", "\n")
        chunks: List[DocumentChunk] = []
        produced = 0

        for section, section_body in _split_titled(text, _SECTION_SPLIT, INTRODUCTION_TITLE):
            for subsection, body in _split_titled(section_body, _SUBSECTION_SPLIT, ""):
                prefix = self._prefix(section, subsection)
                for index, piece in enumerate(self._pack(body, self.max_chunk_size - len(prefix))):
                    produced += 1
                    chunk_text = prefix + piece
                    if len(chunk_text) < self.min_chunk_size:
                        continue
                    chunks.append(
                        DocumentChunk(
                            content=chunk_text,
                            metadata=ChunkMetadata(
                                source=source,
                                section=section,
                                subsection=subsection,
                                type=content_type,
                                chunk_index=index,
                                domain=domain,
                            ),
                        )
                    )

        logger.info(
            f"Chunked {len(text)} chars into {len(chunks)} chunk(s) "
            f"({produced - len(chunks)} below {self.min_chunk_size} chars dropped)",
            extra={"domain": domain, "source": source},
        )
        return chunks

    def _prefix(self, section: str, subsection: str) -> str:
        title = f"{section} - {subsection}" if subsection else section
        # Keep room for content even with absurdly long headers
        title = title[: self.max_chunk_size // 4]
        return f"# {title}{PARAGRAPH_SEPARATOR}"

    def _pack(self, body: str, budget: int) -> List[str]:
        if not body:
            return []
        if len(body) <= budget:
            return [body]

        packed: List[str] = []
        current = ""
        for paragraph in _PARAGRAPH_SPLIT.split(body):
            paragraph = paragraph.strip()
            if not paragraph:
                continue

            candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
            if len(candidate) <= budget:
                current = candidate
                continue

            if current:
                packed.append(current)
            if len(paragraph) <= budget:
                current = paragraph
            else:
                pieces = hard_split(paragraph, budget)
                packed.extend(pieces[:-1])
                current = pieces[-1]

        if current:
            packed.append(current)
        return packed
