"""Document chunking for ingestion."""

from .markdown_chunker import MarkdownChunker, hard_split

__all__ = ["MarkdownChunker", "hard_split"]
