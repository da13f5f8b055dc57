"""
FILE: docs_expert/providers/llm/base.py

Completion provider interface (contract).
All chat-completion implementations (OpenAI, Gemini) must implement this.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional


class ILLMProvider(ABC):
    """Abstract base class for completion providers."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize provider (create client)."""
        raise NotImplementedError

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> str:
        """Return the whole completion text for one system + user prompt."""
        raise NotImplementedError

    @abstractmethod
    def stream(
        self,
        system_prompt: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Yield completion text fragments as they arrive.

        Implementations are async generators; the request is sent on the
        first iteration.
        """
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        """Cleanup resources."""
        raise NotImplementedError


__all__ = ["ILLMProvider"]
