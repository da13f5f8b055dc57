"""Completion providers (openai, gemini)."""

from .base import ILLMProvider

__all__ = ["ILLMProvider"]
