"""
================================================================================
FILE: docs_expert/core/llm_handler.py
================================================================================

PURPOSE:
    Completion client. Given a system prompt and a user prompt, either returns
    the whole completion (classification) or an incrementally produced
    fragment stream (answers).

WORKFLOW:
    complete():
        1. One provider call under LLM_TIMEOUT
        2. Provider failure / timeout -> CompletionError
    stream():
        1. Async generator; the request starts on first iteration
        2. Read timeouts are enforced by the provider SDK client (LLM_TIMEOUT)
        3. Failure before or during streaming -> CompletionError
        4. Empty fragments are dropped

KEY FACTS:
    - No retries here; the generator and adapters decide what users see
    - The stream is finite and forward-only; it is not restartable
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from docs_expert.config.settings import Settings
from docs_expert.providers.llm.base import ILLMProvider

from .exceptions import CompletionError

logger = logging.getLogger(__name__)


class LLMHandler:
    """
    Wraps the completion provider with defaults, timeouts and typed errors.
    """

    def __init__(self, provider: ILLMProvider, settings: Settings):
        """
        Args:
            provider: Pre-initialized LLM provider (created by ServiceContainer)
            settings: Application settings
        """
        self.provider = provider
        self.settings = settings
        logger.info("LLMHandler initialized")

    async def complete(
        self,
        system_prompt: str,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Raises:
            CompletionError: provider failure or timeout
        """
        try:
            text = await asyncio.wait_for(
                self.provider.complete(
                    system_prompt=system_prompt,
                    prompt=prompt,
                    temperature=self._temperature(temperature),
                    max_tokens=max_tokens or self.settings.llm_max_tokens,
                    model=model,
                ),
                timeout=self.settings.llm_timeout,
            )
        except asyncio.TimeoutError:
            raise CompletionError(
                f"Completion timed out after {self.settings.llm_timeout}s",
                context={"prompt_length": len(prompt), "model": model},
            )
        except Exception as e:
            raise CompletionError(
                "Completion request failed",
                context={"prompt_length": len(prompt), "model": model, "reason": str(e)},
            )

        logger.debug(f"Completion returned {len(text)} chars")
        return text

    async def stream(
        self,
        system_prompt: str,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Yield completion fragments as they arrive.

        Raises (while iterating):
            CompletionError: provider failure or timeout
        """
        fragments = self.provider.stream(
            system_prompt=system_prompt,
            prompt=prompt,
            temperature=self._temperature(temperature),
            max_tokens=max_tokens or self.settings.llm_max_tokens,
            model=model,
        )
        iterator = fragments.__aiter__()
        produced = 0
        try:
            while True:
                # Consumed in the caller's task; read timeouts come from the SDK client
                try:
                    fragment = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError:
                    raise CompletionError(
                        "Completion stream timed out",
                        context={"fragments": produced},
                    )
                except CompletionError:
                    raise
                except Exception as e:
                    raise CompletionError(
                        "Completion stream failed",
                        context={"fragments": produced, "reason": str(e)},
                    )

                if fragment:
                    produced += 1
                    yield fragment
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.debug(f"Completion stream finished ({produced} fragments)")

    def _temperature(self, temperature: Optional[float]) -> float:
        # 0.0 is a valid explicit value
        return self.settings.llm_temperature if temperature is None else temperature
