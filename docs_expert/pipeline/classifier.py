"""
Generic-vs-specific triage.

One deterministic, 10-token completion on the cheap classifier model. Only the
exact (trimmed, lower-cased) answer "generic" short-circuits to the greeting;
anything else, including a failed call, is treated as a real question.
"""

import logging

from docs_expert.config import constants
from docs_expert.config.settings import Settings
from docs_expert.core.exceptions import CompletionError
from docs_expert.core.llm_handler import LLMHandler

from .prompts import CLASSIFIER_SYSTEM_PROMPT
from .schemas import ClassificationLabel

logger = logging.getLogger(__name__)


def parse_label(raw: str) -> ClassificationLabel:
    if (raw or "").strip().lower() == ClassificationLabel.GENERIC.value:
        return ClassificationLabel.GENERIC
    return ClassificationLabel.SPECIFIC


class QueryClassifier:
    def __init__(self, llm: LLMHandler, settings: Settings):
        self.llm = llm
        self.settings = settings

    async def classify(self, text: str) -> ClassificationLabel:
        try:
            raw = await self.llm.complete(
                system_prompt=CLASSIFIER_SYSTEM_PROMPT,
                prompt=text,
                temperature=constants.CLASSIFIER_TEMPERATURE,
                max_tokens=constants.CLASSIFIER_MAX_TOKENS,
                model=self.settings.classifier_model,
            )
        except CompletionError as e:
            logger.warning(
                f"Classification failed, defaulting to specific: {e.message}",
                extra={"error_code": e.error_code},
            )
            return ClassificationLabel.SPECIFIC

        label = parse_label(raw)
        logger.debug(f"Classified '{text[:constants.LOG_QUERY_PREVIEW_CHARS]}' as {label.value}")
        return label
