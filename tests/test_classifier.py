"""Tests for generic/specific triage."""

import pytest

from docs_expert.core.llm_handler import LLMHandler
from docs_expert.pipeline.classifier import QueryClassifier, parse_label
from docs_expert.pipeline.prompts import CLASSIFIER_SYSTEM_PROMPT
from docs_expert.pipeline.schemas import ClassificationLabel


@pytest.fixture()
def classifier(llm, settings):
    return QueryClassifier(LLMHandler(llm, settings), settings)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("generic", ClassificationLabel.GENERIC),
        ("  Generic\n", ClassificationLabel.GENERIC),
        ("specific", ClassificationLabel.SPECIFIC),
        ("generic.", ClassificationLabel.SPECIFIC),
        ("This is generic", ClassificationLabel.SPECIFIC),
        ("", ClassificationLabel.SPECIFIC),
    ],
)
def test_parse_label_only_accepts_exact_generic(raw, expected):
    assert parse_label(raw) == expected


async def test_greeting_classified_generic(classifier, llm, settings):
    llm.classification = "generic"

    assert await classifier.classify("hi") == ClassificationLabel.GENERIC

    call = llm.complete_calls[0]
    assert call["system_prompt"] == CLASSIFIER_SYSTEM_PROMPT
    assert call["prompt"] == "hi"
    assert call["max_tokens"] == 10
    assert call["model"] == settings.classifier_model


async def test_failed_call_falls_back_to_specific(classifier, llm):
    llm.complete_error = RuntimeError("rate limited")

    assert await classifier.classify("hello there") == ClassificationLabel.SPECIFIC
