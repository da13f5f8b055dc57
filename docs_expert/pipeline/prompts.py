"""
Prompt templates: classification, grounded answers, the no-context fallback
and the fixed greeting for generic messages.
"""

from typing import List, Sequence

from .schemas import Domain, SearchResult

CLASSIFIER_SYSTEM_PROMPT = """Classify user messages as either "generic" or "specific".

GENERIC: Greetings, tests, vague requests, or non-technical questions
- Examples: "hi", "hello", "test", "help", "what is this", "ping", "123", "hey there", "testing this bot"

SPECIFIC: Technical questions that need documentation lookup
- Examples: "How do I create a function?", "What is rate limiting?", "Deploy to production", "batch processing", "error handling"

Respond with only one word: "generic" or "specific\""""

GROUNDING_INSTRUCTIONS = """IMPORTANT INSTRUCTIONS:
- Base your response ONLY on the documentation provided above
- Reference specific parts of the documentation when making claims
- Include ALL relevant documentation URLs found in the content
- If a feature isn't in the documentation, do not mention it
- Provide working code examples directly from or adapted from the documentation
- Use specific configuration values only if they appear in the documentation; never invent them
- If information is missing, recommend checking the latest official documentation"""

GENERIC_SUGGESTED_QUESTIONS = [
    "How do I get started?",
    "How do I configure error handling and retries?",
    "How do I deploy to production?",
]


def build_context(passages: Sequence[SearchResult]) -> str:
    return "\n\n---\n\n".join(
        f"Source: {p.source or 'unknown'}\nContent: {p.content}" for p in passages
    )


def build_grounded_prompt(passages: Sequence[SearchResult], question: str) -> str:
    return (
        "Based on the following documentation, please help with this question:\n\n"
        f"DOCUMENTATION:\n{build_context(passages)}\n\n"
        f"QUESTION: {question}\n\n"
        f"{GROUNDING_INSTRUCTIONS}\n\n"
        "Always cite the specific documentation sections you're referencing and "
        "make sure every source URL you rely on appears in your response."
    )


def _suggestions(domain: Domain) -> List[str]:
    return domain.suggested_questions or GENERIC_SUGGESTED_QUESTIONS


def build_no_context_system_prompt(domain: Domain) -> str:
    return (
        f"{domain.system_prompt}\n\n"
        "Note: The user's query didn't match specific documentation content, so "
        "provide general guidance and ask them to be more specific about their "
        f"{domain.source_label} question. Do not invent features or configuration values."
    )


def build_no_context_prompt(domain: Domain, question: str) -> str:
    bullets = "\n".join(f'- "{q}"' for q in _suggestions(domain))
    return (
        f'I asked: "{question}"\n\n'
        "No documentation closely matched this question. Explain that briefly, "
        "offer whatever general direction is safe to give, and ask for more "
        "detail about the scenario, scale and constraints.\n\n"
        f"Suggest questions like:\n{bullets}"
    )


def build_greeting(domain: Domain, help_sources: Sequence[str]) -> str:
    bullets = "\n".join(f"- {q}" for q in _suggestions(domain))
    links = "\n".join(f"- {url}" for url in help_sources)
    return (
        f"Hi there! I'm the {domain.source_label} assistant. Ask me a specific "
        "technical question and I'll answer it from the documentation, with sources.\n\n"
        f"For example:\n{bullets}\n\n"
        f"Useful links:\n{links}"
    )
