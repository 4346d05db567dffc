"""AI providers for relevance scoring and summarization."""

from .llm_provider import (
    AIProvider,
    GeminiProvider,
    MockAIProvider,
    OpenAIProvider,
    RelevanceAnalysis,
    create_ai_provider,
    first_success,
    parse_relevance_response,
)

__all__ = [
    "AIProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "MockAIProvider",
    "RelevanceAnalysis",
    "create_ai_provider",
    "first_success",
    "parse_relevance_response",
]
