"""AI provider interface and implementations."""

import re
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from google import genai
from google.genai import types
from openai import AsyncOpenAI
from pydantic import BaseModel, Field
from rich.console import Console

from ..errors import ModelsExhaustedError

console = Console()

T = TypeVar("T")


class RelevanceAnalysis(BaseModel):
    """Relevance verdict returned by a model."""

    score: int = Field(..., description="Relevance from 0 to 100", ge=0, le=100)
    reasoning: str = Field(..., description="Short explanation")


async def first_success(
    models: List[str],
    attempt: Callable[[str], Awaitable[T]],
) -> T:
    """
    Try each model in order and return the first successful result.

    Args:
        models: Ordered model candidates
        attempt: Coroutine function called with a model name

    Returns:
        Result of the first model that did not raise

    Raises:
        ModelsExhaustedError: every candidate raised
    """
    last_error: Optional[BaseException] = None
    for model_name in models:
        try:
            return await attempt(model_name)
        except Exception as e:
            console.print(f"[dim]Model {model_name} failed: {e}[/dim]")
            last_error = e
    raise ModelsExhaustedError(models, last_error)


def parse_relevance_response(text: str) -> Optional[RelevanceAnalysis]:
    """Parse a 'Score: N | Reasoning: ...' reply."""
    if not text:
        return None

    score_match = re.search(r"Score:\s*(\d+)", text)
    reasoning_match = re.search(r"Reasoning:\s*(.+)", text)

    if score_match and reasoning_match:
        score = int(score_match.group(1))
        reasoning = reasoning_match.group(1).strip()
    else:
        # Try to extract a score anyway
        any_number = re.search(r"(\d+)", text)
        if not any_number:
            return None
        score = int(any_number.group(1))
        reasoning = text[:100] + "..."

    return RelevanceAnalysis(score=max(0, min(100, score)), reasoning=reasoning)


def build_relevance_prompt(title: str, text: str, interests: List[str]) -> str:
    """Prompt asking for a 0-100 relevance score."""
    return f"""Analyze how relevant this article is to the user's interests and provide a relevance score.

User Interests: {', '.join(interests)}

Article Title: {title}
Article Content: {text[:1500]}

Instructions:
- Provide a relevance score from 0-100 (0 = not relevant, 100 = highly relevant)
- Consider both direct and indirect relevance
- Explain your reasoning in 1-2 sentences
- Format your response as: "Score: [number] | Reasoning: [explanation]"

Analysis:"""


def build_summary_prompt(title: str, content: str, outlet: str, max_bullets: int) -> str:
    """Prompt asking for bullet point summaries."""
    max_content_chars = 6000
    if len(content) > max_content_chars:
        content = content[:max_content_chars] + "..."

    return f"""Please summarize this news article into {max_bullets} clear, informative bullet points.

Article Title: {title}
Source: {outlet}

Article Content:
{content}

Instructions:
- Each bullet should be 1-2 sentences maximum
- Focus on concrete developments, not promotional language
- If the content is unclear or insufficient, return a single bullet saying so

Format as a simple bulleted list:
• Point 1
• Point 2"""


def parse_bullets(content: str, max_bullets: int) -> List[str]:
    """Extract bullet lines from a model reply."""
    bullets = []
    for line in content.split("\n"):
        line = line.strip()
        if line and line[0] in "•-*":
            bullet = line[1:].strip()
            if bullet:
                bullets.append(bullet)

    # Fallback if no bullets found
    if not bullets and content.strip():
        bullets = [content.strip()]

    return bullets[:max_bullets]


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    name: str = "abstract"

    @abstractmethod
    async def analyze_relevance(
        self,
        title: str,
        text: str,
        interests: List[str],
    ) -> Optional[RelevanceAnalysis]:
        """
        Score how relevant an article is to a user's interests.

        Args:
            title: Article title
            text: Article text or summary
            interests: User interests

        Returns:
            Relevance analysis, or None when no usable answer was produced
        """
        pass

    @abstractmethod
    async def summarize_article(
        self,
        title: str,
        content: str,
        outlet: str,
        max_bullets: int = 4,
    ) -> List[str]:
        """
        Summarize an article into bullet points.

        Args:
            title: Article title
            content: Article content
            outlet: Publishing outlet
            max_bullets: Maximum number of bullet points

        Returns:
            List of bullet point summaries (empty on failure)
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        pass


class GeminiProvider(AIProvider):
    """Gemini implementation with ordered model fallback."""

    name = "gemini"

    def __init__(self, api_key: str, models: Optional[List[str]] = None) -> None:
        """
        Initialize Gemini provider.

        Args:
            api_key: Gemini API key
            models: Model names tried in order until one succeeds
        """
        if not api_key:
            raise ValueError("Gemini provider requires an API key")
        self.client = genai.Client(api_key=api_key)
        self.models = models or ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"]
        self.api_calls = 0
        self.failures = 0
        self.total_tokens = 0

    async def _generate(self, model_name: str, prompt: str, max_tokens: int) -> str:
        """Run one generation against a specific model."""
        self.api_calls += 1
        response = await self.client.aio.models.generate_content(
            model=model_name,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=0.1,
                top_k=1,
                top_p=1,
                max_output_tokens=max_tokens,
            ),
        )

        usage = getattr(response, "usage_metadata", None)
        if usage and usage.total_token_count:
            self.total_tokens += usage.total_token_count

        text = response.text if response else None
        if not text:
            raise ValueError(f"Model {model_name} returned an empty response")
        return text.strip()

    async def analyze_relevance(
        self,
        title: str,
        text: str,
        interests: List[str],
    ) -> Optional[RelevanceAnalysis]:
        """Score relevance using the first Gemini model that answers."""
        prompt = build_relevance_prompt(title, text, interests)
        try:
            reply = await first_success(
                self.models, lambda model: self._generate(model, prompt, 200)
            )
        except ModelsExhaustedError as e:
            self.failures += 1
            console.print(f"[red]All models failed for relevance analysis: {e.last_error}[/red]")
            return None

        analysis = parse_relevance_response(reply)
        if analysis is None:
            console.print(f"[yellow]Could not parse relevance reply: {reply[:80]}[/yellow]")
        return analysis

    async def summarize_article(
        self,
        title: str,
        content: str,
        outlet: str,
        max_bullets: int = 4,
    ) -> List[str]:
        """Summarize using the first Gemini model that answers."""
        prompt = build_summary_prompt(title, content, outlet, max_bullets)
        try:
            reply = await first_success(
                self.models, lambda model: self._generate(model, prompt, 300)
            )
        except ModelsExhaustedError as e:
            self.failures += 1
            console.print(f"[red]Error summarizing article '{title}': {e.last_error}[/red]")
            return []
        return parse_bullets(reply, max_bullets)

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        return {
            "provider": self.name,
            "models": self.models,
            "api_calls": self.api_calls,
            "failures": self.failures,
            "total_tokens": self.total_tokens,
        }


class OpenAIProvider(AIProvider):
    """OpenAI implementation of AI provider."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        models: Optional[List[str]] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            models: Model names tried in order
            base_url: Custom base URL (for testing)
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.models = models or ["gpt-4o-mini"]
        self.total_tokens = 0
        self.api_calls = 0
        self.failures = 0

    async def _complete(self, model_name: str, prompt: str, max_tokens: int) -> str:
        self.api_calls += 1
        response = await self.client.chat.completions.create(
            model=model_name,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.1,
            max_tokens=max_tokens,
        )

        # Update usage stats
        if response.usage:
            self.total_tokens += response.usage.total_tokens

        content = response.choices[0].message.content
        if not content:
            raise ValueError(f"Model {model_name} returned an empty response")
        return content.strip()

    async def analyze_relevance(
        self,
        title: str,
        text: str,
        interests: List[str],
    ) -> Optional[RelevanceAnalysis]:
        """Score relevance using OpenAI."""
        prompt = build_relevance_prompt(title, text, interests)
        try:
            reply = await first_success(
                self.models, lambda model: self._complete(model, prompt, 200)
            )
        except ModelsExhaustedError as e:
            self.failures += 1
            console.print(f"[red]Relevance analysis failed: {e.last_error}[/red]")
            return None
        return parse_relevance_response(reply)

    async def summarize_article(
        self,
        title: str,
        content: str,
        outlet: str,
        max_bullets: int = 4,
    ) -> List[str]:
        """Summarize article using OpenAI."""
        prompt = build_summary_prompt(title, content, outlet, max_bullets)
        try:
            reply = await first_success(
                self.models, lambda model: self._complete(model, prompt, 300)
            )
        except ModelsExhaustedError as e:
            self.failures += 1
            console.print(f"[red]Error summarizing article '{title}': {e.last_error}[/red]")
            return []
        return parse_bullets(reply, max_bullets)

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        return {
            "provider": self.name,
            "models": self.models,
            "api_calls": self.api_calls,
            "failures": self.failures,
            "total_tokens": self.total_tokens,
        }


class MockAIProvider(AIProvider):
    """Mock AI provider for testing."""

    name = "mock"

    def __init__(self, relevance_score: int = 75) -> None:
        """Initialize mock provider."""
        self.relevance_score = relevance_score
        self.calls = []

    async def analyze_relevance(
        self,
        title: str,
        text: str,
        interests: List[str],
    ) -> Optional[RelevanceAnalysis]:
        """Mock relevance analysis."""
        self.calls.append(("relevance", title))
        return RelevanceAnalysis(
            score=self.relevance_score,
            reasoning=f"Mock relevance of '{title[:50]}' for {len(interests)} interests",
        )

    async def summarize_article(
        self,
        title: str,
        content: str,
        outlet: str,
        max_bullets: int = 4,
    ) -> List[str]:
        """Mock article summarization."""
        self.calls.append(("summarize", title))

        return [
            f"Mock summary of '{title[:50]}'",
            f"Published by {outlet}",
            "Key details and implications",
            "Next steps",
        ][:max_bullets]

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "provider": self.name,
            "models": ["mock"],
            "api_calls": len(self.calls),
            "failures": 0,
            "total_tokens": len(self.calls) * 100,
        }


def create_ai_provider(
    provider: str,
    api_key: Optional[str],
    models: Optional[List[str]] = None,
) -> Optional[AIProvider]:
    """
    Build the configured provider, or None when AI is unavailable.

    Args:
        provider: Provider name (gemini, openai, mock, none)
        api_key: API key for the provider
        models: Model candidates

    Returns:
        Provider instance or None
    """
    if provider == "mock":
        return MockAIProvider()
    if provider == "none" or not api_key:
        return None
    if provider == "gemini":
        return GeminiProvider(api_key=api_key, models=models)
    if provider == "openai":
        # Gemini model names make no sense here
        openai_models = [m for m in (models or []) if not m.startswith("gemini")]
        return OpenAIProvider(api_key=api_key, models=openai_models or None)

    console.print(f"[yellow]Warning: Unknown AI provider '{provider}'. AI scoring disabled.[/yellow]")
    return None
