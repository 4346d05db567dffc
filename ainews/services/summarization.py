"""Extractive summarization with optional model-written bullets."""

import re
from collections import Counter
from typing import List, Optional

from ..ai import AIProvider
from ..models import Article, EnrichedEntity, ExtractedContent, SummaryResult
from .base import SummarizationEngine
from .extraction import STOPWORDS

POSITIVE_WORDS = {"growth", "gain", "wins", "record", "launch", "breakthrough", "improves", "success", "surge"}
NEGATIVE_WORDS = {"loss", "falls", "crash", "breach", "lawsuit", "layoffs", "decline", "fails", "warning"}


def split_sentences(text: str) -> List[str]:
    """Split text into sentences."""
    parts = re.split(r"(?<=[.!?])\s+", text.strip())
    return [p.strip() for p in parts if len(p.split()) >= 3]


class ExtractiveSummarizer(SummarizationEngine):
    """Picks the highest-scoring sentences; asks the AI provider for bullets when one is set."""

    def __init__(
        self,
        ai_provider: Optional[AIProvider] = None,
        max_sentences: int = 3,
        max_bullets: int = 4,
    ) -> None:
        self.ai_provider = ai_provider
        self.max_sentences = max_sentences
        self.max_bullets = max_bullets

    def _extract(self, text: str) -> List[str]:
        sentences = split_sentences(text)
        if len(sentences) <= self.max_sentences:
            return sentences

        freq = Counter(
            w for w in re.findall(r"[a-z0-9]+", text.lower()) if w not in STOPWORDS
        )

        def score(sentence: str) -> float:
            words = [w for w in re.findall(r"[a-z0-9]+", sentence.lower()) if w not in STOPWORDS]
            return sum(freq[w] for w in words) / max(1, len(words))

        top = sorted(range(len(sentences)), key=lambda i: score(sentences[i]), reverse=True)
        # Keep original order
        return [sentences[i] for i in sorted(top[: self.max_sentences])]

    def _sentiment(self, text: str) -> str:
        words = set(re.findall(r"[a-z]+", text.lower()))
        positive = len(words & POSITIVE_WORDS)
        negative = len(words & NEGATIVE_WORDS)
        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"

    async def summarize(
        self,
        article: Article,
        content: ExtractedContent,
        entities: List[EnrichedEntity],
    ) -> SummaryResult:
        """Summarize one article."""
        text = content.extracted_text or content.clean_summary or content.clean_title
        sentences = self._extract(text)
        extractive = " ".join(sentences) if sentences else content.clean_title

        warnings = []
        if content.word_count < 50:
            warnings.append("short_content")

        bullets: List[str] = []
        if self.ai_provider is not None:
            bullets = await self.ai_provider.summarize_article(
                content.clean_title, text, article.source_name, self.max_bullets
            )
            if not bullets:
                warnings.append("ai_summary_unavailable")

        confidence = 0.8 if bullets else 0.6
        if "short_content" in warnings:
            confidence -= 0.2

        return SummaryResult(
            extractive_summary=extractive,
            abstractive_summary=" ".join(bullets) if bullets else None,
            key_points=bullets or sentences[: self.max_bullets],
            entities=[entity.name for entity in entities],
            sentiment=self._sentiment(text),
            confidence_score=confidence,
            warning_flags=warnings,
        )
