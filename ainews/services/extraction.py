"""Content extraction and cleanup."""

import html
import re
from collections import Counter
from typing import List, Optional

import httpx
import trafilatura
from rich.console import Console

from ..models import Article, ExtractedContent
from .base import ContentExtractor

console = Console()

STOPWORDS = {
    "the", "a", "an", "and", "or", "but", "of", "to", "in", "on", "for", "with", "at",
    "by", "from", "is", "are", "was", "were", "be", "been", "it", "its", "this", "that",
    "as", "has", "have", "had", "will", "would", "can", "could", "new", "after", "over",
    "into", "about", "than", "more", "their", "they", "he", "she", "we", "you", "his", "her",
}

TITLE_NOISE = [
    re.compile(r"\s+[|\-–]\s+[^|\-–]{2,40}$"),  # trailing " | Outlet"
    re.compile(r"^\[[^\]]+\]\s*"),  # leading "[tag]"
]


class TextContentExtractor(ContentExtractor):
    """Clean titles and summaries, optionally fetching the full page."""

    def __init__(
        self,
        fetch_full_content: bool = False,
        timeout: float = 15.0,
        max_content_chars: int = 5000,
        user_agent: str = "ainews/0.1 (news pipeline)",
    ) -> None:
        """Initialize content extractor."""
        self.fetch_full_content = fetch_full_content
        self.timeout = timeout
        self.max_content_chars = max_content_chars
        self.user_agent = user_agent

    def _clean_title(self, title: str) -> str:
        text = html.unescape(title or "").strip()
        for pattern in TITLE_NOISE:
            cleaned = pattern.sub("", text)
            # Never strip a title down to nothing
            if len(cleaned) >= 10:
                text = cleaned
        return re.sub(r"\s+", " ", text).strip()

    def _clean_summary(self, summary: Optional[str]) -> str:
        if not summary:
            return ""
        text = html.unescape(summary)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"https?://\S+", "", text)
        return re.sub(r"\s+", " ", text).strip()

    async def _fetch_text(self, url: str) -> Optional[str]:
        """Fetch a page and extract its main text."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            console.print(f"[dim]Full content fetch failed for {url}: {e}[/dim]")
            return None

        extracted = trafilatura.extract(
            response.text,
            include_comments=False,
            include_tables=False,
            deduplicate=True,
            favor_precision=True,
            url=str(response.url),
        )
        return extracted[: self.max_content_chars] if extracted else None

    def _keywords(self, text: str, limit: int = 8) -> List[str]:
        words = re.findall(r"[a-zA-Z][a-zA-Z0-9+\-]{2,}", text.lower())
        counts = Counter(w for w in words if w not in STOPWORDS)
        return [word for word, _ in counts.most_common(limit)]

    def _entities(self, text: str) -> List[str]:
        found = re.findall(r"\b([A-Z][a-zA-Z0-9]+(?:\s+[A-Z][a-zA-Z0-9]+)*)\b", text)
        seen = []
        for name in found:
            if name.lower() not in STOPWORDS and name not in seen:
                seen.append(name)
        return seen[:10]

    def _readability(self, text: str) -> float:
        """Rough Flesch reading ease."""
        sentences = max(1, len(re.findall(r"[.!?]+", text)))
        words = text.split()
        if not words:
            return 50.0
        syllables = sum(max(1, len(re.findall(r"[aeiouy]+", w.lower()))) for w in words)
        score = 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))
        return max(0.0, min(100.0, score))

    def _quality(self, word_count: int, readability: float, title: str) -> str:
        if word_count >= 150 and readability >= 30:
            return "high"
        if word_count < 20 or title.isupper():
            return "low"
        return "medium"

    async def extract(self, article: Article) -> ExtractedContent:
        """Extract and clean content from an article."""
        clean_title = self._clean_title(article.title)
        clean_summary = self._clean_summary(article.summary)

        text = clean_summary or clean_title
        if self.fetch_full_content and article.url:
            full_text = await self._fetch_text(article.url)
            if full_text:
                text = full_text

        word_count = len(text.split())
        readability = self._readability(text)

        return ExtractedContent(
            clean_title=clean_title,
            clean_summary=clean_summary,
            extracted_text=text,
            language="en",
            word_count=word_count,
            readability_score=readability,
            content_quality=self._quality(word_count, readability, clean_title),
            entities=self._entities(f"{clean_title}. {text}"),
            keywords=self._keywords(f"{clean_title} {text}"),
            canonical_url=article.url,
        )
