"""Rule based safety checks."""

import re
from typing import List, Optional
from urllib.parse import urlparse

from ..models import Article, ExtractedContent, SafetyFlag, SafetyResult
from .base import SafetyEngine

CLICKBAIT_PATTERNS = [
    re.compile(r"\b(you won't believe|shocking|amazing|incredible)\b", re.IGNORECASE),
    re.compile(r"\b(this will change your life|doctors hate this)\b", re.IGNORECASE),
    re.compile(r"\b(one weird trick|secret that)\b", re.IGNORECASE),
    re.compile(r"\b(number \d+ will shock you)\b", re.IGNORECASE),
    re.compile(r"\?\s*$"),
]

SEVERITY_PENALTY = {"low": 0.1, "medium": 0.2, "high": 0.4, "critical": 1.0}


class RuleBasedSafetyEngine(SafetyEngine):
    """Flag spammy or clickbait items and block banned domains."""

    def __init__(
        self,
        blocked_domains: Optional[List[str]] = None,
        min_word_count: int = 50,
    ) -> None:
        """
        Initialize safety engine.

        Args:
            blocked_domains: Domains whose articles are always blocked
            min_word_count: Below this, content is flagged as low quality
        """
        self.blocked_domains = [d.lower() for d in (blocked_domains or [])]
        self.min_word_count = min_word_count

    def _check_source(self, article: Article) -> List[SafetyFlag]:
        domain = urlparse(article.url).hostname or ""
        if any(blocked in domain.lower() for blocked in self.blocked_domains):
            return [
                SafetyFlag(
                    type="blocked_source",
                    severity="critical",
                    reason=f"Source domain {domain} is blocked",
                    confidence=1.0,
                    location="url",
                )
            ]
        return []

    def _check_spam(self, article: Article, content: ExtractedContent) -> List[SafetyFlag]:
        flags = []

        letters = [c for c in article.title if c.isalpha()]
        if letters and sum(c.isupper() for c in letters) / len(letters) > 0.5:
            flags.append(
                SafetyFlag(
                    type="spam",
                    severity="medium",
                    reason="Excessive capitalization in title",
                    confidence=0.7,
                    location="title",
                )
            )

        # 3-word phrases seen more than twice
        words = content.extracted_text.lower().split()
        counts = {}
        for i in range(len(words) - 2):
            phrase = " ".join(words[i:i + 3])
            counts[phrase] = counts.get(phrase, 0) + 1
        if sum(1 for count in counts.values() if count > 2) > 3:
            flags.append(
                SafetyFlag(
                    type="spam",
                    severity="medium",
                    reason="Excessive repetition of phrases",
                    confidence=0.6,
                    location="body",
                )
            )

        return flags

    def _check_clickbait(self, article: Article) -> List[SafetyFlag]:
        for pattern in CLICKBAIT_PATTERNS:
            if pattern.search(article.title):
                # Only flag once
                return [
                    SafetyFlag(
                        type="clickbait",
                        severity="low",
                        reason="Title contains clickbait patterns",
                        confidence=0.8,
                        location="title",
                    )
                ]
        return []

    def _check_quality(self, content: ExtractedContent) -> List[SafetyFlag]:
        if content.word_count < self.min_word_count:
            return [
                SafetyFlag(
                    type="low_quality",
                    severity="low",
                    reason=f"Very short content (less than {self.min_word_count} words)",
                    confidence=0.9,
                    location="body",
                )
            ]
        return []

    def _recommend(self, safety_score: float, flags: List[SafetyFlag]) -> str:
        if any(f.severity == "critical" for f in flags):
            return "block"
        if sum(1 for f in flags if f.severity == "high") > 1 or safety_score < 0.3:
            return "block"
        if safety_score < 0.6 or len(flags) > 2:
            return "flag"
        return "allow"

    async def check(self, article: Article, content: ExtractedContent) -> SafetyResult:
        """Check one article."""
        flags = (
            self._check_source(article)
            + self._check_spam(article, content)
            + self._check_clickbait(article)
            + self._check_quality(content)
        )

        penalty = sum(SEVERITY_PENALTY[f.severity] * f.confidence for f in flags)
        safety_score = max(0.0, min(1.0, 1.0 - penalty))
        recommendation = self._recommend(safety_score, flags)

        return SafetyResult(
            is_content_safe=recommendation == "allow",
            safety_score=safety_score,
            flags=flags,
            recommendation=recommendation,
            confidence=0.9 if flags else 0.8,
        )
