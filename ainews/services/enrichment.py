"""Rule based enrichment: entities, topics and auxiliary signals."""

import re
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import pendulum

from ..models import (
    Article,
    AuxiliarySignals,
    EnrichedEntity,
    EnrichmentResult,
    ExtractedContent,
    TopicClassification,
)
from .base import EnrichmentService

SOURCE_REPUTATION = {
    "reuters.com": 0.95,
    "apnews.com": 0.95,
    "bbc.com": 0.90,
    "cnn.com": 0.80,
    "nytimes.com": 0.90,
    "wsj.com": 0.88,
    "bloomberg.com": 0.87,
    "techcrunch.com": 0.75,
    "ycombinator.com": 0.85,
    "reddit.com": 0.60,
}

TOPIC_RULES = {
    "Artificial Intelligence": [
        "ai", "artificial intelligence", "machine learning", "neural network", "deep learning",
        "gpt", "llm", "chatgpt", "gemini", "claude", "openai", "model",
    ],
    "Blockchain": ["blockchain", "cryptocurrency", "bitcoin", "ethereum", "crypto", "web3", "defi", "nft"],
    "Cloud Computing": ["cloud", "aws", "azure", "google cloud", "kubernetes", "docker", "serverless"],
    "Cybersecurity": ["security", "cyber", "hack", "breach", "malware", "ransomware", "vulnerability"],
    "Data Science": ["data", "analytics", "big data", "statistics", "visualization"],
    "Finance": ["finance", "bank", "investment", "stock", "market", "trading", "economy", "money"],
    "Healthcare": ["health", "medical", "medicine", "hospital", "doctor", "patient", "pharma", "drug"],
    "Politics": ["politics", "government", "election", "policy", "congress", "senate", "president"],
    "Sports": ["sports", "football", "basketball", "baseball", "soccer", "olympics", "team"],
    "Entertainment": ["movie", "film", "music", "tv", "celebrity", "entertainment", "hollywood"],
    "Science": ["science", "research", "study", "discovery", "experiment", "scientist", "university"],
    "Technology": ["tech", "technology", "software", "hardware", "computer", "internet", "digital"],
}

BREAKING_KEYWORDS = ["breaking", "urgent", "just in", "developing", "live", "alert"]
ORG_SUFFIXES = ("Inc", "Corp", "Corporation", "Labs", "Ltd", "Group", "AI", "Company")
PRODUCT_PATTERN = re.compile(r"^(GPT|Gemini|Claude|Llama|iPhone|Pixel|Windows)\b")


def timeliness_score(age_hours: float) -> float:
    """Step decay by article age."""
    if age_hours < 1:
        return 1.0
    if age_hours < 6:
        return 0.9
    if age_hours < 24:
        return 0.7
    if age_hours < 72:
        return 0.5
    if age_hours < 168:
        return 0.3
    return 0.1


class RuleBasedEnrichmentService(EnrichmentService):
    """Keyword and pattern based enrichment."""

    def __init__(
        self,
        topic_threshold: float = 0.2,
        max_topics: int = 5,
        max_entities: int = 15,
        clock: Optional[Callable[[], Any]] = None,
    ) -> None:
        """
        Initialize enrichment service.

        Args:
            topic_threshold: Minimum normalized score for a topic to be kept
            max_topics: Maximum topics per article
            max_entities: Maximum entities per article
            clock: Returns "now"; defaults to pendulum UTC now
        """
        self.topic_threshold = topic_threshold
        self.max_topics = max_topics
        self.max_entities = max_entities
        self.clock = clock or (lambda: pendulum.now("UTC"))

    def _domain(self, url: str) -> str:
        host = (urlparse(url).hostname or "").lower()
        return host[4:] if host.startswith("www.") else host

    def _entities(self, content: ExtractedContent) -> List[EnrichedEntity]:
        text = f"{content.clean_title} {content.extracted_text}"
        entities = []
        for name in content.entities[: self.max_entities]:
            if PRODUCT_PATTERN.match(name):
                entity_type, confidence = "product", 0.9
            elif name.endswith(ORG_SUFFIXES) or name.isupper():
                entity_type, confidence = "organization", 0.85
            else:
                entity_type, confidence = "other", 0.6
            entities.append(
                EnrichedEntity(
                    name=name,
                    type=entity_type,
                    confidence=confidence,
                    mentions=max(1, text.count(name)),
                )
            )
        return entities

    def _topics(self, content: ExtractedContent) -> List[TopicClassification]:
        text = f"{content.clean_title} {content.extracted_text}".lower()
        topics = []
        for topic, keywords in TOPIC_RULES.items():
            score = 0
            matched = []
            for keyword in keywords:
                hits = len(re.findall(r"\b" + re.escape(keyword) + r"\b", text))
                if hits:
                    # Longer keywords are more specific
                    score += hits * (2 if len(keyword) > 5 else 1)
                    matched.append(keyword)
            confidence = min(1.0, score / 10)
            if confidence >= self.topic_threshold:
                topics.append(TopicClassification(topic=topic, confidence=confidence, keywords=matched))

        topics.sort(key=lambda t: t.confidence, reverse=True)
        return topics[: self.max_topics]

    def _content_type(self, article: Article, content: ExtractedContent) -> str:
        title = content.clean_title.lower()
        text = content.extracted_text.lower()
        if "opinion" in title or "editorial" in title or "i think" in text or "in my view" in text:
            return "opinion"
        if "analysis" in title or "explainer" in title or "experts say" in text:
            return "analysis"
        if "announces" in title or "press release" in text or "pr newswire" in text:
            return "press_release"
        if "blog" in article.source_name.lower() or "/blog/" in article.url or "medium.com" in article.url:
            return "blog"
        return "news"

    def _virality(self, article: Article) -> float:
        score = article.popularity_score or 0.5
        source = article.source_name.lower()
        if "twitter" in source or "reddit" in source:
            score *= 1.2
        if any(tag.lower() in ("viral", "trending", "popular") for tag in article.tags):
            score *= 1.3
        return min(1.0, score)

    def _authority(self, article: Article, reputation: float, domain: str) -> float:
        score = reputation
        if article.author and article.author != "Unknown":
            score += 0.1
        if not any(marker in domain for marker in ("blog", "medium", "substack")):
            score += 0.1
        return min(1.0, score)

    def _signals(self, article: Article, content: ExtractedContent) -> AuxiliarySignals:
        domain = self._domain(article.url)
        reputation = SOURCE_REPUTATION.get(domain, 0.5)
        age_hours = article.age_hours(self.clock())

        title = content.clean_title.lower()
        has_keyword = any(keyword in title for keyword in BREAKING_KEYWORDS)
        is_breaking = age_hours < 2 and (has_keyword or article.popularity_score > 0.8)

        return AuxiliarySignals(
            word_count=content.word_count,
            source_reputation=reputation,
            content_type=self._content_type(article, content),
            is_breaking=is_breaking,
            virality_score=self._virality(article),
            timeliness_score=timeliness_score(age_hours),
            authority_score=self._authority(article, reputation, domain),
        )

    async def enrich(
        self,
        article: Article,
        content: ExtractedContent,
        user_context: Optional[Dict[str, Any]] = None,
    ) -> EnrichmentResult:
        """Enrich one article."""
        return EnrichmentResult(
            entities=self._entities(content),
            topics=self._topics(content),
            signals=self._signals(article, content),
        )
