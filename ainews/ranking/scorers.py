"""Individual scoring components for article ranking."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional

from ..models import Article, EnrichmentResult
from .models import UserRankingProfile


class BaseScorer(ABC):
    """Base class for scoring components."""

    @abstractmethod
    def score(
        self,
        article: Article,
        enrichment: EnrichmentResult,
        now: datetime,
    ) -> float:
        """
        Score an article from 0.0 to 1.0.

        Args:
            article: Article being ranked
            enrichment: Enrichment computed for the article in this run
            now: Reference time for age based scoring

        Returns:
            Score between 0.0 and 1.0
        """
        pass


class ContentQualityScorer(BaseScorer):
    """Score based on length, entity richness and topic confidence."""

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score content quality."""
        quality = 0.5

        word_count = enrichment.signals.word_count
        if word_count > 200:
            quality += 0.2
        elif word_count > 100:
            quality += 0.1
        elif word_count < 50:
            quality -= 0.2

        entity_count = len(enrichment.entities)
        if entity_count > 5:
            quality += 0.15
        elif entity_count > 2:
            quality += 0.1

        if enrichment.topics:
            mean_confidence = sum(t.confidence for t in enrichment.topics) / len(enrichment.topics)
            if mean_confidence > 0.8:
                quality += 0.1

        insights = enrichment.ai_insights
        if insights is not None and insights.factuality > 0.8:
            quality += 0.1

        return max(0.0, min(1.0, quality))


class RecencyScorer(BaseScorer):
    """Step function of article age."""

    STEPS = [(1, 1.0), (6, 0.9), (12, 0.8), (24, 0.6), (48, 0.4), (168, 0.2)]

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score based on publication date recency."""
        age_hours = article.age_hours(now)
        for limit, value in self.STEPS:
            if age_hours < limit:
                return value
        return 0.1


class TopicRelevanceScorer(BaseScorer):
    """Score based on interest matches in title, summary and enrichment topics."""

    def __init__(self, interests: Optional[List[str]] = None) -> None:
        self.interests = [i.lower() for i in (interests or [])]

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score based on substring matches with user interests."""
        if not self.interests:
            return 0.5

        total = len(self.interests)
        title = article.title.lower()
        summary = (article.summary or "").lower()
        topics = [t.topic.lower() for t in enrichment.topics]

        title_matches = sum(1 for i in self.interests if i in title)
        summary_matches = sum(1 for i in self.interests if i in summary)
        topic_matches = sum(
            1 for i in self.interests if any(i in topic or topic in i for topic in topics)
        )

        relevance = (
            title_matches / total * 0.4
            + summary_matches / total * 0.3
            + topic_matches / total * 0.3
        )
        return min(1.0, relevance)


class UserInterestScorer(BaseScorer):
    """Score based on learned source, topic and time of day preferences."""

    def __init__(self, profile: UserRankingProfile) -> None:
        self.profile = profile

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score how well the article matches the user's history."""
        if article.relevance_score is not None:
            return article.relevance_score

        match = 0.5
        match += self.profile.source_preferences.get(article.source_name, 0.5) * 0.3

        title = article.title.lower()
        topic_scores = [
            pref for topic, pref in self.profile.topic_preferences.items() if topic.lower() in title
        ]
        if topic_scores:
            match += sum(topic_scores) / len(topic_scores) * 0.4

        match += self.profile.time_of_day_preferences.get(str(now.hour), 0.5) * 0.1

        return max(0.0, min(1.0, match))


class ClickProbabilityScorer(BaseScorer):
    """Predict a click from similar past clicks."""

    def __init__(self, profile: UserRankingProfile, recent_days: int = 7) -> None:
        self.profile = profile
        self.recent_days = recent_days

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score click likelihood."""
        history = self.profile.click_history
        if not history:
            return 0.5

        title = article.title.lower()
        similar = [
            click for click in history
            if click.source == article.source_name or (click.topic and click.topic.lower() in title)
        ]
        if not similar:
            return 0.5

        mean_score = sum(click.score for click in similar) / len(similar)
        cutoff = now - timedelta(days=self.recent_days)
        recent_fraction = sum(1 for click in similar if click.timestamp > cutoff) / len(similar)

        return min(1.0, (mean_score + recent_fraction) / 2)


class DwellTimeScorer(BaseScorer):
    """Predicted reading time, normalized over ten minutes."""

    def __init__(self, profile: UserRankingProfile) -> None:
        self.profile = profile

    def score(self, article: Article, enrichment: EnrichmentResult, now: datetime) -> float:
        """Score expected dwell time."""
        word_count = len(article.summary.split()) if article.summary else 100
        minutes = word_count / (self.profile.reading_speed or 200)
        return min(1.0, minutes / 10)
