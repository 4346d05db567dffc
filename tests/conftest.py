import asyncio

import pendulum
import pytest

from ainews.ai import MockAIProvider
from ainews.config import PipelineConfig
from ainews.models import Article, AuxiliarySignals, EnrichmentResult

NOW = pendulum.datetime(2026, 10, 17, 12, 0, 0, tz="UTC")


def make_article(article_id="a1", hours_old=2.0, now=None, **overrides):
    now = now or pendulum.now("UTC")
    data = {
        "id": article_id,
        "title": f"Article {article_id} about something",
        "summary": "A short summary of the story.",
        "url": f"https://example.com/{article_id}",
        "source_name": "Example News",
        "published_at": now.subtract(minutes=int(hours_old * 60)),
        "popularity_score": 0.5,
    }
    data.update(overrides)
    return Article(**data)


def make_enrichment(word_count=150, reputation=0.5, timeliness=0.5, virality=0.5, topics=None):
    return EnrichmentResult(
        topics=topics or [],
        signals=AuxiliarySignals(
            word_count=word_count,
            source_reputation=reputation,
            timeliness_score=timeliness,
            virality_score=virality,
            authority_score=0.6,
        ),
    )


class HangingProvider(MockAIProvider):
    """Answers after a delay, or never for selected titles."""

    def __init__(self, hang_titles=(), delay=0.0, relevance_score=80):
        super().__init__(relevance_score=relevance_score)
        self.hang_titles = set(hang_titles)
        self.delay = delay

    async def analyze_relevance(self, title, text, interests):
        if title in self.hang_titles:
            await asyncio.sleep(60)
        await asyncio.sleep(self.delay)
        return await super().analyze_relevance(title, text, interests)


@pytest.fixture
def sample_articles():
    return [
        make_article(
            "a",
            hours_old=1.5,
            title="OpenAI releases new reasoning model for developers",
            summary="The model improves coding benchmarks according to the company.",
            url="https://techcrunch.com/openai-model",
            source_name="TechCrunch",
            popularity_score=0.7,
        ),
        make_article(
            "b",
            hours_old=5,
            title="Central bank holds interest rates steady",
            summary="Markets expected the decision after weeks of economic data.",
            url="https://reuters.com/markets/rates",
            source_name="Reuters",
            popularity_score=0.6,
        ),
        make_article(
            "c",
            hours_old=30,
            title="City council approves new cycling lanes downtown",
            summary="The plan adds twelve kilometres of protected lanes.",
            url="https://localnews.example.org/cycling",
            source_name="Local News",
            popularity_score=0.4,
        ),
    ]


@pytest.fixture
def offline_config():
    return PipelineConfig(
        ai_provider="none",
        user_id="tester",
        user_interests=["Artificial Intelligence", "markets"],
        max_processing_time=5.0,
    )

