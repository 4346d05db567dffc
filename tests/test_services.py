from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ainews.ai import MockAIProvider
from ainews.models import (
    ArticleCluster,
    AuxiliarySignals,
    EnrichedEntity,
    ExtractedContent,
    PipelineMetrics,
)
from ainews.services import (
    ExtractiveSummarizer,
    InMemoryMonitoringSink,
    NotificationRule,
    RuleBasedEnrichmentService,
    RuleBasedNotificationProcessor,
    RuleBasedSafetyEngine,
    TextContentExtractor,
    TitleSimilarityDeduplicator,
)
from ainews.services.dedup import normalize_url
from ainews.services.enrichment import timeliness_score
from ainews.services.summarization import split_sentences

from .conftest import NOW, make_article

LONG_TEXT = (
    "The research team published its findings on Monday. "
    "The study tracked battery performance across several climates. "
    "Researchers found that cold weather reduced range by a third. "
    "Manufacturers said they would review the battery data. "
    "Independent experts called the study careful and useful. "
) * 3

UNIQUE_TEXT = " ".join(f"token{i}" for i in range(80)) + "."


class TestTextContentExtractor:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.extractor = TextContentExtractor()

    @pytest.mark.asyncio
    async def test_cleans_title_and_summary(self):
        article = make_article(
            title="Markets rally on rate hopes | Example News",
            summary="<p>Stocks rose &amp; bonds fell. See https://example.com/more</p>",
        )

        content = await self.extractor.extract(article)

        assert content.clean_title == "Markets rally on rate hopes"
        assert content.clean_summary == "Stocks rose & bonds fell. See"
        assert content.word_count == len(content.extracted_text.split())
        assert content.canonical_url == article.url

    @pytest.mark.asyncio
    async def test_hyphenated_title_is_kept(self):
        article = make_article(title="State-of-the-art chips arrive")

        content = await self.extractor.extract(article)

        assert content.clean_title == "State-of-the-art chips arrive"

    @pytest.mark.asyncio
    async def test_keywords_skip_stopwords(self):
        article = make_article(title="Battery study", summary=LONG_TEXT)

        content = await self.extractor.extract(article)

        assert "battery" in content.keywords
        assert "the" not in content.keywords
        assert content.content_quality in ("high", "medium")

    @pytest.mark.asyncio
    @patch("ainews.services.extraction.trafilatura.extract")
    @patch("httpx.AsyncClient")
    async def test_fetches_full_content(self, mock_client, mock_extract):
        mock_response = MagicMock()
        mock_response.text = "<html><body>page</body></html>"
        mock_response.url = "https://example.com/a1"
        mock_response.raise_for_status = MagicMock()
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(return_value=mock_response)
        mock_extract.return_value = LONG_TEXT

        extractor = TextContentExtractor(fetch_full_content=True)
        content = await extractor.extract(make_article())

        assert content.extracted_text == LONG_TEXT[: extractor.max_content_chars]
        assert content.word_count > 50
        mock_extract.assert_called_once()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient")
    async def test_fetch_failure_falls_back_to_summary(self, mock_client):
        mock_client.return_value.__aenter__.return_value.get = AsyncMock(
            side_effect=httpx.ConnectError("connection refused")
        )

        extractor = TextContentExtractor(fetch_full_content=True)
        content = await extractor.extract(make_article(summary="Short teaser text."))

        assert content.extracted_text == "Short teaser text."


class TestRuleBasedSafetyEngine:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.engine = RuleBasedSafetyEngine(blocked_domains=["spam.example"])

    def _content(self, article, text=UNIQUE_TEXT):
        return ExtractedContent(
            clean_title=article.title, extracted_text=text, word_count=len(text.split())
        )

    @pytest.mark.asyncio
    async def test_normal_article_allowed(self):
        article = make_article(title="Researchers publish battery study")

        result = await self.engine.check(article, self._content(article))

        assert result.recommendation == "allow"
        assert result.is_content_safe
        assert result.flags == []
        assert result.safety_score == 1.0

    @pytest.mark.asyncio
    async def test_blocked_domain(self):
        article = make_article(url="https://news.spam.example/story")

        result = await self.engine.check(article, self._content(article))

        assert result.recommendation == "block"
        assert not result.is_content_safe
        assert result.flags[0].severity == "critical"

    @pytest.mark.asyncio
    async def test_clickbait_flagged_once(self):
        article = make_article(title="You won't believe this shocking result?")

        result = await self.engine.check(article, self._content(article))

        clickbait = [f for f in result.flags if f.type == "clickbait"]
        assert len(clickbait) == 1
        assert result.recommendation == "allow"
        assert result.safety_score == pytest.approx(0.92)

    @pytest.mark.asyncio
    async def test_shouting_short_clickbait_is_flagged(self):
        article = make_article(title="SHOCKING DEAL EVERYONE IS TALKING ABOUT?")

        result = await self.engine.check(article, self._content(article, "Buy now."))

        assert {f.type for f in result.flags} == {"spam", "clickbait", "low_quality"}
        assert result.recommendation == "flag"
        assert not result.is_content_safe


class TestRuleBasedEnrichmentService:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.service = RuleBasedEnrichmentService(clock=lambda: NOW)

    async def _enrich(self, article):
        content = await TextContentExtractor().extract(article)
        return await self.service.enrich(article, content)

    @pytest.mark.asyncio
    async def test_topics_and_reputation(self):
        article = make_article(
            now=NOW,
            title="Bitcoin and Ethereum prices swing as crypto market wobbles",
            summary="Investors in the crypto market watched bitcoin closely.",
            url="https://www.reuters.com/markets/crypto",
        )

        enrichment = await self._enrich(article)

        topics = [t.topic for t in enrichment.topics]
        assert topics[0] == "Blockchain"
        assert "Finance" in topics
        assert enrichment.signals.source_reputation == 0.95
        assert enrichment.ai_insights is None

    @pytest.mark.asyncio
    async def test_breaking_signal(self):
        article = make_article(now=NOW, hours_old=0.5, title="Breaking: bridge closed after storm")

        enrichment = await self._enrich(article)

        assert enrichment.signals.is_breaking
        assert enrichment.signals.timeliness_score == 1.0

    @pytest.mark.asyncio
    async def test_old_article_not_breaking(self):
        article = make_article(now=NOW, hours_old=30, title="Breaking: bridge closed after storm")

        enrichment = await self._enrich(article)

        assert not enrichment.signals.is_breaking
        assert enrichment.signals.timeliness_score == 0.5

    @pytest.mark.asyncio
    async def test_viral_tags_boost_virality(self):
        article = make_article(now=NOW, popularity_score=0.5, tags=["viral"], source_name="Reddit")

        enrichment = await self._enrich(article)

        assert enrichment.signals.virality_score == pytest.approx(0.78)

    @pytest.mark.asyncio
    async def test_entities_typed(self):
        article = make_article(now=NOW, title="Gemini update from Google", summary="Acme Corp reacted.")

        enrichment = await self._enrich(article)

        types = {e.name: e.type for e in enrichment.entities}
        assert types.get("Gemini") == "product"
        assert types.get("Acme Corp") == "organization"

    def test_timeliness_steps(self):
        assert timeliness_score(0.5) == 1.0
        assert timeliness_score(5) == 0.9
        assert timeliness_score(200) == 0.1


class TestTitleSimilarityDeduplicator:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.dedup = TitleSimilarityDeduplicator(clock=lambda: NOW)

    def test_normalize_url(self):
        assert normalize_url("https://www.Example.com/a/?utm=1") == "example.com/a"

    @pytest.mark.asyncio
    async def test_removes_duplicates(self):
        first = make_article("1", now=NOW, title="Apple unveils new iPhone with faster chip", url="https://a.com/x")
        copy = make_article("2", now=NOW, title="Apple unveils new iPhone with faster chip", url="https://b.com/y")
        same_url = make_article("3", now=NOW, title="Different headline entirely", url="http://www.a.com/x/")

        result = await self.dedup.cluster([first, copy, same_url], [])

        assert result.duplicates_removed == 2
        kept = [a.id for c in result.clusters for a in c.members] + [a.id for a in result.unclustered]
        assert kept == ["1"]

    @pytest.mark.asyncio
    async def test_clusters_related_stories(self):
        a = make_article("1", now=NOW, hours_old=2, title="Tesla recalls Model Y vehicles", url="https://a.com/1")
        b = make_article("2", now=NOW, hours_old=1, title="Tesla recalls Model Y over brakes", url="https://b.com/2",
                         popularity_score=0.9)
        c = make_article("3", now=NOW, title="Local bakery wins award", url="https://c.com/3")

        result = await self.dedup.cluster([a, b, c], [])

        assert result.clusters_formed == 1
        cluster = result.clusters[0]
        assert [m.id for m in cluster.members] == ["1", "2"]
        assert cluster.representative_article.id == "2"
        assert cluster.velocity == pytest.approx(1.0)
        assert cluster.id.startswith("cluster-")
        assert [u.id for u in result.unclustered] == ["3"]

    @pytest.mark.asyncio
    async def test_attaches_to_existing_cluster(self):
        seed = make_article("old", now=NOW, hours_old=3, title="Tesla recalls Model Y vehicles", url="https://a.com/1")
        existing = ArticleCluster(id="cluster-known", topic="tesla", representative_article=seed, members=[seed])
        update = make_article("new", now=NOW, title="Tesla recalls expand to Model 3", url="https://d.com/4")

        result = await self.dedup.cluster([update], [existing])

        assert result.clusters_formed == 0
        assert result.clusters[0].id == "cluster-known"
        assert [m.id for m in result.clusters[0].members] == ["new"]


class TestExtractiveSummarizer:
    def _content(self, text):
        return ExtractedContent(clean_title="Battery study", extracted_text=text, word_count=len(text.split()))

    def test_split_sentences(self):
        assert split_sentences("One is here. Two are there! Is this three? No") == [
            "One is here.", "Two are there!", "Is this three?"
        ]

    @pytest.mark.asyncio
    async def test_extractive_only(self):
        summarizer = ExtractiveSummarizer()
        entities = [EnrichedEntity(name="Acme Corp", type="organization")]

        summary = await summarizer.summarize(make_article(), self._content(LONG_TEXT), entities)

        assert summary.extractive_summary
        assert summary.abstractive_summary is None
        assert summary.entities == ["Acme Corp"]
        assert summary.confidence_score == pytest.approx(0.6)
        assert summary.warning_flags == []

    @pytest.mark.asyncio
    async def test_ai_bullets(self):
        summarizer = ExtractiveSummarizer(ai_provider=MockAIProvider())

        summary = await summarizer.summarize(make_article(), self._content(LONG_TEXT), [])

        assert len(summary.key_points) == 4
        assert summary.abstractive_summary.startswith("Mock summary")
        assert summary.confidence_score == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_empty_ai_reply_is_flagged(self):
        provider = MockAIProvider()
        provider.summarize_article = AsyncMock(return_value=[])
        summarizer = ExtractiveSummarizer(ai_provider=provider)

        summary = await summarizer.summarize(make_article(), self._content("Too short."), [])

        assert summary.warning_flags == ["short_content", "ai_summary_unavailable"]
        assert summary.confidence_score == pytest.approx(0.4)


class TestRuleBasedNotificationProcessor:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.processor = RuleBasedNotificationProcessor("u1", topics=["tesla"], clock=lambda: NOW)

    def _breaking(self, article_id):
        article = make_article(article_id, now=NOW, title=f"Tesla story {article_id}", final_score=0.9)
        return article, AuxiliarySignals(is_breaking=True)

    @pytest.mark.asyncio
    async def test_breaking_notification(self):
        article, signal = self._breaking("b1")

        notifications = await self.processor.process([article], [], [signal])

        kinds = [n.type for n in notifications]
        assert kinds[0] == "breaking"
        assert notifications[0].priority == "urgent"
        assert notifications[0].expires_at == NOW.add(hours=1)
        assert "personalized" in kinds

    @pytest.mark.asyncio
    async def test_cooldown_blocks_repeat(self):
        article, signal = self._breaking("b1")
        await self.processor.process([article], [], [signal])

        again = await self.processor.process([article], [], [signal])

        assert again == []

    @pytest.mark.asyncio
    async def test_daily_limit(self):
        processor = RuleBasedNotificationProcessor(
            "u1",
            rules=[NotificationRule(id="breaking_news", name="Breaking", priority="urgent",
                                    cooldown_minutes=0, max_per_day=2)],
            clock=lambda: NOW,
        )
        pairs = [self._breaking(str(i)) for i in range(4)]

        notifications = await processor.process([p[0] for p in pairs], [], [p[1] for p in pairs])

        assert len(notifications) == 2

    @pytest.mark.asyncio
    async def test_history_forgets_sends_older_than_a_day(self):
        recent = ("breaking_news", NOW.subtract(minutes=10))
        self.processor.history = [("breaking_news", NOW.subtract(hours=30)), recent]

        await self.processor.process([], [], [])

        assert self.processor.history == [recent]

    @pytest.mark.asyncio
    async def test_pruned_history_no_longer_blocks(self):
        self.processor.history = [("breaking_news", NOW.subtract(hours=25))] * 5
        article, signal = self._breaking("b1")

        notifications = await self.processor.process([article], [], [signal])

        assert notifications[0].type == "breaking"
        assert len(self.processor.history) == len(notifications)

    @pytest.mark.asyncio
    async def test_trending_cluster(self):
        members = [
            make_article(str(i), now=NOW, hours_old=0.5, title=f"Tesla recall update {i}", final_score=0.75)
            for i in range(4)
        ]
        cluster = ArticleCluster(
            id="cluster-t", topic="tesla", representative_article=members[0], members=members, velocity=4.0,
        )

        notifications = await self.processor.process(members, [cluster], [AuxiliarySignals()] * 4)

        assert [n.type for n in notifications] == ["trending"]
        assert notifications[0].cluster_id == "cluster-t"

    @pytest.mark.asyncio
    async def test_irrelevant_articles_ignored(self):
        article = make_article("x", now=NOW, title="Bakery wins award", summary="Bread.", final_score=0.95)

        assert await self.processor.process([article], [], [AuxiliarySignals()]) == []


class TestInMemoryMonitoringSink:
    def test_keeps_bounded_history(self):
        sink = InMemoryMonitoringSink(max_history=2)
        for count in range(3):
            sink.record(PipelineMetrics(
                response_time=1.0, throughput=float(count), error_rate=0.0, articles_processed=count
            ))

        assert [m.articles_processed for m in sink.all()] == [1, 2]
        assert sink.latest().articles_processed == 2

    def test_empty(self):
        assert InMemoryMonitoringSink().latest() is None
