"""Multi-signal article ranking."""

import asyncio
from typing import Callable, Dict, List, Mapping, Optional

import pendulum
from rich.console import Console
from rich.table import Table

from ..ai import AIProvider
from ..config import AIGateConfig, RankingWeights
from ..models import Article, ArticleCluster, EnrichmentResult
from .models import (
    ClickEvent,
    RankingResult,
    RankingSignals,
    UserRankingProfile,
    create_default_user_profile,
)
from .scorers import (
    ClickProbabilityScorer,
    ContentQualityScorer,
    DwellTimeScorer,
    RecencyScorer,
    TopicRelevanceScorer,
    UserInterestScorer,
)

console = Console()

MAX_CLICK_HISTORY = 1000


class RankingEngine:
    """Rank articles using weighted signals, boosts and optional AI relevance."""

    def __init__(
        self,
        weights: Optional[RankingWeights] = None,
        profile: Optional[UserRankingProfile] = None,
        ai_provider: Optional[AIProvider] = None,
        ai_gate: Optional[AIGateConfig] = None,
        quality_floor: float = 0.3,
        ai_timeout: float = 10.0,
        clock: Optional[Callable[[], pendulum.DateTime]] = None,
        trace: bool = False,
    ) -> None:
        """
        Initialize ranking engine.

        Args:
            weights: Signal weights, must sum to 1.0
            profile: User profile for personalization
            ai_provider: Provider used for AI relevance scoring, None disables it
            ai_gate: Decides which articles get an AI relevance call
            quality_floor: Content quality below which the penalty applies
            ai_timeout: Seconds allowed for each AI relevance call
            clock: Returns "now"; defaults to pendulum UTC now
            trace: Print per-article scoring lines
        """
        self.weights = weights or RankingWeights()
        self.profile = profile or create_default_user_profile("default", [])
        self.ai_provider = ai_provider
        self.ai_gate = ai_gate or AIGateConfig()
        self.quality_floor = quality_floor
        self.ai_timeout = ai_timeout
        self.clock = clock or (lambda: pendulum.now("UTC"))
        self.trace = trace

        # Initialize scorers
        self.quality_scorer = ContentQualityScorer()
        self.recency_scorer = RecencyScorer()
        self.topic_scorer = TopicRelevanceScorer(self.profile.interests)
        self.interest_scorer = UserInterestScorer(self.profile)
        self.click_scorer = ClickProbabilityScorer(self.profile)
        self.dwell_scorer = DwellTimeScorer(self.profile)

    def _should_use_ai(self, article: Article) -> bool:
        """Whether an article qualifies for an AI relevance call."""
        if self.ai_provider is None:
            return False
        if self.ai_gate.mode == "always":
            return True

        source = article.source_name.lower()
        return (
            article.popularity_score > self.ai_gate.min_popularity
            or (article.relevance_score is not None and article.relevance_score > self.ai_gate.min_relevance)
            or any(trusted.lower() in source for trusted in self.ai_gate.trusted_sources)
        )

    async def _ai_relevance(self, article: Article) -> Optional[float]:
        if article.ai_relevance_score is not None:
            return article.ai_relevance_score / 100

        if not self._should_use_ai(article):
            return None

        try:
            analysis = await asyncio.wait_for(
                self.ai_provider.analyze_relevance(article.title, article.summary or "", self.profile.interests),
                timeout=self.ai_timeout,
            )
        except asyncio.TimeoutError:
            console.print(
                f"[yellow]AI relevance timed out after {self.ai_timeout:.1f}s for '{article.title}'[/yellow]"
            )
            return None
        except Exception as e:
            console.print(f"[yellow]AI relevance failed for '{article.title}': {e}[/yellow]")
            return None

        if analysis is None:
            return None

        article.ai_relevance_score = analysis.score
        article.ai_relevance_reasoning = analysis.reasoning
        return analysis.score / 100

    async def _score_ai_relevance(self, articles: List[Article]) -> List[Optional[float]]:
        """AI relevance for every article, with the provider calls running concurrently."""
        return list(await asyncio.gather(*(self._ai_relevance(article) for article in articles)))

    def _find_cluster(self, article: Article, clusters: List[ArticleCluster]) -> Optional[ArticleCluster]:
        return next((c for c in clusters if c.contains(article.id)), None)

    def compute_signals(
        self,
        article: Article,
        enrichment: EnrichmentResult,
        clusters: List[ArticleCluster],
        ai_relevance: Optional[float] = None,
    ) -> RankingSignals:
        """Compute every ranking signal for one article, given its AI relevance (0-1) if any."""
        now = self.clock()
        aux = enrichment.signals
        insights = enrichment.ai_insights
        cluster = self._find_cluster(article, clusters)

        return RankingSignals(
            content_quality=self.quality_scorer.score(article, enrichment, now),
            readability=min(1.0, aux.word_count / 500) if aux.word_count > 0 else 0.5,
            word_count=aux.word_count,
            source_reputation=aux.source_reputation,
            author_credibility=aux.authority_score,
            popularity_score=article.popularity_score or 0.5,
            virality_score=aux.virality_score,
            topic_relevance=self.topic_scorer.score(article, enrichment, now),
            user_interest_match=self.interest_scorer.score(article, enrichment, now),
            recency=self.recency_scorer.score(article, enrichment, now),
            timeliness=aux.timeliness_score,
            click_probability=self.click_scorer.score(article, enrichment, now),
            dwell_time_predict=self.dwell_scorer.score(article, enrichment, now),
            ai_relevance_score=ai_relevance,
            ai_importance=insights.importance if insights else None,
            ai_credibility=insights.credibility if insights else None,
            cluster_velocity=cluster.velocity if cluster else None,
            cluster_size=len(cluster.members) if cluster else None,
        )

    def calculate_final_score(self, signals: RankingSignals) -> float:
        """Weighted mean of the present signals with boosts and penalties applied."""
        score = 0.0
        total_weight = 0.0
        for name, weight in self.weights.model_dump().items():
            value = getattr(signals, name)
            if value is not None:
                score += value * weight
                total_weight += weight

        final = score / total_weight if total_weight > 0 else 0.5

        # Breaking news
        if signals.timeliness > 0.9 and signals.recency > 0.8:
            final *= 1.2

        # Fast growing story
        if signals.virality_score > 0.8 and (signals.cluster_velocity or 0) > 3:
            final *= 1.15

        # Personal match
        if signals.user_interest_match > 0.8 and signals.click_probability > 0.7:
            final *= 1.1

        # Low quality
        if signals.content_quality < self.quality_floor or signals.source_reputation < 0.4:
            final *= 0.8

        return max(0.0, min(1.0, final))

    def calculate_confidence(self, signals: RankingSignals) -> float:
        """Base 0.5 plus increments for each supporting factor, capped at 1.0."""
        confidence = 0.5
        if signals.ai_relevance_score is not None:
            confidence += 0.3
        if len(self.profile.click_history) > 10:
            confidence += 0.2
        if signals.present_count() > 8:
            confidence += 0.2
        if signals.content_quality > 0.7:
            confidence += 0.1
        return min(1.0, confidence)

    def _generate_explanation(self, signals: RankingSignals, final_score: float) -> List[str]:
        """Generate human-readable reasons for a score."""
        reasons = []

        if signals.ai_relevance_score is not None and signals.ai_relevance_score > 0.8:
            reasons.append(f"High AI relevance score ({signals.ai_relevance_score * 100:.0f}%)")
        if signals.user_interest_match > 0.8:
            reasons.append("Matches your interests strongly")
        if signals.source_reputation > 0.8:
            reasons.append("From highly reputable source")
        if signals.recency > 0.9:
            reasons.append("Very recent article")
        if signals.virality_score > 0.8:
            reasons.append("Trending/viral content")
        if (signals.cluster_velocity or 0) > 3:
            reasons.append("Part of rapidly developing story")
        if signals.content_quality > 0.8:
            reasons.append("High content quality")

        if final_score > 0.8:
            reasons.append("Overall excellent match for you")
        elif final_score < 0.3:
            reasons.append("Lower relevance for your interests")

        return reasons or ["Standard ranking applied"]

    def fallback_result(self, article: Article) -> RankingResult:
        """Neutral result used when an article cannot be scored."""
        popularity = article.popularity_score or 0.5
        signals = RankingSignals(
            popularity_score=popularity,
            recency=self.recency_scorer.score(article, EnrichmentResult.neutral(), self.clock()),
        )
        article.final_score = popularity
        return RankingResult(
            article=article,
            final_score=popularity,
            signals=signals,
            explanation=["Basic scoring (enhanced ranking failed)"],
            confidence=0.3,
        )

    async def rank_articles(
        self,
        articles: List[Article],
        enrichments: Mapping[str, EnrichmentResult],
        clusters: Optional[List[ArticleCluster]] = None,
    ) -> List[RankingResult]:
        """
        Rank articles.

        Args:
            articles: Articles to rank
            enrichments: Enrichment per article id; missing entries use neutral signals
            clusters: Clusters used for velocity and size signals

        Returns:
            One result per article, sorted by final score descending (ties keep input order)
        """
        clusters = clusters or []
        ai_scores = await self._score_ai_relevance(articles)
        results = []

        for article, ai_relevance in zip(articles, ai_scores):
            try:
                enrichment = enrichments.get(article.id)
                if enrichment is None:
                    enrichment = EnrichmentResult.neutral(popularity=article.popularity_score)
                signals = self.compute_signals(article, enrichment, clusters, ai_relevance)
                final_score = self.calculate_final_score(signals)
                article.final_score = final_score

                results.append(
                    RankingResult(
                        article=article,
                        final_score=final_score,
                        signals=signals,
                        explanation=self._generate_explanation(signals, final_score),
                        confidence=self.calculate_confidence(signals),
                    )
                )
                if self.trace:
                    console.print(f"[dim]Ranked '{article.title[:60]}': {final_score:.3f}[/dim]")
            except Exception as e:
                console.print(f"[yellow]Ranking failed for '{article.title}', using fallback: {e}[/yellow]")
                results.append(self.fallback_result(article))

        # sorted() is stable
        return sorted(results, key=lambda r: r.final_score, reverse=True)

    def update_user_profile(self, click: ClickEvent) -> None:
        """Learn from a click: EMA on source/topic preferences and a nudge on the hour bucket."""
        profile = self.profile

        profile.click_history.append(click)
        if len(profile.click_history) > MAX_CLICK_HISTORY:
            del profile.click_history[:-MAX_CLICK_HISTORY]

        source_pref = profile.source_preferences.get(click.source, 0.5)
        profile.source_preferences[click.source] = source_pref * 0.9 + click.score * 0.1

        topic = click.topic.lower()
        topic_pref = profile.topic_preferences.get(topic, 0.5)
        profile.topic_preferences[topic] = topic_pref * 0.9 + click.score * 0.1

        hour = str(click.timestamp.hour)
        hour_pref = profile.time_of_day_preferences.get(hour, 0.5)
        profile.time_of_day_preferences[hour] = hour_pref * 0.9 + 0.1

    def get_usage_stats(self) -> Dict:
        """AI usage statistics, empty when no provider is configured."""
        return self.ai_provider.get_usage_stats() if self.ai_provider else {}


def print_ranking_summary(results: List[RankingResult], limit: int = 10) -> None:
    """Print ranking summary."""
    console.print("\n[bold]Ranking Summary:[/bold]")
    console.print(f"  Ranked articles: {len(results)}")

    if not results:
        return

    table = Table(title="Top Stories")
    table.add_column("#", style="dim")
    table.add_column("Title", style="yellow")
    table.add_column("Score", style="bold")
    table.add_column("Conf.", style="cyan")
    table.add_column("Why", style="dim")

    for i, result in enumerate(results[:limit], 1):
        table.add_row(
            str(i),
            result.article.title[:70],
            f"{result.final_score:.3f}",
            f"{result.confidence:.2f}",
            "; ".join(result.explanation),
        )

    console.print(table)
