"""Pipeline orchestrator that runs the news processing stages."""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import pendulum
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..ai import AIProvider, create_ai_provider
from ..config import PipelineConfig
from ..errors import StageTimeoutError
from ..models import (
    Article,
    ArticleCluster,
    EnrichmentResult,
    ExtractedContent,
    PipelineMetrics,
)
from ..ranking import RankingEngine, create_default_user_profile
from ..services import (
    ContentExtractor,
    DeduplicationService,
    EnrichmentService,
    ExtractiveSummarizer,
    InMemoryMonitoringSink,
    MonitoringSink,
    NotificationProcessor,
    RuleBasedEnrichmentService,
    RuleBasedNotificationProcessor,
    RuleBasedSafetyEngine,
    SafetyEngine,
    SummarizationEngine,
    TextContentExtractor,
    TitleSimilarityDeduplicator,
)
from .executor import StageExecutor
from .models import PipelineError, PipelineResult, StageName, StageReport, Success

console = Console()

T = TypeVar("T")

# Changing any of these rebuilds the ranking, summarization and notification engines
ENGINE_KEYS = {
    "gemini_api_key",
    "openai_api_key",
    "ai_provider",
    "ai_models",
    "ai_gate",
    "ai_call_timeout",
    "max_processing_time",
    "user_id",
    "user_interests",
    "ranking_weights",
    "min_content_quality",
    "enable_tracing",
}

MAX_HEALTHY_ERRORS = 10

AIProviderFactory = Callable[[str, Optional[str], Optional[List[str]]], Optional[AIProvider]]


class _Run:
    """Working state of one process() call."""

    def __init__(self, articles: List[Article]) -> None:
        self.articles = list(articles)
        self.clusters: List[ArticleCluster] = []
        self.contents: Dict[str, ExtractedContent] = {}
        self.result = PipelineResult(input_count=len(articles))

    def content_for(self, article: Article) -> ExtractedContent:
        return self.contents.get(article.id) or ExtractedContent.degraded(article)


class Pipeline:
    """Runs articles through extraction, safety, enrichment, dedup, ranking, summarization and notifications."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        extractor: Optional[ContentExtractor] = None,
        safety: Optional[SafetyEngine] = None,
        enricher: Optional[EnrichmentService] = None,
        deduplicator: Optional[DeduplicationService] = None,
        summarizer: Optional[SummarizationEngine] = None,
        notifier: Optional[NotificationProcessor] = None,
        monitor: Optional[MonitoringSink] = None,
        existing_clusters: Optional[List[ArticleCluster]] = None,
        ai_provider_factory: AIProviderFactory = create_ai_provider,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            config: Pipeline configuration
            extractor: Content extractor, defaults to TextContentExtractor
            safety: Safety engine, defaults to RuleBasedSafetyEngine
            enricher: Enrichment service, defaults to RuleBasedEnrichmentService
            deduplicator: Deduplication service, defaults to TitleSimilarityDeduplicator
            summarizer: Summarization engine kept across config updates; built from config when omitted
            notifier: Notification processor kept across config updates; built from config when omitted
            monitor: Metrics sink, defaults to InMemoryMonitoringSink
            existing_clusters: Clusters known before the first run
            ai_provider_factory: Builds the AI provider from (provider, api_key, models)
        """
        self.config = config or PipelineConfig()
        self.extractor = extractor or TextContentExtractor(fetch_full_content=self.config.fetch_full_content)
        self.safety = safety or RuleBasedSafetyEngine()
        self.enricher = enricher or RuleBasedEnrichmentService()
        self.deduplicator = deduplicator or TitleSimilarityDeduplicator()
        self.monitor = monitor or InMemoryMonitoringSink()
        self.existing_clusters = list(existing_clusters or [])
        self.ai_provider_factory = ai_provider_factory

        self._custom_summarizer = summarizer
        self._custom_notifier = notifier

        self.errors: List[PipelineError] = []
        self.last_result: Optional[PipelineResult] = None
        self.run_count = 0

        self._init_engines()

    def _init_engines(self) -> None:
        """(Re)build the engines that depend on AI keys and user interests."""
        config = self.config
        self.ai_provider = self.ai_provider_factory(config.ai_provider, config.ai_api_key, config.ai_models)

        profile = create_default_user_profile(config.user_id, config.user_interests)
        self.ranking_engine = RankingEngine(
            weights=config.ranking_weights,
            profile=profile,
            ai_provider=self.ai_provider,
            ai_gate=config.ai_gate,
            quality_floor=config.min_content_quality,
            # Concurrent calls must finish well inside the ranking stage budget
            ai_timeout=min(config.ai_call_timeout, config.max_processing_time / 2),
            trace=config.enable_tracing,
        )
        self.summarizer = self._custom_summarizer or ExtractiveSummarizer(ai_provider=self.ai_provider)
        self.notifier = self._custom_notifier or RuleBasedNotificationProcessor(
            user_id=config.user_id,
            topics=config.user_interests,
        )

    def _executor(self, parallel: Optional[bool] = None) -> StageExecutor:
        config = self.config
        return StageExecutor(
            batch_size=config.batch_size,
            max_processing_time=config.max_processing_time,
            parallel=config.enable_parallel_processing if parallel is None else parallel,
            trace=config.enable_tracing,
        )

    async def _bounded(self, awaitable: Awaitable[T], stage: StageName) -> T:
        """Await a single collaborator call within the stage budget."""
        budget = self.config.max_processing_time
        try:
            return await asyncio.wait_for(awaitable, timeout=budget)
        except asyncio.TimeoutError:
            raise StageTimeoutError(stage.value, budget)

    async def _run_stage(
        self,
        stage: StageName,
        run: _Run,
        body: Callable[[List[PipelineError]], Awaitable[Dict[str, Any]]],
        fallback: Optional[Callable[[], None]] = None,
    ) -> None:
        """Run one stage, timing it and containing any failure."""
        report = StageReport(name=stage.value)
        stage_errors: List[PipelineError] = []
        report.start()
        try:
            stats = await body(stage_errors)
            report.complete(stats)
        except Exception as e:
            console.print(f"[red]{stage.value} stage failed: {e}[/red]")
            stage_errors.append(PipelineError(stage=stage, cause=e, recoverable=True))
            report.fail(str(e) or type(e).__name__)
            if fallback is not None:
                fallback()
        finally:
            self.errors.extend(stage_errors)
            run.result.stages[stage.value] = report

    # Stages

    async def _extract(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        outcomes = await self._executor().map_with_fallback(
            run.articles,
            self.extractor.extract,
            lambda article, e: ExtractedContent.degraded(article),
            StageName.EXTRACTION,
            errors,
        )

        extracted = 0
        for outcome in outcomes:
            article = run.articles[outcome.index]
            content = outcome.value
            run.contents[article.id] = content
            if isinstance(outcome, Success):
                extracted += 1
                if content.clean_summary:
                    article.summary = content.clean_summary
                for keyword in content.keywords[:5]:
                    if keyword not in article.tags:
                        article.tags.append(keyword)

        return {
            "extracted": extracted,
            "degraded": len(outcomes) - extracted,
            "dropped": len(run.articles) - len(outcomes),
        }

    async def _check_safety(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        # One article at a time; failures allow the article
        outcomes = await self._executor(parallel=False).map_with_fallback(
            run.articles,
            lambda article: self.safety.check(article, run.content_for(article)),
            lambda article, e: None,
            StageName.SAFETY,
            errors,
        )

        blocked = set()
        for outcome in outcomes:
            if not isinstance(outcome, Success):
                continue
            article = run.articles[outcome.index]
            run.result.safety_results[article.id] = outcome.value
            if outcome.value.recommendation != "allow":
                blocked.add(article.id)

        run.articles = [a for a in run.articles if a.id not in blocked]
        run.result.blocked_count = len(blocked)
        return {"checked": len(outcomes), "blocked": len(blocked)}

    async def _enrich(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        user_context = {"user_id": self.config.user_id, "interests": self.config.user_interests}
        outcomes = await self._executor().map_with_fallback(
            run.articles,
            lambda article: self.enricher.enrich(article, run.content_for(article), user_context),
            lambda article, e: EnrichmentResult.neutral(
                word_count=run.content_for(article).word_count or 100,
                popularity=article.popularity_score,
            ),
            StageName.ENRICHMENT,
            errors,
        )

        for outcome in outcomes:
            run.result.enrichments[run.articles[outcome.index].id] = outcome.value

        fallbacks = sum(1 for o in outcomes if not isinstance(o, Success))
        return {"enriched": len(outcomes) - fallbacks, "fallback": fallbacks}

    async def _deduplicate(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        clustering = await self._bounded(
            self.deduplicator.cluster(run.articles, self.existing_clusters),
            StageName.DEDUPLICATION,
        )

        # Only articles of the current working set, each once
        current = {a.id for a in run.articles}
        seen = set()
        kept: List[Article] = []
        candidates = [m for c in clustering.clusters for m in c.members] + clustering.unclustered
        for article in candidates:
            if article.id in current and article.id not in seen:
                seen.add(article.id)
                kept.append(article)

        clusters = []
        for cluster in clustering.clusters:
            members = [m for m in cluster.members if m.id in current]
            if members:
                clusters.append(cluster.model_copy(update={"members": members}))

        removed = len(run.articles) - len(kept)
        run.articles = kept
        run.clusters = clusters
        run.result.duplicates_removed = removed

        input_count = run.result.input_count
        if input_count and removed / input_count > self.config.max_duplicate_rate:
            console.print(
                f"[yellow]High duplicate rate: {removed}/{input_count} articles removed[/yellow]"
            )

        return {
            "duplicates": removed,
            "clusters": len(clusters),
            "clusters_formed": clustering.clusters_formed,
        }

    async def _rank(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        rankings = await self._bounded(
            self.ranking_engine.rank_articles(run.articles, run.result.enrichments, run.clusters),
            StageName.RANKING,
        )
        run.result.rankings = rankings
        run.articles = [r.article for r in rankings]

        top = rankings[0].final_score if rankings else 0.0
        return {"ranked": len(rankings), "top_score": round(top, 3)}

    def _fallback_ranking(self, run: _Run) -> None:
        rankings = [self.ranking_engine.fallback_result(a) for a in run.articles]
        rankings.sort(key=lambda r: r.final_score, reverse=True)
        run.result.rankings = rankings
        run.articles = [r.article for r in rankings]

    async def _summarize(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        top = run.articles[: min(self.config.summarize_top_n, len(run.articles))]

        def entities_for(article: Article):
            enrichment = run.result.enrichments.get(article.id)
            return enrichment.entities if enrichment else []

        outcomes = await self._executor().map_with_fallback(
            top,
            lambda article: self.summarizer.summarize(article, run.content_for(article), entities_for(article)),
            lambda article, e: None,
            StageName.SUMMARIZATION,
            errors,
        )

        for outcome in outcomes:
            if isinstance(outcome, Success):
                run.result.summaries[top[outcome.index].id] = outcome.value

        return {"requested": len(top), "summarized": len(run.result.summaries)}

    async def _notify(self, run: _Run, errors: List[PipelineError]) -> Dict[str, Any]:
        signals = []
        for article in run.articles:
            enrichment = run.result.enrichments.get(article.id)
            if enrichment is None:
                enrichment = EnrichmentResult.neutral(popularity=article.popularity_score)
            signals.append(enrichment.signals)

        notifications = await self._bounded(
            self.notifier.process(run.articles, run.clusters, signals),
            StageName.NOTIFICATIONS,
        )
        run.result.notifications = list(notifications)
        return {"notifications": len(notifications)}

    # Run

    async def process(self, articles: List[Article]) -> PipelineResult:
        """
        Run every enabled stage over the articles.

        Never raises: failures are recorded in the result's errors and the
        affected stage or item degrades to its fallback.
        """
        start = time.perf_counter()
        self.errors = []
        run = _Run(articles)
        config = self.config

        try:
            if config.enable_content_extraction:
                await self._run_stage(
                    StageName.EXTRACTION, run,
                    lambda errors: self._extract(run, errors),
                )

            if config.enable_safety:
                await self._run_stage(
                    StageName.SAFETY, run,
                    lambda errors: self._check_safety(run, errors),
                )

            if config.enable_enrichment:
                await self._run_stage(
                    StageName.ENRICHMENT, run,
                    lambda errors: self._enrich(run, errors),
                )

            if config.enable_deduplication:
                await self._run_stage(
                    StageName.DEDUPLICATION, run,
                    lambda errors: self._deduplicate(run, errors),
                )

            if config.enable_ranking:
                await self._run_stage(
                    StageName.RANKING, run,
                    lambda errors: self._rank(run, errors),
                    fallback=lambda: self._fallback_ranking(run),
                )

            if config.enable_summarization:
                await self._run_stage(
                    StageName.SUMMARIZATION, run,
                    lambda errors: self._summarize(run, errors),
                )

            if config.enable_notifications:
                await self._run_stage(
                    StageName.NOTIFICATIONS, run,
                    lambda errors: self._notify(run, errors),
                )
        except Exception as e:
            console.print(f"[red]Pipeline failed: {e}[/red]")
            self.errors.append(PipelineError(stage=StageName.PIPELINE, cause=e, recoverable=False))

        result = run.result
        result.articles = run.articles
        result.clusters = run.clusters
        result.output_count = len(run.articles)
        result.processing_time = time.perf_counter() - start
        result.errors = list(self.errors)
        result.error_count = len(self.errors)

        if config.enable_metrics:
            self._record_metrics(result)

        self.last_result = result
        self.run_count += 1
        return result

    def _record_metrics(self, result: PipelineResult) -> None:
        """Push run metrics to the monitoring sink. A sink failure is only logged."""
        seconds = result.processing_time
        scores = [r.final_score for r in result.rankings]
        try:
            self.monitor.record(
                PipelineMetrics(
                    response_time=seconds,
                    throughput=result.output_count / seconds if seconds > 0 else 0.0,
                    error_rate=result.error_count / result.input_count if result.input_count else 0.0,
                    articles_processed=result.output_count,
                    average_relevance_score=sum(scores) / len(scores) if scores else 0.0,
                )
            )
        except Exception as e:
            console.print(f"[yellow]Failed to record metrics: {e}[/yellow]")

    # Management

    def update_config(self, **changes: Any) -> PipelineConfig:
        """
        Replace the config with a validated merge of the current one and changes.

        Raises:
            pydantic.ValidationError: unknown field or invalid value
        """
        data = self.config.model_dump()
        data.update(changes)
        new_config = PipelineConfig(**data)

        rebuild = any(
            getattr(new_config, key) != getattr(self.config, key)
            for key in ENGINE_KEYS
            if key in changes
        )
        self.config = new_config
        if rebuild:
            console.print("[dim]Configuration changed, rebuilding engines[/dim]")
            self._init_engines()
        return new_config

    def get_errors(self) -> List[PipelineError]:
        """Errors recorded by the last run."""
        return list(self.errors)

    def clear_errors(self) -> None:
        self.errors = []

    def get_statistics(self) -> Dict[str, Any]:
        """Config (secrets masked), cluster and error counts, AI usage."""
        return {
            "config": self.config.redacted(),
            "runs": self.run_count,
            "clusters": len(self.last_result.clusters) if self.last_result else 0,
            "error_count": len(self.errors),
            "recent_errors": [e.to_dict() for e in self.errors[-5:]],
            "ai_usage": self.ranking_engine.get_usage_stats(),
        }

    def health_check(self) -> Dict[str, Any]:
        """Synchronous check that every engine is constructed. No network calls."""
        components = {
            "extractor": self.extractor is not None,
            "safety": self.safety is not None,
            "enricher": self.enricher is not None,
            "deduplicator": self.deduplicator is not None,
            "ranking_engine": self.ranking_engine is not None,
            "summarizer": self.summarizer is not None,
            "notifier": self.notifier is not None,
        }
        healthy = all(components.values()) and len(self.errors) < MAX_HEALTHY_ERRORS
        return {
            "status": "healthy" if healthy else "unhealthy",
            "details": {
                "components": components,
                "ai_configured": self.ai_provider is not None,
                "ai_provider": self.config.ai_provider,
                "error_count": len(self.errors),
                "user_id": self.config.user_id,
            },
        }


def create_pipeline(
    user_id: str,
    interests: List[str],
    api_key: Optional[str] = None,
    **overrides: Any,
) -> Pipeline:
    """Pipeline with the standard defaults: all stages on, batches of 10, 30 seconds per stage."""
    settings = {
        "user_id": user_id,
        "user_interests": interests,
        "gemini_api_key": api_key,
        "batch_size": 10,
        "max_processing_time": 30.0,
        "enable_parallel_processing": True,
    }
    settings.update(overrides)
    return Pipeline(PipelineConfig(**settings))


async def process_articles_quick(
    articles: List[Article],
    interests: List[str],
    api_key: Optional[str] = None,
) -> PipelineResult:
    """Fast path: no extraction, summaries or notifications, larger batches, 10 second budget."""
    pipeline = create_pipeline(
        "quick",
        interests,
        api_key,
        enable_content_extraction=False,
        enable_summarization=False,
        enable_notifications=False,
        batch_size=20,
        max_processing_time=10.0,
    )
    return await pipeline.process(articles)


def print_pipeline_summary(result: PipelineResult) -> None:
    """Print pipeline execution summary."""
    table = Table(title="Pipeline Summary")
    table.add_column("Stage", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")

    for name, report in result.stages.items():
        status = "[green]✓[/green]" if report.success else "[red]✗[/red]"
        duration = f"{report.duration:.2f}s" if report.duration > 0 else "-"
        if report.success:
            details = ", ".join(f"{k}: {v}" for k, v in report.stats.items())
        else:
            details = report.error or "Failed"
        table.add_row(name.title(), status, duration, details)

    console.print("\n")
    console.print(table)

    style = "green" if result.error_count == 0 else "yellow"
    console.print(Panel(
        f"Input: {result.input_count} • Output: {result.output_count}\n"
        f"Duplicates removed: {result.duplicates_removed} • Blocked: {result.blocked_count}\n"
        f"Summaries: {len(result.summaries)} • Notifications: {len(result.notifications)}\n"
        f"Errors: {result.error_count}\n"
        f"Duration: {result.processing_time:.2f} seconds",
        style=style,
    ))

    for error in result.errors[:5]:
        target = f" ({error.article_id})" if error.article_id else ""
        console.print(f"[red]  {error.stage.value}{target}: {error.message}[/red]")


def save_pipeline_result(result: PipelineResult, path: Path) -> None:
    """Save run statistics, rankings and notifications as JSON."""
    data = {
        "pipeline": {
            "processing_time": result.processing_time,
            "input_count": result.input_count,
            "output_count": result.output_count,
            "duplicates_removed": result.duplicates_removed,
            "blocked_count": result.blocked_count,
            "error_count": result.error_count,
            "completed_at": pendulum.now("UTC").isoformat(),
        },
        "stages": {name: report.model_dump() for name, report in result.stages.items()},
        "errors": [error.to_dict() for error in result.errors],
        "rankings": [
            {
                "id": r.article.id,
                "title": r.article.title,
                "url": r.article.url,
                "final_score": r.final_score,
                "confidence": r.confidence,
                "explanation": r.explanation,
            }
            for r in result.rankings
        ],
        "summaries": {
            article_id: summary.model_dump(mode="json")
            for article_id, summary in result.summaries.items()
        },
        "notifications": [n.model_dump(mode="json") for n in result.notifications],
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
