"""Interfaces for the services the pipeline delegates to."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models import (
    Article,
    ArticleCluster,
    AuxiliarySignals,
    ClusteringResult,
    EnrichedEntity,
    EnrichmentResult,
    ExtractedContent,
    Notification,
    PipelineMetrics,
    SafetyResult,
    SummaryResult,
)


class ContentExtractor(ABC):
    """Cleans an article into extracted content."""

    @abstractmethod
    async def extract(self, article: Article) -> ExtractedContent:
        pass


class SafetyEngine(ABC):
    """Decides whether an article may be shown."""

    @abstractmethod
    async def check(self, article: Article, content: ExtractedContent) -> SafetyResult:
        pass


class EnrichmentService(ABC):
    """Adds entities, topics and auxiliary signals."""

    @abstractmethod
    async def enrich(
        self,
        article: Article,
        content: ExtractedContent,
        user_context: Optional[Dict[str, Any]] = None,
    ) -> EnrichmentResult:
        pass


class DeduplicationService(ABC):
    """Removes duplicates and groups articles into clusters."""

    @abstractmethod
    async def cluster(
        self,
        articles: List[Article],
        existing_clusters: List[ArticleCluster],
    ) -> ClusteringResult:
        pass


class SummarizationEngine(ABC):
    """Summarizes a single article."""

    @abstractmethod
    async def summarize(
        self,
        article: Article,
        content: ExtractedContent,
        entities: List[EnrichedEntity],
    ) -> SummaryResult:
        pass


class NotificationProcessor(ABC):
    """Turns final articles into notifications."""

    @abstractmethod
    async def process(
        self,
        articles: List[Article],
        clusters: List[ArticleCluster],
        signals: List[AuxiliarySignals],
    ) -> List[Notification]:
        pass


class MonitoringSink(ABC):
    """Receives run metrics. Must not block."""

    @abstractmethod
    def record(self, metrics: PipelineMetrics) -> None:
        pass
