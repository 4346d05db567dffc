"""Data models for the news pipeline."""

from .article import Article
from .cluster import ArticleCluster, ClusteringResult
from .content import (
    AIInsights,
    AuxiliarySignals,
    EnrichedEntity,
    EnrichmentResult,
    ExtractedContent,
    TopicClassification,
)
from .metrics import PipelineMetrics
from .notification import Notification
from .safety import SafetyFlag, SafetyResult
from .summary import SummaryResult

__all__ = [
    "Article",
    "ArticleCluster",
    "ClusteringResult",
    "ExtractedContent",
    "EnrichedEntity",
    "TopicClassification",
    "AuxiliarySignals",
    "AIInsights",
    "EnrichmentResult",
    "Notification",
    "PipelineMetrics",
    "SafetyFlag",
    "SafetyResult",
    "SummaryResult",
]
