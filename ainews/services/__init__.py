"""Collaborator interfaces and their default implementations."""

from .base import (
    ContentExtractor,
    DeduplicationService,
    EnrichmentService,
    MonitoringSink,
    NotificationProcessor,
    SafetyEngine,
    SummarizationEngine,
)
from .dedup import TitleSimilarityDeduplicator
from .enrichment import RuleBasedEnrichmentService
from .extraction import TextContentExtractor
from .monitoring import InMemoryMonitoringSink
from .notifications import NotificationRule, RuleBasedNotificationProcessor
from .safety import RuleBasedSafetyEngine
from .summarization import ExtractiveSummarizer

__all__ = [
    "ContentExtractor",
    "SafetyEngine",
    "EnrichmentService",
    "DeduplicationService",
    "SummarizationEngine",
    "NotificationProcessor",
    "MonitoringSink",
    "TextContentExtractor",
    "RuleBasedSafetyEngine",
    "RuleBasedEnrichmentService",
    "TitleSimilarityDeduplicator",
    "ExtractiveSummarizer",
    "RuleBasedNotificationProcessor",
    "NotificationRule",
    "InMemoryMonitoringSink",
]
