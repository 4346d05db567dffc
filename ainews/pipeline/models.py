"""Pipeline result and error models."""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

import pendulum
from pydantic import BaseModel, Field, PrivateAttr

from ..models import (
    Article,
    ArticleCluster,
    EnrichmentResult,
    Notification,
    SafetyResult,
    SummaryResult,
)
from ..ranking import RankingResult

T = TypeVar("T")


class StageName(str, Enum):
    """Pipeline stages in execution order, plus the outer guard."""

    EXTRACTION = "extraction"
    SAFETY = "safety"
    ENRICHMENT = "enrichment"
    DEDUPLICATION = "deduplication"
    RANKING = "ranking"
    SUMMARIZATION = "summarization"
    NOTIFICATIONS = "notifications"
    PIPELINE = "pipeline"


class PipelineError(BaseModel):
    """Failure recorded during a run. Never raised."""

    stage: StageName
    cause: Exception
    article_id: Optional[str] = None
    recoverable: bool = True
    timestamp: datetime = Field(default_factory=lambda: pendulum.now("UTC"))

    class Config:
        """Pydantic config."""

        arbitrary_types_allowed = True

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__

    def to_dict(self) -> Dict[str, Any]:
        """JSON friendly view."""
        return {
            "stage": self.stage.value,
            "error": type(self.cause).__name__,
            "message": self.message,
            "article_id": self.article_id,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
        }


class StageReport(BaseModel):
    """Timing and outcome of one stage."""

    name: str
    duration: float = 0.0
    success: bool = False
    error: Optional[str] = None
    stats: Dict[str, Any] = Field(default_factory=dict)

    _start_time: Optional[float] = PrivateAttr(default=None)

    def start(self) -> None:
        """Mark stage as started."""
        self._start_time = time.perf_counter()

    def _stop(self) -> None:
        if self._start_time is not None:
            self.duration = time.perf_counter() - self._start_time

    def complete(self, stats: Optional[Dict[str, Any]] = None) -> None:
        """Mark stage as completed successfully."""
        self._stop()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: str) -> None:
        """Mark stage as failed."""
        self._stop()
        self.success = False
        self.error = error


class Success(BaseModel, Generic[T]):
    """Real output of a per-item stage call."""

    index: int
    value: T

    class Config:
        """Pydantic config."""

        arbitrary_types_allowed = True


class Fallback(BaseModel, Generic[T]):
    """Substitute output produced after a per-item failure."""

    index: int
    value: T
    error: PipelineError

    class Config:
        """Pydantic config."""

        arbitrary_types_allowed = True


class PipelineResult(BaseModel):
    """Everything produced by one run."""

    articles: List[Article] = Field(default_factory=list)
    clusters: List[ArticleCluster] = Field(default_factory=list)
    rankings: List[RankingResult] = Field(default_factory=list)
    enrichments: Dict[str, EnrichmentResult] = Field(default_factory=dict)
    summaries: Dict[str, SummaryResult] = Field(default_factory=dict)
    notifications: List[Notification] = Field(default_factory=list)
    safety_results: Dict[str, SafetyResult] = Field(default_factory=dict)
    duplicates_removed: int = 0
    blocked_count: int = 0
    processing_time: float = Field(0.0, description="Run duration in seconds")
    input_count: int = 0
    output_count: int = 0
    error_count: int = 0
    errors: List[PipelineError] = Field(default_factory=list)
    stages: Dict[str, StageReport] = Field(default_factory=dict)
