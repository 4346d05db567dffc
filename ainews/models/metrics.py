"""Run metrics pushed to monitoring."""

from datetime import datetime

import pendulum
from pydantic import Field

from .base import NewsModel


class PipelineMetrics(NewsModel):
    """Metrics recorded after each pipeline run."""

    timestamp: datetime = Field(default_factory=lambda: pendulum.now("UTC"))
    response_time: float = Field(..., description="Run duration in seconds")
    throughput: float = Field(..., description="Output articles per second")
    error_rate: float = Field(..., description="Errors per input article")
    articles_processed: int = Field(..., description="Output article count")
    average_relevance_score: float = Field(0.0, description="Mean final ranking score")
