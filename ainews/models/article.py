"""Article model for content items flowing through the pipeline."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pendulum
from pydantic import Field, field_validator

from .base import NewsModel


class Article(NewsModel):
    """Article model.

    Mutated in place by extraction (summary, tags) and ranking
    (final_score, ai_relevance_score).
    """

    id: str = Field(..., description="Stable article identifier")
    title: str = Field(..., description="Article title")
    summary: Optional[str] = Field(None, description="Short summary or teaser text")
    url: str = Field(..., description="Article URL")
    author: Optional[str] = Field(None, description="Article author")
    source_name: str = Field(..., description="Name of the source the article came from")
    published_at: datetime = Field(..., description="Publication timestamp")
    popularity_score: float = Field(0.5, description="Normalized source popularity", ge=0.0, le=1.0)
    relevance_score: Optional[float] = Field(None, description="Precomputed user relevance", ge=0.0, le=1.0)
    final_score: float = Field(0.0, description="Score assigned by ranking")
    tags: List[str] = Field(default_factory=list, description="Article tags")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Source specific metadata")
    ai_relevance_score: Optional[float] = Field(None, description="AI relevance score (0-100)")
    ai_relevance_reasoning: Optional[str] = Field(None, description="AI relevance explanation")

    @field_validator("published_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return pendulum.instance(v, tz="UTC")
        return v

    def age_hours(self, now: Optional[datetime] = None) -> float:
        """Hours elapsed since publication."""
        now = now or pendulum.now("UTC")
        return (now - self.published_at).total_seconds() / 3600
