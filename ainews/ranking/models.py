"""Ranking models."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

import pendulum
from pydantic import BaseModel, Field, field_validator

from ..models import Article


class RankingSignals(BaseModel):
    """Signals computed for one article. Optional fields are None when not computable."""

    # Content
    content_quality: float = Field(0.5, ge=0.0, le=1.0)
    readability: float = Field(0.5, ge=0.0, le=1.0)
    word_count: int = Field(100, ge=0)

    # Authority
    source_reputation: float = Field(0.5, ge=0.0, le=1.0)
    author_credibility: float = Field(0.5, ge=0.0, le=1.0)

    # Engagement
    popularity_score: float = Field(0.5, ge=0.0, le=1.0)
    virality_score: float = Field(0.5, ge=0.0, le=1.0)

    # Relevance
    topic_relevance: float = Field(0.5, ge=0.0, le=1.0)
    user_interest_match: float = Field(0.5, ge=0.0, le=1.0)

    # Temporal
    recency: float = Field(0.5, ge=0.0, le=1.0)
    timeliness: float = Field(0.5, ge=0.0, le=1.0)

    # User behavior
    click_probability: float = Field(0.5, ge=0.0, le=1.0)
    dwell_time_predict: float = Field(0.5, ge=0.0, le=1.0)

    # AI
    ai_relevance_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    ai_importance: Optional[float] = Field(None, ge=0.0, le=1.0)
    ai_credibility: Optional[float] = Field(None, ge=0.0, le=1.0)

    # Cluster
    cluster_velocity: Optional[float] = None
    cluster_size: Optional[int] = None

    def present_count(self) -> int:
        """Number of signals that are not None."""
        return sum(1 for value in self.model_dump().values() if value is not None)


class RankingResult(BaseModel):
    """Ranked article with its score breakdown."""

    article: Article
    final_score: float = Field(..., ge=0.0, le=1.0)
    signals: RankingSignals
    explanation: List[str] = Field(default_factory=list, description="Human-readable, not used in scoring")
    confidence: float = Field(..., ge=0.0, le=1.0)


class ClickEvent(BaseModel):
    """A user opening an article."""

    article_id: str
    timestamp: datetime = Field(default_factory=lambda: pendulum.now("UTC"))
    dwell_time: float = Field(0.0, ge=0.0, description="Seconds spent reading")
    topic: str = ""
    source: str = ""
    score: float = Field(0.5, ge=0.0, le=1.0, description="Engagement score of the click")

    @field_validator("timestamp")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return pendulum.instance(v, tz="UTC")
        return v


class UserRankingProfile(BaseModel):
    """Learned preferences used for personalization."""

    user_id: str
    interests: List[str] = Field(default_factory=list)
    click_history: List[ClickEvent] = Field(default_factory=list)
    dwell_time_preferences: Dict[str, float] = Field(default_factory=dict)
    source_preferences: Dict[str, float] = Field(default_factory=dict)
    topic_preferences: Dict[str, float] = Field(default_factory=dict)
    time_of_day_preferences: Dict[str, float] = Field(default_factory=dict)
    reading_speed: int = Field(200, gt=0, description="Words per minute")
    preferred_content_length: Literal["short", "medium", "long"] = "medium"


def create_default_user_profile(user_id: str, interests: List[str]) -> UserRankingProfile:
    """Fresh profile with no learned preferences."""
    return UserRankingProfile(user_id=user_id, interests=list(interests))
