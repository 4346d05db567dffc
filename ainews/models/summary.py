"""Summary models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class SummaryResult(BaseModel):
    """Summary of a single ranked article."""

    extractive_summary: str = Field(..., description="Sentences lifted from the article")
    abstractive_summary: Optional[str] = Field(None, description="Model written summary")
    key_points: List[str] = Field(default_factory=list, description="Bullet points")
    entities: List[str] = Field(default_factory=list, description="Entities mentioned")
    sentiment: Literal["positive", "negative", "neutral"] = "neutral"
    confidence_score: float = Field(0.5, ge=0.0, le=1.0)
    warning_flags: List[str] = Field(default_factory=list)
