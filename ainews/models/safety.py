"""Safety check models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Recommendation = Literal["allow", "flag", "block"]


class SafetyFlag(BaseModel):
    """Single safety concern raised for an article."""

    type: str = Field(..., description="Flag category (spam, clickbait, ...)")
    severity: Literal["low", "medium", "high", "critical"] = "low"
    reason: str = Field(..., description="Why the flag was raised")
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    location: Optional[str] = Field(None, description="Where in the content it was triggered")


class SafetyResult(BaseModel):
    """Result of checking one article."""

    is_content_safe: bool = True
    safety_score: float = Field(1.0, ge=0.0, le=1.0, description="Higher is safer")
    flags: List[SafetyFlag] = Field(default_factory=list)
    recommendation: Recommendation = "allow"
    confidence: float = Field(0.8, ge=0.0, le=1.0)
