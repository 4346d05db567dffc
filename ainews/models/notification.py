"""Notification models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import NewsModel

Priority = Literal["low", "medium", "high", "urgent"]


class Notification(NewsModel):
    """Pending notification produced for the user."""

    id: str = Field(..., description="Notification identifier")
    type: Literal["breaking", "trending", "personalized", "cluster_update"]
    title: str = Field(..., description="Notification title")
    body: str = Field(..., description="Notification body")
    article_id: Optional[str] = Field(None, description="Article the notification points to")
    cluster_id: Optional[str] = Field(None, description="Cluster the notification points to")
    priority: Priority = "medium"
    rule_id: Optional[str] = Field(None, description="Rule that fired")
    scheduled_for: datetime = Field(..., description="When to deliver")
    expires_at: datetime = Field(..., description="When the notification goes stale")
