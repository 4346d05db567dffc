"""Cluster models for grouping related articles."""

from datetime import datetime
from typing import List

import pendulum
from pydantic import Field

from .article import Article
from .base import NewsModel


class ArticleCluster(NewsModel):
    """Group of near-duplicate or same-event articles."""

    id: str = Field(..., description="Cluster identifier")
    topic: str = Field(..., description="Cluster topic label")
    representative_article: Article = Field(..., description="Article chosen to represent the cluster")
    members: List[Article] = Field(default_factory=list, description="Articles in the cluster")
    cluster_score: float = Field(0.0, description="Mean pairwise similarity of members")
    velocity: float = Field(1.0, description="Growth rate in articles per hour")
    created_at: datetime = Field(default_factory=lambda: pendulum.now("UTC"))
    updated_at: datetime = Field(default_factory=lambda: pendulum.now("UTC"))

    def contains(self, article_id: str) -> bool:
        """Whether an article belongs to this cluster."""
        return self.representative_article.id == article_id or any(
            member.id == article_id for member in self.members
        )


class ClusteringResult(NewsModel):
    """Output of a deduplication pass."""

    clusters: List[ArticleCluster] = Field(default_factory=list)
    unclustered: List[Article] = Field(default_factory=list)
    duplicates_removed: int = Field(0, ge=0)
    clusters_formed: int = Field(0, ge=0)
