"""Title similarity deduplication and clustering."""

import hashlib
import re
from collections import Counter
from typing import Callable, List, Optional, Set

import pendulum

from ..models import Article, ArticleCluster, ClusteringResult
from .base import DeduplicationService
from .extraction import STOPWORDS


def title_words(title: str) -> Set[str]:
    """Lowercased word set of a title."""
    return set(re.findall(r"[a-z0-9]+", title.lower()))


def normalize_url(url: str) -> str:
    """Strip scheme, www, query and trailing slash."""
    url = re.sub(r"^https?://(www\.)?", "", url.strip().lower())
    return url.split("?")[0].split("#")[0].rstrip("/")


class TitleSimilarityDeduplicator(DeduplicationService):
    """Drop duplicate articles and group the rest by shared title words."""

    def __init__(
        self,
        duplicate_threshold: float = 0.85,
        cluster_threshold: float = 0.5,
        clock: Optional[Callable[[], pendulum.DateTime]] = None,
    ) -> None:
        """
        Initialize deduplicator.

        Args:
            duplicate_threshold: Title overlap at which two articles are the same story
            cluster_threshold: Overlap of significant words at which articles share a cluster
            clock: Returns "now"; defaults to pendulum UTC now
        """
        self.duplicate_threshold = duplicate_threshold
        self.cluster_threshold = cluster_threshold
        self.clock = clock or (lambda: pendulum.now("UTC"))

    def _is_duplicate(self, a: Article, b: Article) -> bool:
        # Same canonical URL
        if normalize_url(a.url) == normalize_url(b.url):
            return True

        if a.title.strip().lower() == b.title.strip().lower():
            return True

        # Very similar titles
        words_a = title_words(a.title)
        words_b = title_words(b.title)
        if len(words_a) > 3 and len(words_b) > 3:
            overlap = len(words_a & words_b)
            if overlap / min(len(words_a), len(words_b)) >= self.duplicate_threshold:
                return True

        return False

    def _similarity(self, a: Article, b: Article) -> float:
        words_a = title_words(a.title) - STOPWORDS
        words_b = title_words(b.title) - STOPWORDS
        if not words_a or not words_b:
            return 0.0
        overlap = len(words_a & words_b)
        if overlap < 2:
            return 0.0
        return overlap / min(len(words_a), len(words_b))

    def _topic(self, members: List[Article]) -> str:
        counts = Counter()
        for member in members:
            counts.update(title_words(member.title) - STOPWORDS)
        if not counts:
            return "general"
        return counts.most_common(1)[0][0]

    def _build_cluster(
        self,
        members: List[Article],
        existing: Optional[ArticleCluster] = None,
    ) -> ArticleCluster:
        now = self.clock()
        representative = max(members, key=lambda a: a.popularity_score)

        pairs = [
            self._similarity(members[i], members[j])
            for i in range(len(members))
            for j in range(i + 1, len(members))
        ]
        cluster_score = sum(pairs) / len(pairs) if pairs else 1.0

        oldest_hours = max(member.age_hours(now) for member in members)
        velocity = len(members) / max(1.0, oldest_hours)

        if existing is not None:
            return existing.model_copy(
                update={
                    "representative_article": representative,
                    "members": members,
                    "cluster_score": cluster_score,
                    "velocity": velocity,
                    "updated_at": now,
                }
            )

        digest = hashlib.sha1("|".join(sorted(m.id for m in members)).encode()).hexdigest()
        return ArticleCluster(
            id=f"cluster-{digest[:12]}",
            topic=self._topic(members),
            representative_article=representative,
            members=members,
            cluster_score=cluster_score,
            velocity=velocity,
            created_at=now,
            updated_at=now,
        )

    async def cluster(
        self,
        articles: List[Article],
        existing_clusters: List[ArticleCluster],
    ) -> ClusteringResult:
        """Deduplicate and cluster the given articles."""
        unique: List[Article] = []
        duplicates_removed = 0
        for article in articles:
            if any(self._is_duplicate(article, kept) for kept in unique):
                duplicates_removed += 1
            else:
                unique.append(article)

        # Attach to known stories first
        existing_members = {cluster.id: [] for cluster in existing_clusters}
        groups: List[List[Article]] = []
        for article in unique:
            match = next(
                (
                    cluster
                    for cluster in existing_clusters
                    if self._similarity(article, cluster.representative_article) >= self.cluster_threshold
                ),
                None,
            )
            if match is not None:
                existing_members[match.id].append(article)
                continue

            group = next(
                (g for g in groups if self._similarity(article, g[0]) >= self.cluster_threshold),
                None,
            )
            if group is None:
                groups.append([article])
            else:
                group.append(article)

        clusters = [
            self._build_cluster(existing_members[cluster.id], cluster)
            for cluster in existing_clusters
            if existing_members[cluster.id]
        ]
        new_clusters = [self._build_cluster(group) for group in groups if len(group) > 1]
        clusters.extend(new_clusters)
        unclustered = [group[0] for group in groups if len(group) == 1]

        return ClusteringResult(
            clusters=clusters,
            unclustered=unclustered,
            duplicates_removed=duplicates_removed,
            clusters_formed=len(new_clusters),
        )
