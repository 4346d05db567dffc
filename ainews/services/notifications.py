"""Rule based notification generation."""

from typing import Callable, Dict, List, Optional, Tuple

import pendulum
from pydantic import BaseModel, Field

from ..models import Article, ArticleCluster, AuxiliarySignals, Notification
from .base import NotificationProcessor

PRIORITY_WEIGHT = {"urgent": 4, "high": 3, "medium": 2, "low": 1}
HISTORY_MINUTES = 24 * 60


class NotificationRule(BaseModel):
    """Rate limits and priority of one notification rule."""

    id: str
    name: str
    enabled: bool = True
    priority: str = "medium"
    cooldown_minutes: int = Field(60, ge=0)
    max_per_day: int = Field(3, ge=0)
    expires_hours: float = Field(1.0, gt=0)


DEFAULT_RULES = [
    NotificationRule(
        id="breaking_news", name="Breaking News", priority="urgent",
        cooldown_minutes=30, max_per_day=5, expires_hours=1,
    ),
    NotificationRule(
        id="trending_topics", name="Trending in Your Interests", priority="high",
        cooldown_minutes=120, max_per_day=3, expires_hours=2,
    ),
    NotificationRule(
        id="high_relevance", name="Highly Relevant Articles", priority="medium",
        cooldown_minutes=180, max_per_day=2, expires_hours=4,
    ),
]


class RuleBasedNotificationProcessor(NotificationProcessor):
    """Breaking, trending and personalized notifications with per-rule rate limits."""

    def __init__(
        self,
        user_id: str,
        topics: Optional[List[str]] = None,
        rules: Optional[List[NotificationRule]] = None,
        max_per_run: int = 5,
        clock: Optional[Callable[[], pendulum.DateTime]] = None,
    ) -> None:
        """
        Initialize notification processor.

        Args:
            user_id: User receiving the notifications
            topics: User interests used to filter trending and personalized items
            rules: Notification rules, defaults to breaking/trending/high relevance
            max_per_run: Cap on notifications returned per call
            clock: Returns "now"; defaults to pendulum UTC now
        """
        self.user_id = user_id
        self.topics = [t.lower() for t in (topics or [])]
        self.rules: Dict[str, NotificationRule] = {r.id: r for r in (rules or DEFAULT_RULES)}
        self.max_per_run = max_per_run
        self.clock = clock or (lambda: pendulum.now("UTC"))
        self.history: List[Tuple[str, pendulum.DateTime]] = []

    def _relevant(self, text: str) -> bool:
        if not self.topics:
            return True
        text = text.lower()
        return any(topic in text or text in topic for topic in self.topics)

    def _prune_history(self, now: pendulum.DateTime) -> None:
        """Forget sends that no cooldown or daily cap can still see."""
        window = max([HISTORY_MINUTES] + [r.cooldown_minutes for r in self.rules.values()])
        self.history = [(rule_id, ts) for rule_id, ts in self.history if now.diff(ts).in_minutes() < window]

    def _allowed(self, rule: NotificationRule, sent_now: int) -> bool:
        now = self.clock()
        sent = [ts for rule_id, ts in self.history if rule_id == rule.id]
        if any(now.diff(ts).in_minutes() < rule.cooldown_minutes for ts in sent):
            return False
        today = sum(1 for ts in sent if ts.date() == now.date())
        return today + sent_now < rule.max_per_day

    def _make(
        self,
        rule: NotificationRule,
        kind: str,
        title: str,
        body: str,
        article_id: Optional[str] = None,
        cluster_id: Optional[str] = None,
    ) -> Notification:
        now = self.clock()
        target = article_id or cluster_id
        return Notification(
            id=f"{self.user_id}-{rule.id}-{target}-{int(now.timestamp())}",
            type=kind,
            title=title,
            body=body,
            article_id=article_id,
            cluster_id=cluster_id,
            priority=rule.priority,
            rule_id=rule.id,
            scheduled_for=now,
            expires_at=now.add(minutes=int(rule.expires_hours * 60)),
        )

    def _candidates(
        self,
        articles: List[Article],
        clusters: List[ArticleCluster],
        signals: List[AuxiliarySignals],
    ) -> List[Tuple[NotificationRule, Notification]]:
        found = []

        rule = self.rules.get("breaking_news")
        if rule and rule.enabled:
            for article, signal in zip(articles, signals):
                if signal.is_breaking and article.final_score > 0.8:
                    found.append((rule, self._make(
                        rule, "breaking", f"Breaking: {article.title}",
                        article.summary or article.source_name, article_id=article.id,
                    )))

        rule = self.rules.get("trending_topics")
        if rule and rule.enabled:
            trending = sorted(
                (c for c in clusters if c.velocity > 3 and len(c.members) >= 3),
                key=lambda c: c.velocity,
                reverse=True,
            )[:3]
            for cluster in trending:
                if cluster.representative_article.final_score > 0.7 and self._relevant(cluster.topic):
                    found.append((rule, self._make(
                        rule, "trending", f"Trending: {cluster.topic}",
                        f"{len(cluster.members)} articles including "
                        f"'{cluster.representative_article.title}'",
                        cluster_id=cluster.id,
                    )))

        rule = self.rules.get("high_relevance")
        if rule and rule.enabled:
            relevant = sorted(
                (
                    a for a in articles
                    if a.final_score > 0.85 and self._relevant(f"{a.title} {a.summary or ''}")
                ),
                key=lambda a: a.final_score,
                reverse=True,
            )[:2]
            for article in relevant:
                found.append((rule, self._make(
                    rule, "personalized", f"For you: {article.title}",
                    article.summary or article.source_name, article_id=article.id,
                )))

        return found

    async def process(
        self,
        articles: List[Article],
        clusters: List[ArticleCluster],
        signals: List[AuxiliarySignals],
    ) -> List[Notification]:
        """Generate rate-limited notifications for the final articles."""
        self._prune_history(self.clock())
        candidates = sorted(
            self._candidates(articles, clusters, signals),
            key=lambda pair: PRIORITY_WEIGHT.get(pair[1].priority, 1),
            reverse=True,
        )

        sent_now: Dict[str, int] = {}
        notifications = []
        for rule, notification in candidates:
            if len(notifications) >= self.max_per_run:
                break
            if not self._allowed(rule, sent_now.get(rule.id, 0)):
                continue
            sent_now[rule.id] = sent_now.get(rule.id, 0) + 1
            notifications.append(notification)

        now = self.clock()
        self.history.extend((n.rule_id, now) for n in notifications)
        return notifications
