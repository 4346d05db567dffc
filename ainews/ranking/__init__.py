"""Article ranking and scoring."""

from .models import (
    ClickEvent,
    RankingResult,
    RankingSignals,
    UserRankingProfile,
    create_default_user_profile,
)
from .ranker import RankingEngine, print_ranking_summary
from .scorers import (
    BaseScorer,
    ClickProbabilityScorer,
    ContentQualityScorer,
    DwellTimeScorer,
    RecencyScorer,
    TopicRelevanceScorer,
    UserInterestScorer,
)

__all__ = [
    "RankingEngine",
    "RankingResult",
    "RankingSignals",
    "ClickEvent",
    "UserRankingProfile",
    "create_default_user_profile",
    "BaseScorer",
    "ContentQualityScorer",
    "RecencyScorer",
    "TopicRelevanceScorer",
    "UserInterestScorer",
    "ClickProbabilityScorer",
    "DwellTimeScorer",
    "print_ranking_summary",
]
