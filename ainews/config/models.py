"""Configuration models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_GEMINI_MODELS = ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"]


class RankingWeights(BaseModel):
    """Weights applied to ranking signals."""

    content_quality: float = Field(0.15, ge=0.0, le=1.0)
    source_reputation: float = Field(0.12, ge=0.0, le=1.0)
    popularity_score: float = Field(0.10, ge=0.0, le=1.0)
    topic_relevance: float = Field(0.15, ge=0.0, le=1.0)
    recency: float = Field(0.08, ge=0.0, le=1.0)
    ai_relevance_score: float = Field(0.20, ge=0.0, le=1.0)
    user_interest_match: float = Field(0.12, ge=0.0, le=1.0)
    virality_score: float = Field(0.05, ge=0.0, le=1.0)
    author_credibility: float = Field(0.02, ge=0.0, le=1.0)
    readability: float = Field(0.01, ge=0.0, le=1.0, validate_default=True)

    @field_validator("readability")
    @classmethod
    def validate_weights(cls, v: float, info) -> float:
        """Validate that weights sum to 1.0."""
        # Last weight, check sum
        total = sum(
            info.data.get(name, 0.0)
            for name in cls.model_fields
            if name != "readability"
        ) + v
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Weights must sum to 1.0, got {total}")
        return v


class AIGateConfig(BaseModel):
    """Decides which articles get an AI relevance call."""

    mode: Literal["threshold", "always"] = Field(
        "threshold", description="'always' scores every article when a provider exists"
    )
    min_popularity: float = Field(0.6, ge=0.0, le=1.0)
    min_relevance: float = Field(0.7, ge=0.0, le=1.0)
    trusted_sources: List[str] = Field(default_factory=lambda: ["reuters", "bloomberg"])


class PipelineConfig(BaseModel):
    """Per-pipeline configuration, replaced wholesale on update."""

    # Stages
    enable_content_extraction: bool = True
    enable_safety: bool = True
    enable_enrichment: bool = True
    enable_deduplication: bool = True
    enable_ranking: bool = True
    enable_summarization: bool = True
    enable_notifications: bool = True

    # AI
    gemini_api_key: Optional[str] = Field(None, description="Gemini API key")
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    ai_provider: Literal["gemini", "openai", "mock", "none"] = "gemini"
    ai_models: List[str] = Field(
        default_factory=lambda: list(DEFAULT_GEMINI_MODELS),
        description="Model candidates tried in order",
    )
    ai_gate: AIGateConfig = Field(default_factory=AIGateConfig)
    ai_call_timeout: float = Field(10.0, gt=0.0, description="Seconds allowed for one AI relevance call")

    # User
    user_id: str = Field("default", description="User the feed is personalized for")
    user_interests: List[str] = Field(default_factory=list)

    # Performance
    batch_size: int = Field(10, ge=1, le=500)
    max_processing_time: float = Field(30.0, gt=0.0, description="Per-stage time budget in seconds")
    enable_parallel_processing: bool = True
    summarize_top_n: int = Field(10, ge=0, le=100)
    fetch_full_content: bool = False

    # Quality thresholds
    min_content_quality: float = Field(0.3, ge=0.0, le=1.0)
    max_duplicate_rate: float = Field(0.1, ge=0.0, le=1.0)
    ranking_weights: RankingWeights = Field(default_factory=RankingWeights)

    # Monitoring
    enable_metrics: bool = True
    enable_tracing: bool = False

    class Config:
        """Pydantic config."""

        frozen = True
        extra = "forbid"

    @field_validator("user_interests")
    @classmethod
    def strip_interests(cls, v: List[str]) -> List[str]:
        """Drop blank interests."""
        return [i.strip() for i in v if i and i.strip()]

    @property
    def ai_api_key(self) -> Optional[str]:
        """API key for the selected provider."""
        if self.ai_provider == "openai":
            return self.openai_api_key
        if self.ai_provider == "gemini":
            return self.gemini_api_key
        return None

    def redacted(self) -> dict:
        """Config dump with secrets masked."""
        data = self.model_dump()
        for key in ("gemini_api_key", "openai_api_key"):
            if data.get(key):
                data[key] = "***"
        return data


class ConfigModel(BaseModel):
    """Main configuration file model."""

    output_dir: str = Field("~/ainews/runs", description="Directory for run artifacts")
    gemini_api_key_env: Optional[str] = Field("GEMINI_API_KEY", description="Environment variable for Gemini key")
    openai_api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for OpenAI key")
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
