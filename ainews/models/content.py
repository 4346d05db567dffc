"""Extraction and enrichment models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .article import Article

ContentQuality = Literal["high", "medium", "low"]
ContentType = Literal["news", "opinion", "analysis", "press_release", "blog"]


class ExtractedContent(BaseModel):
    """Cleaned article content."""

    clean_title: str = Field(..., description="Normalized title")
    clean_summary: str = Field("", description="Normalized summary")
    extracted_text: str = Field("", description="Main article text")
    language: str = Field("en", description="Detected language code")
    word_count: int = Field(0, description="Word count of extracted text", ge=0)
    readability_score: float = Field(50.0, description="Flesch-style readability (0-100)")
    content_quality: ContentQuality = Field("medium", description="Coarse quality bucket")
    entities: List[str] = Field(default_factory=list, description="Simple capitalized entities")
    keywords: List[str] = Field(default_factory=list, description="Extracted keywords")
    canonical_url: Optional[str] = Field(None, description="Canonical URL if known")

    @classmethod
    def degraded(cls, article: Article) -> "ExtractedContent":
        """Title-as-text substitute used when extraction fails."""
        text = article.summary or article.title
        return cls(
            clean_title=article.title,
            clean_summary=article.summary or "",
            extracted_text=text,
            language="en",
            word_count=len(text.split()),
            readability_score=50.0,
            content_quality="medium",
        )


class EnrichedEntity(BaseModel):
    """Named entity found in an article."""

    name: str
    type: Literal["person", "organization", "location", "product", "event", "other"] = "other"
    confidence: float = Field(0.7, ge=0.0, le=1.0)
    mentions: int = 1
    context: List[str] = Field(default_factory=list)


class TopicClassification(BaseModel):
    """Topic assigned to an article."""

    topic: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    keywords: List[str] = Field(default_factory=list)


class AuxiliarySignals(BaseModel):
    """Per-article signals computed during enrichment."""

    word_count: int = Field(0, ge=0)
    source_reputation: float = Field(0.5, ge=0.0, le=1.0)
    content_type: ContentType = "news"
    is_breaking: bool = False
    virality_score: float = Field(0.5, ge=0.0, le=1.0)
    timeliness_score: float = Field(0.5, ge=0.0, le=1.0)
    authority_score: float = Field(0.5, ge=0.0, le=1.0)


class AIInsights(BaseModel):
    """Optional model-produced insights."""

    sentiment: Literal["positive", "negative", "neutral"] = "neutral"
    importance: float = Field(0.5, ge=0.0, le=1.0)
    credibility: float = Field(0.5, ge=0.0, le=1.0)
    bias: Literal["left", "right", "center"] = "center"
    factuality: float = Field(0.5, ge=0.0, le=1.0)


class EnrichmentResult(BaseModel):
    """Entities, topics and signals for one article in one run."""

    entities: List[EnrichedEntity] = Field(default_factory=list)
    topics: List[TopicClassification] = Field(default_factory=list)
    signals: AuxiliarySignals = Field(default_factory=AuxiliarySignals)
    ai_insights: Optional[AIInsights] = None

    @classmethod
    def neutral(cls, word_count: int = 100, popularity: float = 0.5) -> "EnrichmentResult":
        """Neutral fallback enrichment."""
        return cls(
            signals=AuxiliarySignals(
                word_count=word_count,
                source_reputation=0.5,
                content_type="news",
                is_breaking=False,
                virality_score=popularity,
                timeliness_score=0.5,
                authority_score=0.5,
            )
        )
