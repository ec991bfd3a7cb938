"""
Domain models for The Actual Informer.
These are the core business entities, independent of database/API representation.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================

class Category(str, Enum):
    """Fixed set of news categories articles can be filed under."""
    TOP = "top"
    WORLD = "world"
    POLITICS = "politics"
    BUSINESS = "business"
    TECHNOLOGY = "technology"
    SPORTS = "sports"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    SCIENCE = "science"
    FOOD = "food"
    TOURISM = "tourism"
    GENERAL = "general"


class PoliticalBias(str, Enum):
    """Editorial slant applied to rewritten content."""
    LEFT = "left"
    RIGHT = "right"
    NEUTRAL = "neutral"


class ProcessingStatus(str, Enum):
    """Position of an article in the text/image/audio transformation pipeline."""
    PENDING = "pending"
    TEXT_COMPLETED = "text_completed"
    IMAGE_COMPLETED = "image_completed"
    AUDIO_COMPLETED = "audio_completed"
    COMPLETED = "completed"
    ERROR = "error"


class IngestionStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


# =============================================================================
# Category filter
# =============================================================================

class CategoryFilter:
    """
    Explicit choice between "every category" and one named category.

    ``general`` is a category like any other; callers wanting no filter must
    ask for ``CategoryFilter.all()``.
    """

    __slots__ = ("category",)

    def __init__(self, category: Optional[Category] = None):
        self.category = category

    @classmethod
    def all(cls) -> "CategoryFilter":
        return cls(None)

    @classmethod
    def named(cls, category: Category | str) -> "CategoryFilter":
        return cls(Category(category))

    @property
    def is_all(self) -> bool:
        return self.category is None

    def __eq__(self, other):
        return isinstance(other, CategoryFilter) and other.category == self.category

    def __hash__(self):
        return hash(self.category)

    def __repr__(self) -> str:
        if self.is_all:
            return "CategoryFilter.all()"
        return f"CategoryFilter.named({self.category.value!r})"


# =============================================================================
# Articles
# =============================================================================

class NewArticle(BaseModel):
    """An article mapped from a provider record, not yet stored."""
    source_id: str
    source_name: str
    author: str = "Unknown"
    title: str
    description: str = ""
    content: str = ""
    url: str
    image_url: Optional[str] = None
    published_at: datetime
    category: Category = Category.GENERAL


class Article(BaseModel):
    """Core article entity, as stored and as served to clients."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    source_id: str
    source_name: str
    author: str = "Unknown"

    # Original content
    title: str
    description: str = ""
    content: str = ""
    url: str
    image_url: Optional[str] = None
    published_at: datetime
    category: Category = Category.GENERAL

    # Transformed content, populated stage by stage
    transformed_title: Optional[str] = None
    transformed_content: Optional[str] = None
    generated_image_url: Optional[str] = None
    audio_url: Optional[str] = None
    explanation: Optional[str] = None

    # Lifecycle
    political_bias: PoliticalBias = PoliticalBias.NEUTRAL
    is_processed: bool = False
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processing_error: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def source_text(self) -> str:
        """Text a rewrite starts from: content, else description."""
        return (self.content or "").strip() or (self.description or "").strip()


# =============================================================================
# Ingestion
# =============================================================================

class IngestionResult(BaseModel):
    """
    Outcome of an ingestion call.

    ``failed`` results may still carry stored articles as a fallback, so a
    caller can tell "provider unreachable" apart from "no news today".
    """
    status: IngestionStatus
    articles: list[Article] = Field(default_factory=list)
    from_cache: bool = False
    reason: Optional[str] = None
    fetched: int = 0
    stored: int = 0

    @classmethod
    def ok(cls, articles: list[Article], from_cache: bool = False, **kwargs) -> "IngestionResult":
        return cls(status=IngestionStatus.OK, articles=articles, from_cache=from_cache, **kwargs)

    @classmethod
    def empty(cls, **kwargs) -> "IngestionResult":
        return cls(status=IngestionStatus.EMPTY, **kwargs)

    @classmethod
    def failed(cls, reason: str, fallback: Optional[list[Article]] = None, **kwargs) -> "IngestionResult":
        return cls(
            status=IngestionStatus.FAILED,
            reason=reason,
            articles=fallback or [],
            **kwargs,
        )

    @property
    def success(self) -> bool:
        return self.status != IngestionStatus.FAILED

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        cached = " (cached)" if self.from_cache else ""
        text = (
            f"{status} {self.status.value}{cached}: "
            f"articles={len(self.articles)}, fetched={self.fetched}, stored={self.stored}"
        )
        if self.reason:
            text += f", reason={self.reason}"
        return text


# =============================================================================
# API responses
# =============================================================================

class ArticleResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Article


class ArticleListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    message: Optional[str] = None
    count: int
    data: list[Article]
    ingestion_status: Optional[IngestionStatus] = None
    from_cache: Optional[bool] = None
    reason: Optional[str] = None


class RewritePreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    message: Optional[str] = None
    article_id: str
    bias: PoliticalBias
    rewritten_content: str


class ExplanationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    article_id: str
    title: str
    explanation: str
