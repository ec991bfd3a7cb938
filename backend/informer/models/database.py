"""
SQLAlchemy database models for The Actual Informer.
Uses SQLAlchemy 2.0 async patterns.
"""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from informer.models.domain import Category, PoliticalBias, ProcessingStatus
from informer.utils.datetime import utcnow


def new_article_id() -> str:
    return uuid4().hex


# =============================================================================
# Base
# =============================================================================

class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""
    pass


# =============================================================================
# Articles
# =============================================================================

class DBArticle(Base):
    """Stored article with its transformation state."""
    __tablename__ = "articles"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_article_id)

    # Provider metadata
    source_id: Mapped[str] = mapped_column(String(255), nullable=False)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), default="Unknown")

    # Original content
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    content: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    published_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    category: Mapped[str] = mapped_column(String(50), default=Category.GENERAL.value)

    # Transformed content
    transformed_title: Mapped[Optional[str]] = mapped_column(Text)
    transformed_content: Mapped[Optional[str]] = mapped_column(Text)
    generated_image_url: Mapped[Optional[str]] = mapped_column(Text)
    audio_url: Mapped[Optional[str]] = mapped_column(Text)
    explanation: Mapped[Optional[str]] = mapped_column(Text)

    # Lifecycle
    political_bias: Mapped[str] = mapped_column(String(20), default=PoliticalBias.NEUTRAL.value)
    is_processed: Mapped[bool] = mapped_column(Boolean, default=False)
    processing_status: Mapped[str] = mapped_column(
        String(30), default=ProcessingStatus.PENDING.value
    )
    processing_error: Mapped[Optional[str]] = mapped_column(Text)
    processing_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Indexes
    __table_args__ = (
        Index("ix_articles_category_published", "category", "published_at"),
        Index("ix_articles_published_at", "published_at"),
        Index("ix_articles_created_at", "created_at"),
        Index("ix_articles_processed", "is_processed"),
    )


# =============================================================================
# Database Connection
# =============================================================================

class Database:
    """Database connection manager."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_async_engine(
            database_url,
            echo=echo,
        )
        self.async_session = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    async def create_tables(self):
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        """Drop all tables (use with caution!)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        """Close pooled connections."""
        await self.engine.dispose()
