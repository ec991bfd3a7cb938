"""
Article persistence.

All reads return domain `Article` models; ORM rows never leave this module.
"""
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from informer.errors import NotFound, ValidationError
from informer.models.database import Database, DBArticle
from informer.models.domain import (
    Article,
    CategoryFilter,
    NewArticle,
    ProcessingStatus,
)
from informer.services.news.deduplication import dedupe
from informer.utils.datetime import utcnow

logger = structlog.get_logger(__name__)

DEFAULT_LIMIT = 20

# Fields the processing pipeline may write through `update`
MUTABLE_FIELDS = frozenset({
    "content",
    "transformed_title",
    "transformed_content",
    "generated_image_url",
    "audio_url",
    "explanation",
    "political_bias",
    "is_processed",
    "processing_status",
    "processing_error",
})


def parse_article_id(raw: Any) -> str:
    """Validate a caller-supplied article id and return its canonical form."""
    try:
        return UUID(str(raw).strip()).hex
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"Invalid article ID: {raw}")


def _to_domain(row: DBArticle) -> Article:
    return Article.model_validate(row)


def _apply_filter(query, category_filter: CategoryFilter):
    if category_filter.is_all:
        return query
    return query.where(DBArticle.category == category_filter.category.value)


def _storable(value: Any) -> Any:
    # Enums are stored by value
    return getattr(value, "value", value)


class ArticleStore:
    """Article repository over the async SQLAlchemy session factory."""

    def __init__(self, database: Database):
        self.database = database

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_many(self, articles: list[NewArticle]) -> list[Article]:
        """Insert new articles; see ``upsert_counted``."""
        stored, _ = await self.upsert_counted(articles)
        return stored

    async def upsert_counted(self, articles: list[NewArticle]) -> tuple[list[Article], int]:
        """
        Insert articles whose URL is not stored yet.

        Each insert commits on its own, so a unique-URL conflict on one item
        never aborts the rest of the batch. Conflicts are counted and logged,
        not raised. Existing rows are left untouched, which keeps their
        transformation state.

        Returns:
            Every article of the batch that exists after the attempt, re-read
            by URL, newest first, and the number of rows actually inserted
        """
        if not articles:
            return [], 0

        urls = list(dict.fromkeys(a.url for a in articles))
        inserted = 0
        conflicts = 0

        async with self.database.async_session() as session:
            existing = set(
                (await session.execute(
                    select(DBArticle.url).where(DBArticle.url.in_(urls))
                )).scalars()
            )

            for article in articles:
                if article.url in existing:
                    conflicts += 1
                    continue

                session.add(self._new_row(article))
                try:
                    await session.commit()
                    inserted += 1
                    existing.add(article.url)
                except IntegrityError:
                    await session.rollback()
                    conflicts += 1
                    logger.debug("Skipped duplicate article", url=article.url)

            if conflicts:
                logger.info(
                    "Partial ingestion: duplicates skipped",
                    attempted=len(articles),
                    inserted=inserted,
                    skipped=conflicts,
                )

            result = await session.execute(
                select(DBArticle)
                .where(DBArticle.url.in_(urls))
                .order_by(DBArticle.published_at.desc())
            )
            return [_to_domain(row) for row in result.scalars().all()], inserted

    @staticmethod
    def _new_row(article: NewArticle) -> DBArticle:
        now = utcnow()
        return DBArticle(
            source_id=article.source_id,
            source_name=article.source_name,
            author=article.author,
            title=article.title,
            description=article.description,
            content=article.content,
            url=article.url,
            image_url=article.image_url,
            published_at=article.published_at,
            category=article.category.value,
            created_at=now,
            updated_at=now,
        )

    async def update(self, article_id: str, **fields: Any) -> Article:
        """Persist processing changes and return the refreshed article."""
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        values = {key: _storable(value) for key, value in fields.items()}
        values["updated_at"] = utcnow()

        async with self.database.async_session() as session:
            result = await session.execute(
                update(DBArticle).where(DBArticle.id == article_id).values(**values)
            )
            await session.commit()
            if result.rowcount == 0:
                raise NotFound(f"Article with ID {article_id} not found")

        return await self.find_by_id(article_id)

    async def delete_by_id(self, article_id: str) -> None:
        article_id = parse_article_id(article_id)
        async with self.database.async_session() as session:
            result = await session.execute(
                delete(DBArticle).where(DBArticle.id == article_id)
            )
            await session.commit()

        if result.rowcount == 0:
            raise NotFound(f"Article with ID {article_id} not found")
        logger.info("Deleted article", article_id=article_id)

    async def prune(self, keep_count: int, older_than: Optional[datetime] = None) -> int:
        """
        Delete everything outside the ``keep_count`` most recently published.

        With ``older_than``, only articles published before that cutoff are
        removed from the surplus.

        Returns:
            Number of deleted articles
        """
        if keep_count < 0:
            raise ValidationError("keep_count must be >= 0")

        async with self.database.async_session() as session:
            keep_ids = (
                select(DBArticle.id)
                .order_by(DBArticle.published_at.desc(), DBArticle.created_at.desc())
                .limit(keep_count)
            )
            statement = delete(DBArticle).where(DBArticle.id.not_in(keep_ids))
            if older_than is not None:
                statement = statement.where(DBArticle.published_at < older_than)

            result = await session.execute(statement.execution_options(synchronize_session=False))
            await session.commit()

        deleted = result.rowcount or 0
        logger.info("Pruned articles", kept=keep_count, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Per-article processing lock
    # ------------------------------------------------------------------

    async def try_acquire_processing(self, article_id: str, ttl_seconds: int) -> bool:
        """
        Compare-and-swap the processing marker from empty (or stale) to now.

        Returns:
            True if this caller now owns the article's processing slot
        """
        now = utcnow()
        stale_before = now - timedelta(seconds=ttl_seconds)

        async with self.database.async_session() as session:
            result = await session.execute(
                update(DBArticle)
                .where(
                    DBArticle.id == article_id,
                    or_(
                        DBArticle.processing_started_at.is_(None),
                        DBArticle.processing_started_at < stale_before,
                    ),
                )
                .values(processing_started_at=now)
            )
            await session.commit()

        return result.rowcount == 1

    async def release_processing(self, article_id: str) -> None:
        async with self.database.async_session() as session:
            await session.execute(
                update(DBArticle)
                .where(DBArticle.id == article_id)
                .values(processing_started_at=None)
            )
            await session.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, article_id: str) -> Article:
        article_id = parse_article_id(article_id)
        async with self.database.async_session() as session:
            row = await session.get(DBArticle, article_id)

        if row is None:
            raise NotFound(f"Article with ID {article_id} not found")
        return _to_domain(row)

    async def find_by_category(
        self,
        category_filter: CategoryFilter,
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> list[Article]:
        """
        Newest articles for a category (or all), de-duplicated on read.

        Args:
            category_filter: All categories or one named category
            limit: Maximum results; None means unbounded
        """
        query = _apply_filter(select(DBArticle), category_filter).order_by(
            DBArticle.published_at.desc()
        )

        async with self.database.async_session() as session:
            result = await session.execute(query)
            articles = [_to_domain(row) for row in result.scalars().all()]

        unique = dedupe(articles, lambda a: a.url, lambda a: a.title)
        return unique if limit is None else unique[:limit]

    async def find_created_since(
        self,
        since: datetime,
        category_filter: CategoryFilter,
        limit: Optional[int] = DEFAULT_LIMIT,
    ) -> list[Article]:
        query = (
            _apply_filter(select(DBArticle), category_filter)
            .where(DBArticle.created_at >= since)
            .order_by(DBArticle.published_at.desc())
        )

        async with self.database.async_session() as session:
            result = await session.execute(query)
            articles = [_to_domain(row) for row in result.scalars().all()]

        unique = dedupe(articles, lambda a: a.url, lambda a: a.title)
        return unique if limit is None else unique[:limit]

    async def count_created_since(self, since: datetime, category_filter: CategoryFilter) -> int:
        query = _apply_filter(
            select(func.count(DBArticle.id)), category_filter
        ).where(DBArticle.created_at >= since)

        async with self.database.async_session() as session:
            result = await session.execute(query)
            return result.scalar() or 0

    async def find_unprocessed(self, limit: Optional[int] = None) -> list[Article]:
        """Articles not yet processed that have text to rewrite, newest first."""
        query = (
            select(DBArticle)
            .where(
                DBArticle.is_processed.is_(False),
                or_(DBArticle.content != "", DBArticle.description != ""),
            )
            .order_by(DBArticle.published_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)

        async with self.database.async_session() as session:
            result = await session.execute(query)
            return [_to_domain(row) for row in result.scalars().all()]

    async def count(self) -> int:
        async with self.database.async_session() as session:
            result = await session.execute(select(func.count(DBArticle.id)))
            return result.scalar() or 0

    async def status_counts(self) -> dict[str, int]:
        """Number of articles per processing status."""
        async with self.database.async_session() as session:
            result = await session.execute(
                select(DBArticle.processing_status, func.count(DBArticle.id))
                .group_by(DBArticle.processing_status)
            )
            counts = {row[0]: row[1] for row in result.all()}

        return {status.value: counts.get(status.value, 0) for status in ProcessingStatus}
