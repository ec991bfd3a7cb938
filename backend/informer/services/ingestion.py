"""
News ingestion pipeline.

Fetches provider articles per category, maps and de-duplicates them, and
stores them. Each category is fetched from the provider at most once per UTC
day; later calls are served from the store.
"""
import asyncio
from datetime import timedelta
from typing import Awaitable, Callable, Optional

import structlog

from informer.core.categories import (
    FETCH_ALL_CATEGORIES,
    FETCHABLE_CATEGORIES,
    parse_category,
    resolve_category,
)
from informer.errors import ConfigurationError, InformerError
from informer.models.domain import (
    Article,
    Category,
    CategoryFilter,
    IngestionResult,
    NewArticle,
)
from informer.services.news.client import NewsDataClient
from informer.services.news.deduplication import dedupe
from informer.storage.articles import DEFAULT_LIMIT, ArticleStore
from informer.utils.datetime import parse_datetime, start_of_utc_day, utcnow

logger = structlog.get_logger(__name__)


def map_record(record: dict, category: Optional[Category] = None) -> Optional[NewArticle]:
    """
    Map a provider record to a NewArticle.

    Args:
        record: Raw `results` entry from the provider
        category: Category to file the article under; resolved from the
            record itself when omitted

    Returns:
        None for records without a link
    """
    url = (record.get("link") or "").strip()
    if not url:
        return None

    description = record.get("description") or ""
    creators = record.get("creator") or []
    source_id = record.get("source_id") or "unknown"

    if category is None:
        category = resolve_category(record.get("category"), record)

    return NewArticle(
        source_id=source_id,
        source_name=record.get("source_name") or source_id,
        author=creators[0] if creators and creators[0] else "Unknown",
        title=record.get("title") or "No Title",
        description=description,
        content=record.get("content") or description,
        url=url,
        image_url=record.get("image_url"),
        published_at=parse_datetime(record.get("pubDate")),
        category=category,
    )


class IngestionPipeline:
    """Fetch, de-duplicate and store provider articles."""

    def __init__(
        self,
        client: NewsDataClient,
        store: ArticleStore,
        category_delay: float = 1.5,
        max_page_size_per_category: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.store = store
        self.category_delay = category_delay
        self.max_page_size_per_category = max_page_size_per_category
        self._sleep = sleep

    async def _fallback(self, category_filter: CategoryFilter) -> list[Article]:
        return await self.store.find_by_category(category_filter, limit=DEFAULT_LIMIT)

    async def _cached(self, category_filter: CategoryFilter) -> Optional[list[Article]]:
        since = start_of_utc_day()
        if await self.store.count_created_since(since, category_filter) == 0:
            return None
        return await self.store.find_created_since(since, category_filter, limit=DEFAULT_LIMIT)

    async def _store(self, records: list[dict], category: Optional[Category]) -> tuple[list[Article], int]:
        mapped = [map_record(record, category) for record in records]
        new_articles = dedupe(
            [a for a in mapped if a is not None],
            lambda a: a.url,
            lambda a: a.title,
        )
        return await self.store.upsert_counted(new_articles)

    async def fetch_category(self, category: str, page_size: int = 10) -> IngestionResult:
        """
        Fetch and store the latest articles for one category.

        Unknown categories fall back to ``top``. Provider failures return a
        ``failed`` result carrying whatever is stored for the category.

        Raises:
            ConfigurationError: No provider API key configured
        """
        resolved = parse_category(category)
        if resolved not in FETCHABLE_CATEGORIES:
            logger.warning("Invalid category, using top", requested=category)
            resolved = Category.TOP

        category_filter = CategoryFilter.named(resolved)

        cached = await self._cached(category_filter)
        if cached is not None:
            logger.info("Serving today's articles from store", category=resolved.value, count=len(cached))
            return IngestionResult.ok(cached, from_cache=True)

        try:
            records = await self.client.latest_news(
                resolved.value,
                size=page_size,
                timeframe=self.client.settings.timeframe,
                priority_domain=self.client.settings.priority_domain,
            )
            if not records:
                logger.info("Provider returned no articles", category=resolved.value)
                return IngestionResult.empty()

            stored, inserted = await self._store(records, resolved)
        except ConfigurationError:
            raise
        except InformerError as e:
            logger.error("Category fetch failed", category=resolved.value, error=e.message)
            return IngestionResult.failed(e.message, fallback=await self._fallback(category_filter))

        logger.info("Stored category articles", category=resolved.value, fetched=len(records), stored=inserted)
        return IngestionResult.ok(stored, fetched=len(records), stored=inserted)

    async def fetch_all_categories(self, page_size: int = 10) -> IngestionResult:
        """
        Fetch every category in sequence, pausing between provider calls.

        A failing category is logged and skipped. The result is ``failed``
        only when every category failed.

        Raises:
            ConfigurationError: No provider API key configured
        """
        all_filter = CategoryFilter.all()

        cached = await self._cached(all_filter)
        if cached is not None:
            logger.info("Serving today's articles from store", count=len(cached))
            return IngestionResult.ok(cached, from_cache=True)

        size = min(page_size, self.max_page_size_per_category)
        records: list[dict] = []
        errors: list[str] = []

        for index, category in enumerate(FETCH_ALL_CATEGORIES):
            if index > 0:
                await self._sleep(self.category_delay)

            try:
                batch = await self.client.latest_news(
                    category.value,
                    size=size,
                    timeframe=self.client.settings.timeframe,
                    priority_domain=self.client.settings.priority_domain,
                )
            except ConfigurationError:
                raise
            except InformerError as e:
                logger.warning("Skipping category after fetch error", category=category.value, error=e.message)
                errors.append(f"{category.value}: {e.message}")
                continue

            records.extend(batch)

        if len(errors) == len(FETCH_ALL_CATEGORIES):
            reason = "; ".join(errors)
            return IngestionResult.failed(reason, fallback=await self._fallback(all_filter))

        if not records:
            return IngestionResult.empty(reason="; ".join(errors) or None)

        try:
            stored, inserted = await self._store(records, None)
        except InformerError as e:
            logger.error("Storing fetched articles failed", error=e.message)
            return IngestionResult.failed(e.message, fallback=await self._fallback(all_filter))

        stored = dedupe(stored, lambda a: a.url, lambda a: a.title)
        logger.info(
            "Stored articles for all categories",
            fetched=len(records),
            stored=inserted,
            failed_categories=len(errors),
        )
        return IngestionResult.ok(
            stored[:DEFAULT_LIMIT],
            fetched=len(records),
            stored=inserted,
            reason="; ".join(errors) or None,
        )

    async def daily_fetch_and_clean(
        self,
        keep_count: int = 50,
        page_size: int = 10,
        retention_days: Optional[int] = None,
    ) -> dict:
        """Fetch all categories, then prune the store down to ``keep_count``."""
        start_time = utcnow()
        logger.info("Starting daily fetch and cleanup", keep_count=keep_count)

        result = await self.fetch_all_categories(page_size)

        older_than = None
        if retention_days is not None:
            older_than = utcnow() - timedelta(days=retention_days)
        deleted = await self.store.prune(keep_count, older_than=older_than)

        stats = {
            "status": result.status.value,
            "from_cache": result.from_cache,
            "fetched": result.fetched,
            "stored": result.stored,
            "deleted": deleted,
            "remaining": await self.store.count(),
            "reason": result.reason,
            "elapsed_seconds": (utcnow() - start_time).total_seconds(),
        }
        logger.info("Daily fetch and cleanup completed", **stats)
        return stats
