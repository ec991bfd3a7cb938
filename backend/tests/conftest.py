"""
Shared fixtures.

Database tests run each scenario inside a single ``asyncio.run`` so the
aiosqlite engine never outlives its event loop.
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from informer.config import NewsProviderSettings, Settings
from informer.models.database import Database, DBArticle
from informer.models.domain import Category, NewArticle
from informer.storage.articles import ArticleStore
from informer.utils.datetime import utcnow

BASE_TIME = datetime(2025, 3, 1, 8, 0, 0)


def make_article(n: int, **overrides) -> NewArticle:
    """A provider article numbered ``n``; higher numbers are published later."""
    fields = {
        "source_id": "wire",
        "source_name": "Example Wire",
        "author": "Reporter",
        "title": f"Story number {n}",
        "description": f"Summary of story {n}",
        "content": f"Full text of story {n}",
        "url": f"https://example.com/news/{n}",
        "published_at": BASE_TIME + timedelta(hours=n),
        "category": Category.TECHNOLOGY,
    }
    fields.update(overrides)
    return NewArticle(**fields)


def make_record(n: int, **overrides) -> dict:
    """A raw NewsData.io `results` entry."""
    record = {
        "article_id": f"provider-{n}",
        "title": f"Provider headline {n}",
        "link": f"https://news.example.org/item/{n}",
        "description": f"Provider description {n}",
        "content": f"Provider content {n}",
        "pubDate": f"2025-03-01 0{n % 10}:00:00",
        "image_url": None,
        "source_id": "examplenews",
        "creator": ["Jane Writer"],
        "category": ["technology"],
    }
    record.update(overrides)
    return record


async def backdate(store: ArticleStore, days: int = 1) -> None:
    """Move every stored article's created_at into the past."""
    async with store.database.async_session() as session:
        await session.execute(
            update(DBArticle).values(created_at=utcnow() - timedelta(days=days))
        )
        await session.commit()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def run_with_store(db_url):
    """Run ``scenario(store)`` against a fresh database and return its result."""

    def runner(scenario):
        async def main():
            database = Database(db_url)
            await database.create_tables()
            try:
                return await scenario(ArticleStore(database))
            finally:
                await database.dispose()

        return asyncio.run(main())

    return runner


@pytest.fixture
def provider_settings():
    return NewsProviderSettings(
        _env_file=None,
        api_key="test-key",
        min_request_interval_seconds=0,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        media_dir=str(tmp_path / "media"),
        openai_api_key=None,
        anthropic_api_key=None,
        elevenlabs_api_key=None,
        generate_images=True,
        generate_audio=False,
        batch_item_delay_seconds=0,
        scheduler_enabled=False,
    )
