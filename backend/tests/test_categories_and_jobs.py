"""
Tests for the category catalogue, scheduled jobs and the CLI parser.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from informer.core.categories import (
    FETCH_ALL_CATEGORIES,
    FETCHABLE_CATEGORIES,
    classify_category,
    parse_category,
    resolve_category,
)
from informer.jobs import build_scheduler, run_auto_process, run_daily_ingestion, scheduler_status
from informer.models.domain import Category, CategoryFilter
from scripts.ingest import build_parser


class TestCategories:
    def test_parse(self):
        assert parse_category("Technology") == Category.TECHNOLOGY
        assert parse_category(" general ") == Category.GENERAL
        assert parse_category("crime") is None
        assert parse_category(None) is None

    def test_general_not_fetchable(self):
        assert Category.GENERAL not in FETCHABLE_CATEGORIES
        assert set(FETCH_ALL_CATEGORIES) <= FETCHABLE_CATEGORIES

    def test_classify_by_keywords(self):
        assert classify_category("Stock market slides as bank profits fall") == Category.BUSINESS
        assert classify_category("Hospital reports new vaccine trial") == Category.HEALTH
        assert classify_category("Nothing notable here") == Category.GENERAL

    def test_keywords_match_whole_words(self):
        # "ai" must not match inside "said" or "paid"
        assert classify_category("He said the bill was paid") == Category.GENERAL

    def test_resolve_prefers_first_known_provider_category(self):
        record = {"title": "Football league final tonight"}
        assert resolve_category(["crime", "world", "sports"], record) == Category.WORLD
        assert resolve_category(["crime"], record) == Category.SPORTS

    def test_filter_equality(self):
        assert CategoryFilter.all() == CategoryFilter.all()
        assert CategoryFilter.named("general") != CategoryFilter.all()
        assert CategoryFilter.named(Category.SPORTS) == CategoryFilter.named("sports")
        with pytest.raises(ValueError):
            CategoryFilter.named("astrology")


class TestJobs:
    def test_daily_ingestion_uses_settings(self, settings):
        pipeline = MagicMock()
        pipeline.daily_fetch_and_clean = AsyncMock(return_value={"deleted": 3})

        stats = asyncio.run(run_daily_ingestion(pipeline, settings))

        assert stats == {"deleted": 3}
        pipeline.daily_fetch_and_clean.assert_awaited_once_with(
            keep_count=settings.daily_keep_count,
            page_size=settings.default_page_size,
            retention_days=settings.retention_days,
        )

    def test_daily_ingestion_errors_do_not_escape(self, settings):
        pipeline = MagicMock()
        pipeline.daily_fetch_and_clean = AsyncMock(side_effect=RuntimeError("database locked"))

        assert asyncio.run(run_daily_ingestion(pipeline, settings)) is None

    def test_auto_process_one_article(self):
        processor = MagicMock()
        processor.process_pending = AsyncMock(return_value=1)

        assert asyncio.run(run_auto_process(processor, "right")) == 1
        processor.process_pending.assert_awaited_once_with("right", limit=1)

    def test_scheduler_jobs(self, settings):
        settings = settings.model_copy(update={"auto_process_interval_minutes": 30})

        scheduler = build_scheduler(settings, MagicMock(), MagicMock())
        status = scheduler_status(scheduler)

        assert status["running"] is False
        assert {job["id"] for job in status["jobs"]} == {"daily_ingestion", "auto_process"}

    def test_scheduler_without_auto_process(self, settings):
        scheduler = build_scheduler(settings, MagicMock(), MagicMock())

        assert [job.id for job in scheduler.get_jobs()] == ["daily_ingestion"]
        assert scheduler_status(None) == {"running": False, "jobs": []}


class TestCliParser:
    def test_fetch_all(self):
        args = build_parser().parse_args(["fetch", "--all", "--page-size", "5"])

        assert args.command == "fetch"
        assert args.all
        assert args.page_size == 5

    def test_fetch_category_default(self):
        args = build_parser().parse_args(["fetch"])

        assert args.category == "top"
        assert not args.all

    def test_category_and_all_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["fetch", "--all", "--category", "world"])

    def test_process_requires_valid_bias(self):
        assert build_parser().parse_args(["process", "--bias", "left"]).limit == 5
        with pytest.raises(SystemExit):
            build_parser().parse_args(["process", "--bias", "centrist"])

    def test_cleanup_requires_keep(self):
        assert build_parser().parse_args(["cleanup", "--keep", "50"]).keep == 50
        with pytest.raises(SystemExit):
            build_parser().parse_args(["cleanup"])
