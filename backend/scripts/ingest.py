#!/usr/bin/env python3
"""
CLI tool for news ingestion and maintenance.

Usage:
    # Fetch one category
    python scripts/ingest.py fetch --category technology

    # Fetch every category
    python scripts/ingest.py fetch --all --page-size 10

    # Keep only the 50 most recent articles
    python scripts/ingest.py cleanup --keep 50

    # Rewrite pending articles
    python scripts/ingest.py process --bias left --limit 5

    # Store and rate limiter status
    python scripts/ingest.py status
"""

import argparse
import asyncio
import sys

import structlog

from informer.config import get_settings
from informer.core.logging import configure_logging
from informer.errors import InformerError
from informer.main import build_services
from informer.models.database import Database
from informer.models.domain import Category, PoliticalBias

logger = structlog.get_logger(__name__)


async def cmd_fetch(services: dict, args) -> int:
    """Fetch articles from the news provider."""
    pipeline = services["pipeline"]

    if args.all:
        print("Fetching articles for all categories...")
        result = await pipeline.fetch_all_categories(args.page_size)
    else:
        print(f"Fetching articles for category: {args.category}")
        result = await pipeline.fetch_category(args.category, args.page_size)

    print("\n" + "=" * 60)
    print("INGESTION RESULT")
    print("=" * 60)
    print(result)

    if args.verbose:
        for article in result.articles[:10]:
            print(f"\n[{article.source_name}] {article.title}")
            print(f"  URL: {article.url}")
            print(f"  Date: {article.published_at}")
            print(f"  Category: {article.category.value}")

    return 0 if result.success else 1


async def cmd_cleanup(services: dict, args) -> int:
    store = services["store"]
    deleted = await store.prune(args.keep)
    print(f"Deleted {deleted} articles, {await store.count()} remaining")
    return 0


async def cmd_process(services: dict, args) -> int:
    """Rewrite unprocessed articles."""
    processor = services["processor"]
    print(f"Processing up to {args.limit} pending articles with {args.bias} bias...")
    processed = await processor.process_pending(args.bias, limit=args.limit)
    print(f"Processed {processed} articles")
    return 0


async def cmd_status(services: dict, args) -> int:
    store = services["store"]

    print("\n" + "=" * 50)
    print("ARTICLE STORE")
    print("=" * 50)
    print(f"Total articles: {await store.count()}")
    for status, count in (await store.status_counts()).items():
        print(f"  {status}: {count}")

    print("\n" + "=" * 50)
    print("NEWS PROVIDER")
    print("=" * 50)
    print(f"API key configured: {services['client'].has_api_key()}")
    for key, value in services["rate_limiter"].get_status().items():
        print(f"  {key}: {value}")

    return 0


COMMANDS = {
    "fetch": cmd_fetch,
    "cleanup": cmd_cleanup,
    "process": cmd_process,
    "status": cmd_status,
}


async def run(args) -> int:
    settings = get_settings()
    database = Database(settings.database_url)
    await database.create_tables()

    try:
        return await COMMANDS[args.command](build_services(settings, database), args)
    except InformerError as e:
        logger.error("Command failed", command=args.command, error=e.message)
        print(f"Error: {e.message}")
        return 1
    finally:
        await database.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="The Actual Informer - News Ingestion CLI"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch articles")
    target = fetch_parser.add_mutually_exclusive_group()
    target.add_argument(
        "--category", "-c",
        default=Category.TOP.value,
        help="Category to fetch (default: top)"
    )
    target.add_argument(
        "--all", "-a",
        action="store_true",
        help="Fetch every category"
    )
    fetch_parser.add_argument(
        "--page-size", "-n",
        type=int,
        default=10,
        help="Articles per provider call (default: 10)"
    )
    fetch_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show article previews"
    )

    # Cleanup command
    cleanup_parser = subparsers.add_parser("cleanup", help="Prune old articles")
    cleanup_parser.add_argument(
        "--keep", "-k",
        type=int,
        required=True,
        help="Number of most recent articles to keep"
    )

    # Process command
    process_parser = subparsers.add_parser("process", help="Rewrite pending articles")
    process_parser.add_argument(
        "--bias", "-b",
        required=True,
        choices=[b.value for b in PoliticalBias],
    )
    process_parser.add_argument(
        "--limit", "-l",
        type=int,
        default=5,
        help="Max articles to process (default: 5)"
    )

    subparsers.add_parser("status", help="Show store and provider status")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(get_settings().log_level, json_output=False)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
