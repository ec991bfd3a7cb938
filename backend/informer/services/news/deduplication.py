"""
Article de-duplication by normalized URL and normalized title.
"""

import re
from typing import Callable, Iterable, Optional, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_url(url: Optional[str]) -> str:
    """Strip the query string; tracking parameters and variants collapse together."""
    if not url:
        return ""
    return url.strip().split("?", 1)[0]


def normalize_title(title: Optional[str]) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    if not title:
        return ""
    title = title.lower()
    title = re.sub(r"[^\w\s]", "", title)
    return " ".join(title.split())


def dedupe(
    items: Iterable[T],
    url_of: Callable[[T], Optional[str]],
    title_of: Callable[[T], Optional[str]],
) -> list[T]:
    """
    Keep the first occurrence of every article.

    An item is dropped when its normalized URL or its normalized title was
    already seen earlier in the same pass. Empty keys never count as seen,
    so two items without a URL are not duplicates of each other on that key.

    Args:
        items: Candidate articles, in priority order
        url_of: Accessor for an item's URL
        title_of: Accessor for an item's title

    Returns:
        The surviving items, in input order
    """
    seen_urls: set[str] = set()
    seen_titles: set[str] = set()
    unique: list[T] = []
    total = 0

    for item in items:
        total += 1
        url_key = normalize_url(url_of(item))
        title_key = normalize_title(title_of(item))

        if (url_key and url_key in seen_urls) or (title_key and title_key in seen_titles):
            continue

        unique.append(item)
        if url_key:
            seen_urls.add(url_key)
        if title_key:
            seen_titles.add(title_key)

    if total != len(unique):
        logger.debug(f"Filtered {total} articles down to {len(unique)} unique articles")

    return unique
