"""
News category catalogue.

Defines which categories the provider is queried for and a keyword scorer
used to file articles whose provider category is not one of ours.
"""
import re
from typing import Optional

from informer.models.domain import Category

# Categories walked, in order, by a full multi-category fetch
FETCH_ALL_CATEGORIES: list[Category] = [
    Category.TOP,
    Category.WORLD,
    Category.POLITICS,
    Category.BUSINESS,
    Category.TECHNOLOGY,
    Category.ENTERTAINMENT,
    Category.SPORTS,
    Category.HEALTH,
]

# Categories a single-category fetch may ask the provider for
FETCHABLE_CATEGORIES: frozenset[Category] = frozenset(Category) - {Category.GENERAL}

CATEGORY_KEYWORDS: dict[Category, list[str]] = {
    Category.POLITICS: [
        "president", "government", "election", "democratic", "republican",
        "senator", "congress", "vote", "campaign", "political", "policy",
        "administration", "legislation", "parliament", "minister",
    ],
    Category.BUSINESS: [
        "market", "economy", "stock", "investment", "company", "financial",
        "business", "trade", "economic", "industry", "corporate", "bank",
        "finance", "profit", "revenue",
    ],
    Category.TECHNOLOGY: [
        "tech", "technology", "software", "hardware", "app", "digital",
        "internet", "computer", "ai", "artificial intelligence", "cyber",
        "smartphone", "device", "innovation", "robot",
    ],
    Category.HEALTH: [
        "health", "medical", "doctor", "hospital", "disease", "patient",
        "treatment", "vaccine", "medicine", "healthcare", "virus", "pandemic",
        "clinic", "symptom",
    ],
    Category.SPORTS: [
        "sport", "team", "game", "player", "championship", "athlete",
        "tournament", "match", "league", "football", "soccer", "basketball",
        "baseball", "hockey", "tennis",
    ],
    Category.ENTERTAINMENT: [
        "movie", "film", "actor", "actress", "celebrity", "music", "star",
        "hollywood", "tv", "television", "entertainment", "show", "award",
        "singer", "performance",
    ],
    Category.WORLD: [
        "world", "international", "global", "foreign", "country", "nation",
        "europe", "asia", "africa", "middle east", "latin america",
        "united nations", "diplomat", "treaty", "overseas",
    ],
}

_KEYWORD_PATTERNS: dict[Category, list[re.Pattern]] = {
    category: [re.compile(rf"\b{re.escape(keyword)}\b") for keyword in keywords]
    for category, keywords in CATEGORY_KEYWORDS.items()
}


def parse_category(value: Optional[str]) -> Optional[Category]:
    """Return the Category for a raw string, or None if it is not one of ours."""
    if not value:
        return None
    try:
        return Category(value.strip().lower())
    except ValueError:
        return None


def classify_category(title: str = "", description: str = "", content: str = "") -> Category:
    """
    File an article by keyword hits over its text.

    Ties go to the category listed first in CATEGORY_KEYWORDS; no hits at all
    means ``general``.
    """
    text = " ".join([title or "", description or "", content or ""]).lower()

    best: Optional[Category] = None
    best_score = 0
    for category, patterns in _KEYWORD_PATTERNS.items():
        score = sum(len(pattern.findall(text)) for pattern in patterns)
        if score > best_score:
            best, best_score = category, score

    return best or Category.GENERAL


def resolve_category(provider_categories: Optional[list[str]], record: dict) -> Category:
    """Category for a provider record: its first known category, else keywords."""
    for raw in provider_categories or []:
        category = parse_category(raw)
        if category is not None:
            return category

    return classify_category(
        record.get("title") or "",
        record.get("description") or "",
        record.get("content") or "",
    )
