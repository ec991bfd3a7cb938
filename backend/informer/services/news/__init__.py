"""
News provider access.

- Minimum-interval rate gate shared by every outbound call
- NewsData.io client with rate-limit and timeout retry budgets
- Article de-duplication
"""

from informer.services.news.client import NewsDataClient, RetryPolicy
from informer.services.news.deduplication import dedupe, normalize_title, normalize_url
from informer.services.news.rate_limiter import RateLimiter

__all__ = [
    "NewsDataClient",
    "RetryPolicy",
    "RateLimiter",
    "dedupe",
    "normalize_title",
    "normalize_url",
]
