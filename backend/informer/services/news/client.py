"""
NewsData.io client with a process-wide rate gate and retry policy.
API docs: https://newsdata.io/documentation
"""
import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, RetryCallState

from informer.config import NewsProviderSettings
from informer.errors import ConfigurationError, UpstreamError, UpstreamRateLimited
from informer.services.news.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)


def is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


class RetryPolicy:
    """
    Per-call retry budgets.

    429 responses back off exponentially (base delay doubling per attempt)
    up to ``rate_limit_attempts`` attempts in total. Timeouts have their own
    budget of ``timeout_retries`` retries with a fixed delay. Anything else
    is not retried.
    """

    def __init__(
        self,
        rate_limit_attempts: int = 3,
        backoff_base: float = 2.0,
        timeout_retries: int = 1,
        timeout_delay: float = 1.5,
    ):
        self.rate_limit_attempts = rate_limit_attempts
        self.backoff_base = backoff_base
        self.timeout_retries = timeout_retries
        self.timeout_delay = timeout_delay
        self.rate_limited = 0
        self.timeouts = 0

    @classmethod
    def from_settings(cls, settings: NewsProviderSettings) -> "RetryPolicy":
        return cls(
            rate_limit_attempts=settings.rate_limit_attempts,
            backoff_base=settings.backoff_base_seconds,
            timeout_retries=settings.timeout_retries,
            timeout_delay=settings.timeout_retry_delay_seconds,
        )

    def should_retry(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False

        exc = outcome.exception()
        if isinstance(exc, httpx.TimeoutException):
            self.timeouts += 1
            return self.timeouts <= self.timeout_retries
        if is_rate_limited(exc):
            self.rate_limited += 1
            return self.rate_limited < self.rate_limit_attempts
        return False

    def wait(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, httpx.TimeoutException):
            return self.timeout_delay
        return self.backoff_base * (2 ** max(self.rate_limited - 1, 0))

    def log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        if isinstance(exc, httpx.TimeoutException):
            logger.warning(
                "News API timeout, retrying",
                attempt=self.timeouts,
                budget=self.timeout_retries,
                delay_seconds=delay,
            )
        else:
            logger.warning(
                "News API rate limit hit, backing off",
                attempt=self.rate_limited,
                budget=self.rate_limit_attempts,
                delay_seconds=delay,
            )


def _error_message(response: httpx.Response) -> str:
    """Best-effort provider error text from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]

    results = body.get("results") if isinstance(body, dict) else None
    if isinstance(results, dict) and results.get("message"):
        return str(results["message"])
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class NewsDataClient:
    """Client for the NewsData.io `/news` endpoint."""

    def __init__(
        self,
        settings: NewsProviderSettings,
        rate_limiter: RateLimiter,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.rate_limiter = rate_limiter
        self._http_client = http_client
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "NewsData"

    def has_api_key(self) -> bool:
        return bool(self.settings.api_key)

    async def _get(self, url: str, params: dict) -> dict:
        await self.rate_limiter.acquire()

        if self._http_client is not None:
            response = await self._http_client.get(
                url, params=params, timeout=self.settings.request_timeout_seconds
            )
        else:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout_seconds) as client:
                response = await client.get(url, params=params)

        response.raise_for_status()
        return response.json()

    async def fetch(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> dict:
        """
        Call a provider endpoint with rate limiting and retries.

        Raises:
            ConfigurationError: No API key configured
            UpstreamRateLimited: Still rate limited after every backoff attempt
            UpstreamError: Timeouts exhausted, non-429 HTTP error or error body
        """
        if not self.has_api_key():
            raise ConfigurationError("News API key is not configured")

        url = f"{self.settings.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query["apikey"] = self.settings.api_key

        policy = RetryPolicy.from_settings(self.settings)
        retrying = AsyncRetrying(
            retry=policy.should_retry,
            wait=policy.wait,
            sleep=self._sleep,
            before_sleep=policy.log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    data = await self._get(url, query)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"News API request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise UpstreamRateLimited(
                    "News API rate limit exceeded (429) after retries",
                    upstream_status=status,
                ) from e
            raise UpstreamError(
                f"News API error (HTTP {status}): {_error_message(e.response)}",
                upstream_status=status,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"News API request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(f"News API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError("News API returned an unexpected payload")
        if data.get("status") == "error":
            raise UpstreamError(f"News API error: {data.get('message') or data.get('results')}")

        return data

    async def latest_news(
        self,
        category: str,
        size: int,
        timeframe: Optional[str] = None,
        priority_domain: Optional[str] = None,
    ) -> list[dict]:
        """Fetch the latest articles for one category."""
        data = await self.fetch(
            "news",
            {
                "category": category,
                "language": self.settings.language,
                "country": self.settings.country,
                "size": size,
                "timeframe": timeframe,
                "prioritydomain": priority_domain,
            },
        )
        results = data.get("results") or []
        logger.info(
            "Fetched provider articles",
            category=category,
            count=len(results),
            total_results=data.get("totalResults"),
        )
        return results
