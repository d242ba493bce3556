"""
Fetch a URL over plain HTTP with user-agent rotation and retries. Returns HTML or raises FetchError.

  404        -> NotFoundError, no retry
  403 / 429  -> BlockedError, retried after retry_delay * attempt * 2
  other      -> TransientError (5xx, timeouts, network), retried after retry_delay * attempt
"""

import asyncio
import logging
import random

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "de-DE,de;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class FetchError(Exception):
    """A page could not be fetched."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(FetchError):
    """404 from the source. Retrying is pointless."""


class BlockedError(FetchError):
    """403 or 429: the source is rate limiting or blocking us."""


class TransientError(FetchError):
    """Timeout, network error, 5xx or any other unexpected status."""


class RenderError(FetchError):
    """The headless browser could not produce the page."""


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and not isinstance(exc, NotFoundError)


def _backoff(retry_delay: float):
    def wait(retry_state) -> float:
        exc = retry_state.outcome.exception()
        delay = retry_delay * retry_state.attempt_number
        if isinstance(exc, BlockedError):
            delay *= 2
        logger.info("Waiting %.1fs before retry (%s)", delay, exc)
        return delay

    return wait


class Fetcher:
    """
    Async HTML fetcher. One instance can serve many concurrent fetch() calls;
    calls share only the connection pool.
    """

    def __init__(
        self,
        timeout: float = 15.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep=asyncio.sleep,
    ):
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)
        self.retries = retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def _get_once(self, url: str, headers: dict[str, str] | None) -> str:
        request_headers = {"User-Agent": random_user_agent(), **DEFAULT_HEADERS, **(headers or {})}
        try:
            resp = await self.client.get(url, headers=request_headers)
        except httpx.HTTPError as e:
            raise TransientError(f"{type(e).__name__} fetching {url}: {e}", url) from e

        status = resp.status_code
        if 200 <= status < 300:
            return resp.text
        if status == 404:
            raise NotFoundError(f"404 Not Found: {url}", url, status)
        if status in (403, 429):
            raise BlockedError(f"Blocked ({status}): {url}", url, status)
        raise TransientError(f"HTTP {status} for {url}", url, status)

    async def fetch(
        self,
        url: str,
        *,
        retries: int | None = None,
        retry_delay: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Return the body of url. Raises the last FetchError once retries are used up."""
        retries = self.retries if retries is None else retries
        retry_delay = self.retry_delay if retry_delay is None else retry_delay

        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=_backoff(retry_delay),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                n = attempt.retry_state.attempt_number
                logger.info("Fetching %s (attempt %d/%d)", url, n, retries + 1)
                try:
                    return await self._get_once(url, headers)
                except FetchError as e:
                    logger.warning("%s", e)
                    raise

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
