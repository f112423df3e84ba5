"""
Retrying JSON fetcher shared by every demonstration
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

import httpx
import structlog

from .errors import ErrorKind, FetchError
from .result import Outcome

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOptions:
    timeout: float = 10.0
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_factor: float = 1.0


@dataclass(frozen=True)
class FetchRequest:
    """Everything one fetch needs, frozen for the lifetime of the call."""

    url: str
    timeout: float
    max_retries: int
    retry_delay: float
    backoff_factor: float = 1.0

    @classmethod
    def build(cls, url: str, options: FetchOptions) -> "FetchRequest":
        return cls(
            url=url,
            timeout=options.timeout,
            max_retries=options.max_retries,
            retry_delay=options.retry_delay,
            backoff_factor=options.backoff_factor,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_before_retry(self, retry_number: int) -> float:
        """Seconds to wait before the given retry (1-based). Fixed unless backoff_factor != 1."""
        return self.retry_delay * (self.backoff_factor ** (retry_number - 1))


class RetryingFetcher:
    def __init__(
        self,
        options: FetchOptions = None,
        client: httpx.AsyncClient = None,
        user_agent: str = "AsyncDashboard/1.0",
    ):
        """Wrap an httpx client; a client passed in is borrowed and never closed here."""
        self.options = options or FetchOptions()
        self.user_agent = user_agent
        self._owns_client = client is None

        if client is None:
            headers = {
                'User-Agent': self.user_agent,
                'Accept': 'application/json',
                'Accept-Encoding': 'gzip, deflate',
            }
            client = httpx.AsyncClient(
                follow_redirects=True,
                headers=headers,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10)
            )
        self._client = client

    async def __aenter__(self) -> "RetryingFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def fetch_json(self, url: str, options: FetchOptions = None) -> Any:
        """GET ``url`` and return the parsed JSON body.

        Transport, status and timeout failures are retried up to
        ``max_retries`` times with the configured delay. Parse failures are
        raised immediately. Raises the last ``FetchError`` once the budget is
        spent.
        """
        request = FetchRequest.build(url, options or self.options)
        retries_left = request.max_retries
        attempt = 0

        while True:
            attempt += 1
            try:
                return await self._attempt(request)
            except FetchError as e:
                if not e.retryable or retries_left <= 0:
                    e.attempts = attempt
                    logger.warning("request_failed",
                                   url=url,
                                   kind=e.kind.value,
                                   error=e.message,
                                   attempts=attempt)
                    raise

                delay = request.delay_before_retry(attempt)
                verb = "timed out" if e.kind is ErrorKind.TIMEOUT else "failed"
                logger.warning(f"Request {verb}, retrying... ({retries_left} attempts left)",
                               url=url,
                               error=e.message,
                               delay_seconds=delay)
                retries_left -= 1
                await asyncio.sleep(delay)

    async def fetch(self, url: str, options: FetchOptions = None) -> Outcome:
        """Same as ``fetch_json`` but reports any failure as a value instead of raising."""
        try:
            return Outcome.success(await self.fetch_json(url, options))
        except FetchError as e:
            return Outcome.failure(e)
        except Exception as e:
            logger.exception("request_crashed", url=url, error=str(e))
            return Outcome.failure(e)

    def fetch_with_callback(
        self,
        url: str,
        callback: Callable[[Outcome], None],
        options: FetchOptions = None,
    ) -> asyncio.Task:
        """Start a fetch in the background and hand its outcome to ``callback``.

        Must be called with a running event loop. The callback runs exactly
        once, on the loop, unless the returned task is cancelled.
        """
        task = asyncio.ensure_future(self.fetch(url, options))

        def _done(t: asyncio.Task):
            if t.cancelled():
                return
            callback(t.result())

        task.add_done_callback(_done)
        return task

    async def _attempt(self, request: FetchRequest) -> Any:
        start_time = time.monotonic()

        try:
            # wait_for cancels the in-flight request when the deadline passes
            response = await asyncio.wait_for(
                self._client.get(request.url, timeout=request.timeout),
                timeout=request.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise FetchError.timeout(request.url, request.timeout, _elapsed_ms(start_time))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(
                ErrorKind.TRANSPORT,
                str(e) or e.__class__.__name__,
                url=request.url,
                elapsed_ms=_elapsed_ms(start_time),
            )

        if not 200 <= response.status_code < 300:
            raise FetchError.status(
                request.url,
                response.status_code,
                response.reason_phrase,
                _elapsed_ms(start_time),
            )

        try:
            return response.json()
        except (ValueError, RecursionError) as e:
            # json raises RecursionError on deeply nested but well-formed bodies
            raise FetchError.parse(request.url, f"Malformed JSON response: {e}")


async def timed(awaitable: Awaitable[T]) -> Tuple[T, float]:
    """Await ``awaitable`` and return its value with the elapsed milliseconds."""
    start_time = time.monotonic()
    value = await awaitable
    return value, _elapsed_ms(start_time)


def _elapsed_ms(start_time: float) -> float:
    return (time.monotonic() - start_time) * 1000


async def create_fetcher(
    options: Optional[FetchOptions] = None,
    user_agent: str = "AsyncDashboard/1.0",
    client: Optional[httpx.AsyncClient] = None,
) -> RetryingFetcher:
    """Create a RetryingFetcher, optionally over an existing client."""
    return RetryingFetcher(options=options, client=client, user_agent=user_agent)
