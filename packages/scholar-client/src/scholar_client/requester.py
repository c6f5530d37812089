"""Throttled, retrying HTTP GETs against the Scholar site.

Combines:
- The shared minimum-delay gate (RequestThrottle)
- Exponential backoff on HTTP 429 (tenacity, via scholar_common.retry)
- Status/transport error mapping onto the scholar_client error types

The transport is injectable (any ``httpx.AsyncBaseTransport``), so tests
serve fixture documents through ``httpx.MockTransport`` or respx.
"""

from typing import Any

import httpx
from scholar_common import get_logger, retry_on_exception
from tenacity import RetryCallState

from scholar_client.errors import (
    ScholarRateLimitedError,
    ScholarTransportError,
    ScholarUnexpectedStatusError,
)
from scholar_client.rate_limiter import RequestThrottle

logger = get_logger(__name__)

RATE_LIMIT_REMAINING_HEADER = "x-ratelimit-remaining"


class RateLimitResponse(Exception):
    """One HTTP 429 answer; the retry signal, never surfaced to callers."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"HTTP 429 from {url}")


class ThrottledRequester:
    """Issues GETs through a shared throttle with bounded 429 retries.

    Example:
        >>> throttle = RequestThrottle(min_delay_seconds=2.0)
        >>> async with ThrottledRequester(throttle, user_agent=AGENT) as requester:
        ...     html = await requester.fetch("https://scholar.google.com/citations",
        ...                                  params={"user": "SbUmSEAAAAAJ"})

    Attributes:
        throttle: Gate shared by every request of the owning client
        max_retries: Retries after the first rate-limited attempt (default: 3)
        backoff_base_seconds: Wait before the first retry; doubles after (default: 5.0)
        transport_calls: Number of requests handed to the transport so far
    """

    def __init__(
        self,
        throttle: RequestThrottle,
        user_agent: str,
        max_retries: int = 3,
        backoff_base_seconds: float = 5.0,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize requester.

        Args:
            throttle: Shared minimum-delay gate
            user_agent: Fixed User-Agent header
            max_retries: Retry ceiling for HTTP 429
            backoff_base_seconds: Base backoff delay
            timeout_seconds: Request timeout
            transport: Optional transport override (tests)
        """
        self.throttle = throttle
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.backoff_base_seconds = backoff_base_seconds
        self.timeout_seconds = timeout_seconds
        self.transport_calls = 0
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ThrottledRequester":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        dump_response: bool = False,
    ) -> str:
        """GET a document, honoring the throttle and the 429 retry policy.

        Args:
            url: Absolute URL
            params: Query parameters
            dump_response: Log the raw body at debug level

        Returns:
            Response body text

        Raises:
            ScholarRateLimitedError: 429 on every attempt
            ScholarUnexpectedStatusError: Any other non-200 status
            ScholarTransportError: Network failure (not retried)
        """
        if not self._client:
            raise RuntimeError("Requester not initialized. Use async context manager.")

        send = retry_on_exception(
            (RateLimitResponse,),
            max_attempts=self.max_retries + 1,
            min_wait_seconds=self.backoff_base_seconds,
            max_wait_seconds=self.backoff_base_seconds * 2 ** max(0, self.max_retries - 1),
            before_sleep=self._log_backoff,
        )(self._send_once)

        try:
            response = await send(url, params)
        except RateLimitResponse as exc:
            logger.warning("rate_limit_exhausted", url=exc.url, retries=self.max_retries)
            raise ScholarRateLimitedError(self.max_retries, exc.url) from None

        if dump_response:
            logger.debug("response_dumped", url=str(response.url), body=response.text)

        return response.text

    async def _send_once(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        """Single attempt: wait for the gate, dispatch, map the status."""
        await self.throttle.acquire()
        self.transport_calls += 1

        logger.debug("request_dispatched", url=url, params=params)
        try:
            response = await self._client.get(url, params=params)
        except httpx.TransportError as exc:
            raise ScholarTransportError(url, str(exc) or type(exc).__name__) from exc

        if response.status_code == 429:
            raise RateLimitResponse(str(response.url))

        if response.status_code != 200:
            raise ScholarUnexpectedStatusError(
                response.status_code,
                str(response.url),
                response.headers.get(RATE_LIMIT_REMAINING_HEADER),
            )

        return response

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "rate_limited_retrying",
            url=getattr(exc, "url", None),
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            attempt=retry_state.attempt_number,
            max_retries=self.max_retries,
        )
