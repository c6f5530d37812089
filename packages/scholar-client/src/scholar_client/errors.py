"""Scholar client error types.

All fetch errors inherit from ScholarFetchError for easy catching.
Follow "fail fast" principle with explicit, actionable messages.
"""

from scholar_common.errors import ScholarKBError


class ScholarFetchError(ScholarKBError):
    """Base exception for failed requests to the Scholar site."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class ScholarTransportError(ScholarFetchError):
    """Network-level failure (DNS, connection refused, timeout).

    Not retried. The underlying httpx exception is chained as ``__cause__``.
    """

    def __init__(self, url: str, reason: str):
        self.reason = reason
        super().__init__(f"Transport error fetching {url}: {reason}", url)


class ScholarRateLimitedError(ScholarFetchError):
    """Retry ceiling exhausted against repeated HTTP 429 responses.

    Attributes:
        retries: Number of retries made after the first rate-limited attempt
    """

    def __init__(self, retries: int, url: str = ""):
        self.retries = retries
        super().__init__(
            f"Max retries ({retries}) exceeded due to rate limiting (HTTP 429) at {url}",
            url,
        )


class ScholarUnexpectedStatusError(ScholarFetchError):
    """Any non-200, non-429 response.

    Attributes:
        status_code: HTTP status code
        rate_limit_remaining: ``x-ratelimit-remaining`` header, if the site sent one
    """

    def __init__(
        self,
        status_code: int,
        url: str = "",
        rate_limit_remaining: str | None = None,
    ):
        self.status_code = status_code
        self.rate_limit_remaining = rate_limit_remaining
        message = f"Scholar: HTTP status {status_code} from {url}"
        if rate_limit_remaining is not None:
            message += f" (rate limit remaining: {rate_limit_remaining})"
        super().__init__(message, url)


class ScholarCacheError(ScholarKBError):
    """Error reading or writing a cache snapshot.

    Never escapes ``ScholarCache.load``; raised by ``ScholarCache.save``.
    """

    pass
