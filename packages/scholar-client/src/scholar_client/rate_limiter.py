"""Minimum-delay request gate for the Scholar site.

Google Scholar does not publish limits and answers bursts with HTTP 429 or
a captcha page, so every outbound request goes through one gate that keeps
a fixed gap between dispatches. We default to 2 seconds.
"""

import asyncio
import time
from dataclasses import dataclass, field

from scholar_common import ConfigurationError


@dataclass
class RequestThrottle:
    """Serializing gate enforcing a minimum delay between requests.

    One instance is shared by every request a client makes, so concurrent
    queries rendezvous here. The timestamp is taken right before dispatch,
    which means a slow response never shrinks the gap to the next request.

    Example:
        >>> throttle = RequestThrottle(min_delay_seconds=2.0)
        >>> async with throttle:
        ...     response = await client.get(url)

    Attributes:
        min_delay_seconds: Minimum gap between two dispatches (default: 2.0)
    """

    min_delay_seconds: float = 2.0
    _last_request: float | None = field(init=False, default=None)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    def __post_init__(self) -> None:
        """Validate delay."""
        self.set_delay(self.min_delay_seconds)

    def set_delay(self, seconds: float) -> None:
        """Change the minimum delay; applies from the next acquire()."""
        if seconds < 0:
            raise ConfigurationError(f"request delay must be >= 0, got {seconds}")
        self.min_delay_seconds = float(seconds)

    async def acquire(self) -> float:
        """Wait for this request's slot and claim it.

        The first request never waits.

        Returns:
            Seconds spent waiting (for monitoring)
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                elapsed = time.monotonic() - self._last_request
                if elapsed < self.min_delay_seconds:
                    waited = self.min_delay_seconds - elapsed
                    await asyncio.sleep(waited)
            self._last_request = time.monotonic()
            return waited

    async def __aenter__(self) -> "RequestThrottle":
        """Async context manager entry - waits for a slot."""
        await self.acquire()
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        pass

    @property
    def seconds_until_ready(self) -> float:
        """How long the next acquire() would wait right now (for monitoring)."""
        if self._last_request is None:
            return 0.0
        elapsed = time.monotonic() - self._last_request
        return max(0.0, self.min_delay_seconds - elapsed)
