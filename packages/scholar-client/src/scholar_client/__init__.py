"""Google Scholar Profile Client.

Version: 1.0.0

An async Python client for Google Scholar profile pages with:
- A shared minimum-delay request gate (default 2s)
- Exponential backoff on HTTP 429
- Listing/detail HTML extraction into Pydantic models
- Two-tier (profile, article) TTL cache with JSON snapshots

Usage:
    >>> from scholar_client import ScholarCache, ScholarClient
    >>> cache = ScholarCache.load("profiles.json", "articles.json")
    >>> async with ScholarClient(cache=cache) as client:
    ...     articles = await client.query_profile_with_cache("SbUmSEAAAAAJ", limit=10)
    ...     for article in articles:
    ...         print(f"{article.title} ({article.year}) - {article.num_citations} citations")
    >>> cache.save("profiles.json", "articles.json")
"""

from scholar_client.cache import ScholarCache, StripedStore
from scholar_client.client import ScholarClient
from scholar_client.errors import (
    ScholarCacheError,
    ScholarFetchError,
    ScholarRateLimitedError,
    ScholarTransportError,
    ScholarUnexpectedStatusError,
)
from scholar_client.models import Article, ListingEntry, Profile
from scholar_client.parsing import extract_detail, extract_listing
from scholar_client.rate_limiter import RequestThrottle
from scholar_client.requester import ThrottledRequester

__version__ = "1.0.0"

__all__ = [
    # Client
    "ScholarClient",
    # Models
    "Article",
    "ListingEntry",
    "Profile",
    # Extraction
    "extract_listing",
    "extract_detail",
    # Throttling & caching
    "RequestThrottle",
    "ThrottledRequester",
    "ScholarCache",
    "StripedStore",
    # Errors
    "ScholarFetchError",
    "ScholarTransportError",
    "ScholarRateLimitedError",
    "ScholarUnexpectedStatusError",
    "ScholarCacheError",
]
