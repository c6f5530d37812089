"""Async Google Scholar profile client.

Main client class that combines:
- Throttled, retrying requests (one gate per client)
- Listing pagination and detail-page extraction
- Article/profile caching with TTL-based refresh

Base URL: https://scholar.google.com
"""

import httpx
from scholar_common import get_logger, get_settings, instrument_function

from scholar_client.cache import ScholarCache
from scholar_client.errors import ScholarFetchError
from scholar_client.models import Article, ListingEntry, Profile
from scholar_client.parsing import extract_detail, extract_listing
from scholar_client.rate_limiter import RequestThrottle
from scholar_client.requester import ThrottledRequester

logger = get_logger(__name__)

# Scholar rejects page sizes below 20 and times out on large ones
MIN_PAGE_SIZE = 20
MAX_PAGE_SIZE = 80


def page_size_for(limit: int) -> int:
    """Listing page size for a query of ``limit`` articles."""
    return max(MIN_PAGE_SIZE, min(limit, MAX_PAGE_SIZE))


class ScholarClient:
    """Async Google Scholar profile client.

    Provides methods for:
    - Crawling a profile listing (with article detail lookups)
    - The same, served from the profile cache while it is fresh
    - Single article detail lookups

    Example:
        >>> cache = ScholarCache.load("profiles.json", "articles.json")
        >>> async with ScholarClient(cache=cache) as client:
        ...     articles = await client.query_profile_with_cache("SbUmSEAAAAAJ", limit=20)
        ...     for article in articles:
        ...         print(f"{article.title} ({article.year}) - {article.num_citations} citations")
        >>> cache.save("profiles.json", "articles.json")

    Concurrent queries (``asyncio.gather``) may share one client; they all
    pass through the same request gate.

    Attributes:
        base_url: Site root (default: https://scholar.google.com)
        cache: Cache consulted for articles and, in the cached variant, profiles
    """

    def __init__(
        self,
        cache: ScholarCache | None = None,
        base_url: str | None = None,
        user_agent: str | None = None,
        request_delay_seconds: float | None = None,
        max_retries: int | None = None,
        backoff_base_seconds: float | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Unset arguments fall back to ``scholar_common.get_settings()``.

        Args:
            cache: Shared cache (default: a new empty ScholarCache)
            base_url: Site root
            user_agent: User-Agent header
            request_delay_seconds: Minimum gap between requests
            max_retries: Retry ceiling for HTTP 429
            backoff_base_seconds: First 429 backoff wait
            timeout_seconds: Request timeout
            transport: Transport override (tests use httpx.MockTransport)
        """
        settings = get_settings()

        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.cache = cache if cache is not None else ScholarCache()

        self._throttle = RequestThrottle(
            min_delay_seconds=(
                settings.request_delay_seconds
                if request_delay_seconds is None
                else request_delay_seconds
            ),
        )
        self._requester = ThrottledRequester(
            self._throttle,
            user_agent=user_agent or settings.user_agent,
            max_retries=settings.max_retries if max_retries is None else max_retries,
            backoff_base_seconds=(
                settings.backoff_base_seconds
                if backoff_base_seconds is None
                else backoff_base_seconds
            ),
            timeout_seconds=timeout_seconds or settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ScholarClient":
        """Async context manager entry."""
        await self._requester.__aenter__()

        logger.info(
            "scholar_client_initialized",
            base_url=self.base_url,
            request_delay_seconds=self._throttle.min_delay_seconds,
            max_retries=self._requester.max_retries,
        )
        return self

    async def __aexit__(self, *args) -> None:
        """Async context manager exit."""
        await self._requester.__aexit__(*args)

    @property
    def request_delay(self) -> float:
        return self._throttle.min_delay_seconds

    def set_request_delay(self, seconds: float) -> None:
        """Change the minimum delay between requests."""
        self._throttle.set_delay(seconds)

    @property
    def transport_calls(self) -> int:
        """Requests handed to the transport so far (retries included)."""
        return self._requester.transport_calls

    # -------------------------------------------------------------------------
    # Profile Methods
    # -------------------------------------------------------------------------

    @instrument_function("query_profile")
    async def query_profile(
        self,
        user: str,
        limit: int,
        query_articles: bool = True,
        dump_response: bool = False,
    ) -> list[Article]:
        """Crawl a profile listing and return up to ``limit`` articles.

        The profile cache is not consulted. Articles are still resolved
        through the article cache when ``query_articles`` is set.

        Args:
            user: Scholar user handle (e.g., "SbUmSEAAAAAJ")
            limit: Maximum articles to return
            query_articles: Fetch detail pages for fields the listing lacks.
                Turn off to save requests when listing data is enough.
            dump_response: Log raw response bodies at debug level

        Returns:
            Articles in the profile's listing order

        Raises:
            ScholarFetchError: A listing page or a (non-cached) detail page failed
        """
        entries = await self._crawl_listing(user, limit, dump_response)
        if not query_articles:
            return [entry.to_article() for entry in entries]

        articles: list[Article] = []
        for entry in entries:
            if not entry.scholar_url:
                articles.append(entry.to_article())
                continue
            articles.append(await self._resolve_article(entry.scholar_url, entry, dump_response))
        return articles

    @instrument_function("query_profile_with_cache")
    async def query_profile_with_cache(self, user: str, limit: int) -> list[Article]:
        """Return a profile's articles, re-crawling only when the profile is stale.

        - No cached profile: crawl, then store the profile.
        - Fresh profile (age <= profile TTL): no listing request; each cached
          article URL is resolved through the article cache.
        - Stale profile: crawl again and replace the profile entry.

        Args:
            user: Scholar user handle
            limit: Maximum articles to return

        Returns:
            Articles in listing order

        Raises:
            ScholarFetchError: The crawl, or a detail fetch with nothing
                cached to fall back on, failed
        """
        profile = self.cache.get_profile(user)

        if profile is None:
            logger.info("profile_cache_miss", user=user)
            return await self._recrawl_profile(user, limit)

        if self.cache.is_profile_expired(profile):
            logger.info(
                "profile_cache_expired",
                user=user,
                last_retrieved=profile.last_retrieved,
            )
            return await self._recrawl_profile(user, limit)

        logger.info("profile_cache_hit", user=user, articles=len(profile.articles))
        articles: list[Article] = []
        for url in profile.articles[: max(0, limit)]:
            articles.append(await self._resolve_article(url, None, False))
        return articles

    # -------------------------------------------------------------------------
    # Article Methods
    # -------------------------------------------------------------------------

    @instrument_function("query_article")
    async def query_article(
        self,
        url: str,
        seed: ListingEntry | None = None,
        dump_response: bool = False,
    ) -> Article:
        """Fetch one article detail page and store the result in the cache.

        Args:
            url: Absolute detail-page URL
            seed: Listing data to carry over (title, year, citations)
            dump_response: Log the raw body at debug level

        Returns:
            Freshly retrieved article
        """
        seed = (seed or ListingEntry()).model_copy(update={"scholar_url": url})

        html = await self._requester.fetch(url, dump_response=dump_response)
        article = extract_detail(html, seed, self.base_url, retrieved_at=self.cache.now())

        self.cache.put_article(article)
        return article

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    async def _crawl_listing(
        self,
        user: str,
        limit: int,
        dump_response: bool,
    ) -> list[ListingEntry]:
        """Page through a profile listing until ``limit`` rows or the end.

        Stops on an empty page or a short page, so at most
        ceil(limit / page_size) pages are requested.
        """
        if limit <= 0:
            return []

        page_size = page_size_for(limit)
        offset = 0
        remaining = limit
        entries: list[ListingEntry] = []

        while remaining > 0:
            page = await self._fetch_listing_page(user, offset, page_size, dump_response)
            if not page:
                break

            taken = page[:remaining]
            entries.extend(taken)
            remaining -= len(taken)

            if len(page) < page_size:
                break
            offset += page_size

        logger.info("listing_crawled", user=user, limit=limit, articles=len(entries))
        return entries

    async def _fetch_listing_page(
        self,
        user: str,
        offset: int,
        page_size: int,
        dump_response: bool,
    ) -> list[ListingEntry]:
        html = await self._requester.fetch(
            f"{self.base_url}/citations",
            params={"user": user, "cstart": offset, "pagesize": page_size},
            dump_response=dump_response,
        )
        page = extract_listing(html, self.base_url)
        logger.debug("listing_page_fetched", user=user, cstart=offset, rows=len(page))
        return page

    async def _resolve_article(
        self,
        url: str,
        listed: ListingEntry | None,
        dump_response: bool,
    ) -> Article:
        """Resolve one article URL through the article cache.

        ``listed`` is the listing row on the crawl path and None when serving
        a cached profile. Miss: fetch. Stale: fetch, keeping the stale copy if
        the fetch fails. Fresh: reuse, taking the citation count from the
        listing row when there is one.
        """
        cached = self.cache.get_article(url)

        if cached is None:
            logger.info("article_cache_miss", url=url)
            return await self.query_article(url, listed, dump_response)

        if self.cache.is_article_expired(cached):
            logger.info(
                "article_cache_expired",
                url=url,
                last_retrieved=cached.last_retrieved,
            )
            try:
                if listed is not None:
                    return await self.query_article(url, listed, dump_response)
                return await self._refetch_unlisted(cached, dump_response)
            except ScholarFetchError as exc:
                logger.warning("article_refresh_failed", url=url, error=str(exc))
        else:
            logger.debug("article_cache_hit", url=url)

        if listed is None:
            return cached

        refreshed = cached.with_citations(listed.num_citations)
        self.cache.put_article(refreshed)
        return refreshed

    async def _refetch_unlisted(self, cached: Article, dump_response: bool) -> Article:
        """Refetch a stale article with no listing row to seed it.

        The citation count is left to the page's "Total citations" field;
        the cached count is kept only when the page has none.
        """
        seed = ListingEntry.from_article(cached).model_copy(update={"num_citations": 0})
        article = await self.query_article(cached.scholar_url, seed, dump_response)

        if not article.num_citations and cached.num_citations:
            article = article.with_citations(cached.num_citations)
            self.cache.put_article(article)
        return article

    async def _recrawl_profile(self, user: str, limit: int) -> list[Article]:
        """Full crawl, then replace the profile entry with its URL list."""
        articles = await self.query_profile(user, limit)

        self.cache.put_profile(
            Profile(
                user=user,
                last_retrieved=self.cache.now(),
                articles=[article.scholar_url for article in articles if article.scholar_url],
            )
        )
        return articles
