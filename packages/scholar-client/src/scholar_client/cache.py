"""Two-tier in-process cache for Scholar profiles and articles.

Caches crawl results to:
- Avoid re-crawling a profile listing more than once a day
- Avoid re-fetching article detail pages more than once a week
- Survive restarts via two JSON snapshot files

Default TTLs: 1 day (profiles), 7 days (articles). An entry whose age is
exactly the TTL is still fresh; anything older is expired.
"""

import json
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generic, Hashable, Mapping, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from scholar_common import get_logger, get_settings

from scholar_client.errors import ScholarCacheError
from scholar_client.models import Article, Profile

logger = get_logger(__name__)

DEFAULT_STRIPES = 16

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_PROFILE_SNAPSHOT = TypeAdapter(dict[str, Profile])
_ARTICLE_SNAPSHOT = TypeAdapter(dict[str, Article])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StripedStore(Generic[K, V]):
    """Thread-safe mapping split into independently locked stripes.

    Keys hash to one stripe, so writers to different keys rarely contend
    and never wait on a global lock. Every operation is atomic for its
    single entry. Locks are only held for the dict access itself, which
    makes the store safe to use from coroutines as well as threads.
    """

    def __init__(self, stripes: int = DEFAULT_STRIPES) -> None:
        if stripes < 1:
            raise ValueError(f"stripes must be >= 1, got {stripes}")
        self._stripes: list[tuple[threading.Lock, dict[K, V]]] = [
            (threading.Lock(), {}) for _ in range(stripes)
        ]

    def _stripe(self, key: K) -> tuple[threading.Lock, dict[K, V]]:
        return self._stripes[hash(key) % len(self._stripes)]

    def get(self, key: K) -> V | None:
        lock, data = self._stripe(key)
        with lock:
            return data.get(key)

    def put(self, key: K, value: V) -> None:
        lock, data = self._stripe(key)
        with lock:
            data[key] = value

    def delete(self, key: K) -> bool:
        """Remove a key. Returns True if it was present."""
        lock, data = self._stripe(key)
        with lock:
            return data.pop(key, None) is not None

    def snapshot(self) -> dict[K, V]:
        """Copy of all entries, taken stripe by stripe."""
        result: dict[K, V] = {}
        for lock, data in self._stripes:
            with lock:
                result.update(data)
        return result

    def clear(self) -> None:
        for lock, data in self._stripes:
            with lock:
                data.clear()

    def __contains__(self, key: object) -> bool:
        lock, data = self._stripe(key)  # type: ignore[arg-type]
        with lock:
            return key in data

    def __len__(self) -> int:
        total = 0
        for lock, data in self._stripes:
            with lock:
                total += len(data)
        return total


class ScholarCache:
    """Dual-tier cache: profiles keyed by user handle, articles by detail URL.

    The cache is the only writer of both stores. Entries are replaced as a
    whole, never mutated in place, so a reader always sees one consistent
    version of an entry.

    Example:
        >>> cache = ScholarCache.load("profiles.json", "articles.json")
        >>> async with ScholarClient(cache=cache) as client:
        ...     articles = await client.query_profile_with_cache("SbUmSEAAAAAJ", limit=20)
        >>> cache.save("profiles.json", "articles.json")

    Attributes:
        profile_ttl: Age after which a profile listing is re-crawled
        article_ttl: Age after which an article detail page is re-fetched
    """

    def __init__(
        self,
        profile_ttl_seconds: float | None = None,
        article_ttl_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
        stripes: int = DEFAULT_STRIPES,
    ) -> None:
        """Initialize an empty cache.

        Args:
            profile_ttl_seconds: Profile TTL (default: settings, 1 day)
            article_ttl_seconds: Article TTL (default: settings, 7 days)
            clock: Source of "now" as an aware datetime (tests)
            stripes: Lock stripes per store
        """
        settings = get_settings()
        if profile_ttl_seconds is None:
            profile_ttl_seconds = settings.profile_ttl_seconds
        if article_ttl_seconds is None:
            article_ttl_seconds = settings.article_ttl_seconds

        self.profile_ttl = timedelta(seconds=profile_ttl_seconds)
        self.article_ttl = timedelta(seconds=article_ttl_seconds)
        self._clock = clock or utcnow
        self._profiles: StripedStore[str, Profile] = StripedStore(stripes)
        self._articles: StripedStore[str, Article] = StripedStore(stripes)

    def now(self) -> datetime:
        """Current time according to the cache clock."""
        return self._clock()

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def get_profile(self, user: str) -> Profile | None:
        return self._profiles.get(user)

    def put_profile(self, profile: Profile) -> None:
        """Store (or wholesale replace) a profile entry."""
        self._profiles.put(profile.user, profile)

    def delete_profile(self, user: str) -> bool:
        return self._profiles.delete(user)

    def is_profile_expired(self, profile: Profile) -> bool:
        return self._is_expired(profile.last_retrieved, self.profile_ttl)

    # -------------------------------------------------------------------------
    # Articles
    # -------------------------------------------------------------------------

    def get_article(self, url: str) -> Article | None:
        return self._articles.get(url)

    def put_article(self, article: Article) -> None:
        """Store (or replace) an article under its detail URL."""
        if not article.scholar_url:
            raise ValueError("Cannot cache an article without a scholar_url")
        self._articles.put(article.scholar_url, article)

    def delete_article(self, url: str) -> bool:
        return self._articles.delete(url)

    def is_article_expired(self, article: Article) -> bool:
        return self._is_expired(article.last_retrieved, self.article_ttl)

    def _is_expired(self, last_retrieved: datetime | None, ttl: timedelta) -> bool:
        # never retrieved counts as expired; age == ttl is still fresh
        if last_retrieved is None:
            return True
        return self.now() - last_retrieved > ttl

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def profiles(self) -> dict[str, Profile]:
        """Point-in-time copy of the profile store."""
        return self._profiles.snapshot()

    def articles(self) -> dict[str, Article]:
        """Point-in-time copy of the article store."""
        return self._articles.snapshot()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with entry counts (total and expired) and TTLs
        """
        profiles = self.profiles()
        articles = self.articles()
        return {
            "profiles": len(profiles),
            "expired_profiles": sum(1 for p in profiles.values() if self.is_profile_expired(p)),
            "articles": len(articles),
            "expired_articles": sum(1 for a in articles.values() if self.is_article_expired(a)),
            "profile_ttl_seconds": self.profile_ttl.total_seconds(),
            "article_ttl_seconds": self.article_ttl.total_seconds(),
        }

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def save(
        self,
        profile_path: str | Path | None = None,
        article_path: str | Path | None = None,
    ) -> None:
        """Write both stores to their JSON snapshot files.

        Both files are first written to temporary siblings; only when both
        are complete are they renamed into place. A failed write leaves both
        previous snapshots untouched. Paths default
        to the ``profile_cache_path``/``article_cache_path`` settings.

        Raises:
            ScholarCacheError: If a snapshot cannot be written
        """
        profile_path, article_path = _snapshot_paths(profile_path, article_path)
        profiles = self.profiles()
        articles = self.articles()

        _write_snapshots([(profile_path, profiles), (article_path, articles)])

        logger.info(
            "cache_saved",
            profiles=len(profiles),
            articles=len(articles),
            profile_path=str(profile_path),
            article_path=str(article_path),
        )

    @classmethod
    def load(
        cls,
        profile_path: str | Path | None = None,
        article_path: str | Path | None = None,
        **kwargs: Any,
    ) -> "ScholarCache":
        """Build a cache from two snapshot files.

        Each file is loaded on its own. A missing, unreadable or invalid file
        yields an empty store for that tier and never raises.

        Args:
            profile_path: Profile snapshot, user -> Profile (default: settings)
            article_path: Article snapshot, URL -> Article (default: settings)
            **kwargs: Passed to the constructor (TTLs, clock, stripes)
        """
        profile_path, article_path = _snapshot_paths(profile_path, article_path)
        cache = cls(**kwargs)

        for user, profile in _load_or_empty(profile_path, _PROFILE_SNAPSHOT).items():
            if not profile.user:
                profile = profile.model_copy(update={"user": user})
            cache._profiles.put(user, profile)

        for url, article in _load_or_empty(article_path, _ARTICLE_SNAPSHOT).items():
            if not article.scholar_url:
                article = article.model_copy(update={"scholar_url": url})
            cache._articles.put(url, article)

        logger.info(
            "cache_loaded",
            profiles=len(cache._profiles),
            articles=len(cache._articles),
        )
        return cache


def _snapshot_paths(
    profile_path: str | Path | None,
    article_path: str | Path | None,
) -> tuple[Path, Path]:
    settings = get_settings()
    return (
        Path(profile_path or settings.profile_cache_path),
        Path(article_path or settings.article_cache_path),
    )


def _read_snapshot(path: Path, adapter: TypeAdapter) -> dict:
    """Read and validate one snapshot file.

    Raises:
        ScholarCacheError: File missing, not JSON, or entries invalid
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ScholarCacheError(f"Cannot read cache snapshot {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ScholarCacheError(f"Cache snapshot {path} is not a JSON object")

    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        raise ScholarCacheError(f"Invalid entries in cache snapshot {path}: {exc}") from exc


def _load_or_empty(path: Path, adapter: TypeAdapter) -> dict:
    try:
        return _read_snapshot(path, adapter)
    except ScholarCacheError as exc:
        logger.warning("cache_load_failed", path=str(path), error=str(exc))
        return {}


def _write_snapshots(snapshots: list[tuple[Path, Mapping[str, BaseModel]]]) -> None:
    """Stage every snapshot in a temp file, then rename them all into place."""
    staged: list[tuple[str, Path]] = []
    try:
        for path, entries in snapshots:
            staged.append((_stage_snapshot(path, entries), path))
        for tmp_name, path in staged:
            os.replace(tmp_name, path)
    except OSError as exc:
        for tmp_name, _ in staged:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
        raise ScholarCacheError(f"Cannot write cache snapshot: {exc}") from exc


def _stage_snapshot(path: Path, entries: Mapping[str, BaseModel]) -> str:
    """Write ``entries`` to a temporary sibling of ``path`` and return its name."""
    payload = {
        key: entry.model_dump(mode="json", by_alias=True) for key, entry in entries.items()
    }
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        try:
            json.dump(payload, tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            os.unlink(tmp.name)
            raise
    return tmp.name
