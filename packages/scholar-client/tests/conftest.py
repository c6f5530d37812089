"""Shared fixtures for scholar_client tests.

FakeScholar serves a synthetic profile through httpx.MockTransport, paging
the listing by ``cstart``/``pagesize`` the way the real site does.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from scholar_client import ScholarCache, ScholarClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"

BASE_URL = "https://scholar.google.com"
USER = "SbUmSEAAAAAJ"
EPOCH = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def render_listing(rows: list[tuple[str, int, int, str]]) -> str:
    """Render a listing page from (title, year, citations, href) rows."""
    body = "".join(
        '<tr class="gsc_a_tr">'
        f'<td class="gsc_a_t"><a class="gsc_a_at" href="{href}">{title}</a>'
        '<div class="gs_gray">A Author</div></td>'
        f'<td class="gsc_a_c"><a class="gsc_a_ac">{citations}</a></td>'
        f'<td class="gsc_a_y"><span class="gsc_a_h">{year}</span></td>'
        "</tr>"
        for title, year, citations, href in rows
    )
    return f'<html><body><table id="gsc_a_t"><tbody id="gsc_a_b">{body}</tbody></table></body></html>'


def render_detail(index: int, total_citations: int | None = None) -> str:
    """Render a minimal detail page for article ``index``."""
    total = ""
    if total_citations is not None:
        total = (
            '<div class="gs_scl"><div class="gsc_oci_field">Total citations</div>'
            f'<div class="gsc_oci_value"><a href="/scholar?cites={index}">Cited by {total_citations}</a></div></div>'
        )
    return (
        "<html><body><div id=\"gsc_oci_table\">"
        '<div class="gs_scl"><div class="gsc_oci_field">Authors</div>'
        f'<div class="gsc_oci_value">Author {index}</div></div>'
        '<div class="gs_scl"><div class="gsc_oci_field">Journal</div>'
        f'<div class="gsc_oci_value">Journal {index}</div></div>'
        f"{total}</div></body></html>"
    )


class FakeClock:
    """Settable clock for TTL tests."""

    def __init__(self, start: datetime = EPOCH):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FakeScholar:
    """In-memory Scholar site for one or more profiles.

    Attributes:
        profiles: user -> number of articles on the profile
        citations: Citation count served for every listing row
        failing_details: Detail indices answered with HTTP 500
        detail_citations: "Total citations" shown on detail pages (None: omitted)
        ignore_paging: Serve the first page whatever ``cstart`` asks for
        requests: Every request the transport received, in order
    """

    def __init__(self, profiles: dict[str, int], citations: int = 7):
        self.profiles = profiles
        self.citations = citations
        self.failing_details: set[int] = set()
        self.ignore_paging = False
        self.detail_citations: int | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params

        if request.url.path != "/citations":
            return httpx.Response(404)

        user = params.get("user", "")
        if user not in self.profiles:
            return httpx.Response(404)

        if params.get("view_op") == "view_citation":
            index = int(params["citation_for_view"].split(":")[1])
            if index in self.failing_details:
                return httpx.Response(500)
            return httpx.Response(200, text=render_detail(index, self.detail_citations))

        start = 0 if self.ignore_paging else int(params.get("cstart", 0))
        size = int(params.get("pagesize", 20))
        end = min(start + size, self.profiles[user])
        rows = [
            (
                f"Paper {i}",
                2000 + i % 20,
                self.citations,
                f"/citations?view_op=view_citation&hl=en&user={user}&citation_for_view={user}:{i}",
            )
            for i in range(start, end)
        ]
        return httpx.Response(200, text=render_listing(rows))

    def detail_url(self, user: str, index: int) -> str:
        return (
            f"{BASE_URL}/citations?view_op=view_citation&hl=en"
            f"&user={user}&citation_for_view={user}:{index}"
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def listing_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "view_op" not in r.url.params]

    @property
    def detail_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "view_op" in r.url.params]


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def author_page_html() -> str:
    """Listing page with two complete rows and one malformed row."""
    return (FIXTURES_DIR / "sample_author_page.html").read_text(encoding="utf-8")


@pytest.fixture
def article_page_html() -> str:
    """Detail page of a book bundling two sub-publications."""
    return (FIXTURES_DIR / "sample_article_page.html").read_text(encoding="utf-8")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ScholarCache:
    """Empty cache on a fake clock (1 day / 7 day TTLs)."""
    return ScholarCache(
        profile_ttl_seconds=86400,
        article_ttl_seconds=7 * 86400,
        clock=clock,
    )


@pytest.fixture
def fake_scholar() -> FakeScholar:
    """Profile USER with 58 articles."""
    return FakeScholar({USER: 58})


@pytest.fixture
def make_client(cache: ScholarCache, fake_scholar: FakeScholar):
    """Factory for clients wired to the fake site with no throttle or backoff."""

    def _make(**kwargs) -> ScholarClient:
        options = {
            "cache": cache,
            "base_url": BASE_URL,
            "request_delay_seconds": 0.0,
            "backoff_base_seconds": 0.0,
            "transport": fake_scholar.transport,
        }
        options.update(kwargs)
        return ScholarClient(**options)

    return _make
