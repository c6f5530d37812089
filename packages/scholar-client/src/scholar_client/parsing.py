"""HTML extraction for Scholar profile listing pages and article detail pages.

Both extractors are forgiving: a missing or malformed field degrades to its
zero value ("" or 0) and extraction carries on, so one odd row never costs
the whole page. Unknown detail fields are ignored, which keeps the parser
working when Scholar adds fields to its layout.
"""

import re
from datetime import datetime, timezone
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from scholar_common import get_logger

from scholar_client.models import Article, ListingEntry

logger = get_logger(__name__)

HTML_PARSER = "lxml"

# Listing page
LISTING_ROW = ".gsc_a_tr"
LISTING_TITLE_LINK = ".gsc_a_t .gsc_a_at"
LISTING_YEAR = ".gsc_a_y span"
LISTING_CITATIONS = ".gsc_a_c"

# Detail page
DETAIL_TITLE = "#gsc_oci_title"
DETAIL_PDF_LINK_HOLDER = ".gsc_oci_title_ggi"
DETAIL_FIELD_BLOCK = ".gs_scl"
DETAIL_FIELD_NAME = ".gsc_oci_field"
DETAIL_FIELD_VALUE = ".gsc_oci_value"
DETAIL_MERGED_SNIPPET = ".gsc_oci_merged_snippet"
DETAIL_SNIPPET_LINK = ".gsc_oms_link"

AGGREGATE_FIELD = "scholar articles"
TOTAL_CITATIONS_FIELD = "Total citations"

# Plain text fields copied verbatim onto the article
TEXT_FIELDS = {
    "Authors": "authors",
    "Journal": "journal",
    "Volume": "volume",
    "Pages": "pages",
    "Publisher": "publisher",
    "Description": "description",
}

# Substring of the link text -> link collection
LINK_CLASSES = (
    ("Cited by", "scholar_cited_by_urls"),
    ("Related", "scholar_related_urls"),
    ("versions", "scholar_versions_urls"),
)

_CITED_BY_RE = re.compile(r"Cited by\s+(\d+)")


def extract_listing(html: str, base_url: str) -> list[ListingEntry]:
    """Extract listing rows from one profile page, in page order.

    Args:
        html: Listing page document
        base_url: Site root used to resolve relative detail links

    Returns:
        One ListingEntry per row. The order is Scholar's own ranking and
        must be preserved by callers.
    """
    soup = BeautifulSoup(html, HTML_PARSER)
    entries: list[ListingEntry] = []

    for row in soup.select(LISTING_ROW):
        link = row.select_one(LISTING_TITLE_LINK)
        href = link.get("href") if link is not None else None

        entries.append(
            ListingEntry(
                title=_text(link),
                year=_to_int(_text(row.select_one(LISTING_YEAR)), "year"),
                num_citations=_to_int(
                    _text(_first_child(row.select_one(LISTING_CITATIONS))),
                    "citations",
                ),
                scholar_url=urljoin(base_url, href) if href else "",
            )
        )

    logger.debug("listing_extracted", rows=len(entries))
    return entries


def extract_detail(
    html: str,
    seed: ListingEntry,
    base_url: str,
    retrieved_at: datetime | None = None,
) -> Article:
    """Build a full article from its detail page.

    Title, year and citation count come from the seed; the page only fills
    them in where the seed has nothing. ``num_articles`` and the link
    collections are rebuilt from scratch on every call.

    Args:
        html: Detail page document
        seed: What the listing already knows about this article
        base_url: Site root used to resolve relative links
        retrieved_at: Retrieval timestamp (default: now, UTC)

    Returns:
        Article stamped with ``last_retrieved``
    """
    soup = BeautifulSoup(html, HTML_PARSER)

    fields: dict = {
        "title": seed.title or _text(soup.select_one(DETAIL_TITLE)),
        "year": seed.year,
        "num_citations": seed.num_citations,
        "scholar_url": seed.scholar_url,
        "last_retrieved": retrieved_at or datetime.now(timezone.utc),
        "num_articles": 0,
        "pdf_url": "",
        "scholar_cited_by_urls": [],
        "scholar_versions_urls": [],
        "scholar_related_urls": [],
    }

    pdf_link = _first_child(soup.select_one(DETAIL_PDF_LINK_HOLDER))
    if pdf_link is not None and pdf_link.get("href"):
        fields["pdf_url"] = urljoin(base_url, pdf_link["href"])

    for block in soup.select(DETAIL_FIELD_BLOCK):
        name = _text(block.select_one(DETAIL_FIELD_NAME))
        value = block.select_one(DETAIL_FIELD_VALUE)

        if name in TEXT_FIELDS:
            fields[TEXT_FIELDS[name]] = _text(value)
        elif name == "Publication date":
            _apply_publication_date(fields, _text(value))
        elif name == TOTAL_CITATIONS_FIELD:
            if not fields["num_citations"]:
                match = _CITED_BY_RE.search(_text(value))
                if match:
                    fields["num_citations"] = int(match.group(1))
        elif name.lower() == AGGREGATE_FIELD and value is not None:
            _apply_merged_snippets(fields, value, base_url)

    article = Article(**fields)
    logger.debug(
        "detail_extracted",
        url=article.scholar_url,
        merged_articles=article.num_articles,
    )
    return article


def _apply_publication_date(fields: dict, value: str) -> None:
    # YYYY/MM/DD; partial dates leave the previous values alone
    parts = value.split("/")
    if len(parts) == 3:
        fields["year"] = _to_int(parts[0], "year")
        fields["month"] = _to_int(parts[1], "month")
        fields["day"] = _to_int(parts[2], "day")


def _apply_merged_snippets(fields: dict, value: Tag, base_url: str) -> None:
    """Count bundled sub-publications and classify their links.

    Each merged snippet is one sub-publication (books often bundle several).
    """
    for snippet in value.select(DETAIL_MERGED_SNIPPET):
        fields["num_articles"] += 1
        for link in snippet.select(DETAIL_SNIPPET_LINK):
            link_text = link.get_text()
            href = urljoin(base_url, link["href"]) if link.get("href") else ""
            for marker, collection in LINK_CLASSES:
                if marker in link_text:
                    fields[collection].append(href)


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return node.get_text().strip()


def _first_child(node: Tag | None) -> Tag | None:
    if node is None:
        return None
    return node.find(True, recursive=False)


def _to_int(text: str, field_name: str) -> int:
    """Parse an integer; anything non-numeric degrades to 0."""
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        logger.debug("field_degraded", field=field_name, raw=text)
        return 0
