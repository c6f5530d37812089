"""Pydantic models for Scholar profiles and articles.

Aliases match the keys of the JSON cache snapshots, so snapshot files map
directly onto these models (and older snapshot files keep loading).
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Article(BaseModel):
    """One publication's structured metadata.

    Identity is ``scholar_url``, the canonical detail-page URL.
    ``num_articles`` counts the sub-publications bundled into this entry
    (and tells how long the three link lists are).
    """

    title: str = Field("", alias="Title")
    authors: str = Field("", alias="Authors")
    scholar_url: str = Field("", alias="ScholarURL")
    year: int = Field(0, alias="Year")
    month: int = Field(0, alias="Month")
    day: int = Field(0, alias="Day")
    num_citations: int = Field(0, alias="NumCitations")
    num_articles: int = Field(0, alias="Articles")
    description: str = Field("", alias="Description")
    pdf_url: str = Field("", alias="PdfURL")
    journal: str = Field("", alias="Journal")
    volume: str = Field("", alias="Volume")
    pages: str = Field("", alias="Pages")
    publisher: str = Field("", alias="Publisher")
    scholar_cited_by_urls: list[str] = Field(default_factory=list, alias="ScholarCitedByURLs")
    scholar_versions_urls: list[str] = Field(default_factory=list, alias="ScholarVersionsURLs")
    scholar_related_urls: list[str] = Field(default_factory=list, alias="ScholarRelatedURLs")
    last_retrieved: datetime | None = Field(None, alias="LastRetrieved")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator(
        "scholar_cited_by_urls",
        "scholar_versions_urls",
        "scholar_related_urls",
        mode="before",
    )
    @classmethod
    def null_list_to_empty(cls, v: Any) -> Any:
        """Snapshots store empty link lists as null."""
        return [] if v is None else v

    @field_validator("last_retrieved")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are treated as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def with_citations(self, num_citations: int) -> "Article":
        """Copy with only the citation count replaced."""
        return self.model_copy(update={"num_citations": num_citations})


class ListingEntry(BaseModel):
    """One row of a profile listing page (a partial article).

    Carries what the listing already knows so a detail fetch does not need
    to re-derive it.
    """

    title: str = ""
    year: int = 0
    num_citations: int = 0
    scholar_url: str = ""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_article(cls, article: Article) -> "ListingEntry":
        """Rebuild a seed from a cached article."""
        return cls(
            title=article.title,
            year=article.year,
            num_citations=article.num_citations,
            scholar_url=article.scholar_url,
        )

    def to_article(self) -> Article:
        """Listing-only article (no detail fetch)."""
        return Article(
            title=self.title,
            year=self.year,
            num_citations=self.num_citations,
            scholar_url=self.scholar_url,
        )


class Profile(BaseModel):
    """A researcher's cached listing: ordered article URLs from one crawl.

    ``articles`` is only ever replaced wholesale, so it always reflects a
    single crawl.
    """

    user: str = Field("", alias="User")
    last_retrieved: datetime | None = Field(None, alias="LastRetrieved")
    articles: list[str] = Field(default_factory=list, alias="Articles")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("articles", mode="before")
    @classmethod
    def null_list_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("last_retrieved")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
