from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any

SOURCE_TAG = "finn.no"

LIST = "LIST"
DETAIL = "DETAIL"


@dataclass(frozen=True)
class ListingStub:
    """
    Partial record captured while scanning a LIST page.
    Cached by canonical URL and used to backfill gaps on the DETAIL page.
    """

    url: str | None
    title: str | None = None
    company: str | None = None
    location: str | None = None
    date_posted: str | None = None


@dataclass(frozen=True)
class JobRecord:
    """
    Final output unit pushed to the dataset sink.
    `url` is always the canonical (query-stripped) absolute URL.
    """

    url: str
    title: str | None = None
    company: str | None = None
    location: str | None = None
    date_posted: str | None = None
    category: str | None = None
    sector: str | None = None
    industry: str | None = None
    job_function: str | None = None
    employment_type: str | None = None
    description_html: str | None = None
    description_text: str | None = None
    source: str = SOURCE_TAG

    @classmethod
    def from_stub(cls, stub: ListingStub, *, category: str | None = None) -> JobRecord:
        return cls(
            url=stub.url or "",
            title=stub.title,
            company=stub.company,
            location=stub.location,
            date_posted=stub.date_posted,
            category=category,
        )

    def to_dict(self, *, include_category: bool = True) -> dict[str, Any]:
        out = asdict(self)
        if not include_category:
            out.pop("category", None)
            out.pop("sector", None)
        return out


@dataclass(frozen=True)
class FetchRequest:
    """
    One frontier entry. Everything the dispatch step needs travels here.
    - reserved: a quota slot was promised to this DETAIL request when enqueued
    """

    url: str
    label: str = LIST
    page_no: int = 1
    reserved: bool = False


@dataclass
class FetchedPage:
    url: str
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def content_type(self) -> str:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return str(v or "").lower()
        return ""

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type

    def json(self) -> Any:
        """Decode the body; raises ValueError on malformed JSON."""
        return json.loads(self.body)


@dataclass
class HandlerResult:
    records: list[JobRecord] = field(default_factory=list)
    requests: list[FetchRequest] = field(default_factory=list)
    # Spare DETAIL rows and next-page requests held back while every quota slot is promised.
    deferred: list[FetchRequest] = field(default_factory=list)


@dataclass
class CrawlSummary:
    saved: int = 0
    pages_fetched: int = 0
    pages_failed: int = 0
    list_pages: int = 0
    detail_pages: int = 0
    duration_us: int = 0
