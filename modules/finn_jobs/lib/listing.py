"""
Search-result (LIST) page parsing.

HTML pages: one row per anchor that points at an ad, enriched with the
metadata text of the enclosing <article>.
JSON pages: raw API objects normalized to the same ListingStub shape.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import ListingStub
from .utils import BASE_URL, canonical_url, element_text, first_str, to_abs, with_query_param

log = logging.getLogger(__name__)

ROW_ANCHOR_SELECTOR = 'a.sf-search-ad-link, a[href*="/job/ad/"]'
META_SELECTORS = (".text-xs", "time", ".sf-search-ad__meta")
COMPANY_SELECTORS = (
    '[data-automation-id="search-result-company"]',
    ".flex.flex-col.text-xs span",
    '[class*="company"]',
    ".employer",
)
LOCATION_SELECTORS = (
    '[data-automation-id="search-result-location"]',
    '[class*="location"]',
)


def _first_text(scope: Tag | None, selectors: tuple[str, ...]) -> str | None:
    if scope is None:
        return None
    for sel in selectors:
        text = element_text(scope.select_one(sel))
        if text:
            return text
    return None


def _split_meta(meta: str | None) -> tuple[str | None, str | None]:
    """'12. mar. | Oslo' -> (date, location)."""
    if not meta or "|" not in meta:
        return None, None
    parts = [p.strip() for p in meta.split("|") if p.strip()]
    date_posted = parts[0] if parts else None
    location = parts[1] if len(parts) > 1 else None
    return date_posted, location


def parse_listing_html(soup: BeautifulSoup, page_url: str = BASE_URL) -> list[ListingStub]:
    stubs: list[ListingStub] = []
    seen: set[str] = set()

    for a in soup.select(ROW_ANCHOR_SELECTOR):
        url = canonical_url(to_abs(a.get("href"), page_url))
        if not url or url in seen:
            continue
        seen.add(url)

        article = a.find_parent("article")
        heading = article.find(["h1", "h2", "h3"]) if article is not None else None
        title = first_str(element_text(a), element_text(heading))

        date_posted, location_guess = _split_meta(_first_text(article, META_SELECTORS))

        stubs.append(
            ListingStub(
                url=url,
                title=title,
                company=_first_text(article, COMPANY_SELECTORS),
                location=location_guess or _first_text(article, LOCATION_SELECTORS),
                date_posted=date_posted,
            )
        )
    return stubs


def _json_location(value: Any) -> str | None:
    if isinstance(value, dict):
        return first_str(value.get("combined"), value.get("postalName"))
    return first_str(value)


def normalize_api_job(job: dict[str, Any]) -> ListingStub:
    company = job.get("company")
    job_id = first_str(job.get("id"), job.get("ad_id"))
    url = first_str(job.get("canonical_url"), job.get("url"))
    if not url and job_id:
        url = f"{BASE_URL}/job/ad/{job_id}"
    return ListingStub(
        url=canonical_url(url),
        title=first_str(job.get("heading"), job.get("jobTitle"), job.get("title")),
        company=first_str(job.get("company_name"), company.get("name") if isinstance(company, dict) else company),
        location=_json_location(job.get("location")),
        date_posted=first_str(job.get("published"), job.get("datePosted")),
    )


def parse_listing_json(data: Any) -> list[ListingStub]:
    """Accept a bare list of jobs or an object carrying them under 'jobs'/'docs'."""
    if isinstance(data, list):
        raw = data
    elif isinstance(data, dict):
        raw = data.get("jobs") or data.get("docs") or []
    else:
        raw = []
    if not isinstance(raw, list):
        log.debug("Unexpected jobs container type: %s", type(raw).__name__)
        return []

    stubs: list[ListingStub] = []
    for job in raw:
        if isinstance(job, dict):
            stub = normalize_api_job(job)
            if stub.url:
                stubs.append(stub)
    return stubs


def next_page_url(soup: BeautifulSoup | None, current_url: str, next_page_no: int) -> str:
    """
    Prefer an explicit pagination link for the next page; otherwise set the
    `page` query parameter on the current URL.
    """
    if soup is not None:
        for link in soup.select(f'a[href*="page={next_page_no}"]'):
            found = to_abs(link.get("href"), current_url)
            if found and parse_qs(urlsplit(found).query).get("page") == [str(next_page_no)]:
                return found
    return with_query_param(current_url, "page", str(next_page_no))
