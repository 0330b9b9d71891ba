"""
JSON-LD extractor.

Reads schema.org `JobPosting` entities from `application/ld+json` blocks.
Blocks that fail to parse are skipped; the first JobPosting encountered wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..utils import first_str, join_values, sanitize_html
from .base import FieldExtractor, ParsedPage, compact
from .registry import register

log = logging.getLogger(__name__)

# Wrapper keys some sites nest postings under.
_NESTED_KEYS = ("script:ld+json", "jobPosting", "@graph")


def _is_job_posting(obj: dict[str, Any]) -> bool:
    t = obj.get("@type") or obj.get("type")
    if isinstance(t, str):
        return t == "JobPosting"
    if isinstance(t, list):
        return "JobPosting" in t
    return False


def collect_job_postings(data: Any, out: list[dict[str, Any]] | None = None) -> list[dict[str, Any]]:
    """Depth-first walk returning JobPosting objects in document order."""
    if out is None:
        out = []
    if isinstance(data, list):
        for item in data:
            collect_job_postings(item, out)
        return out
    if not isinstance(data, dict):
        return out
    for key in _NESTED_KEYS:
        if key in data:
            collect_job_postings(data[key], out)
    if _is_job_posting(data):
        out.append(data)
    return out


def _address_location(addr: Any) -> str | None:
    # Most specific component wins: locality > region > country.
    if isinstance(addr, dict):
        country = addr.get("addressCountry")
        if isinstance(country, dict):
            country = country.get("name")
        return first_str(addr.get("addressLocality"), addr.get("addressRegion"), country)
    return first_str(addr)


def _location(job_location: Any) -> str | None:
    if isinstance(job_location, list):
        for loc in job_location:
            found = _location(loc)
            if found:
                return found
        return None
    if isinstance(job_location, dict):
        return first_str(
            _address_location(job_location.get("address")),
            job_location.get("addressLocality"),
            job_location.get("name"),
        )
    return first_str(job_location)


def _organization(org: Any) -> str | None:
    if isinstance(org, dict):
        return first_str(org.get("name"), org.get("legalName"))
    return first_str(org)


def map_job_posting(entity: dict[str, Any]) -> dict[str, str]:
    return compact({
        "title": first_str(entity.get("title"), entity.get("name")),
        "company": _organization(entity.get("hiringOrganization")),
        "date_posted": first_str(entity.get("datePosted"), entity.get("datePublished")),
        "description_html": sanitize_html(first_str(entity.get("description"))),
        "location": _location(entity.get("jobLocation")),
        "employment_type": join_values(entity.get("employmentType")),
        "industry": join_values(entity.get("industry")),
        "job_function": join_values(entity.get("occupationalCategory")),
    })


@register
class JsonLdExtractor(FieldExtractor):
    name = "jsonld"
    precedence = 20

    def extract(self, page: ParsedPage) -> dict[str, str]:
        candidates: list[dict[str, Any]] = []
        for script in page.soup.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text() or ""
            try:
                data = json.loads(raw)
            except ValueError as e:
                log.debug("Failed to parse JSON-LD on %s: %s", page.url, e)
                continue
            collect_job_postings(data, candidates)
            if candidates:
                break

        if not candidates:
            return {}
        return map_job_posting(candidates[0])
