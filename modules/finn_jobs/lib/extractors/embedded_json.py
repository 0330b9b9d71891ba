# finn_jobs/extractors/embedded_json.py
"""
Job object embedded in inline script content.

Ad pages ship the ad as a JS/JSON assignment, e.g.

    window.__state = { jobAd: {"heading": "...", "company": {"name": "..."}} };

We locate the `jobAd` marker and decode the object that follows it with a
tolerant decoder (trailing script text is ignored). A malformed or missing
blob yields no candidates.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..utils import first_str, join_values, sanitize_html
from .base import FieldExtractor, ParsedPage, compact
from .registry import register

log = logging.getLogger(__name__)

_MARKER_RE = re.compile(r"""["']?jobAd["']?\s*[:=]\s*(?=\{)""")
_DECODER = json.JSONDecoder()


def _location(value: Any) -> str | None:
    if isinstance(value, dict):
        return first_str(
            value.get("postalName"),
            value.get("streetAddress"),
            value.get("combined"),
            value.get("city"),
        )
    if isinstance(value, list) and value:
        return _location(value[0])
    return first_str(value)


def _company(job: dict[str, Any]) -> str | None:
    company = job.get("company")
    employer = job.get("employer")
    return first_str(
        company.get("name") if isinstance(company, dict) else company,
        job.get("company_name"),
        employer.get("name") if isinstance(employer, dict) else employer,
    )


def map_job_object(job: Any) -> dict[str, str]:
    """Map a raw job object (embedded blob or JSON API payload) to candidates."""
    if not isinstance(job, dict):
        return {}
    return compact({
        "title": first_str(job.get("heading"), job.get("jobTitle"), job.get("title")),
        "company": _company(job),
        "date_posted": first_str(job.get("published"), job.get("datePosted")),
        "description_html": sanitize_html(first_str(job.get("description"), job.get("descriptionHtml"))),
        "location": _location(job.get("location")),
        "sector": join_values(job.get("sector")),
        "industry": join_values(job.get("industry")),
        "job_function": join_values(job.get("jobFunction") or job.get("occupation")),
        "employment_type": join_values(job.get("engagementType") or job.get("employmentType") or job.get("extent")),
    })


def find_job_blob(script_text: str) -> dict[str, Any] | None:
    for m in _MARKER_RE.finditer(script_text or ""):
        try:
            obj, _end = _DECODER.raw_decode(script_text, m.end())
        except ValueError:
            continue
        if isinstance(obj, dict):
            return obj
    return None


@register
class EmbeddedJsonExtractor(FieldExtractor):
    name = "embedded_json"
    precedence = 10

    def extract(self, page: ParsedPage) -> dict[str, str]:
        if page.data is not None:
            return map_job_object(page.data)

        for script in page.soup.find_all("script"):
            if script.get("type") == "application/ld+json":
                continue
            job = find_job_blob(script.string or script.get_text() or "")
            if job is not None:
                log.debug("embedded jobAd found on %s", page.url)
                return map_job_object(job)
        return {}
