from __future__ import annotations

from ..utils import element_text, first_str, inner_html
from .base import FieldExtractor, ParsedPage, compact
from .registry import register

# Per-field selectors, tried in order; the first element with non-empty text wins.
TEXT_SELECTORS: dict[str, tuple[str, ...]] = {
    "title": ("h1",),
    "company": (
        '[data-automation-id="job-company"]',
        '[itemprop="hiringOrganization"]',
        '[class*="company"]',
        ".employer",
    ),
    "location": (
        '[data-automation-id="job-location"]',
        '[class*="location"]',
    ),
}

DESCRIPTION_SELECTORS: tuple[str, ...] = (
    '[data-automation-id="job-description"]',
    '[class*="job-description"]',
    ".description",
    ".entry-content",
    ".import-decoration",
)


@register
class DomExtractor(FieldExtractor):
    name = "dom"
    precedence = 30

    def extract(self, page: ParsedPage) -> dict[str, str]:
        soup = page.soup
        out: dict[str, str | None] = {}

        for field_name, selectors in TEXT_SELECTORS.items():
            for sel in selectors:
                text = element_text(soup.select_one(sel))
                if text:
                    out[field_name] = text
                    break

        for sel in DESCRIPTION_SELECTORS:
            el = soup.select_one(sel)
            if el is not None and element_text(el):
                out["description_html"] = inner_html(el)
                break

        time_el = soup.select_one("time[datetime]") or soup.select_one("time")
        if time_el is not None:
            out["date_posted"] = first_str(time_el.get("datetime"), element_text(time_el))

        return compact(out)
