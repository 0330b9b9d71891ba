"""
Record resolution for DETAIL pages.

Each field takes the first non-empty candidate from the extraction strategies
in precedence order (embedded JSON, JSON-LD, DOM selectors, labeled text).
Fields still empty after that fall back to the ListingStub captured on the
LIST page, if any. Description text is always derived from description HTML.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from . import logging_bridge
from .extractors import FieldExtractor, ParsedPage, ordered
from .models import JobRecord, ListingStub
from .utils import canonical_url, clean_text

log = logging.getLogger(__name__)

# Fields a ListingStub can backfill.
STUB_FIELDS = ("title", "company", "location", "date_posted")


class RecordResolver:
    def __init__(self, strategies: Sequence[FieldExtractor] | None = None) -> None:
        self.strategies = list(strategies) if strategies is not None else ordered()

    def candidates(self, page: ParsedPage) -> list[tuple[str, dict[str, str]]]:
        """Run every strategy once; a raising strategy contributes nothing."""
        out: list[tuple[str, dict[str, str]]] = []
        for strategy in self.strategies:
            try:
                found = strategy.extract(page) or {}
            except Exception as e:
                log.debug("extractor %s failed on %s", strategy.name, page.url, exc_info=True)
                logging_bridge.error({
                    "component": "finn_jobs.resolver",
                    "op": "extract",
                    "extractor": strategy.name,
                    "url": page.url,
                    "error": repr(e),
                })
                found = {}
            out.append((strategy.name, found))
        return out

    def resolve(
        self,
        page: ParsedPage,
        *,
        stub: ListingStub | None = None,
        category: str | None = None,
    ) -> JobRecord:
        by_source = self.candidates(page)
        resolved: dict[str, str | None] = {}
        origin: dict[str, str] = {}

        for name, found in by_source:
            for field_name, value in found.items():
                if field_name not in resolved and value:
                    resolved[field_name] = value
                    origin[field_name] = name

        if stub is not None:
            for field_name in STUB_FIELDS:
                value = getattr(stub, field_name)
                if field_name not in resolved and value:
                    resolved[field_name] = value
                    origin[field_name] = "listing"

        log.debug("resolved %s from %s", page.url, origin)

        description_html = resolved.get("description_html")
        return JobRecord(
            url=canonical_url(page.url) or page.url,
            title=resolved.get("title"),
            company=resolved.get("company"),
            location=resolved.get("location"),
            date_posted=resolved.get("date_posted"),
            category=category or None,
            sector=resolved.get("sector"),
            industry=resolved.get("industry"),
            job_function=resolved.get("job_function"),
            employment_type=resolved.get("employment_type"),
            description_html=description_html,
            description_text=clean_text(description_html) or None,
        )
