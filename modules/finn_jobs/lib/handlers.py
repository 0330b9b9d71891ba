"""
LIST and DETAIL page handlers.

A handler consumes one fetched page plus the shared CrawlState and returns the
records to emit and the follow-up requests to enqueue. Handlers never push to
the sink or touch the frontier themselves.
"""

from __future__ import annotations

import logging

from . import logging_bridge
from .extractors import ExtractorError, ParsedPage
from .listing import next_page_url, parse_listing_html, parse_listing_json
from .models import DETAIL, LIST, FetchedPage, FetchRequest, HandlerResult, JobRecord, ListingStub
from .resolver import RecordResolver
from .state import CrawlState
from .utils import canonical_url, is_detail_url

log = logging.getLogger(__name__)


def classify(request: FetchRequest) -> str:
    """Carried label, overridden to DETAIL for single-ad URLs (seeds may point straight at an ad)."""
    if is_detail_url(request.url):
        return DETAIL
    return request.label or LIST


class PageHandlers:
    def __init__(
        self,
        state: CrawlState,
        *,
        collect_details: bool = True,
        max_pages: int = 999,
        category: str | None = None,
        resolver: RecordResolver | None = None,
    ) -> None:
        self.state = state
        self.collect_details = collect_details
        self.max_pages = max_pages
        self.category = category or None
        self.resolver = resolver or RecordResolver()

    def handle(self, request: FetchRequest, page: FetchedPage) -> HandlerResult:
        if classify(request) == DETAIL:
            return self.handle_detail(request, page)
        return self.handle_list(request, page)

    # ------------------------------------------------------------------ #
    # LIST
    # ------------------------------------------------------------------ #
    def handle_list(self, request: FetchRequest, page: FetchedPage) -> HandlerResult:
        result = HandlerResult()
        if self.state.is_quota_met():
            return result

        soup = None
        if page.is_json:
            try:
                stubs = parse_listing_json(page.json())
            except ValueError as e:
                logging_bridge.error({
                    "component": "finn_jobs.handlers",
                    "op": "list_parse_json",
                    "url": request.url,
                    "page_no": request.page_no,
                    "error": repr(e),
                })
                return result
        else:
            soup = ParsedPage(page.url, page.body).soup
            stubs = parse_listing_html(soup, page.url or request.url)

        fresh: list[ListingStub] = []
        for stub in stubs:
            if self.state.is_new_listing_url(stub.url):
                self.state.cache_listing_metadata(stub.url, stub)
                fresh.append(stub)

        granted = self.state.reserve(len(fresh))
        chosen = fresh[:granted]
        if self.collect_details:
            result.requests.extend(
                FetchRequest(url=s.url, label=DETAIL, page_no=request.page_no, reserved=True) for s in chosen if s.url
            )
            # Spare rows are already marked seen; keep them so a released slot can use one.
            result.deferred.extend(
                FetchRequest(url=s.url, label=DETAIL, page_no=request.page_no) for s in fresh[granted:] if s.url
            )
        else:
            result.records.extend(JobRecord.from_stub(s, category=self.category) for s in chosen)
            self.state.record_saved(len(chosen))

        log.info(
            "LIST page %d -> found %d new jobs (%d taken, remaining %d)",
            request.page_no,
            len(fresh),
            len(chosen),
            self.state.remaining_quota(),
        )

        if request.page_no < self.max_pages:
            next_no = request.page_no + 1
            next_req = FetchRequest(url=next_page_url(soup, page.url or request.url, next_no), label=LIST, page_no=next_no)
            if self.state.has_open_slots():
                result.requests.append(next_req)
            else:
                # Resumed by the driver if an in-flight DETAIL gives its slot back.
                result.deferred.append(next_req)
        return result

    # ------------------------------------------------------------------ #
    # DETAIL
    # ------------------------------------------------------------------ #
    def handle_detail(self, request: FetchRequest, page: FetchedPage) -> HandlerResult:
        result = HandlerResult()
        # Requests enqueued by a LIST page already hold a slot; seeds claim one here.
        if not request.reserved and (self.state.is_quota_met() or not self.state.reserve(1)):
            return result

        url = canonical_url(request.url)
        if not url or not self.state.is_new_detail_url(url):
            self.state.release(1)
            log.debug("DETAIL duplicate skipped: %s", request.url)
            return result

        try:
            parsed = self._parsed(page, url)
            record = self.resolver.resolve(parsed, stub=self.state.listing_metadata(url), category=self.category)
        except Exception as e:
            self.state.release(1)
            logging_bridge.error({
                "component": "finn_jobs.handlers",
                "op": "detail_parse",
                "url": request.url,
                "error": repr(e),
            })
            return result

        self.state.record_saved(1)
        result.records.append(record)
        return result

    @staticmethod
    def _parsed(page: FetchedPage, url: str) -> ParsedPage:
        if page.is_json:
            try:
                return ParsedPage(url, data=page.json())
            except ValueError as e:
                raise ExtractorError(f"undecodable JSON body for {url}") from e
        return ParsedPage(url, page.body)
