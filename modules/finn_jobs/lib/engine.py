"""
Crawl driver: seeds LIST requests, runs fetch + handler in a bounded worker
pool, feeds follow-up requests back into the frontier, and pushes emitted
records to the dataset sink.

Features:
  - Bounded concurrency (ThreadPoolExecutor, `max_concurrency` workers)
  - Per-run request de-duplication by full URL (a page is fetched at most once)
  - Quota stop: queued work is dropped once the quota is met
  - Partial-failure tolerance: a failed fetch or handler never aborts the run
  - Dependency injection for testability (`fetcher`, `sink`)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace

from . import logging_bridge
from .config import Settings
from .handlers import PageHandlers, classify
from .http_client import Fetcher, FetchError, HttpClient
from .models import DETAIL, LIST, CrawlSummary, FetchRequest, HandlerResult
from .sink import DatasetSink, JsonlSink
from .state import CrawlState

log = logging.getLogger(__name__)


# =============================================================================
# DEFAULT COLLABORATORS (PRODUCTION)
# =============================================================================
def _default_fetcher(settings: Settings) -> HttpClient:
    return HttpClient(
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
        max_retries=settings.max_request_retries,
        pool_size=settings.max_concurrency,
        proxy_url=settings.proxy_url,
        cookie_header=settings.cookie_header,
    )


def _default_sink(settings: Settings) -> JsonlSink:
    return JsonlSink(settings.output_path, include_category=settings.include_category)


# =============================================================================
# DRIVER
# =============================================================================
class CrawlDriver:
    def __init__(
        self,
        settings: Settings,
        *,
        fetcher: Fetcher,
        sink: DatasetSink,
        state: CrawlState | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.sink = sink
        self.state = state or CrawlState(settings.results_wanted, dedupe=settings.dedupe)
        self.handlers = PageHandlers(
            self.state,
            collect_details=settings.collect_details,
            max_pages=settings.max_pages,
            category=settings.category,
        )
        self.summary = CrawlSummary()
        self._stats_lock = threading.Lock()
        self._headers: Mapping[str, str] = settings.request_headers()
        self._enqueued: set[str] = set()
        self._frontier: deque[FetchRequest] = deque()
        self._deferred: list[FetchRequest] = []

    # -------------------------------------------------------------------------
    # Frontier
    # -------------------------------------------------------------------------
    def enqueue(self, request: FetchRequest) -> bool:
        if request.url in self._enqueued:
            if request.reserved:
                self.state.release(1)
            return False
        self._enqueued.add(request.url)
        self._frontier.append(request)
        return True

    def _drop_frontier(self) -> None:
        dropped = len(self._frontier) + len(self._deferred)
        for req in self._frontier:
            if req.reserved:
                self.state.release(1)
        self._frontier.clear()
        self._deferred.clear()
        if dropped:
            log.info("Quota met; dropping %d queued requests", dropped)

    def _resume_deferred(self) -> None:
        """Re-queue held-back work once a quota slot has been released."""
        if not self._deferred or not self.state.has_open_slots():
            return
        held, self._deferred = self._deferred, []
        resumed = 0
        for req in held:
            if req.label == DETAIL:
                if not self.state.reserve(1):
                    self._deferred.append(req)
                    continue
                req = replace(req, reserved=True)
            elif not self.state.has_open_slots():
                self._deferred.append(req)
                continue
            self.enqueue(req)
            resumed += 1
        log.debug("Resumed %d deferred requests", resumed)

    def _count(self, attr: str) -> None:
        with self._stats_lock:
            setattr(self.summary, attr, getattr(self.summary, attr) + 1)

    # -------------------------------------------------------------------------
    # INNER: fetch + handle one request (runs in a worker thread)
    # -------------------------------------------------------------------------
    def _process(self, request: FetchRequest) -> HandlerResult:
        try:
            page = self.fetcher.fetch(request.url, headers=self._headers)
        except Exception as e:
            # Any fetch failure means "page unavailable"; the slot goes back.
            self._count("pages_failed")
            self._fail(request, "fetch", e)
            return HandlerResult()

        self._count("pages_fetched")
        self._count("detail_pages" if classify(request) == DETAIL else "list_pages")
        try:
            return self.handlers.handle(request, page)
        except Exception as e:
            self._fail(request, "handle", e)
            return HandlerResult()

    def _fail(self, request: FetchRequest, op: str, err: Exception) -> None:
        if request.reserved:
            self.state.release(1)
        logging_bridge.error({
            "component": "finn_jobs.engine",
            "op": op,
            "url": request.url,
            "label": request.label,
            "status": getattr(err, "status", None),
            "error": str(err) if isinstance(err, FetchError) else repr(err),
        })

    # -------------------------------------------------------------------------
    # MAIN LOOP
    # -------------------------------------------------------------------------
    def run(self) -> CrawlSummary:
        start_ns = time.perf_counter_ns()
        for url in self.settings.seed_urls():
            self.enqueue(FetchRequest(url=url, label=LIST, page_no=1))

        workers = self.settings.max_concurrency
        pending: dict[Future[HandlerResult], FetchRequest] = {}

        with ThreadPoolExecutor(max_workers=workers) as pool:
            while True:
                if self.state.is_quota_met():
                    self._drop_frontier()
                else:
                    self._resume_deferred()
                while self._frontier and len(pending) < workers:
                    req = self._frontier.popleft()
                    pending[pool.submit(self._process, req)] = req
                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    req = pending.pop(fut)
                    try:
                        result = fut.result()
                    except Exception as e:
                        logging_bridge.error({
                            "component": "finn_jobs.engine",
                            "op": "handle",
                            "url": req.url,
                            "label": req.label,
                            "error": repr(e),
                        })
                        continue
                    for record in result.records:
                        self.sink.push(record)
                    for follow_up in result.requests:
                        self.enqueue(follow_up)
                    self._deferred.extend(result.deferred)

        self.summary.saved = self.state.saved_count
        self.summary.duration_us = int((time.perf_counter_ns() - start_ns) // 1000)
        return self.summary


# =============================================================================
# MAIN ORCHESTRATOR
# =============================================================================
def run_once(
    settings: Settings,
    *,
    fetcher: Fetcher | None = None,
    sink: DatasetSink | None = None,
) -> CrawlSummary:
    """
    Run one complete crawl.

    Args:
        settings: Validated run configuration.
        fetcher: Optional fetch collaborator override (tests inject fakes).
        sink: Optional dataset sink override.

    Returns:
        CrawlSummary with counts and duration.
    """
    own_fetcher = fetcher is None
    fetcher = fetcher or _default_fetcher(settings)
    sink = sink or _default_sink(settings)

    logging_bridge.activity({
        "component": "finn_jobs.engine",
        "op": "start",
        "settings": settings.as_log_dict(),
    })

    driver = CrawlDriver(settings, fetcher=fetcher, sink=sink)
    try:
        summary = driver.run()
    finally:
        if own_fetcher and isinstance(fetcher, HttpClient):
            fetcher.close()

    logging_bridge.activity({
        "component": "finn_jobs.engine",
        "op": "summary",
        "saved": summary.saved,
        "pages_fetched": summary.pages_fetched,
        "pages_failed": summary.pages_failed,
        "list_pages": summary.list_pages,
        "detail_pages": summary.detail_pages,
        "state": driver.state.snapshot(),
        "total_us": summary.duration_us,
    })
    log.info("Finished. Saved %d items", summary.saved)
    return summary
