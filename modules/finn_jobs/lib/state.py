"""
Run-scoped crawl bookkeeping shared by concurrently running page handlers.

Every method that reads and then updates state does so under one lock, so
"is this URL new, and if so mark it seen" can never be answered True twice
for the same canonical URL.

Quota accounting has two counters:
  - saved:    records already emitted (never exceeds `wanted`)
  - reserved: slots promised to DETAIL requests that are still in flight
LIST pages reserve slots before enqueueing DETAIL requests, so a second LIST
page processed before the first page's details finish cannot over-enqueue.
"""

from __future__ import annotations

import sys
import threading

from .models import ListingStub
from .utils import canonical_url

UNBOUNDED = sys.maxsize


class CrawlState:
    def __init__(self, wanted: int = 100, *, dedupe: bool = True) -> None:
        self.wanted = int(wanted)
        self.dedupe = dedupe
        self._lock = threading.Lock()
        self._saved = 0
        self._reserved = 0
        self._seen_list: set[str] = set()
        self._seen_detail: set[str] = set()
        self._listing_metadata: dict[str, ListingStub] = {}

    # ---- dedup ----
    def is_new_listing_url(self, url: str | None) -> bool:
        return self._check_and_mark(self._seen_list, url)

    def is_new_detail_url(self, url: str | None) -> bool:
        return self._check_and_mark(self._seen_detail, url)

    def _check_and_mark(self, seen: set[str], url: str | None) -> bool:
        key = canonical_url(url)
        if not key:
            return False
        if not self.dedupe:
            return True
        with self._lock:
            if key in seen:
                return False
            seen.add(key)
            return True

    # ---- listing metadata (write-once) ----
    def cache_listing_metadata(self, url: str | None, stub: ListingStub) -> None:
        key = canonical_url(url)
        if not key:
            return
        with self._lock:
            self._listing_metadata.setdefault(key, stub)

    def listing_metadata(self, url: str | None) -> ListingStub | None:
        key = canonical_url(url)
        if not key:
            return None
        with self._lock:
            return self._listing_metadata.get(key)

    # ---- quota ----
    @property
    def saved_count(self) -> int:
        with self._lock:
            return self._saved

    @property
    def reserved_count(self) -> int:
        with self._lock:
            return self._reserved

    def remaining_quota(self) -> int:
        with self._lock:
            return max(0, self.wanted - self._saved)

    def is_quota_met(self) -> bool:
        return self.remaining_quota() == 0

    def has_open_slots(self) -> bool:
        with self._lock:
            return self._saved + self._reserved < self.wanted

    def reserve(self, n: int) -> int:
        """Grant up to `n` slots not yet saved or promised. Returns the number granted."""
        if n <= 0:
            return 0
        with self._lock:
            granted = max(0, min(n, self.wanted - self._saved - self._reserved))
            self._reserved += granted
            return granted

    def release(self, n: int = 1) -> None:
        """Give back reserved slots that will not produce a record."""
        if n <= 0:
            return
        with self._lock:
            self._reserved = max(0, self._reserved - n)

    def record_saved(self, n: int = 1) -> None:
        """Convert `n` reserved slots into saved records."""
        if n <= 0:
            return
        with self._lock:
            used = min(n, self._reserved)
            self._reserved -= used
            self._saved = min(self.wanted, self._saved + n)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "saved": self._saved,
                "reserved": self._reserved,
                "seen_list": len(self._seen_list),
                "seen_detail": len(self._seen_detail),
                "listing_metadata": len(self._listing_metadata),
            }
