"""
Append-only dataset sinks for emitted JobRecords.

Sinks do no deduplication; the crawl guarantees one record per canonical URL.
"""

from __future__ import annotations

import json
import os
import threading
from typing import Protocol

from .models import JobRecord


class DatasetSink(Protocol):
    def push(self, record: JobRecord) -> None: ...


class JsonlSink:
    """One JSON object per line; safe to share between threads."""

    def __init__(self, path: str, *, include_category: bool = True) -> None:
        self.path = path
        self.include_category = include_category
        self.count = 0
        self._lock = threading.Lock()

    def push(self, record: JobRecord) -> None:
        line = json.dumps(record.to_dict(include_category=self.include_category), ensure_ascii=False) + "\n"
        with self._lock:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
            self.count += 1


class MemorySink:
    def __init__(self) -> None:
        self.records: list[JobRecord] = []
        self._lock = threading.Lock()

    def push(self, record: JobRecord) -> None:
        with self._lock:
            self.records.append(record)

    @property
    def urls(self) -> list[str]:
        return [r.url for r in self.records]
