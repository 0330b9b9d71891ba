# modules/finn_jobs/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience.
# Importing .extractors registers the built-in strategies.
from . import extractors as _extractors  # noqa: F401
from .config import ConfigError, Settings
from .engine import CrawlDriver, run_once
from .http_client import FetchError, HttpClient
from .models import CrawlSummary, FetchedPage, FetchRequest, JobRecord, ListingStub
from .state import CrawlState

__all__ = [
    "ConfigError",
    "CrawlDriver",
    "CrawlState",
    "CrawlSummary",
    "FetchError",
    "FetchRequest",
    "FetchedPage",
    "HttpClient",
    "JobRecord",
    "ListingStub",
    "Settings",
    "run_once",
]
