from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .state import UNBOUNDED
from .utils import build_search_url, getenv_str, to_abs, truthy

log = logging.getLogger(__name__)

DEFAULT_RESULTS_WANTED = 100
DEFAULT_MAX_PAGES = 999
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0 Safari/537.36"
)
DEFAULT_OUTPUT_PATH = "/app/local/state/finn_jobs.jsonl"


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for one crawl run.

    Seeds come from `start_urls` (already merged from start_url/startUrls/url
    inputs); with none given, a search URL is built from keyword + location.
    """

    # Search
    keyword: str = ""
    location: str = ""
    category: str = ""
    start_urls: list[str] = field(default_factory=list)

    # Bounds
    results_wanted: int = DEFAULT_RESULTS_WANTED  # UNBOUNDED when input was non-finite
    max_pages: int = DEFAULT_MAX_PAGES

    # Behavior toggles
    collect_details: bool = True
    dedupe: bool = True
    include_category: bool = True

    # Fetching
    cookie_header: str | None = field(default=None, repr=False)
    proxy_url: str | None = field(default=None, repr=False)
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrency: int = 10
    max_request_retries: int = 3
    request_timeout: float = 30.0

    # Output
    output_path: str = DEFAULT_OUTPUT_PATH

    # ------------- convenience -------------
    def seed_urls(self) -> list[str]:
        """
        Absolute seed URLs for this run. Raises ConfigError when none can be formed.
        """
        seeds = [u for u in (to_abs(s) for s in self.start_urls) if u]
        if not seeds and not self.start_urls:
            seeds = [build_search_url(self.keyword, self.location)]
        if not seeds:
            raise ConfigError("No usable seed URL (start_urls were given but none is a valid http(s) URL).")
        return seeds

    def request_headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.cookie_header:
            headers["Cookie"] = self.cookie_header
        return headers

    def as_log_dict(self) -> dict[str, Any]:
        """Settings for activity logs (cookie/proxy values are redacted by the bridge)."""
        return {
            "keyword": self.keyword,
            "location": self.location,
            "category": self.category,
            "start_urls": list(self.start_urls),
            "results_wanted": None if self.results_wanted == UNBOUNDED else self.results_wanted,
            "max_pages": self.max_pages,
            "collect_details": self.collect_details,
            "dedupe": self.dedupe,
            "include_category": self.include_category,
            "cookie_header": self.cookie_header,
            "proxy_url": self.proxy_url,
            "max_concurrency": self.max_concurrency,
            "output_path": self.output_path,
        }

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs with validation.

        Expected kwargs (all optional):

            keyword, location, category: str
            results_wanted: int = 100      # non-finite / non-numeric -> unbounded
            max_pages: int = 999           # non-finite -> 999
            collect_details: bool = true
            dedupe: bool = true
            include_category: bool = true
            start_url: str; start_urls: list[str | {"url": str}]; url: str
            cookies: str                   # raw Cookie header
            cookies_json: str | list | dict
            proxy_url: str
            user_agent: str
            max_concurrency: int = 10
            max_request_retries: int = 3
            request_timeout: float = 30
            output_path: str

        Env fallbacks: FINN_JOBS_COOKIES, FINN_JOBS_PROXY_URL, FINN_JOBS_OUTPUT_PATH.
        Camel-case aliases used by the original input schema are accepted
        (resultsWanted, maxPages, collectDetails, startUrls, startUrl, cookiesJson).
        """
        kw = dict(kwargs or {})

        def pick(*names: str, default: Any = None) -> Any:
            for n in names:
                if n in kw and kw[n] is not None:
                    return kw[n]
            return default

        cookie_header = str(pick("cookies", "cookie_header") or getenv_str("FINN_JOBS_COOKIES") or "").strip()
        if not cookie_header:
            cookie_header = _cookie_header_from_json(pick("cookies_json", "cookiesJson")) or ""

        settings = cls(
            keyword=str(pick("keyword", default="")).strip(),
            location=str(pick("location", default="")).strip(),
            category=str(pick("category", default="")).strip(),
            start_urls=_collect_start_urls(kw),
            results_wanted=_parse_limit(
                pick("results_wanted", "resultsWanted"), default=DEFAULT_RESULTS_WANTED, non_finite=UNBOUNDED
            ),
            max_pages=_parse_limit(pick("max_pages", "maxPages"), default=DEFAULT_MAX_PAGES, non_finite=DEFAULT_MAX_PAGES),
            collect_details=truthy(pick("collect_details", "collectDetails", default=True)),
            dedupe=truthy(pick("dedupe", default=True)),
            include_category=truthy(pick("include_category", "includeCategory", default=True)),
            cookie_header=cookie_header or None,
            proxy_url=str(pick("proxy_url", default=getenv_str("FINN_JOBS_PROXY_URL")) or "").strip() or None,
            user_agent=str(pick("user_agent", default=DEFAULT_USER_AGENT)).strip() or DEFAULT_USER_AGENT,
            max_concurrency=_int(pick("max_concurrency", "maxConcurrency", default=10), "max_concurrency"),
            max_request_retries=_int(pick("max_request_retries", "maxRequestRetries", default=3), "max_request_retries"),
            request_timeout=_float(pick("request_timeout", default=30.0), "request_timeout"),
            output_path=str(
                pick("output_path", default=getenv_str("FINN_JOBS_OUTPUT_PATH", DEFAULT_OUTPUT_PATH))
            ).strip(),
        )
        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def _parse_limit(raw: Any, *, default: int, non_finite: int) -> int:
    """
    Positive integer limit, at least 1.
    None -> default; infinite, NaN or non-numeric -> `non_finite`.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    if isinstance(raw, bool):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return non_finite
    if not math.isfinite(value):
        return non_finite
    return max(1, int(value))


def _int(raw: Any, name: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{name}' must be an integer (got {raw!r}).") from e


def _float(raw: Any, name: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{name}' must be a number (got {raw!r}).") from e


def _collect_start_urls(kw: Mapping[str, Any]) -> list[str]:
    """
    Merge start_urls/startUrls (strings or {"url": ...} objects), start_url/startUrl
    and url, preserving order.
    """
    out: list[str] = []
    raw_list = kw.get("start_urls") or kw.get("startUrls") or []
    if isinstance(raw_list, str):
        raw_list = [raw_list]
    if not isinstance(raw_list, list):
        raise ConfigError("'start_urls' must be a list of URLs or {\"url\": ...} objects.")
    for i, item in enumerate(raw_list):
        if isinstance(item, dict):
            item = item.get("url")
        if not isinstance(item, str):
            raise ConfigError(f"start_urls[{i}] must be a URL string or an object with 'url'.")
        if item.strip():
            out.append(item.strip())
    for single in (kw.get("start_url") or kw.get("startUrl"), kw.get("url")):
        if isinstance(single, str) and single.strip():
            out.append(single.strip())
    return out


def _cookie_header_from_json(raw: Any) -> str | None:
    """
    Cookie header from a JSON list of {name, value} objects or a name->value map.
    Invalid input is logged and ignored.
    """
    if not raw:
        return None
    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError as e:
            log.warning("Failed to parse cookies_json: %s", e)
            return None
    if isinstance(data, list):
        pairs = [
            f"{c.get('name')}={c.get('value')}" for c in data if isinstance(c, dict) and c.get("name")
        ]
        return "; ".join(pairs) or None
    if isinstance(data, dict):
        return "; ".join(f"{k}={v}" for k, v in data.items()) or None
    log.warning("Ignoring cookies_json of unsupported type %s", type(data).__name__)
    return None


def _validate_settings(s: Settings) -> None:
    if s.max_concurrency <= 0:
        raise ConfigError("'max_concurrency' must be >= 1.")
    if s.max_request_retries < 0:
        raise ConfigError("'max_request_retries' must be >= 0.")
    if s.request_timeout <= 0:
        raise ConfigError("'request_timeout' must be > 0.")
    if not s.output_path:
        raise ConfigError("'output_path' cannot be empty.")
    # Fails fast when no seed URL can be formed.
    s.seed_urls()
