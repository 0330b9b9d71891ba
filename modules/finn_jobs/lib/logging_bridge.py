from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit, urlunsplit

# Structured records go to the service JSONL writer when it is importable
# (running inside the service); otherwise to stdlib logging. Silent on import.
_logging_backend = None
try:
    from service import logging_utils as _svc_logging  # type: ignore

    _logging_backend = _svc_logging
except ImportError:
    _logging_backend = None

# Keys whose values never reach the logs (matched case-insensitively)
_REDACT_KEYS = {
    "cookie",
    "cookies",
    "cookies_json",
    "cookie_header",
    "authorization",
    "password",
    "token",
    "secret",
}

# Keys holding URLs whose userinfo (proxy credentials) must be stripped
_URL_KEYS = {"proxy_url", "proxy"}

_ACTIVITY_LOG = logging.getLogger("finn_jobs.activity")
_ERROR_LOG = logging.getLogger("finn_jobs.error")


def _strip_userinfo(url: Any) -> Any:
    if not isinstance(url, str) or "@" not in url:
        return url
    parts = urlsplit(url)
    host = parts.netloc.rsplit("@", 1)[-1]
    return urlunsplit((parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment))


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    """
    Shallow-copy record, blanking cookie-like values and proxy credentials
    at the top level and inside a nested 'settings' mapping.
    """
    out: dict[str, Any] = {}
    for k, v in record.items():
        lk = str(k).lower()
        if lk in _REDACT_KEYS:
            out[k] = "***REDACTED***" if v else v
        elif lk in _URL_KEYS:
            out[k] = _strip_userinfo(v)
        elif lk == "settings" and isinstance(v, dict):
            out[k] = _redact_record(v)
        else:
            out[k] = v
    return out


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record (crawl progress, summaries).
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_activity_log(payload)
        except OSError:
            _ACTIVITY_LOG.warning("activity log write failed; falling back", exc_info=True)
        else:
            return
    _ACTIVITY_LOG.info(payload)


def error(record: dict[str, Any]) -> None:
    """
    Write an error record (failed fetches, unparsable bodies, extractor failures).
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_error_log(payload)
        except OSError:
            _ERROR_LOG.warning("error log write failed; falling back", exc_info=True)
        else:
            return
    _ERROR_LOG.error(payload)
