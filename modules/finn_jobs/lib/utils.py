from __future__ import annotations

import copy
import os
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

BASE_URL = "https://www.finn.no"
SEARCH_URL = f"{BASE_URL}/job/search"

# Single-job pages, e.g. https://www.finn.no/job/ad/123456789
DETAIL_PATH_RE = re.compile(r"/job/ad/[^/?#]+/?$")

_NOISE_TAGS = ("script", "style", "noscript", "iframe", "template")
# Elements whose boundaries separate words in rendered text.
_BLOCK_TAGS = (
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main",
    "nav", "ol", "p", "pre", "section", "table", "td", "th", "tr", "ul",
)
_WS_RE = re.compile(r"\s+")


def truthy(v: Any) -> bool:
    """
    Normalize common truthy inputs from env/kwargs.
    Accepts bools or strings like: '1', 'true', 'yes', 'on'.
    """
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    s = str(v).strip().lower()
    return s in {"1", "true", "yes", "on", "y", "t"}


def getenv_str(name: str, default: str | None = None) -> str | None:
    """
    Typed wrapper for environment access.
    """
    val = os.getenv(name)
    return val if val is not None else default


# -----------------------------------------------------------------------------
# URL helpers
# -----------------------------------------------------------------------------
def to_abs(href: str | None, base: str = BASE_URL) -> str | None:
    """Resolve `href` against `base`; None if it cannot form an http(s) URL."""
    if not href or not str(href).strip():
        return None
    try:
        url = urljoin(base, str(href).strip())
    except ValueError:
        return None
    if urlsplit(url).scheme not in ("http", "https"):
        return None
    return url


def canonical_url(url: str | None) -> str | None:
    """
    Identity key for a job: absolute URL with query string and fragment removed.
    """
    absolute = to_abs(url)
    if not absolute:
        return None
    parts = urlsplit(absolute)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def is_detail_url(url: str | None) -> bool:
    if not url:
        return False
    return bool(DETAIL_PATH_RE.search(urlsplit(url).path))


def with_query_param(url: str, key: str, value: str) -> str:
    """Return `url` with query parameter `key` set to `value` (other params kept)."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def build_search_url(keyword: str = "", location: str = "") -> str:
    params = []
    if keyword and keyword.strip():
        params.append(("q", keyword.strip()))
    if location and location.strip():
        params.append(("location", location.strip()))
    return f"{SEARCH_URL}?{urlencode(params)}" if params else SEARCH_URL


# -----------------------------------------------------------------------------
# Text helpers
# -----------------------------------------------------------------------------
def collapse_ws(s: str | None) -> str:
    return _WS_RE.sub(" ", s or "").strip()


def strip_noise(node: Tag | BeautifulSoup) -> Tag | BeautifulSoup:
    """Return a copy of `node` without script/style/template-like subtrees."""
    clone = copy.copy(node)
    for bad in clone.find_all(_NOISE_TAGS):
        bad.decompose()
    return clone


def element_text(node: Tag | None) -> str:
    """
    Visible text of an element, whitespace-collapsed.
    Inline markup joins without a gap (H<sub>2</sub>O -> "H2O"); block
    elements are separated by a space.
    """
    if node is None:
        return ""
    clone = strip_noise(node)
    blocks = clone.find_all(_BLOCK_TAGS)
    if isinstance(clone, Tag) and clone.name in _BLOCK_TAGS:
        blocks.append(clone)
    for el in blocks:
        el.insert(0, " ")
        el.append(" ")
    return collapse_ws(clone.get_text())


def inner_html(node: Tag | None) -> str:
    if node is None:
        return ""
    return strip_noise(node).decode_contents().strip()


def clean_text(html: str | None) -> str:
    """Plain text from an HTML fragment (markup stripped, whitespace collapsed)."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html5lib")
    return element_text(soup)


def sanitize_html(html: str | None) -> str | None:
    """HTML fragment with script/style/template-like subtrees removed; None when nothing remains."""
    if not html:
        return None
    soup = BeautifulSoup(html, "html5lib")
    cleaned = strip_noise(soup.body or soup).decode_contents().strip()
    return cleaned or None


def flatten_lines(node: Tag | BeautifulSoup) -> str:
    """
    Page text with one text run per line; each line whitespace-collapsed,
    empty lines dropped.
    """
    raw = strip_noise(node).get_text("\n")
    lines = (collapse_ws(line) for line in raw.splitlines())
    return "\n".join(line for line in lines if line)


def first_str(*values: Any) -> str | None:
    """First value that is a non-empty string (after trimming), else None."""
    for v in values:
        if v is None or isinstance(v, (dict, list, tuple, bool)):
            continue
        s = collapse_ws(str(v))
        if s:
            return s
    return None


def join_values(value: Any) -> str | None:
    """Scalar, list of scalars, or list of {name|value} objects -> comma-joined string."""
    if isinstance(value, (list, tuple)):
        parts = [join_values(v) for v in value]
        joined = ", ".join(p for p in parts if p)
        return joined or None
    if isinstance(value, dict):
        return first_str(value.get("name"), value.get("value"))
    return first_str(value)
