from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any

from bs4 import BeautifulSoup

from ..utils import flatten_lines

# Fields a strategy may propose candidates for.
FIELDS = (
    "title",
    "company",
    "location",
    "date_posted",
    "sector",
    "industry",
    "job_function",
    "employment_type",
    "description_html",
)


class ExtractorError(Exception):
    """Base exception for extraction strategy failures."""


class ParsedPage:
    """
    One fetched page as the extractors see it.

    The soup is parsed lazily; JSON-bodied pages carry their decoded payload in
    `data` and have an empty document.
    """

    def __init__(self, url: str, html: str = "", *, data: Any = None) -> None:
        self.url = url
        self.html = html or ""
        self.data = data

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "html5lib")

    @cached_property
    def text(self) -> str:
        """Fully flattened page text, one text run per line."""
        body = self.soup.body or self.soup
        return flatten_lines(body)


class FieldExtractor(ABC):
    """
    Abstract extraction strategy.

    Contract:
      - extract(page) returns {field: candidate} for the fields it could resolve.
        Missing or empty candidates are simply left out.
      - Must not touch crawl state or perform I/O.
      - May raise; the resolver treats a raising strategy as "no candidates".
    """

    # Stable strategy name, e.g. "jsonld". Concrete subclasses MUST set this.
    name: str = ""
    # Lower runs first. Ties are broken by registration order.
    precedence: int = 100

    @abstractmethod
    def extract(self, page: ParsedPage) -> dict[str, str]:
        raise NotImplementedError


def compact(candidates: dict[str, Any]) -> dict[str, str]:
    """Drop absent/empty candidates and unknown fields."""
    out: dict[str, str] = {}
    for k, v in candidates.items():
        if k not in FIELDS or v is None:
            continue
        s = str(v).strip()
        if s:
            out[k] = s
    return out
