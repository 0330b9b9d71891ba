# tests/finn_pages.py
"""Canned finn.no pages and a fake fetcher for offline crawl tests."""

import json
from collections.abc import Callable

from modules.finn_jobs.lib.http_client import FetchError
from modules.finn_jobs.lib.models import FetchedPage

AD_BASE = "https://www.finn.no/job/ad"
SEARCH = "https://www.finn.no/job/search?q=dev"


def list_page_html(ids, *, next_href: str | None = None) -> str:
    """Search-results page with one <article> per ad id."""
    rows = []
    for i in ids:
        rows.append(f"""
        <article class="sf-search-ad">
          <h2><a class="sf-search-ad-link" href="/job/ad/{i}?ref=search">Utvikler {i}</a></h2>
          <div class="text-xs">1. mar. | Oslo</div>
          <div class="flex flex-col text-xs"><span>Firma {i} AS</span></div>
        </article>""")
    nav = f'<nav><a href="{next_href}">Neste</a></nav>' if next_href else ""
    return f"<html><body><main>{''.join(rows)}</main>{nav}</body></html>"


def _script_json(obj) -> str:
    # Inline JSON escapes "</" so markup inside strings cannot close the script tag.
    return json.dumps(obj).replace("</", "<\\/")


def detail_page_html(
    *,
    embedded: dict | None = None,
    jsonld: dict | list | None = None,
    body: str = "",
) -> str:
    head = ""
    if embedded is not None:
        head += f"<script>window.__state = {{ jobAd: {_script_json(embedded)} }};</script>"
    if jsonld is not None:
        head += f'<script type="application/ld+json">{_script_json(jsonld)}</script>'
    return f"<html><head>{head}</head><body>{body}</body></html>"


def html_page(url: str, body: str) -> FetchedPage:
    return FetchedPage(url=url, status=200, headers={"Content-Type": "text/html; charset=utf-8"}, body=body)


def json_page(url: str, body: str) -> FetchedPage:
    return FetchedPage(url=url, status=200, headers={"Content-Type": "application/json"}, body=body)


def simple_detail(url: str) -> FetchedPage:
    ad_id = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    return html_page(
        url,
        detail_page_html(
            embedded={"heading": f"Stilling {ad_id}", "description": f"<p>Om jobb {ad_id}</p>"},
        ),
    )


class FakeFetcher:
    """
    Serves canned pages by exact URL; unknown URLs go to `default` or raise FetchError.
    """

    def __init__(
        self,
        pages: dict[str, FetchedPage] | None = None,
        default: Callable[[str], FetchedPage] | None = None,
    ):
        self.pages = dict(pages or {})
        self.default = default
        self.calls: list[str] = []

    def fetch(self, url, *, headers=None):
        self.calls.append(url)
        if url in self.pages:
            return self.pages[url]
        if self.default is not None and "/job/ad/" in url:
            return self.default(url)
        raise FetchError(url, "HTTP 404", status=404)

    def detail_calls(self) -> list[str]:
        return [u for u in self.calls if "/job/ad/" in u]
