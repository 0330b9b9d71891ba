# finn_jobs/http_client.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import FetchedPage

LOG = logging.getLogger(__name__)


class FetchError(Exception):
    """A page could not be fetched within the retry budget."""

    def __init__(self, url: str, message: str, *, status: int | None = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class Fetcher(Protocol):
    def fetch(self, url: str, *, headers: Mapping[str, str] | None = None) -> FetchedPage: ...


class HttpClient:
    """Shared HTTP client: pooled session, retries with backoff on 429/5xx."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "Mozilla/5.0",
        *,
        max_retries: int = 3,
        pool_size: int = 10,
        proxy_url: str | None = None,
        cookie_header: str | None = None,
    ):
        self.timeout = float(timeout)
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
            "Accept-Language": "nb-NO,nb;q=0.9,en;q=0.8",
        })
        if cookie_header:
            self.session.headers["Cookie"] = cookie_header
        if proxy_url:
            self.session.proxies.update({"http": proxy_url, "https": proxy_url})

        retry = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(["GET", "HEAD"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def fetch(self, url: str, *, headers: Mapping[str, str] | None = None) -> FetchedPage:
        """
        GET `url`. Returns the page for 2xx responses; raises FetchError for
        network failures or any other status once retries are spent.
        """
        try:
            resp = self.session.get(url, headers=dict(headers or {}), timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(url, repr(e)) from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(url, f"HTTP {resp.status_code}", status=resp.status_code)

        if not resp.encoding and resp.apparent_encoding:
            resp.encoding = resp.apparent_encoding
        return FetchedPage(
            url=resp.url or url,
            status=resp.status_code,
            headers=dict(resp.headers),
            body=resp.text,
        )

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)
