# tests/test_finn_jobs_config.py
import json

import pytest

from modules.finn_jobs.lib import config as fj_config
from modules.finn_jobs.lib.config import ConfigError, Settings
from modules.finn_jobs.lib.state import UNBOUNDED


def build(**kw):
    kw.setdefault("output_path", "/tmp/finn-test.jsonl")
    return Settings.from_env_and_kwargs(kw)


# ----------------------------------------------------------------------
# Defaults and seeds
# ----------------------------------------------------------------------
def test_defaults_build_plain_search_seed():
    s = build()
    assert s.results_wanted == 100
    assert s.max_pages == 999
    assert s.collect_details is True
    assert s.dedupe is True
    assert s.include_category is True
    assert s.seed_urls() == ["https://www.finn.no/job/search"]


def test_keyword_and_location_build_search_url():
    s = build(keyword=" python utvikler ", location="Oslo")
    assert s.seed_urls() == ["https://www.finn.no/job/search?q=python+utvikler&location=Oslo"]


def test_start_urls_merge_all_input_shapes():
    s = build(
        start_urls=["https://www.finn.no/job/search?q=a", {"url": "/job/search?q=b"}, "  "],
        start_url="https://www.finn.no/job/ad/1",
        url="https://www.finn.no/job/search?q=c",
    )
    assert s.seed_urls() == [
        "https://www.finn.no/job/search?q=a",
        "https://www.finn.no/job/search?q=b",
        "https://www.finn.no/job/ad/1",
        "https://www.finn.no/job/search?q=c",
    ]


def test_camel_case_aliases_are_accepted():
    s = build(resultsWanted=5, maxPages=2, collectDetails=False, startUrls=[{"url": "https://www.finn.no/job/search"}])
    assert (s.results_wanted, s.max_pages, s.collect_details) == (5, 2, False)
    assert s.start_urls == ["https://www.finn.no/job/search"]


def test_unusable_start_urls_raise():
    with pytest.raises(ConfigError):
        build(start_urls=["mailto:jobs@example.com"])


@pytest.mark.parametrize("bad", [[123], {"a": 1}])
def test_invalid_start_urls_shape_raises(bad):
    with pytest.raises(ConfigError):
        build(start_urls=bad)


# ----------------------------------------------------------------------
# Limits
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 100),
        ("", 100),
        (25, 25),
        ("7", 7),
        (0, 1),
        (float("inf"), UNBOUNDED),
        ("Infinity", UNBOUNDED),
        ("lots", UNBOUNDED),
    ],
)
def test_results_wanted_parsing(raw, expected):
    assert build(results_wanted=raw).results_wanted == expected


def test_non_finite_max_pages_falls_back_to_default():
    assert build(max_pages=float("inf")).max_pages == 999


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_concurrency": 0},
        {"max_concurrency": "many"},
        {"max_request_retries": -1},
        {"request_timeout": 0},
        {"output_path": "  "},
    ],
)
def test_invalid_runtime_settings_raise(kwargs):
    with pytest.raises(ConfigError):
        build(**kwargs)


# ----------------------------------------------------------------------
# Cookies / proxy / env
# ----------------------------------------------------------------------
def test_cookie_header_wins_over_cookies_json():
    s = build(cookies="a=1", cookies_json=json.dumps([{"name": "b", "value": "2"}]))
    assert s.cookie_header == "a=1"
    assert s.request_headers()["Cookie"] == "a=1"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (json.dumps([{"name": "a", "value": "1"}, {"name": "b", "value": "2"}, {"value": "x"}]), "a=1; b=2"),
        ({"sid": "abc"}, "sid=abc"),
        ("{broken", None),
        ("[]", None),
    ],
)
def test_cookies_json_forms(raw, expected):
    assert build(cookies_json=raw).cookie_header == expected


def test_env_fallbacks(monkeypatch):
    monkeypatch.setenv("FINN_JOBS_COOKIES", "env=1")
    monkeypatch.setenv("FINN_JOBS_PROXY_URL", "http://user:pw@proxy:8080")
    monkeypatch.setenv("FINN_JOBS_OUTPUT_PATH", "/tmp/env.jsonl")
    s = Settings.from_env_and_kwargs({})

    assert s.cookie_header == "env=1"
    assert s.proxy_url == "http://user:pw@proxy:8080"
    assert s.output_path == "/tmp/env.jsonl"


def test_request_headers_without_cookie():
    headers = build(user_agent="TestAgent/1.0").request_headers()
    assert headers == {"User-Agent": "TestAgent/1.0"}


def test_log_dict_marks_unbounded_quota_as_none():
    d = build(results_wanted="inf").as_log_dict()
    assert d["results_wanted"] is None
    assert d["max_pages"] == fj_config.DEFAULT_MAX_PAGES
