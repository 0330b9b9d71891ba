# tests/conftest.py
import os
import tempfile

import pytest

from modules.finn_jobs.lib import config as fj_config


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (network calls to finn.no).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="fj-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    for name in ("FINN_JOBS_COOKIES", "FINN_JOBS_PROXY_URL", "FINN_JOBS_OUTPUT_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def make_settings(tmp_path):
    """Factory for validated Settings writing to a per-test dataset file."""

    def _make(**overrides):
        kw = {
            "output_path": str(tmp_path / "dataset.jsonl"),
            "max_concurrency": 4,
        }
        kw.update(overrides)
        return fj_config.Settings.from_env_and_kwargs(kw)

    return _make
