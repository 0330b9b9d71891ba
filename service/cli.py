# service/cli.py
"""
Command-line entrypoints for the finn.no job crawler.

Subcommands
-----------
run [--input FILE] [--kwargs k=v ...] [--print-summary]
    - Builds crawl settings from an input JSON file and/or key=value pairs
      (pairs override the file) and runs one crawl
    - Records land in the configured JSONL dataset (output_path)

validate-config [--input FILE] [--kwargs k=v ...]
    - Builds and validates settings without crawling; nonzero on error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from modules.finn_jobs import main as _finn_jobs
from modules.finn_jobs.lib.config import ConfigError, Settings
from service import logging_utils as L

LOG = logging.getLogger("service.cli")


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_kv_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """
    Parse key=value strings into a dict.
    - Values that look like JSON (true/false/null/number/object/array) are parsed.
    - Otherwise keep as raw strings.
    """
    out: dict[str, Any] = {}
    for raw in pairs:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"--kwargs item must be key=value (got {raw!r})")
        k, v = raw.split("=", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            raise argparse.ArgumentTypeError(f"Invalid key in --kwargs item {raw!r}")
        try:
            out[k] = json.loads(v)
        except ValueError:
            out[k] = v
    return out


def _load_input(path: str | None) -> dict[str, Any]:
    """Read a crawl input object from a JSON file (empty when no path)."""
    if not path:
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"input file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"input file is invalid JSON: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"input file must hold a JSON object: {path}")
    return data


def _collect_kwargs(args: argparse.Namespace) -> dict[str, Any]:
    return {**_load_input(args.input), **_parse_kv_pairs(args.kwargs or [])}


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


# ------------------------------ Subcommands ----------------------------------
def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env_and_kwargs(_collect_kwargs(args))
    except (ConfigError, argparse.ArgumentTypeError) as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1
    print("OK: configuration is valid.")
    for url in settings.seed_urls():
        print(f"  seed: {url}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    run_id = uuid.uuid4().hex
    start_time = time.monotonic()

    try:
        kwargs = _collect_kwargs(args)
    except (ConfigError, argparse.ArgumentTypeError) as e:
        print(f"FAILURE: {e}", file=sys.stderr)
        return 1
    LOG.debug("Run finn_jobs with kwargs=%s", sorted(kwargs))

    try:
        meta = _finn_jobs.run(**kwargs)
    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        print(f"FAILURE: {e}", file=sys.stderr)
        _write_cli_error(run_id, kwargs, e, start_time)
        return 1

    duration_ms = int((time.monotonic() - start_time) * 1000)
    try:
        L.write_activity_log({
            "ts": _now_iso(),
            "event": "cli_run",
            "run_id": run_id,
            "saved": meta.get("saved"),
            "output_path": meta.get("output_path"),
            "duration_ms": duration_ms,
        })
    except OSError:
        LOG.warning("Could not write activity log", exc_info=True)

    if args.print_summary:
        print(json.dumps(meta, indent=2))
    print(f"DONE: saved {meta.get('saved', 0)} records to {meta.get('output_path')}")
    return 0


def _write_cli_error(run_id: str, kwargs: dict[str, Any], err: Exception, start_time: float) -> None:
    try:
        L.write_error_log({
            "ts": _now_iso(),
            "where": "cli.run",
            "run_id": run_id,
            "kwargs": kwargs,
            "error": repr(err),
            "duration_ms": int((time.monotonic() - start_time) * 1000),
        })
    except OSError:
        LOG.warning("Could not write error log", exc_info=True)


# ------------------------------- Argparse ------------------------------------
def _add_input_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--input", help="Path to a JSON object with crawl input (keyword, start_urls, ...).")
    sp.add_argument(
        "--kwargs",
        metavar="k=v",
        nargs="*",
        help="Crawl input overrides (JSON values supported), e.g. results_wanted=20 collect_details=false.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m service.cli",
        description="finn.no job crawler",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("run", help="Run one crawl.")
    _add_input_args(sp)
    sp.add_argument("--print-summary", action="store_true", help="Print the run summary as JSON.")
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("validate-config", help="Verify crawl input without crawling.")
    _add_input_args(sp)
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
