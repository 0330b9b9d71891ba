from __future__ import annotations

from dataclasses import asdict
from typing import Any

from .lib.config import Settings
from .lib.engine import run_once as _run_engine
from .lib.logging_bridge import activity as log_activity


def run(**kwargs: Any) -> dict[str, Any]:
    """
    Entry point for the 'finn_jobs' module.

    Accepts kwargs (from the CLI or an input file), including:
      keyword: str = ""
      location: str = ""
      category: str = ""
      results_wanted: int = 100       # non-finite -> unbounded
      max_pages: int = 999
      collect_details: bool = True
      dedupe: bool = True
      start_urls / start_url / url    # explicit seeds
      cookies / cookies_json          # Cookie header or JSON cookie list/map
      output_path: str = "/app/local/state/finn_jobs.jsonl"

    Returns:
      Summary meta dict (saved count, page counts, duration, output path).
    """
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "finn_jobs.main",
        "op": "start",
        "seeds": settings.seed_urls(),
        "flags": {
            "collect_details": settings.collect_details,
            "dedupe": settings.dedupe,
            "include_category": settings.include_category,
        },
    })

    summary = _run_engine(settings)
    return {**asdict(summary), "output_path": settings.output_path}
