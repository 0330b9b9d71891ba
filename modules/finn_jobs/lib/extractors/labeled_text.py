# finn_jobs/extractors/labeled_text.py
"""
Label/value pairs from flattened page text.

Ad pages list facts such as sector and employment type as label/value runs
that have no stable markup. After flattening, a fact looks like either

    Sektor: Privat
or
    Sektor
    Privat

Labels are matched case-insensitively at the start of a line, using Norwegian
and English synonyms.
"""

from __future__ import annotations

import re

from .base import FieldExtractor, ParsedPage, compact
from .registry import register

LABELS: dict[str, tuple[str, ...]] = {
    "sector": ("Sektor", "Sector"),
    "industry": ("Bransje", "Industry"),
    "job_function": ("Stillingsfunksjon", "Job function"),
    "employment_type": ("Ansettelsesform", "Employment type"),
    "location": ("Arbeidssted", "Sted", "Location"),
    "date_posted": ("Publisert", "Published"),
}

_MAX_VALUE_LEN = 120

_ALL_LABELS = {label.lower() for labels in LABELS.values() for label in labels}


def _pattern(labels: tuple[str, ...]) -> re.Pattern[str]:
    alt = "|".join(re.escape(label) for label in sorted(labels, key=len, reverse=True))
    return re.compile(
        rf"^(?:{alt})[ \t]*(?::[ \t]*(?P<inline>[^\n]+)|:?[ \t]*\n(?P<next>[^\n]+))",
        re.IGNORECASE | re.MULTILINE,
    )


PATTERNS: dict[str, re.Pattern[str]] = {field: _pattern(labels) for field, labels in LABELS.items()}


def match_label(text: str, field: str) -> str | None:
    for m in PATTERNS[field].finditer(text or ""):
        value = (m.group("inline") or m.group("next") or "").strip().rstrip(":").strip()
        # A bare label followed by another label is not a value.
        if not value or value.lower() in _ALL_LABELS or len(value) > _MAX_VALUE_LEN:
            continue
        return value
    return None


@register
class LabeledTextExtractor(FieldExtractor):
    name = "labeled_text"
    precedence = 40

    def extract(self, page: ParsedPage) -> dict[str, str]:
        text = page.text
        if not text:
            return {}
        return compact({field: match_label(text, field) for field in LABELS})
