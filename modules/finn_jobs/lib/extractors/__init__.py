# finn_jobs/extractors/__init__.py
from __future__ import annotations

from .base import FIELDS, ExtractorError, FieldExtractor, ParsedPage
from .dom import DomExtractor
from .embedded_json import EmbeddedJsonExtractor
from .jsonld import JsonLdExtractor
from .labeled_text import LabeledTextExtractor
from .registry import ordered

__all__ = [
    "FIELDS",
    "DomExtractor",
    "EmbeddedJsonExtractor",
    "ExtractorError",
    "FieldExtractor",
    "JsonLdExtractor",
    "LabeledTextExtractor",
    "ParsedPage",
    "ordered",
]
