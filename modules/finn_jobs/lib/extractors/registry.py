from __future__ import annotations

from .base import FieldExtractor

# Global in-process registry: name -> extractor class
_REGISTRY: dict[str, type[FieldExtractor]] = {}


def register(cls: type[FieldExtractor]) -> type[FieldExtractor]:
    """
    Class decorator or direct call to register an extraction strategy.
    Requires cls.name to be a non-empty string.
    """
    name = getattr(cls, "name", "") or ""
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"Cannot register extractor {cls!r}: missing/empty 'name'.")
    key = name.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        # Allow idempotent re-registers of the same class; otherwise reject.
        raise ValueError(f"Extractor {key!r} already registered to {_REGISTRY[key]!r}.")
    _REGISTRY[key] = cls
    return cls


def get(name: str) -> type[FieldExtractor]:
    """
    Look up an extractor class by name (case-insensitive).
    Raises KeyError if not found.
    """
    key = (name or "").strip().lower()
    if key not in _REGISTRY:
        raise KeyError(f"No extractor registered for name {name!r}.")
    return _REGISTRY[key]


def ordered() -> list[FieldExtractor]:
    """
    Fresh instances of every registered strategy in precedence order.
    """
    classes = sorted(_REGISTRY.values(), key=lambda c: c.precedence)
    return [cls() for cls in classes]
