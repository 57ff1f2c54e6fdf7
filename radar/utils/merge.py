"""Recursive merge helper shared by the where and insert clauses."""

from __future__ import annotations

import copy
from typing import Any, Mapping, Optional


def deep_merge(target: Optional[dict], values: Mapping[str, Any]) -> dict:
    """Merge *values* into a copy of *target* and return it.

    Nested mappings are merged key by key; any other value (lists included)
    replaces what was there. Nothing from *values* is aliased into the result.
    """
    if not isinstance(values, Mapping):
        raise TypeError(f"Expected a mapping, got {type(values).__name__}")

    merged = copy.deepcopy(target) if target else {}
    for key, value in values.items():
        current = merged.get(key)
        if isinstance(value, Mapping):
            merged[key] = deep_merge(current if isinstance(current, dict) else None, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
