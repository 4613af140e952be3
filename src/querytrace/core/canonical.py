# src/querytrace/core/canonical.py
"""
Canonical JSON serialization for telemetry documents.

Documents are plain dict/list/scalar trees. canonical_json() renders them per
RFC 8785/JCS (rfc8785 package): no whitespace, sorted keys, fixed number
formatting. Its output is used as the sort key for commutative operands, so
two structurally equal documents always produce the same text.

NaN and Infinity are rejected: they have no JSON representation and must
never reach the telemetry endpoint.
"""

from __future__ import annotations

import math
from typing import Any

import rfc8785


def _check_finite(obj: Any) -> None:
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            raise ValueError(f"Cannot canonicalize non-finite float: {obj}")
    elif isinstance(obj, dict):
        for value in obj.values():
            _check_finite(value)
    elif isinstance(obj, list | tuple):
        for value in obj:
            _check_finite(value)


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON text for a document.

    Args:
        obj: Document to serialize

    Returns:
        Canonical JSON string (no whitespace, sorted keys)

    Raises:
        ValueError: If the document contains NaN or Infinity
        TypeError: If the document contains non-JSON types
    """
    _check_finite(obj)
    result: bytes = rfc8785.dumps(obj)
    return result.decode("utf-8")
