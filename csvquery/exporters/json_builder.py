"""
JSON export.

Records keyed by header names serialize as JSON objects. Records keyed by
integer position (no header) serialize as JSON arrays, so ``{0: "a", 1: "b"}``
becomes ``["a", "b"]`` instead of ``{"0": "a", "1": "b"}``.
"""

from __future__ import annotations

import json
from typing import Any, Iterable


def to_serializable(records: Iterable[dict[Any, Any]]) -> list[Any]:
    return [_jsonable(record) for record in records]


def dumps(records: Iterable[dict[Any, Any]], **kwargs: Any) -> str:
    """``json.dumps`` over ``to_serializable(records)``; kwargs pass through."""
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(to_serializable(records), **kwargs)


def _jsonable(record: dict[Any, Any]) -> Any:
    if record and all(isinstance(key, int) and not isinstance(key, bool) for key in record):
        return list(record.values())
    return dict(record)
