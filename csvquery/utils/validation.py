"""
Validation helpers for arguments and header integrity.

Two families:
  - ``filter_*`` helpers check caller-supplied arguments and return the
    accepted value, raising ``ValidationError`` otherwise.
  - ``is_flat_header`` / ``validate_header`` check the header-shape
    invariant: a header is either empty or a list of unique, non-empty
    strings.

Callers are expected to let exceptions propagate; nothing here clamps or
repairs a bad value.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from csvquery.configs.exceptions import ValidationError


def filter_min_range(value: Any, min_value: int, argument: str, message: str) -> int:
    """
    Assert that ``value`` is an integer greater than or equal to ``min_value``.

    ``bool`` is rejected even though it subclasses ``int``.

    Raises:
        ValidationError: If ``value`` is not an integer or is out of range.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < min_value:
        raise ValidationError(message, argument=argument, value=value)
    return value


def filter_offset(value: Any) -> int:
    return filter_min_range(value, 0, "offset", "the offset must be a positive integer or 0")


def filter_limit(value: Any) -> int:
    return filter_min_range(value, -1, "limit", "the limit must be an integer greater or equal to -1")


def is_flat_header(header: Sequence[Any]) -> bool:
    """Return True if ``header`` is empty or holds unique non-empty strings."""
    if not header:
        return True
    if not all(isinstance(name, str) and name != "" for name in header):
        return False
    return len(set(header)) == len(header)


def validate_header(header: Iterable[Any], argument: str = "header") -> list[str]:
    """
    Return ``header`` as a list after checking the header-shape invariant.

    Raises:
        ValidationError: If any name is blank, not a string, or repeated.
    """
    if isinstance(header, (str, bytes)):
        raise ValidationError(
            "The header must be a sequence of column names, not a string",
            argument=argument,
            value=header,
        )
    names = list(header)
    if not is_flat_header(names):
        raise ValidationError(
            "The header must be empty or a flat list of unique non-empty strings",
            argument=argument,
            value=names,
        )
    return names
