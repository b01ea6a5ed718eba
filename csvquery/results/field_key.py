"""
Name-or-position column addressing.

A caller may address a column by its header name or by its ordinal. The
choice is resolved once, against the effective header, into either a
``Name`` or a ``Position``; record lookups then use ``key.value`` directly.

Resolution rules:
  - a value found literally in the header is a ``Name``;
  - a string that does not look like an integer is a ``Name``;
  - anything else must be an integer ≥ 0 (numeric strings are accepted);
    with a header it is translated to the name at that position, without
    one it stays a ``Position``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Union

from csvquery.configs.exceptions import ValidationError
from csvquery.utils.validation import filter_min_range


@dataclass(frozen=True)
class Name:
    value: str


@dataclass(frozen=True)
class Position:
    value: int


FieldKey = Union[Name, Position]


def resolve_field_key(field: Any, header: Sequence[str], argument: str = "field") -> FieldKey:
    """
    Resolve ``field`` against ``header``.

    Raises:
        ValidationError: If ``field`` is a negative or non-integer ordinal,
            or an ordinal beyond the header width.
    """
    if isinstance(field, str) and field in header:
        return Name(field)

    if isinstance(field, str):
        try:
            index: Any = int(field.strip())
        except ValueError:
            return Name(field)
    else:
        index = field

    index = filter_min_range(index, 0, argument, f"the {argument} must be a header name or a positive integer or 0")
    if not header:
        return Position(index)
    if index < len(header):
        return Name(header[index])

    raise ValidationError(
        f"the {argument} index {index} is out of range for a {len(header)} column header",
        argument=argument,
        value=field,
    )
