"""
Row-level normalizers for the csvquery record pipeline.

Each normalizer is a **pure function**: it takes a raw row (a list of
fields) and returns a new row or record, never mutating its input.

Normalizer chain (applied in this order by ``row_generator.generate_records``):
  1. ``is_blank_row``   — drop rows that carry no fields (blank lines).
  2. ``strip_bom``      — first row only: remove the byte-order mark from
                          field 0, then unwrap an enclosure left around it.
  3. header-row exclusion (positional, done by the generator).
  4. ``reshape``        — pad/truncate to the header width.
  5. ``combine`` / ``index_record`` — key the values by header name, or by
                          ascending integer position when there is no header.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

Record = dict[Any, Optional[str]]


def is_blank_row(row: Any) -> bool:
    """
    Return True if ``row`` should be skipped entirely.

    A row is blank when it is not a list/tuple, is empty (the parser's
    rendering of a blank line) or is a single ``None`` field.
    """
    if not isinstance(row, (list, tuple)):
        return True
    return len(row) == 0 or (len(row) == 1 and row[0] is None)


def strip_bom(row: Sequence[Any], bom_text: str, enclosure: str) -> list[Any]:
    """
    Remove ``bom_text`` from the head of the first field.

    Only strips when the field actually starts with the BOM, so applying it
    twice returns the same row. When the BOM was followed by a quoted field
    the parser kept the quotes; they are removed as well.
    """
    record = list(row)
    if not bom_text or not record or not isinstance(record[0], str):
        return record
    if not record[0].startswith(bom_text):
        return record

    first = record[0][len(bom_text):]
    if len(first) >= 2 and first[0] == enclosure and first[-1] == enclosure:
        first = first[1:-1]
    record[0] = first
    return record


def reshape(row: Sequence[Any], width: int, padding: Any = None) -> list[Any]:
    """Right-pad ``row`` with ``padding`` or right-truncate it to ``width`` fields."""
    record = list(row[:width])
    if len(record) < width:
        record.extend([padding] * (width - len(record)))
    return record


def combine(header: Sequence[str], row: Sequence[Any], padding: Any = None) -> Record:
    """Key ``row`` by ``header`` after reshaping it to the header width."""
    if len(row) != len(header):
        row = reshape(row, len(header), padding)
    return dict(zip(header, row))


def index_record(row: Sequence[Any]) -> Record:
    """Key ``row`` by ascending integer position."""
    return dict(enumerate(row))
