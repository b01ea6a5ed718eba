"""
The record stream.

Streams rows from an ``AbstractSource`` through the normalizer chain and
yields one normalized record per data row.

Key properties:
  - **Lazy** — only one row is in memory at a time.
  - **Keyed** — dict keys are the header names, or ascending integer
    positions when no header is configured. With a header, every record's
    key set equals the header exactly.
  - **Rewindable** — calling ``generate_records`` a second time produces a
    fresh iterator from the beginning (relies on ``AbstractSource.rows()``
    rewinding on each call).
  - **Fail-fast header check** — an invalid header raises
    ``StructuralError`` on the first ``next()``, before any record is
    produced.

Usage::

    for record in generate_records(source, header_offset=0, header=["name", "age"]):
        # record == {"name": "Ann", "age": "30"}
        pass
"""

from __future__ import annotations

from typing import Any, Iterator, Sequence

from csvquery.configs.exceptions import StructuralError
from csvquery.discovery.base import AbstractSource
from csvquery.transformers.normalizers import Record, combine, index_record, is_blank_row, strip_bom
from csvquery.utils.validation import is_flat_header


def generate_records(
    source: AbstractSource,
    header_offset: int | None,
    header: Sequence[str],
    padding: Any = None,
    enclosure: str = '"',
) -> Iterator[Record]:
    """
    Stream normalized records from ``source``.

    Args:
        source:        An ``AbstractSource``. ``rows()`` is called once per
                       invocation of this generator.
        header_offset: Position of the header row, or ``None`` when every
                       row is data.
        header:        The header resolved at ``header_offset`` (``[]`` when
                       there is none).
        padding:       Value used to pad rows shorter than the header.
        enclosure:     Enclosure character, for the BOM + quoted field case.

    Yields:
        One ``dict`` per data row.

    Raises:
        StructuralError: If ``header`` is not empty and not a flat list of
            unique non-empty strings.
    """
    if not is_flat_header(header):
        raise StructuralError(
            "The header record must be empty or a flat array with unique string values",
            source_path=str(source.path) if source.path else None,
            offset=header_offset,
        )

    bom_text = source.input_bom_text
    header = list(header)

    for position, row in source.rows():
        if is_blank_row(row):
            continue
        if position == 0 and bom_text:
            row = strip_bom(row, bom_text, enclosure)
        if header_offset is not None and position == header_offset:
            continue
        if header:
            yield combine(header, row, padding)
        else:
            yield index_record(row)
