"""
The result view of a processed statement.

A ``RecordSet`` binds one compiled record stream to the header that frames
it. The stream is a single forward cursor: every consumption method pulls
from the same position, and once it has been drained, later calls see
nothing (a warning is logged). Build a new ``RecordSet`` by processing the
statement again.

Cursor states::

    FRESH ──first pull──▶ DRAINING ──stream ends or raises──▶ EXHAUSTED

Usage::

    result = Statement().where(lambda r: r["age"] > "30").process(reader)
    for name in result.column("name"):
        ...

Export methods (``to_tree``, ``as_table``, ``to_mapping``, ``to_json``)
run every key and value through ``utils.encoding.convert`` using the
conversion charset; it is a no-op for UTF-8.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from enum import Enum
from itertools import islice
from typing import Any, Iterator, Optional, Sequence

from csvquery.configs.config import ReaderConfig
from csvquery.exporters import json_builder
from csvquery.exporters.xml_builder import build_tree, render_table
from csvquery.results.field_key import resolve_field_key
from csvquery.transformers.normalizers import Record
from csvquery.utils.encoding import convert, is_canonical, normalize_charset
from csvquery.utils.validation import filter_min_range

logger = logging.getLogger(__name__)


class CursorState(Enum):
    FRESH = "fresh"
    DRAINING = "draining"
    EXHAUSTED = "exhausted"


class RecordSet:
    """
    Single-pass result of ``Statement.process``.

    Args:
        records: The compiled (lazy) record stream.
        header:  The effective header, ``[]`` for positional records.
        config:  Supplies the conversion charset, header-on-export flag and
                 default table class.
    """

    def __init__(
        self,
        records: Iterator[Record],
        header: Sequence[str],
        config: Optional[ReaderConfig] = None,
    ) -> None:
        config = config or ReaderConfig()
        self._records = iter(records)
        self._header = list(header)
        self._state = CursorState.FRESH
        self._conversion_encoding = normalize_charset(config.conversion_input_encoding)
        self._use_header_on_export = config.use_header_on_xml_conversion
        self._table_class = config.table_class

    @property
    def header(self) -> list[str]:
        return list(self._header)

    @property
    def state(self) -> CursorState:
        return self._state

    def __iter__(self) -> Iterator[Record]:
        return self._pull()

    def __repr__(self) -> str:
        return f"RecordSet(header={self._header!r}, state={self._state.value})"

    # ── consumption ─────────────────────────────────────────────────────

    def all(self) -> list[Record]:
        """Drain the cursor into a list."""
        return list(self._pull())

    def one(self, offset: int = 0) -> Record:
        """
        Return the ``offset``-th remaining record, or ``{}`` if there is none.

        Raises:
            ValidationError: If ``offset`` is negative or not an integer.
        """
        offset = filter_min_range(offset, 0, "offset", "the submitted offset is invalid")
        return next(islice(self._pull(), offset, None), {})

    def count(self) -> int:
        """Number of remaining records. Drains the cursor."""
        return sum(1 for _ in self._pull())

    def column(self, key: Any = 0) -> Iterator[Any]:
        """
        Stream the values of one column, by name or by position.

        Records lacking the key are skipped; ``None`` values are kept.

        Raises:
            ValidationError: If ``key`` cannot be resolved (raised here,
                not on first iteration).
        """
        field = resolve_field_key(key, self._header, argument="column").value
        return (record[field] for record in self._pull() if field in record)

    def pairs(self, key: Any = 0, value: Any = 1) -> Iterator[tuple[Any, Any]]:
        """
        Stream ``(record[key], record[value])`` tuples.

        Records lacking ``key`` are skipped; a missing ``value`` yields None.

        Raises:
            ValidationError: If either field cannot be resolved.
        """
        key_field = resolve_field_key(key, self._header, argument="key").value
        value_field = resolve_field_key(value, self._header, argument="value").value
        return (
            (record[key_field], record.get(value_field))
            for record in self._pull()
            if key_field in record
        )

    # ── export ──────────────────────────────────────────────────────────

    def set_conversion_input_encoding(self, charset: str) -> "RecordSet":
        """
        Set the charset exported values are converted from.

        Raises:
            ValidationError: If ``charset`` is blank or unknown.
        """
        self._conversion_encoding = normalize_charset(charset)
        return self

    def use_header_on_xml_conversion(self, status: bool) -> "RecordSet":
        self._use_header_on_export = bool(status)
        return self

    def to_tree(self, root_name: str = "csv", row_name: str = "row", cell_name: str = "cell") -> ET.ElementTree:
        """Drain the cursor into an ``ElementTree``, header row first when enabled."""
        header = self._header if self._use_header_on_export else None
        return build_tree(self._converted(), header, root_name, row_name, cell_name)

    def as_table(self, css_class: Optional[str] = None) -> str:
        """Drain the cursor into an HTML ``<table>`` fragment."""
        tree = self.to_tree("table", "tr", "td")
        return render_table(tree, css_class if css_class is not None else self._table_class)

    def to_mapping(self) -> list[Record]:
        """Drain the cursor into a list of converted records."""
        return list(self._converted())

    def to_json(self, **kwargs: Any) -> str:
        """Drain the cursor into a JSON array; kwargs go to ``json.dumps``."""
        return json_builder.dumps(self._converted(), **kwargs)

    # ── internals ───────────────────────────────────────────────────────

    def _pull(self) -> Iterator[Record]:
        if self._state is CursorState.EXHAUSTED:
            logger.warning("RecordSet already consumed; build a new one by processing the statement again")
            return
        self._state = CursorState.DRAINING
        # Plain loop: closing this generator early must not close the shared stream.
        try:
            for record in self._records:
                yield record
        except Exception:
            self._state = CursorState.EXHAUSTED
            raise
        self._state = CursorState.EXHAUSTED

    def _converted(self) -> Iterator[Record]:
        if is_canonical(self._conversion_encoding):
            yield from self._pull()
            return
        charset = self._conversion_encoding
        for record in self._pull():
            yield {convert(k, charset): convert(v, charset) for k, v in record.items()}
