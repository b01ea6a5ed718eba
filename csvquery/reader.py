"""
The ``Reader`` facade.

Binds one raw source to a header offset and a padding value and exposes
the normalized record stream, plus shortcuts that process an empty
``Statement``.

Usage::

    with Reader.from_path("contacts.csv", header_offset=0) as reader:
        reader.header                      # ["name", "email", ...]
        for record in reader:
            ...
        emails = list(reader.fetch_column("email"))

Caching:
    The header and the record count are computed once and kept until the
    header offset changes. ``records()`` is a fresh generator on each call,
    rewinding the source.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from csvquery.configs.config import ReaderConfig
from csvquery.discovery.base import AbstractSource
from csvquery.discovery.csv_reader import CSVReader
from csvquery.discovery.header import HeaderResolver
from csvquery.query.statement import Statement
from csvquery.transformers.normalizers import Record
from csvquery.transformers.row_generator import generate_records
from csvquery.utils.validation import filter_min_range, is_flat_header

logger = logging.getLogger(__name__)


class Reader:
    """
    Record-level view over an ``AbstractSource``.

    Args:
        source:        The raw row source. Closed by ``close()``.
        config:        Defaults to the source's own config, if it has one.
        header_offset: Row position of the header, or ``None`` for no header.
    """

    def __init__(
        self,
        source: AbstractSource,
        config: Optional[ReaderConfig] = None,
        header_offset: Optional[int] = None,
    ) -> None:
        self.source = source
        self.config = config or getattr(source, "config", None) or ReaderConfig()
        self._resolver = HeaderResolver(source, enclosure=self.config.enclosure)
        self._padding = self.config.record_padding_value
        self._header_offset: Optional[int] = None
        self._count: Optional[int] = None
        self.set_header_offset(header_offset)

    # ── constructors ─────────────────────────────────────────────────────

    @classmethod
    def from_path(
        cls,
        path: Path | str,
        config: Optional[ReaderConfig] = None,
        header_offset: Optional[int] = None,
    ) -> "Reader":
        return cls(CSVReader.from_path(path, config=config), config, header_offset)

    @classmethod
    def from_string(
        cls,
        text: str,
        config: Optional[ReaderConfig] = None,
        header_offset: Optional[int] = None,
    ) -> "Reader":
        return cls(CSVReader.from_string(text, config=config), config, header_offset)

    # ── header ───────────────────────────────────────────────────────────

    @property
    def header_offset(self) -> Optional[int]:
        return self._header_offset

    @header_offset.setter
    def header_offset(self, offset: Optional[int]) -> None:
        self.set_header_offset(offset)

    def set_header_offset(self, offset: Optional[int]) -> "Reader":
        """
        Select the header row, or ``None`` for positional records.

        A changed value drops the cached header and record count.

        Raises:
            ValidationError: If ``offset`` is not ``None`` nor an integer >= 0.
        """
        if offset is not None:
            offset = filter_min_range(offset, 0, "header_offset", "the header offset index must be a positive integer or 0")
        if offset != self._header_offset:
            self._header_offset = offset
            self._resolver.invalidate()
            self._count = None
        return self

    @property
    def header(self) -> list[str]:
        """
        The header row (``[]`` without a header offset).

        Raises:
            StructuralError: If the header row is missing or empty.
        """
        return list(self._resolver.resolve(self._header_offset))

    def supports_header_as_record_keys(self) -> bool:
        """True if the header is empty or a list of unique non-empty strings."""
        return is_flat_header(self.header)

    @property
    def record_padding_value(self) -> Any:
        return self._padding

    @record_padding_value.setter
    def record_padding_value(self, value: Any) -> None:
        self._padding = value

    # ── records ──────────────────────────────────────────────────────────

    def records(self) -> Iterator[Record]:
        """
        Stream normalized records from the first data row.

        Header resolution is deferred to the first ``next()``.

        Raises:
            StructuralError: On first iteration, if the header is missing or
                not a flat list of unique names.
        """
        yield from generate_records(
            self.source,
            self._header_offset,
            self._resolver.resolve(self._header_offset),
            padding=self._padding,
            enclosure=self.config.enclosure,
        )

    def __iter__(self) -> Iterator[Record]:
        return self.records()

    def __len__(self) -> int:
        if self._count is None:
            self._count = sum(1 for _ in self.records())
            logger.debug("Counted %d records in %s", self._count, self.source.path or "<stream>")
        return self._count

    # ── shortcuts ────────────────────────────────────────────────────────

    def fetch_all(self) -> list[Record]:
        return Statement().process(self).all()

    def fetch_one(self, offset: int = 0) -> Record:
        return Statement().process(self).one(offset)

    def fetch_column(self, column: Any = 0) -> Iterator[Any]:
        return Statement().process(self).column(column)

    def fetch_pairs(self, key: Any = 0, value: Any = 1) -> Iterator[tuple[Any, Any]]:
        return Statement().process(self).pairs(key, value)

    def fetch_delimiters_occurrence(self, delimiters: Iterable[str], nb_records: int = 1) -> dict[str, int]:
        """Delegates to the source; see ``CSVReader.fetch_delimiters_occurrence``."""
        return self.source.fetch_delimiters_occurrence(delimiters, nb_records)

    # ── resource handling ────────────────────────────────────────────────

    def close(self) -> None:
        self.source.close()

    def __enter__(self) -> "Reader":
        self.source.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None

    def __repr__(self) -> str:
        return f"Reader(source={self.source!r}, header_offset={self._header_offset})"
