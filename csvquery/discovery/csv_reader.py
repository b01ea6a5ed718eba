"""
CSV raw source implementing ``AbstractSource``.

Handles:
- Paths, in-memory strings/bytes and caller-owned file objects (binary or
  text mode). The source never closes a file object it did not open.
- Byte-order-mark detection (UTF-32, UTF-16, UTF-8). The BOM is reported,
  not removed; stripping is the record normalizer's job.
- Charset decoding with ``surrogateescape`` so undecodable bytes survive
  until export, plus ``input_encoding="auto"`` detection.
- Seek-back so the source can be iterated more than once.
- Delimiter sniffing (``fetch_delimiters_occurrence``).

Parser errors and unreadable paths are raised as ``StructuralError``.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import replace
from pathlib import Path
from typing import IO, Iterable, Iterator

from csvquery.configs.config import BOM_UTF8, CANONICAL_CHARSET, KNOWN_BOMS, ReaderConfig
from csvquery.configs.csv_dialect import register_dialect
from csvquery.configs.exceptions import StructuralError, ValidationError
from csvquery.discovery.base import AbstractSource, RawRow
from csvquery.transformers.normalizers import is_blank_row
from csvquery.utils.encoding import detect_encoding, normalize_charset
from csvquery.utils.validation import filter_min_range

logger = logging.getLogger(__name__)


class CSVReader(AbstractSource):
    """
    Raw CSV row source.

    Prefer the ``from_*`` constructors over calling ``__init__`` directly.

    Args:
        stream: A binary or text file object, or ``None`` when ``path`` is given.
        path: Path to the CSV file, opened lazily in binary mode.
        config: Reader configuration; defaults to ``ReaderConfig()``.
        owns_stream: Close ``stream`` on ``close()``.
    """

    def __init__(
        self,
        stream: IO | None = None,
        path: Path | str | None = None,
        config: ReaderConfig | None = None,
        owns_stream: bool = False,
    ) -> None:
        if stream is None and path is None:
            raise ValidationError("A CSV source needs a stream or a path", argument="stream", value=None)
        super().__init__(path)
        self.config = config or ReaderConfig()
        self._stream = stream
        self._owns_stream = owns_stream or stream is None
        self._text: IO[str] | None = None
        self._bom: bytes = b""
        self._encoding: str | None = None
        self._closed = False

    # ── constructors ─────────────────────────────────────────────────────

    @classmethod
    def from_path(cls, path: Path | str, config: ReaderConfig | None = None) -> "CSVReader":
        return cls(path=path, config=config)

    @classmethod
    def from_string(cls, text: str, config: ReaderConfig | None = None) -> "CSVReader":
        return cls(io.StringIO(text, newline=""), config=config, owns_stream=True)

    @classmethod
    def from_bytes(cls, data: bytes, config: ReaderConfig | None = None) -> "CSVReader":
        return cls(io.BytesIO(data), config=config, owns_stream=True)

    @classmethod
    def from_file(cls, fileobj: IO, config: ReaderConfig | None = None) -> "CSVReader":
        """Wrap a caller-owned, seekable file object. It is never closed here."""
        return cls(fileobj, config=config, owns_stream=False)

    # ── AbstractSource interface ─────────────────────────────────────────

    def open(self) -> None:
        """
        Open the underlying stream, detect the BOM and set up decoding.

        Raises:
            StructuralError: If the path cannot be opened, or the stream is
                closed or not seekable.
        """
        if self._text is not None:
            return

        if self._closed or (self._stream is not None and self._stream.closed):
            raise StructuralError("The CSV source is closed", source_path=self._source_label)

        if self._stream is None:
            try:
                self._stream = open(self.path, "rb")  # noqa: SIM115
            except OSError as e:
                raise StructuralError(
                    f"Cannot open {self.path}: {e}",
                    source_path=self._source_label,
                ) from e

        if not self._stream.seekable():
            raise StructuralError(
                "The CSV source must be seekable",
                source_path=self._source_label,
            )

        if isinstance(self._stream, io.TextIOBase):
            self._stream.seek(0)
            if self._stream.read(1) == "\ufeff":
                self._bom = BOM_UTF8
            self._stream.seek(0)
            self._encoding = CANONICAL_CHARSET
            self._text = self._stream
        else:
            self._stream.seek(0)
            head = self._stream.read(max(4, self.config.sample_size))
            self._stream.seek(0)
            self._bom = _match_bom(head)
            if self.config.detects_encoding:
                self._encoding = detect_encoding(head)
            else:
                self._encoding = normalize_charset(self.config.input_encoding)
            self._text = io.TextIOWrapper(
                self._stream,
                encoding=self._encoding,
                errors="surrogateescape",
                newline="",
            )

        if self._bom:
            logger.debug("Detected BOM %r in %s", self._bom, self._source_label or "<stream>")

    def close(self) -> None:
        """Release the stream if this source opened it; detach otherwise."""
        if self._text is None:
            return
        if self._owns_stream:
            self._text.close()
        elif self._text is not self._stream:
            # Borrowed binary stream: drop the wrapper without closing it.
            self._text.detach()
        self._text = None
        if self.path is not None:
            self._stream = None
        elif self._owns_stream:
            # In-memory buffers cannot be reopened.
            self._closed = True

    def rows(self) -> Iterator[tuple[int, RawRow]]:
        """
        Yield each physical row as ``(position, fields)``. Rewinds on each call.

        Raises:
            StructuralError: If the parser rejects a row.
        """
        yield from self._iter_rows(register_dialect(self.config))

    @property
    def input_bom(self) -> bytes:
        self.open()
        return self._bom

    @property
    def input_bom_text(self) -> str:
        """The BOM as it appears in the decoded first field ("" if the codec consumed it)."""
        bom = self.input_bom
        return bom.decode(self.encoding, errors="surrogateescape") if bom else ""

    @property
    def encoding(self) -> str:
        """Codec actually used to decode the document."""
        self.open()
        return self._encoding or CANONICAL_CHARSET

    # ── delimiter sniffing ───────────────────────────────────────────────

    def fetch_delimiters_occurrence(
        self,
        delimiters: Iterable[str],
        nb_records: int = 1,
    ) -> dict[str, int]:
        """
        Count the cells produced by each candidate delimiter.

        Only single-character candidates are considered. Blank lines do not
        count toward ``nb_records``; rows yielding a single cell add nothing.

        Args:
            delimiters: Candidate delimiter characters.
            nb_records: Number of leading rows to inspect (>= 1).

        Returns:
            ``{delimiter: cell_count}`` ordered by descending count.

        Raises:
            ValidationError: If ``nb_records`` is lower than 1.
        """
        nb_records = filter_min_range(
            nb_records,
            1,
            "nb_records",
            "the number of records to consider must be a valid positive integer",
        )
        candidates = list(dict.fromkeys(d for d in delimiters if isinstance(d, str) and len(d) == 1))
        counts: dict[str, int] = {}
        for delimiter in candidates:
            dialect = register_dialect(replace(self.config, delimiter=delimiter))
            total = 0
            inspected = 0
            for _, row in self._iter_rows(dialect):
                if is_blank_row(row):
                    continue
                if inspected >= nb_records:
                    break
                inspected += 1
                if len(row) > 1:
                    total += len(row)
            counts[delimiter] = total
        return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))

    # ── internals ────────────────────────────────────────────────────────

    @property
    def _source_label(self) -> str | None:
        return str(self.path) if self.path is not None else None

    def _iter_rows(self, dialect: str) -> Iterator[tuple[int, RawRow]]:
        self.open()
        self._text.seek(0)
        reader = csv.reader(self._text, dialect=dialect)
        position = -1
        try:
            for row in reader:
                position += 1
                yield position, row
        except csv.Error as e:
            raise StructuralError(
                f"Malformed CSV row: {e}",
                source_path=self._source_label,
                offset=position + 1,
            ) from e


def _match_bom(head: bytes) -> bytes:
    for bom in KNOWN_BOMS:
        if head.startswith(bom):
            return bom
    return b""
