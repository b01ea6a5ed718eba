"""
Abstract base class for raw row sources.

A raw source is an ordered, forward-only, re-seekable sequence of raw
delimited rows. Each row keeps a stable zero-based position, counted over
every physical record the parser produces (blank lines included), so the
header offset and the BOM policy can refer to positions unambiguously.

Every concrete source (CSV file, in-memory buffer, future formats) must
implement this interface. The record normalizer and the ``Reader`` facade
work exclusively against ``AbstractSource``.

Usage:
    with CSVReader.from_path(path) as source:
        source.seek(0)
        first = source.current()
        for position, row in source.rows():
            process(position, row)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

RawRow = list[Optional[str]]


class AbstractSource(ABC):
    """
    Interface for all raw row sources.

    Subclasses must implement ``open``, ``close``, ``rows`` and
    ``input_bom``. ``seek`` / ``current`` and context manager support
    are provided by this base class.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._current: RawRow | None = None

    @abstractmethod
    def open(self) -> None:
        """Open the source for reading. Idempotent."""

    @abstractmethod
    def close(self) -> None:
        """Release any handle the source owns."""

    @abstractmethod
    def rows(self) -> Iterator[tuple[int, RawRow]]:
        """
        Yield ``(position, row)`` pairs from the first physical row.

        Each call rewinds, so the source can be iterated more than once.
        Blank lines are yielded as empty lists; they are not skipped here.
        """

    @property
    @abstractmethod
    def input_bom(self) -> bytes:
        """The byte-order mark found at the start of the document, or ``b""``."""

    @property
    def input_bom_text(self) -> str:
        """The BOM as it shows up at the head of the first decoded field."""
        return self.input_bom.decode("utf-8", errors="surrogateescape")

    # ── cursor ──────────────────────────────────────────────────────────

    def seek(self, position: int) -> None:
        """
        Move the cursor to ``position``.

        ``current()`` returns ``None`` afterwards if the source holds fewer
        rows than ``position + 1``.
        """
        self._current = None
        for index, row in self.rows():
            if index == position:
                self._current = row
                break

    def current(self) -> RawRow | None:
        """Return the row under the cursor, or ``None``."""
        return self._current

    # ── context manager ─────────────────────────────────────────────────

    def __enter__(self) -> "AbstractSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None
