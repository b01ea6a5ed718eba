"""
Header resolution.

``HeaderResolver`` reads the header row from a raw source once per
configured offset and caches it. The cache is keyed by the offset, so a
new offset always triggers a fresh read; ``invalidate`` drops it
explicitly.

The resolver does not check name uniqueness. That check belongs to
record iteration (``row_generator.generate_records``): reading a header
has no side effects, producing records from an invalid one must fail.
"""

from __future__ import annotations

import logging

from csvquery.configs.exceptions import StructuralError
from csvquery.discovery.base import AbstractSource
from csvquery.transformers.normalizers import is_blank_row, strip_bom

logger = logging.getLogger(__name__)


class HeaderResolver:
    """
    Memoized header lookup against one raw source.

    Args:
        source: The raw row source.
        enclosure: Enclosure character, used when stripping a BOM that
            precedes a quoted first field.
    """

    def __init__(self, source: AbstractSource, enclosure: str = '"') -> None:
        self.source = source
        self.enclosure = enclosure
        self._cached: tuple[int | None, list[str]] | None = None

    def resolve(self, offset: int | None) -> list[str]:
        """
        Return the header found at row ``offset`` (``[]`` when ``offset`` is None).

        Raises:
            StructuralError: If the row at ``offset`` is missing or empty.
        """
        if self._cached is not None and self._cached[0] == offset:
            return self._cached[1]

        header = [] if offset is None else self._read(offset)
        self._cached = (offset, header)
        return header

    def invalidate(self) -> None:
        self._cached = None

    def _read(self, offset: int) -> list[str]:
        self.source.seek(offset)
        row = self.source.current()
        if row is None or is_blank_row(row):
            raise StructuralError(
                "The header record does not exist or is empty",
                source_path=str(self.source.path) if self.source.path else None,
                offset=offset,
            )

        if offset == 0:
            row = strip_bom(row, self.source.input_bom_text, self.enclosure)

        logger.debug("Resolved header at offset %s with %d fields", offset, len(row))
        return list(row)
