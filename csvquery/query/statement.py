"""
Immutable query statements.

A ``Statement`` accumulates filter predicates, ordering comparators, an
offset/limit window, an optional header override and an optional column
selection. Every builder method returns a new ``Statement`` and leaves the
receiver untouched; a call that changes nothing returns the receiver
itself.

Usage::

    stmt = (
        Statement()
        .where(lambda r: r["country"] == "FR")
        .order_by(lambda a, b: int(a["age"]) - int(b["age"]))
        .offset(10)
        .limit(5)
    )
    records = stmt.process(reader).all()

``process`` is the only place the statement meets data; see
``query.compiler`` for the stage order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from csvquery.configs.exceptions import ValidationError
from csvquery.query.compiler import compile_statement
from csvquery.transformers.stages import Comparator, Predicate
from csvquery.utils.validation import filter_limit, filter_offset, validate_header

if TYPE_CHECKING:
    from csvquery.reader import Reader
    from csvquery.results.record_set import RecordSet


@dataclass(frozen=True)
class Statement:
    """
    Query configuration value.

    Attributes:
        filters:          Predicates, all of which must hold (in order).
        comparators:      Comparator chain; the first non-zero result wins.
        start:            Number of surviving records to skip.
        length:           Maximum number of records to yield, ``-1`` for all.
        header_names:     Replacement header, or ``None`` to keep the
                          reader's own.
        selected_columns: ``(source_key, alias)`` pairs; empty selects all.
    """

    filters: tuple[Predicate, ...] = ()
    comparators: tuple[Comparator, ...] = ()
    start: int = 0
    length: int = -1
    header_names: Optional[tuple[str, ...]] = None
    selected_columns: tuple[tuple[Any, str], ...] = ()

    def where(self, predicate: Predicate) -> "Statement":
        """Append a filter predicate."""
        if not callable(predicate):
            raise ValidationError("where() expects a callable", argument="predicate", value=predicate)
        return replace(self, filters=self.filters + (predicate,))

    def order_by(self, comparator: Comparator) -> "Statement":
        """Append a comparator used as the next tie-break."""
        if not callable(comparator):
            raise ValidationError("order_by() expects a callable", argument="comparator", value=comparator)
        return replace(self, comparators=self.comparators + (comparator,))

    def offset(self, offset: int) -> "Statement":
        """
        Skip ``offset`` surviving records.

        Raises:
            ValidationError: If ``offset`` is negative or not an integer.
        """
        offset = filter_offset(offset)
        if offset == self.start:
            return self
        return replace(self, start=offset)

    def limit(self, limit: int) -> "Statement":
        """
        Yield at most ``limit`` records (``-1`` removes the limit).

        Raises:
            ValidationError: If ``limit`` is lower than -1 or not an integer.
        """
        limit = filter_limit(limit)
        if limit == self.length:
            return self
        return replace(self, length=limit)

    def header(self, names: Iterable[str] | None) -> "Statement":
        """
        Re-key every record with ``names`` for this query only.

        ``None`` drops a previous override.

        Raises:
            ValidationError: If ``names`` is not empty and not a list of
                unique non-empty strings.
        """
        header = None if names is None else tuple(validate_header(names))
        if header == self.header_names:
            return self
        return replace(self, header_names=header)

    def columns(self, columns: Iterable[str] | Mapping[Any, str]) -> "Statement":
        """
        Select (and optionally rename) columns.

        A sequence selects keys as they are; a mapping maps source keys
        to aliases.

        Raises:
            ValidationError: If the aliases are not unique non-empty strings.
        """
        if isinstance(columns, Mapping):
            pairs = tuple(columns.items())
        else:
            pairs = tuple((name, name) for name in validate_header(columns, argument="columns"))
        validate_header([alias for _, alias in pairs], argument="columns")
        if pairs == self.selected_columns:
            return self
        return replace(self, selected_columns=pairs)

    def process(self, reader: "Reader") -> "RecordSet":
        """Compile this statement against ``reader``'s records."""
        return compile_statement(self, reader)
