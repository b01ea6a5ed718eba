"""
Pipeline stages over record streams.

Every stage takes a finite, non-restartable iterator of records and returns
another one. All stages are lazy except ``SortStage``: multi-key ordering
needs every candidate at once, so it pulls the whole upstream before
yielding its first record. ``materializes`` makes that explicit, so the
compiler (and tests) can tell which stage forecloses early termination.

Stage order is fixed by ``query.compiler``:
    RekeyStage → FilterStage → SortStage → WindowStage → ProjectStage
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import cmp_to_key
from itertools import islice
from typing import Any, Callable, Iterator, Mapping, Sequence

from csvquery.configs.exceptions import CallbackError
from csvquery.transformers.normalizers import Record, combine, index_record

logger = logging.getLogger(__name__)

Predicate = Callable[[Record], Any]
Comparator = Callable[[Record, Record], int]


class RecordStage(ABC):
    """A lazy transformer from one record stream to another."""

    materializes: bool = False

    @abstractmethod
    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        """Return the transformed stream. Must not consume ``records`` eagerly."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RekeyStage(RecordStage):
    """Re-key every record positionally against a replacement header."""

    def __init__(self, header: Sequence[str], padding: Any = None) -> None:
        self.header = list(header)
        self.padding = padding

    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        for record in records:
            values = list(record.values())
            if self.header:
                yield combine(self.header, values, self.padding)
            else:
                yield index_record(values)


class FilterStage(RecordStage):
    """Keep records for which every predicate holds (logical AND, in order)."""

    def __init__(self, predicates: Sequence[Predicate]) -> None:
        self.predicates = tuple(predicates)

    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        for record in records:
            if all(self._test(predicate, record) for predicate in self.predicates):
                yield record

    @staticmethod
    def _test(predicate: Predicate, record: Record) -> bool:
        try:
            return bool(predicate(record))
        except Exception as e:
            raise CallbackError(
                f"where() predicate {_callable_name(predicate)} failed: {e}",
                callback=predicate,
                stage="where",
            ) from e


class SortStage(RecordStage):
    """
    Order records with a comparator chain.

    The first comparator returning non-zero decides. Records for which all
    comparators return zero keep no guaranteed relative order.
    """

    materializes = True

    def __init__(self, comparators: Sequence[Comparator]) -> None:
        self.comparators = tuple(comparators)

    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        buffered = list(records)
        logger.debug("Ordering stage materialized %d records", len(buffered))
        buffered.sort(key=cmp_to_key(self._compare))
        yield from buffered

    def _compare(self, left: Record, right: Record) -> int:
        for comparator in self.comparators:
            try:
                result = comparator(left, right)
            except Exception as e:
                raise CallbackError(
                    f"order_by() comparator {_callable_name(comparator)} failed: {e}",
                    callback=comparator,
                    stage="order_by",
                ) from e
            if result:
                return result
        return 0


class WindowStage(RecordStage):
    """Skip ``offset`` records, then yield at most ``limit`` (-1: no limit)."""

    def __init__(self, offset: int = 0, limit: int = -1) -> None:
        self.offset = offset
        self.limit = limit

    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        stop = None if self.limit == -1 else self.offset + self.limit
        return islice(records, self.offset, stop)


class ProjectStage(RecordStage):
    """Select and rename columns: ``{source_key: alias}``."""

    def __init__(self, aliases: Mapping[Any, str]) -> None:
        self.aliases = dict(aliases)

    def apply(self, records: Iterator[Record]) -> Iterator[Record]:
        for record in records:
            yield {alias: record.get(key) for key, alias in self.aliases.items()}


def run_stages(stages: Sequence[RecordStage], records: Iterator[Record]) -> Iterator[Record]:
    """Chain ``stages`` over ``records`` in order."""
    for stage in stages:
        records = stage.apply(records)
    return records


def _callable_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
