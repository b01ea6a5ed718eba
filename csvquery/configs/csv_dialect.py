"""
CSV dialect configuration for csvquery.

Builds a ``csv.Dialect`` subclass from a ``ReaderConfig`` and registers it
with the ``csv`` module under a name derived from its control characters,
so every reader sharing the same controls shares the same dialect.

Usage:
    import csv
    from csvquery.configs.csv_dialect import register_dialect

    name = register_dialect(config)
    reader = csv.reader(f, dialect=name)

BOM Handling:
    The dialect does not handle byte-order marks. The raw source reports the
    detected BOM and the record normalizer strips it from the first field of
    the first row.
"""

from __future__ import annotations

import csv

from csvquery.configs.config import ReaderConfig

DIALECT_PREFIX: str = "csvquery"


def dialect_name(config: ReaderConfig) -> str:
    """Return the registry name for the dialect matching ``config``."""
    return "{}_{:x}_{:x}_{}_{}".format(
        DIALECT_PREFIX,
        ord(config.delimiter),
        ord(config.enclosure),
        f"{ord(config.escape):x}" if config.escape else "none",
        "strict" if config.strict else "lenient",
    )


def get_dialect(config: ReaderConfig) -> type[csv.Dialect]:
    """Return a dialect class for ``config`` without registering it."""

    class CsvQueryDialect(csv.excel):
        delimiter = config.delimiter
        quotechar = config.enclosure
        escapechar = config.escape or None
        doublequote = True
        strict = config.strict
        skipinitialspace = False

    return CsvQueryDialect


def register_dialect(config: ReaderConfig) -> str:
    """
    Register the dialect for ``config`` and return its name.

    Already-registered names are left alone, so every reader may call this.
    """
    name = dialect_name(config)
    if name not in csv.list_dialects():
        csv.register_dialect(name, get_dialect(config))
    return name
