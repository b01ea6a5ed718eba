"""
Pipeline helper for one CSV document.

Wires the stages in order and turns structural and callback failures into
a ``PipelineResult`` instead of an exception. This is the single callable
the CLI invokes.

Stage order:
  1. Open source  → detect BOM and charset
  2. Resolve header at ``header_offset``
  3. Process the statement → ``RecordSet``
  4. Materialize the records (or render them, for ``export``)

Error policy:
  - ``StructuralError`` / ``CallbackError`` → logged, returned in
    ``PipelineResult.error``; ``records`` stays empty.
  - ``ValidationError`` → propagates. It is a caller mistake (bad offset,
    unknown column), not a property of the document.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from csvquery.configs.config import ReaderConfig
from csvquery.configs.exceptions import CallbackError, StructuralError, ValidationError
from csvquery.query.statement import Statement
from csvquery.reader import Reader
from csvquery.results.record_set import RecordSet
from csvquery.transformers.normalizers import Record

logger = logging.getLogger(__name__)

EXPORT_FORMATS: tuple[str, ...] = ("json", "xml", "html")


# ---------------------------------------------------------------------------
# Result object
# ---------------------------------------------------------------------------

@dataclass
class PipelineResult:
    """
    Summary of a single document's run.

    Attributes:
        source_path: Path of the CSV that was processed.
        header:      Effective header of the result (``[]`` when positional).
        records:     Materialized records, empty on error.
        output:      Rendered document (``export`` only).
        error:       The structural or callback error that stopped the run.
    """
    source_path: Path
    header: list[str] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    output: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def run(
    source_path: Path | str,
    statement: Optional[Statement] = None,
    config: Optional[ReaderConfig] = None,
    header_offset: Optional[int] = None,
) -> PipelineResult:
    """
    Process ``statement`` against the CSV at ``source_path``.

    Returns:
        ``PipelineResult`` with the records, or with ``error`` set.

    Raises:
        ValidationError: For bad statement arguments (e.g. an unknown column).
    """
    source_path = Path(source_path)
    statement = statement or Statement()
    result = PipelineResult(source_path=source_path)

    try:
        with Reader.from_path(source_path, config=config, header_offset=header_offset) as reader:
            record_set = statement.process(reader)
            result.header = record_set.header
            result.records = record_set.to_mapping()
    except (StructuralError, CallbackError) as e:
        return _fail(result, e)

    logger.info(
        "Processed %s: %d record(s), header=%s",
        source_path.name, len(result.records), result.header or "<positional>",
    )
    return result


def export(
    source_path: Path | str,
    fmt: str = "json",
    statement: Optional[Statement] = None,
    config: Optional[ReaderConfig] = None,
    header_offset: Optional[int] = None,
) -> PipelineResult:
    """
    Process ``statement`` and render the result as ``json``, ``xml`` or ``html``.

    Raises:
        ValidationError: If ``fmt`` is unknown, or for bad statement arguments.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f"Unknown export format, expected one of {EXPORT_FORMATS}", argument="fmt", value=fmt)

    source_path = Path(source_path)
    statement = statement or Statement()
    result = PipelineResult(source_path=source_path)

    try:
        with Reader.from_path(source_path, config=config, header_offset=header_offset) as reader:
            record_set = statement.process(reader)
            result.header = record_set.header
            result.output = _render(record_set, fmt)
    except (StructuralError, CallbackError) as e:
        return _fail(result, e)

    logger.info("Exported %s as %s", source_path.name, fmt)
    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _render(record_set: RecordSet, fmt: str) -> str:
    if fmt == "json":
        return record_set.to_json(indent=2)
    if fmt == "html":
        return record_set.as_table()
    return ET.tostring(record_set.to_tree().getroot(), encoding="unicode")


def _fail(result: PipelineResult, error: Exception) -> PipelineResult:
    result.error = error
    result.records = []
    logger.error("Failed to process %s: %s", result.source_path.name, error)
    return result
