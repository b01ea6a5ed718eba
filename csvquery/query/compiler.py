"""
Statement compiler.

Turns a ``Statement`` plus a ``Reader`` into a ``RecordSet``. The stage
order is fixed; reordering changes the result:

  1. Effective header: the statement's override if set (records re-keyed
     positionally against it, padded/truncated), else the reader's header.
  2. Filters: every predicate must hold, evaluated lazily per record.
  3. Ordering: only when comparators exist; materializes the stream.
  4. Window: skip ``start`` records, keep at most ``length``.
  5. Column selection, when requested. Without a header the selected
     keys must be ordinals.

Nothing is pulled from the source here; work happens when the returned
``RecordSet`` is consumed, which is also where ``CallbackError`` surfaces.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from csvquery.configs.exceptions import ValidationError
from csvquery.results.field_key import Position, resolve_field_key
from csvquery.results.record_set import RecordSet
from csvquery.transformers.stages import (
    FilterStage,
    ProjectStage,
    RecordStage,
    RekeyStage,
    SortStage,
    WindowStage,
    run_stages,
)

if TYPE_CHECKING:
    from csvquery.query.statement import Statement
    from csvquery.reader import Reader

logger = logging.getLogger(__name__)


def build_stages(
    statement: "Statement",
    source_header: Sequence[str],
    padding: Any = None,
) -> tuple[list[str], list[RecordStage]]:
    """
    Return the effective header and the ordered stage chain for ``statement``.

    Raises:
        ValidationError: If a selected column is not in the effective header.
    """
    header = list(source_header)
    stages: list[RecordStage] = []

    if statement.header_names is not None:
        header = list(statement.header_names)
        stages.append(RekeyStage(header, padding))

    if statement.filters:
        stages.append(FilterStage(statement.filters))

    if statement.comparators:
        stages.append(SortStage(statement.comparators))

    if statement.start or statement.length != -1:
        stages.append(WindowStage(statement.start, statement.length))

    if statement.selected_columns:
        aliases = _resolve_columns(statement.selected_columns, header)
        stages.append(ProjectStage(aliases))
        header = list(aliases.values())

    return header, stages


def compile_statement(statement: "Statement", reader: "Reader") -> RecordSet:
    """
    Compile ``statement`` against ``reader`` into a single-pass ``RecordSet``.

    Raises:
        StructuralError: If the reader's header row is missing.
        ValidationError: If a selected column is unknown.
    """
    header, stages = build_stages(statement, reader.header, reader.record_padding_value)
    logger.debug("Compiled statement into %d stage(s): %s", len(stages), stages)
    records = run_stages(stages, reader.records())
    return RecordSet(records, header, config=reader.config)


def _resolve_columns(selected: Sequence[tuple[Any, str]], header: Sequence[str]) -> dict[Any, str]:
    if not header:
        # Positional records: every selected key must be an ordinal.
        aliases: dict[Any, str] = {}
        for key, alias in selected:
            resolved = resolve_field_key(key, header, argument="columns")
            if not isinstance(resolved, Position):
                raise ValidationError(
                    f"The column {key!r} cannot address a record without a header",
                    argument="columns",
                    value=key,
                )
            aliases[resolved.value] = alias
        return aliases

    missing = [key for key, _ in selected if key not in header]
    if missing:
        raise ValidationError(
            f"The following column(s) do not exist in the CSV document: {missing}",
            argument="columns",
            value=missing,
        )
    return dict(selected)
