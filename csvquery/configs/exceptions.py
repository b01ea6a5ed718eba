"""
Custom exceptions for the csvquery record pipeline.

Hierarchy:
    CsvQueryError
    ├── ValidationError   Caller supplied a bad argument (offset, limit, header,
    │                     column key, charset, control character).
    ├── StructuralError   The document itself is unusable: header row absent or
    │                     empty, header not a flat list of unique strings,
    │                     malformed CSV, unreadable source.
    └── CallbackError     A caller-supplied filter or comparator raised.

All three abort the operation in progress; nothing is retried.
"""

from __future__ import annotations

from typing import Any, Callable


class CsvQueryError(Exception):
    """Base class for all csvquery errors."""


class ValidationError(CsvQueryError, ValueError):
    """
    Raised when a caller-supplied value is out of range or malformed.

    Args:
        message: Human-readable description of the failure.
        argument: Name of the offending argument, if known.
        value: The rejected value.
    """

    def __init__(self, message: str, argument: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.argument = argument
        self.value = value

    def __str__(self) -> str:
        base = super().__str__()
        if self.argument:
            return f"{base} | {self.argument}={self.value!r}"
        return base


class StructuralError(CsvQueryError):
    """
    Raised when the CSV document cannot be read as a record sequence.

    Args:
        message: Human-readable description.
        source_path: Path of the document, when it came from a file.
        offset: Zero-based row position where the problem was detected.
    """

    def __init__(
        self,
        message: str,
        source_path: str | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.source_path = source_path
        self.offset = offset

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if self.source_path:
            parts.append(f"source={self.source_path}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class CallbackError(CsvQueryError):
    """
    Raised when a ``where`` predicate or ``order_by`` comparator fails.

    The original exception is chained as ``__cause__``.

    Args:
        message: Human-readable description.
        callback: The callable that raised.
        stage: ``"where"`` or ``"order_by"``.
    """

    def __init__(
        self,
        message: str,
        callback: Callable[..., Any] | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message)
        self.callback = callback
        self.stage = stage

    def __str__(self) -> str:
        base = super().__str__()
        if self.stage:
            return f"{base} | stage={self.stage}"
        return base
