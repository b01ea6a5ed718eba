"""
Reader configuration.

Every reader setting lives in ``ReaderConfig``. Delimiters, charsets and
padding values are not hardcoded elsewhere.

Usage:
    from csvquery.configs.config import ReaderConfig
    cfg = ReaderConfig()                    # defaults (+ environment)
    cfg = ReaderConfig(delimiter=";")

Environment overrides (optional) are read when the config object is
constructed; this module does not load ``.env`` itself (the CLI does).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from csvquery.configs.exceptions import ValidationError


# Byte-order marks, longest first so UTF-32 LE wins over UTF-16 LE.
BOM_UTF32_BE: bytes = b"\x00\x00\xfe\xff"
BOM_UTF32_LE: bytes = b"\xff\xfe\x00\x00"
BOM_UTF16_BE: bytes = b"\xfe\xff"
BOM_UTF16_LE: bytes = b"\xff\xfe"
BOM_UTF8: bytes = b"\xef\xbb\xbf"

KNOWN_BOMS: tuple[bytes, ...] = (
    BOM_UTF32_BE,
    BOM_UTF32_LE,
    BOM_UTF8,
    BOM_UTF16_BE,
    BOM_UTF16_LE,
)

AUTO_ENCODING: str = "auto"
"""Sentinel ``input_encoding`` value: detect the charset from a byte sample."""

CANONICAL_CHARSET: str = "utf-8"


def _env_bool(key: str, default: str) -> bool:
    return os.environ.get(key, default).lower() in ("1", "true", "yes")


@dataclass(slots=True)
class ReaderConfig:
    """
    Runtime configuration for reading and exporting a CSV document.

    Attributes:
        delimiter: Field separator, exactly one character.
        enclosure: Quote character, exactly one character.
        escape: Escape character, one character or ``""`` to disable.
        strict: If True, the parser raises on malformed quoting instead of
            accepting it.
        input_encoding: Charset used to decode the raw bytes, or ``"auto"``
            to detect it with charset-normalizer.
        record_padding_value: Value used to right-pad records shorter than
            the header.
        conversion_input_encoding: Charset the exported values are converted
            from when building tree/mapping output.
        use_header_on_xml_conversion: Emit the header as the first row node
            of tree/table exports.
        table_class: Default ``class`` attribute of the HTML table export.
        sample_size: Number of leading bytes inspected when detecting the
            input charset.
    """

    delimiter: str = field(default_factory=lambda: os.environ.get("CSVQUERY_DELIMITER", ","))
    enclosure: str = field(default_factory=lambda: os.environ.get("CSVQUERY_ENCLOSURE", '"'))
    escape: str = field(default_factory=lambda: os.environ.get("CSVQUERY_ESCAPE", ""))
    strict: bool = field(default_factory=lambda: _env_bool("CSVQUERY_STRICT", "false"))
    input_encoding: str = field(
        default_factory=lambda: os.environ.get("CSVQUERY_INPUT_ENCODING", CANONICAL_CHARSET)
    )
    record_padding_value: Any = None
    conversion_input_encoding: str = field(
        default_factory=lambda: os.environ.get("CSVQUERY_CONVERSION_ENCODING", CANONICAL_CHARSET)
    )
    use_header_on_xml_conversion: bool = True
    table_class: str = field(
        default_factory=lambda: os.environ.get("CSVQUERY_TABLE_CLASS", "table-csv-data")
    )
    sample_size: int = field(
        default_factory=lambda: int(os.environ.get("CSVQUERY_SAMPLE_SIZE", "4096"))
    )

    def __post_init__(self) -> None:
        self.delimiter = _filter_control(self.delimiter, "delimiter")
        self.enclosure = _filter_control(self.enclosure, "enclosure")
        self.escape = _filter_control(self.escape, "escape", allow_empty=True)
        if self.sample_size < 1:
            raise ValidationError(
                "sample_size must be a positive integer",
                argument="sample_size",
                value=self.sample_size,
            )

    @property
    def detects_encoding(self) -> bool:
        """True when the input charset must be sniffed from the bytes."""
        return self.input_encoding.lower() == AUTO_ENCODING


def _filter_control(value: str, name: str, allow_empty: bool = False) -> str:
    """
    Validate a CSV control character.

    Raises:
        ValidationError: If ``value`` is not a single character
            (or empty, when ``allow_empty`` is set).
    """
    if allow_empty and value == "":
        return value
    if not isinstance(value, str) or len(value) != 1:
        raise ValidationError(
            f"The {name} character must be a single character",
            argument=name,
            value=value,
        )
    return value
