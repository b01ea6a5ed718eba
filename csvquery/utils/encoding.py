"""
Charset helpers: label normalization, detection and per-field transcoding.

The raw source decodes bytes with ``errors="surrogateescape"``, so bytes
that are not valid in the input charset survive as lone surrogates instead
of being lost. ``convert`` re-encodes such text back to the original bytes
and decodes them with the charset the caller says the document really
uses. For the canonical charset it is a no-op.

Usage::

    from csvquery.utils.encoding import convert, detect_encoding

    detect_encoding(b"name,city\\nPaul,Montr\\xe9al\\n")   # e.g. "cp1252"
    convert("Montr\\udce9al", "latin-1")                  # "Montréal"
"""

from __future__ import annotations

import codecs
import logging
from typing import Any

from charset_normalizer import from_bytes

from csvquery.configs.config import CANONICAL_CHARSET
from csvquery.configs.exceptions import ValidationError

logger = logging.getLogger(__name__)

_CANONICAL_CODEC = codecs.lookup(CANONICAL_CHARSET).name


def normalize_charset(label: str) -> str:
    """
    Resolve a charset label to its codec name (``"UTF_8"`` → ``"utf-8"``).

    Raises:
        ValidationError: If ``label`` is blank or unknown to the codec registry.
    """
    cleaned = label.strip().replace("_", "-") if isinstance(label, str) else ""
    if not cleaned:
        raise ValidationError("you should use a valid charset", argument="charset", value=label)
    try:
        return codecs.lookup(cleaned).name
    except LookupError as e:
        raise ValidationError(
            f"Unknown charset {cleaned!r}", argument="charset", value=label
        ) from e


def is_canonical(charset: str) -> bool:
    """True when ``charset`` denotes UTF-8 (any alias or spelling)."""
    return normalize_charset(charset) == _CANONICAL_CODEC


def convert(value: Any, from_charset: str) -> Any:
    """
    Convert a single field to canonical text.

    Non-string values (e.g. ``None`` padding) are returned unchanged.
    """
    if not isinstance(value, str) or is_canonical(from_charset):
        return value
    raw = value.encode(CANONICAL_CHARSET, errors="surrogateescape")
    return raw.decode(normalize_charset(from_charset), errors="replace")


def detect_encoding(sample: bytes) -> str:
    """
    Best-effort charset detection using charset-normalizer.

    Returns the canonical charset when the sample is empty or no match is
    found.
    """
    if not sample:
        return _CANONICAL_CODEC
    match = from_bytes(sample).best()
    if match is None:
        logger.debug("No charset match for %d byte sample; using %s", len(sample), _CANONICAL_CODEC)
        return _CANONICAL_CODEC
    detected = normalize_charset(match.encoding)
    logger.debug("Detected charset %s from %d byte sample", detected, len(sample))
    return detected
