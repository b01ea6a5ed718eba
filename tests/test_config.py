"""
Configuration & helpers: test_config.py

config.py:
  - ReaderConfig defaults match the documented values
  - CSVQUERY_* environment variables are read at construction time
  - Explicit keyword arguments win over the environment
  - Control characters must be exactly one character (escape may be empty)
  - sample_size must be >= 1
  - detects_encoding is True only for "auto" (any case)

csv_dialect.py:
  - dialect_name is stable and derived from the control characters
  - register_dialect is idempotent and the registered dialect matches config

exceptions.py:
  - ValidationError is a ValueError; all errors share CsvQueryError
  - str() renders argument / offset / source / stage context

validation.py:
  - filter_offset / filter_limit accept their documented ranges only
  - bool is rejected as an integer
  - is_flat_header / validate_header enforce the header-shape invariant

encoding.py:
  - normalize_charset resolves aliases and rejects blank/unknown labels
  - convert is a no-op for UTF-8 and non-string values
  - convert recovers surrogate-escaped bytes in the conversion charset
  - detect_encoding falls back to utf-8 on an empty sample
"""

from __future__ import annotations

import csv

import pytest

from csvquery.configs.config import AUTO_ENCODING, KNOWN_BOMS, BOM_UTF8, BOM_UTF32_LE, ReaderConfig
from csvquery.configs.csv_dialect import dialect_name, get_dialect, register_dialect
from csvquery.configs.exceptions import CallbackError, CsvQueryError, StructuralError, ValidationError
from csvquery.utils.encoding import convert, detect_encoding, is_canonical, normalize_charset
from csvquery.utils.validation import filter_limit, filter_offset, is_flat_header, validate_header


ENV_KEYS = (
    "CSVQUERY_DELIMITER",
    "CSVQUERY_ENCLOSURE",
    "CSVQUERY_ESCAPE",
    "CSVQUERY_STRICT",
    "CSVQUERY_INPUT_ENCODING",
    "CSVQUERY_CONVERSION_ENCODING",
    "CSVQUERY_TABLE_CLASS",
    "CSVQUERY_SAMPLE_SIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


# ============================================================================
# config.py
# ============================================================================

class TestReaderConfig:
    def test_defaults(self):
        cfg = ReaderConfig()
        assert cfg.delimiter == ","
        assert cfg.enclosure == '"'
        assert cfg.escape == ""
        assert cfg.strict is False
        assert cfg.input_encoding == "utf-8"
        assert cfg.record_padding_value is None
        assert cfg.conversion_input_encoding == "utf-8"
        assert cfg.use_header_on_xml_conversion is True
        assert cfg.table_class == "table-csv-data"
        assert cfg.sample_size == 4096

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CSVQUERY_DELIMITER", ";")
        monkeypatch.setenv("CSVQUERY_STRICT", "yes")
        monkeypatch.setenv("CSVQUERY_SAMPLE_SIZE", "128")
        monkeypatch.setenv("CSVQUERY_TABLE_CLASS", "report")
        cfg = ReaderConfig()
        assert cfg.delimiter == ";"
        assert cfg.strict is True
        assert cfg.sample_size == 128
        assert cfg.table_class == "report"

    def test_keyword_beats_environment(self, monkeypatch):
        monkeypatch.setenv("CSVQUERY_DELIMITER", ";")
        assert ReaderConfig(delimiter="|").delimiter == "|"

    @pytest.mark.parametrize("field", ["delimiter", "enclosure"])
    @pytest.mark.parametrize("value", ["", ";;"])
    def test_control_must_be_single_char(self, field, value):
        with pytest.raises(ValidationError) as exc:
            ReaderConfig(**{field: value})
        assert exc.value.argument == field

    def test_escape_may_be_empty(self):
        assert ReaderConfig(escape="").escape == ""
        assert ReaderConfig(escape="\\").escape == "\\"

    def test_escape_rejects_two_chars(self):
        with pytest.raises(ValidationError):
            ReaderConfig(escape="\\\\")

    def test_sample_size_positive(self):
        with pytest.raises(ValidationError):
            ReaderConfig(sample_size=0)

    def test_detects_encoding(self):
        assert ReaderConfig(input_encoding=AUTO_ENCODING).detects_encoding
        assert ReaderConfig(input_encoding="AUTO").detects_encoding
        assert not ReaderConfig().detects_encoding

    def test_known_boms_longest_first(self):
        assert KNOWN_BOMS.index(BOM_UTF32_LE) < KNOWN_BOMS.index(b"\xff\xfe")
        assert BOM_UTF8 in KNOWN_BOMS


# ============================================================================
# csv_dialect.py
# ============================================================================

class TestDialect:
    def test_name_default(self):
        assert dialect_name(ReaderConfig()) == "csvquery_2c_22_none_lenient"

    def test_name_changes_with_controls(self):
        assert dialect_name(ReaderConfig(delimiter=";")) != dialect_name(ReaderConfig())
        assert dialect_name(ReaderConfig(strict=True)).endswith("_strict")

    def test_get_dialect_attributes(self):
        dialect = get_dialect(ReaderConfig(delimiter="|", escape="\\"))
        assert dialect.delimiter == "|"
        assert dialect.quotechar == '"'
        assert dialect.escapechar == "\\"
        assert dialect.doublequote is True

    def test_register_idempotent(self):
        cfg = ReaderConfig(delimiter="\t")
        first = register_dialect(cfg)
        second = register_dialect(cfg)
        assert first == second
        assert csv.get_dialect(first).delimiter == "\t"


# ============================================================================
# exceptions.py
# ============================================================================

class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(ValidationError, CsvQueryError)
        assert issubclass(ValidationError, ValueError)
        assert issubclass(StructuralError, CsvQueryError)
        assert issubclass(CallbackError, CsvQueryError)

    def test_validation_str(self):
        err = ValidationError("bad offset", argument="offset", value=-1)
        assert str(err) == "bad offset | offset=-1"

    def test_validation_str_without_argument(self):
        assert str(ValidationError("bad")) == "bad"

    def test_structural_str(self):
        err = StructuralError("no header", source_path="a.csv", offset=3)
        assert str(err) == "no header | offset=3 source=a.csv"

    def test_callback_str(self):
        err = CallbackError("boom", stage="where")
        assert str(err) == "boom | stage=where"


# ============================================================================
# validation.py
# ============================================================================

class TestFilters:
    @pytest.mark.parametrize("value", [0, 1, 500])
    def test_offset_accepts(self, value):
        assert filter_offset(value) == value

    @pytest.mark.parametrize("value", [-1, "1", 1.0, True, None])
    def test_offset_rejects(self, value):
        with pytest.raises(ValidationError):
            filter_offset(value)

    @pytest.mark.parametrize("value", [-1, 0, 10])
    def test_limit_accepts(self, value):
        assert filter_limit(value) == value

    @pytest.mark.parametrize("value", [-2, False, "3"])
    def test_limit_rejects(self, value):
        with pytest.raises(ValidationError):
            filter_limit(value)


class TestHeaderShape:
    def test_empty_is_flat(self):
        assert is_flat_header([])

    def test_unique_strings_are_flat(self):
        assert is_flat_header(["a", "b"])

    @pytest.mark.parametrize("header", [["a", "a"], ["a", ""], ["a", None], [1, 2]])
    def test_not_flat(self, header):
        assert not is_flat_header(header)

    def test_validate_returns_list(self):
        assert validate_header(("x", "y")) == ["x", "y"]

    def test_validate_rejects_string(self):
        with pytest.raises(ValidationError):
            validate_header("xy")

    def test_validate_rejects_duplicates(self):
        with pytest.raises(ValidationError) as exc:
            validate_header(["a", "a"], argument="columns")
        assert exc.value.argument == "columns"


# ============================================================================
# encoding.py
# ============================================================================

class TestEncoding:
    def test_normalize_aliases(self):
        assert normalize_charset("UTF_8") == "utf-8"
        assert normalize_charset(" utf8 ") == "utf-8"
        assert normalize_charset("latin-1") == "iso8859-1"

    @pytest.mark.parametrize("label", ["", "   ", "no-such-charset", None])
    def test_normalize_rejects(self, label):
        with pytest.raises(ValidationError):
            normalize_charset(label)

    def test_is_canonical(self):
        assert is_canonical("UTF-8")
        assert not is_canonical("latin-1")

    def test_convert_noop_for_utf8(self):
        assert convert("Montr\udce9al", "utf-8") == "Montr\udce9al"

    def test_convert_non_string_unchanged(self):
        assert convert(None, "latin-1") is None
        assert convert(3, "latin-1") == 3

    def test_convert_recovers_escaped_bytes(self):
        raw = "Montréal".encode("latin-1")
        escaped = raw.decode("utf-8", errors="surrogateescape")
        assert convert(escaped, "latin-1") == "Montréal"

    def test_detect_empty_sample(self):
        assert detect_encoding(b"") == "utf-8"

    def test_detect_returns_known_codec(self):
        sample = ("name,city\n" + "Zoë,Montréal\n" * 20).encode("utf-8")
        assert detect_encoding(sample) == "utf-8"
