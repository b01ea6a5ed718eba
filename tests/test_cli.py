"""
Pipeline helper & CLI: test_cli.py

pipeline.py:
  - run() returns records and header for a clean file
  - Structural and callback failures are returned in result.error
  - Validation errors propagate
  - export() renders json / xml / html; unknown format rejected

cli.py:
  - show / xml / html / count / delimiters print to stdout, exit 0
  - --offset / --limit / --columns shape the output
  - --columns without --header-offset selects by position
  - --delimiter and CSVQUERY_DELIMITER select the separator
  - Missing file or bad header → exit 1
  - Bad argument value or unknown column → exit 2
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from csvquery import cli
from csvquery.configs.exceptions import CallbackError, StructuralError, ValidationError
from csvquery.pipeline import export, run
from csvquery.query.statement import Statement


# ============================================================================
# Helpers
# ============================================================================

def write_csv(path: Path, rows: list[list[str]], delimiter: str = ",") -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, delimiter=delimiter)
        for row in rows:
            writer.writerow(row)
    return path


@pytest.fixture
def contacts(tmp_path) -> Path:
    return write_csv(
        tmp_path / "contacts.csv",
        [["name", "age"], ["Ann", "30"], ["Bo", "25"], ["Cy", "41"]],
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CSVQUERY_DELIMITER", raising=False)
    monkeypatch.delenv("CSVQUERY_INPUT_ENCODING", raising=False)


# ============================================================================
# pipeline.py
# ============================================================================

class TestPipeline:
    def test_run(self, contacts):
        result = run(contacts, header_offset=0)
        assert result.success
        assert result.header == ["name", "age"]
        assert result.records[0] == {"name": "Ann", "age": "30"}
        assert len(result.records) == 3

    def test_run_with_statement(self, contacts):
        stmt = Statement().where(lambda r: int(r["age"]) > 26).columns(["name"])
        result = run(contacts, stmt, header_offset=0)
        assert result.records == [{"name": "Ann"}, {"name": "Cy"}]
        assert result.header == ["name"]

    def test_missing_file(self, tmp_path):
        result = run(tmp_path / "nope.csv")
        assert not result.success
        assert isinstance(result.error, StructuralError)

    def test_duplicate_header(self, tmp_path):
        path = write_csv(tmp_path / "dup.csv", [["a", "a"], ["1", "2"]])
        result = run(path, header_offset=0)
        assert isinstance(result.error, StructuralError)
        assert result.records == []

    def test_callback_error(self, contacts):
        stmt = Statement().where(lambda r: r["missing"])
        result = run(contacts, stmt, header_offset=0)
        assert isinstance(result.error, CallbackError)

    def test_validation_error_propagates(self, contacts):
        with pytest.raises(ValidationError):
            run(contacts, Statement().columns(["nope"]), header_offset=0)

    def test_export_formats(self, contacts):
        assert json.loads(export(contacts, "json", header_offset=0).output)[1] == {"name": "Bo", "age": "25"}
        assert export(contacts, "xml", header_offset=0).output.startswith("<csv><row><cell>name</cell>")
        assert export(contacts, "html", header_offset=0).output.startswith('<table class="table-csv-data">')

    def test_export_unknown_format(self, contacts):
        with pytest.raises(ValidationError):
            export(contacts, "yaml")


# ============================================================================
# cli.py
# ============================================================================

class TestCli:
    def test_show(self, contacts, capsys):
        assert cli.main(["show", str(contacts), "--header-offset", "0"]) == 0
        records = json.loads(capsys.readouterr().out)
        assert records[2] == {"name": "Cy", "age": "41"}

    def test_show_window_and_columns(self, contacts, capsys):
        code = cli.main([
            "show", str(contacts), "--header-offset", "0",
            "--offset", "1", "--limit", "1", "--columns", "name",
        ])
        assert code == 0
        assert json.loads(capsys.readouterr().out) == [{"name": "Bo"}]

    def test_show_positional(self, contacts, capsys):
        assert cli.main(["show", str(contacts), "--limit", "1"]) == 0
        assert json.loads(capsys.readouterr().out) == [["name", "age"]]

    def test_show_columns_without_header(self, contacts, capsys):
        assert cli.main(["show", str(contacts), "--columns", "1", "--limit", "2"]) == 0
        assert json.loads(capsys.readouterr().out) == [{"1": "age"}, {"1": "30"}]

    def test_named_column_without_header(self, contacts):
        assert cli.main(["show", str(contacts), "--columns", "name"]) == 2

    def test_xml(self, contacts, capsys):
        assert cli.main(["xml", str(contacts), "--header-offset", "0", "--limit", "0"]) == 0
        assert capsys.readouterr().out.strip() == "<csv><row><cell>name</cell><cell>age</cell></row></csv>"

    def test_html(self, contacts, capsys):
        assert cli.main(["html", str(contacts), "--header-offset", "0"]) == 0
        assert '<table class="table-csv-data">' in capsys.readouterr().out

    def test_count(self, contacts, capsys):
        assert cli.main(["count", str(contacts), "--header-offset", "0"]) == 0
        assert capsys.readouterr().out.strip() == "3"

    def test_delimiter_flag(self, tmp_path, capsys):
        path = write_csv(tmp_path / "semi.csv", [["a", "b"], ["1", "2"]], delimiter=";")
        assert cli.main(["show", str(path), "--header-offset", "0", "--delimiter", ";"]) == 0
        assert json.loads(capsys.readouterr().out) == [{"a": "1", "b": "2"}]

    def test_delimiter_env(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("CSVQUERY_DELIMITER", ";")
        path = write_csv(tmp_path / "semi.csv", [["a", "b"], ["1", "2"]], delimiter=";")
        assert cli.main(["count", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "2"

    def test_delimiters(self, tmp_path, capsys):
        path = write_csv(tmp_path / "semi.csv", [["a", "b", "c"]], delimiter=";")
        assert cli.main(["delimiters", str(path), "--candidates", ",;"]) == 0
        assert json.loads(capsys.readouterr().out) == {";": 3, ",": 0}

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main(["show", str(tmp_path / "nope.csv")]) == 1
        assert "nope.csv" in capsys.readouterr().err

    def test_missing_file_delimiters(self, tmp_path):
        assert cli.main(["delimiters", str(tmp_path / "nope.csv")]) == 1

    def test_missing_header_row(self, contacts):
        assert cli.main(["count", str(contacts), "--header-offset", "10"]) == 1

    def test_bad_offset(self, contacts, capsys):
        assert cli.main(["show", str(contacts), "--offset", "-1"]) == 2
        assert "offset" in capsys.readouterr().err

    def test_unknown_column(self, contacts):
        assert cli.main(["show", str(contacts), "--header-offset", "0", "--columns", "nope"]) == 2

    def test_bad_delimiter(self, contacts):
        assert cli.main(["show", str(contacts), "--delimiter", ";;"]) == 2

    def test_argparse_error(self):
        with pytest.raises(SystemExit) as exc:
            cli.main(["show"])
        assert exc.value.code == 2
