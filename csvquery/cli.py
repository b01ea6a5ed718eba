"""
csvquery — query a CSV document from the command line.

Environment variables read (a ``.env`` file in the working directory is
loaded first, without overriding variables already set):
    CSVQUERY_DELIMITER            Field separator (default ``,``)
    CSVQUERY_ENCLOSURE            Quote character (default ``"``)
    CSVQUERY_ESCAPE               Escape character (default: none)
    CSVQUERY_STRICT               ``true`` to reject malformed quoting
    CSVQUERY_INPUT_ENCODING       Input charset, or ``auto`` to detect it
    CSVQUERY_CONVERSION_ENCODING  Charset exported values are converted from
    CSVQUERY_TABLE_CLASS          ``class`` attribute of the HTML table
    CSVQUERY_SAMPLE_SIZE          Bytes inspected when detecting the charset

Commands:
    show        Print the selected records as JSON.
    xml         Print the selected records as an XML document.
    html        Print the selected records as an HTML table.
    count       Print the number of selected records.
    delimiters  Print how many cells each candidate delimiter produces.

Usage examples:
    csvquery show contacts.csv --header-offset 0 --offset 10 --limit 5
    csvquery html contacts.csv --header-offset 0 --columns name,email
    csvquery delimiters export.txt --candidates ",;|" --nb-records 5

Exit codes:
    0  Success
    1  Structural or callback error (unreadable document, bad header)
    2  Configuration / argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from csvquery.configs.config import ReaderConfig
from csvquery.configs.exceptions import StructuralError, ValidationError
from csvquery.discovery.csv_reader import CSVReader
from csvquery.pipeline import PipelineResult, export, run
from csvquery.query.statement import Statement


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Config: CLI flags over environment over ReaderConfig defaults
# ---------------------------------------------------------------------------

def _build_config(args: argparse.Namespace) -> ReaderConfig:
    """
    Priority order for each setting:
      1. CLI flag (--delimiter, --encoding)
      2. Environment variable (read by ReaderConfig itself)
      3. ReaderConfig default
    """
    kwargs: dict = {}
    if getattr(args, "delimiter", None) is not None:
        kwargs["delimiter"] = args.delimiter
    if getattr(args, "encoding", None) is not None:
        kwargs["input_encoding"] = args.encoding
    return ReaderConfig(**kwargs)


def _build_statement(args: argparse.Namespace) -> Statement:
    statement = Statement().offset(args.offset).limit(args.limit)
    if args.columns:
        statement = statement.columns([name.strip() for name in args.columns.split(",")])
    return statement


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _report(result: PipelineResult) -> int:
    if result.success:
        return 0
    print(f"✗ {result.source_path} — {result.error}", file=sys.stderr)
    return 1


def _cmd_show(args: argparse.Namespace) -> int:
    return _cmd_export(args, "json")


def _cmd_xml(args: argparse.Namespace) -> int:
    return _cmd_export(args, "xml")


def _cmd_html(args: argparse.Namespace) -> int:
    return _cmd_export(args, "html")


def _cmd_export(args: argparse.Namespace, fmt: str) -> int:
    result = export(
        source_path=args.source,
        fmt=fmt,
        statement=_build_statement(args),
        config=_build_config(args),
        header_offset=args.header_offset,
    )
    if result.success:
        print(result.output)
    return _report(result)


def _cmd_count(args: argparse.Namespace) -> int:
    result = run(
        source_path=args.source,
        statement=_build_statement(args),
        config=_build_config(args),
        header_offset=args.header_offset,
    )
    if result.success:
        print(len(result.records))
    return _report(result)


def _cmd_delimiters(args: argparse.Namespace) -> int:
    with CSVReader.from_path(args.source, config=_build_config(args)) as source:
        counts = source.fetch_delimiters_occurrence(list(args.candidates), args.nb_records)
    print(json.dumps(counts, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Argument parser (importable for tests)
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvquery",
        description="Filter, page and export CSV documents",
        epilog="Reader settings fall back to CSVQUERY_* environment variables or a .env file.",
    )
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    def _source_args(p):
        p.add_argument("source")
        p.add_argument("--delimiter", default=None)
        p.add_argument("--encoding", default=None, help="Input charset, or 'auto'")

    def _query_args(p):
        p.add_argument("--header-offset", type=int, default=None, dest="header_offset")
        p.add_argument("--offset", type=int, default=0)
        p.add_argument("--limit", type=int, default=-1)
        p.add_argument("--columns", default=None, help="Comma-separated column names")

    for name, help_text in (
        ("show", "Print records as JSON"),
        ("xml", "Print records as XML"),
        ("html", "Print records as an HTML table"),
        ("count", "Print the number of records"),
    ):
        p = sub.add_parser(name, help=help_text)
        _source_args(p)
        _query_args(p)

    p_delim = sub.add_parser("delimiters", help="Count cells per candidate delimiter")
    _source_args(p_delim)
    p_delim.add_argument("--candidates", default=",;\t|")
    p_delim.add_argument("--nb-records", type=int, default=1, dest="nb_records")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

HANDLERS = {
    "show": _cmd_show,
    "xml": _cmd_xml,
    "html": _cmd_html,
    "count": _cmd_count,
    "delimiters": _cmd_delimiters,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    try:
        return HANDLERS[args.command](args)
    except ValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except StructuralError as e:
        print(f"✗ {args.source} — {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
