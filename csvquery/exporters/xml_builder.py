"""
Tree and table document builders.

Mechanical only: the caller decides which rows appear and in what order;
these helpers wrap each row in a row element and each value in a cell
element. ``None`` values become empty cells.

Usage::

    tree = build_tree(records, ["name", "age"])
    ET.tostring(tree.getroot(), encoding="unicode")
    # <csv><row><cell>name</cell><cell>age</cell></row><row>...</row></csv>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Iterable, Optional, Sequence


def build_tree(
    rows: Iterable[Any],
    header: Optional[Sequence[str]] = None,
    root_name: str = "csv",
    row_name: str = "row",
    cell_name: str = "cell",
) -> ET.ElementTree:
    """
    Build ``<root><row><cell/>...</row>...</root>``.

    Args:
        rows:   Records (mappings, emitted in value order) or plain sequences.
        header: Emitted as the first row when not empty.
    """
    root = ET.Element(root_name)
    if header:
        _append_row(root, header, row_name, cell_name)
    for row in rows:
        values = row.values() if isinstance(row, dict) else row
        _append_row(root, values, row_name, cell_name)
    return ET.ElementTree(root)


def render_table(tree: ET.ElementTree, class_attr: str) -> str:
    """Set ``class`` on the root element and serialize the tree as HTML."""
    root = tree.getroot()
    root.set("class", class_attr)
    return ET.tostring(root, encoding="unicode", method="html")


def _append_row(parent: ET.Element, values: Iterable[Any], row_name: str, cell_name: str) -> None:
    row = ET.SubElement(parent, row_name)
    for value in values:
        cell = ET.SubElement(row, cell_name)
        cell.text = "" if value is None else str(value)
