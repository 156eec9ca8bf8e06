"""Table conversion: Markdown table tokens to Notion table blocks.

The normalized table token produced by mistune's ``table`` plugin looks
like::

    {
        "type": "table",
        "children": [
            {"type": "table_head", "children": [table_cell, ...]},
            {"type": "table_body", "children": [
                {"type": "table_row", "children": [table_cell, ...]},
                ...
            ]},
        ]
    }

The resulting Notion block::

    {
        "object": "block",
        "type": "table",
        "table": {
            "table_width": <widest row>,
            "has_column_header": true,
            "has_row_header": false,
            "children": [
                {"object": "block", "type": "table_row",
                 "table_row": {"cells": [[<rich_text>], ...]}},
                ...
            ]
        }
    }

Rows are not padded: a row with fewer cells than the widest one keeps its
own length.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from notionport.config import NotionportConfig
from notionport.converter.rich_text import build_rich_text


def build_table(
    token: dict[str, Any],
    config: NotionportConfig,
    link_defs: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build a Notion table block from a table token.

    Parameters
    ----------
    token:
        Normalized table token with ``type="table"``.
    config:
        Configuration (rich-text limit).
    link_defs:
        Reference definitions in scope for links inside cells.

    Returns
    -------
    dict
        One ``table`` block holding one ``table_row`` child per source
        row, the header row first when present.  ``table_width`` is the
        largest cell count of any row, and at least 1.
    """
    rows: list[dict[str, Any]] = []
    has_header = False

    for child in token.get("children", []):
        child_type = child.get("type", "")

        if child_type == "table_head":
            has_header = True
            # mistune puts header cells directly under table_head
            rows.append(build_table_row(child, config, link_defs))

        elif child_type == "table_body":
            rows.extend(
                build_table_row(row, config, link_defs)
                for row in child.get("children", [])
                if row.get("type") == "table_row"
            )

        elif child_type == "table_row":
            rows.append(build_table_row(child, config, link_defs))

    table_width = max(
        [1] + [len(row["table_row"]["cells"]) for row in rows]
    )

    return {
        "object": "block",
        "type": "table",
        "table": {
            "table_width": table_width,
            "has_column_header": has_header,
            "has_row_header": False,
            "children": rows,
        },
    }


def build_table_row(
    token: dict[str, Any],
    config: NotionportConfig,
    link_defs: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Build one ``table_row`` block; each cell becomes a rich_text array."""
    cells = [
        build_rich_text(cell.get("children", []), config, link_defs=link_defs)
        for cell in token.get("children", [])
        if cell.get("type") == "table_cell"
    ]
    return {
        "object": "block",
        "type": "table_row",
        "table_row": {"cells": cells},
    }
