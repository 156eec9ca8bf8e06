"""Parse Markdown and normalize to canonical source-node tokens.

This module wraps mistune v3's AST renderer and normalises the raw token
stream into the canonical node kinds the renderer understands.  Any other
parser can feed the renderer as long as it produces the same shapes.

Canonical block tokens:
    heading, paragraph, block_quote, footnote_definition, list, list_item,
    block_code, table, table_head, table_body, table_row, table_cell,
    thematic_break, block_math, html_block, image, image_reference,
    definition

Canonical inline tokens:
    text, strong, emphasis, codespan, strikethrough, link, link_reference,
    image, image_reference, inline_math, footnote_reference, softbreak,
    linebreak, html_inline

Reference-style links and images are kept unresolved as ``link_reference``
and ``image_reference`` tokens, and each ``[id]: url`` line becomes a
``definition`` token where it appears, so the renderer resolves them
against the definitions of their own sibling list.  Footnote bodies, which
mistune appends after the document, become root-level
``footnote_definition`` tokens.
"""

from __future__ import annotations

import re

import mistune
from mistune.helpers import PREVENT_BACKSLASH
from mistune.util import unikey

# ---------------------------------------------------------------------------
# GFM strikethrough (single or double tilde)
# ---------------------------------------------------------------------------

# mistune's bundled plugin only understands ``~~x~~``; GitHub also accepts
# ``~x~``.  The closing marker must match the opening one.
_STRIKE_END: dict[int, re.Pattern[str]] = {
    1: re.compile(r"(?:" + PREVENT_BACKSLASH + r"\\~|[^\s~])~(?!~)"),
    2: re.compile(r"(?:" + PREVENT_BACKSLASH + r"\\~|[^\s~])~~(?!~)"),
}


def _parse_strikethrough(inline, m, state):  # type: ignore[no-untyped-def]
    marker = m.group(0)
    pos = m.end()
    end = _STRIKE_END[len(marker)].search(state.src, pos)
    if end is None:
        return None

    end_pos = end.end()
    new_state = state.copy()
    new_state.src = state.src[pos:end_pos - len(marker)]
    children = inline.render(new_state)
    state.append_token({"type": "strikethrough", "children": children})
    return end_pos


def strikethrough(md):  # type: ignore[no-untyped-def]
    """mistune plugin for ``~text~`` and ``~~text~~`` strikethrough."""
    md.inline.register(
        "strikethrough",
        r"~~?(?=[^\s~])",
        _parse_strikethrough,
        before="link",
    )


# ---------------------------------------------------------------------------
# Reference definitions kept in place
# ---------------------------------------------------------------------------

def reference_identifier(label: str) -> str:
    """Normalize a reference label: collapse whitespace, ignore case."""
    return " ".join(label.split()).lower()


def _parse_definition(block, m, state):  # type: ignore[no-untyped-def]
    # mistune keeps only the first definition of a label, in one table for
    # the whole document.  The table is only used to decide whether
    # ``[text][label]`` is a reference at all; the URL comes from the
    # ``definition`` token, resolved later per sibling list.
    ref_links = state.env["ref_links"]
    label = m.group("reflink_1")
    key = unikey(label)
    previous = ref_links.pop(key, None)

    end_pos = block.parse_ref_link(m, state)
    data = ref_links.get(key)
    if end_pos and data is not None:
        state.append_token({
            "type": "definition",
            "attrs": {
                "identifier": reference_identifier(label),
                "url": data["url"],
            },
        })
    elif previous is not None:
        ref_links[key] = previous
    return end_pos


def definitions(md):  # type: ignore[no-untyped-def]
    """mistune plugin emitting a ``definition`` token for every ``[id]: url``."""
    md.block.register("ref_link", None, _parse_definition)


# ---------------------------------------------------------------------------
# Mistune-to-canonical type mapping
# ---------------------------------------------------------------------------

_BLOCK_TYPE_MAP: dict[str, str] = {
    "heading": "heading",
    "paragraph": "paragraph",
    "block_quote": "block_quote",
    "list": "list",
    "list_item": "list_item",
    "block_code": "block_code",
    "table": "table",
    "thematic_break": "thematic_break",
    "block_math": "block_math",
    "block_html": "html_block",
    # Tight list items wrap their text in block_text
    "block_text": "paragraph",
}

_INLINE_TYPE_MAP: dict[str, str] = {
    "text": "text",
    "strong": "strong",
    "emphasis": "emphasis",
    "codespan": "codespan",
    "strikethrough": "strikethrough",
    "link": "link",
    "image": "image",
    "inline_math": "inline_math",
    "softbreak": "softbreak",
    "linebreak": "linebreak",
    "inline_html": "html_inline",
}

_TABLE_PARTS: frozenset[str] = frozenset({
    "table_head", "table_body", "table_row", "table_cell",
})

_SKIP_TYPES: frozenset[str] = frozenset({
    "blank_line",
})


class ASTNormalizer:
    """Parse Markdown and normalize to canonical source-node tokens."""

    def __init__(self) -> None:
        self._parser = mistune.create_markdown(
            renderer="ast",
            plugins=[
                strikethrough,
                definitions,
                "table",
                "url",
                "math",
                "footnotes",
            ],
        )

    def parse(self, markdown: str) -> list[dict]:
        """Parse *markdown* and return the normalized root-level token list."""
        raw_tokens, _state = self._parser.parse(markdown)
        if isinstance(raw_tokens, str):
            return []
        return self._normalize_tokens(raw_tokens)

    # ── Walk ────────────────────────────────────────────────────────────

    def _normalize_tokens(self, tokens: list[dict]) -> list[dict]:
        """Normalize a sibling list, coalescing adjacent text tokens."""
        result: list[dict] = []
        for token in tokens:
            for normalized in self._normalize_token(token):
                if (
                    normalized["type"] == "text"
                    and result
                    and result[-1]["type"] == "text"
                ):
                    result[-1] = {
                        "type": "text",
                        "raw": result[-1]["raw"] + normalized["raw"],
                    }
                else:
                    result.append(normalized)
        return result

    def _normalize_token(self, token: dict) -> list[dict]:
        """Normalize one token into zero or more canonical tokens."""
        raw_type = token.get("type", "")

        if raw_type in _SKIP_TYPES:
            return []

        # mistune groups every footnote body under one trailing node
        if raw_type == "footnotes":
            return [
                self._footnote_definition(item)
                for item in token.get("children", [])
                if item.get("type") == "footnote_item"
            ]

        if raw_type == "footnote_ref":
            return [{
                "type": "footnote_reference",
                "attrs": {"identifier": token.get("raw", "")},
            }]

        if raw_type == "definition":
            return [{"type": "definition", "attrs": dict(token["attrs"])}]

        if raw_type == "paragraph" or raw_type == "block_text":
            return [self._normalize_paragraph(token)]

        if raw_type in _BLOCK_TYPE_MAP:
            return [self._normalize_block(token, _BLOCK_TYPE_MAP[raw_type])]

        if raw_type == "image":
            return [self._normalize_image(token)]

        if raw_type == "link" and "ref" in token:
            return [self._normalize_link_reference(token)]

        if raw_type in _INLINE_TYPE_MAP:
            return [self._normalize_inline(token, _INLINE_TYPE_MAP[raw_type])]

        if raw_type in _TABLE_PARTS:
            return [self._normalize_table_part(token)]

        # "raw" appears inside code spans and similar leaf content
        if raw_type == "raw":
            return [{"type": "text", "raw": token.get("raw", "")}]

        return []

    # ── Blocks ──────────────────────────────────────────────────────────

    def _normalize_paragraph(self, token: dict) -> dict:
        children = self._normalize_tokens(token.get("children") or [])
        # A paragraph holding nothing but an image is a block-level image.
        if len(children) == 1 and children[0]["type"] in ("image", "image_reference"):
            return children[0]
        return {"type": "paragraph", "children": children}

    def _normalize_block(self, token: dict, canonical_type: str) -> dict:
        """Normalize a block-level token."""
        result: dict = {"type": canonical_type}

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        if canonical_type == "block_code":
            raw_code = token.get("raw", "")
            if raw_code.endswith("\n"):
                raw_code = raw_code[:-1]
            result["raw"] = raw_code
            return result

        if canonical_type in ("block_math", "html_block"):
            result["raw"] = token.get("raw", "")
            return result

        if canonical_type == "thematic_break":
            return result

        if canonical_type == "list":
            list_attrs = result.setdefault("attrs", {})
            list_attrs.setdefault("ordered", False)
            list_attrs.setdefault("start", 1)

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result

    def _footnote_definition(self, item: dict) -> dict:
        attrs = item.get("attrs") or {}
        identifier = attrs.get("key", attrs.get("index", ""))
        return {
            "type": "footnote_definition",
            "attrs": {"identifier": str(identifier)},
            "children": self._normalize_tokens(item.get("children") or []),
        }

    def _normalize_table_part(self, token: dict) -> dict:
        """Normalize table sub-structure tokens (head, body, row, cell)."""
        result: dict = {"type": token["type"]}

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result

    # ── Inlines ─────────────────────────────────────────────────────────

    def _normalize_image(self, token: dict) -> dict:
        attrs = dict(token.get("attrs") or {})
        children = self._normalize_tokens(token.get("children") or [])
        attrs.setdefault("url", "")
        alt = "".join(
            child.get("raw", "") for child in children if child["type"] == "text"
        )
        if "ref" in token:
            label = token.get("label") or token["ref"]
            return {
                "type": "image_reference",
                "attrs": {
                    "identifier": reference_identifier(label),
                    "label": label,
                    "alt": alt,
                },
            }
        attrs["alt"] = alt
        return {"type": "image", "attrs": attrs}

    def _normalize_link_reference(self, token: dict) -> dict:
        label = token.get("label") or token["ref"]
        result: dict = {
            "type": "link_reference",
            "attrs": {"identifier": reference_identifier(label), "label": label},
        }
        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)
        return result

    def _normalize_inline(self, token: dict, canonical_type: str) -> dict:
        """Normalize an inline-level token."""
        result: dict = {"type": canonical_type}

        if canonical_type in ("text", "softbreak", "linebreak"):
            if "raw" in token:
                result["raw"] = token["raw"]
            elif canonical_type == "text":
                result["raw"] = ""
            return result

        if canonical_type in ("html_inline", "codespan", "inline_math"):
            result["raw"] = token.get("raw", "")
            return result

        attrs = token.get("attrs")
        if attrs:
            result["attrs"] = dict(attrs)

        children = token.get("children")
        if children:
            result["children"] = self._normalize_tokens(children)

        return result
