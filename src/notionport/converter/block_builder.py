"""Render normalized source nodes to Notion block dicts.

Node kinds and the blocks they become:

- heading -> heading_1/2/3 (deeper levels clamp to heading_3)
- paragraph -> paragraph
- block_quote -> quote (first-level paragraphs become its text)
- footnote_definition -> callout with a note icon
- list / list_item -> bulleted_list_item / numbered_list_item
- table / table_row -> delegate to tables.py
- block_code -> code with a Notion language name
- block_math -> equation
- html_block -> plain-text code (Notion has no raw HTML block)
- image / image_reference -> external image
- thematic_break -> divider
- definition -> nothing (feeds the reference tables)

Anything else renders to nothing.

The renderer threads an immutable :class:`RenderState` through the walk.
Entering a list or a new sibling scope builds a new state; no call ever
mutates the state it was given.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

from notionport.config import NotionportConfig
from notionport.converter.references import collect_definitions
from notionport.converter.rich_text import build_rich_text, make_text_span, split_text
from notionport.converter.tables import build_table, build_table_row
from notionport.observability import get_logger

log = get_logger("notionport.converter")

FOOTNOTE_ICON = "\U0001f5d2\ufe0f"
"""Emoji shown on footnote callouts (spiral notepad)."""


# ---------------------------------------------------------------------------
# Render state
# ---------------------------------------------------------------------------

class ListKind(str, Enum):
    """Which kind of list the nodes being rendered belong to."""

    NONE = "none"
    BULLETED = "bulleted"
    ORDERED = "ordered"


@dataclass(frozen=True)
class RenderState:
    """Scoped context for one level of the render walk.

    Attributes
    ----------
    list_kind:
        Kind of the innermost enclosing list.
    ordered_start:
        First number of the innermost ordered list.  Notion numbers list
        items itself, so this is informational only.
    nesting:
        Number of enclosing lists.
    link_defs:
        Link identifier to URL, for the sibling list being rendered.
    image_defs:
        Image alt text to image node, for the sibling list being rendered.
    """

    list_kind: ListKind = ListKind.NONE
    ordered_start: int = 1
    nesting: int = 0
    link_defs: Mapping[str, str] = field(default_factory=dict)
    image_defs: Mapping[str, dict] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Notion code language mapping
# ---------------------------------------------------------------------------

_NOTION_LANGUAGES: frozenset[str] = frozenset({
    "abap", "arduino", "bash", "basic", "c", "clojure", "coffeescript",
    "c++", "c#", "css", "dart", "diff", "docker", "elixir", "elm",
    "erlang", "flow", "fortran", "f#", "gherkin", "glsl", "go", "graphql",
    "groovy", "haskell", "html", "java", "javascript", "json", "julia",
    "kotlin", "latex", "less", "lisp", "livescript", "lua", "makefile",
    "markdown", "markup", "matlab", "mermaid", "nix", "objective-c",
    "ocaml", "pascal", "perl", "php", "plain text", "powershell",
    "prolog", "protobuf", "python", "r", "reason", "ruby", "rust",
    "sass", "scala", "scheme", "scss", "shell", "sql", "swift",
    "typescript", "vb.net", "verilog", "vhdl", "visual basic",
    "webassembly", "xml", "yaml", "java/c/c++/c#",
})

_LANGUAGE_ALIASES: dict[str, str] = {
    "py": "python",
    "js": "javascript",
    "ts": "typescript",
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "rb": "ruby",
    "rs": "rust",
    "yml": "yaml",
    "md": "markdown",
    "cs": "c#",
    "cpp": "c++",
    "objc": "objective-c",
    "dockerfile": "docker",
    "make": "makefile",
    "tex": "latex",
    "jsx": "javascript",
    "tsx": "typescript",
    "golang": "go",
    "hs": "haskell",
    "kt": "kotlin",
    "toml": "plain text",
    "text": "plain text",
    "txt": "plain text",
}


def normalize_language(info: str | None) -> str:
    """Map a code fence info string to a Notion-accepted language name."""
    if not info or not info.strip():
        return "plain text"
    lang = info.strip().lower().split()[0]
    if lang in _NOTION_LANGUAGES:
        return lang
    if lang in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[lang]
    # "python3" -> "python"
    stripped = re.sub(r"\d+$", "", lang)
    if stripped in _NOTION_LANGUAGES:
        return stripped
    return _LANGUAGE_ALIASES.get(stripped, "plain text")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def scope_for(nodes: list[dict], state: RenderState) -> RenderState:
    """Return *state* with reference tables built from *nodes* alone."""
    link_defs, image_defs = collect_definitions(nodes)
    return replace(state, link_defs=link_defs, image_defs=image_defs)


def render_nodes(
    nodes: list[dict],
    state: RenderState,
    config: NotionportConfig,
) -> list[dict]:
    """Render a sibling list of nodes.

    The reference tables are rebuilt from *nodes* before any of them is
    rendered, so forward references inside the list resolve and the
    tables of enclosing scopes are shadowed.
    """
    scoped = scope_for(nodes, state)

    blocks: list[dict] = []
    for node in nodes:
        blocks.extend(render_node(node, scoped, config))
    return blocks


def render_node(
    node: dict,
    state: RenderState,
    config: NotionportConfig,
) -> list[dict]:
    """Render one node to zero or more blocks."""
    node_type = node.get("type", "")

    if node_type == "paragraph":
        return _render_paragraph(node, state, config)
    elif node_type == "heading":
        return _render_heading(node, state, config)
    elif node_type == "block_quote":
        return _render_quote(node, state, config)
    elif node_type == "footnote_definition":
        return _render_footnote(node, state, config)
    elif node_type == "list":
        return _render_list(node, state, config)
    elif node_type == "list_item":
        return _render_list_item(node, state, config)
    elif node_type == "table":
        return [build_table(node, config, state.link_defs)]
    elif node_type == "table_row":
        return [build_table_row(node, config, state.link_defs)]
    elif node_type == "block_code":
        info = (node.get("attrs") or {}).get("info")
        return [_code_block(node.get("raw", ""), normalize_language(info), config)]
    elif node_type == "block_math":
        return [_equation_block(node.get("raw", ""))]
    elif node_type == "html_block":
        return [_code_block(node.get("raw", ""), "plain text", config)]
    elif node_type == "image":
        return [_image_block(node)]
    elif node_type == "image_reference":
        return _render_image_reference(node, state)
    elif node_type == "thematic_break":
        return [{"object": "block", "type": "divider", "divider": {}}]
    elif node_type == "definition":
        return []

    log.debug(
        "skipping unsupported node",
        extra={"extra_fields": {"node_type": node_type}},
    )
    return []


# ---------------------------------------------------------------------------
# Text blocks
# ---------------------------------------------------------------------------

def _inline(children: list[dict], state: RenderState, config: NotionportConfig) -> list[dict]:
    return build_rich_text(children, config, link_defs=state.link_defs)


def _render_paragraph(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    rich_text = _inline(node.get("children", []), state, config)
    if not rich_text:
        return []
    return [{
        "object": "block",
        "type": "paragraph",
        "paragraph": {"rich_text": rich_text, "color": "default"},
    }]


def _render_heading(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    level = (node.get("attrs") or {}).get("level", 1)
    heading_type = f"heading_{max(1, min(level, 3))}"
    return [{
        "object": "block",
        "type": heading_type,
        heading_type: {
            "rich_text": _inline(node.get("children", []), state, config),
            "color": "default",
            "is_toggleable": False,
        },
    }]


def _text_and_children(
    node: dict,
    state: RenderState,
    config: NotionportConfig,
) -> tuple[list[dict], list[dict]]:
    """Split a container's children into rich text and nested blocks.

    Paragraph children are joined by newlines into the container's own
    rich text; every other child renders as a nested block.
    """
    children = node.get("children", [])
    scoped = scope_for(children, state)
    rich_text: list[dict] = []
    others: list[dict] = []

    for child in children:
        if child.get("type") == "paragraph":
            if rich_text:
                rich_text.append(make_text_span("\n"))
            rich_text.extend(_inline(child.get("children", []), scoped, config))
        else:
            others.append(child)

    return rich_text, render_nodes(others, state, config)


def _render_quote(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    rich_text, nested = _text_and_children(node, state, config)
    block: dict = {
        "object": "block",
        "type": "quote",
        "quote": {"rich_text": rich_text, "color": "default"},
    }
    if nested:
        block["quote"]["children"] = nested
    return [block]


def _render_footnote(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    rich_text, nested = _text_and_children(node, state, config)
    block: dict = {
        "object": "block",
        "type": "callout",
        "callout": {
            "rich_text": rich_text,
            "icon": {"type": "emoji", "emoji": FOOTNOTE_ICON},
            "color": "default",
        },
    }
    if nested:
        block["callout"]["children"] = nested
    return [block]


def _code_block(raw: str, language: str, config: NotionportConfig) -> dict:
    return {
        "object": "block",
        "type": "code",
        "code": {
            "rich_text": split_text(raw, limit=config.rich_text_limit),
            "language": language,
            "caption": [],
        },
    }


def _equation_block(expression: str) -> dict:
    return {
        "object": "block",
        "type": "equation",
        "equation": {"expression": expression.strip()},
    }


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

def _render_list(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    attrs = node.get("attrs") or {}
    ordered = bool(attrs.get("ordered", False))
    start = attrs.get("start") or 1

    if ordered and start != 1:
        log.debug(
            "ordered list start is not representable",
            extra={"extra_fields": {"start": start}},
        )

    inner = replace(
        state,
        list_kind=ListKind.ORDERED if ordered else ListKind.BULLETED,
        ordered_start=start,
        nesting=state.nesting + 1,
    )
    return render_nodes(node.get("children", []), inner, config)


def _render_list_item(node: dict, state: RenderState, config: NotionportConfig) -> list[dict]:
    """Render a list item.

    A leading paragraph supplies the item's own text; the remaining
    children render below it.  So "a paragraph then a nested list" is
    one item with that text and the list as its children, not an empty
    item holding a paragraph block.  References in the leading paragraph
    resolve against the item's own children, like the rest of them.

    Past ``config.list_flatten_depth`` nested lists, Notion cannot show
    the structure, so those children follow the item as siblings instead.
    """
    children = node.get("children", [])
    block_type = (
        "numbered_list_item"
        if state.list_kind is ListKind.ORDERED
        else "bulleted_list_item"
    )

    rich_text: list[dict] = []
    if children and children[0].get("type") == "paragraph":
        scoped = scope_for(children, state)
        rich_text = _inline(children[0].get("children", []), scoped, config)
        children = children[1:]

    child_blocks = render_nodes(children, state, config)

    block: dict = {
        "object": "block",
        "type": block_type,
        block_type: {"rich_text": rich_text, "color": "default"},
    }

    if state.nesting > config.list_flatten_depth:
        return [block, *child_blocks]

    if child_blocks:
        block[block_type]["children"] = child_blocks
    return [block]


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def _image_block(node: dict) -> dict:
    """Build an external image block; the URL is used as-is."""
    attrs = node.get("attrs") or {}
    image: dict = {
        "type": "external",
        "external": {"url": attrs.get("url", "")},
    }
    alt = attrs.get("alt", "")
    if alt:
        image["caption"] = [make_text_span(alt)]
    return {"object": "block", "type": "image", "image": image}


def _render_image_reference(node: dict, state: RenderState) -> list[dict]:
    """Resolve an image reference in the current scope.

    An image in scope whose alt text is the label wins, then a link
    definition for the identifier.  Otherwise the label itself is used
    as the URL.
    """
    attrs = node.get("attrs") or {}
    identifier = attrs.get("identifier", "")
    label = attrs.get("label", identifier)

    image = state.image_defs.get(label) or state.image_defs.get(identifier)
    if image is None:
        url = state.link_defs.get(identifier, label)
        image = {"type": "image", "attrs": {"url": url, "alt": attrs.get("alt", "")}}
    return [_image_block(image)]
