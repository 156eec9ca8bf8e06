"""Full Markdown-to-Notion conversion pipeline.

:class:`MarkdownToNotionConverter` runs two stages:

1. **Parse & normalize** -- :class:`ASTNormalizer` turns Markdown into
   canonical source-node tokens.
2. **Render** -- :func:`render_document` turns the root-level token list
   into Notion block dicts.

A document that renders to nothing is an error: the caller would
otherwise create an empty page and report success.
"""

from __future__ import annotations

import json
import sys

from notionport.config import NotionportConfig
from notionport.converter.ast_normalizer import ASTNormalizer
from notionport.converter.block_builder import RenderState, render_nodes
from notionport.errors import NotionportEmptyDocumentError


def render_document(tokens: list[dict], config: NotionportConfig) -> list[dict]:
    """Render a root-level token list to an ordered block sequence.

    Raises
    ------
    NotionportEmptyDocumentError
        If *tokens* is empty or nothing in it renders to a block.
    """
    if not tokens:
        raise NotionportEmptyDocumentError(
            "Markdown tree has no children; is the document empty?",
            context={"tokens": 0},
        )

    blocks = render_nodes(tokens, RenderState(), config)
    if not blocks:
        raise NotionportEmptyDocumentError(
            "Markdown tree rendered no blocks.",
            context={"tokens": len(tokens)},
        )
    return blocks


class MarkdownToNotionConverter:
    """Convert Markdown text to Notion API block payloads.

    Parameters
    ----------
    config:
        Configuration controlling span limits, list flattening and
        debug output.

    Examples
    --------
    >>> from notionport.config import NotionportConfig
    >>> converter = MarkdownToNotionConverter(NotionportConfig())
    >>> blocks = converter.convert("# Hello\\n\\nWorld")
    >>> len(blocks)
    2
    >>> blocks[0]["type"]
    'heading_1'
    """

    def __init__(self, config: NotionportConfig) -> None:
        self._config = config
        self._normalizer = ASTNormalizer()

    def convert(self, markdown: str) -> list[dict]:
        """Parse *markdown* and render it to Notion block dicts.

        Raises
        ------
        NotionportEmptyDocumentError
            If the document has nothing to render.
        """
        tokens = self._normalizer.parse(markdown)

        if self._config.debug_dump_ast:
            print(
                "[notionport] Normalized AST:",
                json.dumps(tokens, indent=2, ensure_ascii=False),
                file=sys.stderr,
            )

        try:
            return render_document(tokens, self._config)
        except NotionportEmptyDocumentError as exc:
            exc.context["source_length"] = len(markdown)
            raise
