"""Markdown to Notion conversion pipeline.

Public API:

- :class:`MarkdownToNotionConverter` -- Markdown to Notion blocks.
- :class:`ASTNormalizer` -- parse and normalize Markdown to source nodes.
- :func:`render_document` / :func:`render_nodes` -- source nodes to blocks.
- :func:`collect_definitions` -- per-scope link and image tables.
- :func:`split_text` / :func:`split_rich_text` -- enforce the span limit.
"""

from notionport.converter.ast_normalizer import ASTNormalizer
from notionport.converter.block_builder import ListKind, RenderState, render_node, render_nodes
from notionport.converter.md_to_notion import MarkdownToNotionConverter, render_document
from notionport.converter.references import collect_definitions
from notionport.converter.rich_text import build_rich_text, split_rich_text, split_text

__all__ = [
    "ASTNormalizer",
    "ListKind",
    "MarkdownToNotionConverter",
    "RenderState",
    "build_rich_text",
    "collect_definitions",
    "render_document",
    "render_node",
    "render_nodes",
    "split_rich_text",
    "split_text",
]
