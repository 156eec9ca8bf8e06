"""Per-scope reference tables for links and images.

Markdown lets a document refer to a URL or an image by a short
identifier that is defined elsewhere.  The renderer rebuilds these tables
for every sibling list it renders, from that list's own nodes only, so a
nested scope shadows (never merges with) the tables of its ancestors.
"""

from __future__ import annotations


def collect_definitions(nodes: list[dict]) -> tuple[dict[str, str], dict[str, dict]]:
    """Collect link and image definitions among *nodes*.

    Only the direct siblings are inspected; children are not searched.
    A later definition for the same identifier replaces an earlier one.

    Parameters
    ----------
    nodes:
        A list of normalized sibling tokens.

    Returns
    -------
    tuple[dict[str, str], dict[str, dict]]
        ``(link_defs, image_defs)``: link identifier to URL, from
        ``definition`` nodes, and image alt text to the image node, from
        block-level ``image`` nodes.
    """
    link_defs: dict[str, str] = {}
    image_defs: dict[str, dict] = {}

    for node in nodes:
        node_type = node.get("type")
        attrs = node.get("attrs") or {}
        if node_type == "definition":
            link_defs[attrs.get("identifier", "")] = attrs.get("url", "")
        elif node_type == "image":
            image_defs[attrs.get("alt", "")] = node

    return link_defs, image_defs
