"""Build Notion rich_text arrays from normalized inline tokens.

A rich_text span is a dict in one of three forms.

Text span::

    {
        "type": "text",
        "text": {"content": "hello", "link": {"url": "https://..."}},
        "annotations": {"bold": false, "italic": false, "strikethrough": false,
                        "underline": false, "code": false, "color": "default"},
        "plain_text": "hello",
        "href": "https://..."
    }

Equation span::

    {"type": "equation", "equation": {"expression": "E=mc^2"}, ...}

Page mention span::

    {"type": "mention", "mention": {"type": "page", "page": {"id": "..."}}, ...}

``text.link`` and ``href`` are present only for linked text.  Every span
carries a full ``annotations`` dict and a ``plain_text`` projection.

Notion limits ``text.content`` to 2 000 UTF-16 code units, so longer runs
are split into consecutive spans with identical annotations.
"""

from __future__ import annotations

from collections.abc import Mapping

from notionport.config import NOTION_RICH_TEXT_LIMIT, NotionportConfig
from notionport.utils.text_split import split_string, utf16_length


# ---------------------------------------------------------------------------
# Annotation defaults
# ---------------------------------------------------------------------------

def default_annotations() -> dict:
    """Return a fresh default Notion annotations dict."""
    return {
        "bold": False,
        "italic": False,
        "strikethrough": False,
        "underline": False,
        "code": False,
        "color": "default",
    }


def _merge_annotations(base: dict, **overrides: bool | str) -> dict:
    """Merge annotation overrides into a copy of *base*.

    Boolean styles are OR-merged so nesting never turns a style off; a
    ``color`` override replaces the inherited color.
    """
    merged = dict(base)
    for key, value in overrides.items():
        if key == "color":
            merged[key] = value
        elif key in merged:
            merged[key] = merged[key] or value
    return merged


# ---------------------------------------------------------------------------
# Span constructors
# ---------------------------------------------------------------------------

def make_text_span(
    content: str,
    annotations: dict | None = None,
    href: str | None = None,
) -> dict:
    """Create a single text span (no length check)."""
    text: dict = {"content": content}
    span: dict = {
        "type": "text",
        "text": text,
        "annotations": dict(annotations or default_annotations()),
        "plain_text": content,
    }
    if href:
        text["link"] = {"url": href}
        span["href"] = href
    return span


def make_equation_span(expression: str, annotations: dict | None = None) -> dict:
    """Create an inline equation span."""
    return {
        "type": "equation",
        "equation": {"expression": expression},
        "annotations": dict(annotations or default_annotations()),
        "plain_text": expression,
    }


def make_page_mention(page_id: str, title: str, url: str | None = None) -> dict:
    """Create a span that mentions (links to) another Notion page."""
    span: dict = {
        "type": "mention",
        "mention": {"type": "page", "page": {"id": page_id}},
        "annotations": default_annotations(),
        "plain_text": title,
    }
    if url:
        span["href"] = url
    return span


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------

def split_text(
    content: str,
    annotations: dict | None = None,
    *,
    href: str | None = None,
    limit: int = NOTION_RICH_TEXT_LIMIT,
) -> list[dict]:
    """Turn one styled run of text into spans that each fit the limit.

    Parameters
    ----------
    content:
        The text to wrap.
    annotations:
        Style applied to every resulting span.  Each span gets its own
        copy.  Defaults to all-false / ``"default"`` color.
    href:
        Optional link target applied to every span.
    limit:
        Maximum span length in UTF-16 code units.

    Returns
    -------
    list[dict]
        A non-empty list of text spans.  Concatenating their contents
        reproduces *content* exactly; no span is split inside a code
        point.  An empty *content* yields one empty span.
    """
    chunks = split_string(content, limit) or [""]
    return [make_text_span(chunk, annotations, href) for chunk in chunks]


def split_rich_text(
    segments: list[dict],
    limit: int = NOTION_RICH_TEXT_LIMIT,
) -> list[dict]:
    """Split any text span with content longer than *limit* into several.

    Equation and mention spans pass through unchanged.

    Parameters
    ----------
    segments:
        List of Notion rich_text span dicts.
    limit:
        Maximum span length in UTF-16 code units.

    Returns
    -------
    list[dict]
        A new list where every text span's content is at most *limit*
        units long.
    """
    output: list[dict] = []

    for segment in segments:
        if segment.get("type", "text") != "text":
            output.append(segment)
            continue

        content = segment.get("text", {}).get("content", "")
        if utf16_length(content) <= limit:
            output.append(segment)
            continue

        output.extend(
            split_text(
                content,
                segment.get("annotations"),
                href=segment.get("href"),
                limit=limit,
            )
        )

    return output


# ---------------------------------------------------------------------------
# Inline building
# ---------------------------------------------------------------------------

def build_rich_text(
    children: list[dict],
    config: NotionportConfig,
    *,
    link_defs: Mapping[str, str] | None = None,
    annotations: dict | None = None,
    href: str | None = None,
) -> list[dict]:
    """Convert inline tokens to a Notion rich_text array.

    Handles: text, strong, emphasis, strikethrough, codespan, link,
    link_reference, footnote_reference, image and image_reference (as
    text fallback), inline_math, softbreak, linebreak, html_inline.  Other
    inline kinds produce nothing.

    Parameters
    ----------
    children:
        List of normalized inline tokens.
    config:
        Configuration (span length limit).
    link_defs:
        Reference definitions in scope, identifier to URL.
    annotations:
        Inherited annotations from an enclosing inline node.
    href:
        Inherited link target from an enclosing ``link`` node.

    Returns
    -------
    list[dict]
        Spans, already split to ``config.rich_text_limit``.
    """
    segments = _build_segments(
        children,
        config,
        link_defs if link_defs is not None else {},
        annotations if annotations is not None else default_annotations(),
        href,
    )
    return split_rich_text(segments, config.rich_text_limit)


def _build_segments(
    children: list[dict],
    config: NotionportConfig,
    link_defs: Mapping[str, str],
    annotations: dict,
    href: str | None,
) -> list[dict]:
    segments: list[dict] = []

    def nested(tokens: list[dict], annots: dict, link: str | None) -> None:
        segments.extend(_build_segments(tokens, config, link_defs, annots, link))

    for token in children:
        token_type = token.get("type", "")
        attrs = token.get("attrs") or {}

        if token_type == "text":
            raw = token.get("raw", "")
            if raw:
                segments.append(make_text_span(raw, annotations, href))

        elif token_type == "strong":
            nested(token.get("children", []),
                   _merge_annotations(annotations, bold=True), href)

        elif token_type == "emphasis":
            nested(token.get("children", []),
                   _merge_annotations(annotations, italic=True), href)

        elif token_type == "strikethrough":
            nested(token.get("children", []),
                   _merge_annotations(annotations, strikethrough=True), href)

        elif token_type == "codespan":
            segments.append(make_text_span(
                token.get("raw", ""),
                _merge_annotations(annotations, code=True),
                href,
            ))

        elif token_type == "link":
            url = attrs.get("url", "")
            target = link_defs.get(url, url)
            link_children = token.get("children") or [{"type": "text", "raw": url}]
            nested(link_children, annotations, target or href)

        elif token_type == "link_reference":
            identifier = attrs.get("identifier", "")
            label = attrs.get("label", identifier)
            target = link_defs.get(identifier, label)
            link_children = token.get("children") or [
                {"type": "text", "raw": label},
            ]
            nested(link_children, annotations, target or href)

        elif token_type == "footnote_reference":
            # Notion cannot link to a block that does not exist yet, so the
            # reference is shown as muted text only.
            identifier = attrs.get("identifier", "")
            segments.append(make_text_span(
                identifier,
                _merge_annotations(annotations, color="gray"),
            ))

        elif token_type == "image":
            alt = attrs.get("alt", "")
            url = attrs.get("url", "")
            if alt and url:
                text = f"[{alt}]({url})"
            else:
                text = url or alt or "[image]"
            segments.append(make_text_span(text, annotations, href))

        elif token_type == "image_reference":
            identifier = attrs.get("identifier", "")
            url = link_defs.get(identifier, attrs.get("label", identifier))
            alt = attrs.get("alt", "")
            text = f"[{alt}]({url})" if alt else url
            segments.append(make_text_span(text, annotations, href))

        elif token_type == "inline_math":
            segments.append(make_equation_span(token.get("raw", ""), annotations))

        elif token_type == "softbreak":
            segments.append(make_text_span(" ", annotations, href))

        elif token_type == "linebreak":
            segments.append(make_text_span("\n", annotations, href))

        elif token_type == "html_inline":
            raw = token.get("raw", "")
            if raw:
                segments.append(make_text_span(raw, annotations, href))

    return segments
