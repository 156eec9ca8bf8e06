"""Tests for rich text splitting and building."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from notionport.config import NotionportConfig
from notionport.converter.rich_text import (
    build_rich_text,
    default_annotations,
    make_page_mention,
    split_rich_text,
    split_text,
)
from notionport.utils.text_split import utf16_length


def make_config(**kwargs):
    return NotionportConfig(token="test-token", **kwargs)


def _make_text_segment(content, annotations=None, href=None):
    """Build a Notion rich_text text segment."""
    seg = {
        "type": "text",
        "text": {"content": content},
    }
    if annotations:
        seg["annotations"] = annotations
    if href:
        seg["href"] = href
    return seg


def _text(raw):
    return {"type": "text", "raw": raw}


def _contents(spans):
    return [s["text"]["content"] for s in spans]


# =========================================================================
# split_text
# =========================================================================

class TestSplitText:
    def test_empty_content_yields_one_empty_span(self):
        spans = split_text("")
        assert len(spans) == 1
        assert spans[0]["text"]["content"] == ""
        assert spans[0]["plain_text"] == ""

    def test_short_content_single_span(self):
        spans = split_text("hello")
        assert _contents(spans) == ["hello"]

    def test_long_content_split_with_identical_styles(self):
        bold = {**default_annotations(), "bold": True}
        spans = split_text("a" * 4100, bold)
        assert [len(c) for c in _contents(spans)] == [2000, 2000, 100]
        for span in spans:
            assert span["annotations"] == bold

    def test_each_span_gets_its_own_annotation_copy(self):
        spans = split_text("abcdef", limit=2)
        spans[0]["annotations"]["bold"] = True
        assert spans[1]["annotations"]["bold"] is False

    def test_href_applied_to_every_span(self):
        spans = split_text("abcdef", href="https://example.com", limit=4)
        assert len(spans) == 2
        for span in spans:
            assert span["href"] == "https://example.com"
            assert span["text"]["link"] == {"url": "https://example.com"}

    def test_astral_characters_measured_in_utf16_units(self):
        grin = "\U0001f600"
        spans = split_text(grin * 1500)
        # 3000 UTF-16 units: 1000 emoji per span.
        assert [len(c) for c in _contents(spans)] == [1000, 500]
        assert "".join(_contents(spans)) == grin * 1500

    @given(
        text=st.text(),
        limit=st.integers(min_value=2, max_value=50),
        bold=st.booleans(),
        href=st.sampled_from([None, "https://example.com"]),
    )
    def test_spans_rejoin_within_limit_with_shared_style(self, text, limit, bold, href):
        annotations = {**default_annotations(), "bold": bold}
        spans = split_text(text, annotations, href=href, limit=limit)
        contents = _contents(spans)

        assert "".join(contents) == text
        assert b"".join(c.encode("utf-16-le") for c in contents) == text.encode("utf-16-le")
        for span, content in zip(spans, contents):
            assert utf16_length(content) <= limit
            assert span["plain_text"] == content
            assert span["annotations"] == annotations
            assert span.get("href") == href


# =========================================================================
# split_rich_text
# =========================================================================

class TestSplitRichText:
    def test_short_text_passes_through(self):
        seg = _make_text_segment("hello world")
        result = split_rich_text([seg])
        assert result == [seg]

    def test_exactly_at_limit(self):
        text = "x" * 2000
        result = split_rich_text([_make_text_segment(text)])
        assert len(result) == 1

    def test_split_at_2000(self):
        text = "a" * 3000
        result = split_rich_text([_make_text_segment(text)])
        assert [len(c) for c in _contents(result)] == [2000, 1000]
        assert "".join(_contents(result)) == text

    def test_split_preserves_annotations_and_href(self):
        annotations = {**default_annotations(), "italic": True}
        seg = _make_text_segment("z" * 2500, annotations, href="https://x.test")
        result = split_rich_text([seg])
        assert len(result) == 2
        for span in result:
            assert span["annotations"] == annotations
            assert span["href"] == "https://x.test"

    def test_equation_passes_through(self):
        eq = {"type": "equation", "equation": {"expression": "x" * 5000}}
        assert split_rich_text([eq]) == [eq]

    def test_mention_passes_through(self):
        mention = make_page_mention("page-1", "Title")
        assert split_rich_text([mention], limit=2) == [mention]

    def test_order_preserved_across_mixed_segments(self):
        segs = [
            _make_text_segment("abcde"),
            {"type": "equation", "equation": {"expression": "E"}},
            _make_text_segment("fg"),
        ]
        result = split_rich_text(segs, limit=2)
        kinds = [s["type"] for s in result]
        assert kinds == ["text", "text", "text", "equation", "text"]


# =========================================================================
# build_rich_text
# =========================================================================

class TestBuildRichText:
    def test_plain_text(self):
        spans = build_rich_text([_text("hello")], make_config())
        assert len(spans) == 1
        assert spans[0]["text"]["content"] == "hello"
        assert spans[0]["plain_text"] == "hello"
        assert spans[0]["annotations"] == default_annotations()

    def test_empty_text_skipped(self):
        assert build_rich_text([_text("")], make_config()) == []

    def test_strong(self):
        spans = build_rich_text(
            [{"type": "strong", "children": [_text("b")]}], make_config(),
        )
        assert spans[0]["annotations"]["bold"] is True

    def test_emphasis(self):
        spans = build_rich_text(
            [{"type": "emphasis", "children": [_text("i")]}], make_config(),
        )
        assert spans[0]["annotations"]["italic"] is True

    def test_strikethrough(self):
        spans = build_rich_text(
            [{"type": "strikethrough", "children": [_text("s")]}], make_config(),
        )
        assert spans[0]["annotations"]["strikethrough"] is True

    def test_nested_styles_accumulate(self):
        tokens = [{
            "type": "strong",
            "children": [{"type": "emphasis", "children": [_text("both")]}],
        }]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["annotations"]["bold"] is True
        assert spans[0]["annotations"]["italic"] is True

    def test_codespan(self):
        spans = build_rich_text([{"type": "codespan", "raw": "x = 1"}], make_config())
        assert spans[0]["text"]["content"] == "x = 1"
        assert spans[0]["annotations"]["code"] is True

    def test_link(self):
        tokens = [{
            "type": "link",
            "attrs": {"url": "https://example.com"},
            "children": [_text("site")],
        }]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["text"]["content"] == "site"
        assert spans[0]["text"]["link"] == {"url": "https://example.com"}
        assert spans[0]["href"] == "https://example.com"

    def test_link_without_children_shows_url(self):
        tokens = [{"type": "link", "attrs": {"url": "https://example.com"}}]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["text"]["content"] == "https://example.com"

    def test_styled_text_inside_link_keeps_link(self):
        tokens = [{
            "type": "link",
            "attrs": {"url": "https://example.com"},
            "children": [{"type": "strong", "children": [_text("bold")]}],
        }]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["annotations"]["bold"] is True
        assert spans[0]["href"] == "https://example.com"

    def test_link_reference_resolved(self):
        tokens = [{
            "type": "link_reference",
            "attrs": {"identifier": "docs"},
            "children": [_text("the docs")],
        }]
        spans = build_rich_text(
            tokens, make_config(), link_defs={"docs": "https://docs.test"},
        )
        assert spans[0]["href"] == "https://docs.test"

    def test_unresolved_link_reference_uses_identifier(self):
        tokens = [{
            "type": "link_reference",
            "attrs": {"identifier": "missing"},
            "children": [_text("text")],
        }]
        spans = build_rich_text(tokens, make_config(), link_defs={})
        assert spans[0]["href"] == "missing"

    def test_footnote_reference_is_gray_identifier(self):
        tokens = [{"type": "footnote_reference", "attrs": {"identifier": "1"}}]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["text"]["content"] == "1"
        assert spans[0]["annotations"]["color"] == "gray"
        assert "href" not in spans[0]

    def test_inline_math(self):
        spans = build_rich_text([{"type": "inline_math", "raw": "E=mc^2"}], make_config())
        assert spans[0]["type"] == "equation"
        assert spans[0]["equation"]["expression"] == "E=mc^2"

    def test_inline_image_falls_back_to_text(self):
        tokens = [{"type": "image", "attrs": {"url": "https://img.test/a.png", "alt": "A"}}]
        spans = build_rich_text(tokens, make_config())
        assert spans[0]["text"]["content"] == "[A](https://img.test/a.png)"

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ({"type": "softbreak"}, " "),
            ({"type": "linebreak"}, "\n"),
            ({"type": "html_inline", "raw": "<br>"}, "<br>"),
        ],
    )
    def test_breaks_and_html(self, token, expected):
        spans = build_rich_text([token], make_config())
        assert spans[0]["text"]["content"] == expected

    def test_unknown_inline_produces_nothing(self):
        assert build_rich_text([{"type": "mystery"}], make_config()) == []

    def test_long_text_split_to_config_limit(self):
        spans = build_rich_text([_text("q" * 25)], make_config(rich_text_limit=10))
        assert _contents(spans) == ["q" * 10, "q" * 10, "q" * 5]


class TestPageMention:
    def test_shape(self):
        span = make_page_mention("abc", "My Page", "https://notion.so/abc")
        assert span["type"] == "mention"
        assert span["mention"] == {"type": "page", "page": {"id": "abc"}}
        assert span["plain_text"] == "My Page"
        assert span["href"] == "https://notion.so/abc"

    def test_without_url(self):
        span = make_page_mention("abc", "My Page")
        assert "href" not in span
