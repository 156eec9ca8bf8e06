"""Tests for per-scope reference table collection."""

from notionport.converter.references import collect_definitions


def _definition(identifier, url):
    return {"type": "definition", "attrs": {"identifier": identifier, "url": url}}


def _image(alt, url):
    return {"type": "image", "attrs": {"alt": alt, "url": url}}


class TestCollectDefinitions:
    def test_empty(self):
        assert collect_definitions([]) == ({}, {})

    def test_links_and_images(self):
        image = _image("logo", "https://img.test/logo.png")
        link_defs, image_defs = collect_definitions([
            _definition("a", "https://a.test"),
            {"type": "paragraph", "children": []},
            image,
        ])
        assert link_defs == {"a": "https://a.test"}
        assert image_defs == {"logo": image}

    def test_last_definition_wins(self):
        link_defs, _ = collect_definitions([
            _definition("a", "https://first.test"),
            _definition("a", "https://second.test"),
        ])
        assert link_defs == {"a": "https://second.test"}

    def test_children_not_searched(self):
        nested = {
            "type": "block_quote",
            "children": [_definition("inner", "https://inner.test")],
        }
        link_defs, image_defs = collect_definitions([nested])
        assert link_defs == {}
        assert image_defs == {}
