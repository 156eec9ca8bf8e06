"""Tests for Migrator: concurrent, failure-isolated page tree migration."""

from __future__ import annotations

import asyncio

from notionport.config import NotionportConfig
from notionport.errors import NotionportConflictError, NotionportValidationError
from notionport.migrate.migrator import Migrator, make_link_block
from notionport.migrate.remap import RemapTable
from notionport.models import AppendResult, PageCreateResult, SourcePage


def _config(**kwargs):
    return NotionportConfig(token="test-token", **kwargs)


def _item(source_id, content="body", children=()):
    return SourcePage(
        id=source_id,
        url=f"https://source.test/{source_id}",
        title=f"Title {source_id}",
        content=content,
        children=list(children),
    )


def _collection(source_id, *children):
    return SourcePage(
        id=source_id,
        url=f"https://source.test/{source_id}",
        title=f"Title {source_id}",
        children=list(children),
    )


class FakeClient:
    """Records calls and tracks how many page writes are in flight."""

    def __init__(self, fail_titles=(), fail_append=False, delay=0.0):
        self.fail_titles = set(fail_titles)
        self.fail_append = fail_append
        self.delay = delay
        self.created: list[dict] = []
        self.appended: list[tuple[str, list[dict]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _page(self, title):
        slug = title.replace(" ", "-")
        return PageCreateResult(
            page_id=f"notion-{slug}",
            url=f"https://notion.so/{slug}",
            title=title,
        )

    async def _work(self, title):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if title in self.fail_titles:
                raise NotionportValidationError(f"cannot create {title}")
        finally:
            self.in_flight -= 1

    async def create_page(self, parent_id, title, properties=None, parent_type="page"):
        await self._work(title)
        self.created.append({"parent_id": parent_id, "title": title, "markdown": None})
        return self._page(title)

    async def create_page_with_markdown(
        self, parent_id, title, markdown, properties=None, parent_type="page",
    ):
        await self._work(title)
        self.created.append({"parent_id": parent_id, "title": title, "markdown": markdown})
        return self._page(title)

    async def append_blocks(self, target_id, blocks):
        if self.fail_append:
            raise NotionportConflictError("still conflicting", context={"attempts": 6})
        self.appended.append((target_id, blocks))
        return AppendResult(block_ids=[f"link-{i}" for i in range(len(blocks))])


def _by_id(outcomes):
    return {o.source_id: o for o in outcomes}


# =========================================================================
# Items
# =========================================================================

class TestItems:
    async def test_single_item(self):
        client = FakeClient()
        migrator = Migrator(client, _config())
        outcomes = await migrator.migrate([_item("a")], "root")

        assert len(outcomes) == 1
        assert outcomes[0].ok is True
        assert outcomes[0].page.page_id == "notion-Title-a"
        assert client.created == [
            {"parent_id": "root", "title": "Title a", "markdown": "body"},
        ]
        assert migrator.remap_table.get("https://source.test/a") == "https://notion.so/Title-a"

    async def test_failure_isolated_to_branch(self):
        client = FakeClient(fail_titles={"Title b"})
        outcomes = await Migrator(client, _config()).migrate(
            [_item("a"), _item("b"), _item("c")], "root",
        )
        by_id = _by_id(outcomes)
        assert by_id["a"].ok and by_id["c"].ok
        assert by_id["b"].ok is False
        assert isinstance(by_id["b"].error, NotionportValidationError)
        assert by_id["b"].page is None

    async def test_failed_page_not_in_remap_table(self):
        client = FakeClient(fail_titles={"Title a"})
        migrator = Migrator(client, _config())
        await migrator.migrate([_item("a")], "root")
        assert "https://source.test/a" not in migrator.remap_table

    async def test_content_rewritten_with_known_urls(self):
        client = FakeClient()
        pages = [
            _item("a"),
            _item("b", content="see [a](https://source.test/a)"),
        ]
        migrator = Migrator(client, _config(migrate_concurrency=1))
        await migrator.migrate(pages, "root")
        assert client.created[1]["markdown"] == "see [a](https://notion.so/Title-a)"

    async def test_unmigrated_reference_left_alone(self):
        client = FakeClient()
        page = _item("b", content="see https://source.test/zzz")
        await Migrator(client, _config()).migrate([page], "root")
        assert client.created[0]["markdown"] == "see https://source.test/zzz"

    async def test_shared_remap_table(self):
        table = RemapTable({"https://old.test/x": "https://notion.so/X"})
        client = FakeClient()
        migrator = Migrator(client, _config(), remap_table=table)
        await migrator.migrate([_item("a", content="https://old.test/x")], "root")
        assert migrator.remap_table is table
        assert client.created[0]["markdown"] == "https://notion.so/X"
        assert "https://source.test/a" in table


# =========================================================================
# Collections
# =========================================================================

class TestCollections:
    async def test_collection_lists_children(self):
        client = FakeClient()
        tree = _collection("col", _item("a"), _item("b"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")

        by_id = _by_id(outcomes)
        assert set(by_id) == {"col", "a", "b"}
        assert all(o.ok for o in outcomes)

        # Children are created under the collection page.
        parents = {c["title"]: c["parent_id"] for c in client.created}
        assert parents == {
            "Title col": "root",
            "Title a": "notion-Title-col",
            "Title b": "notion-Title-col",
        }

        target, links = client.appended[0]
        assert target == "notion-Title-col"
        mentions = [link["bulleted_list_item"]["rich_text"][0] for link in links]
        assert [m["mention"]["page"]["id"] for m in mentions] == [
            "notion-Title-a", "notion-Title-b",
        ]
        assert [m["plain_text"] for m in mentions] == ["Title a", "Title b"]

    async def test_collection_outcome_precedes_descendants(self):
        client = FakeClient()
        tree = _collection("col", _item("a"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")
        assert [o.source_id for o in outcomes] == ["col", "a"]

    async def test_failed_child_left_out_of_links(self):
        client = FakeClient(fail_titles={"Title b"})
        tree = _collection("col", _item("a"), _item("b"), _item("c"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")

        assert _by_id(outcomes)["col"].ok is True
        _, links = client.appended[0]
        ids = [link["bulleted_list_item"]["rich_text"][0]["mention"]["page"]["id"] for link in links]
        assert ids == ["notion-Title-a", "notion-Title-c"]

    async def test_no_links_written_when_every_child_failed(self):
        client = FakeClient(fail_titles={"Title a"})
        tree = _collection("col", _item("a"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")
        assert client.appended == []
        assert _by_id(outcomes)["col"].ok is True

    async def test_link_append_failure_marks_collection_failed(self):
        client = FakeClient(fail_append=True)
        tree = _collection("col", _item("a"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")

        by_id = _by_id(outcomes)
        assert by_id["col"].ok is False
        assert isinstance(by_id["col"].error, NotionportConflictError)
        assert by_id["col"].page.page_id == "notion-Title-col"
        assert by_id["a"].ok is True

    async def test_collection_create_failure_skips_children(self):
        client = FakeClient(fail_titles={"Title col"})
        tree = _collection("col", _item("a"))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")
        assert [o.source_id for o in outcomes] == ["col"]
        assert outcomes[0].ok is False
        assert client.created == []

    async def test_nested_collections(self):
        client = FakeClient()
        tree = _collection("top", _collection("mid", _item("leaf")))
        outcomes = await Migrator(client, _config()).migrate([tree], "root")
        assert [o.source_id for o in outcomes] == ["top", "mid", "leaf"]
        assert [t for t, _ in client.appended] == ["notion-Title-mid", "notion-Title-top"]


# =========================================================================
# Concurrency
# =========================================================================

class TestConcurrency:
    async def test_siblings_bounded_by_concurrency(self):
        client = FakeClient(delay=0.01)
        pages = [_item(str(i)) for i in range(10)]
        outcomes = await Migrator(client, _config(migrate_concurrency=3)).migrate(pages, "root")
        assert len(outcomes) == 10
        assert client.max_in_flight == 3

    async def test_single_slot_does_not_deadlock_nested_levels(self):
        client = FakeClient(delay=0.001)
        tree = [
            _collection("c1", _item("a"), _collection("c2", _item("b"))),
            _item("d"),
        ]
        outcomes = await asyncio.wait_for(
            Migrator(client, _config(migrate_concurrency=1)).migrate(tree, "root"),
            timeout=5,
        )
        assert len(outcomes) == 5
        assert all(o.ok for o in outcomes)

    async def test_empty_input(self):
        assert await Migrator(FakeClient(), _config()).migrate([], "root") == []


# =========================================================================
# Metrics and link blocks
# =========================================================================

class TestMetricsAndLinks:
    async def test_page_metrics(self, metrics):
        client = FakeClient(fail_titles={"Title b"})
        await Migrator(client, _config(metrics=metrics)).migrate(
            [_item("a"), _item("b")], "root",
        )
        assert metrics.total("notionport.pages_migrated_total") == 1
        assert metrics.total("notionport.pages_failed_total") == 1

    def test_make_link_block(self):
        page = PageCreateResult(page_id="p1", url="https://notion.so/p1", title="Page One")
        block = make_link_block(page)
        assert block["type"] == "bulleted_list_item"
        span = block["bulleted_list_item"]["rich_text"][0]
        assert span["type"] == "mention"
        assert span["plain_text"] == "Page One"
        assert span["href"] == "https://notion.so/p1"

    def test_link_block_falls_back_to_url(self):
        page = PageCreateResult(page_id="p1", url="https://notion.so/p1")
        span = make_link_block(page)["bulleted_list_item"]["rich_text"][0]
        assert span["plain_text"] == "https://notion.so/p1"
