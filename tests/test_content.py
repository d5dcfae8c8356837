import logging
from datetime import datetime
from pathlib import Path

import pytest

from folio.content import (
    ContentItem,
    FileContentStore,
    MemoryContentStore,
    RenderedContent,
)
from folio.errors import MalformedContent, NotFound, StoreUnavailable

PRE_RENDERING = """---
title: 'Two Forms of Pre-rendering'
date: '2020-01-01'
---

Next.js has two forms of pre-rendering: **Static Generation** and **Server-side Rendering**.
"""

SSG_SSR = """---
title: 'When to Use Static Generation v.s. Server-side Rendering'
date: '2020-01-02'
---

We recommend using **Static Generation** whenever possible.
"""


def create_posts(tmp_path: Path) -> Path:
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "pre-rendering.md").write_text(PRE_RENDERING, encoding="utf-8")
    (posts / "ssg-ssr.md").write_text(SSG_SSR, encoding="utf-8")
    return posts


def post(title: str, date: str, body: str = "Body") -> str:
    return f"---\ntitle: {title}\ndate: {date}\n---\n{body}\n"


def test_file_store_lists_metadata_newest_first(tmp_path):
    store = FileContentStore(create_posts(tmp_path))
    items = store.list_all()
    assert [item.id for item in items] == ["ssg-ssr", "pre-rendering"]
    assert items[0].title == "When to Use Static Generation v.s. Server-side Rendering"
    assert items[0].date == "2020-01-02"
    assert all(item.raw_body == "" for item in items)


def test_file_store_get_by_id_includes_body(tmp_path):
    store = FileContentStore(create_posts(tmp_path))
    item = store.get_by_id("pre-rendering")
    assert item.title == "Two Forms of Pre-rendering"
    assert "two forms of pre-rendering" in item.raw_body
    assert "---" not in item.raw_body
    assert item.source.endswith("pre-rendering.md")
    assert item.frontmatter["title"] == "Two Forms of Pre-rendering"


def test_list_all_sorts_by_date_descending():
    store = MemoryContentStore(
        {
            "january": post("January", "2024-01-01"),
            "february": post("February", "2024-02-01"),
        }
    )
    assert [item.id for item in store.list_all()] == ["february", "january"]


def test_list_all_keeps_source_order_for_equal_dates():
    store = MemoryContentStore(
        {
            "z": post("Z", "2024-01-01"),
            "a": post("A", "2024-01-01"),
            "m": post("M", "2024-01-01"),
            "newer": post("Newer", "2024-06-01"),
        }
    )
    assert [item.id for item in store.list_all()] == ["newer", "z", "a", "m"]


def test_file_store_tie_break_uses_filename_order(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    for name in ("c", "a", "b"):
        (posts / f"{name}.md").write_text(post(name, "2024-01-01"), encoding="utf-8")
    assert [item.id for item in FileContentStore(posts).list_all()] == ["a", "b", "c"]


def test_list_all_skips_malformed_entries_with_warning(tmp_path, caplog):
    posts = create_posts(tmp_path)
    (posts / "bad-yaml.md").write_text("---\ntitle: [unclosed\n---\nBody", encoding="utf-8")
    (posts / "bad-date.md").write_text(post("Bad", "not-a-date"), encoding="utf-8")
    (posts / "list.md").write_text("---\n- a\n- b\n---\nBody", encoding="utf-8")
    (posts / "binary.md").write_bytes(b"\xff\xfe\x00bad")

    with caplog.at_level(logging.WARNING, logger="folio.content"):
        items = FileContentStore(posts).list_all()

    assert len(items) == 2
    assert {item.id for item in items} == {"pre-rendering", "ssg-ssr"}
    skipped = [r for r in caplog.records if "Skipping malformed" in r.getMessage()]
    assert len(skipped) == 4


def test_list_all_skips_out_of_range_unquoted_dates(tmp_path, caplog):
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "good.md").write_text("---\ntitle: Good\ndate: 2024-01-01\n---\nBody", encoding="utf-8")
    (posts / "bad.md").write_text("---\ntitle: Bad\ndate: 2024-13-45\n---\nBody", encoding="utf-8")
    store = FileContentStore(posts)

    with caplog.at_level(logging.WARNING, logger="folio.content"):
        items = store.list_all()

    assert [item.id for item in items] == ["good"]
    assert any("Skipping malformed" in r.getMessage() for r in caplog.records)
    with pytest.raises(MalformedContent):
        store.get_by_id("bad")


def test_get_by_id_raises_for_malformed_and_missing(tmp_path):
    posts = create_posts(tmp_path)
    (posts / "bad-date.md").write_text(post("Bad", "not-a-date"), encoding="utf-8")
    store = FileContentStore(posts)
    with pytest.raises(MalformedContent):
        store.get_by_id("bad-date")
    with pytest.raises(NotFound) as excinfo:
        store.get_by_id("missing")
    assert excinfo.value.content_id == "missing"


def test_missing_directory_is_store_unavailable(tmp_path):
    store = FileContentStore(tmp_path / "nope")
    with pytest.raises(StoreUnavailable):
        store.list_all()
    with pytest.raises(StoreUnavailable):
        store.get_by_id("anything")


def test_drafts_and_non_markdown_files(tmp_path):
    posts = create_posts(tmp_path)
    (posts / "_draft.md").write_text(post("Draft", "2030-01-01"), encoding="utf-8")
    (posts / "notes.txt").write_text("ignore", encoding="utf-8")
    (posts / "nested").mkdir()
    (posts / "nested" / "deep.md").write_text(post("Deep", "2024-01-01"), encoding="utf-8")

    ids = [item.id for item in FileContentStore(posts).list_all()]
    assert ids == ["ssg-ssr", "pre-rendering"]

    with_drafts = FileContentStore(posts, include_drafts=True)
    assert with_drafts.list_all()[0].id == "_draft"
    with pytest.raises(NotFound):
        FileContentStore(posts).get_by_id("_draft")


def test_metadata_fallbacks(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "2024-03-05-hello-world.md").write_text("Just text", encoding="utf-8")
    (posts / "heading.md").write_text("# From Heading\n\nText", encoding="utf-8")
    store = FileContentStore(posts)

    dated = store.get_by_id("2024-03-05-hello-world")
    assert dated.title == "Hello World"
    assert dated.date == "2024-03-05"

    path = posts / "heading.md"
    heading = store.get_by_id("heading")
    assert heading.title == "From Heading"
    assert heading.date == datetime.fromtimestamp(path.stat().st_mtime).date().isoformat()


def test_unquoted_yaml_datetimes_are_normalized():
    store = MemoryContentStore({"post": "---\ntitle: Post\ndate: 2024-01-15 10:30:00\n---\nBody"})
    assert store.get_by_id("post").date == "2024-01-15T10:30:00"


def test_items_are_immutable():
    item = ContentItem(id="a", title="A", date="2024-01-01", raw_body="x")
    with pytest.raises(AttributeError):
        item.title = "B"  # type: ignore[misc]
    assert item.summary().raw_body == ""
    assert item.published == datetime(2024, 1, 1)


def test_rendered_content_formats_date_on_demand():
    rendered = RenderedContent(id="a", title="A", date="2020-01-02", html="<p>x</p>")
    assert rendered.formatted_date() == "January 2, 2020"
    assert rendered.formatted_date("%d.%m.%Y") == "02.01.2020"
