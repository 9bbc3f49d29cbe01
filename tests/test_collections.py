import math
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from types import MappingProxyType

import pytest

from noctule.collections import (
    PageCollection,
    expand_collection,
    group_pages,
    listing_path,
    matches,
    order_pages,
    paginate,
    select_pages,
)
from noctule.config import CollectionConfig
from noctule.content import Page


def make_page(source_path, **metadata):
    path = source_path.rsplit(".", 1)[0] + ".html"
    return Page(
        path=path,
        output_path=Path("/out") / path,
        content="",
        metadata=MappingProxyType(metadata),
        source_path=source_path,
    )


def sources(pages):
    return [p.source_path for p in pages]


@pytest.fixture
def posts():
    return [
        make_page("posts/a.md", title="A", date=date(2024, 1, 2), tags=["python"]),
        make_page("posts/b.md", title="B", date=date(2024, 1, 5), tags=["python", "web"]),
        make_page("posts/c.md", title="C", date=date(2024, 1, 2), tags=["web"]),
        make_page("posts/d.md", title="D"),
        make_page("about.md", title="About"),
    ]


def test_order_descending_breaks_ties_by_source_path(posts):
    ordered = order_pages(posts[:4], ["-date"])
    assert sources(ordered) == ["posts/b.md", "posts/a.md", "posts/c.md", "posts/d.md"]


def test_missing_values_sort_last_in_both_directions(posts):
    ordered = order_pages(posts[:4], ["date"])
    assert sources(ordered) == ["posts/a.md", "posts/c.md", "posts/b.md", "posts/d.md"]


def test_order_by_several_fields():
    pages = [
        make_page("1.md", category="b", title="x"),
        make_page("2.md", category="a", title="y"),
        make_page("3.md", category="a", title="z"),
    ]
    assert sources(order_pages(pages, ["category", "-title"])) == ["3.md", "2.md", "1.md"]


def test_order_is_stable_without_fields(posts):
    assert sources(order_pages(reversed(posts), [])) == sorted(sources(posts))


def test_mixed_value_types():
    pages = [
        make_page("s.md", rank="text"),
        make_page("d.md", rank=date(2024, 1, 1)),
        make_page("n.md", rank=3),
        make_page("f.md", rank=1.5),
    ]
    assert sources(order_pages(pages, ["rank"])) == ["f.md", "n.md", "d.md", "s.md"]


def test_aware_and_naive_dates_compare():
    pages = [
        make_page("aware.md", date=datetime(2024, 1, 1, 23, 0, tzinfo=timezone(timedelta(hours=-5)))),
        make_page("naive.md", date=date(2024, 1, 2)),
    ]
    assert sources(order_pages(pages, ["-date"])) == ["aware.md", "naive.md"]


@pytest.mark.parametrize("count,size", [(0, 3), (1, 3), (3, 3), (5, 2), (10, 3), (7, 1)])
def test_paginate_chunk_count(count, size):
    items = [make_page(f"{i:02}.md") for i in range(count)]
    chunks = paginate(items, size)
    assert len(chunks) == math.ceil(count / size)
    assert all(len(chunk) <= size for chunk in chunks)
    assert [p for chunk in chunks for p in chunk] == items


def test_paginate_without_page_size():
    assert paginate([], None) == [[]]
    items = [make_page("a.md"), make_page("b.md")]
    assert paginate(items, None) == [items]


def test_listing_path():
    assert listing_path("posts", 1) == "posts/index.html"
    assert listing_path("posts", 2) == "posts/page/2.html"
    assert listing_path("", 1) == "index.html"
    assert listing_path("", 3) == "page/3.html"


def test_matches(posts):
    a, _, c, _, about = posts
    assert matches(a, {"source": "posts/*"})
    assert not matches(about, {"source": "posts/*"})
    assert matches(about, {"source": ["posts/*", "*.md"]})
    assert matches(a, {"extension": "md"})
    assert matches(a, {"tags": "python"})
    assert not matches(c, {"tags": "python"})
    assert matches(c, {"tags": ["python", "web"]})
    assert matches(about, {"title": ["About", "Home"]})
    assert matches(a, {})

    listing = Page(path="posts/index.html", output_path=Path("/out/posts/index.html"), content="")
    assert not matches(listing, {"source": "*"})


def test_group_pages(posts):
    pages = posts + [make_page("posts/e.md", tags=["web", "web"])]
    groups = dict(group_pages(pages, "tags"))
    assert list(groups) == ["python", "web"]
    assert sources(groups["python"]) == ["posts/a.md", "posts/b.md"]
    assert sources(groups["web"]) == ["posts/b.md", "posts/c.md", "posts/e.md"]


def test_group_values_with_same_slug_share_a_group():
    pages = [
        make_page("a.md", tags=["Python"]),
        make_page("b.md", tags=["python", "PYTHON"]),
    ]
    ((value, members),) = group_pages(pages, "tags")
    assert value == "Python"
    assert sources(members) == ["a.md", "b.md"]


def test_unhashable_group_values():
    pages = [make_page("a.md", tags=[{"name": "x"}]), make_page("b.md", tags=["y"])]
    groups = group_pages(pages, "tags")
    assert [value for value, _ in groups] == [{"name": "x"}, "y"]

    collection = CollectionConfig(name="tags", url="tags", group_by="tags")
    assert [l.path for l in expand_collection(collection, pages)] == [
        "tags/name-x/index.html",
        "tags/y/index.html",
    ]


def test_select_pages_filters_and_orders(posts):
    collection = CollectionConfig(
        name="posts", filter={"source": "posts/*"}, sort_fields=("-date",)
    )
    assert sources(select_pages(collection, posts)) == [
        "posts/b.md",
        "posts/a.md",
        "posts/c.md",
        "posts/d.md",
    ]


def test_expand_collection_paginates_with_navigation(posts):
    collection = CollectionConfig(
        name="posts",
        filter={"source": "posts/*"},
        sort_fields=("-date",),
        page_size=3,
        layout="list",
        url="blog",
    )
    first, second = expand_collection(collection, posts)

    assert first.path == "blog/index.html"
    assert second.path == "blog/page/2.html"
    assert sources(first.items) == ["posts/b.md", "posts/a.md", "posts/c.md"]
    assert sources(second.items) == ["posts/d.md"]
    assert (first.page_number, first.total_pages) == (1, 2)
    assert first.previous_path is None
    assert first.next_path == "blog/page/2.html"
    assert second.previous_path == "blog/index.html"
    assert second.next_path is None

    meta = second.metadata()
    assert meta["collection"] == "posts"
    assert meta["layout"] == "list"
    assert meta["group"] is None


def test_empty_collection():
    paged = CollectionConfig(name="posts", filter={"source": "posts/*"}, page_size=5, url="posts")
    assert expand_collection(paged, []) == []

    single = CollectionConfig(name="posts", filter={"source": "posts/*"}, url="posts")
    (listing,) = expand_collection(single, [])
    assert listing.path == "posts/index.html"
    assert len(listing.items) == 0
    assert listing.total_pages == 1


def test_expand_collection_grouped(posts):
    collection = CollectionConfig(
        name="tags", sort_fields=("title",), page_size=1, url="tags", group_by="tags"
    )
    listings = expand_collection(collection, posts)
    assert [(l.group, l.path) for l in listings] == [
        ("python", "tags/python/index.html"),
        ("python", "tags/python/page/2.html"),
        ("web", "tags/web/index.html"),
        ("web", "tags/web/page/2.html"),
    ]
    assert listings[1].previous_path == "tags/python/index.html"
    assert listings[1].next_path is None


def test_page_collection_helpers(posts):
    collection = PageCollection(posts)
    assert len(collection.with_tag("web")) == 2
    assert sources(collection.where(title="About")) == ["about.md"]
    assert sources(collection.order_by("-title")[:2]) == ["posts/d.md", "posts/c.md"]
    assert isinstance(collection[1:], PageCollection)
    assert collection[0] is posts[0]
    assert sources(collection.latest(2)) == ["posts/b.md", "posts/a.md"]
