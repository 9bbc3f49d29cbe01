"""Collections: filtered, ordered, grouped and paginated page listings.

A collection gathers the pages matching its filter, orders them by a list of
short sort specs (``["-date", "title"]``), optionally splits them into groups
by a field value, and cuts each sequence into fixed-size listing pages.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from fnmatch import fnmatchcase
from functools import cmp_to_key
from numbers import Number
from typing import Any

from .config import CollectionConfig
from .content import Page
from .utils import format_fields_for_sort_by_order, slugify


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PageCollection(self._pages[item])
        return self._pages[item]

    def where(self, **criteria: Any) -> PageCollection:
        return PageCollection(p for p in self._pages if matches(p, criteria))

    def with_tag(self, tag: str) -> PageCollection:
        return self.where(tags=tag)

    def order_by(self, *sort_fields: str) -> PageCollection:
        return PageCollection(order_pages(self._pages, sort_fields))

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(order_pages(self._pages, ["-date"])[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


def field_value(page: Page, name: str) -> Any:
    """Value of ``name`` in the page metadata, else the page attribute."""
    if name in page.metadata:
        return page.metadata[name]
    return getattr(page, name, None)


def _value_matches(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple, set, frozenset)):
        if isinstance(expected, (list, tuple)):
            return any(item in actual for item in expected)
        return expected in actual
    if isinstance(expected, (list, tuple)):
        return actual in expected
    return actual == expected


def matches(page: Page, criteria: Mapping[str, Any]) -> bool:
    """Check a page against collection filter criteria.

    ``source`` is a glob over the source path and ``extension`` compares the
    source file extension; listing pages never match either. Any other key
    compares the page's field value; list values match by membership.
    """
    for key, expected in criteria.items():
        if key == "source":
            if page.source_path is None:
                return False
            patterns = expected if isinstance(expected, (list, tuple)) else [expected]
            if not any(fnmatchcase(page.source_path, str(p)) for p in patterns):
                return False
        elif key == "extension":
            if page.source_path is None:
                return False
            extension = page.source_path.rpartition(".")[2] if "." in page.source_path else ""
            if not _value_matches(extension, expected):
                return False
        elif not _value_matches(field_value(page, key), expected):
            return False
    return True


def _natural_key(value: Any) -> tuple[int, Any]:
    """Rank values so numbers sort before dates, and dates before strings."""
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, Number):
        return (0, value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return (1, value)
    if isinstance(value, date):
        return (1, datetime.combine(value, time()))
    return (2, str(value))


def _compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def order_pages(pages: Iterable[Page], sort_fields: Iterable[str]) -> list[Page]:
    """Order pages by short sort specs.

    Each field compares by natural ordering; ``-field`` reverses that field
    only. Missing values sort last whatever the direction. Ties fall through
    to the next field and finally to the source path (listing pages use
    their output path).

    Examples:
        >>> order_pages(pages, ["-date", "title"])  # doctest: +SKIP
    """
    fields, directions = format_fields_for_sort_by_order(sort_fields)

    def compare(a: Page, b: Page) -> int:
        for name, direction in zip(fields, directions):
            va, vb = field_value(a, name), field_value(b, name)
            if va is None or vb is None:
                if va is None and vb is None:
                    continue
                return 1 if va is None else -1
            result = _compare(_natural_key(va), _natural_key(vb))
            if result:
                return -result if direction == "desc" else result
        return _compare(a.source_path or a.path, b.source_path or b.path)

    return sorted(pages, key=cmp_to_key(compare))


def group_pages(pages: Iterable[Page], name: str) -> list[tuple[Any, list[Page]]]:
    """Group pages by the value of field ``name``.

    Values are grouped by slug, so ``Python`` and ``python`` share one group
    shown under the first value seen. List values put the page in every
    group they name. Pages without the field are left out. Groups keep the
    incoming page order and are returned as ``(value, pages)`` pairs sorted
    by slug.
    """
    groups: dict[str, tuple[Any, list[Page]]] = {}
    for page in pages:
        value = field_value(page, name)
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        for item in values:
            _, members = groups.setdefault(slugify(item), (item, []))
            if not members or members[-1] is not page:
                members.append(page)
    return [groups[key] for key in sorted(groups)]


def paginate(items: Sequence[Page], page_size: int | None) -> list[list[Page]]:
    """Split items into chunks of ``page_size``.

    Without a page size everything is one chunk. With a page size, M items
    make ``ceil(M / page_size)`` chunks, so no items means no chunks.
    """
    if page_size is None:
        return [list(items)]
    count = math.ceil(len(items) / page_size)
    return [list(items[i * page_size : (i + 1) * page_size]) for i in range(count)]


def listing_path(prefix: str, page_number: int) -> str:
    """Output path of the ``page_number``-th listing page under ``prefix``.

    Examples:
        >>> listing_path("blog", 1)
        'blog/index.html'
        >>> listing_path("blog", 3)
        'blog/page/3.html'
    """
    name = "index.html" if page_number == 1 else f"page/{page_number}.html"
    return f"{prefix}/{name}" if prefix else name


@dataclass(frozen=True)
class Listing:
    """One listing page of a collection, before rendering."""

    collection: str
    path: str
    items: PageCollection
    page_number: int
    total_pages: int
    next_path: str | None
    previous_path: str | None
    group: Any = None
    layout: str | None = None

    def metadata(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "group": self.group,
            "items": self.items,
            "page_number": self.page_number,
            "total_pages": self.total_pages,
            "next_path": self.next_path,
            "previous_path": self.previous_path,
            "layout": self.layout,
        }


def _series(
    collection: CollectionConfig, prefix: str, items: list[Page], group: Any
) -> list[Listing]:
    chunks = paginate(items, collection.page_size)
    paths = [listing_path(prefix, n) for n in range(1, len(chunks) + 1)]
    return [
        Listing(
            collection=collection.name,
            path=paths[i],
            items=PageCollection(chunk),
            page_number=i + 1,
            total_pages=len(chunks),
            next_path=paths[i + 1] if i + 1 < len(paths) else None,
            previous_path=paths[i - 1] if i > 0 else None,
            group=group,
            layout=collection.layout,
        )
        for i, chunk in enumerate(chunks)
    ]


def select_pages(collection: CollectionConfig, pages: Iterable[Page]) -> list[Page]:
    """Pages of a collection: filtered and ordered."""
    selected = [p for p in pages if matches(p, collection.filter)]
    return order_pages(selected, collection.sort_fields)


def expand_collection(collection: CollectionConfig, pages: Iterable[Page]) -> list[Listing]:
    """Build every listing page of a collection.

    Args:
        collection: Collection configuration.
        pages: Candidate pages, normally every per-file page of the build.

    Returns:
        Listings in output order: per group (if grouped), per page number.
    """
    ordered = select_pages(collection, pages)
    if not collection.group_by:
        return _series(collection, collection.url, ordered, None)
    listings: list[Listing] = []
    for value, items in group_pages(ordered, collection.group_by):
        prefix = "/".join(p for p in (collection.url, slugify(value)) if p)
        listings.extend(_series(collection, prefix, items, value))
    return listings
