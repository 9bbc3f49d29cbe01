"""Helpers available to renderers and templates.

Importable as ``noctule.helpers`` and installed as globals of the template
renderer under the same names.
"""

from __future__ import annotations

from .html_utils import (
    clean_html,
    escape_html,
    get_first_image,
    get_first_paragraph,
    meta,
    og,
    strip_tags,
)
from .utils import format_fields_for_sort_by_order, get_extension, remove_extension

__all__ = [
    "TEMPLATE_HELPERS",
    "clean_html",
    "escape_html",
    "format_fields_for_sort_by_order",
    "get_extension",
    "get_first_image",
    "get_first_paragraph",
    "meta",
    "og",
    "remove_extension",
    "strip_tags",
]

TEMPLATE_HELPERS = {
    "clean_html": clean_html,
    "escape_html": escape_html,
    "strip_tags": strip_tags,
    "meta": meta,
    "og": og,
    "get_first_paragraph": get_first_paragraph,
    "get_first_image": get_first_image,
}
