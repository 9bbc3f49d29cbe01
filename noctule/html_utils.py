"""HTML utility functions for Noctule.

This module provides the HTML helpers used by templates and by metadata
derivation: escaping, tag stripping, meta tag builders and first-match
lookups in rendered HTML.

Renderers never escape their output; escaping happens here, at the point
where text is embedded into attributes such as meta tags.

Functions:
    escape_html: Escape special HTML characters in a string.
    strip_tags: Remove markup from a string.
    clean_html: Strip markup and escape what is left.
    meta: Build a ``<meta name=...>`` tag.
    og: Build an Open Graph ``<meta property=...>`` tag.
    get_first_paragraph: Inner HTML of the first paragraph.
    get_first_image: Source URL of the first image.
    get_first_heading: Text of the first level-1 heading.
"""

from __future__ import annotations

import re

from markupsafe import Markup

_PARAGRAPH_RE = re.compile(r"<p[^>]*>(.*?)</p>", re.IGNORECASE)
_IMAGE_RE = re.compile(r"""<img\s+src=["']([^"']+)["']""", re.IGNORECASE)
_HEADING_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'

        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def strip_tags(text: str) -> str:
    """Remove tags and comments, decoding entities and collapsing whitespace."""
    return Markup(str(text)).striptags()


def clean_html(text: str) -> str:
    """Remove HTML and escape special characters.

    Examples:
        >>> clean_html("<b>Hi & Bye</b>")
        'Hi &amp; Bye'
    """
    return escape_html(strip_tags(text)).strip()


def meta(name: str, content: str) -> str:
    """Return an HTML meta tag with sanitized content.

    Examples:
        >>> meta("description", "<b>Hi & Bye</b>")
        '<meta name="description" content="Hi &amp; Bye">'
    """
    return f'<meta name="{name}" content="{clean_html(content)}">'


def og(name: str, content: str) -> str:
    """Return an Open Graph meta tag with sanitized content."""
    return f'<meta property="{name}" content="{clean_html(content)}">'


def get_first_paragraph(html: str) -> str | None:
    """Return the content of the first paragraph in the given HTML.

    Matching is case-insensitive and non-greedy and does not span lines.
    """
    match = _PARAGRAPH_RE.search(html)
    return match.group(1) if match else None


def get_first_image(html: str) -> str | None:
    """Return the URL of the first image in the given HTML."""
    match = _IMAGE_RE.search(html)
    return match.group(1) if match else None


def get_first_heading(html: str) -> str | None:
    """Return the plain text of the first ``<h1>`` in the given HTML."""
    match = _HEADING_RE.search(html)
    if not match:
        return None
    return strip_tags(match.group(1)) or None
