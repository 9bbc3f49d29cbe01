"""Front matter parsing and metadata extractors for Noctule.

Front matter is a YAML block delimited by ``---`` lines at the very start of a
source file. Derived metadata (title, excerpt, image, date) is computed from
the rendered HTML fragment of a document by small extractors, each handling a
single field, combined by CompositeMetadataExtractor.

Key classes:
- TitleExtractor: Title from front matter, first heading or filename.
- ExcerptExtractor: First paragraph of the rendered HTML.
- ImageExtractor: First image URL of the rendered HTML.
- DateExtractor: Date from front matter or a YYYY-MM-DD filename prefix.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

import yaml

from .html_utils import get_first_heading, get_first_image, get_first_paragraph
from .utils import extract_date_from_name, titleize

if TYPE_CHECKING:
    from .sources import SourceDocument

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)


def extract_frontmatter(text: str, source: str | None = None) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from the body.

    Args:
        text: Raw file content.
        source: Path used in log messages.

    Returns:
        Tuple of (front matter dict, body). The dict is empty when the file
        has no front matter block or the block is not a YAML mapping; in the
        latter case the whole text is returned as the body.
    """
    text = text.removeprefix("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed front matter in %s: %s", source or "<text>", exc)
        return {}, text
    if data is None:
        data = {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring front matter in %s: expected a mapping, got %s",
            source or "<text>",
            type(data).__name__,
        )
        return {}, text
    return {str(key): value for key, value in data.items()}, text[match.end() :]


class TitleExtractor:
    """Title from front matter, else the first ``<h1>``, else the filename."""

    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        title = document.front_matter.get("title")
        if not title:
            title = get_first_heading(html) or titleize(
                PurePosixPath(document.source_path).name
            )
        return {"title": title}


class ExcerptExtractor:
    """First paragraph of the rendered HTML, None when there is none."""

    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        return {"excerpt": get_first_paragraph(html)}


class ImageExtractor:
    """Source URL of the first image in the rendered HTML."""

    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        return {"image": get_first_image(html)}


class DateExtractor:
    """Date from front matter or a YYYY-MM-DD filename prefix.

    Nothing is returned when neither is present, so undated documents stay
    undated instead of picking up a file modification time.
    """

    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        if document.front_matter.get("date") is not None:
            return {"date": document.front_matter["date"]}
        date = extract_date_from_name(PurePosixPath(document.source_path).stem)
        return {"date": date} if date else {}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every extractor on the rendered fragment and merges their results.
    Later extractors override earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                ExcerptExtractor(),
                ImageExtractor(),
                DateExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(html, document))
        return result


default_metadata_extractor = CompositeMetadataExtractor()
