"""Writing generated pages to disk.

This is the only pipeline stage with file system side effects. Saving the
same pages twice produces byte-identical files.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .content import Page
from .errors import OutputWriteError

logger = logging.getLogger(__name__)


class PageSaver:
    """Writes page content to each page's output path.

    Attributes:
        encoding: Text encoding of written files.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def save(self, page: Page) -> Path:
        """Write one page, creating parent directories and overwriting.

        Raises:
            OutputWriteError: If the directory or file cannot be written.
        """
        target = page.output_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding=self.encoding, newline="") as f:
                f.write(page.content)
        except OSError as exc:
            raise OutputWriteError(target, exc) from exc
        logger.debug("Wrote %s", target)
        return target

    def save_all(self, pages: Iterable[Page]) -> list[Path]:
        """Write every page; the first failure aborts the remaining writes."""
        return [self.save(page) for page in pages]


def save_pages(pages: Iterable[Page]) -> list[Path]:
    """Write pages to their output paths.

    Returns:
        Paths written, in the order of ``pages``.

    Raises:
        OutputWriteError: On the first page that cannot be written.
    """
    written = PageSaver().save_all(pages)
    logger.info("Saved %d pages", len(written))
    return written
