"""Source document loading for Noctule.

This module walks the source directory and turns every file into a
SourceDocument: its relative path, extension, front matter and raw body.

Key classes:
- SourceDocument: Immutable value for one source file.
- SourceTree: Lazy, restartable iterable over a source directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .config import Config
from .errors import SourceReadError
from .extractors import extract_frontmatter
from .utils import get_extension

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    """A source file split into front matter and body.

    Attributes:
        source_path: Path relative to the source directory, POSIX separators.
        extension: Filename suffix without the dot, case preserved.
        front_matter: Read-only metadata mapping, empty without a block.
        raw_body: Text following the front matter block.
    """

    source_path: str
    extension: str
    front_matter: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    raw_body: str = ""

    @classmethod
    def from_text(cls, source_path: str, text: str) -> SourceDocument:
        front_matter, body = extract_frontmatter(text, source_path)
        return cls(
            source_path=source_path,
            extension=get_extension(source_path),
            front_matter=MappingProxyType(front_matter),
            raw_body=body,
        )


class SourceTree:
    """Every document below a source directory, in relative-path order.

    Iterating walks and reads the directory again, so a tree can be iterated
    any number of times. Files and directories whose name starts with a dot
    are skipped.

    Attributes:
        source_dir: Directory being read.
        config: Configuration the tree was loaded for, if any.
    """

    def __init__(self, source_dir: Path, config: Config | None = None, encoding: str = "utf-8"):
        self.source_dir = Path(source_dir)
        self.config = config
        self.encoding = encoding

    def iter_files(self) -> list[Path]:
        """Return all source files sorted by relative POSIX path.

        Raises:
            SourceReadError: If the source directory does not exist.
        """
        if not self.source_dir.is_dir():
            raise SourceReadError(self.source_dir, "source directory does not exist")
        files: list[Path] = []
        for path in self.source_dir.rglob("*"):
            rel = path.relative_to(self.source_dir)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if path.is_file():
                files.append(path)
        return sorted(files, key=lambda p: p.relative_to(self.source_dir).as_posix())

    def load(self, path: Path) -> SourceDocument:
        """Read one file into a SourceDocument.

        Raises:
            SourceReadError: If the file cannot be read or decoded.
        """
        rel = path.relative_to(self.source_dir).as_posix()
        try:
            text = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(path, f"cannot read source file ({exc})") from exc
        logger.debug("Loaded %s", rel)
        return SourceDocument.from_text(rel, text)

    def __iter__(self) -> Iterator[SourceDocument]:
        for path in self.iter_files():
            yield self.load(path)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SourceTree({str(self.source_dir)!r})"


def load_source_files(source: Config | Path | str) -> SourceTree:
    """Return the source documents for a configuration or directory.

    Nothing is read until the result is iterated.
    """
    if isinstance(source, Config):
        return SourceTree(source.source_dir, config=source)
    return SourceTree(Path(source))
