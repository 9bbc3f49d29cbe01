"""The Page value produced by generation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class Page:
    """One output artifact.

    Attributes:
        path: Output path relative to the output directory, POSIX separators.
        output_path: Absolute location the page is written to.
        content: Final HTML after all layouts.
        metadata: Front matter plus derived fields (title, excerpt, image,
            date, url). Read-only.
        source_path: Relative path of the source document, None for
            listing pages.
    """

    path: str
    output_path: Path
    content: str
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    source_path: str | None = None

    @property
    def url(self) -> str:
        return f"/{self.path}"

    @property
    def title(self) -> Any:
        return self.metadata.get("title")

    @property
    def is_listing(self) -> bool:
        return self.source_path is None

    def __getitem__(self, key: str) -> Any:
        return self.metadata[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)
