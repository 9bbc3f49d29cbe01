"""Exceptions raised by the Noctule pipeline.

Recoverable errors (configuration parsing, a single document failing to
render) are logged and the build carries on. Structural errors (unreadable
source tree, output paths colliding, unwritable output) abort the build.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class NoctuleError(Exception):
    """Base class for every error raised by Noctule."""


class ConfigError(NoctuleError):
    """Site configuration could not be read, parsed or validated.

    Attributes:
        path: Configuration file involved, if known.
    """

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class SourceReadError(NoctuleError):
    """A source file or the source directory could not be read."""

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class RenderError(NoctuleError):
    """A renderer failed for a single document.

    Attributes:
        source_path: Relative path of the document being rendered. Filled in
            by the generator when the error is raised deeper down.
        message: Human-readable error message.
        original_error: The exception that was caught, if any.
    """

    def __init__(
        self,
        message: str,
        source_path: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.source_path = source_path
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        if self.source_path:
            return f"{self.source_path}: {self.message}"
        return self.message


class LayoutCycleError(RenderError):
    """A layout references itself, directly or through other layouts."""

    def __init__(self, chain: Iterable[str], source_path: str | None = None):
        self.chain = tuple(chain)
        super().__init__(
            f"Layout cycle detected: {' -> '.join(self.chain)}", source_path
        )


class LayoutNotFoundError(RenderError):
    """A layout named in front matter does not exist."""

    def __init__(self, name: str, source_path: str | None = None):
        self.name = name
        super().__init__(f"Layout not found: {name}", source_path)


class DuplicateOutputPathError(NoctuleError):
    """Two pages would be written to the same output path."""

    def __init__(self, path: str, sources: Iterable[str | None]):
        self.path = path
        self.sources = tuple(s or "<listing>" for s in sources)
        super().__init__(
            f"Output path {path} is produced by more than one page: "
            + ", ".join(self.sources)
        )


class OutputWriteError(NoctuleError):
    """A page could not be written to the output directory."""

    def __init__(self, path: Path, original_error: Exception):
        self.path = path
        self.original_error = original_error
        super().__init__(f"{path}: cannot write page ({original_error})")
