"""Protocol definitions for Noctule.

These protocols are the seams between the pipeline stages. The generator
depends only on them, so new renderers and extractors can be plugged in
without changing it.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .sources import SourceDocument


@runtime_checkable
class Renderer(Protocol):
    """A rendering capability: a pure ``(body, context) -> text`` function.

    Implementations must not touch the file system or keep mutable state
    between calls, so that rendering the same input twice yields the same
    output.
    """

    @abstractmethod
    def render(self, body: str, context: Mapping[str, Any]) -> str:
        """Render a body against a context.

        Args:
            body: Source text.
            context: Template variables: site variables, front matter and
                derived metadata.

        Returns:
            Rendered text, usually HTML.
        """
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Derive metadata fields from a rendered fragment."""

    @abstractmethod
    def extract(self, html: str, document: SourceDocument) -> dict[str, Any]:
        """Extract metadata.

        Args:
            html: Rendered body of the document, before layouts.
            document: The source document.

        Returns:
            Dictionary of derived fields.
        """
        ...
