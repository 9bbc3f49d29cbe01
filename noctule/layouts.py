"""Layout chaining for Noctule.

A layout is a template in the layouts directory that receives the page's
rendered HTML as ``content``. A layout may carry front matter; its
``layout`` key names the next layout to wrap the result in. Chaining stops
at a layout without a ``layout`` key.

The chain is a small state machine: the state is the current content plus
the next layout name, each transition is one render, and a layout name seen
twice for the same page raises LayoutCycleError.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any

from markupsafe import Markup

from .errors import LayoutCycleError, LayoutNotFoundError
from .extractors import extract_frontmatter
from .protocols import Renderer

logger = logging.getLogger(__name__)

LAYOUT_SUFFIXES = ("", ".html", ".jinja", ".html.jinja")


@dataclass(frozen=True)
class Layout:
    """A layout template split into front matter and body."""

    name: str
    path: Path
    body: str
    front_matter: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def parent(self) -> str | None:
        """Name of the layout wrapping this one, if any."""
        return self.front_matter.get("layout") or None


class LayoutStore:
    """Finds and parses layouts by name.

    Layout files are read once per store and cached.

    Attributes:
        layouts_dir: Directory containing layout templates.
    """

    def __init__(self, layouts_dir: Path):
        self.layouts_dir = Path(layouts_dir)
        self._cache: dict[str, Layout] = {}

    def find(self, name: str) -> Layout:
        """Return the layout called ``name``.

        Candidates are tried in order: ``name``, ``name.html``,
        ``name.jinja``, ``name.html.jinja``.

        Raises:
            LayoutNotFoundError: If no candidate exists or ``name`` points
                outside the layouts directory.
        """
        if name in self._cache:
            return self._cache[name]
        parts = PurePosixPath(str(name).replace("\\", "/"))
        if parts.is_absolute() or ".." in parts.parts:
            raise LayoutNotFoundError(name)
        for suffix in LAYOUT_SUFFIXES:
            target = self.layouts_dir / f"{name}{suffix}"
            if target.is_file():
                front_matter, body = extract_frontmatter(
                    target.read_text(encoding="utf-8"), str(target)
                )
                layout = Layout(name, target, body, MappingProxyType(front_matter))
                self._cache[name] = layout
                return layout
        raise LayoutNotFoundError(name)


class LayoutChain:
    """Wraps rendered content in its chain of layouts.

    Args:
        store: Where layouts are looked up.
        renderer: Renderer used for every layout body.
    """

    def __init__(self, store: LayoutStore, renderer: Renderer):
        self.store = store
        self.renderer = renderer

    def apply(self, content: str, context: Mapping[str, Any]) -> str:
        """Render ``content`` through the layout named in ``context``.

        Args:
            content: Rendered page body.
            context: Page context; its ``layout`` key starts the chain.

        Returns:
            The fully wrapped HTML, or ``content`` unchanged when no layout
            is named.

        Raises:
            LayoutCycleError: If a layout is reached twice.
            LayoutNotFoundError: If a named layout does not exist.
        """
        name = context.get("layout") or None
        visited: list[str] = []
        while name:
            if name in visited:
                raise LayoutCycleError([*visited, name])
            visited.append(name)
            layout = self.store.find(name)
            context = {
                **layout.front_matter,
                **context,
                "content": Markup(content),
                "layout": layout.parent,
            }
            logger.debug("Applying layout %s", name)
            content = self.renderer.render(layout.body, context)
            name = layout.parent
        return content
