"""Page generation for Noctule.

This module turns SourceDocuments into Pages. For every document it picks a
renderer by extension, renders the body against the site variables and
front matter, derives metadata from the rendered fragment, wraps the result
in its layout chain and computes the output path. Once every document is
done, configured collections are expanded into listing pages.

Render failures are per document: the error is logged, the document is
skipped and the result reports the failure. With ``fail_fast`` the first
failure is raised instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any

from jinja2 import TemplateSyntaxError

from .collections import Listing, expand_collection
from .config import Config
from .content import Page
from .errors import DuplicateOutputPathError, RenderError
from .extractors import CompositeMetadataExtractor, default_metadata_extractor
from .formatting import Formatters
from .layouts import LayoutChain, LayoutStore
from .renderers import PassthroughRenderer, RendererRegistry, create_default_registry
from .sources import SourceDocument
from .utils import remove_extension

logger = logging.getLogger(__name__)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


@contextmanager
def _render_errors(label: str) -> Iterator[None]:
    """Turn any exception raised while rendering into a RenderError for ``label``."""
    try:
        yield
    except RenderError as exc:
        exc.source_path = exc.source_path or label
        raise
    except TemplateSyntaxError as exc:
        raise RenderError(
            f"Template syntax error on line {exc.lineno}: {exc.message}", label, exc
        ) from exc
    except Exception as exc:
        raise RenderError(_format_error_message(exc), label, exc) from exc


class GenerationResult(Sequence[Page]):
    """Pages produced by a generation run, plus the documents that failed.

    Behaves as a sequence of pages, so it can be handed straight to
    save_pages.

    Attributes:
        pages: Per-document pages in source order, then listing pages.
        failures: RenderErrors for skipped documents and listings.
    """

    def __init__(self, pages: Iterable[Page], failures: Iterable[RenderError] = ()):
        self.pages = list(pages)
        self.failures = list(failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __iter__(self) -> Iterator[Page]:
        return iter(self.pages)

    def __len__(self) -> int:
        return len(self.pages)

    def __getitem__(self, item):
        return self.pages[item]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"GenerationResult({len(self.pages)} pages, {len(self.failures)} failures)"


class PageGenerator:
    """Renders source documents and collections into Pages.

    Attributes:
        config: Site configuration.
        formatters: Formatter caches shared by every render of the run.
        registry: Renderer registry resolved through ``config.renderers``.
        fail_fast: Raise the first RenderError instead of skipping documents.
        metadata_extractor: Derives title, excerpt, image and date.
    """

    def __init__(
        self,
        config: Config,
        registry: RendererRegistry | None = None,
        formatters: Formatters | None = None,
        *,
        fail_fast: bool | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.config = config
        self.formatters = formatters or Formatters()
        self.registry = registry or create_default_registry(config, self.formatters)
        self.fail_fast = config.fail_fast if fail_fast is None else fail_fast
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self._passthrough = PassthroughRenderer()
        self._layouts: LayoutChain | None = None

    @property
    def layouts(self) -> LayoutChain:
        if self._layouts is None:
            self._layouts = LayoutChain(
                LayoutStore(self.config.layouts_dir),
                self.registry.resolve(self.config.layout_renderer),
            )
        return self._layouts

    def validate(self) -> None:
        """Check that every configured renderer name is registered.

        Raises:
            ConfigError: For the first unknown renderer name.
        """
        for name in self.config.renderers.values():
            self.registry.resolve(name)
        self.registry.resolve(self.config.layout_renderer)

    def generate(self, documents: Iterable[SourceDocument]) -> GenerationResult:
        """Render every document, then every collection.

        Raises:
            ConfigError: If a configured renderer is not registered.
            DuplicateOutputPathError: If two pages share an output path.
            RenderError: On the first failure when ``fail_fast`` is set.
            SourceReadError: If ``documents`` fails to read a file.
        """
        self.validate()
        pages: list[Page] = []
        failures: list[RenderError] = []
        for document in documents:
            try:
                pages.append(self.render_document(document))
            except RenderError as exc:
                self._record_failure(exc, failures)
        pages.extend(self.render_collections(pages, failures))
        _check_unique_paths(pages)
        logger.info("Generated %d pages (%d failed)", len(pages), len(failures))
        return GenerationResult(pages, failures)

    def _record_failure(self, exc: RenderError, failures: list[RenderError]) -> None:
        if self.fail_fast:
            raise exc
        logger.error("Skipping %s: %s", exc.source_path, exc.message)
        failures.append(exc)

    def base_context(self, front_matter: Any = None) -> dict[str, Any]:
        """Site variables overlaid by ``front_matter``; front matter wins."""
        variables = self.config.variables
        return {
            **variables,
            "site": variables,
            "locale": self.config.locale,
            **(front_matter or {}),
        }

    def output_path_for(self, document: SourceDocument, rendered: bool = True) -> str:
        """Compute the output path of a document, relative to the output directory.

        A ``permalink`` in the front matter wins; a trailing slash maps to
        ``index.html``. Otherwise rendered documents swap their extension for
        ``.html`` and unrendered ones keep their source path.

        Raises:
            RenderError: If the permalink leaves the output directory.
        """
        permalink = document.front_matter.get("permalink")
        if permalink:
            path = str(permalink).lstrip("/")
            if not path or path.endswith("/"):
                path += "index.html"
        elif rendered:
            path = f"{remove_extension(document.source_path)}.html"
        else:
            path = document.source_path
        normalized = PurePosixPath(path)
        if ".." in normalized.parts:
            raise RenderError(f"Permalink {permalink!r} points outside the output directory")
        return normalized.as_posix()

    def render_document(self, document: SourceDocument) -> Page:
        """Render one document into a Page.

        Raises:
            RenderError: If rendering, a layout or the output path fails.
        """
        with _render_errors(document.source_path):
            renderer_name = self.config.renderers.get(document.extension)
            if renderer_name is None:
                renderer = self._passthrough
            else:
                renderer = self.registry.resolve(renderer_name)

            context = self.base_context(
                {"source_path": document.source_path, **document.front_matter}
            )
            fragment = renderer.render(document.raw_body, context)

            path = self.output_path_for(document, rendered=renderer_name is not None)
            metadata = {
                **self.metadata_extractor.extract(fragment, document),
                **{k: v for k, v in document.front_matter.items() if v not in (None, "")},
                "source_path": document.source_path,
                "path": path,
                "url": f"/{path}",
            }
            content = self.layouts.apply(fragment, {**context, **metadata})
            logger.debug("Rendered %s -> %s", document.source_path, path)
            return Page(
                path=path,
                output_path=self.config.output_dir / path,
                content=content,
                metadata=MappingProxyType(metadata),
                source_path=document.source_path,
            )

    def render_collections(
        self, pages: Sequence[Page], failures: list[RenderError]
    ) -> list[Page]:
        """Expand every configured collection into listing pages.

        Collections without a layout are skipped: they have nothing to render
        their listings with.
        """
        listing_pages: list[Page] = []
        for collection in self.config.collections:
            if not collection.layout:
                logger.debug("Collection %s has no layout; no listing pages", collection.name)
                continue
            try:
                with _render_errors(collection.name):
                    listings = expand_collection(collection, pages)
            except RenderError as exc:
                self._record_failure(exc, failures)
                continue
            for listing in listings:
                try:
                    listing_pages.append(self.render_listing(listing))
                except RenderError as exc:
                    self._record_failure(exc, failures)
        return listing_pages

    def render_listing(self, listing: Listing) -> Page:
        """Render one listing page through its collection's layout."""
        with _render_errors(listing.path):
            metadata = {
                **listing.metadata(),
                "path": listing.path,
                "url": f"/{listing.path}",
            }
            content = self.layouts.apply("", self.base_context(metadata))
            return Page(
                path=listing.path,
                output_path=self.config.output_dir / listing.path,
                content=content,
                metadata=MappingProxyType(metadata),
            )


def _check_unique_paths(pages: Iterable[Page]) -> None:
    seen: dict[str, Page] = {}
    for page in pages:
        if page.path in seen:
            raise DuplicateOutputPathError(
                page.path, [seen[page.path].source_path, page.source_path]
            )
        seen[page.path] = page


def generate_pages(
    sources: Iterable[SourceDocument],
    config: Config | None = None,
    *,
    registry: RendererRegistry | None = None,
    formatters: Formatters | None = None,
    fail_fast: bool | None = None,
) -> GenerationResult:
    """Generate pages for source documents.

    Args:
        sources: Documents to render, usually a SourceTree.
        config: Site configuration; defaults to ``sources.config``.
        registry: Renderer registry; defaults to the built-in renderers.
        formatters: Formatter caches; a fresh set when omitted.
        fail_fast: Override ``config.fail_fast``.

    Raises:
        TypeError: If no configuration is given or attached to ``sources``.
    """
    if config is None:
        config = getattr(sources, "config", None)
        if config is None:
            raise TypeError("generate_pages() needs a Config for these sources")
    generator = PageGenerator(config, registry, formatters, fail_fast=fail_fast)
    return generator.generate(sources)
