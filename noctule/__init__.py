"""Noctule static content generator.

Noctule converts a tree of source files (front matter plus body) into a tree
of rendered pages. Renderers are selected per file extension, pages are
wrapped in chained layouts, and configured collections become sorted,
grouped and paginated listing pages.

The pipeline is four blocking stages::

    config = load_config("noctule.yaml")
    sources = load_source_files(config)
    pages = generate_pages(sources)
    save_pages(pages)
"""

from . import helpers
from .config import Config, load_config
from .content import Page
from .generator import generate_pages
from .output import save_pages
from .renderers import MarkdownRenderer, RendererRegistry, TemplateRenderer
from .sources import SourceDocument, load_source_files

__all__ = [
    "Config",
    "MarkdownRenderer",
    "Page",
    "RendererRegistry",
    "SourceDocument",
    "TemplateRenderer",
    "__version__",
    "generate_pages",
    "helpers",
    "load_config",
    "load_source_files",
    "save_pages",
]
__version__ = "0.1.0"
