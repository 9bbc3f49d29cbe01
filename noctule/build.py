"""Site building for Noctule.

Runs the whole pipeline: load the configuration, read the source tree,
generate pages and save them.

Key functions:
- build_site: Build the site described by a configuration file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import DEFAULT_CONFIG_NAME, Config, load_config
from .content import Page
from .errors import RenderError
from .formatting import Formatters
from .generator import PageGenerator
from .output import save_pages
from .renderers import RendererRegistry
from .sources import load_source_files

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        config: Configuration the site was built with.
        pages: Every generated page.
        failures: Documents and listings that failed to render.
        written: Files written; empty for a dry run.
    """

    config: Config
    pages: list[Page]
    failures: list[RenderError] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    @property
    def ok(self) -> bool:
        return not self.failures


def build_site(
    config_path: Path | str = DEFAULT_CONFIG_NAME,
    *,
    fail_fast: bool | None = None,
    dry_run: bool = False,
    registry: RendererRegistry | None = None,
) -> BuildResult:
    """Build the site described by ``config_path``.

    Args:
        config_path: Site configuration file.
        fail_fast: Override the configured fail-fast policy.
        dry_run: Generate pages without writing them.
        registry: Renderer registry; the built-in renderers by default.

    Returns:
        BuildResult; ``ok`` is False when documents were skipped.

    Raises:
        ConfigError: If a configured renderer is not registered.
        SourceReadError: If the source tree cannot be read.
        DuplicateOutputPathError: If two pages share an output path.
        OutputWriteError: If a page cannot be written.
        RenderError: On the first render failure with fail-fast enabled.
    """
    config = load_config(config_path)
    sources = load_source_files(config)
    formatters = Formatters()
    generator = PageGenerator(config, registry, formatters, fail_fast=fail_fast)
    result = generator.generate(sources)
    written = [] if dry_run else save_pages(result)
    if result.failures:
        logger.warning("%d document(s) failed to render", len(result.failures))
    return BuildResult(
        config=config,
        pages=list(result),
        failures=list(result.failures),
        written=written,
    )
