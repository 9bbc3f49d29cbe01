"""Command-line interface for Noctule.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import click

from . import __version__
from .config import DEFAULT_CONFIG_NAME
from .errors import NoctuleError
from .utils import format_elapsed

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="noctule")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Noctule static site generator."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_NAME,
    show_default=True,
    help="Site configuration file",
)
@click.option("--fail-fast", is_flag=True, help="Stop at the first document that fails")
@click.option("--dry-run", is_flag=True, help="Generate pages without writing them")
def build(config_path: Path, fail_fast: bool, dry_run: bool):
    """Build the site into the output directory."""
    from .build import build_site

    click.echo(f"Building site from {config_path}")
    started = time.perf_counter()
    try:
        result = build_site(config_path, fail_fast=fail_fast or None, dry_run=dry_run)
    except NoctuleError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None

    if dry_run:
        for page in result.pages:
            click.echo(f"  {page.path}")
        click.echo(f"Would write {len(result.pages)} pages into {result.output_dir}")
    else:
        click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")

    if not result.ok:
        click.echo(
            click.style(f"{len(result.failures)} document(s) failed:", fg="red", bold=True),
            err=True,
        )
        for failure in result.failures:
            click.echo(click.style(f"  File: {failure.source_path}", fg="yellow"), err=True)
            click.echo(click.style(f"  Error: {failure.message}", fg="white"), err=True)
    click.echo(f"Done in {format_elapsed(time.perf_counter() - started)}")
    if not result.ok:
        raise SystemExit(1)


def main():
    """Entry point for the CLI application."""
    cli()
