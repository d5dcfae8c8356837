"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
- paths: List every post id the content store exposes.
- resolve: Render one post to stdout.
- serve: Run the request-time preview server.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__
from .content import NotFoundPage
from .errors import ConfigError, StoreUnavailable


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Folio static content pipeline."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Exit non-zero if any post failed")
def build(drafts: bool, strict: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, include_drafts=drafts)
    except (StoreUnavailable, ConfigError) as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Page: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None

    built = len(result.rendered)
    click.echo(f"Built {built} pages into {result.output_dir}")
    if result.failures:
        click.echo(
            click.style(f"{len(result.failures)} pages failed:", fg="yellow", bold=True),
            err=True,
        )
        for content_id, reason in result.failures.items():
            click.echo(click.style(f"  {content_id}: {reason}", fg="yellow"), err=True)
        if strict:
            raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
def paths(drafts: bool):
    """List every post id."""
    from .build import create_orchestrator

    try:
        orchestrator = create_orchestrator(Path.cwd(), include_drafts=drafts)
        descriptors = orchestrator.enumerator.enumerate()
    except (StoreUnavailable, ConfigError) as exc:
        raise click.ClickException(str(exc)) from None
    for descriptor in descriptors:
        click.echo(descriptor.id)


@cli.command()
@click.argument("content_id")
@click.option("--drafts", is_flag=True, help="Include draft content")
def resolve(content_id: str, drafts: bool):
    """Render one post's HTML to stdout."""
    from .build import create_orchestrator

    try:
        orchestrator = create_orchestrator(Path.cwd(), include_drafts=drafts)
        page = orchestrator.request(content_id)
    except (StoreUnavailable, ConfigError) as exc:
        raise click.ClickException(str(exc)) from None
    if isinstance(page, NotFoundPage):
        message = f"Not found: {content_id}"
        if page.reason:
            message = f"{message} ({page.reason})"
        raise click.ClickException(message)
    click.echo(page.html, nl=False)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the preview server (overrides folio.yaml)",
)
@click.option("--live", is_flag=True, help="Re-read content on every request")
def serve(drafts: bool, port: int | None, live: bool):
    """Run the request-time preview server."""
    from .server import PreviewServer

    try:
        server = PreviewServer(Path.cwd(), port=port, live=live, include_drafts=drafts)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None
    server.start()


def main():
    """Entry point for the CLI application."""
    cli()
