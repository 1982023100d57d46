"""Command line entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from . import hcl
from .errors import BuildFailure
from .projects import ImageProject
from .stages import Stage
from .workspace import Workspace

logger = logging.getLogger(__name__)

EXIT_BUILD_FAILED = 1
EXIT_BAD_CONFIG = 2


def _workspace(ctx: click.Context) -> Workspace[ImageProject]:
    try:
        return hcl.scan(ctx.obj["config"], project_type=ImageProject)
    except ValueError as exc:
        _config_error(ctx, exc)


def _target(ctx: click.Context, name: str, source: Path | None = None) -> ImageProject:
    ws = _workspace(ctx)
    if name not in ws:
        known = ", ".join(sorted(ws)) or "none"
        click.echo(f"Unknown target '{name}' (available: {known})", err=True)
        ctx.exit(EXIT_BAD_CONFIG)
    try:
        project = ws[name]
    except (ValueError, ValidationError) as exc:
        _config_error(ctx, exc)
    if source is not None:
        project = project.model_copy(update={"source": source})
    return project


def _config_error(ctx: click.Context, exc: Exception) -> NoReturn:
    click.echo(f"Invalid configuration: {exc}", err=True)
    ctx.exit(EXIT_BAD_CONFIG)


def _build_failed(ctx: click.Context, exc: BuildFailure) -> NoReturn:
    if exc.log:
        sys.stderr.write(exc.log)
        if not exc.log.endswith("\n"):
            sys.stderr.write("\n")
    click.echo(f"Build failed: {exc}", err=True)
    ctx.exit(EXIT_BUILD_FAILED)


@click.group()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help=f"Build file or directory of .hcl files (default: ./{hcl.DEFAULT_FILENAME}).",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output, including engine logs.")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Build a static server binary and package it into container images."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = hcl.locate(config)
    logger.debug("Using build file %s", ctx.obj["config"])


@cli.command("list")
@click.pass_context
def list_targets(ctx: click.Context) -> None:
    """List the available build targets."""
    ws = _workspace(ctx)
    try:
        for name in ws:
            project = ws[name]
            click.echo(f"{name}\t{project.description}")
    except (ValueError, ValidationError) as exc:
        _config_error(ctx, exc)


@cli.command()
@click.argument("target")
@click.option(
    "-s",
    "--source",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Source tree to build (overrides the target's source).",
)
@click.option("-n", "--dry-run", is_flag=True, help="Report what would be built without building.")
@click.option("-f", "--force", is_flag=True, help="Rebuild even if images are up to date.")
@click.pass_context
def build(ctx: click.Context, target: str, source: Path | None, dry_run: bool, force: bool) -> None:
    """Build TARGET (e.g. dev-image or minimal-image)."""
    project = _target(ctx, target, source)
    try:
        project.build(dry_run=dry_run, force=force)
    except BuildFailure as exc:
        _build_failed(ctx, exc)

    if not dry_run:
        click.echo(f"Built {target}; artifact at {project.config.artifact_path}")


@cli.command()
@click.argument("target")
@click.pass_context
def render(ctx: click.Context, target: str) -> None:
    """Print the Dockerfile of every stage in TARGET."""
    project = _target(ctx, target)
    for blueprint in project.blueprints:
        for op in blueprint:
            if isinstance(op.spec, Stage):
                click.echo(f"# stage: {op.spec.name} -> {op.spec.tag(project)}")
                click.echo(op.spec.dockerfile(project))


@cli.command()
@click.argument("target")
@click.option("-n", "--dry-run", is_flag=True, help="Report what would be removed.")
@click.pass_context
def clean(ctx: click.Context, target: str, dry_run: bool) -> None:
    """Remove the images TARGET produces."""
    project = _target(ctx, target)
    try:
        project.clean(dry_run=dry_run)
    except BuildFailure as exc:
        _build_failed(ctx, exc)


def main() -> None:
    cli(obj={})
