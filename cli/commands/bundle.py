"""Bundle command."""

import asyncio
from pathlib import Path
from typing import Optional

import click

from storepack.bundle import load_definitions
from storepack.constants import DEFAULT_DEFINITION_FILE
from storepack.deploy import run_bundle
from storepack.errors import DefinitionError, TargetDiscoveryError
from storepack.models import BundleOptions, MinifyStrategy, RunSummary

from ..config import get_minify_strategy, get_project_root
from ..log import configure_logging


def print_summary(summary: RunSummary) -> None:
    """Echo per-target outcomes, failures last."""
    for result in summary.succeeded:
        click.echo(f"  ✅ {result.target.name}: {len(result.bundles)} bundles")
    for result in summary.failed:
        click.echo(f"  ❌ {result.target.name}: {result.error}", err=True)

    click.echo(
        f"  Succeeded: {len(summary.succeeded)}  Failed: {len(summary.failed)}"
        f"  SRI updates: {summary.integrity_updates}  ({summary.elapsed_seconds:.1f}s)"
    )


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_DEFINITION_FILE,
    show_default=True,
    help="Bundle definition file",
)
@click.option("-g", "--glob", "theme_glob", help="Only bundle themes matching this pattern, e.g. 'Vendor/*'")
@click.option("-s", "--sourcemap", is_flag=True, help="Include source maps with generated bundles")
@click.option("-m", "--minify", is_flag=True, help="Minify bundles irrespective of the deployed minification setting")
@click.option(
    "--minify-strategy",
    type=click.Choice([strategy.value for strategy in MinifyStrategy]),
    default=get_minify_strategy,
    show_default="safe",
    help="'aggressive' (best performance) or 'safe' (best compatibility)",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Project root containing pub/static (defaults to $STOREPACK_ROOT or the working directory)",
)
@click.option("-d", "--debug", is_flag=True, help="Enable logging of debugging information")
def bundle(
    config_path: Path,
    theme_glob: Optional[str],
    sourcemap: bool,
    minify: bool,
    minify_strategy: str,
    root: Optional[Path],
    debug: bool,
):
    """Bundle JavaScript of every deployed locale using a definition file."""
    configure_logging(debug)
    project_root = root or get_project_root()
    if not config_path.is_absolute():
        config_path = project_root / config_path

    click.echo(f"📦 Bundling with: {config_path}")

    try:
        definitions = load_definitions(config_path)
    except DefinitionError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    options = BundleOptions(minify=minify, strategy=MinifyStrategy(minify_strategy), source_map=sourcemap)
    click.echo(f"  Strategy: {options.strategy.value}{' (forced minify)' if minify else ''}")

    try:
        summary = asyncio.run(run_bundle(project_root, definitions.effective_bundles(), options, theme_glob))
    except TargetDiscoveryError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    print_summary(summary)

    if summary.failed:
        raise SystemExit(1)
    click.echo("✅ Bundling complete!")
