"""Classify command."""

from pathlib import Path

import click

from storepack.bundle import classify_bundles, load_capture, sanitize_capture, write_definitions
from storepack.constants import DEFAULT_DEFINITION_FILE
from storepack.errors import DefinitionError
from storepack.models import ClassifierConfig

from ..config import get_usage_threshold
from ..log import configure_logging


@click.command()
@click.argument("capture_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_DEFINITION_FILE,
    show_default=True,
    help="Where to write the bundle definition file",
)
@click.option(
    "-t",
    "--threshold",
    type=click.IntRange(min=1),
    default=get_usage_threshold,
    show_default="2",
    help="Number of page types that must use a module before it is shared",
)
@click.option("--skip-checkout", is_flag=True, help="Do not generate a bundle for the checkout page type")
@click.option("-d", "--debug", is_flag=True, help="Enable logging of debugging information")
def classify(capture_file: Path, output: Path, threshold: int, skip_checkout: bool, debug: bool):
    """Split captured page modules into vendor, common and page bundles."""
    configure_logging(debug)
    click.echo(f"🔍 Classifying capture: {capture_file}")

    try:
        records = load_capture(capture_file)
    except DefinitionError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()

    captured = sanitize_capture(records, skip=("checkout",) if skip_checkout else ())
    if not captured:
        click.echo("❌ No page types left to classify", err=True)
        raise click.Abort()

    bundles = classify_bundles(captured, ClassifierConfig(usage_threshold=threshold))

    for bundle in bundles:
        click.echo(f"  {bundle.name}: {len(bundle.modules)} modules")

    write_definitions(bundles, output)
    click.echo(f"✅ Definitions written to: {output}")
