"""CLI entrypoint."""

import click

from .commands.bundle import bundle
from .commands.classify import classify


@click.group()
@click.version_option(version="1.0.0", prog_name="storepack")
def cli():
    """storepack - Bundle storefront JavaScript per page type and deploy it atomically."""
    pass


cli.add_command(classify)
cli.add_command(bundle)


if __name__ == "__main__":
    cli()
