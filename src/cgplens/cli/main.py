"""cgp-lens CLI."""

import click

from cgplens import __version__
from cgplens.cli.render import render_command
from cgplens.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="cgp-lens")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """cgp-lens - Readable dependency errors for context-generic Rust code."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(render_command, name="render")


if __name__ == "__main__":
    cli()
