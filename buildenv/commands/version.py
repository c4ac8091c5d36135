import click
import importlib.metadata
from .. import __version__


@click.command()
def version():
    """Print the version of the buildenv tool."""
    try:
        ver = importlib.metadata.version("buildenv")
    except importlib.metadata.PackageNotFoundError:
        # running from a source checkout
        ver = __version__
    click.echo(f"buildenv version {ver}")
