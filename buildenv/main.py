import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the directory holding buildenv.toml.")
@click.pass_context
def cli(ctx, path):
    """buildenv: fetch prebuilt library packages for a compiler."""
    ctx.obj = {"path": path}

cli.add_command(provision)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
