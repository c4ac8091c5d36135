import click
import os
import sys
import json
from .. import config as config_module
from ..cli_logger import logger

NOT_FOUND_MESSAGE = "Error: No buildenv.toml found. Create one with 'buildenv config set conan.host <url>'."


def _parse_value(value):
    """Parses a command-line value the way TOML would, falling back to a plain string."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the buildenv.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """View the contents of the buildenv.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND_MESSAGE)
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading buildenv.toml at {config_file_path}: {e}")
        logger.info("Please check file permissions.")

@config.command()
@click.pass_context
def list(ctx):
    """List all configuration keys and values."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND_MESSAGE)
        return
    click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value from the buildenv.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND_MESSAGE)
        return

    keys = key.split('.')
    value = conf
    try:
        for k in keys:
            value = value[k]
        click.echo(value)
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in buildenv.toml")

@config.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set(ctx, key, value):
    """Set a value in the buildenv.toml file, creating the file if needed."""
    conf = config_module.load_config(path=ctx.obj["path"])

    keys = key.split('.')
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = _parse_value(value)

    if keys[0] == "conan":
        try:
            config_module.ProvisionerConfig.from_dict(conf)
        except ValueError as e:
            logger.error(f"Error: {e}")
            sys.exit(2)

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to '{value}'")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key from the buildenv.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND_MESSAGE)
        return

    keys = key.split('.')
    d = conf
    try:
        for k in keys[:-1]:
            d = d[k]
        del d[keys[-1]]
        if config_module.save_config(conf, path=ctx.obj["path"]):
            logger.info(f"Unset '{key}'")
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in buildenv.toml")
