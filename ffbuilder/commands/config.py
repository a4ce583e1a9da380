import click
import os
import sys
import json
from .. import config as config_module
from ..cli_logger import logger

KNOWN_KEYS = tuple(f"build.{key}" for key in config_module.ENV_KEYS)


def _load_or_complain(ctx):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No ffbuilder.toml found. Please run 'ffbuilder init' first.")
    return conf


def _parse_value(raw):
    """Keep toml types: 'true' -> True, '4' -> 4, anything else stays a string."""
    lowered = raw.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if raw.isdigit():
        return int(raw)
    return raw


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the ffbuilder.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """Print ffbuilder.toml as it is on disk."""
    if not _load_or_complain(ctx):
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading ffbuilder.toml at {config_file_path}: {e}")

@config.command()
@click.pass_context
def edit(ctx):
    """Open ffbuilder.toml in your default editor."""
    if not _load_or_complain(ctx):
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        click.edit(filename=config_file_path)
    except click.ClickException as e:
        logger.error(f"Could not start an editor for ffbuilder.toml: {e}")
        logger.exception(*sys.exc_info())

@config.command(name="list")
@click.pass_context
def list_values(ctx):
    """Dump every key as JSON."""
    conf = _load_or_complain(ctx)
    if conf:
        click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a dotted key, e.g. build.branch."""
    conf = _load_or_complain(ctx)
    if not conf:
        return
    value = conf
    try:
        for k in key.split('.'):
            value = value[k]
        click.echo(value)
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in ffbuilder.toml")

@config.command(name="set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set a dotted key, creating tables as needed."""
    conf = _load_or_complain(ctx)
    if not conf:
        return
    if key not in KNOWN_KEYS:
        logger.warning(f"'{key}' is not read by ffbuilder (known keys: {', '.join(KNOWN_KEYS)})")

    *parents, leaf = key.split('.')
    table = conf
    for k in parents:
        table = table.setdefault(k, {})
    table[leaf] = _parse_value(value)

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to '{value}'")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a dotted key."""
    conf = _load_or_complain(ctx)
    if not conf:
        return
    *parents, leaf = key.split('.')
    table = conf
    try:
        for k in parents:
            table = table[k]
        del table[leaf]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in ffbuilder.toml")
        return
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Unset '{key}'")
