import click
import importlib.metadata
from .. import config as config_module
from ..cli_logger import logger

@click.command()
@click.pass_context
def version(ctx):
    """Print the ffbuilder version and the FFmpeg source it builds."""
    try:
        logger.info(f"ffbuilder version {importlib.metadata.version('ffbuilder')}")
    except importlib.metadata.PackageNotFoundError:
        logger.warning("Could not determine the version of ffbuilder. Is it installed correctly?")

    build_table = config_module.load_config(path=ctx.obj["path"]).get("build", {})
    click.echo(f"FFmpeg remote: {build_table.get('remote', config_module.FFMPEG_REMOTE)}")
    click.echo(f"FFmpeg branch: {build_table.get('branch', config_module.DEFAULT_BRANCH)}")
