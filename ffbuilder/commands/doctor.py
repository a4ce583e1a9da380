import click
import sys
from .. import builder
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def doctor(ctx):
    """Check that the tools a macOS FFmpeg build needs are installed."""
    logger.info("Running environment check...")
    settings = config_module.load_settings(ctx.obj["path"])
    if builder.check_environment(settings):
        logger.success("Environment check completed successfully.")
    else:
        logger.error("Environment check found issues. Please review the errors above.")
        sys.exit(1)
