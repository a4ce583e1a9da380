import functools
import click
import sys
from .cli_logger import logger
from .errors import FFBuilderError

def handle_exceptions(func):
    """Log errors raised by a CLI command and turn them into exit codes."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            sys.exit(130)
        except FFBuilderError as e:
            logger.error(f"Error: {e}")
            sys.exit(e.exit_code)
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper


def build_options(func):
    """Options shared by commands that resolve a build configuration.

    Each defaults to None so the environment and ffbuilder.toml can fill it in.
    """
    options = [
        click.option("--arch", default=None, help="Target architecture (arm64, aarch64, x86_64, x64, amd64). [env: ARCH]"),
        click.option("--out", default=None, help="Install directory. [env: OUT]"),
        click.option("--branch", default=None, help="FFmpeg branch or tag to build. [env: BRANCH]"),
        click.option("--jobs", "-j", default=None, type=int, help="Parallel make jobs. [env: JOBS]"),
        click.option("--deployment-target", default=None, help="Minimum macOS version. [env: DEPLOYMENT_TARGET]"),
        click.option("--brew-x86-prefix", default=None, help="Intel Homebrew prefix. [env: BREW_X86_PREFIX]"),
        click.option("--nonfree/--no-nonfree", default=None, help="Enable libfdk_aac if found. [env: NONFREE]"),
    ]
    for option in reversed(options):
        func = option(func)
    return func
