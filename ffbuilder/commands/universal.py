import click
import os
from .. import packager
from ..builder import universal_dirs
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..resolver import resolve_build_paths

@click.command()
@click.pass_context
@click.option("--arm-dir", default=None, help="arm64 install directory (default: macos/out-arm64).")
@click.option("--x86-dir", default=None, help="x86_64 install directory (default: macos/out-x64).")
@handle_exceptions
def universal(ctx, arm_dir, x86_dir):
    """Merge existing arm64 and x86_64 builds into universal binaries."""
    paths = resolve_build_paths(os.path.abspath(ctx.obj["path"]), None, "universal")
    default_arm, default_x86, fat_dir = universal_dirs(paths)
    merged = packager.merge_universal(arm_dir or default_arm, x86_dir or default_x86, fat_dir)
    if not merged:
        logger.warning("No binary was present in both architecture builds.")
