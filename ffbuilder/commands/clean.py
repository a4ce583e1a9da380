import click
import glob
import os
import shutil
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..packager import ARTIFACTS_DIRNAME
from ..resolver import resolve_build_paths

@click.command()
@click.pass_context
@click.option("--all", "remove_all", is_flag=True, help="Also remove the FFmpeg source checkout.")
@handle_exceptions
def clean(ctx, remove_all):
    """Remove build outputs, stale checkouts and zipped artifacts."""
    paths = resolve_build_paths(os.path.abspath(ctx.obj["path"]), None, "")
    logger.info(f"Cleaning {paths.work_dir}...")

    targets = sorted(glob.glob(os.path.join(paths.work_dir, "out-*")))
    targets += sorted(glob.glob(f"{paths.ffmpeg_dir}.bad-*"))
    targets.append(os.path.join(paths.root_dir, ARTIFACTS_DIRNAME))
    if remove_all:
        targets.append(paths.ffmpeg_dir)

    items_removed = 0
    for path in targets:
        if not os.path.isdir(path):
            continue
        try:
            shutil.rmtree(path)
            logger.success(f"Removed directory {path}")
            items_removed += 1
        except OSError as e:
            logger.error(f"Error removing directory {path}: {e}")
            logger.info("Please check file permissions and ensure the directory is not in use.")

    if items_removed > 0:
        logger.success(f"Cleaning complete. Removed {items_removed} items.")
    else:
        logger.info("Nothing to clean.")
