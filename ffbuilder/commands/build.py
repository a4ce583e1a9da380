import click
from .. import builder
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import build_options, handle_exceptions

@click.command()
@click.pass_context
@build_options
@click.option("--universal/--no-universal", default=None, help="Lipo arm64 and x64 outputs after the build. [env: UNIVERSAL]")
@click.option("--verbose", "-v", is_flag=True, help="Stream configure/make output.")
@handle_exceptions
def build(ctx, arch, out, branch, jobs, deployment_target, brew_x86_prefix, nonfree, universal, verbose):
    """Fetch FFmpeg, configure it for the target arch, build, install and zip it."""
    settings = config_module.load_settings(
        ctx.obj["path"],
        overrides={
            "arch": arch,
            "out": out,
            "branch": branch,
            "jobs": jobs,
            "deployment_target": deployment_target,
            "brew_x86_prefix": brew_x86_prefix,
            "nonfree": nonfree,
            "universal": universal,
        },
    )
    resolved = builder.build_ffmpeg(settings, verbose=verbose)
    logger.success(f"Build for {resolved.arch.canonical_name} completed successfully.")
