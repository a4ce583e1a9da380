import click
import os
from .. import config as config_module
from .. import packager
from ..decorators import handle_exceptions
from ..errors import FFBuilderError
from ..resolver import resolve_architecture, resolve_build_paths
from ..probes import HostProbe

@click.command()
@click.pass_context
@click.option("--arch", default=None, help="Architecture whose output to zip. [env: ARCH]")
@click.option("--out", default=None, help="Install directory to zip from. [env: OUT]")
@handle_exceptions
def package(ctx, arch, out):
    """Zip ffmpeg and ffprobe from an existing build into artifacts/."""
    settings = config_module.load_settings(ctx.obj["path"], overrides={"arch": arch, "out": out})
    spec = resolve_architecture(settings.arch or HostProbe().machine())
    paths = resolve_build_paths(settings.root_dir, settings.out, spec.output_tag)
    zip_path = packager.package_zip(
        paths.output_dir,
        os.path.join(paths.root_dir, packager.ARTIFACTS_DIRNAME),
        spec.output_tag,
    )
    if zip_path is None:
        raise FFBuilderError(f"Nothing to package for {spec.canonical_name}; run 'ffbuilder build' first.")
