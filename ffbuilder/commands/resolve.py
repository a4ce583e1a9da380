import click
from .. import builder
from .. import config as config_module
from ..decorators import build_options, handle_exceptions

SHOWN_ENV = ("CC", "CXX", "MACOSX_DEPLOYMENT_TARGET", "PATH", "PKG_CONFIG_PATH", "CFLAGS", "CXXFLAGS", "CPPFLAGS", "LDFLAGS")

@click.command()
@click.pass_context
@build_options
@handle_exceptions
def resolve(ctx, arch, out, branch, jobs, deployment_target, brew_x86_prefix, nonfree):
    """Show the resolved configuration without fetching or building anything."""
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
        },
    )
    resolved = builder.resolve_build(settings)

    click.echo(f"arch: {resolved.arch.canonical_name} (tag {resolved.arch.output_tag})")
    click.echo(f"output: {resolved.paths.output_dir}")
    click.echo(f"source: {resolved.paths.ffmpeg_dir}")
    click.echo(f"deployment target: {resolved.deployment_target}")
    click.echo(f"jobs: {resolved.jobs}")
    click.echo("environment:")
    for name in SHOWN_ENV:
        if name in resolved.env:
            click.echo(f"  {name}={resolved.env[name]}")
    click.echo("libraries:")
    for library_id, found in resolved.available.items():
        click.echo(f"  [{'x' if found else ' '}] {library_id}")
    click.echo("configure:")
    for arg in resolved.configure_args:
        click.echo(f"  {arg}")
