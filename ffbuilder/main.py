import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Root directory; sources and outputs go under <path>/macos.")
@click.pass_context
def cli(ctx, path):
    """Build FFmpeg natively on macOS."""
    ctx.obj = {"path": path}

cli.add_command(build)
cli.add_command(resolve)
cli.add_command(universal)
cli.add_command(package)
cli.add_command(doctor)
cli.add_command(clean)
cli.add_command(init)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
