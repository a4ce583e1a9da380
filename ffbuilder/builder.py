import os
from collections import namedtuple

from .cli_logger import logger
from . import packager
from .build_system import ConfigureMakeBuild
from .probes import HostProbe, PkgConfigProbe
from .resolver import (
    assemble_configure_args,
    build_feature_flags,
    ensure_build_dirs,
    find_x86_brew_prefix,
    probe_features,
    resolve_architecture,
    resolve_build_paths,
    resolve_cross_flags,
    resolve_deployment_target,
    resolve_toolchain,
)
from .source import GitSourceRepository

ResolvedBuild = namedtuple(
    "ResolvedBuild",
    ["arch", "paths", "deployment_target", "toolchain", "env", "available", "configure_args", "jobs"],
)

REQUIRED_TOOLS = ("git", "make", "pkg-config")
OPTIONAL_TOOLS = ("brew", "nasm", "yasm", "lipo")


def resolve_build(settings, host=None, probe=None) -> ResolvedBuild:
    """Run the whole configuration resolver; nothing is fetched or compiled.

    Raises UnsupportedArchitecture before touching the filesystem.
    """
    host = host or HostProbe()
    probe = probe or PkgConfigProbe()

    arch = resolve_architecture(settings.arch or host.machine())
    paths = resolve_build_paths(settings.root_dir, settings.out, arch.output_tag)
    ensure_build_dirs(paths)

    logger.info(f"Arch: {arch.canonical_name}")
    logger.info(f"Output dir: {paths.output_dir}")
    logger.info(f"Branch: {settings.branch}")

    deployment_target = resolve_deployment_target(settings.deployment_target, settings.env)
    if arch.canonical_name == "arm64":
        brew_prefix = host.brew_prefix(path=settings.env.get("PATH"))
    else:
        brew_prefix = find_x86_brew_prefix(settings.brew_x86_prefix)
    toolchain = resolve_toolchain(arch, deployment_target, brew_prefix, cc=settings.cc, cxx=settings.cxx)
    env = toolchain.apply(settings.env)

    cross_flags = resolve_cross_flags(arch, host, path=env.get("PATH"))
    available = probe_features(probe, env=env, nonfree_requested=settings.nonfree)
    feature_flags = build_feature_flags(available, settings.nonfree)
    configure_args = assemble_configure_args(arch, paths.output_dir, feature_flags, cross_flags)

    return ResolvedBuild(
        arch=arch,
        paths=paths,
        deployment_target=deployment_target,
        toolchain=toolchain,
        env=env,
        available=available,
        configure_args=configure_args,
        jobs=settings.jobs or host.cpu_count(),
    )


def universal_dirs(paths):
    return (
        os.path.join(paths.work_dir, "out-arm64"),
        os.path.join(paths.work_dir, "out-x64"),
        os.path.join(paths.work_dir, "out-universal"),
    )


def _list_installed(bin_dir):
    if not os.path.isdir(bin_dir):
        logger.warning(f"No bin directory at {bin_dir}")
        return
    for name in sorted(os.listdir(bin_dir)):
        logger.step_info(name, indent=2)


def build_ffmpeg(settings, host=None, probe=None, repo=None, build_system=None, verbose=False) -> ResolvedBuild:
    """Resolve, fetch, build, install and package one architecture.

    External step failures surface as BuildStepFailed; nothing is retried.
    """
    resolved = resolve_build(settings, host=host, probe=probe)
    paths = resolved.paths

    repo = repo or GitSourceRepository(paths.ffmpeg_dir, settings.remote)
    build_system = build_system or ConfigureMakeBuild(paths.ffmpeg_dir, verbose=verbose)

    repo.ensure(settings.branch)
    repo.clean()

    logger.info(f"Configure flags: {' '.join(resolved.configure_args)}")
    build_system.configure(resolved.configure_args, resolved.env)
    build_system.compile(resolved.jobs, resolved.env)
    build_system.install(resolved.env)

    bin_dir = os.path.join(paths.output_dir, "bin")
    logger.success(f"Done. Binaries in: {bin_dir}")
    _list_installed(bin_dir)

    if settings.universal:
        arm_dir, x86_dir, fat_dir = universal_dirs(paths)
        packager.merge_universal(arm_dir, x86_dir, fat_dir)

    packager.package_zip(
        paths.output_dir,
        os.path.join(paths.root_dir, packager.ARTIFACTS_DIRNAME),
        resolved.arch.output_tag,
    )
    return resolved


def check_environment(settings, host=None):
    """Report required and optional host tools. Returns False if a required one is missing."""
    host = host or HostProbe()
    path = settings.env.get("PATH")
    ok = True

    for tool in REQUIRED_TOOLS + (settings.cc,):
        location = host.which(tool, path=path)
        if location:
            logger.success(f"{tool}: {location}")
        else:
            logger.error(f"{tool}: not found (required)")
            ok = False

    for tool in OPTIONAL_TOOLS:
        location = host.which(tool, path=path)
        if location:
            logger.success(f"{tool}: {location}")
        else:
            logger.warning(f"{tool}: not found (optional)")

    if host.can_run_x86_64():
        logger.success("x86_64 binaries can run on this host")
    else:
        logger.warning("Rosetta not available; x86_64 builds will be cross-compiled")

    x86_prefix = find_x86_brew_prefix(settings.brew_x86_prefix)
    if x86_prefix:
        logger.success(f"Intel Homebrew prefix: {x86_prefix}")
    else:
        logger.warning("Intel Homebrew prefix not found; x86_64 builds will lack optional libraries")
    return ok
