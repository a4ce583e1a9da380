import os
import stat
import zipfile

from .cli_logger import logger
from .utils import run_shell_command

UNIVERSAL_BINARIES = ("ffmpeg", "ffprobe", "ffplay")
PACKAGED_BINARIES = ("ffmpeg", "ffprobe")
ARTIFACTS_DIRNAME = "artifacts"


def artifact_name(arch_tag):
    return f"ffmpeg-darwin-{arch_tag}.zip"


def _is_executable(path):
    return os.path.isfile(path) and os.access(path, os.X_OK)


def merge_universal(arm_dir, x86_dir, fat_dir, binaries=UNIVERSAL_BINARIES):
    """lipo each binary present in both arch trees into fat_dir/bin.

    Returns the list of binaries that were merged.
    """
    fat_bin = os.path.join(fat_dir, "bin")
    os.makedirs(fat_bin, exist_ok=True)
    merged = []
    for name in binaries:
        arm_bin = os.path.join(arm_dir, "bin", name)
        x86_bin = os.path.join(x86_dir, "bin", name)
        if not (_is_executable(arm_bin) and _is_executable(x86_bin)):
            continue
        logger.info(f"Creating universal {name}")
        target = os.path.join(fat_bin, name)
        _, stderr, returncode = run_shell_command(["lipo", "-create", "-output", target, arm_bin, x86_bin])
        if returncode != 0:
            logger.warning(f"lipo failed for {name}: {stderr.strip()}")
            continue
        mode = os.stat(target).st_mode
        os.chmod(target, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        merged.append(name)
    logger.success(f"Universal merge complete. Output: {fat_bin}")
    return merged


def package_zip(output_dir, artifacts_dir, arch_tag, binaries=PACKAGED_BINARIES):
    """Zip the per-arch binaries flat into artifacts_dir; None if any is missing."""
    os.makedirs(artifacts_dir, exist_ok=True)
    sources = [os.path.join(output_dir, "bin", name) for name in binaries]
    if not all(_is_executable(path) for path in sources):
        logger.warning(f"{'/'.join(binaries)} not found at {os.path.join(output_dir, 'bin')}; skipping zip")
        return None

    zip_path = os.path.join(artifacts_dir, artifact_name(arch_tag))
    logger.info(f"Packaging {zip_path}")
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for path in sources:
            archive.write(path, arcname=os.path.basename(path))
    return zip_path
