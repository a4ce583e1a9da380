import os
import platform
import shutil

from .cli_logger import logger
from .utils import run_shell_command


class PackageProbe:
    """Answers whether an optional library is installed."""

    def exists(self, library_id, env=None):
        raise NotImplementedError


class PkgConfigProbe(PackageProbe):
    def __init__(self, executable="pkg-config"):
        self.executable = executable

    def exists(self, library_id, env=None):
        _, _, returncode = run_shell_command([self.executable, "--exists", library_id], env=env)
        return returncode == 0


class HostProbe:
    """Facts about the machine running the build."""

    def machine(self):
        return platform.machine()

    def cpu_count(self):
        return os.cpu_count() or 4

    def which(self, name, path=None):
        return shutil.which(name, path=path)

    def can_run_x86_64(self):
        """True when Rosetta (or a native Intel CPU) can execute x86_64 binaries."""
        _, _, returncode = run_shell_command(["arch", "-x86_64", "/usr/bin/true"])
        return returncode == 0

    def brew_prefix(self, path=None):
        brew = self.which("brew", path=path)
        if not brew:
            return None
        stdout, stderr, returncode = run_shell_command([brew, "--prefix"])
        if returncode != 0:
            logger.warning(f"'brew --prefix' failed: {stderr.strip()}")
            return None
        return stdout.strip() or None
