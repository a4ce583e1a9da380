import os
import shutil
import time

from .cli_logger import logger
from .errors import BuildStepFailed
from .utils import run_shell_command


class SourceRepository:
    """A checkout of the upstream sources that can be brought to a branch."""

    def ensure(self, branch):
        raise NotImplementedError

    def clean(self):
        raise NotImplementedError


def repo_slug(remote):
    """'https://github.com/FFmpeg/FFmpeg.git' -> 'FFmpeg/FFmpeg'"""
    trimmed = remote.rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[:-4]
    parts = trimmed.replace(":", "/").split("/")
    return "/".join(parts[-2:])


class GitSourceRepository(SourceRepository):
    def __init__(self, checkout_dir, remote):
        self.checkout_dir = checkout_dir
        self.remote = remote

    def _git(self, *args):
        return run_shell_command(["git", "-C", self.checkout_dir] + list(args))

    def origin_url(self):
        stdout, _, returncode = self._git("remote", "get-url", "origin")
        return stdout.strip() if returncode == 0 else ""

    def _move_aside(self):
        backup = f"{self.checkout_dir}.bad-{int(time.time())}"
        shutil.move(self.checkout_dir, backup)
        return backup

    def discard_stale_checkout(self):
        """Move the checkout out of the way if it is not a usable upstream tree.

        Returns the backup path, or None when the checkout was kept (or absent).
        """
        if os.path.isdir(os.path.join(self.checkout_dir, ".git")):
            url = self.origin_url()
            if repo_slug(self.remote) not in url:
                logger.warning(f"Existing {self.checkout_dir} is not upstream (origin={url}). Moving aside.")
                return self._move_aside()
        elif os.path.isdir(self.checkout_dir) and not os.path.isfile(os.path.join(self.checkout_dir, "configure")):
            logger.warning(f"Existing {self.checkout_dir} has no configure. Moving aside.")
            return self._move_aside()
        return None

    def ensure(self, branch):
        self.discard_stale_checkout()

        if not os.path.isdir(self.checkout_dir):
            logger.info(f"Cloning {self.remote} ({branch})...")
            os.makedirs(os.path.dirname(self.checkout_dir), exist_ok=True)
            _, stderr, returncode = run_shell_command(
                ["git", "clone", "--filter=blob:none", "--branch", branch, self.remote, self.checkout_dir]
            )
            if returncode != 0:
                raise BuildStepFailed("git clone", returncode, stderr.strip())
            return

        logger.info(f"Updating {self.checkout_dir} to {branch}...")
        for args in (
            ("fetch", "--depth=1", "origin", branch),
            ("checkout", "-q", branch),
            ("reset", "--hard", f"origin/{branch}"),
        ):
            _, stderr, returncode = self._git(*args)
            if returncode != 0:
                logger.warning(f"git {args[0]} failed ({returncode}): {stderr.strip()}")

    def clean(self):
        """Drop every build product so objects of another arch cannot leak in."""
        run_shell_command(["make", "distclean"], cwd=self.checkout_dir)
        self._git("reset", "--hard", "-q")
        self._git("clean", "-xdf", "-q")
