import os

from .cli_logger import logger
from .errors import BuildStepFailed
from .utils import run_shell_command


class BuildSystem:
    def configure(self, args, env):
        raise NotImplementedError

    def compile(self, jobs, env):
        raise NotImplementedError

    def install(self, env):
        raise NotImplementedError


class ConfigureMakeBuild(BuildSystem):
    """./configure && make -jN && make install inside a source tree."""

    def __init__(self, source_dir, verbose=False):
        self.source_dir = source_dir
        self.verbose = verbose

    def _run(self, step, command, env):
        output, process = run_shell_command(command, stream_output=True, env=env, cwd=self.source_dir)
        tail = []
        for line in output:
            line = line.rstrip()
            tail = (tail + [line])[-20:]
            if self.verbose:
                logger.step_info(line, indent=4)
        if process.returncode != 0:
            if not self.verbose:
                for line in tail:
                    logger.step_info(line, indent=4)
            raise BuildStepFailed(step, process.returncode)

    def configure(self, args, env):
        logger.info("Running configure...")
        self._run("configure", [os.path.join(".", "configure")] + list(args), env)

    def compile(self, jobs, env):
        logger.info(f"Compiling with {jobs} jobs...")
        self._run("make", ["make", f"-j{jobs}"], env)

    def install(self, env):
        logger.info("Installing...")
        self._run("make install", ["make", "install"], env)
