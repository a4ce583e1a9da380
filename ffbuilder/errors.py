class FFBuilderError(Exception):
    """Base class for errors that end an ffbuilder run with a known exit code."""
    exit_code = 1


class ConfigError(FFBuilderError):
    """Invalid value in ffbuilder.toml, the environment or on the command line."""


class UnsupportedArchitecture(FFBuilderError):
    exit_code = 2

    def __init__(self, token):
        self.token = token
        super().__init__(f"Unknown ARCH={token} (use arm64 or x86_64/x64)")


class BuildStepFailed(FFBuilderError):
    """An external step (clone, configure, make, ...) exited non-zero."""

    def __init__(self, step, returncode, detail=""):
        self.step = step
        self.returncode = returncode
        message = f"'{step}' failed with exit code {returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

    @property
    def exit_code(self):
        # Negative codes mean "could not start" or "killed by signal".
        return self.returncode if self.returncode > 0 else 1
