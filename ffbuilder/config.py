import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import toml

from .cli_logger import logger
from .errors import ConfigError

CONFIG_FILE = "ffbuilder.toml"

FFMPEG_REMOTE = "https://github.com/FFmpeg/FFmpeg.git"
DEFAULT_BRANCH = "master"

# [build] key -> environment variables that override it, first one set wins
ENV_KEYS = {
    "arch": ("ARCH",),
    "out": ("OUT",),
    "branch": ("BRANCH",),
    "jobs": ("JOBS",),
    "deployment_target": ("DEPLOYMENT_TARGET", "MACOSX_DEPLOYMENT_TARGET"),
    "brew_x86_prefix": ("BREW_X86_PREFIX",),
    "nonfree": ("NONFREE",),
    "universal": ("UNIVERSAL",),
    "cc": ("CC",),
    "cxx": ("CXX",),
    "remote": ("FFMPEG_REMOTE",),
}

TRUE_VALUES = ("1", "true", "yes", "on")


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    if os.path.exists(config_path):
        logger.info(f"Loading configuration from {config_path}")
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False


def default_config():
    return {
        "build": {
            "branch": DEFAULT_BRANCH,
            "nonfree": False,
            "universal": False,
            "remote": FFMPEG_REMOTE,
        }
    }


@dataclass(frozen=True)
class BuildSettings:
    """Everything one invocation needs, captured once at startup.

    ``env`` is a snapshot of the process environment; resolver functions take
    it as an argument instead of consulting ``os.environ``.
    """
    root_dir: str
    arch: Optional[str] = None
    out: Optional[str] = None
    branch: str = DEFAULT_BRANCH
    jobs: Optional[int] = None
    deployment_target: Optional[str] = None
    brew_x86_prefix: Optional[str] = None
    nonfree: bool = False
    universal: bool = False
    cc: str = "clang"
    cxx: str = "clang++"
    remote: str = FFMPEG_REMOTE
    env: Mapping[str, str] = field(default_factory=dict)


def as_bool(value):
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def _as_jobs(value):
    if value is None or value == "":
        return None
    try:
        jobs = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"JOBS must be a positive integer, got {value!r}")
    if jobs < 1:
        raise ConfigError(f"JOBS must be a positive integer, got {value!r}")
    return jobs


def load_settings(path=".", overrides=None, environ=None) -> BuildSettings:
    """Merge CLI overrides, environment and ffbuilder.toml into BuildSettings.

    Precedence is overrides > environment > [build] table > defaults. Empty
    strings in the environment count as unset.
    """
    environ = dict(os.environ if environ is None else environ)
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    build_table = load_config(path).get("build", {})
    if not isinstance(build_table, dict):
        raise ConfigError(f"[build] in {CONFIG_FILE} must be a table")

    values: Dict[str, object] = {}
    for key, env_names in ENV_KEYS.items():
        from_env = next((environ[name] for name in env_names if environ.get(name)), None)
        if key in overrides:
            values[key] = overrides[key]
        elif from_env:
            values[key] = from_env
        elif key in build_table:
            values[key] = build_table[key]

    return BuildSettings(
        root_dir=os.path.abspath(path),
        arch=values.get("arch"),
        out=str(values["out"]) if values.get("out") else None,
        branch=str(values.get("branch") or DEFAULT_BRANCH),
        jobs=_as_jobs(values.get("jobs")),
        deployment_target=str(values["deployment_target"]) if values.get("deployment_target") else None,
        brew_x86_prefix=values.get("brew_x86_prefix") or None,
        nonfree=as_bool(values.get("nonfree")),
        universal=as_bool(values.get("universal")),
        cc=str(values.get("cc") or "clang"),
        cxx=str(values.get("cxx") or "clang++"),
        remote=str(values.get("remote") or FFMPEG_REMOTE),
        env=environ,
    )
