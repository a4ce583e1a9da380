import datetime
import os
from collections import OrderedDict, namedtuple
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .cli_logger import logger
from .errors import UnsupportedArchitecture

DEFAULT_DEPLOYMENT_TARGET = "12.0"

ArchitectureSpec = namedtuple("ArchitectureSpec", ["canonical_name", "output_tag"])

# Accepted ARCH tokens (case-sensitive) -> (canonical arch, output tag)
ARCH_ALIASES = {
    "arm64": ArchitectureSpec("arm64", "arm64"),
    "aarch64": ArchitectureSpec("arm64", "arm64"),
    "x86_64": ArchitectureSpec("x86_64", "x64"),
    "x64": ArchitectureSpec("x86_64", "x64"),
    "amd64": ArchitectureSpec("x86_64", "x64"),
}

# Where Intel Homebrew usually lives on an Apple Silicon machine, in probe order.
X86_BREW_CANDIDATES = (
    "/usr/local",
    "/usr/local/homebrew",
    "/opt/homebrew-intel",
)

# Keg-only formulae whose .pc files are not linked into <prefix>/lib/pkgconfig.
KEG_ONLY_PKGCONFIG = (
    "opt/openssl@3/lib/pkgconfig",
    "opt/librist/lib/pkgconfig",
    "opt/libvmaf/lib/pkgconfig",
)

# pkg-config module -> configure flag, enabled when the module is found.
FEATURE_TABLE = (
    ("libx264", "--enable-libx264"),
    ("x265", "--enable-libx265"),
    ("vpx", "--enable-libvpx"),
    ("libaom", "--enable-libaom"),
    ("dav1d", "--enable-libdav1d"),
    ("opus", "--enable-libopus"),
    ("vorbis", "--enable-libvorbis"),
    ("libvmaf", "--enable-libvmaf"),
    ("libass", "--enable-libass"),
    ("libsoxr", "--enable-libsoxr"),
    ("zimg", "--enable-libzimg"),
    ("libwebp", "--enable-libwebp"),
    ("openjpeg", "--enable-libopenjpeg"),
    ("rubberband", "--enable-librubberband"),
    ("srt", "--enable-libsrt"),
    ("librist", "--enable-librist"),
    ("libbluray", "--enable-libbluray"),
    ("libsvtav1", "--enable-libsvtav1"),
)

NONFREE_LIBRARY = "fdk-aac"
NONFREE_FLAGS = ("--enable-nonfree", "--enable-libfdk_aac")

BuildPaths = namedtuple("BuildPaths", ["root_dir", "work_dir", "source_dir", "ffmpeg_dir", "output_dir"])


class ToolchainEnv:
    """Compiler and search-path overrides layered on top of a base environment.

    Entries gathered here go in front of whatever the base environment already
    holds, so the values a caller exported stay last in each flag string.
    """

    def __init__(self, cc="clang", cxx="clang++", deployment_target=DEFAULT_DEPLOYMENT_TARGET):
        self.cc = cc
        self.cxx = cxx
        self.deployment_target = deployment_target
        self.search_paths: List[str] = []
        self.pkg_config_paths: List[str] = []
        self.linker_flags: List[str] = []
        self.preprocessor_flags: List[str] = []
        self.compile_flags: List[str] = []

    @property
    def compiler_path(self):
        return self.cc

    def apply(self, base_env: Mapping[str, str]) -> Dict[str, str]:
        env = dict(base_env)
        env["CC"] = self.cc
        env["CXX"] = self.cxx
        env["MACOSX_DEPLOYMENT_TARGET"] = self.deployment_target
        env["PATH"] = _prepend(self.search_paths, env.get("PATH", ""), os.pathsep)
        env["PKG_CONFIG_PATH"] = _prepend(self.pkg_config_paths, env.get("PKG_CONFIG_PATH", ""), os.pathsep)
        ldflags = _prepend(self.linker_flags, env.get("LDFLAGS", ""), " ")
        cppflags = _prepend(self.preprocessor_flags, env.get("CPPFLAGS", ""), " ")
        env["CFLAGS"] = _prepend(self.compile_flags, env.get("CFLAGS", ""), " ")
        env["CXXFLAGS"] = _prepend(self.compile_flags, env.get("CXXFLAGS", ""), " ")
        env["LDFLAGS"] = _prepend(self.compile_flags, ldflags, " ")
        env["CPPFLAGS"] = cppflags
        return {k: v for k, v in env.items() if v != "" or k in base_env}


def _prepend(entries: Sequence[str], existing: str, sep: str) -> str:
    return sep.join([e for e in entries if e] + ([existing] if existing else []))


def resolve_architecture(token: str) -> ArchitectureSpec:
    spec = ARCH_ALIASES.get(token)
    if spec is None:
        raise UnsupportedArchitecture(token)
    return spec


def resolve_output_dir(override: Optional[str], work_dir: str, tag: str) -> str:
    if override:
        return override
    return os.path.join(work_dir, f"out-{tag}")


def resolve_build_paths(root_dir: str, output_override: Optional[str], tag: str) -> BuildPaths:
    work_dir = os.path.join(root_dir, "macos")
    source_dir = os.path.join(work_dir, "src")
    return BuildPaths(
        root_dir=root_dir,
        work_dir=work_dir,
        source_dir=source_dir,
        ffmpeg_dir=os.path.join(source_dir, "ffmpeg"),
        output_dir=resolve_output_dir(output_override, work_dir, tag),
    )


def ensure_build_dirs(paths: BuildPaths):
    os.makedirs(paths.source_dir, exist_ok=True)
    os.makedirs(paths.output_dir, exist_ok=True)


def resolve_deployment_target(explicit: Optional[str], env: Mapping[str, str]) -> str:
    return explicit or env.get("MACOSX_DEPLOYMENT_TARGET") or DEFAULT_DEPLOYMENT_TARGET


def find_x86_brew_prefix(
    override: Optional[str] = None,
    candidates: Sequence[str] = X86_BREW_CANDIDATES,
    isdir: Callable[[str], bool] = os.path.isdir,
) -> Optional[str]:
    """Return the Intel Homebrew prefix: the override, or the first candidate with a Cellar."""
    if override:
        return override
    for candidate in candidates:
        if isdir(os.path.join(candidate, "Cellar")):
            return candidate
    return None


def resolve_toolchain(
    arch: ArchitectureSpec,
    deployment_target: str,
    brew_prefix: Optional[str],
    cc: str = "clang",
    cxx: str = "clang++",
) -> ToolchainEnv:
    """Build the toolchain overrides for ``arch``.

    ``brew_prefix`` is the arm64 Homebrew prefix for arm64 builds and the
    Intel one for x86_64 builds; None means Homebrew was not found.
    """
    toolchain = ToolchainEnv(cc=cc, cxx=cxx, deployment_target=deployment_target)

    if brew_prefix:
        toolchain.search_paths.append(os.path.join(brew_prefix, "opt", "llvm", "bin"))
        if arch.canonical_name == "x86_64":
            toolchain.search_paths.append(os.path.join(brew_prefix, "bin"))
        toolchain.pkg_config_paths.append(os.path.join(brew_prefix, "lib", "pkgconfig"))
        toolchain.pkg_config_paths.extend(os.path.join(brew_prefix, sub) for sub in KEG_ONLY_PKGCONFIG)
        toolchain.linker_flags.append(f"-L{os.path.join(brew_prefix, 'lib')}")
        toolchain.preprocessor_flags.append(f"-I{os.path.join(brew_prefix, 'include')}")
    elif arch.canonical_name == "x86_64":
        logger.warning("Intel Homebrew not found. x86_64 build will likely be minimal (framework-only).")

    toolchain.compile_flags = ["-arch", arch.canonical_name, f"-mmacosx-version-min={deployment_target}"]
    return toolchain


def resolve_cross_flags(arch: ArchitectureSpec, host, path=None) -> List[str]:
    """Extra configure flags for x86_64 targets the host cannot fully serve."""
    flags = []
    if arch.canonical_name != "x86_64":
        return flags
    if not host.can_run_x86_64():
        logger.warning("Rosetta not detected; enabling cross-compile checks")
        flags.append("--enable-cross-compile")
    if not host.which("nasm", path=path) and not host.which("yasm", path=path):
        logger.warning("nasm/yasm not found; disabling x86 asm optimizations")
        flags.append("--disable-x86asm")
    return flags


def probe_feature(probe, library_id: str, env=None) -> bool:
    try:
        return bool(probe.exists(library_id, env=env))
    except OSError as e:
        logger.debug(f"pkg-config query for {library_id} failed: {e}")
        return False


def probe_features(probe, env=None, nonfree_requested=False) -> "OrderedDict[str, bool]":
    """Probe every optional library in table order; fdk-aac only when nonfree is requested."""
    available = OrderedDict()
    for library_id, _ in FEATURE_TABLE:
        available[library_id] = probe_feature(probe, library_id, env=env)
        if not available[library_id]:
            logger.debug(f"{library_id} not found; skipping")
    if nonfree_requested:
        available[NONFREE_LIBRARY] = probe_feature(probe, NONFREE_LIBRARY, env=env)
    return available


def build_feature_flags(available: Mapping[str, bool], nonfree_requested: bool) -> List[str]:
    flags = [flag for library_id, flag in FEATURE_TABLE if available.get(library_id)]
    if nonfree_requested and available.get(NONFREE_LIBRARY):
        flags.extend(NONFREE_FLAGS)
    return flags


def assemble_configure_args(
    arch: ArchitectureSpec,
    output_dir: str,
    feature_flags: Sequence[str],
    cross_flags: Sequence[str] = (),
    build_date: Optional[datetime.date] = None,
) -> List[str]:
    build_date = build_date or datetime.date.today()
    args = [
        f"--prefix={output_dir}",
        "--pkg-config-flags=--static",
        "--enable-gpl",
        "--enable-version3",
        "--disable-debug",
        "--disable-doc",
        "--enable-videotoolbox",
        f"--extra-version={build_date.strftime('%Y%m%d')}-macos",
        f"--arch={arch.canonical_name}",
        "--target_os=darwin",
    ]
    args.extend(cross_flags)
    args.extend(feature_flags)
    return args
