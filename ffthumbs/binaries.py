"""ffmpeg binary resolution and version checks.

``shutil.which`` is tried first; when the current ``PATH`` is narrowed
(services, virtual environments, cron) well-known install directories
are probed as a fallback.

Supports **Linux**, **macOS**, and **Windows**.
"""

import os
import pathlib
import platform
import re
import shutil
from typing import Optional

from .errors import BinaryNotFoundError, BinaryVersionError
from .executor.process_manager import launch_command

VERSION_PATTERN = re.compile(r"ffmpeg version ([0-9.]+)")

MIN_VERSION_REQUIRED = (5, 0, 0)

Version = tuple[int, ...]


def _build_search_dirs() -> list[pathlib.Path]:
    """Build a list of well-known directories where ffmpeg builds are
    installed, based on the current platform."""

    home = pathlib.Path.home()
    dirs: list[pathlib.Path] = []
    system = platform.system()

    if system == "Windows":
        # Scoop shims (popular Windows package manager)
        dirs.append(home / "scoop" / "shims")

        # Chocolatey
        programdata = os.environ.get("ProgramData")
        if programdata:
            dirs.append(pathlib.Path(programdata) / "chocolatey" / "bin")

        # Manual installs
        dirs.append(pathlib.Path("C:/ffmpeg/bin"))

    else:
        # Linux + macOS shared paths
        dirs.append(home / ".local" / "bin")                # user installs
        dirs.append(pathlib.Path("/usr/local/bin"))         # Homebrew (Intel Mac) / manual installs
        dirs.append(pathlib.Path("/snap/bin"))              # snap packages

        if system == "Darwin":
            # Homebrew on Apple Silicon
            dirs.append(pathlib.Path("/opt/homebrew/bin"))

    return dirs


_EXTRA_SEARCH_DIRS = _build_search_dirs()


def resolve_binary(*names: str) -> Optional[str]:
    """Return the full path to the first binary found, or ``None``.

    Parameters
    ----------
    *names : str
        One or more candidate binary names to look for, e.g.
        ``"ffmpeg"``, ``"ffmpeg.exe"``.

    Returns
    -------
    str | None
        Absolute path to the binary, or ``None`` if not found.
    """
    # Fast-path: binary is already on PATH
    for name in names:
        found = shutil.which(name)
        if found:
            return found

    # Fallback: check well-known directories
    for directory in _EXTRA_SEARCH_DIRS:
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return str(candidate)

    return None


def find_ffmpeg() -> str:
    """Find the ffmpeg executable.

    Raises:
        BinaryNotFoundError: If no ffmpeg binary can be found.
    """
    path = resolve_binary("ffmpeg", "ffmpeg.exe")
    if not path:
        raise BinaryNotFoundError("cannot find ffmpeg binary in PATH")
    return path


def parse_version(text: str) -> Version:
    """Parse a dotted version string such as ``6.1.1`` into a tuple."""
    parts = [p for p in text.strip(".").split(".") if p]
    if not parts:
        raise ValueError(f"empty version string: {text!r}")
    return tuple(int(p) for p in parts)


def format_version(version: Version) -> str:
    return ".".join(str(p) for p in version)


def _pad(version: Version, size: int) -> Version:
    return version + (0,) * (size - len(version))


def get_ffmpeg_version(ffmpeg_path: str) -> Version:
    """Return the version reported by ``ffmpeg -version``, e.g. (6, 0)."""
    result = launch_command(ffmpeg_path, ["-version"], need_stdout=True)
    if not result.success:
        raise BinaryVersionError(
            f"cannot check ffmpeg version: {result.error_message}"
        )

    match = VERSION_PATTERN.search(result.stdout)
    if not match:
        raise BinaryVersionError("cannot find ffmpeg version")

    try:
        return parse_version(match.group(1))
    except ValueError as e:
        raise BinaryVersionError(
            f"wrong ffmpeg version reported: {match.group(1)}: {e}"
        ) from e


def verify_ffmpeg_version(
    ffmpeg_path: str,
    minimum: Version = MIN_VERSION_REQUIRED,
) -> Version:
    """Check that ffmpeg meets the minimal version requirement.

    Raises:
        BinaryVersionError: If ffmpeg is older than ``minimum``.
    """
    version = get_ffmpeg_version(ffmpeg_path)
    size = max(len(version), len(minimum))
    if _pad(version, size) < _pad(minimum, size):
        raise BinaryVersionError(
            f"ffmpeg is too old: required {format_version(minimum)}, "
            f"current {format_version(version)}"
        )
    return version


def get_verified_ffmpeg_path(ffmpeg_path: Optional[str] = None) -> str:
    """Resolve ffmpeg (if no path is given) and verify its version."""
    if not ffmpeg_path:
        ffmpeg_path = find_ffmpeg()

    verify_ffmpeg_version(ffmpeg_path)
    return ffmpeg_path
