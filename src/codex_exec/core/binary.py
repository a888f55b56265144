"""
Discovery of installed codex binaries.

Scans PATH, nvm installs and common Homebrew/usr locations for a `codex`
executable, probes each candidate with `--version`, and picks the newest.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codex_exec.core.exec.options import ExecConfiguration

logger = logging.getLogger(__name__)

COMMON_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin")

_VERSION_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass(frozen=True)
class BinaryInfo:
    """A detected executable and the version string it reported."""

    path: str
    version: str


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _nvm_dir() -> Path:
    if nvm_dir := os.environ.get("NVM_DIR"):
        return Path(nvm_dir)
    return Path.home() / ".nvm"


def version_tuple(version: str) -> tuple[int, int, int]:
    """
    Parse (major, minor, patch) from a version string.

    Handles strings like "codex-cli 0.63.0". Missing parts are 0.

    Example:
        >>> version_tuple("codex-cli 0.63.0")
        (0, 63, 0)
    """
    match = _VERSION_RE.search(version)
    if match is None:
        return (0, 0, 0)
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return (major, minor, patch)


def probe_version(path: str) -> str | None:
    """
    Run `<path> --version` and return its trimmed stdout.

    Returns:
        Version string, or None if the binary failed to run or exited non-zero
    """
    try:
        result = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            check=False,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Version probe failed for %s: %s", path, e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def candidate_paths(name: str = "codex") -> list[str]:
    """List executable candidates from PATH, nvm and common bin dirs, deduplicated."""
    candidates: list[Path] = []

    for entry in os.environ.get("PATH", "").split(os.pathsep):
        if entry:
            candidates.append(Path(entry) / name)

    node_versions = _nvm_dir() / "versions" / "node"
    if node_versions.is_dir():
        for version_dir in sorted(node_versions.iterdir()):
            candidates.append(version_dir / "bin" / name)

    for directory in COMMON_BIN_DIRS:
        candidates.append(Path(directory) / name)

    seen: set[str] = set()
    result: list[str] = []
    for candidate in candidates:
        key = str(candidate)
        if key in seen or not _is_executable(candidate):
            continue
        seen.add(key)
        result.append(key)
    return result


def detect_codex_binary(name: str = "codex") -> BinaryInfo | None:
    """
    Find the best available codex binary.

    Returns:
        BinaryInfo for the candidate reporting the highest version, or None
        if no candidate could be probed
    """
    infos = []
    for path in candidate_paths(name):
        version = probe_version(path)
        if version is not None:
            infos.append(BinaryInfo(path=path, version=version))

    if not infos:
        return None
    return max(infos, key=lambda info: version_tuple(info.version))


def detect_nvm_bin_path(name: str = "codex") -> str | None:
    """
    Return the newest nvm node `bin` directory that contains `name`.

    Node version directories are compared by their numeric version
    (e.g. v20.11.1 beats v9.0.0).
    """
    node_versions = _nvm_dir() / "versions" / "node"
    if not node_versions.is_dir():
        return None

    matches = [
        version_dir / "bin"
        for version_dir in node_versions.iterdir()
        if _is_executable(version_dir / "bin" / name)
    ]
    if not matches:
        return None
    best = max(matches, key=lambda bin_dir: version_tuple(bin_dir.parent.name))
    return str(best)


def resolve_binary(
    config: ExecConfiguration,
) -> tuple[ExecConfiguration, str | None]:
    """
    Resolve the configured command to a concrete binary where possible.

    A bare command name (e.g. the default "codex") is replaced by the
    detected absolute path. An explicit path is kept and only probed for
    its version.

    Returns:
        (configuration to use, version string or None when unknown)
    """
    if os.sep in config.command:
        return config, probe_version(config.command)

    detected = detect_codex_binary(config.command)
    if detected is None:
        logger.debug("No %s binary detected; relying on PATH lookup", config.command)
        return config, None
    return config.model_copy(update={"command": detected.path}), detected.version
