"""
Binary installer — download, verify, place.

Downloads the architecture-specific binary into the run workspace and
installs it into the first standard bin directory found on PATH.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.core.errors import FatalEnvironment
from hostprov.core.models.config import InstallerConfig
from hostprov.core.models.host import Architecture

logger = logging.getLogger(__name__)


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify a digest. Accepts ``hex`` (SHA-256) or ``algo:hex``.

    Raises:
        FatalEnvironment: The algorithm is not known to hashlib.
    """
    algo, _, expected_hash = expected.rpartition(":")
    try:
        h = hashlib.new(algo or "sha256")
    except ValueError as e:
        raise FatalEnvironment(f"Unsupported checksum algorithm {algo!r}") from e
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest() == expected_hash.strip().lower()


def choose_bin_dir(candidates: list[str], path_env: str | None = None) -> str:
    """First candidate that is on PATH, else the last candidate."""
    if not candidates:
        raise FatalEnvironment("No bin directory candidates configured")
    path_env = path_env if path_env is not None else os.environ.get("PATH", "")
    on_path = {p.rstrip("/") for p in path_env.split(os.pathsep) if p}
    for candidate in candidates:
        if candidate.rstrip("/") in on_path:
            return candidate
    logger.warning("None of %s is on PATH, using %s", ", ".join(candidates), candidates[-1])
    return candidates[-1]


def install_binary(
    shell: CommandAdapter,
    config: InstallerConfig,
    arch: Architecture,
    workspace: Path,
    *,
    path_env: str | None = None,
) -> Path:
    """Download and place the binary. Returns its installed path.

    Raises:
        FatalEnvironment: Download, checksum or placement failed.
    """
    name = config.binary_name
    url = config.download_url.format(arch=arch)
    download = workspace / name

    logger.info("Downloading %s from %s", name, url)
    r = shell.run(
        ["curl", "--fail", "--show-error", "--location", "--silent", "-o", str(download), url],
        timeout=config.command_timeout,
        action_id=f"download:{name}",
    )
    if r.failed:
        raise FatalEnvironment(f"Download of {url} failed: {r.error}")

    if config.binary_sha256:
        if not _verify_checksum(download, config.binary_sha256):
            raise FatalEnvironment(f"Checksum mismatch for {url}")
        logger.info("Checksum verified for %s", name)

    bin_dir = choose_bin_dir(config.bin_dirs, path_env)
    target = Path(bin_dir) / name
    staged = Path(bin_dir) / f".{name}.new"

    logger.info("Installing %s to %s", name, bin_dir)
    steps = [
        ["install", "-o0", "-g0", "-m755", "-d", bin_dir],
        ["install", "-o0", "-g0", "-m755", str(download), str(staged)],
        ["mv", "-f", str(staged), str(target)],
    ]
    for cmd in steps:
        r = shell.run(cmd, needs_root=True, timeout=120)
        if r.failed:
            raise FatalEnvironment(f"Installing {name} to {bin_dir} failed: {r.error}")

    return target
