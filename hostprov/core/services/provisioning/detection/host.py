"""
L3 Detection — platform, architecture, OS identity, package manager.

Read-only probes. Produces the HostProfile snapshot used for the
rest of the run.
"""

from __future__ import annotations

import logging
import platform
import shlex
from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.core.errors import FatalEnvironment
from hostprov.core.models.config import PathsConfig
from hostprov.core.models.host import Architecture, HostProfile, PackageManager
from hostprov.core.services.provisioning.data.constants import (
    ARCH_MAP,
    PACKAGE_MANAGER_BINARIES,
)
from hostprov.core.services.provisioning.domain.distro import resolve_distro_family

logger = logging.getLogger(__name__)


def require_linux(system: str | None = None) -> None:
    """Abort unless running on Linux."""
    system = system if system is not None else platform.system()
    if system != "Linux":
        raise FatalEnvironment(f"This installer only supports Linux (found {system or 'unknown'})")


def detect_architecture(machine: str | None = None) -> Architecture:
    """Map ``uname -m`` to a release architecture.

    Raises:
        FatalEnvironment: Anything other than x86_64/amd64/aarch64/arm64.
    """
    machine = machine if machine is not None else platform.machine()
    arch = ARCH_MAP.get(machine.strip().lower())
    if arch is None:
        raise FatalEnvironment(f"Unsupported architecture: {machine or 'unknown'}")
    return arch


def read_os_release(path: str | Path = "/etc/os-release") -> dict[str, str]:
    """Parse an os-release file into a dict. Missing file → empty dict."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("%s not found, distribution unknown", path)
        return {}
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return {}

    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("'\"")]
        fields[key.strip()] = " ".join(parts)
    return fields


def detect_package_manager(shell: CommandAdapter) -> PackageManager | None:
    """First of dnf, yum, apt-get found on PATH, or None."""
    for pm, binary in PACKAGE_MANAGER_BINARIES:
        if shell.available(binary):
            return pm
    return None


def probe_host(
    shell: CommandAdapter,
    paths: PathsConfig | None = None,
    *,
    machine: str | None = None,
    kernel_release: str | None = None,
) -> HostProfile:
    """Build the immutable HostProfile for this run.

    Raises:
        FatalEnvironment: Unsupported architecture.
    """
    paths = paths or PathsConfig()
    machine = machine if machine is not None else platform.machine()
    arch = detect_architecture(machine)

    release = read_os_release(paths.os_release)
    os_id = release.get("ID", "")
    os_version = release.get("VERSION_ID", "")

    profile = HostProfile(
        architecture=arch,
        machine=machine,
        os_id=os_id,
        os_version=os_version,
        distro=resolve_distro_family(os_id, os_version),
        package_manager=detect_package_manager(shell),
        kernel_release=kernel_release if kernel_release is not None else platform.release(),
    )
    logger.info(
        "Host: %s (%s) %s %s, package manager: %s, kernel %s",
        profile.machine, profile.architecture, profile.os_id or "?",
        profile.os_version or "?", profile.package_manager or "none",
        profile.kernel_release,
    )
    return profile
