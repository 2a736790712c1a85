"""
HostProfile — what the host IS, probed once per run.

The distro is a closed tagged union (discriminated on ``kind``) so that
every consumer must handle RHEL-like, Debian-like and unsupported hosts
explicitly.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class Architecture(StrEnum):
    """CPU architectures the installer ships binaries for."""

    AMD64 = "amd64"
    ARM64 = "arm64"


class PackageManager(StrEnum):
    """Supported system package managers, in detection order."""

    DNF = "dnf"
    YUM = "yum"
    APT = "apt"


class RhelFamily(BaseModel):
    """RHEL-like distro, mapped to an NVIDIA repo bucket.

    ``bucket`` + ``version`` form the repo path segment, e.g. ``rhel9``
    or ``fedora35``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["rhel"] = "rhel"
    distro_id: str
    bucket: str
    version: str

    @property
    def repo_id(self) -> str:
        return f"{self.bucket}{self.version}"


class DebianFamily(BaseModel):
    """Debian-like distro. ``version`` is already dot-free (``2204``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["debian"] = "debian"
    distro_id: str
    version: str

    @property
    def repo_id(self) -> str:
        return f"{self.distro_id}{self.version}"


class UnsupportedDistro(BaseModel):
    """Any distro without a known repository layout."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unsupported"] = "unsupported"
    distro_id: str = ""
    version: str = ""


DistroFamily = Annotated[
    RhelFamily | DebianFamily | UnsupportedDistro,
    Field(discriminator="kind"),
]


class HostProfile(BaseModel):
    """Immutable snapshot of the host, created once per run."""

    model_config = ConfigDict(frozen=True)

    architecture: Architecture
    machine: str                            # raw uname -m, used in repo URLs
    os_id: str = ""
    os_version: str = ""
    distro: DistroFamily
    package_manager: PackageManager | None = None
    kernel_release: str = ""

    @property
    def can_provision_drivers(self) -> bool:
        """Driver provisioning needs a package manager."""
        return self.package_manager is not None
