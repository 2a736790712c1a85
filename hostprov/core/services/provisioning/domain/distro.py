"""
L1 Domain — map os-release identity to a repository family.

Pure function. The probe calls it once; everything downstream
dispatches on the resulting tagged union.
"""

from __future__ import annotations

from hostprov.core.models.host import (
    DebianFamily,
    DistroFamily,
    RhelFamily,
    UnsupportedDistro,
)


def _major(version: str) -> str:
    return version.split(".", 1)[0]


def resolve_distro_family(os_id: str, version_id: str) -> DistroFamily:
    """Resolve ``ID`` / ``VERSION_ID`` to a DistroFamily.

    >>> resolve_distro_family("rocky", "9.3").repo_id
    'rhel9'
    >>> resolve_distro_family("ubuntu", "22.04").repo_id
    'ubuntu2204'
    """
    os_id = os_id.strip().lower()
    version_id = version_id.strip()

    if not os_id:
        return UnsupportedDistro()

    if os_id in ("centos", "rhel", "rocky"):
        if not version_id:
            return UnsupportedDistro(distro_id=os_id)
        return RhelFamily(distro_id=os_id, bucket="rhel", version=_major(version_id))

    if os_id == "fedora":
        if not version_id:
            return UnsupportedDistro(distro_id=os_id)
        return RhelFamily(distro_id=os_id, bucket="fedora", version=version_id)

    if os_id == "amzn":
        # Amazon Linux is served by the Fedora 35 repository.
        return RhelFamily(distro_id=os_id, bucket="fedora", version="35")

    if os_id == "debian":
        if not version_id:
            return UnsupportedDistro(distro_id=os_id)
        return DebianFamily(distro_id=os_id, version=version_id)

    if os_id == "ubuntu":
        if not version_id:
            return UnsupportedDistro(distro_id=os_id)
        return DebianFamily(distro_id=os_id, version=version_id.replace(".", ""))

    return UnsupportedDistro(distro_id=os_id, version=version_id)
