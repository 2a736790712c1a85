"""
L1 Domain — plan selection and per-distro repository layout.

Everything here is pure: (HostProfile, GpuState, config) in, values out.
The engine owns the side effects.
"""

from __future__ import annotations

import logging
from typing import assert_never

from hostprov.core.errors import FatalEnvironment
from hostprov.core.models.config import DriverConfig
from hostprov.core.models.gpu import GpuState, GpuStatus
from hostprov.core.models.host import (
    DebianFamily,
    HostProfile,
    RhelFamily,
    UnsupportedDistro,
)
from hostprov.core.models.plan import ProvisioningPlan, RepoSpec
from hostprov.core.services.provisioning.data.constants import KERNEL_HEADER_PACKAGES
from hostprov.core.services.provisioning.data.cuda_matrix import min_driver_for

logger = logging.getLogger(__name__)


# ── Driver compatibility ───────────────────────────────────────

def _version_tuple(version: str) -> tuple[int, int]:
    parts = [int(x) for x in version.split(".")]
    return tuple(parts[:2]) if len(parts) >= 2 else (parts[0], 0)


def check_cuda_driver_compat(
    cuda_version: str,
    driver_version: str,
) -> dict:
    """Check if a driver version is compatible with a CUDA toolkit version.

    Args:
        cuda_version: Target CUDA version, e.g. ``"12.4"``.
        driver_version: Installed NVIDIA driver version, e.g. ``"535.183"``.

    Returns:
        ``{"compatible": True}`` or
        ``{"compatible": False, "min_driver": "...", "message": "..."}``
    """
    min_driver = min_driver_for(cuda_version)
    if min_driver is None:
        # Unknown CUDA version, nothing to validate against
        return {"compatible": True, "unknown_cuda": cuda_version}

    try:
        drv_tuple = _version_tuple(driver_version)
        min_tuple = _version_tuple(min_driver)
    except ValueError:
        return {
            "compatible": False,
            "min_driver": min_driver,
            "message": f"Unparseable driver version {driver_version!r}",
        }

    if drv_tuple >= min_tuple:
        return {"compatible": True}
    return {
        "compatible": False,
        "min_driver": min_driver,
        "message": (
            f"CUDA {cuda_version} requires driver >= {min_driver}, "
            f"found {driver_version}"
        ),
    }


def is_driver_compatible(gpu: GpuState, required_cuda_version: str) -> bool:
    """A configured driver counts only if it reports a CUDA runtime and
    meets the minimum driver for ``required_cuda_version``."""
    if gpu.status != GpuStatus.CONFIGURED:
        return False
    if not gpu.cuda_version or not gpu.driver_version:
        return False
    return check_cuda_driver_compat(required_cuda_version, gpu.driver_version)["compatible"]


# ── Plan selection ─────────────────────────────────────────────

def select_plan(
    host: HostProfile,
    gpu: GpuState,
    *,
    required_cuda_version: str = "11.3",
) -> ProvisioningPlan:
    """Decide what to do for this host. Deterministic, no I/O."""
    if gpu.status == GpuStatus.ABSENT:
        return ProvisioningPlan.SKIP_NO_GPU
    if gpu.status == GpuStatus.UNDETECTABLE:
        return ProvisioningPlan.SKIP_DRIVER_INSTALL
    if is_driver_compatible(gpu, required_cuda_version):
        return ProvisioningPlan.ALREADY_CONFIGURED
    if not host.can_provision_drivers:
        return ProvisioningPlan.SKIP_DRIVER_INSTALL
    if gpu.vendor_tool_installed and not gpu.vendor_tool_responding:
        if gpu.conflicting_module_loaded:
            return ProvisioningPlan.REBOOT_REQUIRED
        return ProvisioningPlan.REBUILD_KERNEL_MODULE
    return ProvisioningPlan.INSTALL_REPO_AND_DRIVERS


# ── Repository layout ──────────────────────────────────────────

def _unknown_distribution(distro: UnsupportedDistro) -> FatalEnvironment:
    name = distro.distro_id or "unidentified"
    return FatalEnvironment(
        f"unknown distribution {name!r}: no driver repository available"
    )


def build_repo_spec(host: HostProfile, drivers: DriverConfig) -> RepoSpec:
    """Vendor repository for the host's distro.

    Raises:
        FatalEnvironment: The distro has no known repository layout.
    """
    distro = host.distro
    base = drivers.cuda_repo_base.rstrip("/")

    if isinstance(distro, RhelFamily):
        repo_id = distro.repo_id
        epel = None
        if distro.bucket == "rhel":
            epel = drivers.epel_url_template.format(version=distro.version)
        return RepoSpec(
            family="rhel",
            bucket=distro.bucket,
            version=distro.version,
            machine=host.machine,
            repo_url=f"{base}/{repo_id}/{host.machine}/cuda-{repo_id}.repo",
            epel_url=epel,
        )
    if isinstance(distro, DebianFamily):
        repo_dir = f"{base}/{distro.repo_id}/{host.machine}"
        return RepoSpec(
            family="debian",
            bucket=distro.distro_id,
            version=distro.version,
            machine=host.machine,
            repo_url=f"{repo_dir}/",
            key_url=f"{repo_dir}/{drivers.keyring_file}",
        )
    if isinstance(distro, UnsupportedDistro):
        raise _unknown_distribution(distro)
    assert_never(distro)


def kernel_header_packages(host: HostProfile) -> list[str]:
    """Header packages pinned to the running kernel release.

    Raises:
        FatalEnvironment: Unknown distro or no kernel release.
    """
    distro = host.distro
    if isinstance(distro, UnsupportedDistro):
        raise _unknown_distribution(distro)
    if not isinstance(distro, (RhelFamily, DebianFamily)):
        assert_never(distro)

    if not host.kernel_release:
        raise FatalEnvironment("cannot pin kernel headers: kernel release unknown")

    templates = KERNEL_HEADER_PACKAGES.get(distro.distro_id)
    if templates is None:
        raise _unknown_distribution(UnsupportedDistro(distro_id=distro.distro_id))
    return [t.format(r=host.kernel_release) for t in templates]
