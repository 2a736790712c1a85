"""
L4 Execution — kernel headers, DKMS rebuild, module load.

Runs when the vendor module is not loaded after the driver packages
are in place.
"""

from __future__ import annotations

import logging

from hostprov.adapters.base import CommandAdapter
from hostprov.adapters.packages.base import PackageManagerAdapter, require
from hostprov.core.models.action import Receipt
from hostprov.core.models.host import HostProfile
from hostprov.core.services.provisioning.detection.kernel import dkms_added_modules
from hostprov.core.services.provisioning.domain.plan import kernel_header_packages

logger = logging.getLogger(__name__)


def install_kernel_headers(
    packages: PackageManagerAdapter,
    host: HostProfile,
) -> Receipt:
    """Install headers for exactly the running kernel.

    Raises:
        FatalEnvironment: Unknown distro.
        ProvisioningFailure: The install failed.
    """
    names = kernel_header_packages(host)
    logger.info("Installing kernel headers for %s: %s", host.kernel_release, ", ".join(names))
    return require("Kernel header install", packages.install_packages(names))


def rebuild_dkms_modules(shell: CommandAdapter, timeout: int = 1800) -> list[Receipt]:
    """Build every DKMS module in the ``added`` state.

    Raises:
        ProvisioningFailure: A ``dkms install`` failed.
    """
    receipts = []
    for module in dkms_added_modules(shell):
        logger.info("Building DKMS module %s", module)
        r = shell.run(
            ["dkms", "install", module],
            needs_root=True,
            timeout=timeout,
            action_id=f"dkms:install:{module}",
        )
        receipts.append(require(f"DKMS build of {module}", r))
    return receipts


def load_module(shell: CommandAdapter, module: str) -> Receipt:
    """``modprobe`` once. The caller decides what a failure means."""
    logger.info("Loading kernel module %s", module)
    return shell.run(
        ["modprobe", module],
        needs_root=True,
        timeout=120,
        action_id=f"modprobe:{module}",
    )
