"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from hostprov.core.models import HostProfile, GpuState, ProvisioningPlan
"""

from hostprov.core.models.action import Receipt
from hostprov.core.models.config import DriverConfig, InstallerConfig, PathsConfig, ServiceConfig
from hostprov.core.models.gpu import DetectionMethod, GpuState, GpuStatus, GpuVendor
from hostprov.core.models.host import (
    Architecture,
    DebianFamily,
    DistroFamily,
    HostProfile,
    PackageManager,
    RhelFamily,
    UnsupportedDistro,
)
from hostprov.core.models.plan import (
    EngineState,
    ProvisioningPlan,
    ProvisioningReport,
    ProvisioningStatus,
    RepoSpec,
)

__all__ = [
    "Architecture",
    "DebianFamily",
    "DetectionMethod",
    "DistroFamily",
    "DriverConfig",
    "EngineState",
    "GpuState",
    "GpuStatus",
    "GpuVendor",
    "HostProfile",
    "InstallerConfig",
    "PackageManager",
    "PathsConfig",
    "ProvisioningPlan",
    "ProvisioningReport",
    "ProvisioningStatus",
    "Receipt",
    "RepoSpec",
    "RhelFamily",
    "ServiceConfig",
    "UnsupportedDistro",
]
