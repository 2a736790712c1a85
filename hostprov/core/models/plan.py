"""
Provisioning plan, repository spec and the final report.

The plan is a decision value recomputed on every run — it is never
persisted. The report is what the CLI prints (or dumps as JSON).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from hostprov.core.models.action import Receipt
from hostprov.core.models.gpu import GpuState
from hostprov.core.models.host import HostProfile


class ProvisioningPlan(StrEnum):
    """What the engine decided to do for this host."""

    SKIP_NO_GPU = "skip-no-gpu"
    SKIP_DRIVER_INSTALL = "skip-driver-install"
    ALREADY_CONFIGURED = "already-configured"
    INSTALL_REPO_AND_DRIVERS = "install-repo-and-drivers"
    REBUILD_KERNEL_MODULE = "rebuild-kernel-module"
    REBOOT_REQUIRED = "reboot-required"


class ProvisioningStatus(StrEnum):
    """Terminal status reported to the operator."""

    READY = "ready"
    REBOOT_REQUIRED = "reboot-required"
    CPU_ONLY = "cpu-only"
    DRIVER_SKIPPED = "driver-install-skipped"
    FAILED = "failed"


class EngineState(StrEnum):
    """States visited by the provisioning engine, in order."""

    START = "start"
    ARCH_CHECKED = "arch-checked"
    GPU_DETECTED = "gpu-detected"
    NO_GPU = "no-gpu"
    DRIVER_SKIPPED = "driver-skipped"
    ALREADY_CONFIGURED = "already-configured"
    NEEDS_REPO_AND_DRIVER = "needs-repo-and-driver"
    KERNEL_MODULE_CHECKED = "kernel-module-checked"
    MODULE_LOADED = "module-loaded"
    NEEDS_KERNEL_HEADERS = "needs-kernel-headers"
    REBOOT_REQUIRED = "reboot-required"
    MODPROBE_ATTEMPTED = "modprobe-attempted"
    DONE = "done"


class RepoSpec(BaseModel):
    """Vendor repository for one distro.

    ``family`` is the normalization that lets RHEL-like and Debian-like
    hosts share one provisioning algorithm.
    """

    model_config = ConfigDict(frozen=True)

    family: Literal["rhel", "debian"]
    bucket: str                     # rhel / fedora / debian / ubuntu
    version: str                    # 9, 35, 12, 2204
    machine: str                    # x86_64 / aarch64
    repo_url: str                   # .repo file (rhel) or repo directory (debian)
    key_url: str | None = None      # trust artifact, debian keyring
    epel_url: str | None = None     # rhel bucket only

    @property
    def legacy(self) -> bool:
        """Older RHEL-like buckets also need the DKMS driver package."""
        return self.bucket == "centos" or f"{self.bucket}{self.version}" == "rhel7"


class ProvisioningReport(BaseModel):
    """Outcome of one engine run."""

    plan: ProvisioningPlan | None = None
    status: ProvisioningStatus = ProvisioningStatus.FAILED
    states: list[EngineState] = Field(default_factory=list)
    receipts: list[Receipt] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None

    host: HostProfile | None = None
    gpu: GpuState | None = None

    def enter(self, state: EngineState) -> None:
        self.states.append(state)

    @property
    def ok(self) -> bool:
        return self.status != ProvisioningStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
