"""
GpuState — what the GPU/driver stack looks like right now.

Computed by the Environment Probe. May be re-probed after a
provisioning step, which yields a NEW value (never mutated).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class GpuStatus(StrEnum):
    """Outcome of GPU detection.

    ``UNDETECTABLE`` (no scanning tool available) and ``ABSENT``
    (scanned, nothing found) are deliberately separate values.
    """

    CONFIGURED = "configured"
    PRESENT_UNCONFIGURED = "present-unconfigured"
    ABSENT = "absent"
    UNDETECTABLE = "undetectable"


class GpuVendor(StrEnum):
    NVIDIA = "nvidia"
    NONE = "none"
    UNKNOWN = "unknown"


class DetectionMethod(StrEnum):
    """Which probe produced the verdict."""

    VENDOR_TOOL = "vendor-tool"
    PCI_SCAN = "pci-scan"
    HARDWARE_LISTER = "hardware-lister"
    NONE = "none"


class GpuState(BaseModel):
    """Immutable GPU detection result."""

    model_config = ConfigDict(frozen=True)

    status: GpuStatus
    vendor: GpuVendor = GpuVendor.NONE
    detection_method: DetectionMethod = DetectionMethod.NONE

    # Vendor tool (nvidia-smi) state
    vendor_tool_installed: bool = False
    driver_version: str | None = None
    cuda_version: str | None = None

    # Kernel module state
    vendor_module_loaded: bool = False
    conflicting_module_loaded: bool = False

    detail: str = ""

    @property
    def present(self) -> bool:
        return self.status in (GpuStatus.CONFIGURED, GpuStatus.PRESENT_UNCONFIGURED)

    @property
    def vendor_tool_responding(self) -> bool:
        return self.status == GpuStatus.CONFIGURED
