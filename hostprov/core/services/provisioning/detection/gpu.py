"""
L3 Detection — GPU presence, driver state and kernel modules.

Read-only probes: nvidia-smi, lspci, lshw, lsmod, /proc/modules.
Detection runs in priority order and stops at the first verdict.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.core.errors import DegradedDetection
from hostprov.core.models.gpu import DetectionMethod, GpuState, GpuStatus, GpuVendor
from hostprov.core.services.provisioning.data.constants import (
    NVIDIA_PCI_VENDOR,
    NVIDIA_SMI,
    NVIDIA_SMI_QUERY,
    SCAN_TOOLS,
)

logger = logging.getLogger(__name__)

_LSHW_NVIDIA_RE = re.compile(r"vendor: .* \[10DE\]", re.IGNORECASE)
_CUDA_VERSION_RE = re.compile(r"CUDA Version:\s+(\d+\.\d+)")


# ── Vendor tool ────────────────────────────────────────────────

def _nvidia_smi(shell: CommandAdapter) -> dict | None:
    """Get NVIDIA driver and CUDA info from nvidia-smi."""
    if not shell.available(NVIDIA_SMI):
        return None

    r = shell.run(NVIDIA_SMI_QUERY, timeout=10)
    if not r.ok or not r.output.strip():
        logger.debug("nvidia-smi query failed: %s", r.error)
        return None

    first = r.output.strip().splitlines()[0]
    parts = first.split(",")
    driver_ver = parts[0].strip()
    if not driver_ver:
        return None
    name = parts[1].strip() if len(parts) > 1 else ""

    # CUDA version is only printed in the header output
    cuda_ver = None
    r2 = shell.run([NVIDIA_SMI], timeout=10)
    if r2.ok:
        m = _CUDA_VERSION_RE.search(r2.output)
        if m:
            cuda_ver = m.group(1)

    return {"driver_version": driver_ver, "name": name, "cuda_version": cuda_ver}


# ── Hardware scans ─────────────────────────────────────────────

def _lspci_nvidia(shell: CommandAdapter) -> bool:
    r = shell.run(["lspci", "-d", f"{NVIDIA_PCI_VENDOR}:"], timeout=10)
    return r.ok and "NVIDIA" in r.output


def _lshw_nvidia(shell: CommandAdapter) -> bool:
    r = shell.run(["lshw", "-c", "display", "-numeric"], needs_root=True, timeout=30)
    return r.ok and bool(_LSHW_NVIDIA_RE.search(r.output))


def _scan_for_gpu(shell: CommandAdapter) -> DetectionMethod | None:
    """Scan PCI, then the hardware lister.

    Returns the method that found an NVIDIA device, or None.

    Raises:
        DegradedDetection: Neither scanning tool is installed.
    """
    has_lspci = shell.available("lspci")
    has_lshw = shell.available("lshw")
    if not has_lspci and not has_lshw:
        raise DegradedDetection(
            f"Unable to detect NVIDIA GPU: install {' or '.join(SCAN_TOOLS)}"
        )

    if has_lspci and _lspci_nvidia(shell):
        return DetectionMethod.PCI_SCAN
    if has_lshw and _lshw_nvidia(shell):
        return DetectionMethod.HARDWARE_LISTER
    return None


# ── Kernel modules ─────────────────────────────────────────────

def list_kernel_modules(
    shell: CommandAdapter,
    proc_modules: str | Path = "/proc/modules",
) -> set[str]:
    """Names of loaded kernel modules (lsmod, falling back to /proc/modules)."""
    if shell.available("lsmod"):
        r = shell.run(["lsmod"], timeout=10)
        if r.ok:
            lines = r.output.splitlines()
            return {
                line.split()[0]
                for line in lines[1:]
                if line.strip()
            }
        logger.debug("lsmod failed (%s), reading %s", r.error, proc_modules)

    try:
        with open(proc_modules) as f:
            return {line.split()[0] for line in f if line.strip()}
    except FileNotFoundError:
        return set()


def module_flags(
    modules: set[str],
    *,
    vendor_module: str = "nvidia",
    conflicting_module: str = "nouveau",
) -> tuple[bool, bool]:
    """(vendor module loaded, conflicting module loaded)."""
    vendor = any(
        m == vendor_module or m.startswith(f"{vendor_module}_")
        for m in modules
    )
    return vendor, conflicting_module in modules


# ── Public API ─────────────────────────────────────────────────

def detect_gpu(
    shell: CommandAdapter,
    *,
    proc_modules: str | Path = "/proc/modules",
    vendor_module: str = "nvidia",
    conflicting_module: str = "nouveau",
) -> GpuState:
    """Detect GPU presence and driver state.

    Priority (first verdict wins, later probes are not run):
      1. nvidia-smi reports a driver      → configured
      2. lspci shows an NVIDIA device      → present-unconfigured
      3. lshw shows vendor [10DE]          → present-unconfigured
      4. neither lspci nor lshw installed  → undetectable
      5. otherwise                         → absent

    Loaded kernel modules are read independently of the chain.
    """
    vendor_loaded, conflict_loaded = module_flags(
        list_kernel_modules(shell, proc_modules),
        vendor_module=vendor_module,
        conflicting_module=conflicting_module,
    )
    tool_installed = shell.available(NVIDIA_SMI)
    common = {
        "vendor_tool_installed": tool_installed,
        "vendor_module_loaded": vendor_loaded,
        "conflicting_module_loaded": conflict_loaded,
    }

    nvsmi = _nvidia_smi(shell)
    if nvsmi:
        state = GpuState(
            status=GpuStatus.CONFIGURED,
            vendor=GpuVendor.NVIDIA,
            detection_method=DetectionMethod.VENDOR_TOOL,
            driver_version=nvsmi["driver_version"],
            cuda_version=nvsmi["cuda_version"],
            detail=nvsmi["name"],
            **common,
        )
        logger.info(
            "NVIDIA driver %s active (CUDA %s)",
            state.driver_version, state.cuda_version or "unknown",
        )
        return state

    try:
        method = _scan_for_gpu(shell)
    except DegradedDetection as e:
        logger.warning("%s", e)
        return GpuState(
            status=GpuStatus.UNDETECTABLE,
            vendor=GpuVendor.UNKNOWN,
            detail=str(e),
            **common,
        )

    if method is None:
        logger.info("No NVIDIA GPU detected")
        return GpuState(status=GpuStatus.ABSENT, **common)

    logger.info("NVIDIA GPU detected via %s, driver not active", method)
    return GpuState(
        status=GpuStatus.PRESENT_UNCONFIGURED,
        vendor=GpuVendor.NVIDIA,
        detection_method=method,
        **common,
    )


def reprobe_modules(
    gpu: GpuState,
    shell: CommandAdapter,
    *,
    proc_modules: str | Path = "/proc/modules",
    vendor_module: str = "nvidia",
    conflicting_module: str = "nouveau",
) -> GpuState:
    """Return a new GpuState with freshly read kernel-module flags."""
    vendor_loaded, conflict_loaded = module_flags(
        list_kernel_modules(shell, proc_modules),
        vendor_module=vendor_module,
        conflicting_module=conflicting_module,
    )
    return gpu.model_copy(update={
        "vendor_module_loaded": vendor_loaded,
        "conflicting_module_loaded": conflict_loaded,
    })
