"""
L0 Data — minimum Linux driver per CUDA runtime.

From the CUDA toolkit release notes (toolkit driver version table,
GA releases). Only ``major.minor`` matters for compatibility.
"""

from __future__ import annotations

MIN_LINUX_DRIVER: dict[str, str] = {
    "12.8": "570.26",
    "12.6": "560.28",
    "12.5": "555.42",
    "12.4": "550.54",
    "12.3": "545.23",
    "12.2": "535.54",
    "12.1": "530.30",
    "12.0": "525.60",
    "11.8": "520.61",
    "11.7": "515.43",
    "11.6": "510.39",
    "11.5": "495.29",
    "11.4": "470.42",
    "11.3": "465.19",
    "11.2": "460.27",
    "11.1": "455.23",
    "11.0": "450.36",
}


def min_driver_for(cuda_version: str) -> str | None:
    """Minimum driver for a CUDA version, or None if it is not listed."""
    major_minor = ".".join(cuda_version.split(".")[:2])
    return MIN_LINUX_DRIVER.get(major_minor)
