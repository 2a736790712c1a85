"""
Error taxonomy for the installer.

Three failure classes with different blast radius:

    FatalEnvironment     → abort immediately, nothing else attempted (exit 1)
    DegradedDetection    → GPU state unknowable, driver provisioning skipped
    ProvisioningFailure  → driver branch aborted, binary + service stay (exit 2)

"Reboot required" is NOT an error — it is a terminal report status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hostprov.core.models.action import Receipt


class HostprovError(Exception):
    """Base class for all installer errors."""


class FatalEnvironment(HostprovError):
    """The host cannot be provisioned at all.

    Raised for non-Linux platforms, unsupported architectures, missing
    privilege elevation, missing base tools, and unknown distributions
    when driver provisioning was otherwise reachable.
    """


class DegradedDetection(HostprovError):
    """GPU presence cannot be determined because scanning tools are absent."""


class ProvisioningFailure(HostprovError):
    """A driver provisioning step failed.

    Carries the failing receipt so the adapter's error text reaches
    the top-level report unchanged.
    """

    def __init__(self, message: str, receipt: Receipt | None = None):
        super().__init__(message)
        self.receipt = receipt

    @classmethod
    def from_receipt(cls, step: str, receipt: Receipt) -> ProvisioningFailure:
        detail = receipt.error or "unknown error"
        return cls(f"{step} failed: {detail}", receipt=receipt)
