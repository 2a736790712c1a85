"""
Package-manager adapter base — uniform repository and package operations.

The primitives (install, add repository, refresh) behave like every other
adapter: they return a Receipt and never raise. ``install_driver_stack``
is the family procedure; it applies the error policy and raises
``ProvisioningFailure`` on the first hard failure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from hostprov.adapters.base import CommandAdapter
from hostprov.core.errors import ProvisioningFailure
from hostprov.core.models.action import Receipt
from hostprov.core.models.config import DriverConfig, PathsConfig
from hostprov.core.models.host import PackageManager
from hostprov.core.models.plan import RepoSpec

logger = logging.getLogger(__name__)


def require(step: str, receipt: Receipt) -> Receipt:
    """Pass a successful receipt through, raise on a failed one."""
    if receipt.failed:
        logger.error("%s failed: %s", step, receipt.error)
        raise ProvisioningFailure.from_receipt(step, receipt)
    return receipt


class PackageManagerAdapter(ABC):
    """Abstract base class for system package managers.

    To add a package manager:
        1. Subclass PackageManagerAdapter
        2. Set ``manager`` and implement the four operations
        3. Register the class in ``hostprov.adapters.registry``
    """

    manager: ClassVar[PackageManager]

    def __init__(
        self,
        shell: CommandAdapter,
        *,
        drivers: DriverConfig | None = None,
        paths: PathsConfig | None = None,
        workspace: Path | None = None,
        timeout: int = 1800,
    ):
        self.shell = shell
        self.drivers = drivers or DriverConfig()
        self.paths = paths or PathsConfig()
        self.workspace = workspace
        self.timeout = timeout

    @property
    def binary(self) -> str:
        return str(self.manager)

    @abstractmethod
    def install_packages(self, names: list[str]) -> Receipt:
        """Install packages non-interactively."""

    @abstractmethod
    def add_repository(self, spec: RepoSpec) -> Receipt:
        """Register the vendor repository and its trust material."""

    @abstractmethod
    def refresh_indices(self) -> Receipt:
        """Refresh package indices."""

    @abstractmethod
    def install_driver_stack(self, spec: RepoSpec) -> list[Receipt]:
        """Register the repo and install the driver packages.

        Returns every receipt produced, in order.

        Raises:
            ProvisioningFailure: A required step failed.
        """

    def _run(self, cmd: list[str], **kwargs) -> Receipt:
        kwargs.setdefault("needs_root", True)
        kwargs.setdefault("timeout", self.timeout)
        logger.info("Running: %s", " ".join(cmd))
        return self.shell.run(cmd, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} manager={self.binary!r}>"
