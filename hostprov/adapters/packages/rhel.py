"""
RHEL-family package managers — dnf and yum.

Driver stack:
    register CUDA repo → EPEL (rhel bucket, best effort)
    → DKMS driver (legacy buckets) → cuda-drivers
"""

from __future__ import annotations

import logging

from hostprov.adapters.packages.base import PackageManagerAdapter, require
from hostprov.core.models.action import Receipt
from hostprov.core.models.host import PackageManager
from hostprov.core.models.plan import RepoSpec

logger = logging.getLogger(__name__)


class _RhelAdapter(PackageManagerAdapter):
    """Shared behaviour for dnf and yum."""

    def install_packages(self, names: list[str]) -> Receipt:
        return self._run(
            [self.binary, "-y", "install", *names],
            action_id=f"{self.binary}:install:{' '.join(names)}",
        )

    def add_repository(self, spec: RepoSpec) -> Receipt:
        return self._run(
            [f"{self.binary}-config-manager", "--add-repo", spec.repo_url],
            action_id=f"{self.binary}:add-repo",
        )

    def refresh_indices(self) -> Receipt:
        return self._run([self.binary, "makecache"], action_id=f"{self.binary}:makecache")

    def install_driver_stack(self, spec: RepoSpec) -> list[Receipt]:
        receipts = [require("Repository registration", self.add_repository(spec))]

        if spec.epel_url:
            r = self.install_packages([spec.epel_url])
            if r.failed:
                reason = f"EPEL install failed, continuing without it: {r.error}"
                logger.warning("%s", reason)
                r = Receipt.skip(
                    adapter=r.adapter,
                    action_id=r.action_id,
                    reason=reason,
                    metadata={"warning": True},
                )
            receipts.append(r)

        if spec.legacy:
            receipts.append(require(
                "DKMS driver install",
                self.install_packages([self.drivers.legacy_dkms_package]),
            ))

        receipts.append(require(
            "Driver install",
            self.install_packages([self.drivers.driver_package]),
        ))
        return receipts


class DnfAdapter(_RhelAdapter):
    manager = PackageManager.DNF

    def add_repository(self, spec: RepoSpec) -> Receipt:
        return self._run(
            [self.binary, "config-manager", "--add-repo", spec.repo_url],
            action_id="dnf:add-repo",
        )


class YumAdapter(_RhelAdapter):
    """yum needs yum-utils for ``yum-config-manager``."""

    manager = PackageManager.YUM

    def add_repository(self, spec: RepoSpec) -> Receipt:
        r = self.install_packages(["yum-utils"])
        if r.failed:
            return r
        return super().add_repository(spec)
