"""
Debian-family package manager — apt.

Driver stack:
    keyring .deb → contrib component (debian only) → apt-get update
    → cuda-drivers
"""

from __future__ import annotations

import logging
from pathlib import Path

from hostprov.adapters.packages.base import PackageManagerAdapter, require
from hostprov.core.models.action import Receipt
from hostprov.core.models.host import PackageManager
from hostprov.core.models.plan import RepoSpec

logger = logging.getLogger(__name__)

_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


def rewrite_main_to_contrib(text: str) -> str:
    """Replace the first ``main`` on each line with ``contrib``."""
    lines = text.splitlines(keepends=True)
    return "".join(line.replace("main", "contrib", 1) for line in lines)


class AptAdapter(PackageManagerAdapter):
    manager = PackageManager.APT

    @property
    def binary(self) -> str:
        return "apt-get"

    def install_packages(self, names: list[str]) -> Receipt:
        return self._run(
            ["apt-get", "-y", "-q", "install", *names],
            env_overrides=_NONINTERACTIVE,
            action_id=f"apt:install:{' '.join(names)}",
        )

    def refresh_indices(self) -> Receipt:
        return self._run(["apt-get", "update"], action_id="apt:update")

    def add_repository(self, spec: RepoSpec) -> Receipt:
        """Download the vendor keyring package and install it with dpkg.

        The keyring .deb ships the apt source entry along with the key.
        """
        if self.workspace is None:
            raise ValueError("AptAdapter needs a run workspace to download the keyring")
        if not spec.key_url:
            return Receipt.failure(
                adapter=self.shell.name,
                action_id="apt:keyring",
                error=f"No keyring URL for {spec.bucket}{spec.version}",
            )

        dest = self.workspace / spec.key_url.rsplit("/", 1)[-1]
        r = self._run(
            ["curl", "-fsSL", "-o", str(dest), spec.key_url],
            needs_root=False,
            timeout=300,
            action_id="apt:keyring-download",
        )
        if r.failed:
            return r
        return self._run(["dpkg", "-i", str(dest)], action_id="apt:keyring-install")

    def enable_contrib(self) -> list[Receipt]:
        """Derive contrib source files from the main ones.

        A destination that already holds the rewritten content is left
        alone, so a second run does not touch it.
        """
        sources_dir = Path(self.paths.apt_sources_dir)
        pairs = [
            (Path(self.paths.apt_sources_list), sources_dir / "contrib.list"),
            (sources_dir / "debian.sources", sources_dir / "contrib.sources"),
        ]

        receipts: list[Receipt] = []
        for src, dst in pairs:
            action_id = f"apt:contrib:{dst.name}"
            if not src.is_file():
                logger.debug("%s not present, skipping %s", src, dst.name)
                continue

            content = rewrite_main_to_contrib(src.read_text(encoding="utf-8"))
            if dst.is_file() and dst.read_text(encoding="utf-8") == content:
                logger.info("%s already enables contrib", dst)
                receipts.append(Receipt.skip(
                    adapter=self.shell.name,
                    action_id=action_id,
                    reason=f"{dst} already up to date",
                ))
                continue

            logger.info("Enabling contrib: %s → %s", src, dst)
            r = self.shell.write_file(dst, content, needs_root=True)
            receipts.append(require(f"Writing {dst}", r))
        return receipts

    def install_driver_stack(self, spec: RepoSpec) -> list[Receipt]:
        receipts = [require("Keyring installation", self.add_repository(spec))]

        if spec.bucket == "debian":
            receipts.extend(self.enable_contrib())

        receipts.append(require("Index refresh", self.refresh_indices()))
        receipts.append(require(
            "Driver install",
            self.install_packages([self.drivers.driver_package]),
        ))
        return receipts
