"""
Package adapter registry — PackageManager → adapter class.

The engine never instantiates a package adapter directly; it asks the
registry for the one matching the probed package manager.
"""

from __future__ import annotations

import logging

from hostprov.adapters.base import CommandAdapter
from hostprov.adapters.packages.apt import AptAdapter
from hostprov.adapters.packages.base import PackageManagerAdapter
from hostprov.adapters.packages.rhel import DnfAdapter, YumAdapter
from hostprov.core.models.host import PackageManager

logger = logging.getLogger(__name__)


class PackageAdapterRegistry:
    """Lookup table of package-manager adapter classes."""

    def __init__(self) -> None:
        self._adapters: dict[PackageManager, type[PackageManagerAdapter]] = {}

    def register(self, adapter_cls: type[PackageManagerAdapter]) -> None:
        manager = adapter_cls.manager
        if manager in self._adapters:
            logger.warning("Overwriting package adapter for %s", manager)
        self._adapters[manager] = adapter_cls
        logger.debug("Registered package adapter: %s", manager)

    def get(self, manager: PackageManager) -> type[PackageManagerAdapter] | None:
        return self._adapters.get(manager)

    def list_managers(self) -> list[PackageManager]:
        return list(self._adapters)

    def create(
        self,
        manager: PackageManager,
        shell: CommandAdapter,
        **kwargs,
    ) -> PackageManagerAdapter:
        """Instantiate the adapter for ``manager``.

        Raises:
            KeyError: No adapter registered for ``manager``.
        """
        adapter_cls = self._adapters.get(manager)
        if adapter_cls is None:
            raise KeyError(f"No package adapter registered for '{manager}'")
        return adapter_cls(shell, **kwargs)


def default_registry() -> PackageAdapterRegistry:
    registry = PackageAdapterRegistry()
    for adapter_cls in (DnfAdapter, YumAdapter, AptAdapter):
        registry.register(adapter_cls)
    return registry
