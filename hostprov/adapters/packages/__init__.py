"""Package-manager adapters: dnf, yum and apt behind one interface."""

from hostprov.adapters.packages.apt import AptAdapter
from hostprov.adapters.packages.base import PackageManagerAdapter, require
from hostprov.adapters.packages.rhel import DnfAdapter, YumAdapter

__all__ = [
    "AptAdapter",
    "DnfAdapter",
    "PackageManagerAdapter",
    "YumAdapter",
    "require",
]
