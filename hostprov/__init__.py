"""hostprov — host-provisioning installer with GPU driver provisioning."""

__version__ = "0.1.0"
