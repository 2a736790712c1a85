"""Adapters — bindings to the host's command line and package managers.

Public re-exports for convenient access.
"""

from hostprov.adapters.base import CommandAdapter
from hostprov.adapters.mock import MockShell
from hostprov.adapters.shell.command import ShellCommandAdapter

__all__ = [
    "CommandAdapter",
    "MockShell",
    "ShellCommandAdapter",
]
