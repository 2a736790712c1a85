"""
L3 Detection — DKMS module state.
"""

from __future__ import annotations

import logging

from hostprov.adapters.base import CommandAdapter

logger = logging.getLogger(__name__)


def parse_dkms_status(output: str) -> list[str]:
    """Modules in the ``added`` state, as ``name/version``.

    Handles both the current format (``nvidia/535.104.05: added``)
    and the older comma form (``nvidia, 535.104.05: added``).
    """
    modules: list[str] = []
    for line in output.splitlines():
        head, sep, state = line.partition(":")
        if not sep or "added" not in state:
            continue
        head = head.strip()
        if "/" not in head and "," in head:
            name, _, version = head.partition(",")
            head = f"{name.strip()}/{version.strip()}"
        if head:
            modules.append(head)
    return modules


def dkms_added_modules(shell: CommandAdapter) -> list[str]:
    """Ask dkms which modules are registered but not built."""
    if not shell.available("dkms"):
        logger.info("dkms not installed, no modules to rebuild")
        return []
    r = shell.run(["dkms", "status"], needs_root=True, timeout=60)
    if not r.ok:
        logger.warning("dkms status failed: %s", r.error)
        return []
    return parse_dkms_status(r.output)
