"""
Service registrar — system user, systemd unit, restart, health wait.

Everything is skipped when systemd is not present; callers only care
whether the service ended up managed.
"""

from __future__ import annotations

import logging
import os
import time
import urllib.error
import urllib.request
from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.core.models.config import InstallerConfig, ServiceConfig

logger = logging.getLogger(__name__)

_MANAGEABLE_STATES = ("running", "degraded")


def render_unit(service: ServiceConfig, binary: Path, path_env: str) -> str:
    """systemd unit file for the installed binary."""
    exec_start = " ".join([str(binary), *service.exec_args])
    return (
        "[Unit]\n"
        f"Description={service.description}\n"
        "After=network-online.target\n"
        "\n"
        "[Service]\n"
        f"ExecStart={exec_start}\n"
        f"User={service.user}\n"
        f"Group={service.user}\n"
        f"Restart={service.restart}\n"
        f"RestartSec={service.restart_sec}\n"
        f'Environment="PATH={path_env}"\n'
        "\n"
        "[Install]\n"
        "WantedBy=default.target\n"
    )


def ensure_service_user(shell: CommandAdapter, service: ServiceConfig) -> bool:
    """Create the system user if missing. Returns True if it was created."""
    if shell.run(["id", service.user], timeout=10).ok:
        return False
    logger.info("Creating %s user", service.user)
    r = shell.run(
        ["useradd", "-r", "-s", "/bin/false", "-m", "-d", service.home, service.user],
        needs_root=True,
        timeout=60,
    )
    if r.failed:
        logger.warning("Could not create user %s: %s", service.user, r.error)
        return False
    return True


def register_service(
    shell: CommandAdapter,
    config: InstallerConfig,
    binary: Path,
    *,
    path_env: str | None = None,
) -> bool:
    """Create user and unit, enable under systemd.

    Returns:
        True if systemd now manages the service.
    """
    if not shell.available("systemctl"):
        logger.info("systemctl not found, skipping service registration")
        return False

    service = config.service
    ensure_service_user(shell, service)

    unit_path = Path(config.paths.systemd_unit_dir) / f"{service.name}.service"
    logger.info("Creating %s systemd service", service.name)
    unit = render_unit(
        service, binary, path_env if path_env is not None else os.environ.get("PATH", ""),
    )
    r = shell.write_file(unit_path, unit, needs_root=True)
    if r.failed:
        logger.warning("Could not write %s: %s", unit_path, r.error)
        return False

    # is-system-running exits non-zero for "degraded", read the text
    r = shell.run(["systemctl", "is-system-running"], timeout=10)
    state = r.output.strip()
    if state not in _MANAGEABLE_STATES:
        logger.info("systemd is %r, not enabling %s", state or "unavailable", service.name)
        return False

    logger.info("Enabling %s service", service.name)
    for cmd in (["systemctl", "daemon-reload"], ["systemctl", "enable", service.name]):
        r = shell.run(cmd, needs_root=True, timeout=60)
        if r.failed:
            logger.warning("%s failed: %s", " ".join(cmd), r.error)
            return False
    return True


def restart_service(shell: CommandAdapter, service: ServiceConfig) -> bool:
    r = shell.run(["systemctl", "restart", service.name], needs_root=True, timeout=60)
    if r.failed:
        logger.warning("Restarting %s failed: %s", service.name, r.error)
    return r.ok


def _health_ok(url: str, expect: str) -> bool:
    try:
        with urllib.request.urlopen(url, timeout=2) as resp:
            body = resp.read().decode("utf-8", errors="replace").strip()
    except (urllib.error.URLError, OSError):
        return False
    return body == expect if expect else True


def wait_for_service(service: ServiceConfig, *, interval: float = 0.2) -> bool:
    """Poll the health URL until it answers or the timeout passes."""
    deadline = time.monotonic() + service.health_timeout
    while True:
        if _health_ok(service.health_url, service.health_expect):
            logger.info("%s is available at %s", service.name, service.health_url)
            return True
        if time.monotonic() >= deadline:
            logger.warning(
                "%s did not answer at %s within %.0fs",
                service.name, service.health_url, service.health_timeout,
            )
            return False
        time.sleep(interval)
