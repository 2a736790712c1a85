"""
Install use case — preflight, binary, service, drivers, health.

Ordering guarantees:
    - platform and architecture are checked before any network call
    - the run workspace is removed on every exit path
    - a driver failure never uninstalls the binary or the service
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hostprov.adapters.base import CommandAdapter
from hostprov.adapters.shell.command import ShellCommandAdapter
from hostprov.core.errors import FatalEnvironment
from hostprov.core.models.config import InstallerConfig
from hostprov.core.models.plan import ProvisioningReport, ProvisioningStatus
from hostprov.core.services.install.binary import install_binary
from hostprov.core.services.install.service import (
    register_service,
    restart_service,
    wait_for_service,
)
from hostprov.core.services.provisioning.detection.host import (
    detect_architecture,
    probe_host,
    require_linux,
)
from hostprov.core.services.provisioning.execution.workspace import RunWorkspace
from hostprov.core.services.provisioning.orchestration.engine import DriverProvisioningEngine

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("curl", "tee", "install")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_DRIVER_FAILED = 2


@dataclass
class InstallResult:
    """Outcome of a full install run."""

    binary_path: Path | None = None
    service_managed: bool = False
    service_healthy: bool | None = None
    report: ProvisioningReport | None = None
    workspace: Path | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def status(self) -> ProvisioningStatus:
        if self.error or self.report is None:
            return ProvisioningStatus.FAILED
        return self.report.status

    @property
    def exit_code(self) -> int:
        if self.error or self.report is None:
            return EXIT_FATAL
        if self.report.status == ProvisioningStatus.FAILED:
            return EXIT_DRIVER_FAILED
        return EXIT_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "exit_code": self.exit_code,
            "binary_path": str(self.binary_path) if self.binary_path else None,
            "service_managed": self.service_managed,
            "service_healthy": self.service_healthy,
            "error": self.error,
            "warnings": self.warnings,
            "report": self.report.to_dict() if self.report else None,
        }


def preflight(
    shell: CommandAdapter,
    *,
    system: str | None = None,
    machine: str | None = None,
) -> None:
    """Checks that must pass before anything touches the network.

    Raises:
        FatalEnvironment: Non-Linux, unsupported architecture, no way to
            become root, or base tools missing.
    """
    require_linux(system)
    detect_architecture(machine)

    if not shell.can_elevate():
        raise FatalEnvironment(
            "This installer requires superuser permissions. Please re-run as root."
        )

    missing = shell.missing(REQUIRED_TOOLS)
    if missing:
        raise FatalEnvironment(
            f"The following tools are required but missing: {', '.join(missing)}"
        )


def run_install(
    config: InstallerConfig | None = None,
    shell: CommandAdapter | None = None,
    *,
    system: str | None = None,
    machine: str | None = None,
    path_env: str | None = None,
) -> InstallResult:
    """Install the binary, register the service and provision drivers.

    Never raises for expected failures; the result carries the error
    and the exit code.
    """
    config = config or InstallerConfig()
    shell = shell or ShellCommandAdapter()
    result = InstallResult()

    try:
        preflight(shell, system=system, machine=machine)
        arch = detect_architecture(machine)

        with RunWorkspace() as ws:
            result.workspace = ws.path
            try:
                result.binary_path = install_binary(
                    shell, config, arch, ws.path, path_env=path_env,
                )
                result.service_managed = register_service(
                    shell, config, result.binary_path, path_env=path_env,
                )

                host = probe_host(shell, config.paths, machine=machine)
                engine = DriverProvisioningEngine(shell, config, workspace=ws.path)
                result.report = engine.run(host)
                result.warnings.extend(result.report.warnings)
            finally:
                if result.service_managed:
                    restart_service(shell, config.service)
                    result.service_healthy = wait_for_service(config.service)
    except FatalEnvironment as e:
        logger.error("%s", e)
        result.error = str(e)

    logger.info("Install finished: %s", result.status)
    return result
