"""
L5 Orchestration — the driver provisioning engine.

Probe → select plan → realise it through the package adapter and
kernel-module tooling → report.

    start → arch-checked → gpu-detected
          → no-gpu | driver-skipped | already-configured | reboot-required
          → needs-repo-and-driver → kernel-module-checked
          → module-loaded | needs-kernel-headers
          → reboot-required | modprobe-attempted
          → done

A ``ProvisioningFailure`` ends the driver branch with status ``failed``;
``FatalEnvironment`` propagates to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.adapters.packages.base import PackageManagerAdapter, require
from hostprov.adapters.registry import PackageAdapterRegistry, default_registry
from hostprov.core.errors import FatalEnvironment, ProvisioningFailure
from hostprov.core.models.config import InstallerConfig
from hostprov.core.models.gpu import GpuState, GpuStatus
from hostprov.core.models.host import HostProfile
from hostprov.core.models.plan import (
    EngineState,
    ProvisioningPlan,
    ProvisioningReport,
    ProvisioningStatus,
    RepoSpec,
)
from hostprov.core.services.provisioning.detection.gpu import detect_gpu, reprobe_modules
from hostprov.core.services.provisioning.detection.host import probe_host
from hostprov.core.services.provisioning.domain.plan import build_repo_spec, select_plan
from hostprov.core.services.provisioning.execution.kernel_modules import (
    install_kernel_headers,
    load_module,
    rebuild_dkms_modules,
)

logger = logging.getLogger(__name__)


class DriverProvisioningEngine:
    """Decides and drives GPU driver provisioning for one host."""

    def __init__(
        self,
        shell: CommandAdapter,
        config: InstallerConfig | None = None,
        *,
        workspace: Path,
        registry: PackageAdapterRegistry | None = None,
    ):
        self.shell = shell
        self.config = config or InstallerConfig()
        self.workspace = workspace
        self.registry = registry or default_registry()

    # ── Probing ─────────────────────────────────────────────────

    def detect(self) -> GpuState:
        drivers = self.config.drivers
        return detect_gpu(
            self.shell,
            proc_modules=self.config.paths.proc_modules,
            vendor_module=drivers.vendor_module,
            conflicting_module=drivers.conflicting_module,
        )

    def _reprobe(self, gpu: GpuState) -> GpuState:
        drivers = self.config.drivers
        return reprobe_modules(
            gpu,
            self.shell,
            proc_modules=self.config.paths.proc_modules,
            vendor_module=drivers.vendor_module,
            conflicting_module=drivers.conflicting_module,
        )

    # ── Run ─────────────────────────────────────────────────────

    def run(self, host: HostProfile | None = None) -> ProvisioningReport:
        """Provision drivers for ``host`` (probed when not given).

        Raises:
            FatalEnvironment: Unsupported architecture, or an unknown
                distribution when provisioning is needed.
        """
        report = ProvisioningReport()
        report.enter(EngineState.START)

        if host is None:
            host = probe_host(self.shell, self.config.paths)
        report.host = host
        report.enter(EngineState.ARCH_CHECKED)

        gpu = self.detect()
        report.gpu = gpu
        report.enter(EngineState.GPU_DETECTED)
        if gpu.status == GpuStatus.UNDETECTABLE:
            report.warnings.append(gpu.detail)

        plan = select_plan(
            host, gpu, required_cuda_version=self.config.drivers.required_cuda_version,
        )
        report.plan = plan
        logger.info("Provisioning plan: %s", plan)

        try:
            self._execute(plan, host, gpu, report)
        except ProvisioningFailure as e:
            logger.error("Driver provisioning failed: %s", e)
            report.status = ProvisioningStatus.FAILED
            report.error = str(e)
            if e.receipt is not None:
                report.receipts.append(e.receipt)

        report.enter(EngineState.DONE)
        logger.info("Driver provisioning finished: %s", report.status)
        return report

    def _execute(
        self,
        plan: ProvisioningPlan,
        host: HostProfile,
        gpu: GpuState,
        report: ProvisioningReport,
    ) -> None:
        match plan:
            case ProvisioningPlan.SKIP_NO_GPU:
                report.enter(EngineState.NO_GPU)
                report.status = ProvisioningStatus.CPU_ONLY
                logger.warning("No NVIDIA GPU detected. The service will run in CPU-only mode.")

            case ProvisioningPlan.SKIP_DRIVER_INSTALL:
                report.enter(EngineState.DRIVER_SKIPPED)
                report.status = ProvisioningStatus.DRIVER_SKIPPED
                if host.package_manager is None and gpu.present:
                    msg = "No supported package manager found, skipping GPU driver install"
                    logger.warning(msg)
                    report.warnings.append(msg)

            case ProvisioningPlan.ALREADY_CONFIGURED:
                report.enter(EngineState.ALREADY_CONFIGURED)
                report.status = ProvisioningStatus.READY

            case ProvisioningPlan.REBOOT_REQUIRED:
                report.enter(EngineState.REBOOT_REQUIRED)
                report.status = ProvisioningStatus.REBOOT_REQUIRED
                self._reboot_warning(report)

            case ProvisioningPlan.INSTALL_REPO_AND_DRIVERS:
                spec = self._supported_spec(host)
                report.enter(EngineState.NEEDS_REPO_AND_DRIVER)
                packages = self._packages(host)
                for r in packages.install_driver_stack(spec):
                    report.receipts.append(r)
                    if r.warning:
                        report.warnings.append(r.output)
                self._ensure_module(host, gpu, packages, report)

            case ProvisioningPlan.REBUILD_KERNEL_MODULE:
                self._supported_spec(host)
                self._ensure_module(host, gpu, self._packages(host), report)

    def _supported_spec(self, host: HostProfile) -> RepoSpec:
        """Repository spec for the host; unknown distros are fatal here."""
        try:
            return build_repo_spec(host, self.config.drivers)
        except FatalEnvironment:
            logger.error("Unknown distribution %r, cannot provision drivers", host.os_id)
            raise

    def _packages(self, host: HostProfile) -> PackageManagerAdapter:
        return self.registry.create(
            host.package_manager,
            self.shell,
            drivers=self.config.drivers,
            paths=self.config.paths,
            workspace=self.workspace,
            timeout=self.config.command_timeout,
        )

    def _ensure_module(
        self,
        host: HostProfile,
        gpu: GpuState,
        packages: PackageManagerAdapter,
        report: ProvisioningReport,
    ) -> None:
        gpu = self._reprobe(gpu)
        report.gpu = gpu
        report.enter(EngineState.KERNEL_MODULE_CHECKED)

        if gpu.vendor_module_loaded:
            report.enter(EngineState.MODULE_LOADED)
            report.status = ProvisioningStatus.READY
            return

        report.enter(EngineState.NEEDS_KERNEL_HEADERS)
        report.receipts.append(install_kernel_headers(packages, host))
        report.receipts.extend(
            rebuild_dkms_modules(self.shell, timeout=self.config.command_timeout),
        )

        gpu = self._reprobe(gpu)
        report.gpu = gpu
        if gpu.conflicting_module_loaded:
            report.enter(EngineState.REBOOT_REQUIRED)
            report.status = ProvisioningStatus.REBOOT_REQUIRED
            self._reboot_warning(report)
            return

        report.enter(EngineState.MODPROBE_ATTEMPTED)
        module = self.config.drivers.vendor_module
        report.receipts.append(
            require(f"Loading kernel module {module}", load_module(self.shell, module)),
        )
        report.gpu = self._reprobe(gpu)
        report.status = ProvisioningStatus.READY

    def _reboot_warning(self, report: ProvisioningReport) -> None:
        msg = (
            f"{self.config.drivers.conflicting_module} kernel module is loaded. "
            "Reboot to complete the NVIDIA driver installation."
        )
        logger.warning(msg)
        report.warnings.append(msg)
