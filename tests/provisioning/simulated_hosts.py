"""
Test fixtures — a stateful simulated Linux host.

SimulatedHost is a MockShell that keeps enough state to answer the
commands the installer issues: installed packages, loaded kernel
modules, DKMS entries, nvidia-smi, PCI devices and systemd. Package
installs change that state, so a second run sees the result of the first.

Host files (os-release, apt sources, unit dir) live under ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path

from hostprov.adapters.mock import MockShell
from hostprov.core.models.action import Receipt
from hostprov.core.models.config import InstallerConfig, PathsConfig, ServiceConfig
from hostprov.core.models.host import HostProfile
from hostprov.core.services.provisioning.detection.host import probe_host

PM_BINARIES = {
    "dnf": ["dnf"],
    "yum": ["yum"],
    "apt": ["apt-get", "dpkg"],
    None: [],
}

LSPCI_NVIDIA = "01:00.0 VGA compatible controller: NVIDIA Corporation GA102 [GeForce RTX 3090] (rev a1)\n"
LSHW_NVIDIA = (
    "  *-display\n"
    "       description: VGA compatible controller\n"
    "       product: GA102 [GeForce RTX 3090] [10DE:2204]\n"
    "       vendor: NVIDIA Corporation [10DE]\n"
)
LSHW_OTHER = (
    "  *-display\n"
    "       description: VGA compatible controller\n"
    "       vendor: Intel Corporation [8086]\n"
)
SMI_FAILURE = (
    "NVIDIA-SMI has failed because it couldn't communicate with the NVIDIA driver."
)


class SimulatedHost(MockShell):
    """A Linux host that reacts to package, module and dkms commands."""

    def __init__(
        self,
        tmp_path: Path,
        *,
        os_id: str = "rhel",
        version_id: str = "9.3",
        pm: str | None = "dnf",
        machine: str = "x86_64",
        kernel: str = "5.14.0-362.el9.x86_64",
        gpu: bool = True,
        scan_tools: tuple[str, ...] = ("lspci",),
        modules: tuple[str, ...] = (),
        driver_installed: bool = False,
        driver_version: str = "545.23.08",
        cuda_version: str = "12.3",
        systemd: bool = False,
        root: bool = True,
        failing_packages: tuple[str, ...] = (),
    ):
        binaries = {"lsmod", "curl", "tee", "install", "modprobe", *scan_tools}
        binaries.update(PM_BINARIES[pm])
        if systemd:
            binaries.add("systemctl")
        super().__init__(binaries, root=root)

        self.root_dir = tmp_path
        self.machine = machine
        self.kernel = kernel
        self.gpu = gpu
        self.driver_version = driver_version
        self.cuda_version = cuda_version
        self.failing_packages = set(failing_packages)

        self.modules: set[str] = set(modules)
        self.packages: set[str] = set()
        self.repos: list[str] = []
        self.keyrings: list[str] = []
        self.dkms: dict[str, str] = {}
        self.users: set[str] = set()
        self.enabled_units: set[str] = set()

        (tmp_path / "etc").mkdir(exist_ok=True)
        if os_id:
            (tmp_path / "etc" / "os-release").write_text(
                f'NAME="{os_id} (simulated)"\nID={os_id}\nVERSION_ID="{version_id}"\n'
            )
        (tmp_path / "apt" / "sources.list.d").mkdir(parents=True, exist_ok=True)
        (tmp_path / "systemd").mkdir(exist_ok=True)

        if driver_installed:
            self._install_driver()
            for key in self.dkms:
                self.dkms[key] = "installed"

    # ── Host files ──────────────────────────────────────────────

    @property
    def paths(self) -> PathsConfig:
        return PathsConfig(
            os_release=str(self.root_dir / "etc" / "os-release"),
            proc_modules=str(self.root_dir / "proc-modules"),
            apt_sources_list=str(self.root_dir / "apt" / "sources.list"),
            apt_sources_dir=str(self.root_dir / "apt" / "sources.list.d"),
            systemd_unit_dir=str(self.root_dir / "systemd"),
        )

    def config(self, **overrides) -> InstallerConfig:
        data = {
            "paths": self.paths,
            "service": ServiceConfig(health_timeout=0),
            "bin_dirs": [str(self.root_dir / "bin")],
        }
        data.update(overrides)
        return InstallerConfig(**data)

    def profile(self) -> HostProfile:
        return probe_host(self, self.paths, machine=self.machine, kernel_release=self.kernel)

    def write_file(self, path, content, *, needs_root=True) -> Receipt:
        receipt = super().write_file(path, content, needs_root=needs_root)
        Path(path).write_text(content, encoding="utf-8")
        return receipt

    # ── Queries used by tests ───────────────────────────────────

    def package_manager_calls(self) -> list[list[str]]:
        heads = {"dnf", "yum", "yum-config-manager", "apt-get", "dpkg"}
        return [c for c in self.call_log if c and c[0] in heads]

    # ── Simulation ──────────────────────────────────────────────

    def _install_driver(self) -> None:
        self.packages.add("cuda-drivers")
        self.add_binary("nvidia-smi", "dkms")
        self.dkms.setdefault(f"nvidia/{self.driver_version}", "added")

    def _nvidia_responding(self) -> bool:
        return self.available("nvidia-smi") and "nvidia" in self.modules

    def _install(self, names: list[str]) -> str | None:
        """Install packages; returns an error string on failure."""
        for name in names:
            if name in self.failing_packages:
                return f"No package {name} available."
        for name in names:
            self.packages.add(name)
            if name in ("cuda-drivers", "nvidia-driver-latest-dkms"):
                self._install_driver()
            if name == "yum-utils":
                self.add_binary("yum-config-manager")
        return None

    def _default_response(self, cmd, action_id, env_overrides) -> Receipt:
        def ok(out: str = "") -> Receipt:
            return Receipt.success(adapter=self.name, action_id=action_id, output=out)

        def fail(err: str) -> Receipt:
            return Receipt.failure(adapter=self.name, action_id=action_id, error=err)

        head, args = cmd[0], cmd[1:]

        if head == "lsmod":
            lines = ["Module                  Size  Used by"]
            lines += [f"{m:<24}16384  0" for m in sorted(self.modules)]
            return ok("\n".join(lines) + "\n")

        if head == "nvidia-smi":
            if not self._nvidia_responding():
                return fail(SMI_FAILURE)
            if any(a.startswith("--query-gpu") for a in args):
                return ok(f"{self.driver_version}, NVIDIA GeForce RTX 3090\n")
            return ok(
                "| NVIDIA-SMI 545.23.08    "
                f"Driver Version: {self.driver_version}    "
                f"CUDA Version: {self.cuda_version}     |\n"
            )

        if head == "lspci":
            return ok(LSPCI_NVIDIA if self.gpu else "")

        if head == "lshw":
            return ok(LSHW_NVIDIA if self.gpu else LSHW_OTHER)

        if head in ("dnf", "yum", "apt-get"):
            if args[:1] == ["config-manager"]:
                self.repos.append(args[-1])
                return ok()
            if args[:1] in (["update"], ["makecache"]):
                return ok()
            if "install" in args:
                names = [a for a in args[args.index("install") + 1:] if not a.startswith("-")]
                err = self._install(names)
                return fail(err) if err else ok()
            return ok()

        if head == "yum-config-manager":
            self.repos.append(args[-1])
            return ok()

        if head == "dpkg":
            self.keyrings.append(args[-1])
            return ok()

        if head == "curl":
            dest = Path(args[args.index("-o") + 1])
            dest.write_bytes(b"simulated download\n")
            return ok()

        if head == "dkms":
            if args[:1] == ["status"]:
                return ok("".join(f"{k}: {v}\n" for k, v in self.dkms.items()))
            if args[:1] == ["install"]:
                self.dkms[args[1]] = "installed"
                return ok()
            return ok()

        if head == "modprobe":
            module = args[-1]
            if "nouveau" in self.modules:
                return fail(f"modprobe: ERROR: could not insert '{module}': No such device")
            if not any(v == "installed" for v in self.dkms.values()):
                return fail(f"modprobe: FATAL: Module {module} not found in directory /lib/modules/{self.kernel}")
            self.modules.update({module, f"{module}_uvm", f"{module}_modeset"})
            return ok()

        if head == "id":
            return ok("999") if args[-1] in self.users else fail(f"id: '{args[-1]}': no such user")

        if head == "useradd":
            self.users.add(args[-1])
            return ok()

        if head == "systemctl":
            if args == ["is-system-running"]:
                return ok("running\n")
            if args[:1] == ["enable"]:
                self.enabled_units.add(args[1])
            return ok()

        return ok()
