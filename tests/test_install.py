"""
Tests for the install use case and its collaborators (binary, service).
"""

import hashlib
from pathlib import Path
from unittest.mock import patch

import pytest

from hostprov.adapters.mock import MockShell
from hostprov.core.errors import FatalEnvironment
from hostprov.core.models.config import InstallerConfig, ServiceConfig
from hostprov.core.models.host import Architecture
from hostprov.core.models.plan import ProvisioningStatus
from hostprov.core.services.install.binary import choose_bin_dir, install_binary
from hostprov.core.services.install.service import (
    register_service,
    render_unit,
    wait_for_service,
)
from hostprov.core.services.provisioning.execution.workspace import RunWorkspace
from hostprov.core.use_cases.install import preflight, run_install
from tests.provisioning.simulated_hosts import SimulatedHost


# ── Workspace ───────────────────────────────────────────────────


class TestRunWorkspace:
    def test_removed_on_success(self):
        with RunWorkspace() as ws:
            path = ws.path
            (path / "file").write_text("x")
            assert path.is_dir()
        assert not path.exists()

    def test_removed_on_error(self):
        with pytest.raises(FatalEnvironment):
            with RunWorkspace() as ws:
                path = ws.path
                raise FatalEnvironment("boom")
        assert not path.exists()

    def test_path_outside_context(self):
        with pytest.raises(RuntimeError):
            RunWorkspace().path


# ── Binary installer ────────────────────────────────────────────


class TestBinaryInstaller:
    def test_bin_dir_first_on_path(self):
        candidates = ["/usr/local/bin", "/usr/bin", "/bin"]
        assert choose_bin_dir(candidates, "/usr/bin:/bin") == "/usr/bin"
        assert choose_bin_dir(candidates, "/usr/local/bin/:/usr/bin") == "/usr/local/bin"

    def test_bin_dir_fallback_is_last(self):
        assert choose_bin_dir(["/usr/local/bin", "/usr/bin", "/bin"], "/opt/x") == "/bin"

    def test_download_and_place(self, tmp_path):
        host = SimulatedHost(tmp_path)
        ws = tmp_path / "ws"
        ws.mkdir()
        config = InstallerConfig(bin_dirs=["/usr/local/bin", "/usr/bin"])

        target = install_binary(host, config, Architecture.ARM64, ws, path_env="/usr/bin")

        assert target == Path("/usr/bin/ollama")
        download = host.commands_starting_with("curl")[0]
        assert download[-1] == "https://ollama.ai/download/ollama-linux-arm64"
        assert host.ran("install", "-o0", "-g0", "-m755", str(ws / "ollama"), "/usr/bin/.ollama.new")
        assert host.ran("mv", "-f", "/usr/bin/.ollama.new", "/usr/bin/ollama")

    def test_checksum_verified(self, tmp_path):
        host = SimulatedHost(tmp_path)
        ws = tmp_path / "ws"
        ws.mkdir()
        digest = hashlib.sha256(b"simulated download\n").hexdigest()
        config = InstallerConfig(binary_sha256=f"sha256:{digest}")
        install_binary(host, config, Architecture.AMD64, ws, path_env="/usr/local/bin")
        assert host.ran("mv")

    def test_checksum_mismatch_is_fatal(self, tmp_path):
        host = SimulatedHost(tmp_path)
        ws = tmp_path / "ws"
        ws.mkdir()
        config = InstallerConfig(binary_sha256="0" * 64)
        with pytest.raises(FatalEnvironment, match="Checksum mismatch"):
            install_binary(host, config, Architecture.AMD64, ws, path_env="/usr/local/bin")
        assert not host.ran("install")

    def test_unknown_checksum_algorithm_is_fatal(self, tmp_path):
        host = SimulatedHost(tmp_path)
        ws = tmp_path / "ws"
        ws.mkdir()
        config = InstallerConfig(binary_sha256="md6:" + "0" * 64)
        with pytest.raises(FatalEnvironment, match="Unsupported checksum algorithm 'md6'"):
            install_binary(host, config, Architecture.AMD64, ws, path_env="/usr/local/bin")
        assert not host.ran("install")

    def test_download_failure_is_fatal(self, tmp_path):
        shell = MockShell()
        shell.set_failure(["curl"], "curl: (6) Could not resolve host: ollama.ai")
        with pytest.raises(FatalEnvironment, match="Could not resolve host"):
            install_binary(shell, InstallerConfig(), Architecture.AMD64, tmp_path)


# ── Service registrar ───────────────────────────────────────────


class TestServiceRegistrar:
    def test_unit_file(self):
        unit = render_unit(ServiceConfig(), Path("/usr/local/bin/ollama"), "/usr/bin:/bin")
        assert "ExecStart=/usr/local/bin/ollama serve\n" in unit
        assert "User=ollama\nGroup=ollama\n" in unit
        assert "Restart=always\nRestartSec=3\n" in unit
        assert 'Environment="PATH=/usr/bin:/bin"\n' in unit
        assert "After=network-online.target\n" in unit
        assert unit.endswith("WantedBy=default.target\n")

    def test_register(self, tmp_path):
        host = SimulatedHost(tmp_path, systemd=True)
        managed = register_service(host, host.config(), Path("/usr/bin/ollama"), path_env="/usr/bin")

        assert managed
        assert "ollama" in host.users
        assert host.ran("useradd", "-r", "-s", "/bin/false", "-m", "-d", "/usr/share/ollama", "ollama")
        assert (tmp_path / "systemd" / "ollama.service").is_file()
        assert host.index_of("systemctl", "daemon-reload") < host.index_of("systemctl", "enable")
        assert "ollama" in host.enabled_units

    def test_existing_user_not_recreated(self, tmp_path):
        host = SimulatedHost(tmp_path, systemd=True)
        host.users.add("ollama")
        register_service(host, host.config(), Path("/usr/bin/ollama"), path_env="/usr/bin")
        assert not host.ran("useradd")

    def test_no_systemctl(self, tmp_path):
        host = SimulatedHost(tmp_path)
        assert not register_service(host, host.config(), Path("/usr/bin/ollama"))
        assert host.call_log == []

    def test_offline_systemd_not_enabled(self, tmp_path):
        host = SimulatedHost(tmp_path, systemd=True)
        host.set_failure(["systemctl", "is-system-running"], "offline")
        assert not register_service(host, host.config(), Path("/usr/bin/ollama"), path_env="")
        assert not host.ran("systemctl", "enable")

    def test_degraded_systemd_is_managed(self, tmp_path):
        host = SimulatedHost(tmp_path, systemd=True)
        host.set_response(["systemctl", "is-system-running"], "degraded\n")
        assert register_service(host, host.config(), Path("/usr/bin/ollama"), path_env="")

    def test_wait_for_service_times_out(self):
        with patch("hostprov.core.services.install.service._health_ok", return_value=False):
            assert not wait_for_service(ServiceConfig(health_timeout=0))

    def test_wait_for_service_ok(self):
        with patch("hostprov.core.services.install.service._health_ok", return_value=True) as ok:
            assert wait_for_service(ServiceConfig())
        ok.assert_called_once_with("http://127.0.0.1:11434", "Ollama is running")


# ── Use case ────────────────────────────────────────────────────


class TestPreflight:
    def test_ok(self):
        preflight(MockShell(["curl", "tee", "install"]), system="Linux", machine="x86_64")

    def test_not_linux(self):
        with pytest.raises(FatalEnvironment, match="only supports Linux"):
            preflight(MockShell(["curl", "tee", "install"]), system="Darwin", machine="arm64")

    def test_no_privilege(self):
        with pytest.raises(FatalEnvironment, match="superuser"):
            preflight(MockShell(["curl", "tee", "install"], root=False), system="Linux", machine="x86_64")

    def test_missing_tools_listed(self):
        with pytest.raises(FatalEnvironment, match="missing: tee, install"):
            preflight(MockShell(["curl"]), system="Linux", machine="x86_64")


class TestRunInstall:
    def test_full_run(self, tmp_path):
        host = SimulatedHost(tmp_path, systemd=True)
        with patch("hostprov.core.use_cases.install.wait_for_service", return_value=True):
            result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="/usr/bin")

        assert result.exit_code == 0
        assert result.status == ProvisioningStatus.READY
        assert result.service_managed
        assert result.service_healthy
        assert host.ran("systemctl", "restart", "ollama")
        assert result.binary_path == tmp_path / "bin" / "ollama"
        assert not result.workspace.exists()

    def test_riscv64_fails_before_network(self, tmp_path):
        host = SimulatedHost(tmp_path, machine="riscv64")
        result = run_install(host.config(), host, system="Linux", machine="riscv64")

        assert result.exit_code == 1
        assert "Unsupported architecture: riscv64" in result.error
        assert not host.ran("curl")
        assert host.call_log == []

    def test_unknown_checksum_algorithm_exits_1(self, tmp_path):
        host = SimulatedHost(tmp_path)
        config = host.config(binary_sha256="md6:abc")
        result = run_install(config, host, system="Linux", machine="x86_64", path_env="/usr/bin")

        assert result.exit_code == 1
        assert result.error == "Unsupported checksum algorithm 'md6'"
        assert result.binary_path is None
        assert not result.workspace.exists()

    def test_driver_failure_keeps_binary(self, tmp_path):
        host = SimulatedHost(tmp_path, failing_packages=("cuda-drivers",))
        result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="")

        assert result.exit_code == 2
        assert result.status == ProvisioningStatus.FAILED
        assert result.binary_path is not None
        assert "No package cuda-drivers available." in result.report.error

    def test_reboot_required_exits_zero(self, tmp_path):
        host = SimulatedHost(tmp_path, modules=("nouveau",))
        result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="")
        assert result.status == ProvisioningStatus.REBOOT_REQUIRED
        assert result.exit_code == 0

    def test_cpu_only_exits_zero(self, tmp_path):
        host = SimulatedHost(tmp_path, gpu=False)
        result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="")
        assert result.status == ProvisioningStatus.CPU_ONLY
        assert result.exit_code == 0

    def test_workspace_removed_on_fatal_abort(self, tmp_path):
        host = SimulatedHost(tmp_path)
        host.set_failure(["curl"], "curl: (22) 404")
        result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="")

        assert result.exit_code == 1
        assert result.workspace is not None
        assert not result.workspace.exists()

    def test_unknown_distro_is_fatal_after_install(self, tmp_path):
        host = SimulatedHost(tmp_path, os_id="arch", version_id="")
        result = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="")
        assert result.exit_code == 1
        assert "unknown distribution" in result.error
        assert result.binary_path is not None

    def test_to_dict(self, tmp_path):
        host = SimulatedHost(tmp_path, gpu=False)
        data = run_install(host.config(), host, system="Linux", machine="x86_64", path_env="").to_dict()
        assert data["status"] == "cpu-only"
        assert data["exit_code"] == 0
        assert data["report"]["plan"] == "skip-no-gpu"
