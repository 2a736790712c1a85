"""
InstallerConfig — everything tunable about a run.

Defaults describe a stock install; an optional YAML file can
override any key (see ``hostprov.core.config.loader``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServiceConfig(BaseModel):
    """The long-running service the binary is registered as."""

    name: str = "ollama"
    description: str = "Ollama Service"
    user: str = "ollama"
    home: str = "/usr/share/ollama"
    exec_args: list[str] = Field(default_factory=lambda: ["serve"])
    restart: str = "always"
    restart_sec: int = 3
    health_url: str = "http://127.0.0.1:11434"
    health_expect: str = "Ollama is running"
    health_timeout: float = 10.0


class DriverConfig(BaseModel):
    """Where vendor drivers come from and what counts as compatible."""

    cuda_repo_base: str = "https://developer.download.nvidia.com/compute/cuda/repos"
    keyring_file: str = "cuda-keyring_1.1-1_all.deb"
    epel_url_template: str = (
        "https://dl.fedoraproject.org/pub/epel/epel-release-latest-{version}.noarch.rpm"
    )
    driver_package: str = "cuda-drivers"
    legacy_dkms_package: str = "nvidia-driver-latest-dkms"
    required_cuda_version: str = "11.3"
    vendor_module: str = "nvidia"
    conflicting_module: str = "nouveau"


class PathsConfig(BaseModel):
    """Host files the installer reads or rewrites."""

    os_release: str = "/etc/os-release"
    proc_modules: str = "/proc/modules"
    apt_sources_list: str = "/etc/apt/sources.list"
    apt_sources_dir: str = "/etc/apt/sources.list.d"
    systemd_unit_dir: str = "/etc/systemd/system"


class InstallerConfig(BaseModel):
    """Root configuration model."""

    binary_name: str = "ollama"
    download_url: str = "https://ollama.ai/download/ollama-linux-{arch}"
    binary_sha256: str | None = None
    bin_dirs: list[str] = Field(
        default_factory=lambda: ["/usr/local/bin", "/usr/bin", "/bin"],
    )
    command_timeout: int = 1800

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    drivers: DriverConfig = Field(default_factory=DriverConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
