"""
L0 Data — fixed names the provisioning engine matches against.

Anything an operator may want to change lives in ``InstallerConfig``;
these are facts about the tools themselves.
"""

from __future__ import annotations

from hostprov.core.models.host import Architecture, PackageManager

# uname -m → release architecture
ARCH_MAP: dict[str, Architecture] = {
    "x86_64": Architecture.AMD64,
    "amd64": Architecture.AMD64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
}

# Detection order matters: dnf hosts usually ship a yum shim too.
PACKAGE_MANAGER_BINARIES: list[tuple[PackageManager, str]] = [
    (PackageManager.DNF, "dnf"),
    (PackageManager.YUM, "yum"),
    (PackageManager.APT, "apt-get"),
]

NVIDIA_PCI_VENDOR = "10de"
NVIDIA_SMI = "nvidia-smi"
NVIDIA_SMI_QUERY = [
    NVIDIA_SMI,
    "--query-gpu=driver_version,name",
    "--format=csv,noheader,nounits",
]

# Tools whose absence makes GPU presence unknowable.
SCAN_TOOLS = ("lspci", "lshw")

# os-release IDs → header packages, keyed by pattern. ``{r}`` is the
# running kernel release.
KERNEL_HEADER_PACKAGES: dict[str, list[str]] = {
    "centos": ["kernel-devel-{r}", "kernel-headers-{r}"],
    "rhel": ["kernel-devel-{r}", "kernel-headers-{r}"],
    "rocky": ["kernel-devel-{r}", "kernel-headers-{r}"],
    "amzn": ["kernel-devel-{r}", "kernel-headers-{r}"],
    "fedora": ["kernel-devel-{r}"],
    "debian": ["linux-headers-{r}"],
    "ubuntu": ["linux-headers-{r}"],
}
