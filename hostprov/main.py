"""
hostprov — CLI entrypoint.

Usage:
    hostprov-install
    python -m hostprov.main

Environment:
    HOSTPROV_CONFIG          path to install.yml
    HOSTPROV_LOG_LEVEL       console log level (default INFO)
    HOSTPROV_LOG_FILE        optional log file
    HOSTPROV_LOG_FILE_LEVEL  log file level
"""

from __future__ import annotations

import logging
import sys

import click

from hostprov.core.config.loader import ConfigError, load_config
from hostprov.core.models.plan import ProvisioningStatus
from hostprov.core.observability.logging_config import setup_logging_from_env
from hostprov.core.use_cases.install import EXIT_FATAL, InstallResult, run_install

logger = logging.getLogger(__name__)

_STATUS_STYLE: dict[ProvisioningStatus, tuple[str, str]] = {
    ProvisioningStatus.READY: ("✅", "green"),
    ProvisioningStatus.REBOOT_REQUIRED: ("🔄", "yellow"),
    ProvisioningStatus.CPU_ONLY: ("💻", "cyan"),
    ProvisioningStatus.DRIVER_SKIPPED: ("⏭️ ", "yellow"),
    ProvisioningStatus.FAILED: ("❌", "red"),
}


def _print_result(result: InstallResult) -> None:
    click.echo()
    if result.binary_path:
        click.echo(f"   📦 Installed {result.binary_path}")
    if result.service_managed:
        health = "available" if result.service_healthy else "not answering yet"
        click.echo(f"   ⚙️  Service managed by systemd ({health})")

    report = result.report
    if report and report.gpu:
        gpu = report.gpu
        click.echo(f"   🖥️  GPU: {gpu.status}", nl=False)
        if gpu.driver_version:
            click.echo(f" (driver {gpu.driver_version}, CUDA {gpu.cuda_version or '?'})", nl=False)
        click.echo()
    if report and report.plan:
        click.echo(f"   📋 Plan: {report.plan}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    icon, color = _STATUS_STYLE[result.status]
    click.secho(f"{icon} {result.status}", fg=color, bold=True)
    if result.error:
        click.echo(f"   {result.error}")
    elif report and report.error:
        click.echo(f"   {report.error}")
    if result.status == ProvisioningStatus.REBOOT_REQUIRED:
        click.echo("   Reboot to complete the NVIDIA driver install.")


@click.command()
def cli() -> None:
    """Install the service binary and provision NVIDIA GPU drivers."""
    setup_logging_from_env()

    try:
        config = load_config()
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(EXIT_FATAL)

    try:
        result = run_install(config)
    except Exception as e:
        logger.exception("Unexpected error during install")
        click.secho(f"❌ Unexpected error: {e}", fg="red")
        sys.exit(EXIT_FATAL)

    _print_result(result)
    sys.exit(result.exit_code)


if __name__ == "__main__":
    cli()
