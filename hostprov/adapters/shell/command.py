"""
Shell command adapter — the SINGLE PLACE where ``subprocess.run`` is called.

All privilege elevation, logging and error handling for host
commands is centralised here.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from hostprov.adapters.base import CommandAdapter
from hostprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Longest output echoed to the debug log; receipts keep everything
_LOG_TAIL = 2000


class ShellCommandAdapter(CommandAdapter):
    """Execute host commands and capture their output.

    Commands needing root are prefixed with ``sudo`` when the process
    is not already root (``sudo -E`` when env overrides must survive).
    """

    @property
    def name(self) -> str:
        return "shell"

    @property
    def is_root(self) -> bool:
        return os.geteuid() == 0

    def which(self, binary: str) -> str | None:
        return shutil.which(binary)

    def run(
        self,
        cmd: list[str],
        *,
        needs_root: bool = False,
        env_overrides: dict[str, str] | None = None,
        timeout: int = 120,
        input_text: str | None = None,
        action_id: str | None = None,
    ) -> Receipt:
        action_id = action_id or " ".join(cmd)

        # ── Privilege elevation ──
        if needs_root and not self.is_root:
            cmd = (["sudo", "-E"] if env_overrides else ["sudo"]) + cmd

        # ── Environment ──
        env = os.environ.copy()
        if env_overrides:
            env.update(env_overrides)

        logger.debug("Executing: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input_text,
                env=env,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": cmd, "timeout": timeout},
            )
        except FileNotFoundError:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Command not found: {cmd[0]}",
                metadata={"command": cmd},
            )
        except OSError as e:
            logger.exception("Subprocess error: %s", cmd)
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Command execution error: {e}",
                metadata={"command": cmd},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "").strip()
        stderr = (result.stderr or "").strip()
        logger.debug(
            "Exit %d after %dms: %s", result.returncode, elapsed_ms,
            (stderr or stdout)[-_LOG_TAIL:],
        )

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action_id,
                output=stdout,
                duration_ms=elapsed_ms,
                metadata={
                    "command": cmd,
                    "return_code": 0,
                    "stderr": stderr,
                },
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=action_id,
            error=stderr or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={
                "command": cmd,
                "return_code": result.returncode,
                "stdout": stdout,
            },
        )
