"""
Adapter base — the contract between the installer and the host.

Detection, package managers, kernel-module tooling and collaborators
never call ``subprocess`` directly. They talk to a CommandAdapter,
which runs a command and hands back a Receipt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from hostprov.core.models.action import Receipt


class CommandAdapter(ABC):
    """Abstract base class for command execution.

    Adapters perform external side effects and return receipts.
    They NEVER raise for a failing command — failures are captured
    in the Receipt.

    To create a new adapter:
        1. Subclass CommandAdapter
        2. Implement name, is_root, which, run
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g. 'shell', 'mock')."""

    @property
    @abstractmethod
    def is_root(self) -> bool:
        """Whether commands already run with root privileges."""

    @abstractmethod
    def which(self, binary: str) -> str | None:
        """Resolve a binary on PATH. Should be fast and never raise."""

    @abstractmethod
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
        """Run a command and return a receipt.

        MUST never raise for command failures. Non-zero exit codes,
        timeouts and missing binaries all become failed receipts.
        """

    # ── Convenience helpers ─────────────────────────────────────

    def available(self, binary: str) -> bool:
        return self.which(binary) is not None

    def missing(self, binaries: list[str] | tuple[str, ...]) -> list[str]:
        """Return the binaries that are not on PATH, in input order."""
        return [b for b in binaries if not self.available(b)]

    def can_elevate(self) -> bool:
        """Root already, or sudo is there to get it."""
        return self.is_root or self.available("sudo")

    def write_file(
        self,
        path: str | Path,
        content: str,
        *,
        needs_root: bool = True,
    ) -> Receipt:
        """Write a file, going through ``tee`` when elevation is needed."""
        target = str(path)
        if self.is_root or not needs_root:
            try:
                Path(target).write_text(content, encoding="utf-8")
            except OSError as e:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=f"write:{target}",
                    error=f"Cannot write {target}: {e}",
                )
            return Receipt.success(
                adapter=self.name,
                action_id=f"write:{target}",
                output=f"Wrote {target}",
            )

        return self.run(
            ["tee", target],
            needs_root=True,
            input_text=content,
            action_id=f"write:{target}",
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
