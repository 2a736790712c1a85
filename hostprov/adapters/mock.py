"""
Mock shell — universal test double for host commands.

Simulates a host without touching it: a configurable set of binaries
on PATH, scripted responses per command prefix, and a log of every
command received.
"""

from __future__ import annotations

from pathlib import Path

from hostprov.adapters.base import CommandAdapter
from hostprov.core.models.action import Receipt


class MockShell(CommandAdapter):
    """Universal mock command adapter.

    By default every command succeeds with ``default_output``.
    Responses are matched on the longest configured command prefix,
    so ``("nvidia-smi",)`` covers every nvidia-smi invocation while
    ``("nvidia-smi", "--query-gpu=driver_version,name", ...)`` can
    override one of them.
    """

    def __init__(
        self,
        binaries: list[str] | tuple[str, ...] | set[str] = (),
        *,
        root: bool = True,
        default_output: str = "",
    ):
        self._binaries: set[str] = set(binaries)
        self._root = root
        self._default_output = default_output
        self._responses: dict[tuple[str, ...], Receipt] = {}
        self._call_log: list[list[str]] = []
        self._writes: dict[str, str] = {}

    @property
    def name(self) -> str:
        return "mock"

    @property
    def is_root(self) -> bool:
        return self._root

    @property
    def call_log(self) -> list[list[str]]:
        """Every command this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def writes(self) -> dict[str, str]:
        """Files written through ``write_file`` (path → content)."""
        return self._writes

    # ── Configuration ───────────────────────────────────────────

    def add_binary(self, *names: str) -> None:
        self._binaries.update(names)

    def remove_binary(self, *names: str) -> None:
        self._binaries.difference_update(names)

    def set_response(
        self,
        prefix: list[str] | tuple[str, ...],
        output: str = "",
    ) -> None:
        """Make commands starting with ``prefix`` succeed with ``output``."""
        key = tuple(prefix)
        self._responses[key] = Receipt.success(
            adapter=self.name, action_id=" ".join(key), output=output,
        )

    def set_failure(
        self,
        prefix: list[str] | tuple[str, ...],
        error: str = "Mock failure",
    ) -> None:
        """Make commands starting with ``prefix`` fail."""
        key = tuple(prefix)
        self._responses[key] = Receipt.failure(
            adapter=self.name, action_id=" ".join(key), error=error,
        )

    # ── Queries ─────────────────────────────────────────────────

    def commands_starting_with(self, *prefix: str) -> list[list[str]]:
        n = len(prefix)
        return [c for c in self._call_log if tuple(c[:n]) == prefix]

    def ran(self, *prefix: str) -> bool:
        return bool(self.commands_starting_with(*prefix))

    def index_of(self, *prefix: str) -> int:
        """Position of the first command matching ``prefix`` (-1 if never run)."""
        n = len(prefix)
        for i, c in enumerate(self._call_log):
            if tuple(c[:n]) == prefix:
                return i
        return -1

    # ── CommandAdapter ──────────────────────────────────────────

    def which(self, binary: str) -> str | None:
        return f"/usr/bin/{binary}" if binary in self._binaries else None

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
        self._call_log.append(list(cmd))
        action_id = action_id or " ".join(cmd)

        match = self._match(cmd)
        if match is not None:
            return match.model_copy(update={"action_id": action_id})
        return self._default_response(cmd, action_id, env_overrides)

    def _default_response(
        self,
        cmd: list[str],
        action_id: str,
        env_overrides: dict[str, str] | None,
    ) -> Receipt:
        """Response for commands without a scripted one. Subclasses
        simulate host behaviour here."""
        return Receipt.success(
            adapter=self.name,
            action_id=action_id,
            output=self._default_output,
            metadata={"mock": True, "env": env_overrides or {}},
        )

    def write_file(
        self,
        path: str | Path,
        content: str,
        *,
        needs_root: bool = True,
    ) -> Receipt:
        """Record the write without touching disk."""
        self._call_log.append(["write", str(path)])
        self._writes[str(path)] = content
        return Receipt.success(
            adapter=self.name, action_id=f"write:{path}", output=f"Wrote {path}",
        )

    def reset(self) -> None:
        """Clear call log, writes and custom responses."""
        self._call_log.clear()
        self._writes.clear()
        self._responses.clear()

    def _match(self, cmd: list[str]) -> Receipt | None:
        best: tuple[str, ...] | None = None
        for prefix in self._responses:
            if tuple(cmd[: len(prefix)]) == prefix:
                if best is None or len(prefix) > len(best):
                    best = prefix
        return self._responses[best] if best is not None else None
