"""
Receipt model — the execution contract.

Every external step (package install, repo registration, modprobe, ...)
returns a Receipt. Adapters NEVER raise for command failures; the
outcome is captured here and the engine decides what is fatal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "skipped", "failed"]


class Receipt(BaseModel):
    """Result of one external step.

    ``action_id`` names the step (by default the command line).
    Skipped steps keep their reason in ``output``.
    """

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"
    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def warning(self) -> bool:
        """A skipped step the operator should hear about."""
        return self.status == "skipped" and bool(self.metadata.get("warning"))

    # ── Constructors ────────────────────────────────────────────

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
