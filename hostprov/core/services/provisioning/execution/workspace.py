"""
L4 Execution — run-scoped scratch directory.

One workspace per run, removed on every exit path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class RunWorkspace:
    """Temporary directory for downloads, deleted when the run ends.

    Usage::

        with RunWorkspace() as ws:
            target = ws.path / "binary"
    """

    def __init__(self, prefix: str = "hostprov-"):
        self._prefix = prefix
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("RunWorkspace used outside its context")
        return self._path

    def __enter__(self) -> RunWorkspace:
        self._path = Path(tempfile.mkdtemp(prefix=self._prefix))
        logger.debug("Workspace created: %s", self._path)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._path is not None:
            shutil.rmtree(self._path, ignore_errors=True)
            logger.debug("Workspace removed: %s", self._path)
            self._path = None
