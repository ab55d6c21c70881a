"""
Scoped temporary storage for a single pipeline run.

Every run gets its own directory (``mkdtemp`` under ``TMP_DIR``), so two
concurrent runs for the same recording never share files. Leaving the
``acquire`` block removes the directory whatever happened inside it,
including a worker time limit firing mid-run.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from app.settings import settings

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(self, root: Path):
        self.root = root
        self._files: set[Path] = set()

    def path(self, name: str) -> Path:
        """Return a path inside the workspace and track it for cleanup."""
        p = self.root / Path(name).name
        self._files.add(p)
        return p

    def adopt(self, path: Path) -> Path:
        """Track a file some external tool created inside the workspace."""
        path = Path(path)
        if path.resolve().parent != self.root.resolve():
            raise ValueError(f"{path} is outside workspace {self.root}")
        self._files.add(path)
        return path

    def discard(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)
        self._files.discard(Path(path))

    def cleanup(self) -> None:
        for p in list(self._files):
            p.unlink(missing_ok=True)
        self._files.clear()
        shutil.rmtree(self.root, ignore_errors=True)


@contextmanager
def acquire(run_id: str, base_dir: Path | None = None) -> Iterator[Workspace]:
    base = Path(base_dir or settings.TMP_DIR)
    base.mkdir(parents=True, exist_ok=True)
    ws = Workspace(Path(tempfile.mkdtemp(prefix=f"{run_id}-", dir=base)))
    logger.debug("workspace %s acquired for %s", ws.root, run_id)
    try:
        yield ws
    finally:
        ws.cleanup()
        logger.debug("workspace %s released", ws.root)
