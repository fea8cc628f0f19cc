"""Single-writer lock for a graph directory.

A load -> add -> save cycle reads and rewrites .flow/graph.loro and the journal
files without merging against concurrent writers, so only one process may run
it at a time:

    with GraphLock(root):
        graph = GraphSession.load(root)
        graph.add("ship it")

The lock is an flock(LOCK_EX | LOCK_NB) on .flow/lock. A second writer fails
immediately with GraphLockedError. The file keeps the owner's PID for
diagnostics and is never removed (unlinking a held lock file races with the
next opener).
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import os
from pathlib import Path
from typing import IO

from flow.errors import GraphIOError, GraphLockedError, GraphNotFoundError
from flow.models import FLOW_DIR, LOCK_FILE

logger = logging.getLogger("flow.lock")


class GraphLock:
    """Exclusive, non-blocking writer lock on one graph root."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.path = self.root / FLOW_DIR / LOCK_FILE
        self._fh: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def acquire(self) -> None:
        if self._fh is not None:
            return
        if not self.path.parent.is_dir():
            raise GraphNotFoundError(self.root, "no .flow directory")
        try:
            fh = self.path.open("a+")
        except OSError as exc:
            raise GraphIOError(self.path, exc) from exc
        try:
            fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            fh.seek(0)
            owner = fh.read().strip()
            fh.close()
            raise GraphLockedError(self.root, owner) from exc
        except OSError as exc:
            fh.close()
            raise GraphIOError(self.path, exc) from exc
        fh.seek(0)
        fh.truncate()
        fh.write(f"{os.getpid()}\n")
        fh.flush()
        self._fh = fh
        logger.debug("lock acquired: %s", self.path)

    def release(self) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        with contextlib.suppress(OSError):
            fcntl.flock(fh, fcntl.LOCK_UN)
        fh.close()
        logger.debug("lock released: %s", self.path)

    def __enter__(self) -> GraphLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
