"""
Background snapshot writer.

Mutations hand the saver the full master sequence and return immediately.
A daemon worker writes whatever snapshot is newest when it gets to run;
snapshots requested while a write is in flight collapse into one
(last-write-wins). A failed write is reported and dropped: the next request
carries the full current state anyway.
"""
import logging
import threading
from typing import List, Optional, Sequence

from .errors import PersistenceWriteFailure
from .persistence import SnapshotAdapter
from .reporting import FailureReporter, LoggingReporter
from .schema import TaskRecord

logger = logging.getLogger(__name__)


class SnapshotSaver:
    """Coalescing fire-and-forget writer in front of a SnapshotAdapter."""

    def __init__(
        self,
        adapter: SnapshotAdapter,
        reporter: Optional[FailureReporter] = None,
        background: bool = True,
    ):
        self.adapter = adapter
        self.reporter = reporter or LoggingReporter()
        self.background = background
        self.writes = 0
        self.failures = 0
        self.last_failure: Optional[PersistenceWriteFailure] = None

        self._cond = threading.Condition()
        self._pending: Optional[List[TaskRecord]] = None
        self._writing = False
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    # ── Public API ──────────────────────────────────────────────────────────

    def request(self, tasks: Sequence[TaskRecord]) -> None:
        """Queue a snapshot of tasks for writing. Never blocks on I/O."""
        snapshot = list(tasks)
        if not self.background:
            self._write(snapshot)
            return
        with self._cond:
            if self._closed:
                logger.warning("Save requested after saver was closed; writing inline")
            else:
                if self._pending is not None:
                    logger.debug("Coalescing superseded snapshot")
                self._pending = snapshot
                self._ensure_worker()
                self._cond.notify_all()
                return
        self._write(snapshot)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until no snapshot is pending or in flight. False on timeout."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._pending is None and not self._writing,
                timeout=timeout,
            )

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Flush outstanding work and stop the worker."""
        self.flush(timeout)
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    # ── Worker ──────────────────────────────────────────────────────────────

    def _ensure_worker(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run, name="taskboard-saver", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending is not None or self._closed)
                if self._pending is None:
                    return  # closed and drained
                snapshot = self._pending
                self._pending = None
                self._writing = True
            try:
                self._write(snapshot)
            finally:
                with self._cond:
                    self._writing = False
                    self._cond.notify_all()

    def _write(self, snapshot: List[TaskRecord]) -> bool:
        try:
            self.adapter.save(snapshot)
        except PersistenceWriteFailure as failure:
            self.failures += 1
            self.last_failure = failure
            logger.error(f"{failure} (in-memory board is still authoritative)")
            self.reporter.report(failure)
            return False
        self.writes += 1
        return True
