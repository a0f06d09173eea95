"""
Error taxonomy for the task board.

None of these are fatal to the process:
  ValidationError         - bad input on add/sort, rejected before mutation
  CorruptSnapshot         - unparseable snapshot, board falls back to empty
  PersistenceWriteFailure - save failed, in-memory state stays authoritative

Unknown ids on delete/drag are resolved as silent no-ops and have no type here.
"""
from typing import Optional


class TaskBoardError(Exception):
    """Base class for task board errors."""
    pass


class ValidationError(TaskBoardError):
    """Raised when task input fails validation."""
    pass


class CorruptSnapshot(TaskBoardError):
    """Signals a persisted snapshot that could not be parsed.

    Returned by SnapshotAdapter.load() rather than raised.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Corrupt snapshot at {source}: {reason}")


class PersistenceWriteFailure(TaskBoardError):
    """Raised by an adapter when a snapshot cannot be written."""

    def __init__(self, target: str, reason: str, task_count: Optional[int] = None):
        self.target = target
        self.reason = reason
        self.task_count = task_count
        super().__init__(f"Failed to write snapshot to {target}: {reason}")

    def to_dict(self) -> dict:
        return {
            "error": "persistence_write_failure",
            "target": self.target,
            "reason": self.reason,
            "task_count": self.task_count,
        }
