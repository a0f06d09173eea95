"""
BoardStore: the single owner of a board's master sequence.

Mutations (add, delete, drag) run under one lock, build a new list and swap
it in, then hand the result to the SnapshotSaver. Reads grab the current list
reference and project it through the filter/sort pipeline, so they never see
a half-applied mutation.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Union

from .config import BoardConfig, build_adapter
from .errors import CorruptSnapshot
from .persistence import SnapshotAdapter
from .pipeline import ColumnView, board_view, column_view
from .reorder import DragEvent, apply_drag
from .reporting import FailureReporter, build_reporter
from .saver import SnapshotSaver
from .schema import COLUMNS, SortOrder, TaskRecord, TaskStatus

logger = logging.getLogger(__name__)

EVENT_TYPES = ("task_added", "task_deleted", "task_moved", "task_reordered", "view_changed")


class BoardStore:
    """Orchestrates the board: state, drag engine, persistence and views."""

    def __init__(
        self,
        adapter: SnapshotAdapter,
        saver: Optional[SnapshotSaver] = None,
        reporter: Optional[FailureReporter] = None,
        sort_order: Union[str, SortOrder] = SortOrder.RECENT,
    ):
        self.adapter = adapter
        self.saver = saver or SnapshotSaver(adapter, reporter=reporter)
        self.subscribers: Dict[str, list] = {}  # event_type -> list of callbacks
        self._lock = threading.RLock()
        self._search = ""
        self._sort_order = SortOrder.parse(sort_order)

        # Hydrate; a corrupt snapshot leaves an empty board
        tasks, corrupt = adapter.load()
        self._tasks: List[TaskRecord] = tasks
        self.load_error: Optional[CorruptSnapshot] = corrupt

    @classmethod
    def from_config(cls, cfg: Optional[BoardConfig] = None) -> "BoardStore":
        cfg = cfg or BoardConfig.load()
        adapter = build_adapter(cfg)
        reporter = build_reporter(cfg.failure_webhook_url, board=cfg.board_key)
        saver = SnapshotSaver(adapter, reporter=reporter, background=cfg.background_saves)
        return cls(adapter, saver=saver, sort_order=cfg.default_sort_order)

    # ── Notifications ───────────────────────────────────────────────────────

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        self.subscribers.setdefault(event_type, []).append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")

    # ── Mutations ───────────────────────────────────────────────────────────

    def _commit(self, tasks: List[TaskRecord]) -> None:
        """Swap in a new master sequence and queue it for saving. Lock held."""
        self._tasks = tasks
        self.saver.request(tasks)

    def add_task(
        self,
        title: str,
        description: str = "",
        status: Union[str, TaskStatus] = TaskStatus.TODO,
    ) -> TaskRecord:
        """Append a new task. Raises ValidationError before any change."""
        task = TaskRecord.create(title, description, status)
        with self._lock:
            self._commit(self._tasks + [task])
        logger.info(f"Task added: {task.id} ({task.status.value}) {task.title!r}")
        self._emit("task_added", task=task)
        return task

    def delete_task(self, task_id: str) -> bool:
        """Remove a task. Unknown ids are a no-op and return False."""
        with self._lock:
            remaining = [t for t in self._tasks if t.id != task_id]
            if len(remaining) == len(self._tasks):
                logger.debug(f"Delete of unknown task {task_id} ignored")
                return False
            self._commit(remaining)
        logger.info(f"Task deleted: {task_id}")
        self._emit("task_deleted", task_id=task_id)
        return True

    def apply_drag(self, active_id: str, over_id: Optional[str]) -> bool:
        """Apply a drop gesture. Returns False when it resolved to a no-op."""
        event = DragEvent(active_id, over_id)
        with self._lock:
            before = self._find(active_id)
            updated = apply_drag(self._tasks, event)
            if updated is None:
                return False
            self._commit(updated)
            after = self._find(active_id)

        if after.status != before.status:
            logger.info(f"Task moved: {active_id} {before.status.value} → {after.status.value}")
            self._emit("task_moved", task=after, from_status=before.status)
        else:
            self._emit("task_reordered", task=after, over_id=over_id)
        return True

    # ── View settings ───────────────────────────────────────────────────────

    def set_search(self, text: str) -> None:
        self._search = text or ""
        self._emit("view_changed", search=self._search, sort_order=self._sort_order)

    def set_sort_order(self, order: Union[str, SortOrder]) -> None:
        self._sort_order = SortOrder.parse(order)
        self._emit("view_changed", search=self._search, sort_order=self._sort_order)

    @property
    def search(self) -> str:
        return self._search

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    # ── Reads ───────────────────────────────────────────────────────────────

    @property
    def tasks(self) -> List[TaskRecord]:
        """Copy of the master sequence."""
        with self._lock:
            return list(self._tasks)

    def _find(self, task_id: str) -> Optional[TaskRecord]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get_task(self, task_id: str) -> Optional[TaskRecord]:
        """Task details by id, or None."""
        with self._lock:
            return self._find(task_id)

    def get_column_view(self, column: Union[str, TaskStatus]) -> ColumnView:
        with self._lock:
            tasks = self._tasks
        return column_view(tasks, column, self._search, self._sort_order)

    def get_board_view(self) -> List[ColumnView]:
        with self._lock:
            tasks = self._tasks
        return board_view(tasks, self._search, self._sort_order)

    def column_order(self, column: Union[str, TaskStatus]) -> List[TaskRecord]:
        """Unfiltered tasks of a column in master-sequence order."""
        column = TaskStatus.parse(column)
        with self._lock:
            return [t for t in self._tasks if t.status == column]

    def counts(self) -> Dict[str, int]:
        """Unfiltered per-column totals."""
        with self._lock:
            tasks = self._tasks
        totals = {c.value: 0 for c in COLUMNS}
        for task in tasks:
            totals[task.status.value] += 1
        return totals

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def flush(self, timeout: Optional[float] = None) -> bool:
        return self.saver.flush(timeout)

    def close(self) -> None:
        self.saver.close()

    def __enter__(self) -> "BoardStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __str__(self) -> str:
        totals = self.counts()
        return ", ".join(f"{k}: {v} tasks" for k, v in totals.items())

    def __len__(self) -> int:
        return len(self._tasks)
