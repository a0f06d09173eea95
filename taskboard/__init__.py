# Task board state engine: columns, drag reordering, filtered views
#
# Components:
#   schema.py      - Data model (TaskRecord, TaskStatus, SortOrder)
#   errors.py      - Error taxonomy
#   persistence.py - Snapshot adapters (JSON file, SQLite, memory)
#   pipeline.py    - Filter/sort projection for column views
#   reorder.py     - Drag event reconciliation
#   saver.py       - Background coalescing snapshot writer
#   reporting.py   - Persistence failure reporting
#   config.py      - YAML configuration and logging setup
#   store.py       - BoardStore orchestration

from .schema import TaskRecord, TaskStatus, SortOrder
from .errors import TaskBoardError, ValidationError, CorruptSnapshot, PersistenceWriteFailure
from .reorder import DragEvent, apply_drag
from .pipeline import ColumnView, filter_tasks, column_view, board_view
from .store import BoardStore

__all__ = [
    "TaskRecord",
    "TaskStatus",
    "SortOrder",
    "TaskBoardError",
    "ValidationError",
    "CorruptSnapshot",
    "PersistenceWriteFailure",
    "DragEvent",
    "apply_drag",
    "ColumnView",
    "filter_tasks",
    "column_view",
    "board_view",
    "BoardStore",
]
