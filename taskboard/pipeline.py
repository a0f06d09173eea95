"""
Filter/sort projection for column views.

Pure functions over the master sequence. Nothing here caches or mutates, so a
view can be recomputed at any point between mutations.
"""
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .schema import COLUMNS, SortOrder, TaskRecord, TaskStatus


@dataclass(frozen=True)
class ColumnView:
    """Ordered, filtered tasks of one column, ready for rendering."""
    column: TaskStatus
    tasks: Tuple[TaskRecord, ...]

    @property
    def count(self) -> int:
        return len(self.tasks)

    @property
    def is_empty(self) -> bool:
        # Presentation layer renders a "no tasks" placeholder for this
        return not self.tasks


def filter_tasks(
    tasks: Sequence[TaskRecord],
    column: Union[str, TaskStatus],
    search_text: str = "",
    sort_order: Union[str, SortOrder] = SortOrder.RECENT,
) -> List[TaskRecord]:
    """Select one column, apply the text search, sort by creation time.

    Ties on created_at keep master-sequence order (sorted() is stable, and
    reverse=True preserves the original order of equal keys).
    """
    column = TaskStatus.parse(column)
    sort_order = SortOrder.parse(sort_order)
    needle = search_text or ""

    selected = [t for t in tasks if t.status == column and t.matches(needle)]
    return sorted(
        selected,
        key=lambda t: t.created_at,
        reverse=sort_order == SortOrder.RECENT,
    )


def column_view(
    tasks: Sequence[TaskRecord],
    column: Union[str, TaskStatus],
    search_text: str = "",
    sort_order: Union[str, SortOrder] = SortOrder.RECENT,
) -> ColumnView:
    column = TaskStatus.parse(column)
    return ColumnView(column, tuple(filter_tasks(tasks, column, search_text, sort_order)))


def board_view(
    tasks: Sequence[TaskRecord],
    search_text: str = "",
    sort_order: Union[str, SortOrder] = SortOrder.RECENT,
) -> List[ColumnView]:
    """One view per column, in display order."""
    return [column_view(tasks, c, search_text, sort_order) for c in COLUMNS]
