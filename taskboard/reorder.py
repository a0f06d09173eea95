"""
Drag event reconciliation.

A drop is resolved against the master sequence in one of two ways:

  cross-column  - dropped on a card in another column, or on a bare column
                  placeholder: the card's status changes, its master position
                  does not. Placement inside the new column is left to the
                  created_at ordering of the view.
  intra-column  - dropped on a card in the same column: the card is relocated
                  from its master index to the target's master index (pop +
                  insert, every card in between shifts by one).

Anything unresolvable is a no-op, signalled by returning None.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

from .schema import TaskRecord, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DragEvent:
    """Abstract drop signal from the input-capture layer."""
    active_id: str
    over_id: Optional[str] = None  # card id, column id, or None (dropped outside)


def array_move(items: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """Return a copy with one element relocated; intervening elements shift."""
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def _index_of(tasks: Sequence[TaskRecord], task_id: str) -> int:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    return -1


def apply_drag(tasks: Sequence[TaskRecord], event: DragEvent) -> Optional[List[TaskRecord]]:
    """Resolve a drop into a new master sequence, or None if nothing changes.

    The input sequence is never mutated.
    """
    if event.over_id is None:
        logger.debug(f"Drop of {event.active_id} outside any target ignored")
        return None

    active_index = _index_of(tasks, event.active_id)
    if active_index < 0:
        logger.debug(f"Drag of unknown task {event.active_id} ignored")
        return None
    active = tasks[active_index]

    over_index = _index_of(tasks, event.over_id)
    if over_index >= 0:
        target_status = tasks[over_index].status
    elif TaskStatus.is_column(event.over_id):
        target_status = TaskStatus(event.over_id)
    else:
        logger.debug(f"Drop target {event.over_id} not found, ignored")
        return None

    if over_index < 0 or target_status != active.status:
        if target_status == active.status:
            # Bare drop on the card's own column
            return None
        moved = list(tasks)
        moved[active_index] = active.with_status(target_status)
        logger.debug(f"Task {active.id}: {active.status.value} → {target_status.value}")
        return moved

    if active_index == over_index:
        return None
    logger.debug(f"Task {active.id}: master index {active_index} → {over_index}")
    return array_move(tasks, active_index, over_index)
