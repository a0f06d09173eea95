"""Shared test fixtures for the task board tests."""

from datetime import datetime, timezone

import pytest

from taskboard.persistence import MemoryAdapter
from taskboard.saver import SnapshotSaver
from taskboard.schema import TaskRecord, TaskStatus
from taskboard.store import BoardStore


def make_task(task_id, title, status=TaskStatus.TODO, ts=1, description=""):
    """Build a record with a fixed id and a created_at of `ts` seconds past epoch."""
    return TaskRecord(
        id=task_id,
        title=title,
        description=description,
        status=status,
        created_at=datetime.fromtimestamp(ts, tz=timezone.utc),
    )


@pytest.fixture
def adapter():
    return MemoryAdapter()


@pytest.fixture
def store(adapter):
    """Empty board with inline (synchronous) saves."""
    return BoardStore(adapter, saver=SnapshotSaver(adapter, background=False))
