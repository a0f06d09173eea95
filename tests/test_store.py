"""
Tests for BoardStore: add/delete, drag handling, views, hydration,
persistence triggering and change notifications.
"""
import pytest

from taskboard.errors import CorruptSnapshot, ValidationError
from taskboard.persistence import MemoryAdapter, encode_snapshot
from taskboard.saver import SnapshotSaver
from taskboard.schema import SortOrder, TaskStatus
from taskboard.store import BoardStore

from conftest import make_task


def seeded_store(tasks):
    adapter = MemoryAdapter(encode_snapshot(tasks))
    return BoardStore(adapter, saver=SnapshotSaver(adapter, background=False))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Add / delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.parametrize("status", ["todo", "in-progress", "done"])
def test_add_task_appears_once_in_its_column(store, status):
    """Test a new task shows up exactly once in its column"""
    existing = store.add_task("Existing", "", status)
    task = store.add_task("New task", "details", status)

    view = store.get_column_view(status)
    matching = [t for t in view.tasks if t.id == task.id]
    assert len(matching) == 1
    assert matching[0].title == "New task"
    assert matching[0].description == "details"
    assert matching[0].status == TaskStatus(status)
    assert task.id != existing.id


def test_add_task_validation_leaves_board_unchanged(store, adapter):
    """Test rejected input does not touch the board or storage"""
    store.add_task("Keep me")
    writes = adapter.writes
    with pytest.raises(ValidationError):
        store.add_task("   ")
    with pytest.raises(ValidationError):
        store.add_task("Bad status", status="archived")
    assert len(store) == 1
    assert adapter.writes == writes


def test_add_task_persists_snapshot(store, adapter):
    """Test adding a task writes a snapshot"""
    task = store.add_task("Persist me")
    assert adapter.load()[0] == [task]


def test_delete_task(store):
    """Test deleting a task by id"""
    task = store.add_task("Doomed")
    keep = store.add_task("Survivor")
    assert store.delete_task(task.id) is True
    assert store.tasks == [keep]


def test_delete_twice_is_idempotent(store, adapter):
    """Test a second delete of the same id changes nothing"""
    task = store.add_task("Doomed")
    store.add_task("Survivor")
    store.delete_task(task.id)
    state_after_first = store.tasks
    writes = adapter.writes

    assert store.delete_task(task.id) is False
    assert store.tasks == state_after_first
    assert adapter.writes == writes


def test_delete_unknown_is_noop(store, adapter):
    """Test deleting an unknown id skips the write"""
    store.add_task("Only")
    writes = adapter.writes
    assert store.delete_task("ghost") is False
    assert adapter.writes == writes


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drag handling
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_intra_column_reorder():
    """Test dropping on a same-column card relocates it"""
    store = seeded_store([
        make_task("A", "A", ts=1),
        make_task("X", "X", TaskStatus.IN_PROGRESS, ts=2),
        make_task("B", "B", ts=3),
        make_task("Y", "Y", TaskStatus.DONE, ts=4),
        make_task("C", "C", ts=5),
    ])
    doing_before = store.column_order("in-progress")
    done_before = store.column_order("done")

    assert store.apply_drag("A", "C") is True
    assert [t.id for t in store.column_order("todo")] == ["B", "C", "A"]
    assert store.column_order("in-progress") == doing_before
    assert store.column_order("done") == done_before


def test_reorder_visible_through_timestamp_ties():
    """Test manual order survives sorting when timestamps tie"""
    store = seeded_store([make_task(i, i, ts=7) for i in ("A", "B", "C")])
    store.apply_drag("A", "C")
    assert [t.id for t in store.get_column_view("todo").tasks] == ["B", "C", "A"]


def test_cross_column_move(store):
    """Test dropping on a column header moves the task there"""
    a = store.add_task("A")
    store.add_task("B")
    assert store.apply_drag(a.id, "done") is True
    assert store.get_task(a.id).status == TaskStatus.DONE
    assert a.id not in [t.id for t in store.get_column_view("todo").tasks]
    assert a.id in [t.id for t in store.get_column_view("done").tasks]


def test_cross_column_move_onto_card(store):
    """Test dropping on a card in another column adopts its status only"""
    a = store.add_task("A")
    b = store.add_task("B", status="in-progress")
    store.apply_drag(a.id, b.id)
    assert store.get_task(a.id).status == TaskStatus.IN_PROGRESS
    assert [t.id for t in store.tasks] == [a.id, b.id]


@pytest.mark.parametrize("active, over", [
    ("ghost", "A"),
    ("A", None),
    ("A", "nowhere"),
    ("A", "A"),
    ("A", "todo"),
])
def test_drag_noops_leave_state_and_storage_untouched(active, over):
    """Test drags that resolve to nothing leave state and storage alone"""
    adapter = MemoryAdapter(encode_snapshot([make_task("A", "A", ts=1), make_task("B", "B", ts=2)]))
    store = BoardStore(adapter, saver=SnapshotSaver(adapter, background=False))
    before_text = adapter.text
    before = store.tasks

    assert store.apply_drag(active, over) is False
    assert store.tasks == before
    assert adapter.text == before_text
    assert adapter.writes == 0


def test_drag_persists(store, adapter):
    """Test a drag writes the new status"""
    a = store.add_task("A")
    store.apply_drag(a.id, "in-progress")
    saved, _ = adapter.load()
    assert saved[0].status == TaskStatus.IN_PROGRESS


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Views
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_search_and_sort():
    """Test search text and sort order drive the column view"""
    store = seeded_store([make_task("1", "Alpha", ts=1), make_task("2", "beta", ts=2)])

    store.set_search("AL")
    assert [t.title for t in store.get_column_view("todo").tasks] == ["Alpha"]

    store.set_search("")
    store.set_sort_order("recent")
    assert [t.title for t in store.get_column_view("todo").tasks] == ["beta", "Alpha"]

    store.set_sort_order(SortOrder.OLDEST)
    assert [t.title for t in store.get_column_view("todo").tasks] == ["Alpha", "beta"]


def test_set_sort_order_rejects_unknown(store):
    """Test unknown sort orders are rejected"""
    with pytest.raises(ValidationError):
        store.set_sort_order("priority")
    assert store.sort_order == SortOrder.RECENT


def test_board_view_and_counts(store):
    """Test board view respects search while counts do not"""
    store.add_task("A")
    store.add_task("B", status="done")
    store.set_search("zzz")

    views = store.get_board_view()
    assert [v.count for v in views] == [0, 0, 0]
    assert all(v.is_empty for v in views)
    # counts() ignores the search filter
    assert store.counts() == {"todo": 1, "in-progress": 0, "done": 1}
    assert str(store) == "todo: 1 tasks, in-progress: 0 tasks, done: 1 tasks"


def test_get_task_unknown(store):
    """Test lookup of a missing id"""
    assert store.get_task("ghost") is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Hydration and persistence failures
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_hydrates_from_snapshot():
    """Test the store starts from the saved snapshot"""
    tasks = [make_task("1", "One", ts=1), make_task("2", "Two", TaskStatus.DONE, ts=2)]
    store = seeded_store(tasks)
    assert store.tasks == tasks
    assert store.load_error is None


def test_corrupt_snapshot_starts_empty_and_usable():
    """Test a corrupt snapshot yields an empty but working board"""
    adapter = MemoryAdapter("{broken")
    store = BoardStore(adapter, saver=SnapshotSaver(adapter, background=False))
    assert isinstance(store.load_error, CorruptSnapshot)
    assert store.tasks == []

    task = store.add_task("Fresh start")
    assert adapter.load()[0] == [task]


class FailingAdapter(MemoryAdapter):
    def __init__(self):
        super().__init__()
        self.fail = True

    def _write(self, text):
        if self.fail:
            raise OSError("read-only filesystem")
        super()._write(text)


def test_failed_save_keeps_memory_authoritative():
    """Test in-memory state wins when a save fails"""
    adapter = FailingAdapter()
    saver = SnapshotSaver(adapter, background=False)
    store = BoardStore(adapter, saver=saver)

    first = store.add_task("Unsaved")
    assert store.tasks == [first]
    assert saver.failures == 1
    assert adapter.text is None

    # Storage recovers: the next mutation writes the full state
    adapter.fail = False
    second = store.add_task("Saved")
    assert adapter.load()[0] == [first, second]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Notifications
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_notifications(store):
    """Test subscribers see every mutation in order"""
    seen = []
    store.subscribe("task_added", lambda task: seen.append(("added", task.id)))
    store.subscribe("task_moved", lambda task, from_status: seen.append(("moved", from_status.value)))
    store.subscribe("task_reordered", lambda task, over_id: seen.append(("reordered", over_id)))
    store.subscribe("task_deleted", lambda task_id: seen.append(("deleted", task_id)))

    a = store.add_task("A")
    b = store.add_task("B")
    store.apply_drag(a.id, b.id)
    store.apply_drag(a.id, "done")
    store.delete_task(b.id)

    assert seen == [
        ("added", a.id),
        ("added", b.id),
        ("reordered", b.id),
        ("moved", "todo"),
        ("deleted", b.id),
    ]


def test_failing_callback_does_not_break_mutation(store):
    """Test a raising subscriber does not undo the change"""
    def boom(**kwargs):
        raise RuntimeError("renderer crashed")

    store.subscribe("task_added", boom)
    task = store.add_task("Still added")
    assert store.get_task(task.id) == task


def test_subscribe_unknown_event(store):
    """Test subscribing to an unknown event type"""
    with pytest.raises(ValueError):
        store.subscribe("task_archived", print)


@pytest.mark.parametrize("background", [False, True])
def test_unencodable_task_is_rejected_before_mutation(background):
    """Text with a lone surrogate is a ValidationError; nothing is committed or saved"""
    adapter = MemoryAdapter()
    saver = SnapshotSaver(adapter, background=background)
    store = BoardStore(adapter, saver=saver)
    added = []
    store.subscribe("task_added", lambda task: added.append(task))

    with pytest.raises(ValidationError):
        store.add_task("bad \ud800 title")
    with pytest.raises(ValidationError):
        store.add_task("fine title", "bad \udfff description")

    assert store.tasks == []
    assert added == []
    assert store.flush(5)
    assert adapter.writes == 0
    assert saver.failures == 0

    # The board keeps working afterwards
    task = store.add_task("Good task")
    assert store.flush(5)
    store.close()
    assert adapter.load()[0] == [task]
