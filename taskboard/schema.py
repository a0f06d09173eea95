"""
Task record schema.

Columns:
  todo → in-progress → done

A record is created once with a fresh id and timestamp. After that only its
status (and its position in the board's master sequence) may change.
"""
import time
import uuid
from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Union

from .errors import ValidationError


class TaskStatus(Enum):
    """The three fixed board columns."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def parse(cls, value: Union[str, "TaskStatus"]) -> "TaskStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown status: {value!r}. "
                f"Expected one of {[s.value for s in cls]}"
            ) from None

    @classmethod
    def is_column(cls, value: Any) -> bool:
        """True if value names a column (used for bare-column drop targets)."""
        return isinstance(value, str) and value in {s.value for s in cls}


class SortOrder(Enum):
    """Sort order for column views, by creation time."""
    RECENT = "recent"
    OLDEST = "oldest"

    @classmethod
    def parse(cls, value: Union[str, "SortOrder"]) -> "SortOrder":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown sort order: {value!r}") from None


# Display order of the columns
COLUMNS = (TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_task_id() -> str:
    """Generate a sortable unique task ID (ms-precision timestamp + random hex)."""
    ts = int(time.time() * 1000)
    rand = uuid.uuid4().hex[:8]
    return f"task-{ts}-{rand}"


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        # JavaScript-style "…Z" suffix
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Timestamp must be a string, got {type(value).__name__}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class TaskRecord:
    """A single card on the board."""

    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError(f"Invalid task id: {self.id!r}")
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("Task title must not be empty")
        if self.description is None:
            object.__setattr__(self, "description", "")
        if not isinstance(self.description, str):
            raise ValidationError("Task description must be text")
        for text in (self.title, self.description):
            try:
                text.encode("utf-8")
            except UnicodeEncodeError:
                raise ValidationError(f"Task text is not valid Unicode: {text!r}") from None
        object.__setattr__(self, "status", TaskStatus.parse(self.status))
        if not isinstance(self.created_at, datetime):
            raise ValidationError(f"created_at must be a datetime, got {type(self.created_at).__name__}")
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    @classmethod
    def create(
        cls,
        title: str,
        description: str = "",
        status: Union[str, TaskStatus] = TaskStatus.TODO,
    ) -> "TaskRecord":
        """Build a new record with a fresh id and the current timestamp.

        Raises ValidationError on an empty title, text that cannot be
        encoded, or an unknown status.
        """
        return cls(
            id=make_task_id(),
            title=title,
            description=description or "",
            status=status,
            created_at=utc_now(),
        )

    def with_status(self, status: TaskStatus) -> "TaskRecord":
        return replace(self, status=status)

    def matches(self, needle: str) -> bool:
        """Case-insensitive substring match on title or description."""
        if not needle:
            return True
        needle = needle.casefold()
        return needle in self.title.casefold() or needle in self.description.casefold()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        """Deserialize from a snapshot dict.

        Accepts the legacy "date" key for the creation timestamp. Raises
        KeyError, ValueError or TypeError on malformed input.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Task entry must be an object, got {type(data).__name__}")
        task_id = data["id"]
        if not isinstance(task_id, str) or not task_id:
            raise ValueError(f"Invalid task id: {task_id!r}")
        title = data["title"]
        if not isinstance(title, str) or not title.strip():
            raise ValueError(f"Task {task_id} has an empty title")
        description = data.get("description") or ""
        if not isinstance(description, str):
            raise TypeError(f"Task {task_id} description must be text")
        status = TaskStatus(data.get("status", TaskStatus.TODO.value))
        raw_created = data["created_at"] if "created_at" in data else data["date"]
        return cls(
            id=task_id,
            title=title,
            description=description,
            status=status,
            created_at=parse_timestamp(raw_created),
        )


def format_created(task: TaskRecord) -> str:
    """Local-time creation date for display, e.g. 2024-05-01 14:03."""
    return task.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
