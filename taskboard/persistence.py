"""
Snapshot persistence for the board.

A snapshot is the full master sequence serialized as a JSON array of task
dicts. Adapters differ only in where the text lives:

  JsonFileAdapter - one file per board, atomic temp-file + rename
  SqliteAdapter   - key/value row per board in a SQLite table
  MemoryAdapter   - in-process only (session-only boards, tests)

load() never raises: a missing snapshot is an empty board, a malformed one is
an empty board plus a CorruptSnapshot signal. save() raises
PersistenceWriteFailure and leaves the previous snapshot intact.
"""
import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .errors import CorruptSnapshot, PersistenceWriteFailure, ValidationError
from .schema import TaskRecord

logger = logging.getLogger(__name__)

LoadResult = Tuple[List[TaskRecord], Optional[CorruptSnapshot]]


# ── Codec ────────────────────────────────────────────────────────────────────

def encode_snapshot(tasks: Sequence[TaskRecord]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False, indent=2)


def decode_snapshot(text: str) -> List[TaskRecord]:
    """Parse snapshot text.

    Raises ValueError, KeyError, TypeError, RecursionError or ValidationError
    if the text is malformed.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"Snapshot must be a JSON array, got {type(data).__name__}")
    tasks = [TaskRecord.from_dict(entry) for entry in data]
    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"Duplicate task id in snapshot: {task.id}")
        seen.add(task.id)
    return tasks


# ── Adapters ─────────────────────────────────────────────────────────────────

class SnapshotAdapter:
    """Base adapter. Subclasses implement _read() and _write()."""

    def describe(self) -> str:
        return type(self).__name__

    def _read(self) -> Optional[str]:
        """Return snapshot text, or None if no snapshot exists."""
        raise NotImplementedError

    def _write(self, text: str) -> None:
        raise NotImplementedError

    def load(self) -> LoadResult:
        try:
            text = self._read()
        except (OSError, sqlite3.Error, UnicodeDecodeError) as e:
            return self._corrupt(f"read failed: {e}")
        if text is None:
            logger.debug(f"No snapshot at {self.describe()}, starting empty")
            return [], None
        try:
            tasks = decode_snapshot(text)
        except (ValueError, KeyError, TypeError, RecursionError, ValidationError) as e:
            return self._corrupt(f"{type(e).__name__}: {e}")
        logger.info(f"Loaded {len(tasks)} tasks from {self.describe()}")
        return tasks, None

    def save(self, tasks: Sequence[TaskRecord]) -> None:
        text = encode_snapshot(tasks)
        try:
            self._write(text)
        except (OSError, sqlite3.Error, ValueError) as e:
            # ValueError covers UnicodeEncodeError from text the store cannot encode
            raise PersistenceWriteFailure(self.describe(), str(e), len(tasks)) from e
        logger.debug(f"Saved {len(tasks)} tasks to {self.describe()}")

    def _corrupt(self, reason: str) -> LoadResult:
        signal = CorruptSnapshot(self.describe(), reason)
        logger.warning(f"{signal}; starting with an empty board")
        return [], signal


class JsonFileAdapter(SnapshotAdapter):
    """Snapshot stored as a JSON file."""

    def __init__(self, path):
        self.path = Path(path).expanduser()

    def describe(self) -> str:
        return str(self.path)

    def _read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic write: write to temp, then rename over the old snapshot
        tmp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_file, self.path)
        except Exception:
            tmp_file.unlink(missing_ok=True)
            raise


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SqliteAdapter(SnapshotAdapter):
    """Snapshot stored as one row of a SQLite key/value table."""

    def __init__(self, db_path, board_key: str = "default"):
        self.db_path = str(Path(db_path).expanduser())
        self.board_key = board_key
        self._schema_ready = False

    def describe(self) -> str:
        return f"{self.db_path}#{self.board_key}"

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        if self._schema_ready:
            return
        conn.execute("""
            CREATE TABLE IF NOT EXISTS board_snapshots (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.commit()
        self._schema_ready = True

    def _read(self) -> Optional[str]:
        if not Path(self.db_path).exists():
            return None
        with _connect(self.db_path) as conn:
            self._init_schema(conn)
            row = conn.execute(
                "SELECT value FROM board_snapshots WHERE key = ?",
                (self.board_key,),
            ).fetchone()
        return row["value"] if row else None

    def _write(self, text: str) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self.db_path) as conn:
            self._init_schema(conn)
            conn.execute("""
                INSERT INTO board_snapshots (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """, (self.board_key, text, now))
            conn.commit()


class MemoryAdapter(SnapshotAdapter):
    """Snapshot held in process memory."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.writes = 0

    def _read(self) -> Optional[str]:
        return self.text

    def _write(self, text: str) -> None:
        self.text = text
        self.writes += 1
