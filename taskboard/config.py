# Task board — configuration
# Override storage and behaviour via taskboard.yaml or environment variables.

import logging
import os
import sys
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

from .errors import ValidationError
from .persistence import JsonFileAdapter, MemoryAdapter, SnapshotAdapter, SqliteAdapter
from .schema import SortOrder

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "taskboard.yaml"
DATA_DIR = "~/.local/share/taskboard"
BACKENDS = ("json", "sqlite", "memory")

LOG_FORMAT = "%(asctime)s [taskboard] %(levelname)s: %(message)s"


def _as_bool(name: str, value) -> bool:
    """Coerce YAML scalars like "false" or 0 to bool."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "1"):
        return True
    if text in ("false", "no", "off", "0", ""):
        return False
    raise ValidationError(f"{name} must be a boolean, got {value!r}")


@dataclass
class BoardConfig:
    """Runtime configuration for one board instance."""

    # Storage
    backend: str = "json"
    snapshot_path: str = ""  # auto-selected per backend if empty
    board_key: str = "default"

    # Behaviour
    default_sort_order: str = "recent"
    background_saves: bool = True

    # Observability
    failure_webhook_url: Optional[str] = None
    log_level: str = "INFO"

    def resolve(self):
        """Apply env overrides, defaults and ~ expansion; validate choices."""
        env_snapshot = os.environ.get("TASKBOARD_SNAPSHOT")
        if env_snapshot:
            self.snapshot_path = env_snapshot

        if self.backend not in BACKENDS:
            raise ValidationError(f"Unknown backend: {self.backend!r}. Expected one of {BACKENDS}")
        SortOrder.parse(self.default_sort_order)
        self.background_saves = _as_bool("background_saves", self.background_saves)

        if not self.snapshot_path and self.backend != "memory":
            name = "taskboard.db" if self.backend == "sqlite" else "tasks.json"
            self.snapshot_path = str(Path(DATA_DIR) / name)
        if self.snapshot_path:
            self.snapshot_path = str(Path(self.snapshot_path).expanduser())
        return self

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BoardConfig":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path or os.environ.get("TASKBOARD_CONFIG") or CONFIG_PATH)
        known = {f.name for f in fields(cls)}
        cfg = cls()
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, AttributeError, TypeError) as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        return cfg.resolve()


def build_adapter(cfg: BoardConfig) -> SnapshotAdapter:
    if cfg.backend == "sqlite":
        return SqliteAdapter(cfg.snapshot_path, board_key=cfg.board_key)
    if cfg.backend == "memory":
        return MemoryAdapter()
    return JsonFileAdapter(cfg.snapshot_path)


def configure_logging(level: str = "INFO") -> None:
    """Install a stdout handler for the application. Not called on import."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
