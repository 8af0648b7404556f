from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

USERS_KEY = "fixit_users"
CURRENT_USER_KEY = "fixit_current_user"
INCIDENTS_KEY = "fixit_incidents"


class JsonStore:
    """Single JSON value persisted as a whole file."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.expanduser().resolve()
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._file_path

    def read(self, default: Any) -> Any:
        if not self._file_path.exists():
            return default
        try:
            raw = self._file_path.read_text(encoding="utf-8")
            if not raw.strip():
                return default
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Failed to parse %s, falling back to default: %s", self._file_path.name, exc)
            return default

    def write(self, value: Any) -> None:
        payload = json.dumps(value, indent=2, ensure_ascii=False, default=str)
        self._file_path.write_text(payload, encoding="utf-8")

    def clear(self) -> None:
        self._file_path.unlink(missing_ok=True)


class LocalStorage:
    """Key/value facade over a directory of JSON files, one per key."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir.expanduser().resolve()
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._stores: dict[str, JsonStore] = {}
        self._lock = Lock()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def get_item(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._store(key).read(default)

    def set_item(self, key: str, value: Any) -> None:
        with self._lock:
            self._store(key).write(value)

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._store(key).clear()

    def _store(self, key: str) -> JsonStore:
        store = self._stores.get(key)
        if store is None:
            store = JsonStore(self._base_dir / f"{key}.json")
            self._stores[key] = store
        return store
