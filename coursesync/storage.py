"""
Durable key-value storage for client state.

This module manages a single JSON file, by default:

    ~/.config/coursesync/storage.json

holding a flat object of string keys to string values. It offers the same
get / set / remove contract as browser local storage, so the selection store
can keep its record (a JSON-encoded list of course numbers) under a fixed key.

Every write rewrites the whole file through a temporary file and an atomic
rename, so a crash never leaves a half-written record behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def _default_storage_path() -> Path:
    """
    Return the default path of storage.json in the user config directory.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return Path.home() / ".config" / "coursesync" / "storage.json"


class JsonFileStorage:
    """
    File-backed key-value store.

    A missing or unreadable file behaves like an empty store. Writes raise
    OSError if the file cannot be written; callers decide how to handle it.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_storage_path()

    def _read_all(self) -> Dict[str, str]:
        # First run: file does not exist yet -> nothing stored
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.debug("Ignoring unreadable storage file %s: %s", self.path, exc)
            return {}

        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".storage-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        self._write_all(data)
