"""
Session-scoped key/value storage backends.

The idempotency store only needs ``get``/``set``/``remove``. Two backends are
provided: an in-memory one that lives as long as the process, and a JSON file
backed one that survives a restart of the process and forgets entries once
they are older than the configured session age.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

__all__ = [
    "FileSessionStorage",
    "MemorySessionStorage",
    "SessionStorage",
]


class SessionStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemorySessionStorage:
    """Process-local storage; the process lifetime is the session."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values


class FileSessionStorage:
    """
    JSON file backed storage with a maximum entry age.

    Every entry is stored as ``{"value": ..., "stored_at": <epoch seconds>}``.
    Entries older than ``max_age_seconds`` are treated as absent and pruned on
    the next write.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        max_age_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path)
        self.max_age_seconds = max_age_seconds
        self._clock = clock

    def _load(self) -> Dict[str, Dict[str, object]]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logging.warning("Ignoring unreadable session storage at %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logging.warning("Ignoring malformed session storage at %s", self.path)
            return {}
        return data

    def _is_fresh(self, entry: object) -> bool:
        if not isinstance(entry, dict) or not isinstance(entry.get("value"), str):
            return False
        stored_at = entry.get("stored_at")
        if not isinstance(stored_at, (int, float)):
            return False
        return self._clock() - stored_at < self.max_age_seconds

    def _save(self, entries: Dict[str, Dict[str, object]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(entries, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        entry = self._load().get(key)
        if not self._is_fresh(entry):
            return None
        return entry["value"]  # type: ignore[index]

    def set(self, key: str, value: str) -> None:
        entries = {k: v for k, v in self._load().items() if self._is_fresh(v)}
        entries[key] = {"value": value, "stored_at": self._clock()}
        self._save(entries)

    def remove(self, key: str) -> None:
        entries = self._load()
        if key not in entries:
            return
        del entries[key]
        self._save({k: v for k, v in entries.items() if self._is_fresh(v)})
