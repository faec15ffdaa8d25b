# geodesafio/services/leaderboard.py
"""
Local leaderboard, persisted the way a browser keeps it in localStorage:
one JSON-encoded array of {name, score} under a fixed key.

Storage backends:
  1. ``FileStorage``   - a JSON document on disk mapping keys to string values.
  2. ``MemoryStorage`` - a plain dict; nothing survives a restart.

If the storage fails, the leaderboard keeps going from memory for the rest
of the process and never touches the storage again.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Optional, Protocol

from .scoring import apply_delta

logger = logging.getLogger(__name__)

DEFAULT_KEY = "geodesafio_leaderboard"
DEFAULT_PLAYER = "Current Player"


class StorageUnavailable(Exception):
    """Raised when the key-value storage cannot be read or written."""


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class FileStorage:
    """Keys and string values kept in a single JSON object on disk."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _read_all(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailable(f"{self.path} does not hold a JSON object")
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        tmp = f"{self.path}.tmp"
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}") from e


@dataclass
class LeaderboardEntry:
    name: str
    score: int


def _sorted(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    return sorted(entries, key=lambda e: e.score, reverse=True)


class Leaderboard:
    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_KEY,
        player_name: str = DEFAULT_PLAYER,
    ) -> None:
        self.storage = storage
        self.key = key
        self.player_name = player_name
        self._lock = Lock()
        self._memory: Optional[list[LeaderboardEntry]] = None

    @property
    def persisted(self) -> bool:
        return self._memory is None

    def load(self) -> list[LeaderboardEntry]:
        """All entries, highest score first; the local player is always present."""
        with self._lock:
            entries = self._read()
            self._player_entry(entries)
            return _sorted(entries)

    def apply_delta(self, points: int) -> list[LeaderboardEntry]:
        """Add `points` to the local player's score (floored at zero) and persist."""
        with self._lock:
            entries = self._read()
            entry = self._player_entry(entries)
            entry.score = apply_delta(entry.score, points)
            entries = _sorted(entries)
            self._write(entries)
            return [LeaderboardEntry(e.name, e.score) for e in entries]

    def player_score(self) -> int:
        return next(e.score for e in self.load() if e.name == self.player_name)

    # --- helpers ---------------------------------------------------------------

    def _player_entry(self, entries: list[LeaderboardEntry]) -> LeaderboardEntry:
        for e in entries:
            if e.name == self.player_name:
                return e
        entry = LeaderboardEntry(self.player_name, 0)
        entries.append(entry)
        return entry

    def _degrade(self, err: Exception, entries: list[LeaderboardEntry]) -> None:
        logger.warning("Leaderboard storage unavailable, keeping scores in memory only: %s", err)
        self._memory = entries

    def _read(self) -> list[LeaderboardEntry]:
        if self._memory is not None:
            return [LeaderboardEntry(e.name, e.score) for e in self._memory]
        try:
            raw = self.storage.get_item(self.key)
            rows = json.loads(raw) if raw else []
        except (StorageUnavailable, ValueError) as e:
            self._degrade(e, [])
            return []
        out = []
        for r in rows if isinstance(rows, list) else []:
            if isinstance(r, dict) and "name" in r and "score" in r:
                try:
                    out.append(LeaderboardEntry(str(r["name"]), int(r["score"])))
                except (TypeError, ValueError):
                    logger.debug("Skipping malformed leaderboard row %r", r)
        return out

    def _write(self, entries: list[LeaderboardEntry]) -> None:
        if self._memory is not None:
            self._memory = entries
            return
        try:
            self.storage.set_item(self.key, json.dumps([asdict(e) for e in entries], ensure_ascii=False))
        except StorageUnavailable as e:
            self._degrade(e, entries)
