"""Key-value persistence for MindGym stats.

Reads never raise: a missing or unreadable file reads as no value.
Writes report success as a bool instead of raising.
"""

import json
import os
import threading


class JsonFileStorage:
    """Key-value store backed by a single JSON file."""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load_all(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str):
        """Return the stored value for key, or None."""
        with self._lock:
            return self._load_all().get(key)

    def set(self, key: str, value) -> bool:
        """Store value under key. Returns False if the write failed."""
        with self._lock:
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                data = self._load_all()
                data[key] = value
                # write beside the target, then swap it in whole
                tmp = f"{self.path}.tmp"
                with open(tmp, "w") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp, self.path)
            except (OSError, TypeError, ValueError):
                return False
        return True


class MemoryStorage:
    """In-process store; nothing survives a restart."""

    def __init__(self):
        self._data: dict = {}
        self._lock = threading.Lock()

    def get(self, key: str):
        with self._lock:
            value = self._data.get(key)
        # hand out a copy, same as a fresh read from disk
        return json.loads(json.dumps(value)) if value is not None else None

    def set(self, key: str, value) -> bool:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError):
            return False
        with self._lock:
            self._data[key] = json.loads(encoded)
        return True


def make_storage(backend: str, path: str):
    """Build a storage backend from its config name."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return JsonFileStorage(path)
    raise ValueError(f"Unknown storage backend: {backend}")
