"""Session persistence for client state: one slot per key, JSON values only."""
import json
import os
from typing import Any, Optional, Protocol


class SessionStore(Protocol):
    def load(self) -> Optional[Any]:
        ...

    def save(self, value: Any) -> None:
        ...

    def clear(self) -> None:
        ...


class MemorySessionStore:
    """Keeps a JSON copy in memory; the round-trip rejects non-JSON state early."""

    def __init__(self, value: Any = None):
        self._raw: Optional[str] = None if value is None else json.dumps(value)

    def load(self) -> Optional[Any]:
        return None if self._raw is None else json.loads(self._raw)

    def save(self, value: Any) -> None:
        self._raw = json.dumps(value)

    def clear(self) -> None:
        self._raw = None


class JsonFileSessionStore:
    """Stores one key of a JSON object file, shared by every store using the same path."""

    def __init__(self, path: str, key: str):
        self.path = path
        self.key = key

    def _read_all(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def load(self) -> Optional[Any]:
        return self._read_all().get(self.key)

    def save(self, value: Any) -> None:
        data = self._read_all()
        data[self.key] = value
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if data.pop(self.key, None) is not None:
            self._write_all(data)
