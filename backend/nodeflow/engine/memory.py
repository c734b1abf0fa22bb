"""Key-value memory handed to nodes through their execution context.

Nodes use memory to keep state across runs. The engine never reads it; it only
passes a store into every context. Backends:

- ``InMemoryStore``: process-local dict, lost on restart.
- ``JsonFileMemoryStore``: a single JSON document on disk, rewritten on
  every mutation. Values must be JSON-serializable.
"""
from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import Settings


class MemoryStore(ABC):
    """Async memory abstraction passed into every node's context."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a value under key, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""


_MISSING = object()


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValueError("Memory key cannot be empty.")
    return key


class InMemoryStore(MemoryStore):
    def __init__(self):
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        return self._data.get(_check_key(key))

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[_check_key(key)] = value

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._data.pop(_check_key(key), _MISSING) is not _MISSING

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()


class JsonFileMemoryStore(MemoryStore):
    """File-backed store; the whole document is loaded lazily and rewritten on change.

    Disk reads and writes run in a worker thread so other tasks keep running.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text() or "{}")

    def _write_document(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(text)
        tmp.replace(self.path)

    async def _load(self) -> dict[str, Any]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._read_document)
        return self._data

    async def _flush(self) -> None:
        text = json.dumps(self._data, ensure_ascii=False, sort_keys=True, indent=2)
        await asyncio.to_thread(self._write_document, text)

    async def get(self, key: str) -> Any | None:
        _check_key(key)
        async with self._lock:
            return (await self._load()).get(key)

    async def set(self, key: str, value: Any) -> None:
        _check_key(key)
        # Fail before touching the document if the value cannot be stored
        json.dumps(value)
        async with self._lock:
            (await self._load())[key] = value
            await self._flush()

    async def delete(self, key: str) -> bool:
        _check_key(key)
        async with self._lock:
            data = await self._load()
            if key not in data:
                return False
            del data[key]
            await self._flush()
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._data = {}
            await self._flush()


def make_memory_store(settings: Settings) -> MemoryStore:
    if settings.memory_backend == "file":
        return JsonFileMemoryStore(settings.memory_file)
    if settings.memory_backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown memory backend: {settings.memory_backend}")
