# Key-value storage for class records. One JSON document per key, grouped by namespace.

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

from config import Settings

SUFFIX = ".json"


class StoreError(Exception):
    """Backend failure while reading or writing a key."""


class KeyValueStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the parsed JSON value for key, or None when absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    async def list_keys(self) -> List[str]:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""


class MemoryStore(KeyValueStore):
    # Values are kept JSON-encoded so callers never share mutable state with the store.

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key!r} is not JSON-serializable: {e}") from e

    async def list_keys(self) -> List[str]:
        return list(self._data)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(KeyValueStore):
    def __init__(self, root: Path, namespace: str):
        self.path = Path(root) / namespace

    def _file_for(self, key: str) -> Path:
        return self.path / (quote(key, safe="") + SUFFIX)

    def _read(self, key: str):
        file = self._file_for(key)
        try:
            with open(file, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read {key!r}: {e}") from e

    def _write(self, key: str, value: Any):
        file = self._file_for(key)
        tmp = None
        try:
            payload = json.dumps(value, indent=4)
            self.path.mkdir(parents=True, exist_ok=True)
            # Each writer gets its own temp file.
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=self.path, suffix=".tmp", delete=False) as f:
                tmp = f.name
                f.write(payload)
            os.replace(tmp, file)
        except (OSError, TypeError, ValueError) as e:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            raise StoreError(f"Could not write {key!r}: {e}") from e

    def _list(self) -> List[str]:
        if not self.path.exists():
            return []
        try:
            names = sorted(p.name for p in self.path.iterdir() if p.is_file() and p.name.endswith(SUFFIX))
        except OSError as e:
            raise StoreError(f"Could not list {self.path}: {e}") from e
        return [unquote(name[: -len(SUFFIX)]) for name in names]

    def _delete(self, key: str):
        try:
            self._file_for(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreError(f"Could not delete {key!r}: {e}") from e

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def list_keys(self) -> List[str]:
        return await asyncio.to_thread(self._list)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


def build_store(settings: Settings) -> KeyValueStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    if settings.store_backend == "file":
        return FileStore(settings.store_dir, settings.namespace)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")
