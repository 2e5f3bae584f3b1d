"""Key-value configuration store holding small JSON blobs.

The admin surface writes these blobs; the reconciliation engine only reads
them. Two backends are provided: an in-memory store (tests, embedding) and a
single JSON document on disk written atomically.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ConfigStoreError(RuntimeError):
    pass


class ConfigStore:
    """Interface: string key -> JSON blob. Last writer wins."""

    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, blob: Any) -> None:
        raise NotImplementedError


class MemoryConfigStore(ConfigStore):
    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, blob: Any) -> None:
        # Round-trip through JSON so callers cannot share mutable state with the store
        self._data[key] = json.loads(json.dumps(blob))


def _atomic_write(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + fsync + rename."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class JsonFileConfigStore(ConfigStore):
    """All blobs in one JSON object on disk, re-read on every access."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigStoreError(f"Unreadable configuration store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigStoreError(f"Configuration store {self.path} must hold a JSON object")
        return data

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, blob: Any) -> None:
        data = self._load()
        data[key] = blob
        self.path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(self.path, json.dumps(data, indent=2, sort_keys=True))
        logger.debug("Stored configuration key %s", key)
