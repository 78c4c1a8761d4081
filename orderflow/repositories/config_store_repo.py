# orderflow/repositories/config_store_repo.py

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from orderflow.repositories.base import BaseConfigStore

logger = logging.getLogger(__name__)


class FileConfigStore(BaseConfigStore):
    """
    One JSON file per key under `root`.

    Writers are serialized with a lock and land through an atomic rename,
    so a reader never sees a half-written snapshot.
    """

    def __init__(self, root: str):
        self.root = Path(root)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in key)
        return self.root / f"{safe}.json"

    def load(self, key: str) -> Optional[Any]:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            with open(p, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            # corrupt snapshot: treated as absent, caller falls back to defaults
            logger.warning("config snapshot unreadable key=%s path=%s error=%s", key, p, e)
            return None

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        data = self._encode(payload)
        p = self._path(key)
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp = p.with_suffix(".json.tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp, p)
        logger.info("config snapshot saved key=%s path=%s", key, p)

    def clear(self, key: str) -> None:
        with self._lock:
            p = self._path(key)
            if p.exists():
                p.unlink()
        logger.info("config snapshot cleared key=%s", key)


class InMemoryConfigStore(BaseConfigStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = self._encode(payload)

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
