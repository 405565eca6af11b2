"""
On-device key/value storage used for guest (unauthenticated) sessions.

Behaves like browser local storage: values are JSON, keys share the
``staketrack_`` prefix, and storage failures are logged and reported as a
missing value or a ``False`` return instead of raising.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

KEY_PREFIX = "staketrack_"
MAPS_KEY = "maps"
CURRENT_MAP_KEY = "current_map_id"
SETTINGS_KEY = "settings"

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


def stakeholders_key(map_id: str) -> str:
    return f"stakeholders_{map_id}"


def interactions_key(map_id: str, stakeholder_id: str) -> str:
    return f"interactions_{map_id}_{stakeholder_id}"


def documents_key(map_id: str, stakeholder_id: str) -> str:
    return f"documents_{map_id}_{stakeholder_id}"


class LocalStorage(Protocol):
    """Per-guest key/value store."""

    def get_item(self, namespace: str, key: str) -> Any:
        ...

    def set_item(self, namespace: str, key: str, value: Any) -> bool:
        ...

    def remove_item(self, namespace: str, key: str) -> bool:
        ...

    def keys(self, namespace: str) -> list[str]:
        ...

    def clear(self, namespace: str) -> bool:
        ...


@dataclass
class InMemoryLocalStorage:
    """Dictionary-backed storage for tests and in-memory deployments."""

    data: dict[str, dict[str, str]] = field(default_factory=dict)

    def get_item(self, namespace: str, key: str) -> Any:
        raw = self.data.get(namespace, {}).get(KEY_PREFIX + key)
        return json.loads(raw) if raw is not None else None

    def set_item(self, namespace: str, key: str, value: Any) -> bool:
        self.data.setdefault(namespace, {})[KEY_PREFIX + key] = json.dumps(
            value, default=str
        )
        return True

    def remove_item(self, namespace: str, key: str) -> bool:
        return self.data.get(namespace, {}).pop(KEY_PREFIX + key, None) is not None

    def keys(self, namespace: str) -> list[str]:
        return [k[len(KEY_PREFIX):] for k in self.data.get(namespace, {})]

    def clear(self, namespace: str) -> bool:
        self.data.pop(namespace, None)
        return True


class FileLocalStorage:
    """Stores each key as a JSON file under ``<base_dir>/<namespace>/``."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def _namespace_dir(self, namespace: str) -> Path:
        return self.base_dir / _SAFE_NAME.sub("_", namespace)

    def _path(self, namespace: str, key: str) -> Path:
        filename = _SAFE_NAME.sub("_", KEY_PREFIX + key) + ".json"
        return self._namespace_dir(namespace) / filename

    def get_item(self, namespace: str, key: str) -> Any:
        path = self._path(namespace, key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Error reading local storage item %s", key)
            return None

    def set_item(self, namespace: str, key: str, value: Any) -> bool:
        path = self._path(namespace, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(value, default=str), encoding="utf-8")
            tmp_path.replace(path)
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error writing local storage item %s", key)
            return False

    def remove_item(self, namespace: str, key: str) -> bool:
        path = self._path(namespace, key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError:
            logger.exception("Error removing local storage item %s", key)
            return False

    def keys(self, namespace: str) -> list[str]:
        directory = self._namespace_dir(namespace)
        if not directory.exists():
            return []
        return sorted(
            path.stem[len(KEY_PREFIX):]
            for path in directory.glob(f"{KEY_PREFIX}*.json")
        )

    def clear(self, namespace: str) -> bool:
        cleared = True
        for key in self.keys(namespace):
            cleared = self.remove_item(namespace, key) and cleared
        return cleared


def storage_info(storage: LocalStorage, namespace: str) -> dict:
    """Summarize how much a guest has stored (key count and JSON size)."""
    total = 0
    keys = storage.keys(namespace)
    for key in keys:
        value: Optional[Any] = storage.get_item(namespace, key)
        total += len(json.dumps(value, default=str).encode("utf-8"))
    return {"keys": len(keys), "bytes": total, "formatted": format_size(total)}


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} bytes"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"
