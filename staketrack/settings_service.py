"""
Per-user application settings.
"""

from __future__ import annotations

import copy
from typing import Optional

from staketrack.repositories import MapRepository

DEFAULT_SETTINGS: dict = {
    "theme": "light",
    "defaultView": "grid",
    "pageSize": 10,
    "notifications": True,
}


class SettingsService:
    def __init__(self, repository: MapRepository):
        self.repository = repository

    def get_settings(self) -> dict:
        """Stored settings layered over the defaults."""
        stored: Optional[dict] = self.repository.get_settings()
        return _merge(copy.deepcopy(DEFAULT_SETTINGS), stored or {})

    def update_settings(self, changes: dict) -> dict:
        merged = _merge(self.get_settings(), changes or {})
        self.repository.save_settings(merged)
        return merged


def _merge(base: dict, changes: dict) -> dict:
    # Nested sections merge key by key; everything else is overwritten.
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = {**base[key], **value}
        elif value is not None:
            base[key] = value
    return base
