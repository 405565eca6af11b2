# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import uuid
from datetime import datetime
from typing import Any, Optional

from staketrack_shared.constants import DEFAULT_MAP_SUMMARY_NAME
from staketrack_shared.time_utils import format_timestamp, parse_timestamp, utc_now


class MapSummary:
    """Lightweight listing entry for a map.

    Unlike :class:`StakeholderMap`, setters here reject bad input with
    ``ValueError`` instead of normalizing it.
    """

    def __init__(
        self,
        *,
        id: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        stakeholder_count: int = 0,
        created_at: Any = None,
        last_updated: Any = None,
        user_id: Optional[str] = None,
    ):
        self._id = id or str(uuid.uuid4())
        self._name = name or DEFAULT_MAP_SUMMARY_NAME
        self._description = description or ""
        self._stakeholder_count = stakeholder_count or 0
        self._created_at = parse_timestamp(created_at)
        self._last_updated = parse_timestamp(last_updated)
        self._user_id = user_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def last_updated(self) -> datetime:
        return self._last_updated

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not value or not isinstance(value, str):
            raise ValueError("Name must be a non-empty string")
        self._name = value
        self._touch()

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: Optional[str]) -> None:
        if value and not isinstance(value, str):
            raise ValueError("Description must be a string")
        self._description = value or ""
        self._touch()

    @property
    def stakeholder_count(self) -> int:
        return self._stakeholder_count

    @stakeholder_count.setter
    def stakeholder_count(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("Stakeholder count must be a non-negative integer")
        self._stakeholder_count = value
        self._touch()

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "name": self._name,
            "description": self._description,
            "stakeholderCount": self._stakeholder_count,
            "createdAt": format_timestamp(self._created_at),
            "lastUpdated": format_timestamp(self._last_updated),
            "userId": self._user_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MapSummary":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            description=data.get("description"),
            stakeholder_count=data.get("stakeholderCount", 0),
            created_at=data.get("createdAt"),
            last_updated=data.get("lastUpdated"),
            user_id=data.get("userId"),
        )

    def _touch(self) -> None:
        self._last_updated = utc_now()
