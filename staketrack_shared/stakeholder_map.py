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

from staketrack_shared.constants import (
    DEFAULT_MAP_NAME,
    DEFAULT_VIEW_SETTINGS,
    MAP_DESCRIPTION_MAX_LENGTH,
    MAP_NAME_MAX_LENGTH,
    MAP_PROJECT_GOALS_MAX_LENGTH,
    MAP_PROJECT_NAME_MAX_LENGTH,
    MAP_PROJECT_SCOPE_MAX_LENGTH,
    MAX_INTERACTIONS_PER_STAKEHOLDER,
    MAX_STAKEHOLDERS_PER_MAP,
)
from staketrack_shared.errors import InteractionLimitError, StakeholderLimitError
from staketrack_shared.interaction import Interaction
from staketrack_shared.json_utils import camel_to_snake, convert_keys
from staketrack_shared.map_summary import MapSummary
from staketrack_shared.stakeholder import Stakeholder
from staketrack_shared.text import clean_text, parse_bool
from staketrack_shared.time_utils import format_timestamp, parse_timestamp, utc_now
from staketrack_shared.types import Quadrant

# Map attributes accepted by ``update``.
EDITABLE_FIELDS = (
    "name",
    "description",
    "project_name",
    "project_goals",
    "project_scope",
    "is_archived",
    "view_settings",
)

_SORT_KEYS = {
    "name": lambda s: s.name.lower(),
    "influence": lambda s: s.influence,
    "impact": lambda s: s.impact,
    "relationship": lambda s: s.relationship,
    "category": lambda s: s.category.value,
    "createdAt": lambda s: s.created_at,
    "updatedAt": lambda s: s.updated_at,
}


class StakeholderMap:
    """A named, ordered collection of stakeholders for one project.

    Every stakeholder held by the map carries the map's id. The map never
    holds more than ``max_stakeholders`` of them, and no stakeholder holds
    more than ``max_interactions`` interactions.
    """

    def __init__(
        self,
        *,
        id: Optional[str] = None,
        name: Any = None,
        description: Any = "",
        project_name: Any = "",
        project_goals: Any = "",
        project_scope: Any = "",
        stakeholders: Optional[list] = None,
        view_settings: Optional[dict] = None,
        created_at: Any = None,
        updated_at: Any = None,
        created_by: Optional[str] = None,
        is_archived: Any = False,
        max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ):
        self._id = id or str(uuid.uuid4())
        self.max_stakeholders = max_stakeholders
        self.max_interactions = max_interactions
        self._name = clean_text(name, MAP_NAME_MAX_LENGTH) or DEFAULT_MAP_NAME
        self._description = clean_text(description, MAP_DESCRIPTION_MAX_LENGTH)
        self._project_name = clean_text(project_name, MAP_PROJECT_NAME_MAX_LENGTH)
        self._project_goals = clean_text(project_goals, MAP_PROJECT_GOALS_MAX_LENGTH)
        self._project_scope = clean_text(project_scope, MAP_PROJECT_SCOPE_MAX_LENGTH)
        self._stakeholders: list[Stakeholder] = []
        for item in stakeholders or []:
            self._stakeholders.append(self._adopt(item))
        if len(self._stakeholders) > max_stakeholders:
            raise StakeholderLimitError(max_stakeholders)
        self._view_settings = {**DEFAULT_VIEW_SETTINGS, **(view_settings or {})}
        self._created_at = parse_timestamp(created_at)
        self._updated_at = parse_timestamp(updated_at)
        self._created_by = created_by
        self._is_archived = parse_bool(is_archived)

    def __repr__(self) -> str:
        return (
            f"StakeholderMap(id={self._id!r}, name={self._name!r}, "
            f"stakeholders={len(self._stakeholders)})"
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def created_by(self) -> Optional[str]:
        return self._created_by

    @property
    def stakeholders(self) -> list[Stakeholder]:
        return list(self._stakeholders)

    @property
    def stakeholder_count(self) -> int:
        return len(self._stakeholders)

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: Any) -> None:
        self._name = clean_text(value, MAP_NAME_MAX_LENGTH) or DEFAULT_MAP_NAME
        self._touch()

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: Any) -> None:
        self._description = clean_text(value, MAP_DESCRIPTION_MAX_LENGTH)
        self._touch()

    @property
    def project_name(self) -> str:
        return self._project_name

    @project_name.setter
    def project_name(self, value: Any) -> None:
        self._project_name = clean_text(value, MAP_PROJECT_NAME_MAX_LENGTH)
        self._touch()

    @property
    def project_goals(self) -> str:
        return self._project_goals

    @project_goals.setter
    def project_goals(self, value: Any) -> None:
        self._project_goals = clean_text(value, MAP_PROJECT_GOALS_MAX_LENGTH)
        self._touch()

    @property
    def project_scope(self) -> str:
        return self._project_scope

    @project_scope.setter
    def project_scope(self, value: Any) -> None:
        self._project_scope = clean_text(value, MAP_PROJECT_SCOPE_MAX_LENGTH)
        self._touch()

    @property
    def is_archived(self) -> bool:
        return self._is_archived

    @is_archived.setter
    def is_archived(self, value: Any) -> None:
        self._is_archived = parse_bool(value)
        self._touch()

    @property
    def view_settings(self) -> dict:
        return dict(self._view_settings)

    @view_settings.setter
    def view_settings(self, value: Optional[dict]) -> None:
        # Partial updates merge into the current settings.
        self._view_settings = {**self._view_settings, **(value or {})}
        self._touch()

    # Groupings used by the matrix and category views.

    @property
    def stakeholders_by_quadrant(self) -> dict[str, list[Stakeholder]]:
        groups: dict[str, list[Stakeholder]] = {q.value: [] for q in Quadrant}
        for stakeholder in self._stakeholders:
            groups[stakeholder.quadrant.value].append(stakeholder)
        return groups

    @property
    def stakeholders_by_category(self) -> dict[str, list[Stakeholder]]:
        groups: dict[str, list[Stakeholder]] = {}
        for stakeholder in self._stakeholders:
            groups.setdefault(stakeholder.category.value, []).append(stakeholder)
        return groups

    def sorted_stakeholders(self, view_settings: Optional[dict] = None) -> list[Stakeholder]:
        """Returns stakeholders filtered and ordered per the view settings."""
        settings = {**self._view_settings, **(view_settings or {})}
        items = list(self._stakeholders)
        category = settings.get("filterCategory", "all")
        if category and category != "all":
            items = [s for s in items if s.category.value == category]
        quadrant = settings.get("filterQuadrant", "all")
        if quadrant and quadrant != "all":
            items = [s for s in items if s.quadrant.value == quadrant]
        sort_key = _SORT_KEYS.get(settings.get("sortBy"), _SORT_KEYS["name"])
        reverse = settings.get("sortDirection") == "desc"
        return sorted(items, key=sort_key, reverse=reverse)

    # Stakeholder management.

    def add_stakeholder(self, stakeholder: "Stakeholder | dict") -> Stakeholder:
        if len(self._stakeholders) >= self.max_stakeholders:
            raise StakeholderLimitError(self.max_stakeholders)
        adopted = self._adopt(stakeholder)
        self._stakeholders.append(adopted)
        self._touch()
        return adopted

    def get_stakeholder(self, stakeholder_id: str) -> Optional[Stakeholder]:
        for stakeholder in self._stakeholders:
            if stakeholder.id == stakeholder_id:
                return stakeholder
        return None

    def update_stakeholder(
        self, stakeholder_id: str, updates: dict
    ) -> Optional[Stakeholder]:
        stakeholder = self.get_stakeholder(stakeholder_id)
        if stakeholder is None:
            return None
        stakeholder.update(updates)
        self._touch()
        return stakeholder

    def remove_stakeholder(self, stakeholder_id: str) -> bool:
        before = len(self._stakeholders)
        self._stakeholders = [s for s in self._stakeholders if s.id != stakeholder_id]
        if len(self._stakeholders) != before:
            self._touch()
            return True
        return False

    def add_stakeholder_interaction(
        self, stakeholder_id: str, interaction: "Interaction | dict"
    ) -> Optional[Interaction]:
        stakeholder = self.get_stakeholder(stakeholder_id)
        if stakeholder is None:
            return None
        added = stakeholder.add_interaction(interaction)
        self._touch()
        return added

    def update(self, updates: dict) -> "StakeholderMap":
        for key, value in updates.items():
            key = camel_to_snake(key)
            if key in EDITABLE_FIELDS and value is not None:
                setattr(self, key, value)
        return self

    def summary(self) -> MapSummary:
        return MapSummary(
            id=self._id,
            name=self._name,
            description=self._description,
            stakeholder_count=len(self._stakeholders),
            created_at=self._created_at,
            last_updated=self._updated_at,
            user_id=self._created_by,
        )

    # Serialization.

    def to_dict(self, include_stakeholders: bool = True) -> dict:
        payload = convert_keys(
            {
                "id": self._id,
                "name": self._name,
                "description": self._description,
                "project_name": self._project_name,
                "project_goals": self._project_goals,
                "project_scope": self._project_scope,
                "created_at": format_timestamp(self._created_at),
                "updated_at": format_timestamp(self._updated_at),
                "created_by": self._created_by,
                "is_archived": self._is_archived,
                "stakeholder_count": len(self._stakeholders),
            },
            "snake_to_camel",
        )
        # View settings keys are already client-facing.
        payload["viewSettings"] = dict(self._view_settings)
        if include_stakeholders:
            payload["stakeholders"] = [s.to_dict() for s in self._stakeholders]
        return payload

    @classmethod
    def from_dict(
        cls,
        data: dict,
        max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ) -> "StakeholderMap":
        data = dict(data or {})
        stakeholders = data.get("stakeholders")
        view_settings = data.get("viewSettings") or data.get("view_settings")
        payload = convert_keys(
            {k: v for k, v in data.items() if k not in ("stakeholders", "viewSettings")},
            "camel_to_snake",
        )
        kwargs = {
            key: payload[key]
            for key in (
                "id",
                "name",
                "description",
                "project_name",
                "project_goals",
                "project_scope",
                "created_at",
                "updated_at",
                "created_by",
                "is_archived",
            )
            if payload.get(key) is not None
        }
        return cls(
            stakeholders=stakeholders if isinstance(stakeholders, list) else [],
            view_settings=view_settings if isinstance(view_settings, dict) else None,
            max_stakeholders=max_stakeholders,
            max_interactions=max_interactions,
            **kwargs,
        )

    @classmethod
    def create_default(cls, user_id: Optional[str] = None) -> "StakeholderMap":
        return cls(name=DEFAULT_MAP_NAME, description="", created_by=user_id)

    def _adopt(self, stakeholder: "Stakeholder | dict") -> Stakeholder:
        if not isinstance(stakeholder, Stakeholder):
            stakeholder = Stakeholder.from_dict(
                stakeholder, max_interactions=self.max_interactions
            )
        elif len(stakeholder.interactions) > self.max_interactions:
            raise InteractionLimitError(self.max_interactions)
        stakeholder.max_interactions = self.max_interactions
        stakeholder.attach_to_map(self._id)
        return stakeholder

    def _touch(self) -> None:
        self._updated_at = utc_now()
