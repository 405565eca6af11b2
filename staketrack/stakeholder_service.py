"""
CRUD operations for maps, stakeholders and interactions.

Every write loads the owning map, applies the change through the domain
model (so validation and limits always apply), and saves the whole map
back through the repository.
"""

from __future__ import annotations

import logging
from typing import Optional

from staketrack import analytics as events
from staketrack.analytics import Analytics
from staketrack.auth import CurrentUser
from staketrack.repositories import MapRepository
from staketrack_shared.constants import (
    DEFAULT_STAKEHOLDER_NAME,
    MAX_INTERACTIONS_PER_STAKEHOLDER,
    MAX_MAPS_PER_USER,
    MAX_STAKEHOLDERS_PER_MAP,
)
from staketrack_shared.errors import MapLimitError, NotFoundError
from staketrack_shared.interaction import Interaction
from staketrack_shared.stakeholder import Stakeholder
from staketrack_shared.stakeholder_map import StakeholderMap

logger = logging.getLogger(__name__)


class StakeholderService:
    def __init__(
        self,
        repository: MapRepository,
        user: CurrentUser,
        analytics: Optional[Analytics] = None,
        *,
        max_maps: int = MAX_MAPS_PER_USER,
        max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ):
        self.repository = repository
        self.user = user
        self.analytics = analytics or Analytics(None)
        self.max_maps = max_maps
        self.max_stakeholders = max_stakeholders
        self.max_interactions = max_interactions

    def _track(self, name: str, **params) -> None:
        params.setdefault("guest", self.user.is_guest)
        self.analytics.track(name, params, user_id=self.user.uid)

    def _prepare(self, stakeholder_map: StakeholderMap) -> StakeholderMap:
        stakeholder_map.max_stakeholders = self.max_stakeholders
        stakeholder_map.max_interactions = self.max_interactions
        for stakeholder in stakeholder_map.stakeholders:
            stakeholder.max_interactions = self.max_interactions
        return stakeholder_map

    # Maps

    def list_maps(self, include_archived: bool = False) -> list[StakeholderMap]:
        maps = self.repository.list_maps()
        if not include_archived:
            maps = [m for m in maps if not m.is_archived]
        return maps

    def get_map(self, map_id: str) -> StakeholderMap:
        stakeholder_map = self.repository.get_map(map_id)
        if stakeholder_map is None:
            raise NotFoundError(f"Map not found: {map_id}")
        return self._prepare(stakeholder_map)

    def create_map(self, data: dict) -> StakeholderMap:
        if len(self.repository.list_maps()) >= self.max_maps:
            raise MapLimitError(self.max_maps)
        stakeholder_map = self._prepare(StakeholderMap.create_default(self.user.uid))
        stakeholder_map.update(data)
        self.repository.save_map(stakeholder_map)
        logger.info("User %s created map %s", self.user.uid, stakeholder_map.id)
        self._track(events.MAP_CREATED, map_id=stakeholder_map.id)
        return stakeholder_map

    def update_map(self, map_id: str, changes: dict) -> StakeholderMap:
        stakeholder_map = self.get_map(map_id)
        stakeholder_map.update(changes)
        self.repository.save_map(stakeholder_map)
        self._track(events.MAP_UPDATED, map_id=map_id)
        return stakeholder_map

    def delete_map(self, map_id: str) -> None:
        if not self.repository.delete_map(map_id):
            raise NotFoundError(f"Map not found: {map_id}")
        logger.info("User %s deleted map %s", self.user.uid, map_id)
        self._track(events.MAP_DELETED, map_id=map_id)

    def matrix(self, map_id: str) -> dict[str, list[Stakeholder]]:
        return self.get_map(map_id).stakeholders_by_quadrant

    def categories(self, map_id: str) -> dict[str, list[Stakeholder]]:
        return self.get_map(map_id).stakeholders_by_category

    # Stakeholders

    def list_stakeholders(
        self, map_id: str, view_settings: Optional[dict] = None
    ) -> list[Stakeholder]:
        return self.get_map(map_id).sorted_stakeholders(view_settings)

    def get_stakeholder(self, map_id: str, stakeholder_id: str) -> Stakeholder:
        stakeholder = self.get_map(map_id).get_stakeholder(stakeholder_id)
        if stakeholder is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        return stakeholder

    def add_stakeholder(self, map_id: str, data: dict) -> Stakeholder:
        stakeholder_map = self.get_map(map_id)
        payload = {
            k: v
            for k, v in data.items()
            if k not in ("id", "interactions", "documents")
        }
        payload["createdBy"] = self.user.uid
        if not payload.get("name"):
            payload["name"] = DEFAULT_STAKEHOLDER_NAME
        added = stakeholder_map.add_stakeholder(Stakeholder.from_dict(payload))
        self.repository.save_map(stakeholder_map)
        self._track(events.STAKEHOLDER_ADDED, map_id=map_id, stakeholder_id=added.id)
        return added

    def update_stakeholder(
        self, map_id: str, stakeholder_id: str, changes: dict
    ) -> Stakeholder:
        stakeholder_map = self.get_map(map_id)
        updated = stakeholder_map.update_stakeholder(stakeholder_id, changes)
        if updated is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        self.repository.save_map(stakeholder_map)
        self._track(
            events.STAKEHOLDER_UPDATED, map_id=map_id, stakeholder_id=stakeholder_id
        )
        return updated

    def remove_stakeholder(self, map_id: str, stakeholder_id: str) -> None:
        stakeholder_map = self.get_map(map_id)
        if not stakeholder_map.remove_stakeholder(stakeholder_id):
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        self.repository.save_map(stakeholder_map)
        self._track(
            events.STAKEHOLDER_REMOVED, map_id=map_id, stakeholder_id=stakeholder_id
        )

    # Interactions

    def list_interactions(self, map_id: str, stakeholder_id: str) -> list[Interaction]:
        return self.get_stakeholder(map_id, stakeholder_id).latest_interactions()

    def add_interaction(
        self, map_id: str, stakeholder_id: str, data: dict
    ) -> Interaction:
        stakeholder_map = self.get_map(map_id)
        payload = {k: v for k, v in data.items() if k != "id"}
        payload.setdefault("createdBy", self.user.uid)
        added = stakeholder_map.add_stakeholder_interaction(stakeholder_id, payload)
        if added is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        self.repository.save_map(stakeholder_map)
        self._track(
            events.INTERACTION_LOGGED,
            map_id=map_id,
            stakeholder_id=stakeholder_id,
            type=added.type.value,
        )
        return added

    def update_interaction(
        self, map_id: str, stakeholder_id: str, interaction_id: str, changes: dict
    ) -> Interaction:
        stakeholder_map = self.get_map(map_id)
        stakeholder = stakeholder_map.get_stakeholder(stakeholder_id)
        if stakeholder is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        updated = stakeholder.update_interaction(interaction_id, changes)
        if updated is None:
            raise NotFoundError(f"Interaction not found: {interaction_id}")
        self.repository.save_map(stakeholder_map)
        return updated

    def delete_interaction(
        self, map_id: str, stakeholder_id: str, interaction_id: str
    ) -> None:
        stakeholder_map = self.get_map(map_id)
        stakeholder = stakeholder_map.get_stakeholder(stakeholder_id)
        if stakeholder is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        if not stakeholder.remove_interaction(interaction_id):
            raise NotFoundError(f"Interaction not found: {interaction_id}")
        self.repository.save_map(stakeholder_map)
