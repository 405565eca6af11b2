"""
Map repositories: one per persistence backend.

Authenticated users read and write whole map documents in the hosted
document store. Guests keep the same data in local storage, split into
the keys the web client uses (map list, stakeholders per map, interactions
and documents per stakeholder).
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from staketrack.auth import CurrentUser
from staketrack.db import DbClient
from staketrack.local_storage import (
    CURRENT_MAP_KEY,
    MAPS_KEY,
    SETTINGS_KEY,
    LocalStorage,
    documents_key,
    interactions_key,
    stakeholders_key,
)
from staketrack_shared.constants import (
    MAX_INTERACTIONS_PER_STAKEHOLDER,
    MAX_STAKEHOLDERS_PER_MAP,
)
from staketrack_shared.stakeholder_map import StakeholderMap

logger = logging.getLogger(__name__)


class MapRepository(Protocol):
    is_local: bool

    def list_maps(self) -> list[StakeholderMap]:
        ...

    def get_map(self, map_id: str) -> Optional[StakeholderMap]:
        ...

    def save_map(self, stakeholder_map: StakeholderMap) -> StakeholderMap:
        ...

    def delete_map(self, map_id: str) -> bool:
        ...

    def get_settings(self) -> Optional[dict]:
        ...

    def save_settings(self, settings: dict) -> None:
        ...


class CloudMapRepository:
    """Maps owned by one authenticated user in the document store."""

    is_local = False

    def __init__(
        self,
        db: DbClient,
        owner_id: str,
        max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ):
        self.db = db
        self.owner_id = owner_id
        self.max_stakeholders = max_stakeholders
        self.max_interactions = max_interactions

    def _load(self, doc: dict) -> StakeholderMap:
        return StakeholderMap.from_dict(
            doc,
            max_stakeholders=self.max_stakeholders,
            max_interactions=self.max_interactions,
        )

    def list_maps(self) -> list[StakeholderMap]:
        return [self._load(doc) for doc in self.db.list_maps(self.owner_id)]

    def get_map(self, map_id: str) -> Optional[StakeholderMap]:
        doc = self.db.get_map(self.owner_id, map_id)
        return self._load(doc) if doc is not None else None

    def save_map(self, stakeholder_map: StakeholderMap) -> StakeholderMap:
        self.db.save_map(self.owner_id, stakeholder_map.to_dict())
        return stakeholder_map

    def delete_map(self, map_id: str) -> bool:
        return self.db.delete_map(self.owner_id, map_id)

    def get_settings(self) -> Optional[dict]:
        return self.db.get_user_settings(self.owner_id)

    def save_settings(self, settings: dict) -> None:
        self.db.save_user_settings(self.owner_id, settings)


class LocalMapRepository:
    """Guest maps kept in local storage under the guest's namespace."""

    is_local = True

    def __init__(
        self,
        storage: LocalStorage,
        guest_id: str,
        max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ):
        self.storage = storage
        self.guest_id = guest_id
        self.max_stakeholders = max_stakeholders
        self.max_interactions = max_interactions

    def _map_docs(self) -> list[dict]:
        docs = self.storage.get_item(self.guest_id, MAPS_KEY)
        return docs if isinstance(docs, list) else []

    def _assemble(self, doc: dict) -> StakeholderMap:
        map_id = doc["id"]
        stakeholders = self.storage.get_item(self.guest_id, stakeholders_key(map_id))
        stakeholders = stakeholders if isinstance(stakeholders, list) else []
        for stakeholder in stakeholders:
            for field, key in (
                ("interactions", interactions_key(map_id, stakeholder["id"])),
                ("documents", documents_key(map_id, stakeholder["id"])),
            ):
                items = self.storage.get_item(self.guest_id, key)
                stakeholder[field] = items if isinstance(items, list) else []
        return StakeholderMap.from_dict(
            {**doc, "stakeholders": stakeholders},
            max_stakeholders=self.max_stakeholders,
            max_interactions=self.max_interactions,
        )

    def list_maps(self) -> list[StakeholderMap]:
        return [self._assemble(doc) for doc in self._map_docs()]

    def get_map(self, map_id: str) -> Optional[StakeholderMap]:
        for doc in self._map_docs():
            if doc.get("id") == map_id:
                return self._assemble(doc)
        return None

    def save_map(self, stakeholder_map: StakeholderMap) -> StakeholderMap:
        payload = stakeholder_map.to_dict()
        stakeholders = payload.pop("stakeholders")
        previous = self.storage.get_item(
            self.guest_id, stakeholders_key(stakeholder_map.id)
        ) or []

        for stakeholder in stakeholders:
            self._write_children(stakeholder_map.id, stakeholder)
        kept_ids = {s["id"] for s in stakeholders}
        for old in previous:
            if old.get("id") not in kept_ids:
                self._remove_children(stakeholder_map.id, old["id"])
        self.storage.set_item(
            self.guest_id, stakeholders_key(stakeholder_map.id), stakeholders
        )

        docs = [d for d in self._map_docs() if d.get("id") != stakeholder_map.id]
        existing_ids = [d.get("id") for d in self._map_docs()]
        if stakeholder_map.id in existing_ids:
            docs.insert(existing_ids.index(stakeholder_map.id), payload)
        else:
            docs.append(payload)
        if not self.storage.set_item(self.guest_id, MAPS_KEY, docs):
            logger.warning("Guest %s: map %s was not persisted", self.guest_id, stakeholder_map.id)
        return stakeholder_map

    def delete_map(self, map_id: str) -> bool:
        docs = self._map_docs()
        remaining = [d for d in docs if d.get("id") != map_id]
        if len(remaining) == len(docs):
            return False
        stakeholders = self.storage.get_item(self.guest_id, stakeholders_key(map_id)) or []
        for stakeholder in stakeholders:
            self._remove_children(map_id, stakeholder["id"])
        self.storage.remove_item(self.guest_id, stakeholders_key(map_id))
        self.storage.set_item(self.guest_id, MAPS_KEY, remaining)
        if self.storage.get_item(self.guest_id, CURRENT_MAP_KEY) == map_id:
            self.storage.remove_item(self.guest_id, CURRENT_MAP_KEY)
        return True

    def get_settings(self) -> Optional[dict]:
        return self.storage.get_item(self.guest_id, SETTINGS_KEY)

    def save_settings(self, settings: dict) -> None:
        self.storage.set_item(self.guest_id, SETTINGS_KEY, settings)

    def _write_children(self, map_id: str, stakeholder: dict) -> None:
        stakeholder_id = stakeholder["id"]
        self.storage.set_item(
            self.guest_id,
            interactions_key(map_id, stakeholder_id),
            stakeholder.pop("interactions", []),
        )
        self.storage.set_item(
            self.guest_id,
            documents_key(map_id, stakeholder_id),
            stakeholder.pop("documents", []),
        )

    def _remove_children(self, map_id: str, stakeholder_id: str) -> None:
        self.storage.remove_item(self.guest_id, interactions_key(map_id, stakeholder_id))
        self.storage.remove_item(self.guest_id, documents_key(map_id, stakeholder_id))


def repository_for(
    user: CurrentUser,
    *,
    db: DbClient,
    local_storage: LocalStorage,
    max_stakeholders: int = MAX_STAKEHOLDERS_PER_MAP,
    max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
) -> MapRepository:
    """Pick the backend for ``user``: local storage for guests, cloud otherwise."""
    if user.is_guest:
        return LocalMapRepository(
            local_storage, user.uid, max_stakeholders, max_interactions
        )
    return CloudMapRepository(db, user.uid, max_stakeholders, max_interactions)
