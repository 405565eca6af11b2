"""
Data import, export and cleanup.

Exports use the same document shape the web client produces
(``{"version", "timestamp", "maps": [...]}``) so files move freely between
the hosted app, guest sessions and this service.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import Any, Optional

from dacite import DaciteError

from staketrack import analytics as events
from staketrack.analytics import Analytics
from staketrack.auth import CurrentUser
from staketrack.repositories import MapRepository
from staketrack.storage import StorageClient, backup_path
from staketrack_shared.constants import (
    EXPORT_FORMAT_VERSION,
    MAX_INTERACTIONS_PER_STAKEHOLDER,
    MAX_MAPS_PER_USER,
    MAX_STAKEHOLDERS_PER_MAP,
)
from staketrack_shared.errors import (
    AuthError,
    ImportFormatError,
    MapLimitError,
    NotFoundError,
)
from staketrack_shared.stakeholder_map import StakeholderMap
from staketrack_shared.time_utils import utc_now
from staketrack_shared.types import ConflictResolution

logger = logging.getLogger(__name__)

MAP_CSV_HEADERS = [
    "Name",
    "Influence",
    "Impact",
    "Relationship",
    "Category",
    "Interests",
    "Contribution",
    "Risk",
    "Communication Style",
    "Engagement Strategy",
    "Measurement Approach",
]
INTERACTION_CSV_HEADERS = ["Date", "Time", "Interaction"]

_UNSAFE_FILENAME = re.compile(r"[^a-z0-9]+")


def safe_file_name(name: str) -> str:
    cleaned = _UNSAFE_FILENAME.sub("_", (name or "").lower()).strip("_")
    return cleaned or "export"


class DataService:
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

    def _get_map(self, map_id: str) -> StakeholderMap:
        stakeholder_map = self.repository.get_map(map_id)
        if stakeholder_map is None:
            raise NotFoundError(f"Map not found: {map_id}")
        return stakeholder_map

    # Export

    def export_data(
        self,
        include_stakeholders: bool = True,
        include_interactions: bool = True,
        include_documents: bool = True,
    ) -> dict:
        maps = []
        for stakeholder_map in self.repository.list_maps():
            doc = stakeholder_map.to_dict(include_stakeholders=include_stakeholders)
            for stakeholder in doc.get("stakeholders", []):
                if not include_interactions:
                    stakeholder.pop("interactions", None)
                if not include_documents:
                    stakeholder.pop("documents", None)
            maps.append(doc)
        self._track(events.MAP_EXPORTED, export_format="json", maps_count=len(maps))
        return {
            "version": EXPORT_FORMAT_VERSION,
            "timestamp": utc_now().isoformat(),
            "maps": maps,
        }

    def export_map_csv(self, map_id: str) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for one map's stakeholders."""
        stakeholder_map = self._get_map(map_id)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(MAP_CSV_HEADERS)
        for stakeholder in stakeholder_map.stakeholders:
            writer.writerow(
                [
                    stakeholder.name,
                    stakeholder.influence,
                    stakeholder.impact,
                    stakeholder.relationship,
                    stakeholder.category.value,
                    stakeholder.interests,
                    stakeholder.contribution,
                    stakeholder.risk,
                    stakeholder.communication,
                    stakeholder.strategy,
                    stakeholder.measurement,
                ]
            )
        self._track(
            events.MAP_EXPORTED,
            map_id=map_id,
            stakeholders_count=stakeholder_map.stakeholder_count,
            export_format="csv",
        )
        filename = f"{safe_file_name(stakeholder_map.name)}_stakeholders.csv"
        return filename, buffer.getvalue()

    def export_interactions_csv(
        self, map_id: str, stakeholder_id: str
    ) -> tuple[str, str]:
        stakeholder = self._get_map(map_id).get_stakeholder(stakeholder_id)
        if stakeholder is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(INTERACTION_CSV_HEADERS)
        for interaction in stakeholder.latest_interactions():
            writer.writerow(
                [
                    interaction.date.date().isoformat(),
                    interaction.date.strftime("%H:%M:%S"),
                    interaction.notes,
                ]
            )
        self._track(
            events.INTERACTIONS_EXPORTED,
            stakeholder_id=stakeholder_id,
            interactions_count=len(stakeholder.interactions),
            export_format="csv",
        )
        filename = f"{safe_file_name(stakeholder.name)}_interactions.csv"
        return filename, buffer.getvalue()

    def backup_to_storage(self, storage: StorageClient, expires_in: int = 3600) -> dict:
        """Upload a full export and return where it went plus a download link."""
        if self.user.is_guest:
            raise AuthError("Sign in to store backups in the cloud")
        payload = self.export_data()
        stamp = utc_now().strftime("%Y%m%dT%H%M%SZ")
        path = backup_path(self.user.uid, stamp)
        storage.upload_json(path, payload)
        logger.info("Stored backup for %s at %s", self.user.uid, path)
        return {
            "path": path,
            "url": storage.presign_get(path, expires_in=expires_in),
            "maps": len(payload["maps"]),
        }

    # Import

    def import_data(
        self,
        data: Any,
        conflict_resolution: ConflictResolution | str = ConflictResolution.MERGE,
    ) -> dict:
        """Import an export document.

        ``keep`` leaves existing maps untouched, ``replace`` overwrites them
        with the imported copy, and ``merge`` overlays imported fields onto
        the existing map, stakeholder by stakeholder, with interactions and
        documents upserted by id. Maps that do not exist yet are always
        created. Map, stakeholder and interaction limits apply to the
        imported data as they do to regular edits.
        """
        if not isinstance(data, dict) or not isinstance(data.get("maps"), list):
            raise ImportFormatError("Invalid import data format")
        try:
            resolution = ConflictResolution(conflict_resolution)
        except ValueError as exc:
            raise ImportFormatError(
                f"Unknown conflict resolution: {conflict_resolution}"
            ) from exc

        result = {"created": 0, "kept": 0, "replaced": 0, "merged": 0}
        for map_data in data["maps"]:
            if not isinstance(map_data, dict):
                raise ImportFormatError("Each imported map must be an object")
            outcome = self._import_map(map_data, resolution)
            result[outcome] += 1

        self._track(
            events.DATA_IMPORTED,
            conflict_resolution=resolution.value,
            **result,
        )
        return result

    def _import_map(self, map_data: dict, resolution: ConflictResolution) -> str:
        _check_map_shape(map_data)
        map_id = map_data.get("id")
        existing = self.repository.get_map(map_id) if map_id else None

        if existing is not None and resolution == ConflictResolution.KEEP:
            return "kept"

        try:
            if existing is None or resolution == ConflictResolution.REPLACE:
                if existing is None and len(self.repository.list_maps()) >= self.max_maps:
                    raise MapLimitError(self.max_maps)
                created_by = existing.created_by if existing else self.user.uid
                stakeholder_map = StakeholderMap.from_dict(
                    {**map_data, "createdBy": created_by},
                    max_stakeholders=self.max_stakeholders,
                    max_interactions=self.max_interactions,
                )
                outcome = "created" if existing is None else "replaced"
            else:
                self._merge_map(existing, map_data)
                stakeholder_map, outcome = existing, "merged"
        except (DaciteError, TypeError) as exc:
            raise ImportFormatError(f"Invalid map data: {exc}") from exc

        self.repository.save_map(stakeholder_map)
        return outcome

    def _merge_map(self, stakeholder_map: StakeholderMap, map_data: dict) -> None:
        stakeholder_map.max_stakeholders = self.max_stakeholders
        stakeholder_map.max_interactions = self.max_interactions
        map_only = {k: v for k, v in map_data.items() if k != "stakeholders"}
        stakeholder_map.update(map_only)

        for stakeholder_data in map_data.get("stakeholders") or []:
            children = ("interactions", "documents")
            stakeholder_only = {
                k: v for k, v in stakeholder_data.items() if k not in children
            }
            existing = stakeholder_map.get_stakeholder(stakeholder_data.get("id"))
            if existing is not None:
                existing.max_interactions = self.max_interactions
                existing.update(stakeholder_only)
                stakeholder = existing
            else:
                stakeholder = stakeholder_map.add_stakeholder(stakeholder_only)

            for interaction in stakeholder_data.get("interactions") or []:
                stakeholder.upsert_interaction(interaction)
            for document in stakeholder_data.get("documents") or []:
                stakeholder.upsert_document(document)

    # Cleanup

    def clear_cloud_data(self) -> int:
        """Delete every map (with its stakeholders and interactions) for the user."""
        if self.user.is_guest or self.repository.is_local:
            raise AuthError("User not authenticated")
        deleted = 0
        for stakeholder_map in self.repository.list_maps():
            if self.repository.delete_map(stakeholder_map.id):
                deleted += 1
        logger.info("Cleared %d maps for %s", deleted, self.user.uid)
        self._track(events.CLOUD_DATA_CLEARED, maps_count=deleted)
        return deleted


def _check_map_shape(map_data: dict) -> None:
    """Reject nested stakeholders, interactions or documents that are not objects."""
    stakeholders = map_data.get("stakeholders")
    if stakeholders is None:
        return
    if not isinstance(stakeholders, list):
        raise ImportFormatError("Map stakeholders must be a list")
    for stakeholder in stakeholders:
        if not isinstance(stakeholder, dict):
            raise ImportFormatError("Each imported stakeholder must be an object")
        for field in ("interactions", "documents"):
            items = stakeholder.get(field)
            if items is None:
                continue
            if not isinstance(items, list) or not all(
                isinstance(item, dict) for item in items
            ):
                raise ImportFormatError(f"Stakeholder {field} must be a list of objects")
