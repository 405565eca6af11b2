"""
Firestore-backed document store.

Layout mirrors the hosted web app: ``users/{uid}`` holds the user's
settings, ``users/{uid}/maps/{mapId}`` holds one map document each, and
analytics events land in the top-level ``analytics_events`` collection.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from staketrack.db import EventRecord

USERS_COLLECTION = "users"
MAPS_COLLECTION = "maps"
EVENTS_COLLECTION = "analytics_events"


def get_firebase_app(
    project_id: Optional[str] = None, credentials_path: Optional[str] = None
) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use.

    Without a service-account file, application default credentials apply.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        options = {"projectId": project_id} if project_id else None
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        return firebase_admin.initialize_app(cred, options=options)


class FirestoreDbClient:
    """DbClient implementation on top of ``firebase_admin.firestore``."""

    def __init__(
        self,
        client: Any = None,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
    ):
        if client is None:
            client = firestore.client(app=get_firebase_app(project_id, credentials_path))
        self.client = client

    def _maps(self, owner_id: str):
        return (
            self.client.collection(USERS_COLLECTION)
            .document(owner_id)
            .collection(MAPS_COLLECTION)
        )

    def list_maps(self, owner_id: str) -> list[dict]:
        return [
            {**snapshot.to_dict(), "id": snapshot.id}
            for snapshot in self._maps(owner_id).stream()
        ]

    def get_map(self, owner_id: str, map_id: str) -> Optional[dict]:
        snapshot = self._maps(owner_id).document(map_id).get()
        if not snapshot.exists:
            return None
        return {**snapshot.to_dict(), "id": snapshot.id}

    def save_map(self, owner_id: str, doc: dict) -> dict:
        self._maps(owner_id).document(doc["id"]).set(doc)
        return doc

    def delete_map(self, owner_id: str, map_id: str) -> bool:
        ref = self._maps(owner_id).document(map_id)
        if not ref.get().exists:
            return False
        ref.delete()
        return True

    def get_user_settings(self, user_id: str) -> Optional[dict]:
        snapshot = self.client.collection(USERS_COLLECTION).document(user_id).get()
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get("settings")

    def save_user_settings(self, user_id: str, settings: dict) -> None:
        self.client.collection(USERS_COLLECTION).document(user_id).set(
            {"settings": settings, "lastUpdated": SERVER_TIMESTAMP}, merge=True
        )

    def record_event(self, event: EventRecord) -> None:
        self.client.collection(EVENTS_COLLECTION).add(event.as_dict())

    def count_events(self) -> dict[str, int]:
        names = (
            (snapshot.to_dict() or {}).get("name")
            for snapshot in self.client.collection(EVENTS_COLLECTION).stream()
        )
        return dict(Counter(name for name in names if name))
