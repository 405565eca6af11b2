"""
Analytics event tracking.

With a Redis queue configured, events are pushed onto it and persisted
later by the worker. Otherwise nothing drains a queue, so events are
recorded straight into the document store. Tracking never fails a user
request: errors are logged and the event is dropped.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from staketrack.db import DbClient, EventRecord
from staketrack.queue import EventQueue

logger = logging.getLogger(__name__)

MAP_CREATED = "map_created"
MAP_UPDATED = "map_updated"
MAP_DELETED = "map_deleted"
STAKEHOLDER_ADDED = "stakeholder_added"
STAKEHOLDER_UPDATED = "stakeholder_updated"
STAKEHOLDER_REMOVED = "stakeholder_removed"
INTERACTION_LOGGED = "interaction_logged"
DOCUMENT_ADDED = "document_added"
DOCUMENT_REMOVED = "document_removed"
MAP_EXPORTED = "map_exported"
INTERACTIONS_EXPORTED = "interactions_exported"
DATA_IMPORTED = "data_imported"
CLOUD_DATA_CLEARED = "cloud_data_cleared"


class Analytics:
    """Producer that enqueues events, or records them directly into ``db``."""

    def __init__(self, queue: Optional[EventQueue], db: Optional[DbClient] = None):
        self.queue = queue
        self.db = db

    def track(
        self, name: str, params: Optional[dict] = None, user_id: Optional[str] = None
    ) -> None:
        if self.queue is None and self.db is None:
            return
        event = EventRecord(
            name=name, params=params or {}, user_id=user_id, created_at=time.time()
        )
        try:
            if self.queue is not None:
                self.queue.enqueue(event.as_dict())
            else:
                self.db.record_event(event)
        except Exception:
            logger.exception("Dropping analytics event %s", name)
