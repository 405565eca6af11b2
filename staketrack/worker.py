"""
Worker loop that drains the analytics queue into the document store.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from staketrack.config import get_settings
from staketrack.db import DbClient, EventRecord
from staketrack.dependencies import get_db_client, get_event_queue
from staketrack.logging_utils import configure_logging
from staketrack.queue import EventQueue

logger = logging.getLogger(__name__)


def process_next(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[EventQueue] = None,
    block: bool = True,
    timeout: int = 5,
) -> bool:
    """
    Persist one queued event. Returns True when an event was consumed.
    """
    db = db or get_db_client()
    queue = queue or get_event_queue()

    payload = queue.dequeue(block=block, timeout=timeout)
    if payload is None:
        return False

    try:
        event = EventRecord.from_dict(payload)
    except (KeyError, TypeError):
        logger.warning("Discarding malformed analytics event: %r", payload)
        return True

    db.record_event(event)
    logger.debug("Recorded analytics event %s", event.name)
    return True


def run_worker(poll_interval: float = 1.0, max_events: Optional[int] = None) -> int:
    """Run until ``max_events`` events are handled (forever when None)."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Analytics worker started (queue=%s)", settings.analytics_queue_key)

    handled = 0
    while max_events is None or handled < max_events:
        try:
            processed = process_next(block=True, timeout=int(max(poll_interval, 1)))
        except Exception:
            logger.exception("Failed to record analytics event")
            time.sleep(poll_interval)
            continue
        if processed:
            handled += 1
        else:
            time.sleep(poll_interval)
    return handled


if __name__ == "__main__":
    run_worker()
