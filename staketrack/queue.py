"""
Queue abstraction for analytics events.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production. Events travel as JSON strings so both
implementations behave the same.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions


class EventQueue(Protocol):
    """Minimal queue interface for handing analytics events to the worker."""

    def enqueue(self, event: dict) -> None:
        ...

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[dict]:
        ...


@dataclass
class InMemoryEventQueue:
    """Simple FIFO queue for testing/dev."""

    items: list[str] = field(default_factory=list)

    def enqueue(self, event: dict) -> None:
        self.items.append(json.dumps(event, default=str))

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[dict]:
        if not self.items:
            return None
        return json.loads(self.items.pop(0))


@dataclass
class RedisEventQueue:
    """Redis-backed queue using list push/pop operations."""

    url: str
    queue_key: str = "staketrack:analytics"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def enqueue(self, event: dict) -> None:
        self.client.rpush(self.queue_key, json.dumps(event, default=str))

    def dequeue(self, *, block: bool = True, timeout: int | None = None) -> Optional[dict]:
        try:
            if block:
                result = self.client.blpop(self.queue_key, timeout=timeout or 0)
                if result is None:
                    return None
                _, raw = result
            else:
                raw = self.client.lpop(self.queue_key)
                if raw is None:
                    return None
            return json.loads(raw)
        except redis_exceptions.ConnectionError:
            # Connection resets can happen on managed Redis. Treat as empty queue
            # and allow the worker loop to retry.
            self.client = redis.Redis.from_url(self.url)
            return None
