"""
Document store abstraction with Postgres and in-memory implementations.

Maps are stored as whole documents (the serialized StakeholderMap with its
stakeholders and interactions nested inside), keyed by owner and map id.
"""

from __future__ import annotations

import copy
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, Boolean, Column, Float, String, create_engine, func, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class DbClient(Protocol):
    """Interface for database access."""

    def list_maps(self, owner_id: str) -> list[dict]:
        ...

    def get_map(self, owner_id: str, map_id: str) -> Optional[dict]:
        ...

    def save_map(self, owner_id: str, doc: dict) -> dict:
        ...

    def delete_map(self, owner_id: str, map_id: str) -> bool:
        ...

    def get_user_settings(self, user_id: str) -> Optional[dict]:
        ...

    def save_user_settings(self, user_id: str, settings: dict) -> None:
        ...

    def record_event(self, event: "EventRecord") -> None:
        ...

    def count_events(self) -> dict[str, int]:
        ...


@dataclass
class EventRecord:
    name: str
    params: dict = field(default_factory=dict)
    user_id: Optional[str] = None
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "params": self.params,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventRecord":
        return cls(
            name=data["name"],
            params=data.get("params") or {},
            user_id=data.get("user_id"),
            created_at=data.get("created_at") or time.time(),
        )


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.maps: Dict[tuple[str, str], dict] = {}
        self.user_settings: Dict[str, dict] = {}
        self.events: list[EventRecord] = []

    def list_maps(self, owner_id: str) -> list[dict]:
        return [
            copy.deepcopy(doc)
            for (owner, _), doc in self.maps.items()
            if owner == owner_id
        ]

    def get_map(self, owner_id: str, map_id: str) -> Optional[dict]:
        doc = self.maps.get((owner_id, map_id))
        return copy.deepcopy(doc) if doc is not None else None

    def save_map(self, owner_id: str, doc: dict) -> dict:
        self.maps[(owner_id, doc["id"])] = copy.deepcopy(doc)
        return doc

    def delete_map(self, owner_id: str, map_id: str) -> bool:
        return self.maps.pop((owner_id, map_id), None) is not None

    def get_user_settings(self, user_id: str) -> Optional[dict]:
        settings = self.user_settings.get(user_id)
        return copy.deepcopy(settings) if settings is not None else None

    def save_user_settings(self, user_id: str, settings: dict) -> None:
        self.user_settings[user_id] = copy.deepcopy(settings)

    def record_event(self, event: EventRecord) -> None:
        self.events.append(event)

    def count_events(self) -> dict[str, int]:
        return dict(Counter(event.name for event in self.events))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.maps.clear()
        self.user_settings.clear()
        self.events.clear()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def list_maps(self, owner_id: str) -> list[dict]:
        with self.Session() as session:
            stmt = (
                select(MapRow)
                .where(MapRow.owner_id == owner_id)
                .order_by(MapRow.created_at.asc())
            )
            return [row.data for row in session.execute(stmt).scalars().all()]

    def get_map(self, owner_id: str, map_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(MapRow, (owner_id, map_id))
            return row.data if row else None

    def save_map(self, owner_id: str, doc: dict) -> dict:
        now = time.time()
        with self.Session() as session:
            row = session.get(MapRow, (owner_id, doc["id"]))
            if row:
                row.name = doc.get("name", "")
                row.is_archived = bool(doc.get("isArchived"))
                row.data = doc
                row.updated_at = now
            else:
                session.add(
                    MapRow(
                        owner_id=owner_id,
                        map_id=doc["id"],
                        name=doc.get("name", ""),
                        is_archived=bool(doc.get("isArchived")),
                        data=doc,
                        created_at=now,
                        updated_at=now,
                    )
                )
            session.commit()
        return doc

    def delete_map(self, owner_id: str, map_id: str) -> bool:
        with self.Session() as session:
            row = session.get(MapRow, (owner_id, map_id))
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def get_user_settings(self, user_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(UserSettingsRow, user_id)
            return row.settings if row else None

    def save_user_settings(self, user_id: str, settings: dict) -> None:
        with self.Session() as session:
            row = session.get(UserSettingsRow, user_id)
            if row:
                row.settings = settings
                row.updated_at = time.time()
            else:
                session.add(
                    UserSettingsRow(
                        user_id=user_id, settings=settings, updated_at=time.time()
                    )
                )
            session.commit()

    def record_event(self, event: EventRecord) -> None:
        with self.Session() as session:
            session.add(
                EventRow(
                    id=uuid.uuid4().hex,
                    name=event.name,
                    user_id=event.user_id,
                    params=event.params,
                    created_at=event.created_at,
                )
            )
            session.commit()

    def count_events(self) -> dict[str, int]:
        with self.Session() as session:
            stmt = select(EventRow.name, func.count()).group_by(EventRow.name)
            return {name: count for name, count in session.execute(stmt).all()}


Base = declarative_base()


class MapRow(Base):
    __tablename__ = "stakeholder_maps"

    owner_id = Column(String, primary_key=True)
    map_id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    is_archived = Column(Boolean, nullable=False, default=False)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class UserSettingsRow(Base):
    __tablename__ = "user_settings"

    user_id = Column(String, primary_key=True)
    settings = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)


class EventRow(Base):
    __tablename__ = "analytics_events"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=True, index=True)
    params = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
