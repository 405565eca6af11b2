"""
Pydantic schemas for the StakeTrack API.

Request bodies accept camelCase (the web client's format) as well as
snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from staketrack_shared.types import ConflictResolution

Score = Optional[float]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by snake_case name."""
        return self.model_dump(exclude_unset=True)


class MapCreateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    project_name: Optional[str] = None
    project_goals: Optional[str] = None
    project_scope: Optional[str] = None
    view_settings: Optional[dict] = None


class MapUpdateRequest(MapCreateRequest):
    is_archived: Optional[bool] = None


class StakeholderRequest(CamelModel):
    name: Optional[str] = None
    influence: Score = None
    impact: Score = None
    relationship: Score = None
    category: Optional[str] = None
    interests: Optional[str] = None
    contribution: Optional[str] = None
    risk: Optional[str] = None
    communication: Optional[str] = None
    strategy: Optional[str] = None
    measurement: Optional[str] = None


class InteractionCreateRequest(CamelModel):
    notes: str = ""
    # Unknown types are stored as "other".
    type: Optional[str] = None
    date: Optional[datetime] = None


class InteractionUpdateRequest(CamelModel):
    notes: Optional[str] = None
    type: Optional[str] = None
    date: Optional[datetime] = None


class DocumentCreateRequest(CamelModel):
    title: str = ""
    type: Optional[str] = None
    content: str = ""
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    file_url: Optional[str] = None
    date: Optional[datetime] = None


class DocumentUpdateRequest(CamelModel):
    title: Optional[str] = None
    type: Optional[str] = None
    content: Optional[str] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    file_url: Optional[str] = None
    date: Optional[datetime] = None


class DocumentUrlResponse(BaseModel):
    url: str


class ImportRequest(CamelModel):
    data: Any = None
    conflict_resolution: ConflictResolution = ConflictResolution.MERGE


class ImportResponse(BaseModel):
    created: int
    kept: int
    replaced: int
    merged: int


class ClearDataResponse(BaseModel):
    deleted_maps: int


class BackupResponse(BaseModel):
    path: str
    url: str
    maps: int


class StorageInfoResponse(BaseModel):
    keys: int
    bytes: int
    formatted: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    environment: str


class EventCountsResponse(BaseModel):
    counts: dict[str, int] = Field(default_factory=dict)
    total: int = 0
