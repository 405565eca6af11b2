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
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from dacite import Config, from_dict

from staketrack_shared.constants import (
    DOCUMENT_CONTENT_MAX_LENGTH,
    DOCUMENT_TITLE_MAX_LENGTH,
)
from staketrack_shared.json_utils import convert_keys
from staketrack_shared.text import clean_text
from staketrack_shared.time_utils import format_timestamp, parse_timestamp, utc_now
from staketrack_shared.types import DocumentType

_DACITE_CONFIG = Config(
    type_hooks={
        datetime: parse_timestamp,
        DocumentType: DocumentType.parse,
    },
)

_STRING_FIELDS = (
    "id",
    "title",
    "content",
    "file_name",
    "content_type",
    "storage_path",
    "file_url",
    "stakeholder_id",
    "created_by",
)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Document:
    """A note or file kept against a stakeholder.

    Notes carry their text in ``content``. Files live in object storage at
    ``storage_path``. ``file_url`` holds an external link, typically from an
    imported export, used when there is no stored object.
    """

    id: str = field(default_factory=_new_id)
    title: str = ""
    type: DocumentType = DocumentType.NOTE
    content: str = ""
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    size: Optional[int] = None
    storage_path: Optional[str] = None
    file_url: Optional[str] = None
    date: datetime = field(default_factory=utc_now)
    stakeholder_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.id = self.id or _new_id()
        self.title = clean_text(self.title, DOCUMENT_TITLE_MAX_LENGTH)
        self.content = clean_text(self.content, DOCUMENT_CONTENT_MAX_LENGTH)
        self.type = DocumentType.parse(self.type)
        self.date = parse_timestamp(self.date)

    @property
    def has_file(self) -> bool:
        return bool(self.storage_path or self.file_url)

    def update(self, changes: dict) -> "Document":
        """Applies title, content, type, date and file metadata changes."""
        changes = convert_keys(dict(changes), "camel_to_snake")
        if changes.get("title") is not None:
            self.title = clean_text(changes["title"], DOCUMENT_TITLE_MAX_LENGTH)
        if changes.get("content") is not None:
            self.content = clean_text(changes["content"], DOCUMENT_CONTENT_MAX_LENGTH)
        if changes.get("type") is not None:
            self.type = DocumentType.parse(changes["type"])
        if changes.get("date") is not None:
            self.date = parse_timestamp(changes["date"], self.date)
        for key in ("file_name", "content_type", "file_url"):
            if changes.get(key) is not None:
                setattr(self, key, str(changes[key]))
        self.updated_at = utc_now()
        return self

    def attach_file(self, storage_path: str, content_type: str, size: int) -> None:
        self.storage_path = storage_path
        self.content_type = content_type
        self.size = size
        self.updated_at = utc_now()

    def to_dict(self) -> dict:
        return convert_keys(
            {
                "id": self.id,
                "title": self.title,
                "type": self.type.value,
                "content": self.content,
                "file_name": self.file_name,
                "content_type": self.content_type,
                "size": self.size,
                "storage_path": self.storage_path,
                "file_url": self.file_url,
                "date": format_timestamp(self.date),
                "stakeholder_id": self.stakeholder_id,
                "created_by": self.created_by,
                "created_at": format_timestamp(self.created_at),
                "updated_at": format_timestamp(self.updated_at),
            },
            "snake_to_camel",
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        payload = convert_keys(dict(data or {}), "camel_to_snake")
        payload = {k: v for k, v in payload.items() if v is not None}
        for key in _STRING_FIELDS:
            if key in payload:
                payload[key] = str(payload[key])
        size: Any = payload.pop("size", None)
        if isinstance(size, int) and not isinstance(size, bool) and size >= 0:
            payload["size"] = size
        return from_dict(cls, payload, config=_DACITE_CONFIG)
