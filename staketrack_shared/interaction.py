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

from staketrack_shared.constants import INTERACTION_NOTES_MAX_LENGTH
from staketrack_shared.json_utils import convert_keys
from staketrack_shared.text import clean_text
from staketrack_shared.time_utils import format_timestamp, parse_timestamp, utc_now
from staketrack_shared.types import InteractionType

_DACITE_CONFIG = Config(
    type_hooks={
        datetime: parse_timestamp,
        InteractionType: InteractionType.parse,
    },
)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Interaction:
    """A logged contact (meeting, call, email, ...) with one stakeholder."""

    id: str = field(default_factory=_new_id)
    date: datetime = field(default_factory=utc_now)
    notes: str = ""
    type: InteractionType = InteractionType.OTHER
    stakeholder_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.id = self.id or _new_id()
        self.notes = clean_text(self.notes, INTERACTION_NOTES_MAX_LENGTH)
        self.type = InteractionType.parse(self.type)
        self.date = parse_timestamp(self.date)

    def update(
        self,
        *,
        notes: Optional[str] = None,
        type: Optional[str] = None,
        date: Any = None,
    ) -> "Interaction":
        """Applies the given changes and refreshes ``updated_at``."""
        if notes is not None:
            self.notes = clean_text(notes, INTERACTION_NOTES_MAX_LENGTH)
        if type is not None:
            self.type = InteractionType.parse(type)
        if date is not None:
            self.date = parse_timestamp(date, self.date)
        self.updated_at = utc_now()
        return self

    def preview(self, word_count: int = 10) -> str:
        words = self.notes.split()
        if len(words) <= word_count:
            return self.notes
        return " ".join(words[:word_count]) + "..."

    def time_elapsed(self, now: Optional[datetime] = None) -> str:
        now = parse_timestamp(now) if now is not None else utc_now()
        seconds = int((now - self.date).total_seconds())
        minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
        if days > 0:
            return "1 day ago" if days == 1 else f"{days} days ago"
        if hours > 0:
            return "1 hour ago" if hours == 1 else f"{hours} hours ago"
        if minutes > 0:
            return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"
        return "Just now"

    def to_dict(self) -> dict:
        return convert_keys(
            {
                "id": self.id,
                "date": format_timestamp(self.date),
                "notes": self.notes,
                "type": self.type.value,
                "stakeholder_id": self.stakeholder_id,
                "created_by": self.created_by,
                "created_at": format_timestamp(self.created_at),
                "updated_at": format_timestamp(self.updated_at),
            },
            "snake_to_camel",
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Interaction":
        payload = convert_keys(dict(data or {}), "camel_to_snake")
        # Older exports stored the note under "text".
        if "notes" not in payload and "text" in payload:
            payload["notes"] = payload["text"]
        payload = {k: v for k, v in payload.items() if v is not None}
        for key in ("notes", "id", "stakeholder_id", "created_by"):
            if key in payload:
                payload[key] = str(payload[key])
        return from_dict(cls, payload, config=_DACITE_CONFIG)
