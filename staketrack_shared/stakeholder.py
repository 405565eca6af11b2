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
from datetime import datetime
from typing import Any, Optional

from staketrack_shared.constants import (
    DEFAULT_STAKEHOLDER_NAME,
    MAX_INTERACTIONS_PER_STAKEHOLDER,
    QUADRANT_HIGH_THRESHOLD,
    RELATIONSHIP_NEUTRAL_MIN,
    RELATIONSHIP_STRONG_MIN,
    SCORE_DEFAULT,
    SCORE_MAX,
    SCORE_MIN,
    STAKEHOLDER_NAME_MAX_LENGTH,
    STAKEHOLDER_TEXT_FIELDS,
    STAKEHOLDER_TEXT_MAX_LENGTH,
)
from staketrack_shared.document import Document
from staketrack_shared.errors import InteractionLimitError
from staketrack_shared.interaction import Interaction
from staketrack_shared.json_utils import convert_keys
from staketrack_shared.text import clean_text, coerce_score
from staketrack_shared.time_utils import format_timestamp, parse_timestamp, utc_now
from staketrack_shared.types import Category, Quadrant, RelationshipStatus

# Attributes callers may change through ``update``.
EDITABLE_FIELDS = (
    "name",
    "influence",
    "impact",
    "relationship",
    "category",
) + STAKEHOLDER_TEXT_FIELDS


def _score(value: Any, current: int = SCORE_DEFAULT) -> int:
    return coerce_score(value, SCORE_MIN, SCORE_MAX, current)


def quadrant_for(influence: int, impact: int) -> Quadrant:
    """Classifies an influence/impact pair into its engagement quadrant."""
    high_influence = influence >= QUADRANT_HIGH_THRESHOLD
    high_impact = impact >= QUADRANT_HIGH_THRESHOLD
    if high_influence and high_impact:
        return Quadrant.MANAGE_CLOSELY
    if high_influence:
        return Quadrant.KEEP_SATISFIED
    if high_impact:
        return Quadrant.KEEP_INFORMED
    return Quadrant.MONITOR


class Stakeholder:
    """A person or organisation tracked on a stakeholder map.

    Scores are kept as integers in 1..10 and every assignment goes through
    the same validation as construction. Any mutation refreshes
    ``updated_at``.
    """

    def __init__(
        self,
        *,
        id: Optional[str] = None,
        map_id: Optional[str] = None,
        name: Any = "",
        influence: Any = SCORE_DEFAULT,
        impact: Any = SCORE_DEFAULT,
        relationship: Any = SCORE_DEFAULT,
        category: Any = Category.OTHER,
        interests: Any = "",
        contribution: Any = "",
        risk: Any = "",
        communication: Any = "",
        strategy: Any = "",
        measurement: Any = "",
        interactions: Optional[list] = None,
        documents: Optional[list] = None,
        created_at: Any = None,
        updated_at: Any = None,
        created_by: Optional[str] = None,
        max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER,
    ):
        self._id = id or str(uuid.uuid4())
        self._map_id = map_id
        self._name = clean_text(name, STAKEHOLDER_NAME_MAX_LENGTH)
        self._influence = _score(influence)
        self._impact = _score(impact)
        self._relationship = _score(relationship)
        self._category = Category.parse(category)
        self._interests = clean_text(interests, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._contribution = clean_text(contribution, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._risk = clean_text(risk, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._communication = clean_text(communication, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._strategy = clean_text(strategy, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._measurement = clean_text(measurement, STAKEHOLDER_TEXT_MAX_LENGTH)
        self.max_interactions = max_interactions
        self._interactions: list[Interaction] = [
            self._bind(item) for item in (interactions or [])
        ]
        if len(self._interactions) > max_interactions:
            raise InteractionLimitError(max_interactions)
        self._documents: list[Document] = [
            self._bind_document(item) for item in (documents or [])
        ]
        self._created_at = parse_timestamp(created_at)
        self._updated_at = parse_timestamp(updated_at)
        self._created_by = created_by

    def __repr__(self) -> str:
        return (
            f"Stakeholder(id={self._id!r}, name={self._name!r}, "
            f"quadrant={self.quadrant.value!r})"
        )

    # Read-only identity and metadata.

    @property
    def id(self) -> str:
        return self._id

    @property
    def map_id(self) -> Optional[str]:
        return self._map_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def created_by(self) -> Optional[str]:
        return self._created_by

    @property
    def interactions(self) -> list[Interaction]:
        return list(self._interactions)

    @property
    def documents(self) -> list[Document]:
        return list(self._documents)

    # Validated attributes.

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: Any) -> None:
        self._name = clean_text(value, STAKEHOLDER_NAME_MAX_LENGTH)
        self._touch()

    @property
    def influence(self) -> int:
        return self._influence

    @influence.setter
    def influence(self, value: Any) -> None:
        self._influence = _score(value, self._influence)
        self._touch()

    @property
    def impact(self) -> int:
        return self._impact

    @impact.setter
    def impact(self, value: Any) -> None:
        self._impact = _score(value, self._impact)
        self._touch()

    @property
    def relationship(self) -> int:
        return self._relationship

    @relationship.setter
    def relationship(self, value: Any) -> None:
        self._relationship = _score(value, self._relationship)
        self._touch()

    @property
    def category(self) -> Category:
        return self._category

    @category.setter
    def category(self, value: Any) -> None:
        self._category = Category.parse(value)
        self._touch()

    @property
    def interests(self) -> str:
        return self._interests

    @interests.setter
    def interests(self, value: Any) -> None:
        self._interests = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    @property
    def contribution(self) -> str:
        return self._contribution

    @contribution.setter
    def contribution(self, value: Any) -> None:
        self._contribution = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    @property
    def risk(self) -> str:
        return self._risk

    @risk.setter
    def risk(self, value: Any) -> None:
        self._risk = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    @property
    def communication(self) -> str:
        return self._communication

    @communication.setter
    def communication(self, value: Any) -> None:
        self._communication = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    @property
    def strategy(self) -> str:
        return self._strategy

    @strategy.setter
    def strategy(self, value: Any) -> None:
        self._strategy = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    @property
    def measurement(self) -> str:
        return self._measurement

    @measurement.setter
    def measurement(self, value: Any) -> None:
        self._measurement = clean_text(value, STAKEHOLDER_TEXT_MAX_LENGTH)
        self._touch()

    # Derived attributes.

    @property
    def quadrant(self) -> Quadrant:
        return quadrant_for(self._influence, self._impact)

    @property
    def relationship_status(self) -> RelationshipStatus:
        if self._relationship >= RELATIONSHIP_STRONG_MIN:
            return RelationshipStatus.STRONG
        if self._relationship >= RELATIONSHIP_NEUTRAL_MIN:
            return RelationshipStatus.NEUTRAL
        return RelationshipStatus.WEAK

    # Mutations.

    def update(self, updates: dict) -> "Stakeholder":
        """Applies editable fields from ``updates``; other keys are ignored."""
        for key, value in convert_keys(dict(updates), "camel_to_snake").items():
            if key in EDITABLE_FIELDS:
                setattr(self, key, value)
        return self

    def attach_to_map(self, map_id: str) -> None:
        self._map_id = map_id

    def add_interaction(self, interaction: "Interaction | dict") -> Interaction:
        if len(self._interactions) >= self.max_interactions:
            raise InteractionLimitError(self.max_interactions)
        bound = self._bind(interaction)
        self._interactions.append(bound)
        self._touch()
        return bound

    def get_interaction(self, interaction_id: str) -> Optional[Interaction]:
        for interaction in self._interactions:
            if interaction.id == interaction_id:
                return interaction
        return None

    def update_interaction(
        self, interaction_id: str, changes: dict
    ) -> Optional[Interaction]:
        interaction = self.get_interaction(interaction_id)
        if interaction is None:
            return None
        interaction.update(
            notes=changes.get("notes"),
            type=changes.get("type"),
            date=changes.get("date"),
        )
        self._touch()
        return interaction

    def upsert_interaction(self, data: dict) -> Interaction:
        """Replaces the interaction with the same id, or appends a new one."""
        incoming = self._bind(data)
        for index, existing in enumerate(self._interactions):
            if existing.id == incoming.id:
                self._interactions[index] = incoming
                self._touch()
                return incoming
        return self.add_interaction(incoming)

    def remove_interaction(self, interaction_id: str) -> bool:
        before = len(self._interactions)
        self._interactions = [i for i in self._interactions if i.id != interaction_id]
        if len(self._interactions) != before:
            self._touch()
            return True
        return False

    def latest_interactions(self, limit: Optional[int] = None) -> list[Interaction]:
        ordered = sorted(self._interactions, key=lambda i: i.date, reverse=True)
        return ordered if limit is None else ordered[:limit]

    # Documents.

    def add_document(self, document: "Document | dict") -> Document:
        bound = self._bind_document(document)
        self._documents.append(bound)
        self._touch()
        return bound

    def get_document(self, document_id: str) -> Optional[Document]:
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def update_document(self, document_id: str, changes: dict) -> Optional[Document]:
        document = self.get_document(document_id)
        if document is None:
            return None
        document.update(changes)
        self._touch()
        return document

    def upsert_document(self, data: dict) -> Document:
        incoming = self._bind_document(data)
        for index, existing in enumerate(self._documents):
            if existing.id == incoming.id:
                self._documents[index] = incoming
                self._touch()
                return incoming
        return self.add_document(incoming)

    def remove_document(self, document_id: str) -> Optional[Document]:
        document = self.get_document(document_id)
        if document is not None:
            self._documents.remove(document)
            self._touch()
        return document

    def latest_documents(self) -> list[Document]:
        return sorted(self._documents, key=lambda d: d.date, reverse=True)

    # Serialization.

    def to_dict(self) -> dict:
        payload = {
            "id": self._id,
            "map_id": self._map_id,
            "name": self._name,
            "influence": self._influence,
            "impact": self._impact,
            "relationship": self._relationship,
            "category": self._category.value,
            "quadrant": self.quadrant.value,
            "created_at": format_timestamp(self._created_at),
            "updated_at": format_timestamp(self._updated_at),
            "created_by": self._created_by,
        }
        for key in STAKEHOLDER_TEXT_FIELDS:
            payload[key] = getattr(self, key)
        payload = convert_keys(payload, "snake_to_camel")
        payload["interactions"] = [i.to_dict() for i in self._interactions]
        payload["documents"] = [d.to_dict() for d in self._documents]
        return payload

    @classmethod
    def from_dict(
        cls, data: dict, max_interactions: int = MAX_INTERACTIONS_PER_STAKEHOLDER
    ) -> "Stakeholder":
        payload = convert_keys(dict(data or {}), "camel_to_snake")
        interactions = (data or {}).get("interactions")
        documents = (data or {}).get("documents")
        kwargs = {
            key: payload[key]
            for key in (
                "id",
                "map_id",
                "name",
                "influence",
                "impact",
                "relationship",
                "category",
                "created_at",
                "updated_at",
                "created_by",
            )
            + STAKEHOLDER_TEXT_FIELDS
            if payload.get(key) is not None
        }
        kwargs["interactions"] = interactions if isinstance(interactions, list) else []
        kwargs["documents"] = documents if isinstance(documents, list) else []
        return cls(max_interactions=max_interactions, **kwargs)

    @classmethod
    def create_default(cls, map_id: Optional[str] = None) -> "Stakeholder":
        return cls(map_id=map_id, name=DEFAULT_STAKEHOLDER_NAME)

    def _bind(self, interaction: "Interaction | dict") -> Interaction:
        if not isinstance(interaction, Interaction):
            interaction = Interaction.from_dict(interaction)
        interaction.stakeholder_id = self._id
        return interaction

    def _bind_document(self, document: "Document | dict") -> Document:
        if not isinstance(document, Document):
            document = Document.from_dict(document)
        document.stakeholder_id = self._id
        return document

    def _touch(self) -> None:
        self._updated_at = utc_now()
