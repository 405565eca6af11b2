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

from enum import StrEnum


class Category(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    REGULATOR = "regulator"
    PARTNER = "partner"
    COMMUNITY = "community"
    INVESTOR = "investor"
    EMPLOYEE = "employee"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "Category":
        """Returns the matching category, or OTHER for anything unknown."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class Quadrant(StrEnum):
    MANAGE_CLOSELY = "manage-closely"
    KEEP_SATISFIED = "keep-satisfied"
    KEEP_INFORMED = "keep-informed"
    MONITOR = "monitor"


class InteractionType(StrEnum):
    MEETING = "meeting"
    CALL = "call"
    EMAIL = "email"
    SOCIAL = "social"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "InteractionType":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class RelationshipStatus(StrEnum):
    STRONG = "strong"
    NEUTRAL = "neutral"
    WEAK = "weak"


class ConflictResolution(StrEnum):
    """How an import treats a map that already exists."""

    KEEP = "keep"
    REPLACE = "replace"
    MERGE = "merge"


class DocumentType(StrEnum):
    """A stakeholder document is either a written note or an attached file."""

    NOTE = "note"
    FILE = "file"

    @classmethod
    def parse(cls, value) -> "DocumentType":
        try:
            return cls(value)
        except ValueError:
            return cls.NOTE
