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


class StakeTrackError(Exception):
    """Base class for domain errors raised by StakeTrack."""


class NotFoundError(StakeTrackError, LookupError):
    """Raised when a map, stakeholder or interaction does not exist."""


class LimitExceededError(StakeTrackError):
    """Raised when a collection would grow past its configured maximum."""

    def __init__(self, kind: str, limit: int):
        self.kind = kind
        self.limit = limit
        super().__init__(f"Cannot add more than {limit} {kind}")


class StakeholderLimitError(LimitExceededError):
    def __init__(self, limit: int):
        super().__init__("stakeholders to a map", limit)


class InteractionLimitError(LimitExceededError):
    def __init__(self, limit: int):
        super().__init__("interactions to a stakeholder", limit)


class MapLimitError(LimitExceededError):
    def __init__(self, limit: int):
        super().__init__("maps per user", limit)


class ImportFormatError(StakeTrackError, ValueError):
    """Raised when imported data does not look like an export."""


class AuthError(StakeTrackError):
    """Raised when a request needs an authenticated user and has none."""
