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

# Score axes (influence, impact, relationship).
SCORE_MIN = 1
SCORE_MAX = 10
SCORE_DEFAULT = 5
QUADRANT_HIGH_THRESHOLD = 7

# Relationship status bands.
RELATIONSHIP_STRONG_MIN = 7
RELATIONSHIP_NEUTRAL_MIN = 4

# Stakeholder text limits.
STAKEHOLDER_NAME_MAX_LENGTH = 100
STAKEHOLDER_TEXT_MAX_LENGTH = 500
STAKEHOLDER_TEXT_FIELDS = (
    "interests",
    "contribution",
    "risk",
    "communication",
    "strategy",
    "measurement",
)
DEFAULT_STAKEHOLDER_NAME = "New Stakeholder"

# Map text limits.
MAP_NAME_MAX_LENGTH = 100
MAP_DESCRIPTION_MAX_LENGTH = 1000
MAP_PROJECT_NAME_MAX_LENGTH = 200
MAP_PROJECT_GOALS_MAX_LENGTH = 1000
MAP_PROJECT_SCOPE_MAX_LENGTH = 1000
DEFAULT_MAP_NAME = "New Stakeholder Map"
DEFAULT_MAP_SUMMARY_NAME = "New Map"

# Interaction limits.
INTERACTION_NOTES_MAX_LENGTH = 1000

# Document limits.
DOCUMENT_TITLE_MAX_LENGTH = 200
DOCUMENT_CONTENT_MAX_LENGTH = 10000

# Collection limits (overridable through settings).
MAX_STAKEHOLDERS_PER_MAP = 50
MAX_INTERACTIONS_PER_STAKEHOLDER = 50
MAX_MAPS_PER_USER = 20

DEFAULT_VIEW_SETTINGS = {
    "layout": "grid",
    "sortBy": "name",
    "sortDirection": "asc",
    "filterCategory": "all",
    "filterQuadrant": "all",
}

EXPORT_FORMAT_VERSION = "1.0"
