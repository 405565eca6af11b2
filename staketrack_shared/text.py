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

import math
from typing import Any


def clean_text(value: Any, max_length: int) -> str:
    """Stringifies ``value`` and truncates it; falsy values become ""."""
    if not value:
        return ""
    text = str(value)
    return text[:max_length]


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})


def parse_bool(value: Any) -> bool:
    """Reads flags from imported JSON, where "false" must stay false."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def coerce_score(value: Any, minimum: int, maximum: int, default: int) -> int:
    """Converts a rating to an int in [minimum, maximum].

    Numeric strings are parsed; values round half up and are clamped into
    range. Non-numeric input returns ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or math.isnan(value):
        return default
    if math.isinf(value):
        return maximum if value > 0 else minimum
    rounded = math.floor(value + 0.5)
    return max(minimum, min(maximum, rounded))
