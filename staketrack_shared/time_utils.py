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

from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    """Coerces stored timestamp representations into an aware datetime.

    Accepts datetimes, ISO-8601 strings (a trailing "Z" included), epoch
    seconds or milliseconds, and objects exposing ``to_datetime()`` such as
    Firestore timestamps. Anything else yields ``default`` or now.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return default or utc_now()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Millisecond epochs come from JavaScript clients.
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return default or utc_now()
    if hasattr(value, "to_datetime"):
        return parse_timestamp(value.to_datetime(), default)
    return default or utc_now()


def format_timestamp(value: datetime) -> str:
    return value.isoformat()
