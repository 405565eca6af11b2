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

import unittest
from datetime import datetime, timezone

from staketrack_shared.time_utils import parse_timestamp


class ParseTimestampTest(unittest.TestCase):

    def test_iso_strings_and_naive_datetimes_become_utc(self):
        parsed = parse_timestamp("2024-01-02T03:04:05Z")
        self.assertEqual(parsed, datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        naive = parse_timestamp(datetime(2024, 1, 2))
        self.assertEqual(naive.tzinfo, timezone.utc)

    def test_epoch_seconds_and_milliseconds(self):
        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.assertEqual(parse_timestamp(1704067200), expected)
        self.assertEqual(parse_timestamp(1704067200000), expected)

    def test_out_of_range_epoch_falls_back(self):
        default = datetime(2020, 6, 1, tzinfo=timezone.utc)
        for value in (1e20, -1e20, float("inf")):
            self.assertEqual(parse_timestamp(value, default), default)
        self.assertIsNotNone(parse_timestamp(1e20).tzinfo)

    def test_unparseable_values_fall_back(self):
        default = datetime(2020, 6, 1, tzinfo=timezone.utc)
        self.assertEqual(parse_timestamp("yesterday", default), default)
        self.assertEqual(parse_timestamp(True, default), default)
        self.assertEqual(parse_timestamp(None, default), default)


if __name__ == "__main__":
    unittest.main()
