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
from datetime import datetime, timedelta, timezone

from staketrack_shared.interaction import Interaction
from staketrack_shared.types import InteractionType


class InteractionTest(unittest.TestCase):

    def test_defaults(self):
        interaction = Interaction()
        self.assertTrue(interaction.id)
        self.assertEqual(interaction.type, InteractionType.OTHER)
        self.assertEqual(interaction.notes, "")
        self.assertIsNotNone(interaction.date.tzinfo)

    def test_unknown_type_and_long_notes(self):
        interaction = Interaction(type="carrier-pigeon", notes="a" * 1500)
        self.assertEqual(interaction.type, InteractionType.OTHER)
        self.assertEqual(len(interaction.notes), 1000)

    def test_update_refreshes_timestamp(self):
        old = datetime(2021, 5, 1, tzinfo=timezone.utc)
        interaction = Interaction(updated_at=old, notes="draft")
        interaction.update(notes="final", type="email")
        self.assertEqual(interaction.notes, "final")
        self.assertEqual(interaction.type, InteractionType.EMAIL)
        self.assertGreater(interaction.updated_at, old)

    def test_preview(self):
        interaction = Interaction(notes="one two three four five")
        self.assertEqual(interaction.preview(3), "one two three...")
        self.assertEqual(interaction.preview(10), "one two three four five")

    def test_time_elapsed(self):
        now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
        cases = [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=1), "1 minute ago"),
            (timedelta(minutes=5), "5 minutes ago"),
            (timedelta(hours=1), "1 hour ago"),
            (timedelta(days=1), "1 day ago"),
            (timedelta(days=4), "4 days ago"),
        ]
        for delta, expected in cases:
            interaction = Interaction(date=now - delta)
            self.assertEqual(interaction.time_elapsed(now), expected)

    def test_time_elapsed_accepts_naive_now(self):
        date = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
        interaction = Interaction(date=date)
        self.assertEqual(
            interaction.time_elapsed(datetime(2024, 3, 10, 12, 0)), "3 hours ago"
        )
        self.assertEqual(
            interaction.time_elapsed("2024-03-12T09:00:00Z"), "2 days ago"
        )

    def test_from_dict_accepts_camel_case_and_legacy_text(self):
        interaction = Interaction.from_dict(
            {
                "id": "i-1",
                "date": "2024-01-02T03:04:05Z",
                "text": "Met at the fair",
                "type": "meeting",
                "stakeholderId": "s-1",
                "createdBy": "u-1",
            }
        )
        self.assertEqual(interaction.id, "i-1")
        self.assertEqual(interaction.notes, "Met at the fair")
        self.assertEqual(interaction.type, InteractionType.MEETING)
        self.assertEqual(interaction.stakeholder_id, "s-1")
        self.assertEqual(interaction.date.year, 2024)
        self.assertEqual(interaction.to_dict()["stakeholderId"], "s-1")


if __name__ == "__main__":
    unittest.main()
