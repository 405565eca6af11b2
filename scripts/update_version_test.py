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

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from update_version import bump, update_version_file

VERSION_TEMPLATE = '''MAJOR = 1
MINOR = 4
PATCH = 2
BUILD = ""
TIMESTAMP = ""
ENVIRONMENT = "LOCAL"

__version__ = f"{MAJOR}.{MINOR}.{PATCH}"
'''


class UpdateVersionTest(unittest.TestCase):

    def test_bump(self):
        self.assertEqual(bump(1, 4, 2, "major"), (2, 0, 0))
        self.assertEqual(bump(1, 4, 2, "minor"), (1, 5, 0))
        self.assertEqual(bump(1, 4, 2, "patch"), (1, 4, 3))
        with self.assertRaises(ValueError):
            bump(1, 4, 2, "build")

    def test_update_version_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "version.py"
            path.write_text(VERSION_TEMPLATE, encoding="utf-8")
            now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

            version = update_version_file(path, "patch", "abc123", "PRD", now)

            self.assertEqual(version, "1.4.3-abc123")
            content = path.read_text(encoding="utf-8")
            self.assertIn("PATCH = 3\n", content)
            self.assertIn("BUILD = 'abc123'\n", content)
            self.assertIn("TIMESTAMP = '2024-05-01T12:00:00+00:00'\n", content)
            self.assertIn("ENVIRONMENT = 'PRD'\n", content)
            self.assertIn('__version__ = f"{MAJOR}.{MINOR}.{PATCH}"', content)

    def test_unparseable_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "version.py"
            path.write_text("VERSION = '1.0'\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                update_version_file(path)


if __name__ == "__main__":
    unittest.main()
