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

"""Bumps the StakeTrack version and stamps build metadata.

Usage:
    python scripts/update_version.py [major|minor|patch] [--build=ID]
"""

import argparse
import logging
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]
VERSION_FILE = ROOT / "staketrack" / "version.py"
PARTS = ("major", "minor", "patch")


def bump(major: int, minor: int, patch: int, part: str) -> tuple[int, int, int]:
    if part == "major":
        return major + 1, 0, 0
    if part == "minor":
        return major, minor + 1, 0
    if part == "patch":
        return major, minor, patch + 1
    raise ValueError(f"Unknown version part: {part}")


def _read_int(content: str, name: str) -> int:
    match = re.search(rf"^{name}\s*=\s*(\d+)", content, re.MULTILINE)
    if not match:
        raise ValueError(f"Could not parse {name} from version file")
    return int(match.group(1))


def _replace(content: str, name: str, value: str) -> str:
    return re.sub(
        rf"^{name}\s*=.*$", f"{name} = {value}", content, count=1, flags=re.MULTILINE
    )


def update_version_file(
    path: Path,
    part: str = "minor",
    build: str = "",
    environment: str = "DEV",
    now: datetime | None = None,
) -> str:
    """Rewrites ``path`` in place and returns the new version string."""
    content = path.read_text(encoding="utf-8")
    major, minor, patch = bump(
        _read_int(content, "MAJOR"),
        _read_int(content, "MINOR"),
        _read_int(content, "PATCH"),
        part,
    )
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    for name, value in (
        ("MAJOR", str(major)),
        ("MINOR", str(minor)),
        ("PATCH", str(patch)),
        ("BUILD", repr(build)),
        ("TIMESTAMP", repr(stamp)),
        ("ENVIRONMENT", repr(environment)),
    ):
        content = _replace(content, name, value)
    path.write_text(content, encoding="utf-8")
    return f"{major}.{minor}.{patch}" + (f"-{build}" if build else "")


def main() -> int:
    parser = argparse.ArgumentParser(description="Bump the StakeTrack version")
    parser.add_argument("part", nargs="?", choices=PARTS, default="minor")
    parser.add_argument("--build", default="", help="Build identifier to stamp")
    parser.add_argument(
        "--file", type=Path, default=VERSION_FILE, help="Version module to rewrite"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    environment = os.environ.get("ENVIRONMENT", "DEV")
    try:
        version = update_version_file(args.file, args.part, args.build, environment)
    except (OSError, ValueError) as exc:
        logger.error("Could not update version file: %s", exc)
        return 1
    logger.info("Version updated to %s for %s environment", version, environment)
    return 0


if __name__ == "__main__":
    sys.exit(main())
