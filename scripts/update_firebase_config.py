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

"""Pushes Firebase settings from ``.env.<environment>`` to the Firebase project.

Usage:
    python scripts/update_firebase_config.py development|production
        [--dry-run] [--no-confirm] [--ci]
"""

import argparse
import json
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]

ENVIRONMENT_ALIASES = {
    "dev": "development",
    "development": "development",
    "prd": "production",
    "production": "production",
}

FIREBASE_CONFIG_VARS = (
    "FIREBASE_API_KEY",
    "FIREBASE_AUTH_DOMAIN",
    "FIREBASE_PROJECT_ID",
    "FIREBASE_STORAGE_BUCKET",
    "FIREBASE_MESSAGING_SENDER_ID",
    "FIREBASE_APP_ID",
    "FIREBASE_MEASUREMENT_ID",
    "USE_EMULATORS",
)
REQUIRED_VARS = ("FIREBASE_API_KEY", "FIREBASE_AUTH_DOMAIN", "FIREBASE_PROJECT_ID")
_SENSITIVE_MARKERS = ("KEY", "ID", "SECRET", "TOKEN")


def mask(key: str, value: str) -> str:
    """Shows only the ends of values whose names look sensitive."""
    if any(marker in key.upper() for marker in _SENSITIVE_MARKERS) and len(value) > 6:
        return f"{value[:3]}...{value[-3:]}"
    return value


def missing_vars(values: dict) -> list[str]:
    return [key for key in REQUIRED_VARS if not values.get(key)]


def functions_config(values: dict, environment: str) -> dict[str, str]:
    """Builds the ``functions:config:set`` entries for an environment.

    Client-side Firebase keys stay out of the functions config; only the
    emulator switch and a ``client`` section with environment info go in.
    """
    entries = {}
    for key in FIREBASE_CONFIG_VARS:
        value = values.get(key)
        if not value or key.startswith("FIREBASE_"):
            continue
        entries[key.lower().replace("_", ".")] = value
    entries["client"] = json.dumps(
        {
            "environment": values.get("ENVIRONMENT") or environment.upper(),
            "use_emulators": values.get("USE_EMULATORS") or "false",
        }
    )
    return entries


class FirebaseCli:
    def __init__(self, token: str | None = None, dry_run: bool = False):
        self.token = token
        self.dry_run = dry_run

    def run(self, *args: str) -> str:
        command = ["firebase", *args]
        if self.token:
            command += ["--token", self.token]
        logger.info("Running: firebase %s", " ".join(args))
        if self.dry_run:
            return ""
        result = subprocess.run(command, check=True, capture_output=True, text=True)
        return result.stdout


def update_firebase_config(
    environment: str, values: dict, cli: FirebaseCli
) -> dict[str, str]:
    cli.run("use", environment)
    entries = functions_config(values, environment)
    for key, value in entries.items():
        logger.info("  %s = %s", key, mask(key, value))
        cli.run("functions:config:set", f"{key}={value}")
    return entries


def main() -> int:
    parser = argparse.ArgumentParser(description="Update Firebase config from .env")
    parser.add_argument("environment", choices=sorted(ENVIRONMENT_ALIASES))
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--no-confirm", action="store_true")
    parser.add_argument("--ci", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    environment = ENVIRONMENT_ALIASES[args.environment]
    is_ci = args.ci or os.environ.get("CI") == "true"

    env_file = ROOT / f".env.{environment}"
    if not env_file.exists():
        logger.error("%s not found. Please create it in the project root.", env_file.name)
        return 1
    values = dotenv_values(env_file)
    missing = missing_vars(values)
    if missing:
        logger.error("Missing required variables in %s: %s", env_file.name, ", ".join(missing))
        return 1

    if shutil.which("firebase") is None:
        logger.error("Firebase CLI is not installed (npm install -g firebase-tools)")
        return 1

    if not (is_ci or args.no_confirm or args.dry_run):
        answer = input(f"Update Firebase config for {environment}? (y/n) ")
        if answer.strip().lower() not in ("y", "yes"):
            logger.info("Update cancelled.")
            return 0

    cli = FirebaseCli(token=os.environ.get("FIREBASE_TOKEN"), dry_run=args.dry_run)
    try:
        update_firebase_config(environment, values, cli)
    except subprocess.CalledProcessError as exc:
        logger.error("firebase %s failed: %s", " ".join(exc.cmd[1:2]), exc.stderr)
        return 1
    logger.info("Firebase configuration updated for %s", environment)
    return 0


if __name__ == "__main__":
    sys.exit(main())
