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

"""Runs the analytics worker that moves queued events into the document store."""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from staketrack.worker import run_worker


def main() -> int:
    parser = argparse.ArgumentParser(description="StakeTrack analytics worker")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=1.0,
        help="Seconds to wait when the queue is empty",
    )
    parser.add_argument(
        "--max-events",
        type=int,
        default=None,
        help="Exit after handling this many events",
    )
    args = parser.parse_args()
    run_worker(poll_interval=args.poll_interval, max_events=args.max_events)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
