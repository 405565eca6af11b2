"""
Version information for StakeTrack. Rewritten by scripts/update_version.py.
"""

MAJOR = 1
MINOR = 0
PATCH = 0
BUILD = ""
TIMESTAMP = ""
ENVIRONMENT = "LOCAL"

__version__ = f"{MAJOR}.{MINOR}.{PATCH}"


def version_info() -> dict:
    full = f"{__version__}-{BUILD}" if BUILD else __version__
    return {
        "version": __version__,
        "fullVersion": full,
        "build": BUILD,
        "timestamp": TIMESTAMP,
        "environment": ENVIRONMENT,
    }
