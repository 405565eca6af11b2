"""
Configuration and settings for the StakeTrack service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from staketrack.version import __version__
from staketrack_shared import constants

# Firebase keys the web client cannot start without.
REQUIRED_FIREBASE_KEYS = (
    "firebase_api_key",
    "firebase_auth_domain",
    "firebase_project_id",
)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: Literal["local", "development", "production"] = Field(
        default="local"
    )
    app_version: str = Field(default=__version__)
    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Document store. Postgres (or any SQLAlchemy URL) when set; Firestore when
    # use_firestore is on; in-memory otherwise.
    database_url: Optional[str] = Field(default=None)
    use_firestore: bool = Field(default=False)

    # Firebase project (auth, Firestore, client config).
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_api_key: Optional[str] = Field(default=None)
    firebase_auth_domain: Optional[str] = Field(default=None)
    firebase_storage_bucket: Optional[str] = Field(default=None)
    firebase_messaging_sender_id: Optional[str] = Field(default=None)
    firebase_app_id: Optional[str] = Field(default=None)
    firebase_measurement_id: Optional[str] = Field(default=None)
    firebase_functions_region: str = Field(default="europe-west1")
    google_application_credentials: Optional[str] = Field(default=None)
    use_emulators: bool = Field(default=False)

    # Development toggles
    auth_disabled: bool = Field(default=False)
    use_in_memory_backends: bool = Field(default=False)

    # Guest-mode storage
    local_storage_dir: str = Field(default="data/local_storage")

    # S3-compatible storage for export backups
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Analytics queue (Redis)
    redis_url: Optional[str] = Field(default=None)
    analytics_queue_key: str = Field(default="staketrack:analytics")

    # Limits
    max_stakeholders_per_map: int = Field(
        default=constants.MAX_STAKEHOLDERS_PER_MAP, ge=1
    )
    max_interactions_per_stakeholder: int = Field(
        default=constants.MAX_INTERACTIONS_PER_STAKEHOLDER, ge=1
    )
    max_maps_per_user: int = Field(default=constants.MAX_MAPS_PER_USER, ge=1)

    @property
    def missing_firebase_keys(self) -> list[str]:
        return [key for key in REQUIRED_FIREBASE_KEYS if not getattr(self, key)]

    def public_client_config(self) -> dict:
        """Return the non-secret configuration served to web clients."""
        return {
            "environment": self.environment,
            "version": self.app_version,
            "configIncomplete": bool(self.missing_firebase_keys),
            "useEmulators": self.use_emulators,
            "firebase": {
                "apiKey": self.firebase_api_key or "",
                "authDomain": self.firebase_auth_domain or "",
                "projectId": self.firebase_project_id or "",
                "storageBucket": self.firebase_storage_bucket or "",
                "messagingSenderId": self.firebase_messaging_sender_id or "",
                "appId": self.firebase_app_id or "",
                "measurementId": self.firebase_measurement_id or "",
                "functionsRegion": self.firebase_functions_region,
            },
            "limits": {
                "maxStakeholdersPerMap": self.max_stakeholders_per_map,
                "maxInteractionsPerStakeholder": self.max_interactions_per_stakeholder,
                "maxMapsPerUser": self.max_maps_per_user,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
