"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException

from staketrack.analytics import Analytics
from staketrack.auth import (
    AuthVerifier,
    CurrentUser,
    DevAuthVerifier,
    FirebaseAuthVerifier,
    parse_bearer,
)
from staketrack.config import Settings, get_settings
from staketrack.data_service import DataService
from staketrack.document_service import DocumentService
from staketrack.db import DbClient, InMemoryDbClient, PostgresDbClient
from staketrack.local_storage import FileLocalStorage, InMemoryLocalStorage, LocalStorage
from staketrack.queue import EventQueue, InMemoryEventQueue, RedisEventQueue
from staketrack.repositories import MapRepository, repository_for
from staketrack.settings_service import SettingsService
from staketrack.stakeholder_service import StakeholderService
from staketrack.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from staketrack_shared.errors import AuthError

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_event_queue: EventQueue | None = None
_local_storage: LocalStorage | None = None
_auth_verifier: AuthVerifier | None = None


def uses_worker_queue(settings: Settings) -> bool:
    """True when analytics go through Redis for the worker to persist."""
    return bool(settings.redis_url) and not settings.use_in_memory_backends


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so maps and settings persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    elif settings.database_url:
        _db_client = PostgresDbClient(settings.database_url)
    elif settings.use_firestore:
        from staketrack.firestore_db import FirestoreDbClient

        _db_client = FirestoreDbClient(
            project_id=settings.firebase_project_id,
            credentials_path=settings.google_application_credentials,
        )
    else:
        _db_client = InMemoryDbClient()
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    return _storage_client


def get_event_queue() -> EventQueue:
    """
    Return a singleton queue for handing analytics events to the worker.
    """
    global _event_queue
    if _event_queue:
        return _event_queue

    settings = get_settings()
    if uses_worker_queue(settings):
        _event_queue = RedisEventQueue(
            url=settings.redis_url,
            queue_key=settings.analytics_queue_key,
        )
    else:
        _event_queue = InMemoryEventQueue()
    return _event_queue


def get_local_storage() -> LocalStorage:
    global _local_storage
    if _local_storage:
        return _local_storage

    settings = get_settings()
    if settings.use_in_memory_backends:
        _local_storage = InMemoryLocalStorage()
    else:
        _local_storage = FileLocalStorage(settings.local_storage_dir)
    return _local_storage


def get_auth_verifier() -> AuthVerifier:
    global _auth_verifier
    if _auth_verifier:
        return _auth_verifier

    settings = get_settings()
    if settings.auth_disabled:
        logger.warning("Authentication is disabled; accepting development tokens")
        _auth_verifier = DevAuthVerifier()
    else:
        from staketrack.firestore_db import get_firebase_app

        _auth_verifier = FirebaseAuthVerifier(
            app=get_firebase_app(
                settings.firebase_project_id, settings.google_application_credentials
            )
        )
    return _auth_verifier


def get_analytics(
    queue: EventQueue = Depends(get_event_queue),
    db: DbClient = Depends(get_db_client),
) -> Analytics:
    if uses_worker_queue(get_settings()):
        return Analytics(queue)
    return Analytics(None, db=db)


def get_current_user(
    authorization: Optional[str] = Header(None),
    x_guest_id: Optional[str] = Header(None),
) -> CurrentUser:
    """
    Resolve the caller. No Authorization header means a guest session whose
    data lives in local storage under ``X-Guest-Id``.
    """
    try:
        token = parse_bearer(authorization)
        if token is None:
            return CurrentUser.guest(x_guest_id)
        return get_auth_verifier().verify(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=401,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_user(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.is_guest:
        raise HTTPException(
            status_code=401,
            detail="User not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(role: str) -> Callable[..., CurrentUser]:
    def dependency(user: CurrentUser = Depends(require_user)) -> CurrentUser:
        if user.role != role:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency


def get_repository(
    user: CurrentUser = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
    local_storage: LocalStorage = Depends(get_local_storage),
) -> MapRepository:
    settings = get_settings()
    return repository_for(
        user,
        db=db,
        local_storage=local_storage,
        max_stakeholders=settings.max_stakeholders_per_map,
        max_interactions=settings.max_interactions_per_stakeholder,
    )


def get_stakeholder_service(
    repository: MapRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user),
    analytics: Analytics = Depends(get_analytics),
) -> StakeholderService:
    settings = get_settings()
    return StakeholderService(
        repository,
        user,
        analytics,
        max_maps=settings.max_maps_per_user,
        max_stakeholders=settings.max_stakeholders_per_map,
        max_interactions=settings.max_interactions_per_stakeholder,
    )


def get_data_service(
    repository: MapRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user),
    analytics: Analytics = Depends(get_analytics),
) -> DataService:
    settings = get_settings()
    return DataService(
        repository,
        user,
        analytics,
        max_maps=settings.max_maps_per_user,
        max_stakeholders=settings.max_stakeholders_per_map,
        max_interactions=settings.max_interactions_per_stakeholder,
    )


def get_document_service(
    repository: MapRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user),
    analytics: Analytics = Depends(get_analytics),
    storage: StorageClient = Depends(get_storage_client),
) -> DocumentService:
    return DocumentService(repository, user, storage, analytics)


def get_settings_service(
    repository: MapRepository = Depends(get_repository),
) -> SettingsService:
    return SettingsService(repository)

