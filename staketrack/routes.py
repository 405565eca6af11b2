"""
HTTP routes for the StakeTrack API.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Header, Query, Request, Response

from staketrack.auth import ADMIN_ROLE, CurrentUser
from staketrack.config import get_settings
from staketrack.data_service import DataService
from staketrack.db import DbClient
from staketrack.dependencies import (
    get_current_user,
    get_data_service,
    get_db_client,
    get_document_service,
    get_local_storage,
    get_settings_service,
    get_stakeholder_service,
    get_storage_client,
    require_role,
    require_user,
)
from staketrack.document_service import DocumentService
from staketrack.local_storage import LocalStorage, storage_info
from staketrack.schemas import (
    BackupResponse,
    ClearDataResponse,
    DocumentCreateRequest,
    DocumentUpdateRequest,
    DocumentUrlResponse,
    EventCountsResponse,
    HealthResponse,
    ImportRequest,
    ImportResponse,
    InteractionCreateRequest,
    InteractionUpdateRequest,
    MapCreateRequest,
    MapUpdateRequest,
    StakeholderRequest,
    StorageInfoResponse,
)
from staketrack.settings_service import SettingsService
from staketrack.stakeholder_service import StakeholderService
from staketrack.storage import StorageClient
from staketrack.version import version_info

logger = logging.getLogger(__name__)

router = APIRouter()


def _csv_response(filename: str, content: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", environment=get_settings().environment)


@router.get("/config")
def client_config():
    """Public Firebase/client configuration for the web app."""
    return get_settings().public_client_config()


@router.get("/version")
def version():
    return version_info()


# Maps


@router.get("/maps")
def list_maps(
    include_archived: bool = Query(False),
    service: StakeholderService = Depends(get_stakeholder_service),
):
    maps = service.list_maps(include_archived=include_archived)
    return [m.to_dict(include_stakeholders=False) for m in maps]


@router.post("/maps", status_code=201)
def create_map(
    payload: MapCreateRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    return service.create_map(payload.changes()).to_dict()


@router.get("/maps/{map_id}")
def get_map(
    map_id: str, service: StakeholderService = Depends(get_stakeholder_service)
):
    return service.get_map(map_id).to_dict()


@router.patch("/maps/{map_id}")
def update_map(
    map_id: str,
    payload: MapUpdateRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    return service.update_map(map_id, payload.changes()).to_dict()


@router.delete("/maps/{map_id}", status_code=204)
def delete_map(
    map_id: str, service: StakeholderService = Depends(get_stakeholder_service)
):
    service.delete_map(map_id)
    return Response(status_code=204)


@router.get("/maps/{map_id}/matrix")
def map_matrix(
    map_id: str, service: StakeholderService = Depends(get_stakeholder_service)
):
    """Stakeholders grouped by influence/impact quadrant."""
    return {
        quadrant: [s.to_dict() for s in stakeholders]
        for quadrant, stakeholders in service.matrix(map_id).items()
    }


@router.get("/maps/{map_id}/categories")
def map_categories(
    map_id: str, service: StakeholderService = Depends(get_stakeholder_service)
):
    return {
        category: [s.to_dict() for s in stakeholders]
        for category, stakeholders in service.categories(map_id).items()
    }


# Stakeholders


@router.get("/maps/{map_id}/stakeholders")
def list_stakeholders(
    map_id: str,
    sort_by: Optional[str] = Query(None),
    sort_direction: Optional[Literal["asc", "desc"]] = Query(None),
    filter_category: Optional[str] = Query(None),
    filter_quadrant: Optional[str] = Query(None),
    service: StakeholderService = Depends(get_stakeholder_service),
):
    view_settings = {
        key: value
        for key, value in (
            ("sortBy", sort_by),
            ("sortDirection", sort_direction),
            ("filterCategory", filter_category),
            ("filterQuadrant", filter_quadrant),
        )
        if value is not None
    }
    stakeholders = service.list_stakeholders(map_id, view_settings)
    return [s.to_dict() for s in stakeholders]


@router.post("/maps/{map_id}/stakeholders", status_code=201)
def add_stakeholder(
    map_id: str,
    payload: StakeholderRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    return service.add_stakeholder(map_id, payload.changes()).to_dict()


@router.get("/maps/{map_id}/stakeholders/{stakeholder_id}")
def get_stakeholder(
    map_id: str,
    stakeholder_id: str,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    return service.get_stakeholder(map_id, stakeholder_id).to_dict()


@router.patch("/maps/{map_id}/stakeholders/{stakeholder_id}")
def update_stakeholder(
    map_id: str,
    stakeholder_id: str,
    payload: StakeholderRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    updated = service.update_stakeholder(map_id, stakeholder_id, payload.changes())
    return updated.to_dict()


@router.delete("/maps/{map_id}/stakeholders/{stakeholder_id}", status_code=204)
def remove_stakeholder(
    map_id: str,
    stakeholder_id: str,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    service.remove_stakeholder(map_id, stakeholder_id)
    return Response(status_code=204)


# Interactions


@router.get("/maps/{map_id}/stakeholders/{stakeholder_id}/interactions")
def list_interactions(
    map_id: str,
    stakeholder_id: str,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    """Interactions for a stakeholder, newest first."""
    return [
        i.to_dict() for i in service.list_interactions(map_id, stakeholder_id)
    ]


@router.post(
    "/maps/{map_id}/stakeholders/{stakeholder_id}/interactions", status_code=201
)
def add_interaction(
    map_id: str,
    stakeholder_id: str,
    payload: InteractionCreateRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    data = payload.model_dump(exclude_none=True)
    return service.add_interaction(map_id, stakeholder_id, data).to_dict()


@router.patch(
    "/maps/{map_id}/stakeholders/{stakeholder_id}/interactions/{interaction_id}"
)
def update_interaction(
    map_id: str,
    stakeholder_id: str,
    interaction_id: str,
    payload: InteractionUpdateRequest,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    updated = service.update_interaction(
        map_id, stakeholder_id, interaction_id, payload.changes()
    )
    return updated.to_dict()


@router.delete(
    "/maps/{map_id}/stakeholders/{stakeholder_id}/interactions/{interaction_id}",
    status_code=204,
)
def delete_interaction(
    map_id: str,
    stakeholder_id: str,
    interaction_id: str,
    service: StakeholderService = Depends(get_stakeholder_service),
):
    service.delete_interaction(map_id, stakeholder_id, interaction_id)
    return Response(status_code=204)


# Documents

DOCUMENTS_PATH = "/maps/{map_id}/stakeholders/{stakeholder_id}/documents"


@router.get(DOCUMENTS_PATH)
def list_documents(
    map_id: str,
    stakeholder_id: str,
    service: DocumentService = Depends(get_document_service),
):
    return [d.to_dict() for d in service.list_documents(map_id, stakeholder_id)]


@router.post(DOCUMENTS_PATH, status_code=201)
def add_document(
    map_id: str,
    stakeholder_id: str,
    payload: DocumentCreateRequest,
    service: DocumentService = Depends(get_document_service),
):
    """Add a note or file entry.

    File entries come back with an ``uploadUrl`` to PUT the contents to.
    """
    data = payload.model_dump(exclude_none=True)
    document, upload_url = service.add_document(map_id, stakeholder_id, data)
    body = document.to_dict()
    if upload_url:
        body["uploadUrl"] = upload_url
    return body


@router.get(DOCUMENTS_PATH + "/{document_id}")
def get_document(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
):
    return service.get_document(map_id, stakeholder_id, document_id).to_dict()


@router.patch(DOCUMENTS_PATH + "/{document_id}")
def update_document(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    payload: DocumentUpdateRequest,
    service: DocumentService = Depends(get_document_service),
):
    updated = service.update_document(
        map_id, stakeholder_id, document_id, payload.changes()
    )
    return updated.to_dict()


@router.delete(DOCUMENTS_PATH + "/{document_id}", status_code=204)
def delete_document(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
):
    service.delete_document(map_id, stakeholder_id, document_id)
    return Response(status_code=204)


@router.get(DOCUMENTS_PATH + "/{document_id}/url", response_model=DocumentUrlResponse)
def document_url(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
):
    url = service.get_document_url(map_id, stakeholder_id, document_id)
    return DocumentUrlResponse(url=url)


@router.put(DOCUMENTS_PATH + "/{document_id}/content")
async def upload_document_content(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    request: Request,
    content_type: Optional[str] = Header(None),
    service: DocumentService = Depends(get_document_service),
):
    data = await request.body()
    document = service.upload_content(
        map_id, stakeholder_id, document_id, data, content_type
    )
    return document.to_dict()


@router.get(DOCUMENTS_PATH + "/{document_id}/content")
def download_document_content(
    map_id: str,
    stakeholder_id: str,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
):
    document, data = service.download_content(map_id, stakeholder_id, document_id)
    filename = document.file_name or document.id
    return Response(
        content=data,
        media_type=document.content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# Import / export


@router.get("/export")
def export_data(
    include_stakeholders: bool = Query(True),
    include_interactions: bool = Query(True),
    include_documents: bool = Query(True),
    service: DataService = Depends(get_data_service),
):
    return service.export_data(
        include_stakeholders=include_stakeholders,
        include_interactions=include_interactions,
        include_documents=include_documents,
    )


@router.post("/import", response_model=ImportResponse)
def import_data(
    payload: ImportRequest,
    service: DataService = Depends(get_data_service),
):
    result = service.import_data(payload.data, payload.conflict_resolution)
    return ImportResponse(**result)


@router.get("/maps/{map_id}/export.csv")
def export_map_csv(map_id: str, service: DataService = Depends(get_data_service)):
    filename, content = service.export_map_csv(map_id)
    return _csv_response(filename, content)


@router.get("/maps/{map_id}/stakeholders/{stakeholder_id}/interactions.csv")
def export_interactions_csv(
    map_id: str,
    stakeholder_id: str,
    service: DataService = Depends(get_data_service),
):
    filename, content = service.export_interactions_csv(map_id, stakeholder_id)
    return _csv_response(filename, content)


@router.delete("/data", response_model=ClearDataResponse)
def clear_cloud_data(
    user: CurrentUser = Depends(require_user),
    service: DataService = Depends(get_data_service),
):
    deleted = service.clear_cloud_data()
    logger.info("User %s cleared cloud data (%d maps)", user.uid, deleted)
    return ClearDataResponse(deleted_maps=deleted)


@router.post("/backup", response_model=BackupResponse)
def backup(
    expires_in: int = Query(3600, ge=60, le=86400),
    user: CurrentUser = Depends(require_user),
    service: DataService = Depends(get_data_service),
    storage: StorageClient = Depends(get_storage_client),
):
    return BackupResponse(**service.backup_to_storage(storage, expires_in=expires_in))


@router.get("/storage", response_model=StorageInfoResponse)
def local_storage_info(
    user: CurrentUser = Depends(get_current_user),
    local_storage: LocalStorage = Depends(get_local_storage),
):
    """How much the caller keeps in local (guest) storage."""
    return StorageInfoResponse(**storage_info(local_storage, user.uid))


# Settings


@router.get("/settings")
def get_user_settings(service: SettingsService = Depends(get_settings_service)):
    return service.get_settings()


@router.patch("/settings")
def update_user_settings(
    changes: dict = Body(...),
    service: SettingsService = Depends(get_settings_service),
):
    return service.update_settings(changes)


# Admin


@router.get("/admin/events", response_model=EventCountsResponse)
def event_counts(
    user: CurrentUser = Depends(require_role(ADMIN_ROLE)),
    db: DbClient = Depends(get_db_client),
):
    counts = db.count_events()
    return EventCountsResponse(counts=counts, total=sum(counts.values()))
