"""
Notes and files attached to stakeholders.

Documents are stored on the stakeholder inside its map, like interactions.
File contents live in object storage; signed-in users get presigned upload
and download URLs, or can send the bytes through the API. Guests can keep
notes and links but cannot store files.
"""

from __future__ import annotations

import logging
from typing import Optional

from staketrack import analytics as events
from staketrack.analytics import Analytics
from staketrack.auth import CurrentUser
from staketrack.repositories import MapRepository
from staketrack.storage import DEFAULT_CONTENT_TYPE, StorageClient, document_path
from staketrack_shared.document import Document
from staketrack_shared.errors import AuthError, NotFoundError
from staketrack_shared.stakeholder import Stakeholder
from staketrack_shared.stakeholder_map import StakeholderMap
from staketrack_shared.types import DocumentType

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(
        self,
        repository: MapRepository,
        user: CurrentUser,
        storage: StorageClient,
        analytics: Optional[Analytics] = None,
        *,
        url_expires_in: int = 3600,
    ):
        self.repository = repository
        self.user = user
        self.storage = storage
        self.analytics = analytics or Analytics(None)
        self.url_expires_in = url_expires_in

    def _load(self, map_id: str, stakeholder_id: str) -> tuple[StakeholderMap, Stakeholder]:
        stakeholder_map = self.repository.get_map(map_id)
        if stakeholder_map is None:
            raise NotFoundError(f"Map not found: {map_id}")
        stakeholder = stakeholder_map.get_stakeholder(stakeholder_id)
        if stakeholder is None:
            raise NotFoundError(f"Stakeholder not found: {stakeholder_id}")
        return stakeholder_map, stakeholder

    def _require_document(self, stakeholder: Stakeholder, document_id: str) -> Document:
        document = stakeholder.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return document

    def _require_storage_user(self) -> None:
        if self.user.is_guest:
            raise AuthError("Sign in to store document files")

    def _track(self, name: str, **params) -> None:
        params.setdefault("guest", self.user.is_guest)
        self.analytics.track(name, params, user_id=self.user.uid)

    def list_documents(self, map_id: str, stakeholder_id: str) -> list[Document]:
        """Documents for a stakeholder, newest first."""
        _, stakeholder = self._load(map_id, stakeholder_id)
        return stakeholder.latest_documents()

    def get_document(self, map_id: str, stakeholder_id: str, document_id: str) -> Document:
        _, stakeholder = self._load(map_id, stakeholder_id)
        return self._require_document(stakeholder, document_id)

    def add_document(
        self, map_id: str, stakeholder_id: str, data: dict
    ) -> tuple[Document, Optional[str]]:
        """Add a note or file entry.

        For a file entry, returns a presigned URL the client uploads the
        contents to. Otherwise the URL is None.
        """
        stakeholder_map, stakeholder = self._load(map_id, stakeholder_id)
        payload = {
            k: v for k, v in data.items() if k not in ("id", "storage_path", "storagePath")
        }
        payload.setdefault("created_by", self.user.uid)
        document = Document.from_dict(payload)

        upload_url = None
        if document.type == DocumentType.FILE and not document.file_url:
            self._require_storage_user()
            document.storage_path = document_path(
                self.user.uid, map_id, stakeholder_id, document.id
            )
            upload_url = self.storage.presign_put(
                document.storage_path,
                content_type=document.content_type or DEFAULT_CONTENT_TYPE,
                expires_in=self.url_expires_in,
            )

        added = stakeholder.add_document(document)
        self.repository.save_map(stakeholder_map)
        self._track(
            events.DOCUMENT_ADDED,
            map_id=map_id,
            stakeholder_id=stakeholder_id,
            type=added.type.value,
        )
        return added, upload_url

    def update_document(
        self, map_id: str, stakeholder_id: str, document_id: str, changes: dict
    ) -> Document:
        stakeholder_map, stakeholder = self._load(map_id, stakeholder_id)
        self._require_document(stakeholder, document_id)
        updated = stakeholder.update_document(document_id, changes)
        self.repository.save_map(stakeholder_map)
        return updated

    def delete_document(self, map_id: str, stakeholder_id: str, document_id: str) -> None:
        stakeholder_map, stakeholder = self._load(map_id, stakeholder_id)
        removed = stakeholder.remove_document(document_id)
        if removed is None:
            raise NotFoundError(f"Document not found: {document_id}")
        self.repository.save_map(stakeholder_map)
        if removed.storage_path and not self.user.is_guest:
            self.storage.delete_object(removed.storage_path)
        self._track(
            events.DOCUMENT_REMOVED, map_id=map_id, stakeholder_id=stakeholder_id
        )

    def get_document_url(
        self, map_id: str, stakeholder_id: str, document_id: str
    ) -> str:
        """Download URL: presigned for stored files, else the saved link."""
        document = self.get_document(map_id, stakeholder_id, document_id)
        if document.storage_path and not self.user.is_guest:
            return self.storage.presign_get(
                document.storage_path, expires_in=self.url_expires_in
            )
        if document.file_url:
            return document.file_url
        raise NotFoundError(f"Document has no file: {document_id}")

    def upload_content(
        self,
        map_id: str,
        stakeholder_id: str,
        document_id: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> Document:
        self._require_storage_user()
        stakeholder_map, stakeholder = self._load(map_id, stakeholder_id)
        document = self._require_document(stakeholder, document_id)
        path = document.storage_path or document_path(
            self.user.uid, map_id, stakeholder_id, document_id
        )
        content_type = content_type or document.content_type or DEFAULT_CONTENT_TYPE
        self.storage.upload_bytes(path, data, content_type=content_type)
        document.type = DocumentType.FILE
        document.attach_file(path, content_type, len(data))
        self.repository.save_map(stakeholder_map)
        logger.info("Stored %d bytes for document %s", len(data), document_id)
        return document

    def download_content(
        self, map_id: str, stakeholder_id: str, document_id: str
    ) -> tuple[Document, bytes]:
        self._require_storage_user()
        document = self.get_document(map_id, stakeholder_id, document_id)
        if not document.storage_path:
            raise NotFoundError(f"Document has no stored file: {document_id}")
        try:
            data = self.storage.get_bytes(document.storage_path)
        except FileNotFoundError as exc:
            raise NotFoundError(
                f"Document file has not been uploaded: {document_id}"
            ) from exc
        return document, data
