"""
Object storage for backups and stakeholder document files.

Backups are written under ``backups/<uid>/`` and document files under
``users/<uid>/maps/<map>/stakeholders/<stakeholder>/documents/<doc>``.
Clients reach both through presigned URLs; the API also proxies document
uploads and downloads for callers that cannot use them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config

JSON_CONTENT_TYPE = "application/json"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def backup_path(user_id: str, stamp: str) -> str:
    return f"backups/{user_id}/staketrack_backup_{stamp}.json"


def document_path(
    user_id: str, map_id: str, stakeholder_id: str, document_id: str
) -> str:
    return (
        f"users/{user_id}/maps/{map_id}/stakeholders/{stakeholder_id}"
        f"/documents/{document_id}"
    )


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        ...

    def presign_put(
        self, path: str, content_type: str = DEFAULT_CONTENT_TYPE, expires_in: int = 3600
    ) -> str:
        ...

    def upload_json(self, path: str, payload: dict) -> None:
        ...

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE
    ) -> None:
        ...

    def get_bytes(self, path: str) -> bytes:
        """Raises FileNotFoundError when nothing is stored at ``path``."""
        ...

    def delete_object(self, path: str) -> None:
        ...


@dataclass
class StoredObject:
    data: bytes
    content_type: str


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    objects: dict[str, StoredObject] = field(default_factory=dict)

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?op=get&expires={expires_in}"

    def presign_put(
        self, path: str, content_type: str = DEFAULT_CONTENT_TYPE, expires_in: int = 3600
    ) -> str:
        return f"{self.base_url}/{path}?op=put&type={content_type}&expires={expires_in}"

    def upload_json(self, path: str, payload: dict) -> None:
        body = json.dumps(payload, default=str).encode("utf-8")
        self.upload_bytes(path, body, content_type=JSON_CONTENT_TYPE)

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE
    ) -> None:
        self.objects[path] = StoredObject(bytes(data), content_type)

    def get_bytes(self, path: str) -> bytes:
        stored = self.objects.get(path)
        if stored is None:
            raise FileNotFoundError(path)
        return stored.data

    def delete_object(self, path: str) -> None:
        self.objects.pop(path, None)


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (AWS S3, GCS interoperability, MinIO).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        # Empty values fall back to the default boto3 credential chain.
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def presign_put(
        self, path: str, content_type: str = DEFAULT_CONTENT_TYPE, expires_in: int = 3600
    ) -> str:
        # The uploader must send the same Content-Type header.
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={"Bucket": self.bucket, "Key": path, "ContentType": content_type},
            ExpiresIn=expires_in,
        )

    def upload_json(self, path: str, payload: dict) -> None:
        body = json.dumps(payload, default=str).encode("utf-8")
        self.upload_bytes(path, body, content_type=JSON_CONTENT_TYPE)

    def upload_bytes(
        self, path: str, data: bytes, content_type: str = DEFAULT_CONTENT_TYPE
    ) -> None:
        self._client.put_object(
            Bucket=self.bucket, Key=path, Body=data, ContentType=content_type
        )

    def get_bytes(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=path)
        except self._client.exceptions.NoSuchKey as exc:
            raise FileNotFoundError(path) from exc
        return response["Body"].read()

    def delete_object(self, path: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=path)
