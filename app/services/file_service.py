"""
Tenant media files (gallery images, background music).

Bytes go to a ``BlobStore``; the database keeps only a reference row per file.
Every operation is keyed by tenant id.
"""

import logging
import os
import re
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import func

from app.core.config import settings
from app.core.errors import TenantError, database_error, not_found, validation_error
from app.models import Tenant, TenantFile
from app.services.repositories import SecureRepository, storage_boundary
from app.services.tenant_security import validate_id

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    "image": (".jpg", ".jpeg", ".png", ".gif", ".webp"),
    "music": (".mp3", ".wav", ".ogg", ".m4a"),
}

MAX_NAME_LENGTH = 255


class BlobStore(Protocol):
    def put(self, path: str, content: bytes) -> str:
        """Store ``content`` at ``path`` and return its public URL."""
        ...

    def delete(self, url: str) -> None:
        ...


class LocalBlobStore:
    """Blob store writing under the upload directory"""

    def __init__(self, root: str = None, base_url: str = None):
        self.root = root or settings.UPLOAD_DIR
        self.base_url = (base_url or f"{settings.BASE_URL}/uploads").rstrip("/")

    def put(self, path: str, content: bytes) -> str:
        file_path = os.path.join(self.root, path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)

        with open(file_path, "wb") as f:
            f.write(content)

        return f"{self.base_url}/{path}"

    def delete(self, url: str) -> None:
        if not url.startswith(self.base_url + "/"):
            logger.warning("Refusing to delete blob outside upload root: %s", url)
            return

        file_path = os.path.join(self.root, url[len(self.base_url) + 1:])
        if os.path.exists(file_path):
            os.remove(file_path)


def sanitize_filename(filename: str) -> str:
    name = os.path.basename(filename or "").strip()
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "file"


def blob_path(tenant_id: int, file_type: str, filename: str, now: datetime = None) -> str:
    timestamp = int((now or datetime.utcnow()).timestamp() * 1000)
    return f"tenant-{tenant_id}/files/{file_type}/{timestamp}-{sanitize_filename(filename)}"


class FileService(SecureRepository):
    """Upload, list and delete a tenant's media files"""

    MAX_FILE_SIZE = settings.MAX_UPLOAD_SIZE

    def __init__(self, db, security_context, blob_store: BlobStore = None):
        super().__init__(db, security_context)
        self.blob_store = blob_store or LocalBlobStore()

    @staticmethod
    def validate_upload(filename: str, content: bytes, file_type: str) -> None:
        if file_type not in ALLOWED_EXTENSIONS:
            raise validation_error(f"Invalid file type. Allowed types: {', '.join(ALLOWED_EXTENSIONS)}")

        if not content:
            raise validation_error("File is required")

        if len(content) > FileService.MAX_FILE_SIZE:
            limit_mb = FileService.MAX_FILE_SIZE // (1024 * 1024)
            raise validation_error(f"File size exceeds maximum limit of {limit_mb}MB")

        extension = os.path.splitext((filename or "").lower())[1]
        if extension not in ALLOWED_EXTENSIONS[file_type]:
            allowed = ", ".join(ALLOWED_EXTENSIONS[file_type])
            raise validation_error(f"Invalid {file_type} file. Allowed formats: {allowed}")

    def upload(
        self,
        tenant_id,
        filename: str,
        content: bytes,
        file_type: str,
        name: str = None,
        display_order: int = None,
    ) -> TenantFile:
        self.authorize("write")
        tenant_id = validate_id(tenant_id)
        self.validate_upload(filename, content, file_type)

        with storage_boundary(self.db, "upload file"):
            self._require_active_tenant(tenant_id)

            if display_order is None:
                current_max = self.db.query(func.max(TenantFile.display_order)).filter(
                    TenantFile.tenant_id == tenant_id,
                    TenantFile.type == file_type,
                ).scalar()
                display_order = 0 if current_max is None else current_max + 1

        try:
            url = self.blob_store.put(blob_path(tenant_id, file_type, filename), content)
        except OSError as e:
            logger.error("Failed to store %s file for tenant %s: %s", file_type, tenant_id, e)
            raise database_error("Failed to store file") from e

        try:
            with storage_boundary(self.db, "upload file"):
                record = TenantFile(
                    tenant_id=tenant_id,
                    type=file_type,
                    url=url,
                    name=name or filename,
                    display_order=display_order,
                )
                self.db.add(record)
                self.db.commit()
                self.db.refresh(record)
        except TenantError:
            # Row never landed: drop the orphaned blob
            self._delete_blob(url)
            raise

        logger.info("Uploaded %s file %s for tenant %s", file_type, record.id, tenant_id)
        return record

    def list_files(self, tenant_id, file_type: Optional[str] = None) -> List[TenantFile]:
        self.authorize("read")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "list files"):
            self._require_active_tenant(tenant_id)

            query = self.db.query(TenantFile).filter(TenantFile.tenant_id == tenant_id)
            if file_type:
                query = query.filter(TenantFile.type == file_type)
            return query.order_by(
                TenantFile.type,
                TenantFile.display_order,
                TenantFile.created_at,
            ).all()

    def update(self, tenant_id, file_id, name: str = None, display_order: int = None) -> TenantFile:
        """Rename a file or move it within its type's presentation order."""
        self.authorize("write")
        tenant_id = validate_id(tenant_id)
        file_id = validate_id(file_id, "File ID")

        if name is not None:
            name = name.strip()
            if not name:
                raise validation_error("File name must not be empty")
            if len(name) > MAX_NAME_LENGTH:
                raise validation_error(f"File name must not exceed {MAX_NAME_LENGTH} characters")
        if display_order is not None and display_order < 0:
            raise validation_error("Display order must be zero or greater")
        if name is None and display_order is None:
            raise validation_error("No valid fields to update")

        with storage_boundary(self.db, "update file"):
            self._require_active_tenant(tenant_id)
            record = self._scoped_file(tenant_id, file_id)

            if name is not None:
                record.name = name
            if display_order is not None:
                record.display_order = display_order
            self.db.commit()
            self.db.refresh(record)

        return record

    def delete(self, tenant_id, file_id) -> None:
        self.authorize("delete")
        tenant_id = validate_id(tenant_id)
        file_id = validate_id(file_id, "File ID")

        with storage_boundary(self.db, "delete file"):
            record = self._scoped_file(tenant_id, file_id)
            url = record.url
            self.db.delete(record)
            self.db.commit()

        self._delete_blob(url)

    def _scoped_file(self, tenant_id: int, file_id: int) -> TenantFile:
        record = self.db.query(TenantFile).filter(
            TenantFile.id == file_id,
            TenantFile.tenant_id == tenant_id,
        ).first()
        if record is None:
            raise not_found("File not found or access denied")
        return record

    def _require_active_tenant(self, tenant_id: int) -> None:
        tenant = self.db.query(Tenant.id).filter(
            Tenant.id == tenant_id,
            Tenant.is_active.is_(True),
        ).first()
        if tenant is None:
            raise not_found("Tenant not found or inactive")

    def _delete_blob(self, url: str) -> None:
        try:
            self.blob_store.delete(url)
        except OSError as e:
            logger.error("Failed to remove blob %s: %s", url, e)
