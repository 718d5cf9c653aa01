"""
Shared route dependencies
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.services.file_service import BlobStore, FileService, LocalBlobStore
from app.services.guest_repository import SecureGuestRepository
from app.services.tenant_repository import SecureTenantRepository
from app.services.tenant_security import SecurityContext
from app.utils.security import enforce_rate_limit, require_admin, security_context

# Rate limit first so unauthenticated floods are throttled by IP too
ADMIN_DEPENDENCIES = [Depends(enforce_rate_limit), Depends(require_admin)]


def get_tenant_repository(
    db: Session = Depends(get_db),
    context: SecurityContext = Depends(security_context),
) -> SecureTenantRepository:
    return SecureTenantRepository(db, context)


def get_guest_repository(
    db: Session = Depends(get_db),
    context: SecurityContext = Depends(security_context),
) -> SecureGuestRepository:
    return SecureGuestRepository(db, context)


def get_blob_store() -> BlobStore:
    return LocalBlobStore()


def get_file_service(
    db: Session = Depends(get_db),
    context: SecurityContext = Depends(security_context),
    blob_store: BlobStore = Depends(get_blob_store),
) -> FileService:
    return FileService(db, context, blob_store)
