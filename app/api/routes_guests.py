"""
Guest admin routes - requires authentication
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from app.api.deps import ADMIN_DEPENDENCIES, get_guest_repository, get_tenant_repository
from app.core.errors import not_found, validation_error
from app.schemas.guest import (
    GuestCreate,
    GuestResponse,
    GuestStats,
    GuestStatusUpdate,
    GuestUpdate,
    ImportResultResponse,
)
from app.services.guest_export_service import GuestExportService, TenantInfo
from app.services.guest_import_service import GuestImportService
from app.services.guest_repository import GuestFilters, SecureGuestRepository
from app.services.tenant_repository import SecureTenantRepository
from app.utils.responses import success_response

router = APIRouter(dependencies=ADMIN_DEPENDENCIES)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def serialize_guest(guest) -> dict:
    return GuestResponse.model_validate(guest).model_dump(mode="json")


def load_active_tenant(tenant_id: int, repository: SecureTenantRepository):
    tenant = repository.find_by_id(tenant_id)
    if tenant is None or not tenant.is_active:
        raise not_found(f"Tenant with ID {tenant_id} not found")
    return tenant


@router.get("/tenants/import-sample")
async def download_import_sample():
    """Download a sample CSV for guest import"""
    return Response(
        content=GuestImportService.create_template(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=import-sample.csv"}
    )


@router.get("/tenants/{tenant_id}/guests")
async def list_guests(
    tenant_id: int,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    attendance: Optional[str] = None,
    search: Optional[str] = None,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    filters = GuestFilters(tenant_id=tenant_id, attendance=attendance, search=search)
    result = repository.find_many(filters, page=page or 1, limit=limit or 10)
    return success_response(data={
        "guests": [serialize_guest(g) for g in result.guests],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "total_pages": math.ceil(result.total / result.limit) if result.limit else 0,
    })


@router.post("/tenants/{tenant_id}/guests")
async def create_guest(
    tenant_id: int,
    guest_data: GuestCreate,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    guest = repository.create({**guest_data.model_dump(exclude_none=True), "tenant_id": tenant_id})
    return success_response(
        data=serialize_guest(guest),
        message="Guest created successfully",
        status_code=201
    )


@router.get("/tenants/{tenant_id}/guests/stats")
async def guest_stats(
    tenant_id: int,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    stats = repository.get_guest_stats(tenant_id)
    return success_response(data=GuestStats(**stats).model_dump())


@router.get("/tenants/{tenant_id}/guests/export")
async def export_guests(
    tenant_id: int,
    tenants: SecureTenantRepository = Depends(get_tenant_repository),
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    """Download every guest of a wedding as an Excel workbook"""
    tenant = load_active_tenant(tenant_id, tenants)
    guests = repository.find_many(GuestFilters(tenant_id=tenant_id), limit=None).guests

    tenant_info = TenantInfo.from_tenant(tenant)
    content = GuestExportService.export_guests(guests, tenant_info)
    filename = GuestExportService.export_filename(tenant_info)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/tenants/{tenant_id}/guests/import")
async def import_guests(
    tenant_id: int,
    file: UploadFile = File(...),
    format: str = Query("json", pattern="^(json|xlsx)$"),
    tenants: SecureTenantRepository = Depends(get_tenant_repository),
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    """Import guests from CSV/Excel; valid rows are kept even when others fail"""
    load_active_tenant(tenant_id, tenants)

    content = await file.read()
    result = GuestImportService.import_guests(content, file.filename or "", tenant_id, repository)

    if result.aborted:
        raise validation_error(result.errors[0].errors[0])

    if format == "xlsx":
        return Response(
            content=GuestImportService.build_result_workbook(result),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": "attachment; filename=import-result.xlsx"}
        )

    return success_response(
        data=ImportResultResponse(**result.to_dict()).model_dump(),
        message=f"Imported {result.imported} guests"
    )


@router.get("/tenants/{tenant_id}/guests/{guest_id}")
async def get_guest(
    tenant_id: int,
    guest_id: int,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    guest = repository.find_by_id(guest_id, tenant_id)
    if guest is None:
        raise not_found("Guest not found")
    return success_response(data=serialize_guest(guest))


@router.patch("/tenants/{tenant_id}/guests/{guest_id}")
async def update_guest(
    tenant_id: int,
    guest_id: int,
    update_data: GuestUpdate,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    guest = repository.update(guest_id, tenant_id, update_data)
    return success_response(data=serialize_guest(guest), message="Guest updated successfully")


@router.patch("/tenants/{tenant_id}/guests/{guest_id}/status")
async def update_guest_status(
    tenant_id: int,
    guest_id: int,
    status_data: GuestStatusUpdate,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    guest = repository.update_guest_status(guest_id, status_data.attendance, tenant_id=tenant_id)
    return success_response(data=serialize_guest(guest), message="RSVP status updated")


@router.delete("/tenants/{tenant_id}/guests/{guest_id}")
async def delete_guest(
    tenant_id: int,
    guest_id: int,
    repository: SecureGuestRepository = Depends(get_guest_repository)
):
    repository.delete(guest_id, tenant_id)
    return success_response(message="Guest deleted successfully")
