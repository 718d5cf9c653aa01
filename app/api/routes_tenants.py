"""
Tenant (wedding) admin routes - requires authentication
"""

import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import ADMIN_DEPENDENCIES, get_tenant_repository
from app.core.errors import not_found
from app.schemas.tenant import (
    SlugRequest,
    TenantCreate,
    TenantResponse,
    TenantStatusUpdate,
    TenantUpdate,
)
from app.services.tenant_repository import SecureTenantRepository, TenantFilters
from app.utils.responses import success_response

router = APIRouter(dependencies=ADMIN_DEPENDENCIES)


def serialize_tenant(tenant) -> dict:
    return TenantResponse.model_validate(tenant).model_dump(mode="json")


def paginated(result) -> dict:
    return {
        "tenants": [serialize_tenant(t) for t in result.tenants],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "total_pages": math.ceil(result.total / result.limit) if result.limit else 0,
    }


@router.post("/tenants")
async def create_tenant(
    tenant_data: TenantCreate,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """Create a new wedding"""
    tenant = repository.create(tenant_data)
    return success_response(
        data=serialize_tenant(tenant),
        message="Tenant created successfully",
        status_code=201
    )


@router.get("/tenants")
async def list_tenants(
    search: Optional[str] = None,
    is_active: Optional[str] = None,
    wedding_date_from: Optional[str] = None,
    wedding_date_to: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """List weddings; active only unless is_active=false"""
    filters = TenantFilters(
        search=search,
        is_active=is_active,
        wedding_date_from=wedding_date_from,
        wedding_date_to=wedding_date_to,
    )
    result = repository.find_many(filters, page=page or 1, limit=limit)
    return success_response(data=paginated(result))


@router.get("/tenants/search")
async def search_tenants(
    q: str = Query(..., min_length=1),
    limit: Optional[str] = None,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """Search active weddings by couple names or slug"""
    result = repository.find_many(TenantFilters(search=q), page=1, limit=limit)
    return success_response(data=paginated(result))


@router.get("/tenants/statistics")
async def tenant_statistics(
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    return success_response(data=repository.get_tenant_statistics())


@router.get("/tenants/slug/{slug}")
async def get_tenant_by_slug(
    slug: str,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    tenant = repository.find_by_slug(slug)
    if tenant is None:
        raise not_found("Tenant not found")
    return success_response(data=serialize_tenant(tenant))


@router.post("/tenants/generate-slug")
async def generate_slug(
    request: SlugRequest,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """Suggest an unused slug for a couple"""
    slug = repository.generate_unique_slug(request.bride_name, request.groom_name)
    return success_response(data={"slug": slug})


@router.get("/tenants/{tenant_id}")
async def get_tenant(
    tenant_id: int,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    tenant = repository.find_by_id(tenant_id)
    if tenant is None:
        raise not_found(f"Tenant with ID {tenant_id} not found")
    return success_response(data=serialize_tenant(tenant))


@router.patch("/tenants/{tenant_id}")
async def update_tenant(
    tenant_id: int,
    update_data: TenantUpdate,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    tenant = repository.update(tenant_id, update_data)
    return success_response(data=serialize_tenant(tenant), message="Tenant updated successfully")


@router.patch("/tenants/{tenant_id}/status")
async def update_tenant_status(
    tenant_id: int,
    status_data: TenantStatusUpdate,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    tenant = repository.update_status(tenant_id, status_data.is_active)
    return success_response(data=serialize_tenant(tenant), message="Tenant status updated")


@router.delete("/tenants/{tenant_id}")
async def delete_tenant(
    tenant_id: int,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """Soft delete: the wedding is deactivated, not removed"""
    repository.delete(tenant_id)
    return success_response(message="Tenant deleted successfully")


@router.get("/tenants/{tenant_id}/context")
async def get_tenant_context(
    tenant_id: int,
    today: Optional[date] = None,
    repository: SecureTenantRepository = Depends(get_tenant_repository)
):
    """Wedding summary used to prime the assistant"""
    context = repository.get_tenant_context(tenant_id, today=today)
    if context is None:
        raise not_found(f"Tenant with ID {tenant_id} not found")
    return success_response(data=context)
