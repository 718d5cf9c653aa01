"""
Tenant media file routes - requires authentication
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import ADMIN_DEPENDENCIES, get_file_service
from app.schemas.file import FileResponse, FileUpdate
from app.services.file_service import FileService
from app.utils.responses import success_response

router = APIRouter(dependencies=ADMIN_DEPENDENCIES)


def serialize_file(record) -> dict:
    return FileResponse.model_validate(record).model_dump(mode="json")


@router.get("/tenants/{tenant_id}/files")
async def list_files(
    tenant_id: int,
    type: Optional[str] = None,
    service: FileService = Depends(get_file_service)
):
    files = service.list_files(tenant_id, file_type=type)
    return success_response(data={"files": [serialize_file(f) for f in files]})


@router.post("/tenants/{tenant_id}/files")
async def upload_file(
    tenant_id: int,
    file: UploadFile = File(...),
    file_type: str = Form(...),
    file_name: Optional[str] = Form(None),
    display_order: Optional[int] = Form(None),
    service: FileService = Depends(get_file_service)
):
    """Upload an image or music file for a wedding"""
    content = await file.read()
    record = service.upload(
        tenant_id,
        file.filename or "",
        content,
        file_type,
        name=file_name,
        display_order=display_order,
    )
    return success_response(data=serialize_file(record), message="File uploaded successfully", status_code=201)


@router.patch("/tenants/{tenant_id}/files/{file_id}")
async def update_file(
    tenant_id: int,
    file_id: int,
    update_data: FileUpdate,
    service: FileService = Depends(get_file_service)
):
    """Rename a file or change its display order"""
    record = service.update(tenant_id, file_id, name=update_data.name, display_order=update_data.display_order)
    return success_response(data=serialize_file(record), message="File updated successfully")


@router.delete("/tenants/{tenant_id}/files/{file_id}")
async def delete_file(
    tenant_id: int,
    file_id: int,
    service: FileService = Depends(get_file_service)
):
    service.delete(tenant_id, file_id)
    return success_response(message="File deleted successfully")
