"""
Standardized response utilities
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.errors import TenantError
from app.schemas.common import ErrorDetail, ErrorResponse, StandardResponse


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        data=data,
        message=message
    )
    return JSONResponse(
        content=jsonable_encoder(response.model_dump(exclude_none=True)),
        status_code=status_code
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(
        content=response.model_dump(),
        status_code=status_code
    )


def tenant_error_response(error: TenantError) -> JSONResponse:
    return error_response(error.code.value, error.message, error.status_code)
