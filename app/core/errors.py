"""
Error taxonomy shared by the repositories, pipelines and HTTP layer.

Every failure that crosses a repository boundary is a ``TenantError`` tagged
with an ``ErrorCode``. The HTTP layer maps the code to a status with
``status_for`` and renders the ``{success: false, error: {code, message}}``
envelope.
"""

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    DATABASE_ERROR = "DATABASE_ERROR"
    CROSS_TENANT_ACCESS_DENIED = "CROSS_TENANT_ACCESS_DENIED"


STATUS_CODES = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.CROSS_TENANT_ACCESS_DENIED: 403,
    ErrorCode.TENANT_NOT_FOUND: 404,
    ErrorCode.DUPLICATE_SLUG: 409,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
}


class TenantError(Exception):
    """Tagged error raised by the tenant-isolation layer."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}")

    @property
    def status_code(self) -> int:
        return status_for(self.code)

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message}


def status_for(code: ErrorCode) -> int:
    """HTTP status for an error code; unknown codes are server errors."""
    return STATUS_CODES.get(code, 500)


def validation_error(message: str) -> TenantError:
    return TenantError(ErrorCode.VALIDATION_ERROR, message)


def not_found(message: str) -> TenantError:
    return TenantError(ErrorCode.TENANT_NOT_FOUND, message)


def database_error(message: str) -> TenantError:
    return TenantError(ErrorCode.DATABASE_ERROR, message)
