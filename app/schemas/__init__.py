"""
Pydantic schemas package
"""

from .common import *
from .tenant import *
from .guest import *
from .file import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "ErrorDetail",
    "TenantCreate",
    "TenantUpdate",
    "TenantStatusUpdate",
    "TenantResponse",
    "SlugRequest",
    "GuestCreate",
    "GuestUpdate",
    "GuestStatusUpdate",
    "GuestResponse",
    "GuestStats",
    "ImportRowError",
    "ImportResultResponse",
    "FileResponse",
    "FileUpdate",
]
