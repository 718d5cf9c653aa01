"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None

class ErrorDetail(BaseModel):
    """Error code and human readable message"""
    code: str
    message: str

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    error: ErrorDetail
