"""
Guest-related Pydantic schemas
"""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

Attendance = Literal["yes", "no", "maybe"]

class GuestCreate(BaseModel):
    """Schema for creating a guest"""
    name: str = Field(..., min_length=1, max_length=100)
    relationship: str = Field(..., min_length=1, max_length=50)
    attendance: Attendance = "maybe"
    message: Optional[str] = Field(None, max_length=1000)

class GuestUpdate(BaseModel):
    """Schema for updating a guest"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    relationship: Optional[str] = Field(None, min_length=1, max_length=50)
    attendance: Optional[Attendance] = None
    message: Optional[str] = Field(None, max_length=1000)

class GuestStatusUpdate(BaseModel):
    """RSVP status shortcut"""
    attendance: Attendance

class GuestResponse(BaseModel):
    """Guest response schema"""
    id: int
    tenant_id: int
    name: str
    relationship: str
    attendance: str
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class GuestStats(BaseModel):
    total: int
    attending: int
    not_attending: int
    maybe: int

class ImportRowError(BaseModel):
    row: int
    errors: List[str]

class ImportResultResponse(BaseModel):
    imported: int
    failed: int
    errors: List[ImportRowError]
    commit_errors: List[ImportRowError] = []
