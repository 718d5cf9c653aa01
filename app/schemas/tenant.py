"""
Tenant-related Pydantic schemas
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

NAME_PATTERN = r"^[^\W\d_]+(?:[\s'-]+[^\W\d_]+)*$"
HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"
PHONE_PATTERN = r"^[+]?[1-9]\d{0,15}$"
SLUG_PATTERN = r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$"

class TenantCreate(BaseModel):
    """Schema for creating a tenant; slug is generated when omitted"""
    bride_name: str = Field(..., min_length=2, max_length=100, pattern=NAME_PATTERN)
    groom_name: str = Field(..., min_length=2, max_length=100, pattern=NAME_PATTERN)
    wedding_date: date
    venue_name: str = Field(..., min_length=2, max_length=200)
    venue_address: str = Field(..., min_length=5)
    venue_map_link: Optional[str] = Field(None, max_length=500)
    theme_primary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    theme_secondary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    slug: Optional[str] = Field(None, min_length=3, max_length=100, pattern=SLUG_PATTERN)

class TenantUpdate(BaseModel):
    """Schema for partial tenant updates"""
    bride_name: Optional[str] = Field(None, min_length=2, max_length=100, pattern=NAME_PATTERN)
    groom_name: Optional[str] = Field(None, min_length=2, max_length=100, pattern=NAME_PATTERN)
    wedding_date: Optional[date] = None
    venue_name: Optional[str] = Field(None, min_length=2, max_length=200)
    venue_address: Optional[str] = Field(None, min_length=5)
    venue_map_link: Optional[str] = Field(None, max_length=500)
    theme_primary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    theme_secondary_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    is_active: Optional[bool] = None

class TenantStatusUpdate(BaseModel):
    is_active: bool

class SlugRequest(BaseModel):
    bride_name: str = Field(..., min_length=1)
    groom_name: str = Field(..., min_length=1)

class TenantResponse(BaseModel):
    """Tenant response schema"""
    id: int
    slug: str
    bride_name: str
    groom_name: str
    wedding_date: date
    venue_name: str
    venue_address: str
    venue_map_link: Optional[str] = None
    theme_primary_color: str
    theme_secondary_color: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
