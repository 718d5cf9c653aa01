"""
File-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

class FileResponse(BaseModel):
    id: int
    tenant_id: int
    type: str
    url: str
    name: Optional[str] = None
    display_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class FileUpdate(BaseModel):
    name: Optional[str] = None
    display_order: Optional[int] = None
