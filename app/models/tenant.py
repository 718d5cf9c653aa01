"""
Tenant model: one wedding
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text
from sqlalchemy.orm import relationship

from app.core.db import Base

DEFAULT_PRIMARY_COLOR = "#E53E3E"
DEFAULT_SECONDARY_COLOR = "#FED7D7"

class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    bride_name = Column(String(100), nullable=False)
    groom_name = Column(String(100), nullable=False)
    wedding_date = Column(Date, nullable=False)
    venue_name = Column(String(200), nullable=False)
    venue_address = Column(Text, nullable=False)
    venue_map_link = Column(String(500), nullable=True)
    theme_primary_color = Column(String(7), default=DEFAULT_PRIMARY_COLOR, nullable=False)
    theme_secondary_color = Column(String(7), default=DEFAULT_SECONDARY_COLOR, nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)  # false = soft deleted
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    guests = relationship("Guest", back_populates="tenant")
    files = relationship("TenantFile", back_populates="tenant")

    @property
    def display_name(self) -> str:
        return f"{self.bride_name} & {self.groom_name}"
