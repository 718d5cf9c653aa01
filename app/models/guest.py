"""
Guest model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, CheckConstraint
# aliased: "relationship" is also a column on this model
from sqlalchemy.orm import relationship as orm_relationship

from app.core.db import Base

ATTENDANCE_VALUES = ("yes", "no", "maybe")

class Guest(Base):
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    relationship = Column(String(50), nullable=False)
    attendance = Column(String(10), nullable=False, default="maybe")
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    tenant = orm_relationship("Tenant", back_populates="guests")

    __table_args__ = (
        CheckConstraint("attendance IN ('yes', 'no', 'maybe')", name="ck_guests_attendance"),
    )
