"""
Secure guest repository with tenant-based data isolation.

Single-record operations are always keyed by the ``(guest_id, tenant_id)``
pair and join against ``tenants`` so guests of a deactivated wedding are
invisible. List queries require a tenant id by type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, or_

from app.core.config import settings
from app.core.errors import database_error, not_found, validation_error
from app.models import Guest, Tenant
from app.models.guest import ATTENDANCE_VALUES
from app.services.repositories import SecureRepository, storage_boundary, to_params
from app.services.tenant_security import sanitize_params, validate_id, validate_scope

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("name", "relationship", "attendance", "message")

MAX_NAME_LENGTH = 100
MAX_RELATIONSHIP_LENGTH = 50
MAX_MESSAGE_LENGTH = 1000


@dataclass
class GuestFilters:
    tenant_id: int  # required: every list query is tenant scoped
    attendance: Optional[str] = None
    search: Optional[str] = None


@dataclass
class GuestListResult:
    guests: List[Guest]
    total: int
    page: int
    limit: Optional[int]


def validate_guest_fields(values: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Check required fields, lengths and attendance; returns normalized values."""
    fields: Dict[str, Any] = {}

    if "name" in values or not partial:
        name = str(values.get("name") or "").strip()
        if not name:
            raise validation_error("Name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise validation_error(f"Name must not exceed {MAX_NAME_LENGTH} characters")
        fields["name"] = name

    if "relationship" in values or not partial:
        relationship = str(values.get("relationship") or "").strip()
        if not relationship:
            raise validation_error("Relationship is required")
        if len(relationship) > MAX_RELATIONSHIP_LENGTH:
            raise validation_error(f"Relationship must not exceed {MAX_RELATIONSHIP_LENGTH} characters")
        fields["relationship"] = relationship

    if "attendance" in values or not partial:
        fields["attendance"] = validate_attendance(values.get("attendance"))

    if "message" in values:
        message = str(values["message"]).strip()
        if len(message) > MAX_MESSAGE_LENGTH:
            raise validation_error(f"Message must not exceed {MAX_MESSAGE_LENGTH} characters")
        fields["message"] = message or None

    return fields


def sanitize_guest_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Generic sanitizing, except ``message`` which keeps its own 1000 limit."""
    message = params.get("message")
    sanitized = sanitize_params({key: value for key, value in params.items() if key != "message"})
    if isinstance(message, str):
        sanitized["message"] = message.strip()
    elif isinstance(message, (bool, int, float)):
        sanitized["message"] = message
    return sanitized


def validate_attendance(value: Any) -> str:
    attendance = str(value or "").strip().lower()
    if attendance not in ATTENDANCE_VALUES:
        raise validation_error("Invalid status. Must be yes, no, or maybe.")
    return attendance


class SecureGuestRepository(SecureRepository):
    """Guest CRUD scoped to a single tenant per call"""

    def create(self, guest_data: Any) -> Guest:
        self.authorize("write")

        params = to_params(guest_data)
        tenant_id = validate_id(params.get("tenant_id"))
        fields = validate_guest_fields(sanitize_guest_params(params))

        with storage_boundary(self.db, "create guest"):
            if not self._tenant_is_active(tenant_id):
                raise not_found("Tenant not found or inactive")

            guest = Guest(tenant_id=tenant_id, **fields)
            self.db.add(guest)
            self.db.commit()
            self.db.refresh(guest)

        return guest

    def find_by_id(self, guest_id: Any, tenant_id: Any) -> Optional[Guest]:
        self.authorize("read")
        guest_id = validate_id(guest_id, "Guest ID")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "load guest"):
            return self._scoped_query(guest_id, tenant_id).first()

    def update(self, guest_id: Any, tenant_id: Any, update_data: Any) -> Guest:
        """Merge a patch onto the current guest and rewrite all mutable fields."""
        self.authorize("write")
        guest_id = validate_id(guest_id, "Guest ID")
        tenant_id = validate_id(tenant_id)

        updates = {
            key: value
            for key, value in sanitize_guest_params(to_params(update_data)).items()
            if key in MUTABLE_FIELDS
        }
        if not updates:
            raise validation_error("No valid fields to update")
        updates = validate_guest_fields(updates, partial=True)

        with storage_boundary(self.db, "update guest"):
            current = self._scoped_query(guest_id, tenant_id).first()
            if current is None:
                raise not_found("Guest not found or access denied")
            validate_scope(tenant_id, current.tenant_id)

            merged = {field: getattr(current, field) for field in MUTABLE_FIELDS}
            merged.update(updates)
            for field, value in merged.items():
                setattr(current, field, value)
            current.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(current)
            return current

    def delete(self, guest_id: Any, tenant_id: Any) -> None:
        """Hard delete scoped to (guest_id, tenant_id)."""
        self.authorize("delete")
        guest_id = validate_id(guest_id, "Guest ID")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "delete guest"):
            existing = self._scoped_query(guest_id, tenant_id).first()
            if existing is None:
                raise not_found("Guest not found or access denied")
            validate_scope(tenant_id, existing.tenant_id)

            deleted = self.db.query(Guest).filter(
                Guest.id == guest_id,
                Guest.tenant_id == tenant_id,
            ).delete(synchronize_session=False)
            if deleted == 0:
                self.db.rollback()
                raise database_error("Failed to delete guest")
            self.db.commit()

    def find_many(
        self,
        filters: GuestFilters,
        page: Any = 1,
        limit: Any = settings.DEFAULT_PAGE_SIZE,
    ) -> GuestListResult:
        """List one tenant's guests, newest first. ``limit=None`` returns all rows."""
        self.authorize("read")

        params = to_params(filters)
        tenant_id = validate_id(params.get("tenant_id"))
        sanitized = sanitize_params(params)

        pagination = sanitize_params({"page": page, "limit": limit})
        page = pagination.get("page", 1)
        if limit is not None:
            limit = pagination.get("limit", settings.DEFAULT_PAGE_SIZE)

        with storage_boundary(self.db, "list guests"):
            query = (
                self.db.query(Guest)
                .join(Tenant, Guest.tenant_id == Tenant.id)
                .filter(Guest.tenant_id == tenant_id, Tenant.is_active.is_(True))
            )

            if sanitized.get("attendance"):
                query = query.filter(Guest.attendance == validate_attendance(sanitized["attendance"]))

            if sanitized.get("search"):
                term = f"%{sanitized['search']}%"
                query = query.filter(or_(Guest.name.ilike(term), Guest.relationship.ilike(term)))

            total = query.count()
            query = query.order_by(Guest.created_at.desc(), Guest.id.desc())
            if limit is not None:
                query = query.offset((page - 1) * limit).limit(limit)
            guests = query.all()

        return GuestListResult(guests=guests, total=total, page=page, limit=limit)

    def get_guest_stats(self, tenant_id: Any) -> Dict[str, int]:
        self.authorize("read")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "count guests"):
            total, attending, not_attending, maybe = (
                self.db.query(
                    func.count(Guest.id),
                    func.count(case((Guest.attendance == "yes", 1))),
                    func.count(case((Guest.attendance == "no", 1))),
                    func.count(case((Guest.attendance == "maybe", 1))),
                )
                .join(Tenant, Guest.tenant_id == Tenant.id)
                .filter(Guest.tenant_id == tenant_id, Tenant.is_active.is_(True))
                .one()
            )

        return {
            "total": total,
            "attending": attending,
            "not_attending": not_attending,
            "maybe": maybe,
        }

    def get_rsvp_summary(self, tenant_id: Any, recent: int = 5) -> Dict[str, Any]:
        """Stats plus the most recent responses for one wedding."""
        stats = self.get_guest_stats(tenant_id)
        latest = self.find_many(GuestFilters(tenant_id=tenant_id), page=1, limit=recent)
        responded = stats["attending"] + stats["not_attending"]
        return {
            **stats,
            "response_rate": round(responded / stats["total"] * 100, 1) if stats["total"] else 0.0,
            "recent_guests": latest.guests,
        }

    def get_overall_rsvp_summary(self) -> Dict[str, int]:
        """Attendance counts across every active wedding."""
        self.authorize("read")

        with storage_boundary(self.db, "count all guests"):
            total, confirmed, declined, pending = (
                self.db.query(
                    func.count(Guest.id),
                    func.count(case((Guest.attendance == "yes", 1))),
                    func.count(case((Guest.attendance == "no", 1))),
                    func.count(case((Guest.attendance == "maybe", 1))),
                )
                .join(Tenant, Guest.tenant_id == Tenant.id)
                .filter(Tenant.is_active.is_(True))
                .one()
            )

        return {"total": total, "confirmed": confirmed, "declined": declined, "pending": pending}

    def get_recent_rsvps(self, days: int = 7, limit: int = 10, now: datetime = None) -> List[Dict[str, Any]]:
        """Responses submitted in the last ``days`` days across active weddings, newest first."""
        self.authorize("read")
        since = (now or datetime.utcnow()) - timedelta(days=days)

        with storage_boundary(self.db, "list recent rsvps"):
            rows = (
                self.db.query(Guest, Tenant)
                .join(Tenant, Guest.tenant_id == Tenant.id)
                .filter(Tenant.is_active.is_(True), Guest.created_at >= since)
                .order_by(Guest.created_at.desc(), Guest.id.desc())
                .limit(limit)
                .all()
            )

        return [
            {
                "guest_name": guest.name,
                "tenant_id": tenant.id,
                "wedding": tenant.display_name,
                "attendance": guest.attendance,
                "submitted_at": guest.created_at.isoformat(),
            }
            for guest, tenant in rows
        ]

    def search_guests(
        self,
        query: str,
        tenant_id: Any = None,
        limit: Any = 10,
        allow_cross_tenant: bool = False,
    ) -> List[Dict[str, Any]]:
        """Free-text search over guest name and relationship.

        Searching across every wedding requires ``allow_cross_tenant=True``;
        without it a tenant id is mandatory.
        """
        self.authorize("read")

        term = sanitize_params({"search": query}).get("search")
        if not term:
            raise validation_error("Search query is required")
        limit = sanitize_params({"limit": limit}).get("limit", 10)

        if tenant_id is not None:
            tenant_id = validate_id(tenant_id)
        elif not allow_cross_tenant:
            raise validation_error("Tenant ID is required unless cross-tenant search is allowed")

        with storage_boundary(self.db, "search guests"):
            pattern = f"%{term}%"
            rows = (
                self.db.query(Guest, Tenant)
                .join(Tenant, Guest.tenant_id == Tenant.id)
                .filter(
                    Tenant.is_active.is_(True),
                    or_(Guest.name.ilike(pattern), Guest.relationship.ilike(pattern)),
                )
            )
            if tenant_id is not None:
                rows = rows.filter(Guest.tenant_id == tenant_id)
            rows = rows.order_by(Guest.created_at.desc(), Guest.id.desc()).limit(limit).all()

        return [
            {
                "id": guest.id,
                "tenant_id": guest.tenant_id,
                "name": guest.name,
                "relationship": guest.relationship,
                "attendance": guest.attendance,
                "message": guest.message,
                "wedding": tenant.display_name,
                "wedding_date": tenant.wedding_date.isoformat(),
                "submitted_at": guest.created_at.isoformat(),
            }
            for guest, tenant in rows
        ]

    def update_guest_status(
        self,
        guest_id: Any,
        status: Any,
        tenant_id: Any = None,
        allow_unscoped: bool = False,
    ) -> Guest:
        """Set a guest's RSVP status.

        With a tenant id the guest must belong to that tenant. Updating by
        guest id alone requires ``allow_unscoped=True``. Either way the
        guest's wedding must be active.
        """
        self.authorize("write")
        status = validate_attendance(status)
        guest_id = validate_id(guest_id, "Guest ID")

        if tenant_id is not None:
            tenant_id = validate_id(tenant_id)
        elif not allow_unscoped:
            raise validation_error("Tenant ID is required unless an unscoped update is allowed")
        else:
            logger.warning("Unscoped RSVP status update for guest %s", guest_id)

        with storage_boundary(self.db, "update guest status"):
            if tenant_id is not None:
                query = self._scoped_query(guest_id, tenant_id)
            else:
                query = (
                    self.db.query(Guest)
                    .join(Tenant, Guest.tenant_id == Tenant.id)
                    .filter(Guest.id == guest_id, Tenant.is_active.is_(True))
                )

            guest = query.first()
            if guest is None:
                raise not_found("Guest not found or access denied.")
            if tenant_id is not None:
                validate_scope(tenant_id, guest.tenant_id)

            guest.attendance = status
            guest.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(guest)
            return guest

    def _scoped_query(self, guest_id: int, tenant_id: int):
        return (
            self.db.query(Guest)
            .join(Tenant, Guest.tenant_id == Tenant.id)
            .filter(
                Guest.id == guest_id,
                Guest.tenant_id == tenant_id,
                Tenant.is_active.is_(True),
            )
        )

    def _tenant_is_active(self, tenant_id: int) -> bool:
        return self.db.query(Tenant.id).filter(
            Tenant.id == tenant_id,
            Tenant.is_active.is_(True),
        ).first() is not None
