"""
Secure tenant repository with built-in access control and soft delete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.errors import ErrorCode, TenantError, database_error, not_found, validation_error
from app.models import Tenant
from app.models.tenant import DEFAULT_PRIMARY_COLOR, DEFAULT_SECONDARY_COLOR
from app.services.repositories import SecureRepository, storage_boundary, to_params
from app.services.tenant_security import (
    parse_date,
    sanitize_params,
    validate_id,
    validate_scope,
)
from app.utils.slug import create_slug_from_names

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("bride_name", "groom_name", "wedding_date", "venue_name", "venue_address")

# Rewritten in full on every update
MUTABLE_FIELDS = (
    "bride_name",
    "groom_name",
    "wedding_date",
    "venue_name",
    "venue_address",
    "venue_map_link",
    "theme_primary_color",
    "theme_secondary_color",
    "email",
    "phone",
    "is_active",
)

MAX_SLUG_ATTEMPTS = 1000


@dataclass
class TenantFilters:
    search: Optional[str] = None
    is_active: Optional[bool] = None
    wedding_date_from: Optional[str] = None
    wedding_date_to: Optional[str] = None


@dataclass
class TenantListResult:
    tenants: List[Tenant]
    total: int
    page: int
    limit: int


class SecureTenantRepository(SecureRepository):
    """Tenant CRUD gated on the caller's security context"""

    def create(self, tenant_data: Any) -> Tenant:
        self.authorize("write")

        data = sanitize_params(to_params(tenant_data))
        missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise validation_error(f"Missing required fields: {', '.join(missing)}")

        wedding_date = parse_date(data["wedding_date"])
        if wedding_date is None:
            raise validation_error("Invalid wedding date")

        with storage_boundary(self.db, "create tenant"):
            slug = data.get("slug") or self.generate_unique_slug(data["bride_name"], data["groom_name"])
            tenant = Tenant(
                slug=slug,
                bride_name=data["bride_name"],
                groom_name=data["groom_name"],
                wedding_date=wedding_date,
                venue_name=data["venue_name"],
                venue_address=data["venue_address"],
                venue_map_link=data.get("venue_map_link"),
                theme_primary_color=data.get("theme_primary_color") or DEFAULT_PRIMARY_COLOR,
                theme_secondary_color=data.get("theme_secondary_color") or DEFAULT_SECONDARY_COLOR,
                email=data.get("email"),
                phone=data.get("phone"),
            )
            self.db.add(tenant)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if "slug" in str(e.orig).lower():
                    raise TenantError(ErrorCode.DUPLICATE_SLUG, "Slug already exists") from e
                raise
            self.db.refresh(tenant)

        logger.info("Created tenant %s (%s)", tenant.id, tenant.slug)
        return tenant

    def find_by_id(self, tenant_id: Any) -> Optional[Tenant]:
        """Load a tenant by id, including soft-deleted ones."""
        self.authorize("read")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "load tenant"):
            return self.db.query(Tenant).filter(Tenant.id == tenant_id).first()

    def find_by_slug(self, slug: Any) -> Optional[Tenant]:
        """Load an active tenant by slug."""
        self.authorize("read")
        sanitized_slug = sanitize_params({"slug": slug}).get("slug")
        if not sanitized_slug or not isinstance(sanitized_slug, str):
            raise validation_error("Invalid slug format")

        with storage_boundary(self.db, "load tenant"):
            return self.db.query(Tenant).filter(
                Tenant.slug == sanitized_slug,
                Tenant.is_active.is_(True),
            ).first()

    def update(self, tenant_id: Any, update_data: Any) -> Tenant:
        """Merge a partial update onto the current row and rewrite every field.

        Concurrent updates are last-write-wins: two updates touching disjoint
        fields can clobber each other.
        """
        self.authorize("write")
        tenant_id = validate_id(tenant_id)

        updates = {
            key: value
            for key, value in sanitize_params(to_params(update_data)).items()
            if key in MUTABLE_FIELDS
        }
        if not updates:
            raise validation_error("No valid fields to update")
        if "wedding_date" in updates:
            updates["wedding_date"] = parse_date(updates["wedding_date"])
            if updates["wedding_date"] is None:
                raise validation_error("Invalid wedding date")

        with storage_boundary(self.db, "update tenant"):
            current = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
            if current is None:
                raise not_found(f"Tenant with ID {tenant_id} not found")
            validate_scope(tenant_id, current.id)

            merged = {field: getattr(current, field) for field in MUTABLE_FIELDS}
            merged.update(updates)
            for field, value in merged.items():
                setattr(current, field, value)
            current.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(current)
            return current

    def delete(self, tenant_id: Any) -> None:
        """Soft delete: the row stays, flagged inactive."""
        self.authorize("delete")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "delete tenant"):
            existing = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
            if existing is None:
                raise not_found(f"Tenant with ID {tenant_id} not found")
            validate_scope(tenant_id, existing.id)

            existing.is_active = False
            existing.updated_at = datetime.utcnow()
            self.db.commit()

        logger.info("Deactivated tenant %s", tenant_id)

    def find_many(
        self,
        filters: Any = None,
        page: Any = 1,
        limit: Any = None,
    ) -> TenantListResult:
        self.authorize("read")

        sanitized = sanitize_params(to_params(filters))
        pagination = sanitize_params({"page": page, "limit": limit})
        page = pagination.get("page", 1)
        limit = pagination.get("limit", settings.DEFAULT_PAGE_SIZE)

        with storage_boundary(self.db, "list tenants"):
            query = self.db.query(Tenant)

            # Active tenants only unless the caller asks otherwise
            query = query.filter(Tenant.is_active.is_(sanitized.get("is_active", True)))

            if sanitized.get("search"):
                term = f"%{sanitized['search']}%"
                query = query.filter(or_(
                    Tenant.bride_name.ilike(term),
                    Tenant.groom_name.ilike(term),
                    Tenant.slug.ilike(term),
                ))

            if "wedding_date_from" in sanitized:
                query = query.filter(Tenant.wedding_date >= parse_date(sanitized["wedding_date_from"]))
            if "wedding_date_to" in sanitized:
                query = query.filter(Tenant.wedding_date <= parse_date(sanitized["wedding_date_to"]))

            total = query.count()
            tenants = (
                query.order_by(Tenant.created_at.desc(), Tenant.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )

        return TenantListResult(tenants=tenants, total=total, page=page, limit=limit)

    def update_status(self, tenant_id: Any, is_active: bool) -> Tenant:
        return self.update(tenant_id, {"is_active": bool(is_active)})

    def get_tenant_context(self, tenant_id: Any, today: date = None) -> Optional[Dict[str, Any]]:
        """Wedding projection for the assistant prompt; None if missing or inactive."""
        self.authorize("read")
        tenant_id = validate_id(tenant_id)

        with storage_boundary(self.db, "load tenant context"):
            tenant = self.db.query(Tenant).filter(
                Tenant.id == tenant_id,
                Tenant.is_active.is_(True),
            ).first()

        if tenant is None:
            return None

        today = today or date.today()
        days_until = (tenant.wedding_date - today).days
        return {
            "id": tenant.id,
            "slug": tenant.slug,
            "bride_name": tenant.bride_name,
            "groom_name": tenant.groom_name,
            "couple": tenant.display_name,
            "wedding_date": tenant.wedding_date.isoformat(),
            "venue_name": tenant.venue_name,
            "venue_address": tenant.venue_address,
            "venue_map_link": tenant.venue_map_link,
            "days_until_wedding": days_until,
            "is_upcoming": days_until >= 0,
        }

    def get_tenant_statistics(self) -> Dict[str, int]:
        self.authorize("read")

        with storage_boundary(self.db, "count tenants"):
            total, active = self.db.query(
                func.count(Tenant.id),
                func.count(case((Tenant.is_active.is_(True), 1))),
            ).one()

        return {"total": total, "active": active, "inactive": total - active}

    def get_upcoming_weddings(self, today: date = None, days: int = 30) -> List[Dict[str, Any]]:
        """Active weddings dated from today through ``days`` days ahead, soonest first."""
        self.authorize("read")
        today = today or date.today()

        with storage_boundary(self.db, "list upcoming weddings"):
            tenants = (
                self.db.query(Tenant)
                .filter(
                    Tenant.is_active.is_(True),
                    Tenant.wedding_date >= today,
                    Tenant.wedding_date <= today + timedelta(days=days),
                )
                .order_by(Tenant.wedding_date, Tenant.id)
                .all()
            )

        return [
            {
                "id": tenant.id,
                "bride_name": tenant.bride_name,
                "groom_name": tenant.groom_name,
                "wedding_date": tenant.wedding_date.isoformat(),
                "venue_name": tenant.venue_name,
                "days_until_wedding": (tenant.wedding_date - today).days,
            }
            for tenant in tenants
        ]

    def generate_unique_slug(self, bride_name: str, groom_name: str) -> str:
        """Slug from the couple's names, suffixed with -1, -2, ... until unused."""
        try:
            base_slug = create_slug_from_names(bride_name, groom_name)
        except ValueError as e:
            raise validation_error(str(e)) from e

        slug = base_slug
        counter = 1
        while self._slug_exists(slug):
            if counter > MAX_SLUG_ATTEMPTS:
                raise database_error("Unable to generate unique slug")
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    def _slug_exists(self, slug: str) -> bool:
        return self.db.query(Tenant.id).filter(Tenant.slug == slug).first() is not None
