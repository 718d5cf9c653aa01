"""
Agent function registry.

Each function pairs a Pydantic argument model (its JSON schema is what the
tool-calling client sees) with a handler that runs against the secure
repositories under the caller's security context. Results are camelCase
projections for the assistant.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.orm import Session

from app.core.errors import not_found, validation_error
from app.models import Guest, Tenant
from app.services.guest_repository import GuestFilters, SecureGuestRepository
from app.services.tenant_repository import SecureTenantRepository, TenantFilters
from app.services.tenant_security import SecurityContext, get_security_context

logger = logging.getLogger(__name__)

Attendance = Literal["yes", "no", "maybe"]


class AgentArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TenantIdArgs(AgentArguments):
    tenant_id: int = Field(..., alias="tenantId", description="The wedding/tenant ID")


class GuestByTenantArgs(AgentArguments):
    tenant_id: int = Field(..., alias="tenantId", description="The wedding/tenant ID to get guests for")
    page: int = Field(1, description="Page number for pagination (default: 1)")
    limit: int = Field(50, description="Number of guests per page (default: 50)")
    attendance: Optional[Attendance] = Field(None, description="Filter by RSVP status")
    search: Optional[str] = Field(None, description="Search by guest name or relationship")


class SearchGuestsArgs(AgentArguments):
    query: str = Field(..., description="Search term for guest name or relationship")
    tenant_id: Optional[int] = Field(None, alias="tenantId", description="Optional: limit search to specific wedding")
    limit: int = Field(10, description="Maximum number of results to return (default: 10)")


class UpdateGuestStatusArgs(AgentArguments):
    guest_id: int = Field(..., alias="guestId", description="The guest ID to update")
    status: Attendance = Field(..., description="New RSVP status")
    tenant_id: Optional[int] = Field(None, alias="tenantId", description="Optional: wedding ID for security verification")


class AddGuestArgs(AgentArguments):
    tenant_id: int = Field(..., alias="tenantId", description="The wedding ID to add guest to")
    name: str = Field(..., description="Guest name")
    relationship: str = Field(..., description='Relationship to couple (e.g., "Friend", "Family", "Colleague")')
    attendance: Attendance = Field("maybe", description="Initial RSVP status (default: maybe)")
    message: Optional[str] = Field(None, description="Optional message from guest")


class TenantBySlugArgs(AgentArguments):
    slug: str = Field(..., description="The wedding slug to search for")


class SearchTenantsArgs(AgentArguments):
    query: str = Field(..., description="Search term for couple names or slug")
    limit: int = Field(10, description="Maximum number of results to return (default: 10)")
    is_active: bool = Field(True, alias="isActive", description="Filter by active status (default: true)")


class ExportGuestListArgs(AgentArguments):
    tenant_id: int = Field(..., alias="tenantId", description="The wedding ID to export guest list for")
    format: Literal["summary", "detailed"] = Field("summary", description="Export format (default: summary)")


@dataclass
class AgentFunction:
    name: str
    description: str
    arguments: Type[AgentArguments]
    handler: Callable[[Any, Session, SecurityContext], Any]

    @property
    def parameters(self) -> Dict[str, Any]:
        schema = self.arguments.model_json_schema(by_alias=True)
        return {
            "type": "object",
            "properties": schema.get("properties", {}),
            "required": schema.get("required", []),
        }

    @property
    def required(self) -> List[str]:
        return self.parameters["required"]

    def definition(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def guest_projection(guest: Guest) -> Dict[str, Any]:
    return {
        "id": guest.id,
        "tenantId": guest.tenant_id,
        "name": guest.name,
        "relationship": guest.relationship,
        "attendance": guest.attendance,
        "message": guest.message,
        "createdAt": _iso(guest.created_at),
        "updatedAt": _iso(guest.updated_at),
    }


def tenant_projection(tenant: Tenant) -> Dict[str, Any]:
    return {
        "id": tenant.id,
        "slug": tenant.slug,
        "brideName": tenant.bride_name,
        "groomName": tenant.groom_name,
        "weddingDate": _iso(tenant.wedding_date),
        "venueName": tenant.venue_name,
        "venueAddress": tenant.venue_address,
        "venueMapLink": tenant.venue_map_link,
        "themePrimaryColor": tenant.theme_primary_color,
        "themeSecondaryColor": tenant.theme_secondary_color,
        "email": tenant.email,
        "phone": tenant.phone,
        "isActive": tenant.is_active,
        "createdAt": _iso(tenant.created_at),
        "updatedAt": _iso(tenant.updated_at),
    }


def get_rsvp_summary(args: TenantIdArgs, db: Session, context: SecurityContext):
    summary = SecureGuestRepository(db, context).get_rsvp_summary(args.tenant_id)
    return {
        "totalGuests": summary["total"],
        "attending": summary["attending"],
        "notAttending": summary["not_attending"],
        "maybe": summary["maybe"],
        "responseRate": summary["response_rate"],
        "recentGuests": [guest_projection(g) for g in summary["recent_guests"]],
    }


def get_guest_by_tenant(args: GuestByTenantArgs, db: Session, context: SecurityContext):
    filters = GuestFilters(tenant_id=args.tenant_id, attendance=args.attendance, search=args.search)
    result = SecureGuestRepository(db, context).find_many(filters, page=args.page, limit=args.limit)
    return {
        "guests": [guest_projection(g) for g in result.guests],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
    }


def search_guests(args: SearchGuestsArgs, db: Session, context: SecurityContext):
    # The assistant may look across every wedding when no tenant is given
    results = SecureGuestRepository(db, context).search_guests(
        args.query,
        tenant_id=args.tenant_id,
        limit=args.limit,
        allow_cross_tenant=True,
    )
    return [
        {
            "id": row["id"],
            "tenantId": row["tenant_id"],
            "name": row["name"],
            "relationship": row["relationship"],
            "attendance": row["attendance"],
            "message": row["message"],
            "wedding": row["wedding"],
            "weddingDate": row["wedding_date"],
            "submittedAt": row["submitted_at"],
        }
        for row in results
    ]


def update_guest_status(args: UpdateGuestStatusArgs, db: Session, context: SecurityContext):
    guest = SecureGuestRepository(db, context).update_guest_status(
        args.guest_id,
        args.status,
        tenant_id=args.tenant_id,
        allow_unscoped=args.tenant_id is None,
    )
    return {
        "success": True,
        "message": f"Updated {guest.name}'s RSVP status to {guest.attendance}.",
        "guest": guest_projection(guest),
    }


def add_guest(args: AddGuestArgs, db: Session, context: SecurityContext):
    guest = SecureGuestRepository(db, context).create({
        "tenant_id": args.tenant_id,
        "name": args.name,
        "relationship": args.relationship,
        "attendance": args.attendance,
        "message": args.message,
    })
    return {"success": True, "guest": guest_projection(guest)}


def get_tenant_info(args: TenantIdArgs, db: Session, context: SecurityContext):
    tenant = SecureTenantRepository(db, context).find_by_id(args.tenant_id)
    if tenant is None:
        raise not_found("Wedding not found.")
    return tenant_projection(tenant)


def get_tenant_by_slug(args: TenantBySlugArgs, db: Session, context: SecurityContext):
    tenant = SecureTenantRepository(db, context).find_by_slug(args.slug)
    if tenant is None:
        raise not_found("Wedding not found with the provided slug.")
    return tenant_projection(tenant)


def search_tenants(args: SearchTenantsArgs, db: Session, context: SecurityContext):
    result = SecureTenantRepository(db, context).find_many(
        TenantFilters(search=args.query, is_active=args.is_active),
        page=1,
        limit=args.limit,
    )
    return {
        "tenants": [
            {
                "id": t.id,
                "slug": t.slug,
                "brideName": t.bride_name,
                "groomName": t.groom_name,
                "weddingDate": _iso(t.wedding_date),
                "venueName": t.venue_name,
                "isActive": t.is_active,
            }
            for t in result.tenants
        ],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
    }


def export_guest_list(args: ExportGuestListArgs, db: Session, context: SecurityContext):
    repository = SecureGuestRepository(db, context)
    stats = repository.get_guest_stats(args.tenant_id)
    guests = repository.find_many(GuestFilters(tenant_id=args.tenant_id), limit=None).guests

    if args.format == "detailed":
        rows = [guest_projection(g) for g in guests]
    else:
        rows = [{"name": g.name, "attendance": g.attendance} for g in guests]

    return {
        "tenantId": args.tenant_id,
        "format": args.format,
        "summary": {
            "totalGuests": stats["total"],
            "attending": stats["attending"],
            "notAttending": stats["not_attending"],
            "maybe": stats["maybe"],
        },
        "guests": rows,
    }


AGENT_FUNCTIONS: Dict[str, AgentFunction] = {
    f.name: f
    for f in [
        AgentFunction(
            "getRsvpSummary",
            "Get detailed RSVP summary and recent activity for a specific wedding",
            TenantIdArgs,
            get_rsvp_summary,
        ),
        AgentFunction(
            "getGuestByTenant",
            "Get all guests for a specific wedding/tenant with optional filtering and pagination",
            GuestByTenantArgs,
            get_guest_by_tenant,
        ),
        AgentFunction(
            "searchGuests",
            "Search for guests by name or relationship across all weddings or within a specific wedding",
            SearchGuestsArgs,
            search_guests,
        ),
        AgentFunction(
            "updateGuestStatus",
            "Update a guest's RSVP status (yes/no/maybe)",
            UpdateGuestStatusArgs,
            update_guest_status,
        ),
        AgentFunction(
            "addGuest",
            "Add a new guest to a wedding",
            AddGuestArgs,
            add_guest,
        ),
        AgentFunction(
            "getTenantInfo",
            "Get detailed information about a specific wedding by ID",
            TenantIdArgs,
            get_tenant_info,
        ),
        AgentFunction(
            "getTenantBySlug",
            "Get wedding information by slug (URL-friendly identifier)",
            TenantBySlugArgs,
            get_tenant_by_slug,
        ),
        AgentFunction(
            "searchTenants",
            "Search for weddings by couple names or slug",
            SearchTenantsArgs,
            search_tenants,
        ),
        AgentFunction(
            "exportGuestList",
            "Export guest list for a wedding in summary or detailed format",
            ExportGuestListArgs,
            export_guest_list,
        ),
    ]
}


def get_tool_definitions() -> List[Dict[str, Any]]:
    return [f.definition() for f in AGENT_FUNCTIONS.values()]


def call_agent_function(
    name: str,
    arguments: Union[str, Dict[str, Any], None],
    db: Session,
    session: Optional[Dict[str, Any]],
) -> Any:
    """Validate arguments and run a registered function for the session's user."""
    function = AGENT_FUNCTIONS.get(name)
    if function is None:
        raise validation_error(f"Unknown function '{name}'")

    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise validation_error(f"Invalid arguments for {name}: {e.msg}") from e

    try:
        args = function.arguments.model_validate(arguments or {})
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise validation_error(f"Invalid arguments for {name}: {location} {first['msg']}") from e

    context = get_security_context(session)
    logger.info("Agent function %s called by %s", name, context.user_id)
    return function.handler(args, db, context)
