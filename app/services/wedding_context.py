"""
System-wide wedding overview used to prime the assistant.

Aggregates tenant statistics, weddings in the next 30 days, the last week of
RSVP activity and overall attendance counts. With a tenant id it also carries
that wedding's context and RSVP counts.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import not_found
from app.services.guest_repository import SecureGuestRepository
from app.services.tenant_repository import SecureTenantRepository
from app.services.tenant_security import SecurityContext

logger = logging.getLogger(__name__)

UPCOMING_DAYS = 30
RECENT_RSVP_DAYS = 7
RECENT_RSVP_LIMIT = 10


def get_wedding_overview(
    db: Session,
    context: SecurityContext,
    tenant_id: Optional[int] = None,
    today: date = None,
    now: datetime = None,
) -> Dict[str, Any]:
    tenant_repository = SecureTenantRepository(db, context)
    guest_repository = SecureGuestRepository(db, context)

    statistics = tenant_repository.get_tenant_statistics()
    upcoming = tenant_repository.get_upcoming_weddings(today=today, days=UPCOMING_DAYS)
    recent = guest_repository.get_recent_rsvps(days=RECENT_RSVP_DAYS, limit=RECENT_RSVP_LIMIT, now=now)
    summary = guest_repository.get_overall_rsvp_summary()

    overview = {
        "totalTenants": statistics["total"],
        "activeTenants": statistics["active"],
        "upcomingWeddings": [
            {
                "id": wedding["id"],
                "brideName": wedding["bride_name"],
                "groomName": wedding["groom_name"],
                "weddingDate": wedding["wedding_date"],
                "venueName": wedding["venue_name"],
                "daysUntilWedding": wedding["days_until_wedding"],
            }
            for wedding in upcoming
        ],
        "recentRsvps": [
            {
                "guestName": rsvp["guest_name"],
                "tenantId": rsvp["tenant_id"],
                "tenantNames": rsvp["wedding"],
                "attendance": rsvp["attendance"],
                "submittedAt": rsvp["submitted_at"],
            }
            for rsvp in recent
        ],
        "rsvpSummary": {
            "totalGuests": summary["total"],
            "confirmed": summary["confirmed"],
            "declined": summary["declined"],
            "pending": summary["pending"],
        },
    }

    if tenant_id is not None:
        wedding = tenant_repository.get_tenant_context(tenant_id, today=today)
        if wedding is None:
            raise not_found(f"Tenant with ID {tenant_id} not found")
        stats = guest_repository.get_guest_stats(tenant_id)
        overview["tenant"] = {
            "wedding": wedding,
            "rsvps": {
                "totalGuests": stats["total"],
                "confirmed": stats["attending"],
                "declined": stats["not_attending"],
                "pending": stats["maybe"],
            },
        }

    logger.debug("Built wedding overview for %s", context.user_id)
    return overview
