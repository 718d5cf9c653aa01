"""
Tests for the assistant wedding overview
"""

from datetime import date

import pytest

from app.core.errors import ErrorCode, TenantError
from app.services.tenant_security import ANONYMOUS
from app.services.wedding_context import get_wedding_overview


def test_overview_totals(db_session, admin_context, tenant_repo, sample_guests, other_tenant):
    tenant_repo.delete(other_tenant.id)

    overview = get_wedding_overview(db_session, admin_context, today=date(2030, 6, 1))

    assert overview["totalTenants"] == 2
    assert overview["activeTenants"] == 1
    assert [w["brideName"] for w in overview["upcomingWeddings"]] == ["Anna"]
    assert overview["upcomingWeddings"][0]["daysUntilWedding"] == 14
    assert overview["rsvpSummary"] == {"totalGuests": 3, "confirmed": 1, "declined": 1, "pending": 1}
    assert {r["guestName"] for r in overview["recentRsvps"]} == {"John Doe", "Jane Roe", "Bob Smith"}
    assert "tenant" not in overview


def test_overview_for_one_wedding(db_session, admin_context, sample_guests, sample_tenant):
    overview = get_wedding_overview(db_session, admin_context, tenant_id=sample_tenant.id, today=date(2030, 6, 10))

    assert overview["tenant"]["wedding"]["couple"] == "Anna & Minh"
    assert overview["tenant"]["wedding"]["days_until_wedding"] == 5
    assert overview["tenant"]["rsvps"] == {"totalGuests": 3, "confirmed": 1, "declined": 1, "pending": 1}


def test_overview_unknown_wedding(db_session, admin_context):
    with pytest.raises(TenantError) as exc_info:
        get_wedding_overview(db_session, admin_context, tenant_id=999)
    assert exc_info.value.code == ErrorCode.TENANT_NOT_FOUND


def test_overview_requires_authentication(db_session):
    with pytest.raises(TenantError) as exc_info:
        get_wedding_overview(db_session, ANONYMOUS)
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED
