"""
Tests for access validation, parameter sanitization and scope checks
"""

import pytest

from app.core.errors import ErrorCode, TenantError
from app.services.tenant_security import (
    ANONYMOUS,
    SecurityContext,
    get_security_context,
    sanitize_params,
    validate_access,
    validate_id,
    validate_scope,
)


def test_security_context_from_session():
    context = get_security_context({"user": {"id": "admin"}})
    assert context.is_authenticated
    assert context.is_admin
    assert context.user_id == "admin"


@pytest.mark.parametrize("session", [None, {}, {"user": None}, {"user": {}}])
def test_security_context_without_user_is_anonymous(session):
    assert get_security_context(session) == ANONYMOUS


def test_malformed_session_is_anonymous():
    assert get_security_context("not-a-session") == ANONYMOUS


def test_validate_access_unauthenticated():
    with pytest.raises(TenantError) as exc_info:
        validate_access(ANONYMOUS, "read")
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED
    assert exc_info.value.status_code == 401


def test_validate_access_non_admin():
    context = SecurityContext(is_authenticated=True, user_id="guest", is_admin=False)
    with pytest.raises(TenantError) as exc_info:
        validate_access(context, "write")
    assert exc_info.value.code == ErrorCode.FORBIDDEN


def test_validate_access_unknown_operation(admin_context):
    with pytest.raises(TenantError) as exc_info:
        validate_access(admin_context, "truncate")
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


def test_validate_access_admin(admin_context):
    for operation in ("read", "write", "delete"):
        validate_access(admin_context, operation)


@pytest.mark.parametrize("value,expected", [(5, 5), ("12", 12), (" 7 ", 7), (3.0, 3)])
def test_validate_id_accepts_positive_integers(value, expected):
    assert validate_id(value) == expected


@pytest.mark.parametrize("value", [0, -1, "abc", "1.5", 2.5, True, "", None])
def test_validate_id_rejects_invalid(value):
    with pytest.raises(TenantError) as exc_info:
        validate_id(value)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


def test_validate_scope():
    validate_scope(1, 1)
    with pytest.raises(TenantError) as exc_info:
        validate_scope(1, 2)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
    assert "cross-tenant" in exc_info.value.message.lower()


def test_sanitize_clamps_limit():
    assert sanitize_params({"limit": 9999}) == {"limit": 100}


def test_sanitize_drops_invalid_ids():
    assert sanitize_params({"id": "abc", "tenant_id": -3, "page": 0}) == {}
    assert sanitize_params({"id": "4", "tenant_id": 2, "page": "3"}) == {"id": 4, "tenant_id": 2, "page": 3}


def test_sanitize_search_trimmed_and_truncated():
    sanitized = sanitize_params({"search": "  " + "x" * 150 + "  "})
    assert sanitized["search"] == "x" * 100


def test_sanitize_is_active():
    assert sanitize_params({"is_active": "true"}) == {"is_active": True}
    assert sanitize_params({"is_active": "FALSE"}) == {"is_active": False}
    assert sanitize_params({"is_active": False}) == {"is_active": False}
    assert sanitize_params({"is_active": 1}) == {}


def test_sanitize_date_range():
    sanitized = sanitize_params({"wedding_date_from": "2030-01-01", "wedding_date_to": "not-a-date"})
    assert sanitized == {"wedding_date_from": "2030-01-01"}


def test_sanitize_other_values():
    sanitized = sanitize_params({
        "venue_name": "  Hall  ",
        "notes": "y" * 600,
        "count": 3,
        "ratio": 0.5,
        "flag": True,
        "nested": {"a": 1},
        "items": [1, 2],
        "missing": None,
    })
    assert sanitized == {
        "venue_name": "Hall",
        "notes": "y" * 500,
        "count": 3,
        "ratio": 0.5,
        "flag": True,
    }


def test_sanitize_is_idempotent():
    params = {
        "id": "12",
        "limit": 500,
        "search": "  anna  ",
        "is_active": "true",
        "wedding_date_from": "2030-01-01",
        "venue_name": " Hall ",
        "junk": object(),
    }
    once = sanitize_params(params)
    assert sanitize_params(once) == once
