"""
Tenant data isolation: security context, access validation, parameter
sanitization and cross-tenant scope checks.

Every repository method runs ``validate_access`` first, then passes its ids
through ``validate_id`` and its filters/updates through ``sanitize_params``
before building a query. ``validate_scope`` is applied to loaded rows before
they are mutated.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.errors import ErrorCode, TenantError, validation_error

logger = logging.getLogger(__name__)

OPERATIONS = ("read", "write", "delete")

MAX_LIMIT = settings.MAX_PAGE_SIZE
MAX_SEARCH_LENGTH = 100
MAX_STRING_LENGTH = 500

DATE_RANGE_KEYS = ("wedding_date_from", "wedding_date_to")

_INT_PATTERN = re.compile(r"^[+]?\d+$")


@dataclass(frozen=True)
class SecurityContext:
    """Per-request authentication facts. Never persisted."""
    is_authenticated: bool
    user_id: Optional[str] = None
    is_admin: bool = False


ANONYMOUS = SecurityContext(is_authenticated=False)


def get_security_context(session: Optional[Dict[str, Any]]) -> SecurityContext:
    """Derive the security context from a session lookup result.

    Any authenticated user is an admin in this system. A malformed session
    yields an anonymous context instead of raising.
    """
    try:
        user = (session or {}).get("user")
        if not user:
            return ANONYMOUS
        user_id = user.get("id") if isinstance(user, dict) else getattr(user, "id", None)
        return SecurityContext(
            is_authenticated=True,
            user_id=str(user_id) if user_id is not None else None,
            is_admin=True,
        )
    except (AttributeError, TypeError):
        logger.warning("Malformed session, treating request as anonymous")
        return ANONYMOUS


def validate_access(context: SecurityContext, operation: str) -> None:
    """Fail closed unless the caller is an authenticated admin."""
    if operation not in OPERATIONS:
        raise validation_error(f"Unknown operation '{operation}'")

    if not context.is_authenticated:
        logger.warning("Denied unauthenticated %s operation", operation)
        raise TenantError(ErrorCode.UNAUTHORIZED, "Authentication required for tenant operations")

    if not context.is_admin:
        logger.warning("Denied %s operation for non-admin user %s", operation, context.user_id)
        raise TenantError(ErrorCode.FORBIDDEN, "Admin privileges required for tenant operations")


def validate_id(value: Any, label: str = "Tenant ID") -> int:
    """Return ``value`` as a positive int or raise VALIDATION_ERROR."""
    if value is None:
        raise validation_error(f"{label} is required")

    parsed = _parse_positive_int(value)
    if parsed is None:
        raise validation_error(f"Invalid {label} format")
    return parsed


def validate_scope(requested_tenant_id: int, actual_tenant_id: int) -> None:
    """Reject access to a row owned by a different tenant."""
    if requested_tenant_id != actual_tenant_id:
        logger.warning(
            "Cross-tenant access blocked: requested %s, record belongs to %s",
            requested_tenant_id, actual_tenant_id,
        )
        raise validation_error("Cross-tenant data access is not permitted")


def sanitize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Whitelist and coerce untrusted input. Pure; never raises."""
    sanitized: Dict[str, Any] = {}

    for key, value in params.items():
        if value is None:
            continue

        if key in ("id", "tenant_id", "page"):
            parsed = _parse_positive_int(value)
            if parsed is not None:
                sanitized[key] = parsed

        elif key == "limit":
            parsed = _parse_positive_int(value)
            if parsed is not None:
                sanitized[key] = min(parsed, MAX_LIMIT)

        elif key == "search":
            if isinstance(value, str):
                sanitized[key] = value.strip()[:MAX_SEARCH_LENGTH]

        elif key == "is_active":
            if isinstance(value, bool):
                sanitized[key] = value
            elif isinstance(value, str):
                sanitized[key] = value.strip().lower() == "true"

        elif key in DATE_RANGE_KEYS:
            if parse_date(value) is not None:
                sanitized[key] = value

        elif isinstance(value, str):
            sanitized[key] = value.strip()[:MAX_STRING_LENGTH]

        elif isinstance(value, (bool, int, float)):
            sanitized[key] = value

    return sanitized


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime; ``None`` when it is not a valid date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _parse_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        parsed = int(value)
    elif isinstance(value, str) and _INT_PATTERN.match(value.strip()):
        parsed = int(value.strip())
    else:
        return None
    return parsed if parsed > 0 else None
