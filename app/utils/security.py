"""
Security utilities and authentication
"""

from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.errors import ErrorCode, TenantError
from app.services.rate_limiter import get_rate_limiter
from app.services.tenant_security import SecurityContext, get_security_context

security = HTTPBearer(auto_error=False)


def get_server_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Resolve the bearer token to a session; None for unknown tokens"""
    if credentials is None:
        return None

    user_id = settings.ADMIN_TOKENS.get(credentials.credentials)
    if user_id is None:
        return None
    return {"user": {"id": user_id}}


def security_context(
    session: Optional[Dict[str, Any]] = Depends(get_server_session),
) -> SecurityContext:
    return get_security_context(session)


def require_admin(context: SecurityContext = Depends(security_context)) -> SecurityContext:
    """Reject the request early; repositories validate again on every call"""
    if not context.is_authenticated:
        raise TenantError(ErrorCode.UNAUTHORIZED, "Authentication required")
    if not context.is_admin:
        raise TenantError(ErrorCode.FORBIDDEN, "Admin privileges required")
    return context


def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(
    request: Request,
    context: SecurityContext = Depends(security_context),
) -> None:
    """Rate limit by user id, or by client IP for anonymous callers"""
    key = f"user:{context.user_id}" if context.user_id else f"ip:{get_client_ip(request)}"
    if not get_rate_limiter().check(key):
        raise TenantError(ErrorCode.RATE_LIMIT_EXCEEDED, "Rate limit exceeded. Please try again later.")


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add the standard hardening headers to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response
