"""
Shared plumbing for the secure repositories.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import TenantError, database_error
from app.services.tenant_security import SecurityContext, validate_access

logger = logging.getLogger(__name__)


def to_params(data: Any) -> Dict[str, Any]:
    """Flatten a request object (pydantic model, dataclass or mapping) to a dict."""
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    return dict(data)


@contextmanager
def storage_boundary(db: Session, action: str) -> Iterator[None]:
    """Rewrap storage failures as DATABASE_ERROR; recognized errors pass through."""
    try:
        yield
    except TenantError:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s: %s", action, e)
        raise database_error(f"Failed to {action}: {e}") from e


class SecureRepository:
    """Base for repositories that gate every call on the security context"""

    def __init__(self, db: Session, security_context: SecurityContext):
        self.db = db
        self.security_context = security_context

    def authorize(self, operation: str) -> None:
        validate_access(self.security_context, operation)
