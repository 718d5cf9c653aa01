"""
Assistant tool-calling routes - requires authentication
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.api.deps import ADMIN_DEPENDENCIES
from app.core.db import get_db
from app.services.agent_functions import call_agent_function, get_tool_definitions
from app.services.tenant_security import SecurityContext
from app.services.wedding_context import get_wedding_overview
from app.utils.responses import success_response
from app.utils.security import get_server_session, security_context

router = APIRouter(dependencies=ADMIN_DEPENDENCIES)


@router.get("/agent/functions")
async def list_agent_functions():
    """Tool definitions for a tool-calling client"""
    return success_response(data=get_tool_definitions())


@router.get("/agent/context")
async def get_agent_context(
    tenant_id: Optional[int] = None,
    today: Optional[date] = None,
    db: Session = Depends(get_db),
    context: SecurityContext = Depends(security_context)
):
    """System overview that primes the assistant, optionally focused on one wedding"""
    return success_response(data=get_wedding_overview(db, context, tenant_id=tenant_id, today=today))


@router.post("/agent/functions/{name}")
async def run_agent_function(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    session: Optional[Dict[str, Any]] = Depends(get_server_session)
):
    result = call_agent_function(name, arguments, db, session)
    return success_response(data=result)
