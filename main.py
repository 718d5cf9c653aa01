"""
Wedding Invitation Admin - FastAPI Backend
Main application entry point
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import uvicorn

from app.core.config import settings
from app.core.db import engine, Base
from app.core.errors import ErrorCode, TenantError
from app.api import routes_agent, routes_files, routes_guests, routes_public, routes_tenants
from app.utils.responses import error_response, tenant_error_response
from app.utils.security import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Wedding Invitation Admin",
    description="Multi-tenant admin backend for wedding invitations and guest lists",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

# Uploaded media is served from the local blob store root
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

@app.exception_handler(TenantError)
async def handle_tenant_error(request: Request, exc: TenantError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return tenant_error_response(exc)

@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {"loc": (), "msg": "Invalid request"}
    field = ".".join(str(part) for part in first["loc"] if part != "body")
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return error_response(ErrorCode.VALIDATION_ERROR.value, message, 400)

# Include routers; guests first so /tenants/import-sample wins over /tenants/{tenant_id}
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_guests.router, tags=["guests"])
app.include_router(routes_tenants.router, tags=["tenants"])
app.include_router(routes_files.router, tags=["files"])
app.include_router(routes_agent.router, tags=["agent"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
