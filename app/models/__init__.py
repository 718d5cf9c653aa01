"""
Database models package
"""

from .tenant import Tenant
from .guest import Guest
from .file import TenantFile

__all__ = ["Tenant", "Guest", "TenantFile"]
