# support_lifecycle/routers/__init__.py
"""
API routers for admin, account and scheduler endpoints.
"""

from support_lifecycle.routers.account import router as account_router
from support_lifecycle.routers.admin_support import router as admin_support_router
from support_lifecycle.routers.jobs import router as jobs_router

__all__ = [
    "account_router",
    "admin_support_router",
    "jobs_router",
]
