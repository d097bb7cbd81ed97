"""Module: api."""

from fastapi import APIRouter

from portal.api.v1.routes.health import router as health_router
from portal.api.v1.routes.admin_ops import router as admin_ops_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(admin_ops_router, prefix="/admin-ops", tags=["admin-ops"])
