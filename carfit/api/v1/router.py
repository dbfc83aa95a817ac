"""Version 1 API router."""
from fastapi import APIRouter

from carfit.api.v1.endpoints import admin_subscriptions, admin_tenants, records, tenants

api_router = APIRouter()
api_router.include_router(tenants.router)
api_router.include_router(admin_subscriptions.router)
api_router.include_router(admin_tenants.router)
api_router.include_router(records.vehicles_router)
api_router.include_router(records.service_jobs_router)
api_router.include_router(records.requirements_router)
api_router.include_router(records.follow_ups_router)
