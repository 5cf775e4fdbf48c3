"""API routes."""

from fastapi import APIRouter

from leadpipe.api.routes import auth, dashboard, ingest, leads, sla, tenant_config, tenants, users

api_router = APIRouter()

# Public routes (no auth required)
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Ingestion (tenant API key or operator session)
api_router.include_router(ingest.router, prefix="/ingest", tags=["ingest"])

# Protected routes (auth required)
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(tenant_config.router, prefix="/tenant", tags=["tenant"])
api_router.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(sla.router, prefix="/sla", tags=["sla"])
