"""Ordira Backend - Main FastAPI Application

Multi-tenant brand platform: every brand is served on its own subdomain
of the platform domain or on a custom domain, and each request is routed
to its tenant by hostname.

This module creates and configures the FastAPI application:
- Routers (auth, tenants, brand settings, domains, observability)
- Middleware (request ID correlation, CORS, tenant resolution)
- Exception handlers (uniform error envelope)
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from errors import register_exception_handlers

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Authentication
from auth.router import router as auth_router

# Tenant resolution
from tenants.middleware import TenantResolutionMiddleware
from tenants.resolver import build_resolver
from tenants.router import router as tenants_router

# Brands & domains
from brands.router import router as brand_settings_router
from domains.router import router as domains_router

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

_docs_enabled = settings.ENV != "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Ordira API starting up...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Platform domains: {', '.join(settings.base_domains)}")

    yield

    removed = app.state.tenant_resolver.cache.clear()
    logger.info(f"Ordira API shutting down (dropped {removed} cached tenants)")


app = FastAPI(
    title="Ordira API",
    description="Multi-tenant brand platform with subdomain and custom domain routing",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)

# Set at import time (not in lifespan) so the resolver exists even when
# the app is driven without lifespan events
app.state.tenant_resolver = build_resolver(settings)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================
# Starlette runs the last-added middleware first, so the order below is
# innermost to outermost: RequestID wraps CORS wraps tenant resolution.

app.add_middleware(TenantResolutionMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.add_middleware(RequestIDMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

register_exception_handlers(app)


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics, ready)
app.include_router(observability_router)

app.include_router(auth_router, prefix="/api/v1")
app.include_router(tenants_router, prefix="/api/v1")
app.include_router(brand_settings_router, prefix="/api/v1")
app.include_router(domains_router, prefix="/api/v1")


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "Ordira API",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
    }


@app.get("/api/v1", include_in_schema=False)
async def api_root() -> dict[str, Any]:
    """API v1 root endpoint."""
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "auth": "/api/v1/auth",
            "tenants": "/api/v1/tenants",
            "brand_settings": "/api/v1/brand-settings",
            "domains": "/api/v1/domains",
        }
    }


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENV == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
