"""Observability API endpoints.

Provides metrics, health checks, and readiness probes for monitoring.
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from database import get_db
from .health import (
    check_database_health,
    check_redis_health,
    check_tenant_cache_health,
    get_overall_health,
    HealthStatus,
)
from .metrics import tenant_cache_entries

router = APIRouter(tags=["Observability"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    include_in_schema=False,
)
def metrics(request: Request):
    """Expose Prometheus metrics in text exposition format."""
    resolver = getattr(request.app.state, "tenant_resolver", None)
    if resolver is not None:
        tenant_cache_entries.set(len(resolver.cache))
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of system components (database, Redis, tenant cache)",
    status_code=200,
)
def health_check(request: Request, db: Session = Depends(get_db)):
    """Check health of all system components.

    Returns 200 OK unless a component is unhealthy, in which case 503.
    """
    components = {
        "database": check_database_health(db),
        "redis": check_redis_health(),
    }
    resolver = getattr(request.app.state, "tenant_resolver", None)
    if resolver is not None:
        components["tenant_cache"] = check_tenant_cache_health(resolver.cache)

    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        }
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503

    return JSONResponse(
        content=response_data,
        status_code=status_code
    )


@router.get(
    "/ready",
    summary="Readiness check endpoint",
    description="Returns readiness status (for Kubernetes readiness probes)",
    status_code=200,
)
def readiness_check(db: Session = Depends(get_db)):
    """Check if application is ready to serve traffic.

    Only the database is required to serve tenant traffic.
    """
    db_health = check_database_health(db)

    if db_health.status == HealthStatus.HEALTHY:
        return {
            "status": "ready",
            "message": "Application is ready to serve traffic"
        }
    return JSONResponse(
        content={
            "status": "not_ready",
            "message": db_health.message
        },
        status_code=503
    )
