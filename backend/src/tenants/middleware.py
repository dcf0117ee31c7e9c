"""Middleware resolving the tenant for every inbound request.

The resolved TenantContext (or None for platform hosts) is attached to
request.state.tenant and its business_id is placed in the logging
context. Handlers read it through tenants.dependencies.
"""

from typing import Callable

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings
from errors import TENANT_RESOLUTION_FAILED, error_response
from observability.logging_config import get_logger
from observability.request_id import set_business_id
from .resolver import InvalidHostError

logger = get_logger(__name__)

# Probes and scraping must work regardless of the Host header
SKIP_PATHS = frozenset({"/health", "/ready", "/metrics"})


def get_request_host(request: Request, trust_forwarded: bool = False) -> str:
    """Host the client addressed.

    X-Forwarded-Host (first value) is only honored when the deployment sits
    behind a proxy that sets it; otherwise clients could pick any tenant.
    """
    if trust_forwarded:
        forwarded = request.headers.get("X-Forwarded-Host")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.headers.get("host", "")


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Resolve request.state.tenant from the Host header.

    Responses:
        400 INVALID_HOST: Host failed validation (spoofing, traversal, length)
        503 TENANT_RESOLUTION_FAILED: Database unavailable during lookup

    The resolver is read from request.app.state.tenant_resolver so tests
    can swap it for one bound to their own database.

    Usage:
        app.state.tenant_resolver = build_resolver(settings)
        app.add_middleware(TenantResolutionMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.tenant = None
        set_business_id(None)

        # scope path, not request.url: the URL is rebuilt from the untrusted Host
        if request.scope["path"] in SKIP_PATHS:
            return await call_next(request)

        resolver = request.app.state.tenant_resolver
        host = get_request_host(request, settings.TRUST_FORWARDED_HOST)

        try:
            # Sync database lookup; keep it off the event loop
            tenant = await run_in_threadpool(resolver.resolve, host)
        except InvalidHostError as e:
            return error_response(e.status_code, e.code, e.message, e.details)
        except SQLAlchemyError as e:
            logger.error(f"Tenant resolution failed for host {host!r}: {e}", exc_info=True)
            return error_response(
                503,
                TENANT_RESOLUTION_FAILED,
                "Tenant resolution is temporarily unavailable",
            )

        request.state.tenant = tenant
        if tenant is not None:
            set_business_id(str(tenant.business_id))

        try:
            return await call_next(request)
        finally:
            set_business_id(None)
