"""FastAPI dependencies exposing the resolved tenant.

Usage:
    @router.get("/storefront")
    def storefront(tenant: TenantContext = Depends(require_tenant)):
        return {"brand": tenant.business_name}
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from errors import AppError, TENANT_NOT_FOUND
from .resolver import TenantContext, TenantResolver


def get_current_tenant(request: Request) -> Optional[TenantContext]:
    """Tenant resolved by TenantResolutionMiddleware, or None."""
    return getattr(request.state, "tenant", None)


def require_tenant(request: Request) -> TenantContext:
    """Like get_current_tenant, but 404 TENANT_NOT_FOUND when absent.

    Raises:
        AppError 404: If the host does not belong to any tenant
    """
    tenant = get_current_tenant(request)
    if tenant is None:
        raise AppError(
            "No tenant is configured for this host",
            status_code=404,
            code=TENANT_NOT_FOUND,
        )
    return tenant


def get_tenant_resolver(request: Request) -> TenantResolver:
    return request.app.state.tenant_resolver


CurrentTenant = Annotated[TenantContext, Depends(require_tenant)]
Resolver = Annotated[TenantResolver, Depends(get_tenant_resolver)]
