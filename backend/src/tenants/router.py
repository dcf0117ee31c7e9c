"""Tenant resolution API endpoints.

Public lookups of the tenant behind a host, plus platform-admin cache
management for the in-process tenant cache.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from auth.dependencies import require_role
from auth.roles import UserRole
from errors import AppError, TENANT_NOT_FOUND
from models.user import User
from observability.logging_config import get_logger
from .dependencies import CurrentTenant, Resolver
from .schemas import CacheClearResponse, CacheStatsResponse, TenantResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["Tenants"])


@router.get("/current", response_model=TenantResponse)
def get_current(tenant: CurrentTenant):
    """Tenant serving the request host.

    Returns:
        TenantResponse: Resolved tenant

    Raises:
        AppError 404 TENANT_NOT_FOUND: Platform host or unknown tenant
    """
    return TenantResponse.model_validate(tenant)


@router.get("/resolve", response_model=TenantResponse)
def resolve_host(
    resolver: Resolver,
    host: str = Query(..., min_length=1, max_length=1024, description="Hostname to resolve"),
):
    """Resolve an arbitrary hostname to its tenant.

    Raises:
        AppError 400 INVALID_HOST: Host failed validation
        AppError 404 TENANT_NOT_FOUND: No tenant for this host
    """
    tenant = resolver.resolve(host)
    if tenant is None:
        raise AppError(
            f"No tenant is configured for host '{host}'",
            status_code=404,
            code=TENANT_NOT_FOUND,
        )
    return TenantResponse.model_validate(tenant)


@router.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(
    resolver: Resolver,
    _: User = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    return CacheStatsResponse(**resolver.cache.stats())


@router.delete("/cache", response_model=CacheClearResponse)
def clear_cache(
    resolver: Resolver,
    expired_only: bool = Query(False, description="Only evict expired entries"),
    current_user: User = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    """Clear the tenant cache, or prune expired entries only."""
    if expired_only:
        removed = resolver.cache.prune_expired()
    else:
        removed = resolver.cache.clear()

    logger.info(
        f"Tenant cache {'pruned' if expired_only else 'cleared'} by {current_user.email}: {removed} entries",
        extra={"user_id": str(current_user.id)},
    )
    return CacheClearResponse(removed=removed, remaining=len(resolver.cache))


@router.delete("/cache/business/{business_id}", response_model=CacheClearResponse)
def invalidate_business_cache(
    business_id: UUID,
    resolver: Resolver,
    _: User = Depends(require_role(UserRole.PLATFORM_ADMIN)),
):
    """Drop every cached lookup that resolves to one business."""
    removed = resolver.invalidate_business(business_id)
    return CacheClearResponse(removed=removed, remaining=len(resolver.cache))
