"""Brand settings API endpoints.

Every endpoint operates on the authenticated user's business; the host the
request arrived on plays no part in which settings are read or changed.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from auth.dependencies import require_role
from auth.roles import UserRole
from database import get_db
from dependencies import get_business_id
from domains.dns_checker import DnsChecker, get_dns_checker
from models.user import User
from tenants.dependencies import Resolver
from .schemas import (
    BrandSettingsResponse,
    BrandSettingsUpdate,
    CustomDomainValidateRequest,
    CustomDomainValidateResponse,
    DomainStatusResponse,
    DomainSuggestionsResponse,
    SubdomainCheckResponse,
)
from .service import BrandSettingsService

router = APIRouter(prefix="/brand-settings", tags=["Brand Settings"])


def get_brand_settings_service(
    resolver: Resolver,
    db: Session = Depends(get_db),
    dns_checker: DnsChecker = Depends(get_dns_checker),
) -> BrandSettingsService:
    return BrandSettingsService(db, resolver=resolver, dns_checker=dns_checker)


@router.get("", response_model=BrandSettingsResponse)
def get_brand_settings(
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    """Brand settings of the current business (created on first access)."""
    return BrandSettingsResponse.model_validate(service.get_or_create(business_id))


@router.patch("", response_model=BrandSettingsResponse)
def update_brand_settings(
    payload: BrandSettingsUpdate,
    request: Request,
    business_id: UUID = Depends(get_business_id),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    """Partially update brand settings.

    Subdomain and custom domain changes are validated, audited and take
    effect on the next request (the tenant cache is invalidated).

    Raises:
        AppError 400: INVALID_SUBDOMAIN, SUBDOMAIN_RESERVED, SUBDOMAIN_TAKEN,
            INVALID_DOMAIN, DOMAIN_NOT_ALLOWED or DOMAIN_TAKEN
        AppError 403: User lacks ADMIN role
    """
    brand = service.update(
        business_id,
        payload.model_dump(exclude_unset=True),
        actor=current_user,
        request=request,
    )
    return BrandSettingsResponse.model_validate(brand)


@router.get("/subdomain/check", response_model=SubdomainCheckResponse)
def check_subdomain(
    subdomain: str = Query(..., min_length=1, max_length=255),
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    """Check whether a subdomain could be used by the current business."""
    value = subdomain.strip().lower()
    result = service.validate_subdomain(value, exclude_business_id=business_id)
    return SubdomainCheckResponse.from_result(value, result)


@router.post("/custom-domain/validate", response_model=CustomDomainValidateResponse)
def validate_custom_domain(
    payload: CustomDomainValidateRequest,
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    """Validate a custom domain, including a DNS A-record check (warning only)."""
    value = payload.domain.strip().lower()
    result = service.validate_custom_domain(value, exclude_business_id=business_id)
    return CustomDomainValidateResponse.from_result(value, result)


@router.get("/domain-status", response_model=DomainStatusResponse)
def get_domain_status(
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    return service.domain_status(business_id)


@router.get("/domain-suggestions", response_model=DomainSuggestionsResponse)
def get_domain_suggestions(
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: BrandSettingsService = Depends(get_brand_settings_service),
):
    return service.domain_suggestions(business_id)
