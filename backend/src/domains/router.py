"""Custom domain mapping API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from auth.dependencies import require_role
from auth.roles import UserRole
from database import get_db
from dependencies import get_business_id
from models.user import User
from tenants.dependencies import Resolver
from .dns_checker import DnsChecker, get_dns_checker
from .schemas import (
    DomainMappingCreate,
    DomainMappingCreateResponse,
    DomainMappingListResponse,
    DomainMappingResponse,
    DomainMappingUpdate,
    SetupInstructionsResponse,
    VerificationResponse,
)
from .service import DomainMappingService

router = APIRouter(prefix="/domains", tags=["Domains"])


def get_domain_mapping_service(
    resolver: Resolver,
    db: Session = Depends(get_db),
    dns_checker: DnsChecker = Depends(get_dns_checker),
) -> DomainMappingService:
    return DomainMappingService(db, resolver=resolver, dns_checker=dns_checker)


@router.post("", response_model=DomainMappingCreateResponse, status_code=status.HTTP_201_CREATED)
def create_domain_mapping(
    payload: DomainMappingCreate,
    request: Request,
    business_id: UUID = Depends(get_business_id),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    """Add a custom domain; returns the DNS records needed for verification.

    Raises:
        AppError 400: INVALID_DOMAIN or DOMAIN_NOT_ALLOWED
        AppError 409 DOMAIN_TAKEN: Domain already in use
    """
    mapping = service.create(business_id, payload.model_dump(), actor=current_user, request=request)
    return DomainMappingCreateResponse(
        mapping=DomainMappingResponse.model_validate(mapping),
        setup=service.setup(business_id, mapping.id),
    )


@router.get("", response_model=DomainMappingListResponse)
def list_domain_mappings(
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    mappings = service.list(business_id)
    return DomainMappingListResponse(
        items=[DomainMappingResponse.model_validate(m) for m in mappings],
        total=len(mappings),
    )


@router.get("/{mapping_id}", response_model=DomainMappingResponse)
def get_domain_mapping(
    mapping_id: UUID,
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    return DomainMappingResponse.model_validate(service.get(business_id, mapping_id))


@router.get("/{mapping_id}/setup", response_model=SetupInstructionsResponse)
def get_setup_instructions(
    mapping_id: UUID,
    business_id: UUID = Depends(get_business_id),
    _: User = Depends(require_role(UserRole.VIEWER)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    """DNS records, verification token and next steps for a mapping."""
    return service.setup(business_id, mapping_id)


@router.post("/{mapping_id}/verify", response_model=VerificationResponse)
def verify_domain_mapping(
    mapping_id: UUID,
    request: Request,
    business_id: UUID = Depends(get_business_id),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    """Check the ownership TXT record; activates the domain when found."""
    return service.verify(business_id, mapping_id, actor=current_user, request=request)


@router.patch("/{mapping_id}", response_model=DomainMappingResponse)
def update_domain_mapping(
    mapping_id: UUID,
    payload: DomainMappingUpdate,
    request: Request,
    business_id: UUID = Depends(get_business_id),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    mapping = service.update(
        business_id,
        mapping_id,
        payload.model_dump(exclude_unset=True),
        actor=current_user,
        request=request,
    )
    return DomainMappingResponse.model_validate(mapping)


@router.delete("/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_domain_mapping(
    mapping_id: UUID,
    request: Request,
    force: bool = Query(False, description="Remove even if the domain is active"),
    business_id: UUID = Depends(get_business_id),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    service: DomainMappingService = Depends(get_domain_mapping_service),
):
    """Remove a mapping.

    Raises:
        AppError 409 DOMAIN_IN_USE: Mapping is active and force is false
    """
    service.delete(business_id, mapping_id, actor=current_user, request=request, force=force)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
