"""Brand settings service.

Owns the two routing keys of a business, its subdomain and its primary
custom domain. Every change is validated (syntax, reserved words, banned
and platform domains, availability), audited, and followed by tenant
cache invalidation so the new hostnames take effect immediately and the
old ones stop resolving.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_from_request
from config import Settings, settings as default_settings
from domains.dns_checker import DnsLookupError
from errors import AppError, CONFLICT, DOMAIN_TAKEN, NOT_FOUND, SUBDOMAIN_RESERVED, SUBDOMAIN_TAKEN
from models.brand_settings import BrandSettings
from models.business import Business
from models.domain_mapping import DomainMapping, DomainMappingStatus
from models.user import User
from observability.logging_config import get_logger
from tenants.cache import LOOKUP_DOMAIN, LOOKUP_SUBDOMAIN
from tenants.resolver import TenantResolver
from tenants.validation import (
    ValidationResult,
    check_custom_domain,
    generate_domain_suggestions,
    generate_subdomain_suggestions,
    is_reserved_subdomain,
    validate_subdomain_format,
)

logger = get_logger(__name__)

DOMAIN_FIELDS = ("subdomain", "custom_domain")


def subdomain_owner(db: Session, subdomain: str) -> Optional[UUID]:
    """Business holding a subdomain, if any."""
    return db.query(BrandSettings.business_id).filter(
        BrandSettings.subdomain == subdomain.lower()
    ).scalar()


def domain_owner(db: Session, domain: str) -> Optional[UUID]:
    """Business holding a custom domain (brand settings or live mapping)."""
    domain = domain.lower()
    owner = db.query(BrandSettings.business_id).filter(
        BrandSettings.custom_domain == domain
    ).scalar()
    if owner is not None:
        return owner

    return db.query(DomainMapping.business_id).filter(
        DomainMapping.domain == domain,
        DomainMapping.status != DomainMappingStatus.DELETING.value,
    ).scalar()


def check_dns_warnings(dns_checker, domain: str, result: ValidationResult) -> ValidationResult:
    """Attach non-fatal DNS findings to a passing result."""
    if dns_checker is None or not result.valid:
        return result

    try:
        if not dns_checker.has_address_record(domain):
            result.warnings.append("Domain does not have DNS A records configured")
            result.suggestions.append(
                "Configure your domain DNS to point to our servers before activation"
            )
    except DnsLookupError:
        result.warnings.append("DNS records could not be checked right now")

    return result


class BrandSettingsService:
    """
    Brand settings operations for one request.

    Args:
        db: Database session
        resolver: Tenant resolver whose cache must be invalidated on change
        dns_checker: Optional DnsChecker for custom domain warnings
        app_settings: Settings (platform base domains)
    """

    def __init__(
        self,
        db: Session,
        resolver: Optional[TenantResolver] = None,
        dns_checker=None,
        app_settings: Optional[Settings] = None,
    ):
        self.db = db
        self.resolver = resolver
        self.dns_checker = dns_checker
        self.settings = app_settings or default_settings

    def get_or_create(self, business_id: UUID) -> BrandSettings:
        """Settings row for a business, created with defaults on first access."""
        brand = self.db.query(BrandSettings).filter(
            BrandSettings.business_id == business_id
        ).first()
        if brand is not None:
            return brand

        if self.db.get(Business, business_id) is None:
            raise AppError("Business not found", status_code=status.HTTP_404_NOT_FOUND, code=NOT_FOUND)

        brand = BrandSettings(business_id=business_id)
        self.db.add(brand)
        self.db.commit()
        self.db.refresh(brand)
        logger.info(f"Created brand settings for business {business_id}")
        return brand

    def _available_suggestions(self, candidates: List[str]) -> List[str]:
        if not candidates:
            return []
        taken = {
            row[0] for row in self.db.query(BrandSettings.subdomain).filter(
                BrandSettings.subdomain.in_(candidates)
            )
        }
        return [c for c in candidates if c not in taken and not is_reserved_subdomain(c)]

    def validate_subdomain(
        self,
        subdomain: str,
        exclude_business_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """Format, then reserved words, then availability.

        Args:
            subdomain: Candidate subdomain
            exclude_business_id: Business allowed to already hold it (the caller)

        Returns:
            ValidationResult with available/reserved set
        """
        value = (subdomain or "").strip().lower()

        result = validate_subdomain_format(value)
        if not result.valid:
            result.available = False
            result.reserved = False
            return result

        if is_reserved_subdomain(value):
            return ValidationResult.fail(
                "This subdomain is reserved",
                SUBDOMAIN_RESERVED,
                available=False,
                reserved=True,
                suggestions=self._available_suggestions(generate_subdomain_suggestions(value)),
            )

        owner = subdomain_owner(self.db, value)
        if owner is not None and owner != exclude_business_id:
            return ValidationResult.fail(
                "This subdomain is already taken",
                SUBDOMAIN_TAKEN,
                available=False,
                reserved=False,
                suggestions=self._available_suggestions(generate_subdomain_suggestions(value)),
            )

        return ValidationResult.ok(available=True, reserved=False)

    def validate_custom_domain(
        self,
        domain: str,
        exclude_business_id: Optional[UUID] = None,
        check_dns: bool = True,
    ) -> ValidationResult:
        """Format, banned list, platform collision, availability, DNS warning."""
        value = (domain or "").strip().lower()

        result = check_custom_domain(value, self.settings.base_domains)
        if not result.valid:
            return result

        owner = domain_owner(self.db, value)
        if owner is not None and owner != exclude_business_id:
            return ValidationResult.fail(
                "This domain is already in use by another brand", DOMAIN_TAKEN
            )

        if check_dns:
            check_dns_warnings(self.dns_checker, value, result)

        return result

    def validate_domain_changes(
        self,
        business_id: UUID,
        update: Dict[str, Any],
        current: BrandSettings,
    ) -> None:
        """Validate subdomain/custom_domain values that actually change.

        Raises:
            AppError 400: With the failing code and suggestions in details
        """
        new_subdomain = update.get("subdomain")
        if "subdomain" in update and new_subdomain and new_subdomain != current.subdomain:
            result = self.validate_subdomain(new_subdomain, exclude_business_id=business_id)
            if not result.valid:
                raise AppError(
                    result.error,
                    status_code=status.HTTP_400_BAD_REQUEST,
                    code=result.code,
                    details={"field": "subdomain", "suggestions": result.suggestions},
                )

        new_domain = update.get("custom_domain")
        if "custom_domain" in update and new_domain and new_domain != current.custom_domain:
            result = self.validate_custom_domain(
                new_domain, exclude_business_id=business_id, check_dns=False
            )
            if not result.valid:
                raise AppError(
                    result.error,
                    status_code=status.HTTP_400_BAD_REQUEST,
                    code=result.code,
                    details={"field": "custom_domain", "suggestions": result.suggestions},
                )

    def update(
        self,
        business_id: UUID,
        update: Dict[str, Any],
        actor: Optional[User] = None,
        request: Optional[Request] = None,
    ) -> BrandSettings:
        """Apply a partial update.

        Domain changes are validated first, audited as BRAND_DOMAIN_CHANGED,
        and invalidate cached lookups for both the old and new hostnames.

        Raises:
            AppError 400: Invalid, reserved or taken subdomain/domain
            AppError 409 CONFLICT: Lost a race for a unique hostname
        """
        brand = self.get_or_create(business_id)
        old = {field: getattr(brand, field) for field in DOMAIN_FIELDS}

        self.validate_domain_changes(business_id, update, brand)

        for field, value in update.items():
            if value is None and field == "enable_ssl":
                continue
            if value is None and field == "banner_images":
                value = []
            setattr(brand, field, value)

        changes = {
            field: {"old": old[field], "new": getattr(brand, field)}
            for field in DOMAIN_FIELDS
            if getattr(brand, field) != old[field]
        }

        if changes:
            log_from_request(
                db=self.db,
                request=request,
                business_id=business_id,
                action="BRAND_DOMAIN_CHANGED",
                actor_id=actor.id if actor else None,
                entity_type="brand_settings",
                entity_id=brand.id,
                metadata=changes,
            )

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AppError(
                "Subdomain or custom domain was claimed by another brand",
                status_code=status.HTTP_409_CONFLICT,
                code=CONFLICT,
            )
        self.db.refresh(brand)

        if changes and self.resolver is not None:
            self.resolver.invalidate_business(
                business_id,
                (LOOKUP_SUBDOMAIN, old["subdomain"]),
                (LOOKUP_SUBDOMAIN, brand.subdomain),
                (LOOKUP_DOMAIN, old["custom_domain"]),
                (LOOKUP_DOMAIN, brand.custom_domain),
            )
            logger.info(
                f"Brand domains changed for business {business_id}: {sorted(changes)}",
                extra={"business_id": str(business_id)},
            )

        return brand

    def _url(self, host: str, ssl: bool) -> str:
        return f"{'https' if ssl else 'http'}://{host}"

    def domain_status(self, business_id: UUID) -> Dict[str, Any]:
        """Configuration state of the subdomain and custom domain."""
        brand = self.get_or_create(business_id)

        subdomain = {"configured": bool(brand.subdomain), "value": brand.subdomain, "url": None}
        if brand.subdomain:
            subdomain["url"] = self._url(
                f"{brand.subdomain}.{self.settings.primary_domain}", brand.enable_ssl
            )

        custom = {
            "configured": bool(brand.custom_domain),
            "value": brand.custom_domain,
            "verified": False,
            "ssl_enabled": False,
            "url": None,
        }
        if brand.custom_domain:
            mapping = self.db.query(DomainMapping).filter(
                DomainMapping.business_id == business_id,
                DomainMapping.domain == brand.custom_domain,
            ).first()
            custom["verified"] = bool(mapping and mapping.is_verified)
            custom["ssl_enabled"] = bool(brand.enable_ssl)
            custom["url"] = self._url(brand.custom_domain, brand.enable_ssl)

        return {"subdomain": subdomain, "custom_domain": custom}

    def domain_suggestions(self, business_id: UUID) -> Dict[str, List[str]]:
        """Subdomain and custom domain ideas derived from the business."""
        business = self.db.get(Business, business_id)
        if business is None:
            raise AppError("Business not found", status_code=status.HTTP_404_NOT_FOUND, code=NOT_FOUND)

        base = business.slug
        candidates = [base] + generate_subdomain_suggestions(base)
        subdomains = [
            c for c in self._available_suggestions(candidates)
            if validate_subdomain_format(c).valid
        ]
        return {
            "subdomains": subdomains,
            "domains": generate_domain_suggestions(business.name),
        }
