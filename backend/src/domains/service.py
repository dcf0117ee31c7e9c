"""Custom domain mapping service.

Lifecycle of a mapping:
1. create: domain validated and claimed, TXT token and required DNS
   records generated, status pending_verification
2. verify: TXT lookup; a record carrying the token marks the mapping
   verified and active, after which the resolver routes the domain
3. delete: only pending or failed mappings, unless forced

Routing changes invalidate the tenant cache for the affected domain.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audit.service import log_from_request
from brands.service import BrandSettingsService
from config import Settings, settings as default_settings
from dependencies import TenantQuery
from errors import AppError, DOMAIN_IN_USE, DOMAIN_TAKEN
from models.domain_mapping import DnsStatus, DomainMapping, DomainMappingStatus
from models.user import User
from observability.logging_config import get_logger
from observability.metrics import domain_verifications_total
from tenants.cache import LOOKUP_DOMAIN
from tenants.resolver import TenantResolver
from .dns_checker import DnsLookupError

logger = get_logger(__name__)

DNS_RECORD_TTL = 300


class DomainMappingService:
    """
    Domain mapping operations for one request.

    Args:
        db: Database session
        resolver: Tenant resolver whose cache must be invalidated on change
        dns_checker: DnsChecker used for ownership verification
        app_settings: Settings (CNAME target, TXT prefix, base domains)
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
        self.brands = BrandSettingsService(db, resolver, dns_checker, self.settings)

    def expected_txt_value(self, token: str) -> str:
        return f"{self.settings.DOMAIN_VERIFICATION_PREFIX}={token}"

    def required_records(self, mapping: DomainMapping) -> List[Dict[str, Any]]:
        """DNS records the domain owner must publish."""
        return [
            {
                "type": "TXT",
                "name": mapping.domain,
                "value": self.expected_txt_value(mapping.verification_token),
                "ttl": DNS_RECORD_TTL,
                "required": True,
            },
            {
                "type": "CNAME",
                "name": mapping.domain,
                "value": mapping.cname_target,
                "ttl": DNS_RECORD_TTL,
                "required": True,
            },
        ]

    def _invalidate(self, business_id: UUID, domain: str) -> None:
        if self.resolver is not None:
            self.resolver.invalidate_business(business_id, (LOOKUP_DOMAIN, domain))

    def create(
        self,
        business_id: UUID,
        payload: Dict[str, Any],
        actor: Optional[User] = None,
        request: Optional[Request] = None,
    ) -> DomainMapping:
        """Claim a custom domain for a business.

        Raises:
            AppError 400: INVALID_DOMAIN or DOMAIN_NOT_ALLOWED
            AppError 409 DOMAIN_TAKEN: Domain already mapped or in use
        """
        domain = payload["domain"].strip().lower()

        result = self.brands.validate_custom_domain(domain, exclude_business_id=None, check_dns=False)
        if not result.valid:
            status_code = status.HTTP_409_CONFLICT if result.code == DOMAIN_TAKEN else status.HTTP_400_BAD_REQUEST
            raise AppError(result.error, status_code=status_code, code=result.code, details={"domain": domain})

        mapping = DomainMapping(
            business_id=business_id,
            domain=domain,
            certificate_type=payload.get("certificate_type", "letsencrypt"),
            force_https=payload.get("force_https", True),
            auto_renewal=payload.get("auto_renewal", True),
            verification_method=payload.get("verification_method", "dns"),
            status=DomainMappingStatus.PENDING_VERIFICATION.value,
            dns_status=DnsStatus.PENDING.value,
            cname_target=self.settings.CNAME_TARGET,
            created_by=actor.id if actor else None,
        )
        mapping.generate_verification_token()
        mapping.dns_records = self.required_records(mapping)

        self.db.add(mapping)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise AppError(
                "This domain is already in use by another brand",
                status_code=status.HTTP_409_CONFLICT,
                code=DOMAIN_TAKEN,
                details={"domain": domain},
            )

        log_from_request(
            db=self.db,
            request=request,
            business_id=business_id,
            action="DOMAIN_MAPPING_CREATED",
            actor_id=actor.id if actor else None,
            entity_type="domain_mapping",
            entity_id=mapping.id,
            metadata={"domain": domain},
        )
        self.db.commit()
        self.db.refresh(mapping)

        logger.info(f"Domain mapping created: {domain}", extra={"business_id": str(business_id)})
        return mapping

    def list(self, business_id: UUID) -> List[DomainMapping]:
        """Mappings of a business, newest first (deleting ones excluded)."""
        return (
            TenantQuery.scoped_query(self.db, DomainMapping, business_id)
            .filter(DomainMapping.status != DomainMappingStatus.DELETING.value)
            .order_by(DomainMapping.created_at.desc())
            .all()
        )

    def get(self, business_id: UUID, mapping_id: UUID) -> DomainMapping:
        """Raises AppError 404 for unknown mappings and other businesses' mappings."""
        return TenantQuery.get_or_404(self.db, DomainMapping, mapping_id, business_id)

    def verify(
        self,
        business_id: UUID,
        mapping_id: UUID,
        actor: Optional[User] = None,
        request: Optional[Request] = None,
    ) -> Dict[str, Any]:
        """Check the ownership TXT record and activate the mapping on success."""
        mapping = self.get(business_id, mapping_id)

        if mapping.is_verified:
            return self._verification_result(mapping, "Domain is already verified")

        token = mapping.verification_token or mapping.generate_verification_token()
        expected = self.expected_txt_value(token)
        mapping.last_checked_at = datetime.now(timezone.utc)

        try:
            records = self.dns_checker.txt_records(mapping.domain) if self.dns_checker else []
        except DnsLookupError as e:
            mapping.status = DomainMappingStatus.ERROR.value
            mapping.dns_status = DnsStatus.ERROR.value
            self.db.commit()
            domain_verifications_total.labels(result="error").inc()
            logger.warning(f"Verification lookup failed for {mapping.domain}: {e}")
            return self._verification_result(
                mapping,
                "DNS lookup failed, please try again later",
                include_records=True,
            )

        if not any(record.strip() == expected or token in record for record in records):
            mapping.dns_status = DnsStatus.PENDING.value
            if mapping.status == DomainMappingStatus.ERROR.value:
                mapping.status = DomainMappingStatus.PENDING_VERIFICATION.value
            self.db.commit()
            domain_verifications_total.labels(result="pending").inc()
            return self._verification_result(
                mapping,
                "Verification record not found. DNS changes can take up to an hour to propagate.",
                include_records=True,
            )

        mapping.mark_verified(actor.id if actor else None)
        if mapping.certificate_type == "letsencrypt":
            mapping.ssl_enabled = True

        log_from_request(
            db=self.db,
            request=request,
            business_id=business_id,
            action="DOMAIN_MAPPING_VERIFIED",
            actor_id=actor.id if actor else None,
            entity_type="domain_mapping",
            entity_id=mapping.id,
            metadata={"domain": mapping.domain},
        )
        self.db.commit()
        self.db.refresh(mapping)

        self._invalidate(business_id, mapping.domain)
        domain_verifications_total.labels(result="verified").inc()
        logger.info(f"Domain verified: {mapping.domain}", extra={"business_id": str(business_id)})

        return self._verification_result(mapping, "Domain verified successfully")

    def _verification_result(
        self,
        mapping: DomainMapping,
        message: str,
        include_records: bool = False,
    ) -> Dict[str, Any]:
        return {
            "domain_id": mapping.id,
            "domain": mapping.domain,
            "verified": bool(mapping.is_verified),
            "status": mapping.status,
            "dns_status": mapping.dns_status,
            "verified_at": mapping.verified_at,
            "message": message,
            "required_records": self.required_records(mapping) if include_records else [],
        }

    def setup(self, business_id: UUID, mapping_id: UUID) -> Dict[str, Any]:
        mapping = self.get(business_id, mapping_id)
        instructions = mapping.setup_instructions()
        instructions["domain"] = mapping.domain
        instructions["status"] = mapping.status
        return instructions

    def update(
        self,
        business_id: UUID,
        mapping_id: UUID,
        changes: Dict[str, Any],
        actor: Optional[User] = None,
        request: Optional[Request] = None,
    ) -> DomainMapping:
        """Update certificate and HTTPS options of a mapping."""
        mapping = self.get(business_id, mapping_id)

        applied = {}
        for field, value in changes.items():
            if value is None or getattr(mapping, field) == value:
                continue
            applied[field] = {"old": getattr(mapping, field), "new": value}
            setattr(mapping, field, value)

        if applied:
            log_from_request(
                db=self.db,
                request=request,
                business_id=business_id,
                action="DOMAIN_MAPPING_UPDATED",
                actor_id=actor.id if actor else None,
                entity_type="domain_mapping",
                entity_id=mapping.id,
                metadata={"domain": mapping.domain, "changes": applied},
            )
            self.db.commit()
            self.db.refresh(mapping)
            self._invalidate(business_id, mapping.domain)

        return mapping

    def delete(
        self,
        business_id: UUID,
        mapping_id: UUID,
        actor: Optional[User] = None,
        request: Optional[Request] = None,
        force: bool = False,
    ) -> None:
        """Remove a mapping.

        Raises:
            AppError 409 DOMAIN_IN_USE: Mapping is serving traffic and force is False
        """
        mapping = self.get(business_id, mapping_id)

        if not mapping.can_be_deleted() and not force:
            raise AppError(
                "Domain is active; pass force=true to remove it",
                status_code=status.HTTP_409_CONFLICT,
                code=DOMAIN_IN_USE,
                details={"domain": mapping.domain, "status": mapping.status},
            )

        domain = mapping.domain
        log_from_request(
            db=self.db,
            request=request,
            business_id=business_id,
            action="DOMAIN_MAPPING_DELETED",
            actor_id=actor.id if actor else None,
            entity_type="domain_mapping",
            entity_id=mapping.id,
            metadata={"domain": domain, "status": mapping.status, "forced": force},
        )
        self.db.delete(mapping)
        self.db.commit()

        self._invalidate(business_id, domain)
        logger.info(f"Domain mapping deleted: {domain}", extra={"business_id": str(business_id)})
