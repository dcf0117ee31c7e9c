"""DomainMapping model - additional custom domains for a business"""

import enum
import secrets
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Text, Uuid, func, text
from sqlalchemy.orm import relationship, validates

from .base import Base, PortableJSONB


class DomainMappingStatus(str, enum.Enum):
    PENDING_VERIFICATION = "pending_verification"
    ACTIVE = "active"
    ERROR = "error"
    DELETING = "deleting"


class DnsStatus(str, enum.Enum):
    UNKNOWN = "unknown"
    PENDING = "pending"
    VERIFIED = "verified"
    ERROR = "error"


CERTIFICATE_TYPES = ("letsencrypt", "custom")
VERIFICATION_METHODS = ("dns", "file", "email")


class DomainMapping(Base):
    """
    A custom domain pointed at a business.

    A mapping only routes traffic once ownership has been proven through a
    DNS TXT record: the resolver matches mappings that are active, verified
    and in status 'active'.

    State machine:
        pending_verification -> active (mark_verified)
        pending_verification -> error (DNS lookup failure)
        error -> active (mark_verified)
    """
    __tablename__ = "domain_mapping"
    __table_args__ = (
        Index("ix_domain_mapping_business_id", "business_id"),
        Index("ix_domain_mapping_lookup", "domain", "is_active", "is_verified", "status"),
        CheckConstraint(
            "status IN ('pending_verification', 'active', 'error', 'deleting')",
            name='ck_domain_mapping_status'
        ),
        CheckConstraint(
            "certificate_type IN ('letsencrypt', 'custom')",
            name='ck_domain_mapping_certificate_type'
        ),
        CheckConstraint(
            "verification_method IN ('dns', 'file', 'email')",
            name='ck_domain_mapping_verification_method'
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid, ForeignKey("business.id", ondelete="CASCADE"), nullable=False)
    domain = Column(Text, nullable=False, unique=True)

    status = Column(Text, nullable=False, default=DomainMappingStatus.PENDING_VERIFICATION.value)
    certificate_type = Column(Text, nullable=False, default="letsencrypt")
    force_https = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    auto_renewal = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    is_verified = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    verification_method = Column(Text, nullable=False, default="dns")
    verification_token = Column(Text, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    ssl_enabled = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    cname_target = Column(Text, nullable=False)
    dns_records = Column(PortableJSONB, nullable=False, default=list)
    dns_status = Column(Text, nullable=False, default=DnsStatus.UNKNOWN.value)
    last_checked_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="domain_mappings")

    @validates('domain')
    def normalize_domain(self, key, value):
        return value.strip().lower().rstrip(".")

    @validates('certificate_type')
    def validate_certificate_type(self, key, value):
        if value not in CERTIFICATE_TYPES:
            raise ValueError(f"Certificate type must be one of: {', '.join(CERTIFICATE_TYPES)}")
        return value

    @validates('verification_method')
    def validate_verification_method(self, key, value):
        if value not in VERIFICATION_METHODS:
            raise ValueError(f"Verification method must be one of: {', '.join(VERIFICATION_METHODS)}")
        return value

    def generate_verification_token(self) -> str:
        """Issue a fresh ownership token (64 hex characters)."""
        self.verification_token = secrets.token_hex(32)
        return self.verification_token

    def mark_verified(self, user_id=None) -> None:
        """Record successful ownership verification and activate routing."""
        self.is_verified = True
        self.verified_at = datetime.now(timezone.utc)
        self.verified_by = user_id
        self.status = DomainMappingStatus.ACTIVE.value
        self.dns_status = DnsStatus.VERIFIED.value
        self.verification_token = None

    def can_be_deleted(self) -> bool:
        """Only mappings that are not serving traffic may be removed without force."""
        return self.status in (
            DomainMappingStatus.PENDING_VERIFICATION.value,
            DomainMappingStatus.ERROR.value,
        )

    def setup_instructions(self) -> dict:
        """DNS setup steps for the domain owner, adjusted to current status."""
        steps = [
            "Add the DNS records above to your domain provider",
            "Wait for DNS propagation (usually 5-60 minutes)",
            "Click verify to complete the setup process",
            "SSL certificate will be issued automatically",
        ]
        if self.status == DomainMappingStatus.PENDING_VERIFICATION.value:
            steps.insert(0, "Configure the required DNS records below")
        elif self.status == DomainMappingStatus.ACTIVE.value:
            steps = ["Domain is active and configured correctly"]

        return {
            "dns_records": list(self.dns_records or []),
            "verification": {
                "method": self.verification_method,
                "token": self.verification_token,
                "steps": steps,
            },
            "cname_target": self.cname_target,
        }

    def __repr__(self):
        return f"<DomainMapping(id={self.id}, domain='{self.domain}', status='{self.status}')>"
