"""Pydantic schemas for custom domain mapping endpoints"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

CertificateType = Literal["letsencrypt", "custom"]
VerificationMethod = Literal["dns", "file", "email"]


class DnsRecord(BaseModel):
    type: Literal["TXT", "CNAME", "A"]
    name: str
    value: str
    ttl: int = 300
    required: bool = True


class DomainMappingCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    domain: str = Field(..., min_length=1, max_length=255)
    certificate_type: CertificateType = "letsencrypt"
    force_https: bool = True
    auto_renewal: bool = True
    verification_method: VerificationMethod = "dns"

    @field_validator('domain')
    @classmethod
    def normalize_domain(cls, v: str) -> str:
        return v.strip().lower()


class DomainMappingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    certificate_type: Optional[CertificateType] = None
    force_https: Optional[bool] = None
    auto_renewal: Optional[bool] = None
    verification_method: Optional[VerificationMethod] = None


class DomainMappingResponse(BaseModel):
    """Domain mapping (the verification token is only exposed via /setup)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: UUID
    domain: str
    status: str
    certificate_type: str
    force_https: bool
    auto_renewal: bool
    is_active: bool
    is_verified: bool
    verification_method: str
    verified_at: Optional[datetime] = None
    ssl_enabled: bool
    cname_target: str
    dns_records: List[DnsRecord] = Field(default_factory=list)
    dns_status: str
    last_checked_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class DomainMappingListResponse(BaseModel):
    items: List[DomainMappingResponse]
    total: int


class VerificationInstructions(BaseModel):
    method: str
    token: Optional[str] = None
    steps: List[str]


class SetupInstructionsResponse(BaseModel):
    domain: str
    status: str
    dns_records: List[DnsRecord]
    verification: VerificationInstructions
    cname_target: str


class DomainMappingCreateResponse(BaseModel):
    mapping: DomainMappingResponse
    setup: SetupInstructionsResponse


class VerificationResponse(BaseModel):
    domain_id: UUID
    domain: str
    verified: bool
    status: str
    dns_status: str
    verified_at: Optional[datetime] = None
    message: str
    required_records: List[DnsRecord] = Field(default_factory=list)
