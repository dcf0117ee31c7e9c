"""Pydantic schemas for brand settings endpoints"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tenants.validation import ValidationResult


class BrandSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: UUID
    theme_color: Optional[str] = None
    logo_url: Optional[str] = None
    banner_images: List[str] = Field(default_factory=list)
    custom_css: Optional[str] = None
    subdomain: Optional[str] = None
    custom_domain: Optional[str] = None
    enable_ssl: bool
    plan: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class BrandSettingsUpdate(BaseModel):
    """Partial update; only fields present in the request are applied.

    Send subdomain or custom_domain as null (or "") to remove it.
    """
    model_config = ConfigDict(extra="forbid")

    theme_color: Optional[str] = Field(None, pattern=r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')
    logo_url: Optional[str] = Field(None, max_length=2048)
    banner_images: Optional[List[str]] = Field(None, max_length=10)
    custom_css: Optional[str] = Field(None, max_length=50_000)
    subdomain: Optional[str] = Field(None, max_length=255)
    custom_domain: Optional[str] = Field(None, max_length=255)
    enable_ssl: Optional[bool] = None

    @field_validator('subdomain', 'custom_domain')
    @classmethod
    def normalize_domain(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class SubdomainCheckResponse(BaseModel):
    subdomain: str
    valid: bool
    available: bool
    reserved: bool
    error: Optional[str] = None
    code: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, subdomain: str, result: ValidationResult) -> "SubdomainCheckResponse":
        return cls(
            subdomain=subdomain,
            valid=result.valid,
            available=bool(result.available),
            reserved=bool(result.reserved),
            error=result.error,
            code=result.code,
            suggestions=result.suggestions,
        )


class CustomDomainValidateRequest(BaseModel):
    domain: str = Field(..., min_length=1, max_length=255)


class CustomDomainValidateResponse(BaseModel):
    domain: str
    valid: bool
    error: Optional[str] = None
    code: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, domain: str, result: ValidationResult) -> "CustomDomainValidateResponse":
        return cls(
            domain=domain,
            valid=result.valid,
            error=result.error,
            code=result.code,
            warnings=result.warnings,
            suggestions=result.suggestions,
        )


class SubdomainStatus(BaseModel):
    configured: bool
    value: Optional[str] = None
    url: Optional[str] = None


class CustomDomainStatus(BaseModel):
    configured: bool
    value: Optional[str] = None
    verified: bool = False
    ssl_enabled: bool = False
    url: Optional[str] = None


class DomainStatusResponse(BaseModel):
    subdomain: SubdomainStatus
    custom_domain: CustomDomainStatus


class DomainSuggestionsResponse(BaseModel):
    subdomains: List[str]
    domains: List[str]
