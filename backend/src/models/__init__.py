"""SQLAlchemy Models for the Ordira backend"""

from .base import Base
from .business import Business
from .user import User
from .brand_settings import BrandSettings, PLAN_LEVELS
from .domain_mapping import DomainMapping, DomainMappingStatus, DnsStatus
from .audit_log import AuditLog

__all__ = [
    "Base",
    "Business",
    "User",
    "BrandSettings",
    "PLAN_LEVELS",
    "DomainMapping",
    "DomainMappingStatus",
    "DnsStatus",
    "AuditLog",
]
