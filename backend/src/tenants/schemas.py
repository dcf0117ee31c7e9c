"""Pydantic schemas for tenant resolution endpoints"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TenantResponse(BaseModel):
    """Public view of a resolved tenant."""
    model_config = ConfigDict(from_attributes=True)

    business_id: UUID
    business_name: str
    business_slug: str
    subdomain: Optional[str] = None
    custom_domain: Optional[str] = None
    lookup_type: str
    host: str
    plan: str
    theme_color: Optional[str] = None
    logo_url: Optional[str] = None
    enable_ssl: bool


class CacheStatsResponse(BaseModel):
    entries: int
    hits: int
    misses: int
    expirations: int
    hit_rate: float
    ttl_seconds: float
    max_entries: int


class CacheClearResponse(BaseModel):
    """Result of a cache clear, prune or per-business invalidation."""
    removed: int
    remaining: int
