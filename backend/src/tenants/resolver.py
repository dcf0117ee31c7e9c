"""Hostname to tenant resolution.

A request host maps to a business in one of two ways:

- "<subdomain>.<platform base domain>" -> BrandSettings.subdomain
- any other host -> BrandSettings.custom_domain, then a verified and
  active DomainMapping

Platform traffic (the apex domain, reserved names such as "www" or
"api", nested names under a platform domain, IP literals) resolves to
no tenant. Results are cached in a TenantCache; unknown hosts are not.
"""

import logging
import time
from dataclasses import asdict, dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from errors import AppError, INVALID_HOST
from models.brand_settings import BrandSettings
from models.business import Business
from models.domain_mapping import DomainMapping, DomainMappingStatus
from observability.metrics import tenant_lookup_duration_seconds, tenant_resolutions_total
from .cache import LOOKUP_DOMAIN, LOOKUP_SUBDOMAIN, TenantCache
from .validation import is_ip_address, is_reserved_subdomain, normalize_host, validate_hostname

logger = logging.getLogger(__name__)


class InvalidHostError(AppError):
    """Host header failed syntax or anti-spoofing validation."""

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(
            message,
            status_code=400,
            code=INVALID_HOST,
            details={"host": host} if host is not None else None,
        )
        self.host = host


@dataclass(frozen=True)
class TenantContext:
    """Immutable snapshot of the tenant serving a request."""
    business_id: UUID
    business_name: str
    business_slug: str
    subdomain: Optional[str]
    custom_domain: Optional[str]
    lookup_type: str
    host: str
    plan: str = "foundation"
    theme_color: Optional[str] = None
    logo_url: Optional[str] = None
    enable_ssl: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["business_id"] = str(self.business_id)
        return data


class TenantResolver:
    """
    Resolves hosts to TenantContext objects with caching.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session
            (e.g. database.SessionLocal); each database lookup opens and
            closes its own session
        cache: TenantCache holding resolved tenants
        base_domains: Platform base domains, e.g. ["ordira.local"]
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache: TenantCache,
        base_domains: Iterable[str],
    ):
        self.session_factory = session_factory
        self.cache = cache
        # Longest first so "eu.ordira.io" wins over "ordira.io"
        self.base_domains: List[str] = sorted(
            {d.strip().lower().rstrip(".") for d in base_domains if d and d.strip()},
            key=len,
            reverse=True,
        )

    def classify(self, host: str) -> Tuple[Optional[str], Optional[str]]:
        """Decide how a normalized, valid host should be looked up.

        Returns:
            (lookup_type, identifier), or (None, None) for platform traffic
        """
        if is_ip_address(host):
            return None, None

        for base in self.base_domains:
            if host == base:
                return None, None
            if host.endswith("." + base):
                label = host[: -(len(base) + 1)]
                if "." in label or is_reserved_subdomain(label):
                    return None, None
                return LOOKUP_SUBDOMAIN, label

        return LOOKUP_DOMAIN, host

    def resolve(self, raw_host: Optional[str]) -> Optional[TenantContext]:
        """
        Resolve a Host header value to a tenant.

        Args:
            raw_host: Host header as received (port and case are normalized)

        Returns:
            TenantContext, or None for platform hosts and unknown tenants

        Raises:
            InvalidHostError: If the host fails validation
        """
        host = normalize_host(raw_host)
        result = validate_hostname(host)
        if not result.valid:
            tenant_resolutions_total.labels(lookup_type="none", outcome="invalid").inc()
            logger.warning(f"Rejected host: {result.error}", extra={"host": (raw_host or "")[:255]})
            raise InvalidHostError(result.error, host=(raw_host or "")[:255])

        lookup_type, identifier = self.classify(host)
        if lookup_type is None:
            tenant_resolutions_total.labels(lookup_type="none", outcome="platform").inc()
            return None

        generation = self.cache.generation
        tenant = self._cached_lookup(lookup_type, identifier, host, generation)

        if tenant is None and lookup_type == LOOKUP_DOMAIN and identifier.startswith("www."):
            bare = identifier[len("www."):]
            if "." in bare:
                tenant = self._cached_lookup(lookup_type, bare, host, generation)
                if tenant is not None:
                    self.cache.set_if_generation(lookup_type, identifier, tenant, generation)

        outcome = "resolved" if tenant is not None else "not_found"
        tenant_resolutions_total.labels(lookup_type=lookup_type, outcome=outcome).inc()
        return tenant

    def _cached_lookup(
        self, lookup_type: str, identifier: str, host: str, generation: int
    ) -> Optional[TenantContext]:
        """Cache-first lookup. Database results are stored only if no
        invalidation happened since `generation` was read."""
        cached = self.cache.get(lookup_type, identifier)
        if cached is not None:
            return cached if cached.host == host else replace(cached, host=host)

        start = time.perf_counter()
        if lookup_type == LOOKUP_SUBDOMAIN:
            tenant = self.lookup_subdomain(identifier, host=host)
        else:
            tenant = self.lookup_domain(identifier, host=host)
        tenant_lookup_duration_seconds.labels(lookup_type=lookup_type).observe(
            time.perf_counter() - start
        )

        if tenant is not None:
            self.cache.set_if_generation(lookup_type, identifier, tenant, generation)
            logger.debug(
                f"Resolved {lookup_type} {identifier} to business {tenant.business_id}",
                extra={"lookup_type": lookup_type, "host": host},
            )
        return tenant

    def lookup_subdomain(self, subdomain: str, host: Optional[str] = None) -> Optional[TenantContext]:
        """Database lookup of an active business by brand subdomain (uncached)."""
        subdomain = subdomain.strip().lower()
        with self.session_factory() as session:
            row = session.execute(
                select(BrandSettings, Business)
                .join(Business, BrandSettings.business_id == Business.id)
                .where(
                    BrandSettings.subdomain == subdomain,
                    BrandSettings.is_active.is_(True),
                    Business.is_active.is_(True),
                )
            ).first()
            if row is None:
                return None
            settings, business = row
            return _build_context(business, settings, LOOKUP_SUBDOMAIN, host or subdomain)

    def lookup_domain(self, domain: str, host: Optional[str] = None) -> Optional[TenantContext]:
        """Database lookup by custom domain (uncached).

        BrandSettings.custom_domain is checked first; otherwise a verified,
        active DomainMapping for the domain is used.
        """
        domain = domain.strip().lower()
        with self.session_factory() as session:
            row = session.execute(
                select(BrandSettings, Business)
                .join(Business, BrandSettings.business_id == Business.id)
                .where(
                    BrandSettings.custom_domain == domain,
                    BrandSettings.is_active.is_(True),
                    Business.is_active.is_(True),
                )
            ).first()
            if row is not None:
                settings, business = row
                return _build_context(business, settings, LOOKUP_DOMAIN, host or domain)

            row = session.execute(
                select(DomainMapping, Business)
                .join(Business, DomainMapping.business_id == Business.id)
                .where(
                    DomainMapping.domain == domain,
                    DomainMapping.is_active.is_(True),
                    DomainMapping.is_verified.is_(True),
                    DomainMapping.status == DomainMappingStatus.ACTIVE.value,
                    Business.is_active.is_(True),
                )
            ).first()
            if row is None:
                return None
            mapping, business = row
            settings = session.execute(
                select(BrandSettings).where(BrandSettings.business_id == business.id)
            ).scalar_one_or_none()
            return _build_context(
                business, settings, LOOKUP_DOMAIN, host or domain, custom_domain=mapping.domain
            )

    def invalidate_business(self, business_id, *hosts: Tuple[str, Optional[str]]) -> int:
        """
        Drop cached entries for a business.

        Args:
            business_id: Business whose entries should go
            *hosts: Extra (lookup_type, identifier) pairs to drop, typically
                the previous subdomain/domain values after a change

        Returns:
            int: Number of entries removed
        """
        removed = self.cache.invalidate_business(business_id)
        for lookup_type, identifier in hosts:
            if identifier and self.cache.invalidate(lookup_type, identifier):
                removed += 1
        return removed


def _build_context(
    business: Business,
    settings: Optional[BrandSettings],
    lookup_type: str,
    host: str,
    custom_domain: Optional[str] = None,
) -> TenantContext:
    return TenantContext(
        business_id=business.id,
        business_name=business.name,
        business_slug=business.slug,
        subdomain=settings.subdomain if settings else None,
        custom_domain=custom_domain or (settings.custom_domain if settings else None),
        lookup_type=lookup_type,
        host=host,
        plan=settings.plan if settings else "foundation",
        theme_color=settings.theme_color if settings else None,
        logo_url=settings.logo_url if settings else None,
        enable_ssl=settings.enable_ssl if settings else True,
    )


def build_resolver(settings, session_factory: Optional[Callable[[], Session]] = None) -> TenantResolver:
    """Construct the application-wide resolver from Settings."""
    if session_factory is None:
        from database import SessionLocal
        session_factory = SessionLocal

    cache = TenantCache(
        ttl_seconds=settings.TENANT_CACHE_TTL_SECONDS,
        max_entries=settings.TENANT_CACHE_MAX_ENTRIES,
    )
    return TenantResolver(session_factory, cache, settings.base_domains)
