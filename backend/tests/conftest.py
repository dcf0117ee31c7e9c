"""Pytest fixtures for the Ordira backend.

Provides reusable test fixtures for:
- A throwaway SQLite database per test (file-backed, so the tenant
  resolver's own sessions see committed rows)
- Test businesses with brand settings (subdomain / custom domain)
- Test users with different roles (PLATFORM_ADMIN, ADMIN, EDITOR, VIEWER)
- A tenant resolver and DNS fake wired into the FastAPI app
- Authenticated test clients with JWT tokens

Usage:
    def test_brand_settings(admin_client):
        response = admin_client.get("/api/v1/brand-settings")
        assert response.status_code == 200
"""

import os
import sys
from pathlib import Path
from typing import Dict, Generator, List, Set

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PLATFORM_BASE_DOMAINS"] = "ordira.local"
os.environ["CNAME_TARGET"] = "brands.ordira.local"
os.environ["LOG_JSON"] = "false"
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from auth import rate_limit
from auth.jwt import create_access_token
from auth.password import hash_password
from auth.rate_limit import RateLimiter
from database import get_db as database_get_db
from domains.dns_checker import DnsLookupError, get_dns_checker
from models import Base, BrandSettings, Business, User
from tenants.cache import TenantCache
from tenants.resolver import TenantResolver


BASE_DOMAIN = "ordira.local"
TEST_PASSWORD = "SecureP@ss123"


class FakeDnsChecker:
    """In-memory stand-in for DnsChecker.

    Tests publish records by filling txt / addresses; domains listed in
    failing raise DnsLookupError like a timed-out query.
    """

    def __init__(self):
        self.txt: Dict[str, List[str]] = {}
        self.addresses: Set[str] = set()
        self.failing: Set[str] = set()
        self.queries: List[str] = []

    def txt_records(self, domain: str) -> List[str]:
        self.queries.append(domain)
        if domain in self.failing:
            raise DnsLookupError(domain, "TXT", "Timeout")
        return list(self.txt.get(domain, []))

    def has_address_record(self, domain: str) -> bool:
        self.queries.append(domain)
        if domain in self.failing:
            raise DnsLookupError(domain, "A", "Timeout")
        return domain in self.addresses


@pytest.fixture(scope="function", autouse=True)
def disable_rate_limiting(monkeypatch):
    """Replace the Redis-backed limiter with a no-op one for every test."""
    monkeypatch.setattr(rate_limit, "_rate_limiter", RateLimiter(None))
    yield


@pytest.fixture(scope="function")
def engine(tmp_path):
    """SQLite engine on a fresh file with all tables created."""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'ordira-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Database session shared by the test body and API dependencies."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def tenant_cache() -> TenantCache:
    return TenantCache(ttl_seconds=300, max_entries=100)


@pytest.fixture(scope="function")
def resolver(session_factory, tenant_cache) -> TenantResolver:
    return TenantResolver(session_factory, tenant_cache, [BASE_DOMAIN])


@pytest.fixture(scope="function")
def fake_dns() -> FakeDnsChecker:
    return FakeDnsChecker()


@pytest.fixture(scope="function")
def app(db_session: Session, resolver: TenantResolver, fake_dns: FakeDnsChecker):
    """The FastAPI app bound to the test database, resolver and DNS fake."""
    from main import app as fastapi_app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    previous_resolver = fastapi_app.state.tenant_resolver
    fastapi_app.dependency_overrides[database_get_db] = override_get_db
    fastapi_app.dependency_overrides[get_dns_checker] = lambda: fake_dns
    fastapi_app.state.tenant_resolver = resolver

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.tenant_resolver = previous_resolver


def create_business(
    db_session: Session,
    slug: str,
    name: str,
    subdomain: str = None,
    custom_domain: str = None,
    is_active: bool = True,
) -> Business:
    """Create a business together with its brand settings."""
    business = Business(slug=slug, name=name, is_active=is_active)
    db_session.add(business)
    db_session.flush()
    db_session.add(BrandSettings(
        business_id=business.id,
        subdomain=subdomain,
        custom_domain=custom_domain,
    ))
    db_session.commit()
    db_session.refresh(business)
    return business


def create_user(db_session: Session, business: Business, email: str, role: str, status: str = "ACTIVE") -> User:
    user = User(
        business_id=business.id,
        email=email,
        name=f"{role.title()} User",
        role=role,
        password_hash=hash_password(TEST_PASSWORD),
        status=status,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def token_for(user: User) -> str:
    return create_access_token(
        user_id=user.id,
        business_id=user.business_id,
        role=user.role,
        email=user.email,
    )


def auth_headers(user: User, host: str = None) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {token_for(user)}"}
    if host:
        headers["Host"] = host
    return headers


@pytest.fixture(scope="function")
def business(db_session: Session) -> Business:
    """Business "Acme Brand" served on acme.ordira.local."""
    return create_business(db_session, slug="acme-brand", name="Acme Brand", subdomain="acme")


@pytest.fixture(scope="function")
def other_business(db_session: Session) -> Business:
    """Business "Globex" served on globex.ordira.local and shop.globex.com."""
    return create_business(
        db_session,
        slug="globex",
        name="Globex",
        subdomain="globex",
        custom_domain="shop.globex.com",
    )


@pytest.fixture(scope="function")
def admin_user(db_session: Session, business: Business) -> User:
    return create_user(db_session, business, "admin@acme-brand.com", "ADMIN")


@pytest.fixture(scope="function")
def editor_user(db_session: Session, business: Business) -> User:
    return create_user(db_session, business, "editor@acme-brand.com", "EDITOR")


@pytest.fixture(scope="function")
def viewer_user(db_session: Session, business: Business) -> User:
    return create_user(db_session, business, "viewer@acme-brand.com", "VIEWER")


@pytest.fixture(scope="function")
def platform_admin_user(db_session: Session, business: Business) -> User:
    return create_user(db_session, business, "ops@acme-brand.com", "PLATFORM_ADMIN")


@pytest.fixture(scope="function")
def other_admin_user(db_session: Session, other_business: Business) -> User:
    return create_user(db_session, other_business, "admin@globex.com", "ADMIN")


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Unauthenticated test client."""
    return TestClient(app)


@pytest.fixture(scope="function")
def admin_client(app, admin_user: User) -> TestClient:
    return TestClient(app, headers=auth_headers(admin_user))


@pytest.fixture(scope="function")
def editor_client(app, editor_user: User) -> TestClient:
    return TestClient(app, headers=auth_headers(editor_user))


@pytest.fixture(scope="function")
def viewer_client(app, viewer_user: User) -> TestClient:
    return TestClient(app, headers=auth_headers(viewer_user))


@pytest.fixture(scope="function")
def platform_admin_client(app, platform_admin_user: User) -> TestClient:
    return TestClient(app, headers=auth_headers(platform_admin_user))


@pytest.fixture(scope="function")
def other_admin_client(app, other_admin_user: User) -> TestClient:
    return TestClient(app, headers=auth_headers(other_admin_user))
