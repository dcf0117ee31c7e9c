"""Unit tests for the business, brand settings and domain mapping models

Tests cover:
- Business slug and name validation, duplicate slug rejection
- BrandSettings domain key normalization and uniqueness
- BrandSettings theme color and plan validation
- DomainMapping verification token, state transitions and setup steps
- AuditLog serialization
"""

from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import create_business
from models import AuditLog, BrandSettings, Business, DomainMapping, DomainMappingStatus, DnsStatus


class TestBusiness:
    """Test business creation and validation"""

    def test_create_business(self, db_session):
        business = Business(name="  Acme Brand  ", slug="acme-brand")
        db_session.add(business)
        db_session.commit()

        assert isinstance(business.id, UUID)
        assert business.name == "Acme Brand"
        assert business.is_active is True
        assert business.created_at is not None

    @pytest.mark.parametrize("slug", ["Acme", "acme_brand", "acme brand", "acme.brand", "a", "x" * 101])
    def test_invalid_slugs(self, slug):
        with pytest.raises(ValueError):
            Business(name="Acme", slug=slug)

    @pytest.mark.parametrize("name", ["", "   ", "x" * 201])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            Business(name=name, slug="acme")

    def test_duplicate_slug_rejected(self, db_session):
        db_session.add(Business(name="Acme", slug="acme"))
        db_session.commit()

        db_session.add(Business(name="Acme Again", slug="acme"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestBrandSettings:
    """Test brand settings normalization and constraints"""

    def test_defaults(self, db_session):
        business = create_business(db_session, "acme-brand", "Acme Brand")
        settings = business.brand_settings

        assert settings.subdomain is None
        assert settings.custom_domain is None
        assert settings.banner_images == []
        assert settings.enable_ssl is True
        assert settings.plan == "foundation"

    def test_domain_keys_are_lower_cased(self):
        settings = BrandSettings(subdomain="  ACME ", custom_domain="Shop.Globex.COM")

        assert settings.subdomain == "acme"
        assert settings.custom_domain == "shop.globex.com"

    def test_empty_domain_keys_become_null(self):
        settings = BrandSettings(subdomain="", custom_domain="   ")

        assert settings.subdomain is None
        assert settings.custom_domain is None

    def test_subdomain_unique_across_businesses(self, db_session):
        create_business(db_session, "acme-brand", "Acme Brand", subdomain="acme")

        with pytest.raises(IntegrityError):
            create_business(db_session, "acme-copy", "Acme Copy", subdomain="ACME")
        db_session.rollback()

    def test_custom_domain_unique_across_businesses(self, db_session):
        create_business(db_session, "globex", "Globex", custom_domain="shop.globex.com")

        with pytest.raises(IntegrityError):
            create_business(db_session, "globex-copy", "Globex Copy", custom_domain="shop.globex.com")
        db_session.rollback()

    def test_many_businesses_without_domains(self, db_session):
        create_business(db_session, "one", "One")
        create_business(db_session, "two", "Two")

        assert db_session.query(BrandSettings).filter(BrandSettings.subdomain.is_(None)).count() == 2

    @pytest.mark.parametrize("color", ["#fff", "#1A2b3C"])
    def test_valid_theme_colors(self, color):
        assert BrandSettings(theme_color=color).theme_color == color

    @pytest.mark.parametrize("color", ["red", "#ggg", "123456", "#12345"])
    def test_invalid_theme_colors(self, color):
        with pytest.raises(ValueError):
            BrandSettings(theme_color=color)

    def test_invalid_plan(self):
        with pytest.raises(ValueError, match="Plan must be one of"):
            BrandSettings(plan="platinum")


def make_mapping(**overrides):
    values = {
        "business_id": uuid4(),
        "domain": "shop.globex.com",
        "cname_target": "brands.ordira.local",
        "status": DomainMappingStatus.PENDING_VERIFICATION.value,
        "verification_method": "dns",
        "is_active": True,
        "is_verified": False,
        "dns_records": [],
    }
    values.update(overrides)
    return DomainMapping(**values)


class TestDomainMapping:
    """Test domain mapping behavior"""

    def test_domain_is_normalized(self):
        assert make_mapping(domain=" Shop.Globex.COM. ").domain == "shop.globex.com"

    def test_generate_verification_token(self):
        mapping = make_mapping()
        token = mapping.generate_verification_token()

        assert len(token) == 64
        int(token, 16)
        assert mapping.verification_token == token
        assert mapping.generate_verification_token() != token

    def test_mark_verified(self):
        user_id = uuid4()
        mapping = make_mapping()
        mapping.generate_verification_token()

        mapping.mark_verified(user_id)

        assert mapping.is_verified is True
        assert mapping.verified_by == user_id
        assert mapping.verified_at is not None
        assert mapping.status == DomainMappingStatus.ACTIVE.value
        assert mapping.dns_status == DnsStatus.VERIFIED.value
        assert mapping.verification_token is None

    @pytest.mark.parametrize("status,deletable", [
        (DomainMappingStatus.PENDING_VERIFICATION.value, True),
        (DomainMappingStatus.ERROR.value, True),
        (DomainMappingStatus.ACTIVE.value, False),
        (DomainMappingStatus.DELETING.value, False),
    ])
    def test_can_be_deleted(self, status, deletable):
        assert make_mapping(status=status).can_be_deleted() is deletable

    @pytest.mark.parametrize("field,value", [("certificate_type", "selfsigned"), ("verification_method", "carrier-pigeon")])
    def test_invalid_choices(self, field, value):
        with pytest.raises(ValueError):
            make_mapping(**{field: value})

    def test_setup_instructions_for_pending_mapping(self):
        records = [{"type": "TXT", "name": "shop.globex.com", "value": "x", "ttl": 300, "required": True}]
        mapping = make_mapping(dns_records=records)
        mapping.generate_verification_token()

        setup = mapping.setup_instructions()

        assert setup["dns_records"] == records
        assert setup["cname_target"] == "brands.ordira.local"
        assert setup["verification"]["method"] == "dns"
        assert setup["verification"]["token"] == mapping.verification_token
        assert setup["verification"]["steps"][0] == "Configure the required DNS records below"
        assert len(setup["verification"]["steps"]) == 5

    def test_setup_instructions_for_active_mapping(self):
        mapping = make_mapping()
        mapping.mark_verified()

        setup = mapping.setup_instructions()

        assert setup["verification"]["steps"] == ["Domain is active and configured correctly"]
        assert setup["verification"]["token"] is None

    def test_setup_instructions_for_failed_mapping(self):
        setup = make_mapping(status=DomainMappingStatus.ERROR.value).setup_instructions()
        assert len(setup["verification"]["steps"]) == 4

    def test_domain_unique(self, db_session):
        first = create_business(db_session, "globex", "Globex")
        second = create_business(db_session, "initech", "Initech")
        db_session.add(make_mapping(business_id=first.id))
        db_session.commit()

        db_session.add(make_mapping(business_id=second.id, domain="SHOP.globex.com"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestAuditLog:

    def test_to_dict(self, db_session):
        business = create_business(db_session, "acme-brand", "Acme Brand")
        entry = AuditLog(
            business_id=business.id,
            action="BRAND_DOMAIN_CHANGED",
            entity_type="brand_settings",
            metadata_json={"subdomain": {"old": None, "new": "acme"}},
            ip_address="203.0.113.7",
        )
        db_session.add(entry)
        db_session.commit()

        data = entry.to_dict()

        assert data["business_id"] == str(business.id)
        assert data["actor_id"] is None
        assert data["action"] == "BRAND_DOMAIN_CHANGED"
        assert data["metadata"] == {"subdomain": {"old": None, "new": "acme"}}
        assert data["ip_address"] == "203.0.113.7"
        assert data["created_at"] is not None
