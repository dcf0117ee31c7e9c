"""Integration tests for the custom domain mapping API

Tests cover:
- Creating mappings (validation, conflicts, generated DNS records)
- Listing, reading and setup instructions
- DNS TXT ownership verification (pending, failure, success)
- Routing of verified domains through the tenant resolver
- Updating and deleting mappings (force for active ones)
- Audit entries for every mapping change
"""

from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from models import AuditLog, Business, DomainMapping


pytestmark = pytest.mark.integration

URL = "/api/v1/domains"
DOMAIN = "store.acme-brand.com"


def create_mapping(client: TestClient, domain: str = DOMAIN, **extra):
    response = client.post(URL, json={"domain": domain, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def publish_token(fake_dns, created: dict):
    """Publish the TXT record a domain owner would add."""
    txt = next(r for r in created["setup"]["dns_records"] if r["type"] == "TXT")
    fake_dns.txt.setdefault(txt["name"], []).append(txt["value"])


def audit_actions(db_session: Session):
    return sorted(entry.action for entry in db_session.query(AuditLog))


class TestCreateDomainMapping:

    def test_create(self, admin_client: TestClient, admin_user, db_session: Session):
        created = create_mapping(admin_client, "Store.Acme-Brand.com")

        mapping = created["mapping"]
        assert mapping["domain"] == DOMAIN
        assert mapping["business_id"] == str(admin_user.business_id)
        assert mapping["status"] == "pending_verification"
        assert mapping["dns_status"] == "pending"
        assert mapping["is_verified"] is False
        assert mapping["ssl_enabled"] is False
        assert mapping["cname_target"] == "brands.ordira.local"

        setup = created["setup"]
        token = setup["verification"]["token"]
        assert len(token) == 64
        assert setup["dns_records"] == [
            {"type": "TXT", "name": DOMAIN, "value": f"ordira-verification={token}", "ttl": 300, "required": True},
            {"type": "CNAME", "name": DOMAIN, "value": "brands.ordira.local", "ttl": 300, "required": True},
        ]
        assert setup["verification"]["steps"][0] == "Configure the required DNS records below"

        entry = db_session.query(AuditLog).filter(AuditLog.action == "DOMAIN_MAPPING_CREATED").one()
        assert entry.actor_id == admin_user.id
        assert entry.metadata_json == {"domain": DOMAIN}

    def test_token_is_not_in_mapping_response(self, admin_client: TestClient):
        created = create_mapping(admin_client)
        assert "verification_token" not in created["mapping"]

    def test_options(self, admin_client: TestClient):
        created = create_mapping(admin_client, certificate_type="custom", force_https=False)

        assert created["mapping"]["certificate_type"] == "custom"
        assert created["mapping"]["force_https"] is False

    @pytest.mark.parametrize("domain,code", [
        ("no_underscores.com", "INVALID_DOMAIN"),
        ("nodot", "INVALID_DOMAIN"),
        ("example.com", "DOMAIN_NOT_ALLOWED"),
        ("brand.ordira.local", "DOMAIN_NOT_ALLOWED"),
    ])
    def test_invalid_domain(self, admin_client: TestClient, domain, code):
        response = admin_client.post(URL, json={"domain": domain})

        assert response.status_code == 400
        assert response.json()["error"] == code

    def test_duplicate_domain(self, admin_client: TestClient):
        create_mapping(admin_client)

        response = admin_client.post(URL, json={"domain": DOMAIN.upper()})

        assert response.status_code == 409
        assert response.json()["error"] == "DOMAIN_TAKEN"

    def test_domain_of_another_business(self, admin_client: TestClient, other_admin_client: TestClient):
        create_mapping(other_admin_client, "blog.globex.com")

        response = admin_client.post(URL, json={"domain": "blog.globex.com"})
        assert response.status_code == 409

    def test_brand_custom_domain_is_taken(self, admin_client: TestClient, other_business: Business):
        response = admin_client.post(URL, json={"domain": "shop.globex.com"})

        assert response.status_code == 409
        assert response.json()["error"] == "DOMAIN_TAKEN"

    def test_unknown_field_rejected(self, admin_client: TestClient, other_business: Business):
        response = admin_client.post(URL, json={"domain": DOMAIN, "business_id": str(other_business.id)})
        assert response.status_code == 422

    def test_editor_cannot_create(self, editor_client: TestClient):
        response = editor_client.post(URL, json={"domain": DOMAIN})
        assert response.status_code == 403


class TestReadDomainMappings:

    def test_list(self, admin_client: TestClient, viewer_client: TestClient):
        create_mapping(admin_client, "one.acme-brand.com")
        create_mapping(admin_client, "two.acme-brand.com")

        response = viewer_client.get(URL)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {item["domain"] for item in data["items"]} == {"one.acme-brand.com", "two.acme-brand.com"}

    def test_list_excludes_deleting(self, admin_client: TestClient, db_session: Session):
        created = create_mapping(admin_client)
        mapping = db_session.get(DomainMapping, UUID(created["mapping"]["id"]))
        mapping.status = "deleting"
        db_session.commit()

        assert admin_client.get(URL).json()["total"] == 0

    def test_get(self, admin_client: TestClient):
        created = create_mapping(admin_client)

        response = admin_client.get(f"{URL}/{created['mapping']['id']}")

        assert response.status_code == 200
        assert response.json()["domain"] == DOMAIN

    def test_get_unknown(self, admin_client: TestClient):
        response = admin_client.get(f"{URL}/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_setup(self, admin_client: TestClient, viewer_client: TestClient):
        created = create_mapping(admin_client)

        response = viewer_client.get(f"{URL}/{created['mapping']['id']}/setup")

        assert response.status_code == 200
        data = response.json()
        assert data["domain"] == DOMAIN
        assert data["status"] == "pending_verification"
        assert data["cname_target"] == "brands.ordira.local"
        assert data["verification"]["method"] == "dns"
        assert data["verification"]["token"] == created["setup"]["verification"]["token"]


class TestVerifyDomainMapping:

    def test_record_not_published(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)

        response = admin_client.post(f"{URL}/{created['mapping']['id']}/verify")

        assert response.status_code == 200
        data = response.json()
        assert data["verified"] is False
        assert data["status"] == "pending_verification"
        assert data["dns_status"] == "pending"
        assert [r["type"] for r in data["required_records"]] == ["TXT", "CNAME"]
        assert fake_dns.queries == [DOMAIN]

    def test_wrong_token(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        fake_dns.txt[DOMAIN] = ["ordira-verification=not-the-token", "v=spf1 -all"]

        data = admin_client.post(f"{URL}/{created['mapping']['id']}/verify").json()
        assert data["verified"] is False

    def test_lookup_failure_marks_error(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        fake_dns.failing.add(DOMAIN)

        data = admin_client.post(f"{URL}/{created['mapping']['id']}/verify").json()

        assert data["verified"] is False
        assert data["status"] == "error"
        assert data["dns_status"] == "error"
        assert data["message"] == "DNS lookup failed, please try again later"

    def test_retry_after_failure_returns_to_pending(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        mapping_id = created["mapping"]["id"]
        fake_dns.failing.add(DOMAIN)
        admin_client.post(f"{URL}/{mapping_id}/verify")

        fake_dns.failing.clear()
        data = admin_client.post(f"{URL}/{mapping_id}/verify").json()

        assert data["status"] == "pending_verification"
        assert data["dns_status"] == "pending"

    def test_verify_success(self, admin_client: TestClient, client: TestClient, admin_user,
                            db_session: Session, fake_dns):
        created = create_mapping(admin_client)
        mapping_id = created["mapping"]["id"]

        # Not routed while pending
        assert client.get("/api/v1/tenants/current", headers={"Host": DOMAIN}).status_code == 404

        publish_token(fake_dns, created)
        response = admin_client.post(f"{URL}/{mapping_id}/verify")

        assert response.status_code == 200
        data = response.json()
        assert data["verified"] is True
        assert data["status"] == "active"
        assert data["dns_status"] == "verified"
        assert data["verified_at"] is not None
        assert data["message"] == "Domain verified successfully"
        assert data["required_records"] == []

        mapping = admin_client.get(f"{URL}/{mapping_id}").json()
        assert mapping["is_verified"] is True
        assert mapping["ssl_enabled"] is True

        setup = admin_client.get(f"{URL}/{mapping_id}/setup").json()
        assert setup["verification"]["token"] is None
        assert setup["verification"]["steps"] == ["Domain is active and configured correctly"]

        tenant = client.get("/api/v1/tenants/current", headers={"Host": DOMAIN})
        assert tenant.status_code == 200
        assert tenant.json()["business_id"] == str(admin_user.business_id)

        entry = db_session.query(AuditLog).filter(AuditLog.action == "DOMAIN_MAPPING_VERIFIED").one()
        assert entry.actor_id == admin_user.id

    def test_token_embedded_in_longer_record(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        token = created["setup"]["verification"]["token"]
        fake_dns.txt[DOMAIN] = [f"site-verification {token}"]

        data = admin_client.post(f"{URL}/{created['mapping']['id']}/verify").json()
        assert data["verified"] is True

    def test_custom_certificate_does_not_enable_ssl(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client, certificate_type="custom")
        publish_token(fake_dns, created)
        mapping_id = created["mapping"]["id"]

        admin_client.post(f"{URL}/{mapping_id}/verify")

        assert admin_client.get(f"{URL}/{mapping_id}").json()["ssl_enabled"] is False

    def test_already_verified(self, admin_client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        publish_token(fake_dns, created)
        mapping_id = created["mapping"]["id"]
        admin_client.post(f"{URL}/{mapping_id}/verify")
        fake_dns.queries.clear()

        data = admin_client.post(f"{URL}/{mapping_id}/verify").json()

        assert data["verified"] is True
        assert data["message"] == "Domain is already verified"
        assert fake_dns.queries == []

    def test_viewer_cannot_verify(self, admin_client: TestClient, viewer_client: TestClient):
        created = create_mapping(admin_client)
        assert viewer_client.post(f"{URL}/{created['mapping']['id']}/verify").status_code == 403


class TestUpdateDomainMapping:

    def test_update(self, admin_client: TestClient, db_session: Session):
        created = create_mapping(admin_client)

        response = admin_client.patch(f"{URL}/{created['mapping']['id']}", json={"force_https": False})

        assert response.status_code == 200
        assert response.json()["force_https"] is False
        entry = db_session.query(AuditLog).filter(AuditLog.action == "DOMAIN_MAPPING_UPDATED").one()
        assert entry.metadata_json["changes"] == {"force_https": {"old": True, "new": False}}

    def test_unchanged_update_is_not_audited(self, admin_client: TestClient, db_session: Session):
        created = create_mapping(admin_client)

        admin_client.patch(f"{URL}/{created['mapping']['id']}", json={"force_https": True})

        assert audit_actions(db_session) == ["DOMAIN_MAPPING_CREATED"]

    def test_domain_cannot_be_changed(self, admin_client: TestClient):
        created = create_mapping(admin_client)

        response = admin_client.patch(f"{URL}/{created['mapping']['id']}", json={"domain": "other.acme-brand.com"})
        assert response.status_code == 422


class TestDeleteDomainMapping:

    def test_delete_pending(self, admin_client: TestClient, db_session: Session):
        created = create_mapping(admin_client)
        mapping_id = created["mapping"]["id"]

        response = admin_client.delete(f"{URL}/{mapping_id}")

        assert response.status_code == 204
        assert admin_client.get(f"{URL}/{mapping_id}").status_code == 404
        assert audit_actions(db_session) == ["DOMAIN_MAPPING_CREATED", "DOMAIN_MAPPING_DELETED"]

    def test_active_mapping_requires_force(self, admin_client: TestClient, client: TestClient, fake_dns):
        created = create_mapping(admin_client)
        mapping_id = created["mapping"]["id"]
        publish_token(fake_dns, created)
        admin_client.post(f"{URL}/{mapping_id}/verify")
        assert client.get("/api/v1/tenants/current", headers={"Host": DOMAIN}).status_code == 200

        response = admin_client.delete(f"{URL}/{mapping_id}")
        assert response.status_code == 409
        assert response.json()["error"] == "DOMAIN_IN_USE"

        response = admin_client.delete(f"{URL}/{mapping_id}", params={"force": True})
        assert response.status_code == 204

        # Cached route is dropped with the mapping
        assert client.get("/api/v1/tenants/current", headers={"Host": DOMAIN}).status_code == 404

    def test_domain_can_be_claimed_again_after_delete(self, admin_client: TestClient, other_admin_client: TestClient):
        created = create_mapping(admin_client)
        admin_client.delete(f"{URL}/{created['mapping']['id']}")

        create_mapping(other_admin_client, DOMAIN)
