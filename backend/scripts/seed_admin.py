#!/usr/bin/env python
"""Seed script to create a business and its first admin user.

Run once during initial setup. The business is created if its slug does
not exist yet; the admin can then configure the brand's subdomain and
custom domains through the API.

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: Database connection string
    PASSWORD_PEPPER: Password hashing pepper (required)
    BUSINESS_NAME: Business display name (default: Demo Brand)
    BUSINESS_SLUG: Business slug used at login (default: demo-brand)
    BUSINESS_SUBDOMAIN: Optional subdomain to assign to the brand
    ADMIN_EMAIL: Email for admin user (default: admin@ordira.local)
    ADMIN_PASSWORD: Password for admin user (default: AdminP@ss123)
    ADMIN_NAME: Display name for admin user (default: Brand Administrator)
    ADMIN_ROLE: ADMIN or PLATFORM_ADMIN (default: ADMIN)
"""

import os
import sys
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy.exc import SQLAlchemyError

from auth.password import hash_password, validate_password_strength
from database import SessionLocal
from models.brand_settings import BrandSettings
from models.business import Business
from models.user import User
from tenants.validation import is_reserved_subdomain, validate_subdomain_format


def main():
    """Create the business (if needed), its brand settings and an admin user."""
    business_name = os.getenv("BUSINESS_NAME", "Demo Brand")
    business_slug = os.getenv("BUSINESS_SLUG", "demo-brand").lower()
    subdomain = os.getenv("BUSINESS_SUBDOMAIN")

    admin_email = os.getenv("ADMIN_EMAIL", "admin@ordira.local").lower()
    admin_password = os.getenv("ADMIN_PASSWORD", "AdminP@ss123")
    admin_name = os.getenv("ADMIN_NAME", "Brand Administrator")
    admin_role = os.getenv("ADMIN_ROLE", "ADMIN")

    if admin_role not in ("ADMIN", "PLATFORM_ADMIN"):
        print(f"ERROR: ADMIN_ROLE must be ADMIN or PLATFORM_ADMIN, got {admin_role}")
        sys.exit(1)

    is_valid, error_msg = validate_password_strength(admin_password)
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    if subdomain:
        subdomain = subdomain.lower()
        result = validate_subdomain_format(subdomain)
        if not result.valid or is_reserved_subdomain(subdomain):
            print(f"ERROR: Invalid subdomain {subdomain!r}: {result.error or 'reserved'}")
            sys.exit(1)

    session = SessionLocal()

    try:
        business = session.query(Business).filter(Business.slug == business_slug).first()
        if business is None:
            business = Business(name=business_name, slug=business_slug)
            session.add(business)
            session.flush()
            session.add(BrandSettings(business_id=business.id, subdomain=subdomain))
            print(f"Created business {business.slug} ({business.id})")

        existing_user = session.query(User).filter(
            User.business_id == business.id,
            User.email == admin_email
        ).first()

        if existing_user:
            print(f"ERROR: User with email {admin_email} already exists in business {business.slug}")
            sys.exit(1)

        admin_user = User(
            business_id=business.id,
            email=admin_email,
            name=admin_name,
            role=admin_role,
            password_hash=hash_password(admin_password),
            status="ACTIVE"
        )

        session.add(admin_user)
        session.commit()

        print("SUCCESS: Admin user created")
        print(f"  ID:       {admin_user.id}")
        print(f"  Business: {business.slug}")
        print(f"  Email:    {admin_user.email}")
        print(f"  Role:     {admin_user.role}")

    except (SQLAlchemyError, ValueError) as e:
        session.rollback()
        print(f"ERROR: Failed to create admin user: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
