"""Business model - Root entity for multi-tenant isolation"""

import re
import uuid

from sqlalchemy import Boolean, Column, DateTime, Text, Uuid, func, text
from sqlalchemy.orm import validates, relationship

from .base import Base


class Business(Base):
    """
    Business (brand) account - the tenant.

    Each business owns one BrandSettings row that carries its subdomain and
    custom domain, plus any number of additional DomainMapping rows.
    All tenant-scoped tables reference business.id via foreign key.
    """
    __tablename__ = "business"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    users = relationship("User", back_populates="business")
    brand_settings = relationship("BrandSettings", back_populates="business", uselist=False)
    domain_mappings = relationship("DomainMapping", back_populates="business")

    @validates('slug')
    def validate_slug(self, key, value):
        """
        Ensure slug is URL-friendly and follows naming conventions.

        Pattern: ^[a-z0-9-]+$
        Valid: acme-brand, shop-123
        Invalid: Acme_Brand, acme brand, acme.brand

        Raises:
            ValueError: If slug doesn't match pattern or length requirements
        """
        if not re.match(r'^[a-z0-9-]+$', value):
            raise ValueError(
                "Slug must contain only lowercase letters, numbers, and hyphens"
            )
        if len(value) < 2 or len(value) > 100:
            raise ValueError("Slug must be between 2 and 100 characters")
        return value

    @validates('name')
    def validate_name(self, key, value):
        """
        Ensure business name is not empty and within length limits.

        Raises:
            ValueError: If name is empty/whitespace or exceeds 200 characters
        """
        if not value or len(value.strip()) == 0:
            raise ValueError("Business name cannot be empty")
        if len(value) > 200:
            raise ValueError("Business name cannot exceed 200 characters")
        return value.strip()

    def __repr__(self):
        return f"<Business(id={self.id}, slug='{self.slug}', name='{self.name}')>"
