"""BrandSettings model - per-tenant configuration"""

import re
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Text, Uuid, func, text
from sqlalchemy.orm import relationship, validates

from .base import Base, PortableJSONB


PLAN_LEVELS = ("foundation", "growth", "premium", "enterprise")

_THEME_COLOR_RE = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


class BrandSettings(Base):
    """
    Tenant settings for a business.

    The subdomain and custom_domain columns are the two keys the tenant
    resolver looks businesses up by; both are stored lower-cased and are
    unique across all businesses. Either may be NULL.
    """
    __tablename__ = "brand_settings"
    __table_args__ = (
        CheckConstraint(
            "plan IN ('foundation', 'growth', 'premium', 'enterprise')",
            name='ck_brand_settings_plan'
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("business.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    # Visual branding
    theme_color = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    banner_images = Column(PortableJSONB, nullable=False, default=list)
    custom_css = Column(Text, nullable=True)

    # Domain configuration
    subdomain = Column(Text, nullable=True, unique=True, index=True)
    custom_domain = Column(Text, nullable=True, unique=True, index=True)
    enable_ssl = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    plan = Column(Text, nullable=False, default="foundation", server_default="foundation")
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="brand_settings")

    @validates('subdomain', 'custom_domain')
    def normalize_domain(self, key, value):
        """Store domain keys lower-cased; empty strings become NULL."""
        if value is None:
            return None
        value = value.strip().lower()
        return value or None

    @validates('theme_color')
    def validate_theme_color(self, key, value):
        if value is not None and not _THEME_COLOR_RE.match(value):
            raise ValueError("Theme color must be a hex color like #1a2b3c")
        return value

    @validates('plan')
    def validate_plan(self, key, value):
        if value not in PLAN_LEVELS:
            raise ValueError(f"Plan must be one of: {', '.join(PLAN_LEVELS)}")
        return value

    def __repr__(self):
        return (
            f"<BrandSettings(business_id={self.business_id}, subdomain='{self.subdomain}', "
            f"custom_domain='{self.custom_domain}')>"
        )
