"""User SQLAlchemy model"""

import re
import uuid

from sqlalchemy import Column, DateTime, Text, Uuid, ForeignKey, CheckConstraint, UniqueConstraint, func
from sqlalchemy.orm import relationship, validates

from .base import Base


class User(Base):
    """User model representing authenticated members of a business.

    Each user belongs to one business and has a role determining their
    permissions. Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid, ForeignKey("business.id", ondelete="RESTRICT"), nullable=False)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship("Business", back_populates="users")

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "role IN ('PLATFORM_ADMIN', 'ADMIN', 'EDITOR', 'VIEWER')",
            name='ck_user_role'
        ),
        CheckConstraint(
            "status IN ('ACTIVE', 'DISABLED')",
            name='ck_user_status'
        ),
        UniqueConstraint('business_id', 'email', name='uq_user_business_email')
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
