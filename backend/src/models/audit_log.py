"""AuditLog SQLAlchemy model"""

import uuid

from sqlalchemy import Column, DateTime, Text, Uuid, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB


class AuditLog(Base):
    """AuditLog model for immutable security event logging.

    Records logins and tenant routing changes (subdomain, custom domain,
    domain mappings). Entries are append-only and should never be updated
    or deleted.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_business_id", "business_id"),
        Index("ix_audit_log_business_id_created_at", "business_id", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid, ForeignKey("business.id", ondelete="RESTRICT"), nullable=False)
    actor_id = Column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=True)
    entity_id = Column(Uuid, nullable=True)
    metadata_json = Column(PortableJSONB, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    business = relationship("Business")
    actor = relationship("User")

    def to_dict(self):
        """Convert audit log entry to dictionary representation"""
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "metadata": self.metadata_json,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
