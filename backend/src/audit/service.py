"""Audit logging service for security events.

All security-relevant events are appended to audit_log through this module.
Entries are flushed, not committed; the caller owns the transaction.

Audit Events:
- LOGIN_SUCCESS, LOGIN_FAILED
- BRAND_DOMAIN_CHANGED (subdomain or custom domain changed)
- DOMAIN_MAPPING_CREATED, DOMAIN_MAPPING_VERIFIED, DOMAIN_MAPPING_UPDATED,
  DOMAIN_MAPPING_DELETED
"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import Request
from sqlalchemy.orm import Session

from models.audit_log import AuditLog


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP, preferring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


def log_audit_event(
    db: Session,
    business_id: UUID,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Create an audit log entry.

    Args:
        db: Database session
        business_id: Business the event belongs to
        action: Event action (e.g. "BRAND_DOMAIN_CHANGED")
        actor_id: User who performed the action (None for anonymous events)
        entity_type: Type of entity affected (e.g. "domain_mapping")
        entity_id: ID of affected entity
        metadata: Additional context, e.g. {"old_subdomain": "a", "new_subdomain": "b"}
        ip_address: Client IP address
        user_agent: Client User-Agent header

    Returns:
        AuditLog: The created (flushed) entry
    """
    audit_entry = AuditLog(
        business_id=business_id,
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata_json=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    db.add(audit_entry)
    db.flush()

    return audit_entry


def log_from_request(
    db: Session,
    request: Optional[Request],
    business_id: UUID,
    action: str,
    actor_id: Optional[UUID] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """log_audit_event() with IP and User-Agent taken from the request.

    request may be None when a service is driven outside HTTP (scripts).
    """
    return log_audit_event(
        db=db,
        business_id=business_id,
        action=action,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata,
        ip_address=get_client_ip(request) if request is not None else None,
        user_agent=request.headers.get("User-Agent") if request is not None else None,
    )
