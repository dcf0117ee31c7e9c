"""Global FastAPI dependencies for business (tenant) scoping.

Two notions of "tenant" meet here:
- The business of the authenticated user (JWT), which scopes every
  management endpoint (brand settings, domain mappings)
- The business behind the request host, resolved by
  TenantResolutionMiddleware (see tenants.dependencies)

Management endpoints always scope by the user's business, never by a
business_id taken from the request body, query or host.
"""

from uuid import UUID

from fastapi import Depends, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_user
from errors import AppError, MISSING_BUSINESS_CONTEXT, NOT_FOUND
from models.user import User


def get_business_id(current_user: User = Depends(get_current_user)) -> UUID:
    """Business ID of the authenticated user.

    Raises:
        AppError 400 MISSING_BUSINESS_CONTEXT: If the user has no business

    Example:
        @router.get("/domains")
        def list_domains(business_id: UUID = Depends(get_business_id), ...):
            ...
    """
    if not current_user.business_id:
        raise AppError(
            "User has no business association",
            status_code=status.HTTP_400_BAD_REQUEST,
            code=MISSING_BUSINESS_CONTEXT,
        )

    return current_user.business_id


class TenantQuery:
    """Helpers for business-scoped queries.

    Example:
        mapping = TenantQuery.get_or_404(db, DomainMapping, mapping_id, business_id)
    """

    @staticmethod
    def scoped_query(session: Session, model, business_id: UUID):
        """Query filtered by business_id.

        Raises:
            AttributeError: If model has no business_id column
        """
        if not hasattr(model, 'business_id'):
            raise AttributeError(f"Model {model.__name__} does not have business_id column")

        return session.query(model).filter(model.business_id == business_id)

    @staticmethod
    def get_or_404(session: Session, model, record_id: UUID, business_id: UUID):
        """Get a record by ID within a business, or raise 404.

        Records of other businesses yield the same 404 as missing records so
        their existence is not disclosed.

        Raises:
            AppError 404 NOT_FOUND
        """
        record = TenantQuery.scoped_query(session, model, business_id).filter(
            model.id == record_id
        ).first()

        if not record:
            raise AppError(
                f"{model.__name__} not found",
                status_code=status.HTTP_404_NOT_FOUND,
                code=NOT_FOUND,
            )

        return record
