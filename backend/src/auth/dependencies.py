"""FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/protected")
    def protected_endpoint(user: CurrentUser):
        return {"message": f"Hello {user.name}"}

    @router.patch("/brand-settings")
    def update(user: User = Depends(require_role(UserRole.ADMIN))):
        ...
"""

from typing import Annotated, Callable, Optional
from uuid import UUID

import jwt
from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from errors import AppError, FORBIDDEN, INTERNAL_ERROR, INVALID_TOKEN, TOKEN_EXPIRED, UNAUTHORIZED
from models.user import User
from .jwt import decode_token
from .roles import UserRole, has_permission


# auto_error=False so a missing header yields our UNAUTHORIZED envelope
security = HTTPBearer(auto_error=False)

_BEARER = {"WWW-Authenticate": "Bearer"}


def _unauthorized(message: str, code: str = UNAUTHORIZED) -> AppError:
    return AppError(message, status_code=status.HTTP_401_UNAUTHORIZED, code=code, headers=_BEARER)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate the Bearer token, returning the authenticated user.

    Raises:
        AppError 401 UNAUTHORIZED: Missing token or unknown user
        AppError 401 TOKEN_EXPIRED: Token past its exp claim
        AppError 401 INVALID_TOKEN: Bad signature, issuer, audience or claims
        AppError 403 FORBIDDEN: User account is disabled
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Authentication required")

    try:
        payload = decode_token(credentials.credentials)
        user_id = UUID(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired", TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        raise _unauthorized(str(e), INVALID_TOKEN)
    except (KeyError, ValueError) as e:
        raise _unauthorized(f"Invalid token claims: {str(e)}", INVALID_TOKEN)

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _unauthorized("User not found")

    # DISABLED users must not authenticate even with a valid token
    if user.status != "ACTIVE":
        raise AppError(
            "User account is disabled",
            status_code=status.HTTP_403_FORBIDDEN,
            code=FORBIDDEN,
        )

    return user


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces role-based access control.

    Higher roles inherit permissions from lower roles
    (PLATFORM_ADMIN > ADMIN > EDITOR > VIEWER).

    Example:
        @router.post("/domains")
        def create_domain(user: User = Depends(require_role(UserRole.ADMIN))):
            ...
    """

    def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        try:
            user_role = UserRole(current_user.role)
        except ValueError:
            # CHECK constraint makes this unreachable short of manual edits
            raise AppError(
                f"Invalid user role: {current_user.role}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code=INTERNAL_ERROR,
            )

        if not has_permission(user_role, required_role):
            raise AppError(
                f"Insufficient permissions. Required role: {required_role.value}",
                status_code=status.HTTP_403_FORBIDDEN,
                code=FORBIDDEN,
            )

        return current_user

    return role_dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
