"""JWT token generation and validation

Access tokens carry the user, their business (tenant) and role. Secrets
and lifetimes are read from the environment at call time.

Claims:
- sub: User ID as UUID string
- business_id: Business (tenant) ID as UUID string; every business-scoped
  endpoint filters by this value
- role: "PLATFORM_ADMIN" | "ADMIN" | "EDITOR" | "VIEWER"
- email: User's email address
- iat / exp: Issued-at and expiry as Unix timestamps
- iss / aud: JWT_ISSUER / JWT_AUDIENCE, checked on decode

Security Properties:
- Algorithm: HS256
- Secret: JWT_SECRET environment variable
- No refresh tokens (re-login after expiry)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from uuid import UUID
import jwt

DEFAULT_ISSUER = "ordira-api"
DEFAULT_AUDIENCE = "ordira-app"


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from environment.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv('JWT_SECRET')
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    """Get JWT_EXPIRY_MINUTES from environment (default: 60)."""
    expiry = os.getenv('JWT_EXPIRY_MINUTES', '60')
    try:
        return int(expiry)
    except ValueError:
        return 60


def _get_issuer() -> str:
    return os.getenv('JWT_ISSUER', DEFAULT_ISSUER)


def _get_audience() -> str:
    return os.getenv('JWT_AUDIENCE', DEFAULT_AUDIENCE)


def create_access_token(
    user_id: UUID,
    business_id: UUID,
    role: str,
    email: str
) -> str:
    """Create a JWT access token for an authenticated user.

    Args:
        user_id: User's UUID
        business_id: Business UUID
        role: User's role
        email: User's email address

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=_get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),
        'business_id': str(business_id),
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp()),
        'iss': _get_issuer(),
        'aud': _get_audience(),
    }

    return jwt.encode(payload, secret, algorithm='HS256')


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, tampered, or issued for
            another issuer/audience
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=['HS256'],
            issuer=_get_issuer(),
            audience=_get_audience(),
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise jwt.ExpiredSignatureError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {str(e)}")
