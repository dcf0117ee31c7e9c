"""Authentication endpoints for the Ordira API

Provides endpoints for user login and retrieving current user information.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from audit.service import log_from_request
from database import get_db
from errors import AppError, UNAUTHORIZED
from models.business import Business
from models.user import User
from observability.logging_config import get_logger
from .dependencies import CurrentUser
from .jwt import _get_jwt_expiry_minutes, create_access_token
from .password import verify_password
from .rate_limit import check_rate_limit, get_rate_limiter
from .schemas import LoginRequest, LoginResponse, MeResponse, UserResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# One message for every credential failure to prevent enumeration
_INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    _: None = Depends(check_rate_limit)
):
    """Authenticate a user of a business and return a JWT access token.

    Security measures:
    - Sliding window rate limiting and lockout (Redis)
    - Failed and successful logins are written to audit_log
    - Disabled accounts and inactive businesses are rejected

    Raises:
        AppError 401 UNAUTHORIZED: Invalid credentials or disabled account
        AppError 429 RATE_LIMITED: Rate limit exceeded or locked out
    """
    business = db.query(Business).filter(
        Business.slug == credentials.business_slug.lower(),
        Business.is_active.is_(True),
    ).first()
    if not business:
        # No business to attach an audit entry to
        raise AppError(_INVALID_CREDENTIALS, status_code=status.HTTP_401_UNAUTHORIZED, code=UNAUTHORIZED)

    email = credentials.email.lower()
    user = db.query(User).filter(
        User.business_id == business.id,
        User.email == email,
    ).first()

    limiter = get_rate_limiter()

    if not user or not verify_password(credentials.password, user.password_hash):
        log_from_request(
            db=db,
            request=request,
            business_id=business.id,
            action="LOGIN_FAILED",
            metadata={"email": email, "reason": "invalid_credentials"},
        )
        db.commit()
        limiter.record_failed_login(email, business.slug, request)
        raise AppError(_INVALID_CREDENTIALS, status_code=status.HTTP_401_UNAUTHORIZED, code=UNAUTHORIZED)

    if user.status == "DISABLED":
        log_from_request(
            db=db,
            request=request,
            business_id=business.id,
            actor_id=user.id,
            action="LOGIN_FAILED",
            metadata={"email": email, "reason": "account_disabled"},
        )
        db.commit()
        limiter.record_failed_login(email, business.slug, request)
        raise AppError("Account is disabled", status_code=status.HTTP_401_UNAUTHORIZED, code=UNAUTHORIZED)

    user.last_login_at = datetime.now(timezone.utc)
    log_from_request(
        db=db,
        request=request,
        business_id=business.id,
        actor_id=user.id,
        action="LOGIN_SUCCESS",
        metadata={"email": email},
    )
    db.commit()
    db.refresh(user)

    limiter.clear_failed_attempts(email, business.slug)
    logger.info(f"User logged in: {user.id}", extra={"user_id": str(user.id)})

    access_token = create_access_token(
        user_id=user.id,
        business_id=user.business_id,
        role=user.role,
        email=user.email
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=_get_jwt_expiry_minutes() * 60
    )


@router.get("/me", response_model=MeResponse)
def get_me(current_user: CurrentUser):
    """Profile of the user identified by the Bearer token."""
    return MeResponse(user=UserResponse.model_validate(current_user))
