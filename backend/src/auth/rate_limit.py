"""Rate limiting for authentication endpoints.

Sliding window rate limiting plus account lockout to slow down brute force
attacks. Uses Redis so limits hold across API instances; without Redis the
limiter degrades to a no-op.
"""

import hashlib
import time
from typing import Optional

from fastapi import Request, status
from redis import Redis, RedisError

from config import settings
from errors import AppError, RATE_LIMITED
from observability.logging_config import get_logger

logger = get_logger(__name__)


def get_redis_client() -> Optional[Redis]:
    """Get Redis client for rate limiting.

    Returns None if Redis is not available, allowing graceful degradation.
    """
    try:
        client = Redis.from_url(settings.REDIS_URL, decode_responses=True, socket_connect_timeout=1)
        client.ping()
        return client
    except RedisError as e:
        logger.warning(f"Rate limiting disabled, Redis unavailable: {e}")
        return None


def _get_client_identifier(request: Request) -> str:
    """Fingerprint the client from IP and User-Agent (hashed for privacy)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"

    user_agent = request.headers.get("User-Agent", "")
    return hashlib.sha256(f"{ip}:{user_agent}".encode()).hexdigest()[:32]


def _get_rate_limit_key(identifier: str, endpoint: str) -> str:
    return f"rate_limit:{endpoint}:{identifier}"


def _get_lockout_key(identifier: str) -> str:
    return f"lockout:{identifier}"


def _get_failed_attempts_key(email: str, business_slug: str) -> str:
    account_key = f"{business_slug}:{email.lower()}"
    return f"failed_attempts:{hashlib.sha256(account_key.encode()).hexdigest()[:32]}"


class RateLimiter:
    """Rate limiter using a Redis sorted-set sliding window.

    Args:
        redis_client: Redis connection, or None to disable limiting
        window_seconds: Sliding window length
        max_attempts: Attempts allowed per window
        lockout_seconds: Lockout length once the threshold is reached
        lockout_threshold: Failed logins per account before lockout
    """

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        window_seconds: int = settings.RATE_LIMIT_WINDOW,
        max_attempts: int = settings.RATE_LIMIT_MAX_ATTEMPTS,
        lockout_seconds: int = settings.LOCKOUT_DURATION,
        lockout_threshold: int = settings.LOCKOUT_THRESHOLD,
    ):
        self.redis = redis_client
        self.window_seconds = window_seconds
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.lockout_threshold = lockout_threshold

    def is_rate_limited(self, request: Request, endpoint: str = "auth") -> bool:
        if not self.redis:
            return False

        key = _get_rate_limit_key(_get_client_identifier(request), endpoint)
        window_start = int(time.time()) - self.window_seconds

        self.redis.zremrangebyscore(key, 0, window_start)
        return self.redis.zcard(key) >= self.max_attempts

    def record_attempt(self, request: Request, endpoint: str = "auth") -> int:
        """Record an attempt; returns the number of attempts in the window."""
        if not self.redis:
            return 0

        key = _get_rate_limit_key(_get_client_identifier(request), endpoint)
        now = time.time()

        # Member must be unique or attempts within one second collapse
        self.redis.zadd(key, {f"{now:.6f}": now})
        self.redis.expire(key, self.window_seconds)
        return self.redis.zcard(key)

    def is_locked_out(self, request: Request) -> bool:
        if not self.redis:
            return False
        return self.redis.exists(_get_lockout_key(_get_client_identifier(request))) > 0

    def get_lockout_remaining(self, request: Request) -> int:
        if not self.redis:
            return 0
        ttl = self.redis.ttl(_get_lockout_key(_get_client_identifier(request)))
        return max(0, ttl)

    def record_failed_login(self, email: str, business_slug: str, request: Request) -> bool:
        """Count a failed login; returns True if the client is now locked out."""
        if not self.redis:
            return False

        account_key = _get_failed_attempts_key(email, business_slug)
        attempts = self.redis.incr(account_key)
        self.redis.expire(account_key, self.window_seconds)

        if attempts >= self.lockout_threshold:
            lockout_key = _get_lockout_key(_get_client_identifier(request))
            self.redis.setex(lockout_key, self.lockout_seconds, "1")
            logger.warning(f"Login lockout triggered for business {business_slug}")
            return True

        return False

    def clear_failed_attempts(self, email: str, business_slug: str) -> None:
        if not self.redis:
            return
        self.redis.delete(_get_failed_attempts_key(email, business_slug))


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter; connects to Redis on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(get_redis_client())
    return _rate_limiter


def check_rate_limit(request: Request) -> None:
    """Raise 429 RATE_LIMITED when locked out or over the window limit.

    Use as a dependency:

        @router.post("/login")
        def login(_: None = Depends(check_rate_limit)):
            ...
    """
    limiter = get_rate_limiter()

    if limiter.is_locked_out(request):
        remaining = limiter.get_lockout_remaining(request)
        raise AppError(
            f"Too many failed attempts. Account locked for {remaining} seconds.",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            code=RATE_LIMITED,
            headers={"Retry-After": str(remaining)},
        )

    if limiter.is_rate_limited(request, "auth"):
        raise AppError(
            "Too many login attempts. Please wait before trying again.",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            code=RATE_LIMITED,
            headers={"Retry-After": str(limiter.window_seconds)},
        )

    limiter.record_attempt(request, "auth")
