"""Password hashing and verification using Argon2id

Passwords are combined with a server-side PASSWORD_PEPPER before hashing,
so a leaked database alone is not enough to brute-force them.

Parameters: 64 MB memory, 3 iterations, parallelism 4 (OWASP guidance).
"""

import os
import re
from typing import Tuple

from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError


_hasher = PasswordHasher(
    memory_cost=65536,  # 64 MB
    time_cost=3,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID
)

MIN_PASSWORD_LENGTH = 8
_SPECIAL_CHARS_RE = re.compile(r'[!@#$%^&*(),.?":{}|<>_\-+=\[\]\\\/~`]')


def _get_pepper() -> str:
    """Get PASSWORD_PEPPER from environment.

    Raises:
        ValueError: If PASSWORD_PEPPER is not set
    """
    pepper = os.getenv('PASSWORD_PEPPER')
    if not pepper:
        raise ValueError("PASSWORD_PEPPER environment variable is not set")
    return pepper


def hash_password(password: str) -> str:
    """Hash a password with Argon2id and the global pepper.

    Returns:
        str: Encoded hash ($argon2id$v=19$m=65536,t=3,p=4$...)

    Raises:
        ValueError: If PASSWORD_PEPPER is not set or password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")

    return _hasher.hash(password + _get_pepper())


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against an Argon2id hash.

    Returns False (never raises) for mismatches and malformed hashes.
    """
    if not password or not password_hash:
        return False

    try:
        return _hasher.verify(password_hash, password + _get_pepper())
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    """Whether a stored hash was produced with outdated parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> Tuple[bool, str]:
    """Validate password meets strength requirements.

    Requires at least 8 characters with an uppercase letter, a lowercase
    letter, a digit and a special character.

    Example:
        >>> validate_password_strength("weak")
        (False, "Password must be at least 8 characters long")
        >>> validate_password_strength("SecureP@ss123")
        (True, "")
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    if not re.search(r'[A-Z]', password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r'[a-z]', password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r'\d', password):
        return False, "Password must contain at least one digit"

    if not _SPECIAL_CHARS_RE.search(password):
        return False, "Password must contain at least one special character"

    return True, ""
