"""Host, subdomain and custom domain syntax validation.

Everything in this module is pure: no database or network access. The
tenant resolver uses validate_hostname() on every inbound request, while
the brand settings and domain mapping services use the subdomain and
custom domain checks before persisting routing keys.

Rules:
- Hostnames: at most 253 characters, labels 1-63 characters of [a-z0-9-]
  that neither start nor end with a hyphen
- Path traversal / header spoofing characters are rejected outright
- Subdomains: 3-63 characters, no consecutive hyphens, not reserved
- Custom domains: dotted, TLD of at least 2 non-numeric characters,
  never a banned or platform domain
"""

import ipaddress
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from errors import (
    DOMAIN_NOT_ALLOWED,
    INVALID_DOMAIN,
    INVALID_HOST,
    INVALID_SUBDOMAIN,
)


MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63
MIN_SUBDOMAIN_LENGTH = 3
MAX_SUBDOMAIN_LENGTH = 63
MIN_DOMAIN_LENGTH = 3

MAX_SUBDOMAIN_SUGGESTIONS = 5
MAX_DOMAIN_SUGGESTIONS = 8

RESERVED_SUBDOMAINS = frozenset({
    "www", "api", "admin", "support", "help", "mail", "ftp", "blog", "news",
    "shop", "store", "app", "mobile", "dev", "test", "staging", "prod",
    "production", "cdn", "assets", "static", "media", "images", "js", "css",
    "files", "docs", "documentation", "status", "about", "contact", "privacy",
    "terms", "legal", "security", "team", "careers",
})

BANNED_DOMAINS = ("example.com", "test.com", "localhost", "127.0.0.1", "temp.com")

SUBDOMAIN_SUFFIXES = ("brand", "store", "shop", "co")
SUGGESTION_TLDS = ("com", "co", "io", "app", "store")

_LABEL_RE = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')
_SUBDOMAIN_RE = re.compile(r'^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$')
# '..' path traversal, '/' '\' path separators, '%' encoded payloads,
# '@' userinfo smuggling, '~' home expansion, whitespace and control chars
_SUSPICIOUS_RE = re.compile(r'\.\.|[/\\%@~\s\x00-\x1f\x7f]')
_PORT_RE = re.compile(r':\d*$')
_BRACKETED_RE = re.compile(r'^\[([^\]]*)\](?::\d+)?$')


@dataclass
class ValidationResult:
    """Outcome of a syntax or availability check.

    Attributes:
        valid: Whether the value passed every check
        error: Human readable reason when invalid
        code: Error code (see errors module) when invalid
        warnings: Non-fatal findings (e.g. missing DNS records)
        suggestions: Alternatives to offer the user
        available: For subdomain checks, whether no other business holds it
        reserved: For subdomain checks, whether it is on the reserved list
    """
    valid: bool
    error: Optional[str] = None
    code: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    available: Optional[bool] = None
    reserved: Optional[bool] = None

    @classmethod
    def ok(cls, **kwargs) -> "ValidationResult":
        return cls(valid=True, **kwargs)

    @classmethod
    def fail(cls, error: str, code: str, **kwargs) -> "ValidationResult":
        return cls(valid=False, error=error, code=code, **kwargs)


def normalize_host(raw: Optional[str]) -> str:
    """Normalize a Host header value.

    Trims whitespace, lower-cases, drops a ":port" suffix and a single
    trailing dot. Bracketed IPv6 literals ("[::1]:8000") are returned
    without brackets or port; any other bracketed value is returned as is
    so that validate_hostname() rejects it.

    Args:
        raw: Host header value (may be None)

    Returns:
        str: Normalized host, "" when nothing usable remains
    """
    if not raw:
        return ""

    host = raw.strip().lower()

    if host.startswith("["):
        match = _BRACKETED_RE.match(host)
        if match and _is_ipv6(match.group(1)):
            return match.group(1)
        # Anything else in brackets is left intact for validation to reject
        return host

    # Bare IPv6 literal without brackets has several colons; leave it alone
    if host.count(":") == 1:
        host = _PORT_RE.sub("", host)

    if host.endswith(".") and not host.endswith(".."):
        host = host[:-1]

    return host


def is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def validate_hostname(host: str) -> ValidationResult:
    """Validate a normalized hostname before it is used as a lookup key.

    IP literals are accepted here; the resolver decides separately that
    they never map to a tenant.

    Args:
        host: Host already passed through normalize_host()

    Returns:
        ValidationResult: valid, or failed with code INVALID_HOST
    """
    if not host:
        return ValidationResult.fail("Host header is missing", INVALID_HOST)

    if len(host) > MAX_HOSTNAME_LENGTH:
        return ValidationResult.fail(
            f"Host cannot exceed {MAX_HOSTNAME_LENGTH} characters", INVALID_HOST
        )

    if _SUSPICIOUS_RE.search(host):
        return ValidationResult.fail("Host contains forbidden characters", INVALID_HOST)

    if is_ip_address(host):
        return ValidationResult.ok()

    for label in host.split("."):
        if not label:
            return ValidationResult.fail("Host contains an empty label", INVALID_HOST)
        if len(label) > MAX_LABEL_LENGTH:
            return ValidationResult.fail(
                f"Host labels cannot exceed {MAX_LABEL_LENGTH} characters", INVALID_HOST
            )
        if not _LABEL_RE.match(label):
            return ValidationResult.fail(
                "Host labels may only contain letters, numbers and inner hyphens",
                INVALID_HOST,
            )

    return ValidationResult.ok()


def validate_subdomain_format(subdomain: str) -> ValidationResult:
    """Check subdomain syntax (length, characters, hyphen placement)."""
    value = (subdomain or "").strip().lower()

    if len(value) < MIN_SUBDOMAIN_LENGTH:
        return ValidationResult.fail(
            f"Subdomain must be at least {MIN_SUBDOMAIN_LENGTH} characters long",
            INVALID_SUBDOMAIN,
        )

    if len(value) > MAX_SUBDOMAIN_LENGTH:
        return ValidationResult.fail(
            f"Subdomain cannot exceed {MAX_SUBDOMAIN_LENGTH} characters",
            INVALID_SUBDOMAIN,
        )

    if not _SUBDOMAIN_RE.match(value):
        return ValidationResult.fail(
            "Subdomain can only contain letters, numbers, and hyphens. "
            "Cannot start or end with a hyphen.",
            INVALID_SUBDOMAIN,
        )

    if "--" in value:
        return ValidationResult.fail(
            "Subdomain cannot contain consecutive hyphens", INVALID_SUBDOMAIN
        )

    return ValidationResult.ok()


def is_reserved_subdomain(subdomain: str) -> bool:
    return (subdomain or "").strip().lower() in RESERVED_SUBDOMAINS


def validate_custom_domain_format(domain: str) -> ValidationResult:
    """Check custom domain syntax.

    Args:
        domain: Domain as entered by the user

    Returns:
        ValidationResult: valid, or failed with code INVALID_DOMAIN
    """
    value = (domain or "").strip().lower()

    if len(value) < MIN_DOMAIN_LENGTH:
        return ValidationResult.fail(
            f"Domain must be at least {MIN_DOMAIN_LENGTH} characters long", INVALID_DOMAIN
        )

    if len(value) > MAX_HOSTNAME_LENGTH:
        return ValidationResult.fail(
            f"Domain cannot exceed {MAX_HOSTNAME_LENGTH} characters", INVALID_DOMAIN
        )

    labels = value.split(".")
    for label in labels:
        if not label or len(label) > MAX_LABEL_LENGTH or not _LABEL_RE.match(label):
            return ValidationResult.fail(
                "Invalid domain format. Use only letters, numbers, and hyphens.",
                INVALID_DOMAIN,
            )

    if "--" in value:
        return ValidationResult.fail(
            "Domain cannot contain consecutive hyphens", INVALID_DOMAIN
        )

    if len(labels) < 2:
        return ValidationResult.fail(
            "Domain must include a top-level domain (e.g., .com, .org)", INVALID_DOMAIN
        )

    tld = labels[-1]
    if len(tld) < 2 or tld.isdigit():
        return ValidationResult.fail("Invalid top-level domain", INVALID_DOMAIN)

    return ValidationResult.ok()


def is_banned_domain(domain: str) -> bool:
    value = (domain or "").strip().lower()
    return any(value == banned or value.endswith("." + banned) for banned in BANNED_DOMAINS)


def is_platform_domain(domain: str, base_domains: Iterable[str]) -> bool:
    """Whether domain equals or sits under one of the platform base domains."""
    value = (domain or "").strip().lower()
    return any(value == base or value.endswith("." + base) for base in base_domains)


def check_custom_domain(domain: str, base_domains: Iterable[str]) -> ValidationResult:
    """Syntax, banned list and platform collision checks, in that order."""
    result = validate_custom_domain_format(domain)
    if not result.valid:
        return result

    value = domain.strip().lower()
    if is_banned_domain(value):
        return ValidationResult.fail("This domain is not allowed", DOMAIN_NOT_ALLOWED)

    if is_platform_domain(value, base_domains):
        return ValidationResult.fail(
            "Platform domains cannot be used as custom domains", DOMAIN_NOT_ALLOWED
        )

    return ValidationResult.ok()


def generate_subdomain_suggestions(subdomain: str, year: Optional[int] = None) -> List[str]:
    """Suggest alternatives for a taken or reserved subdomain.

    Args:
        subdomain: The rejected subdomain
        year: Year used for the "{base}{YY}" variant (defaults to today)

    Returns:
        list[str]: At most five candidates
    """
    base = re.sub(r'[^a-z0-9]', '', (subdomain or "").lower())
    if not base:
        return []

    suggestions = [f"{base}{i}" for i in range(1, 4)]

    for suffix in SUBDOMAIN_SUFFIXES:
        if len(base) + len(suffix) <= MAX_SUBDOMAIN_LENGTH:
            suggestions.append(f"{base}{suffix}")

    yy = str(year if year is not None else date.today().year)[-2:]
    if len(base) + 2 <= MAX_SUBDOMAIN_LENGTH:
        suggestions.append(f"{base}{yy}")

    return suggestions[:MAX_SUBDOMAIN_SUGGESTIONS]


def generate_domain_suggestions(business_name: str) -> List[str]:
    """Suggest custom domains derived from a business name (at most eight)."""
    clean = re.sub(r'[^a-z0-9]', '', (business_name or "").lower())[:20]
    if not clean:
        return []

    suggestions = []
    for tld in SUGGESTION_TLDS:
        suggestions.append(f"{clean}.{tld}")
        suggestions.append(f"{clean}brand.{tld}")
        suggestions.append(f"{clean}co.{tld}")

    return suggestions[:MAX_DOMAIN_SUGGESTIONS]
