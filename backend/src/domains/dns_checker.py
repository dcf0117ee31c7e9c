"""DNS lookups used for custom domain validation and ownership checks.

Wraps a dnspython resolver. "Nothing there" answers (NXDOMAIN, no answer)
are ordinary results; timeouts and server failures raise DnsLookupError
so callers can tell "not configured yet" from "could not check".
"""

from functools import lru_cache
from typing import List

import dns.exception
import dns.resolver

from config import settings
from observability.logging_config import get_logger

logger = get_logger(__name__)


class DnsLookupError(Exception):
    """DNS query could not be completed (timeout, SERVFAIL, no nameservers)."""

    def __init__(self, domain: str, record_type: str, reason: str):
        super().__init__(f"{record_type} lookup for {domain} failed: {reason}")
        self.domain = domain
        self.record_type = record_type
        self.reason = reason


class DnsChecker:
    """
    Thin DNS client.

    Args:
        timeout: Total seconds allowed per query (resolver lifetime)
    """

    def __init__(self, timeout: float = 3.0):
        self.resolver = dns.resolver.Resolver()
        self.resolver.lifetime = timeout

    def _resolve(self, domain: str, record_type: str):
        try:
            return self.resolver.resolve(domain, record_type)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return None
        except dns.exception.DNSException as e:
            logger.warning(f"DNS {record_type} lookup failed for {domain}: {e}")
            raise DnsLookupError(domain, record_type, type(e).__name__) from e

    def txt_records(self, domain: str) -> List[str]:
        """TXT record values for domain (multi-string records are joined).

        Raises:
            DnsLookupError: If the lookup could not be completed
        """
        answer = self._resolve(domain, "TXT")
        if answer is None:
            return []
        return [
            b"".join(record.strings).decode("utf-8", errors="replace")
            for record in answer
        ]

    def has_address_record(self, domain: str) -> bool:
        """Whether domain has an A or AAAA record.

        Raises:
            DnsLookupError: If the lookup could not be completed
        """
        for record_type in ("A", "AAAA"):
            if self._resolve(domain, record_type) is not None:
                return True
        return False


@lru_cache()
def get_dns_checker() -> DnsChecker:
    """FastAPI dependency returning the shared DnsChecker.

    Tests override this dependency with a fake.
    """
    return DnsChecker(timeout=settings.DNS_TIMEOUT_SECONDS)
