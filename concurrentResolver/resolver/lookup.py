"""Forward DNS lookups selecting a single IPv4 address."""
from __future__ import annotations

import ipaddress
import socket
import time
from typing import Any, Iterable, Optional, Sequence

import dns.asyncresolver
import dns.exception

from concurrentResolver.logging_config import get_logger

logger = get_logger("lookup")


def first_ipv4(addresses: Iterable[str]) -> Optional[str]:
    """Return the first address that has an IPv4 form.

    IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) count and are returned in
    dotted form; other IPv6 addresses and unparsable entries are skipped.
    """
    for text in addresses:
        try:
            addr = ipaddress.ip_address(text)
        except ValueError:
            continue
        if isinstance(addr, ipaddress.IPv4Address):
            return str(addr)
        if addr.ipv4_mapped is not None:
            return str(addr.ipv4_mapped)
    return None


class DomainResolver:
    """Resolve a domain to zero or one IPv4 address with a single lookup.

    Lookup failures are expected and reported as ``None``, never raised.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        nameservers: Optional[Sequence[str]] = None,
        resolver: Optional[Any] = None,
    ) -> None:
        if resolver is None:
            resolver = dns.asyncresolver.Resolver(configure=not nameservers)
            if nameservers:
                resolver.nameservers = list(nameservers)
            if timeout is not None:
                resolver.lifetime = timeout
        self.resolver = resolver
        self.timeout = timeout

    async def resolve(self, domain: str) -> Optional[str]:
        if not domain:
            logger.debug("Skipping lookup for empty domain", extra={"outcome": "skipped"})
            return None

        start_time = time.time()
        try:
            answer = await self.resolver.resolve_name(domain, family=socket.AF_UNSPEC)
        except (dns.exception.DNSException, ValueError, UnicodeError) as exc:
            logger.debug(
                f"Could not resolve {domain}: {exc}",
                extra={
                    "domain": domain,
                    "outcome": "failed",
                    "error_type": type(exc).__name__,
                    "duration": round((time.time() - start_time) * 1000, 2),
                },
            )
            return None

        ip = first_ipv4(answer.addresses())
        logger.debug(
            "Lookup completed",
            extra={
                "domain": domain,
                "ip": ip,
                "outcome": "success" if ip else "no_ipv4",
                "duration": round((time.time() - start_time) * 1000, 2),
            },
        )
        return ip
