"""MX lookups through dnspython."""

from __future__ import annotations

from logging import getLogger

import dns.exception
import dns.resolver

log = getLogger(__name__)

DEFAULT_LIFETIME_SECONDS = 10.0


class DnsMxResolver:
    """Answer whether a domain has MX records; lookup failures count as "no"."""

    def __init__(
        self,
        *,
        resolver: dns.resolver.Resolver | None = None,
        lifetime: float = DEFAULT_LIFETIME_SECONDS,
    ) -> None:
        self._resolver = resolver or dns.resolver.Resolver()
        self._lifetime = lifetime

    def __call__(self, domain: str) -> bool:
        try:
            answer = self._resolver.resolve(domain, "MX", lifetime=self._lifetime)
        except dns.exception.DNSException as exc:
            log.debug("MX lookup for %s failed: %s", domain, exc)
            return False
        return len(answer) > 0
