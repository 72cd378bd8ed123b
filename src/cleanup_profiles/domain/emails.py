"""Email normalization and validity checks."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .caches import ValidityCache

if TYPE_CHECKING:
    from .ports import MxResolver

log = getLogger(__name__)

MIN_EMAIL_LENGTH: Final[int] = 6
MAX_EMAIL_LENGTH: Final[int] = 254
MIN_DOMAIN_LENGTH: Final[int] = 4
MAX_DOMAIN_LENGTH: Final[int] = 254

EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")

# obfuscated separators seen in scraped addresses ("jane at example dot org", "<jane@...>")
_REPLACEMENTS: Final[dict[str, str]] = {
    " at ": "@",
    " AT ": "@",
    " At ": "@",
    " dot ": ".",
    " DOT ": ".",
    " Dot ": ".",
    "<": "",
    ">": "",
}
_REPLACEMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    "|".join(re.escape(token) for token in _REPLACEMENTS)
)


def normalize_email(raw: str) -> str:
    """Undo common obfuscation and keep the first whitespace-separated token."""

    collapsed = _WHITESPACE.sub(" ", raw)
    replaced = _REPLACEMENT_PATTERN.sub(lambda match: _REPLACEMENTS[match.group(0)], collapsed)
    stripped = replaced.strip()
    return stripped.split(" ", 1)[0]


class EmailValidator:
    """Length, character-class and (optionally) MX checks with memoized results."""

    def __init__(
        self,
        *,
        validate_domain: bool = True,
        mx_resolver: MxResolver | None = None,
        cache: ValidityCache | None = None,
    ) -> None:
        if validate_domain and mx_resolver is None:
            raise ValueError("Domain validation requires an MX resolver")
        self.validate_domain = validate_domain
        self._mx_resolver = mx_resolver
        self.cache = cache or ValidityCache()

    def is_valid(self, email: str) -> bool:
        if not MIN_EMAIL_LENGTH <= len(email) <= MAX_EMAIL_LENGTH:
            return False
        cached = self.cache.addresses.get(email)
        if cached is not None:
            return cached
        valid = self._check_address(email)
        self.cache.addresses.put(email, valid)
        return valid

    def is_valid_domain(self, domain: str) -> bool:
        if not MIN_DOMAIN_LENGTH <= len(domain) <= MAX_DOMAIN_LENGTH:
            return False
        cached = self.cache.domains.get(domain)
        if cached is not None:
            return cached
        valid = self._mx_resolver is not None and self._mx_resolver(domain)
        self.cache.domains.put(domain, valid)
        if not valid:
            log.debug("no MX record for domain %s", domain)
        return valid

    def _check_address(self, email: str) -> bool:
        normalized = normalize_email(email)
        if EMAIL_PATTERN.fullmatch(normalized) is None:
            return False
        if not self.validate_domain:
            return True
        _, _, domain = normalized.partition("@")
        return bool(domain) and self.is_valid_domain(domain)
