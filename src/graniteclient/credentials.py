"""In-memory credential store scoped by domain requirement.

Credentials carry an optional hostname glob (``"*.example.com"``); a
lookup returns the credentials whose glob matches the hostname of the
target URL. Credentials without a domain match every URL. An optional
``schemes`` tuple further limits a credential to URLs with those schemes.
"""

from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from .types import PrivateKeyCredential, UsernamePasswordCredential


@dataclass(frozen=True)
class DomainRequirement:
    """Scope of a credential lookup, derived from a target URL."""

    scheme: Optional[str] = None
    hostname: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None

    @classmethod
    def from_uri(cls, uri: str) -> "DomainRequirement":
        parsed = urlparse(uri)
        return cls(
            scheme=parsed.scheme or None,
            hostname=parsed.hostname,
            port=parsed.port,
            path=parsed.path or None,
        )

    def allows(self, domain: Optional[str], schemes: Optional[Iterable[str]] = None) -> bool:
        """True if a credential scoped to ``domain`` and ``schemes`` may be used here.

        An empty domain or schemes restriction matches anything.
        """
        if schemes:
            if self.scheme is None or self.scheme.lower() not in {s.lower() for s in schemes}:
                return False
        if not domain:
            return True
        if self.hostname is None:
            return False
        return fnmatchcase(self.hostname.lower(), domain.lower())


class CredentialStore:
    """Holds key and password credentials for lookup by domain."""

    def __init__(
        self,
        keys: Iterable[PrivateKeyCredential] = (),
        passwords: Iterable[UsernamePasswordCredential] = (),
    ):
        self.keys = list(keys)
        self.passwords = list(passwords)

    def lookup_keys(self, requirement: DomainRequirement) -> List[PrivateKeyCredential]:
        return [c for c in self.keys if requirement.allows(c.domain, c.schemes)]

    def lookup_passwords(self, requirement: DomainRequirement) -> List[UsernamePasswordCredential]:
        return [c for c in self.passwords if requirement.allows(c.domain, c.schemes)]
