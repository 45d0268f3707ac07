"""Type definitions for graniteclient."""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one package manager client.

    Timeouts are in milliseconds. A ``service_timeout`` of zero or less
    means the login handshake waits without a bound.
    """

    DEFAULT_BASE_URL = "http://localhost:4502"
    DEFAULT_LOGIN_PATH = "/libs/granite/core/content/login.html/j_security_check"

    base_url: str = DEFAULT_BASE_URL
    request_timeout: int = 60000
    service_timeout: int = 60000
    login_path: str = DEFAULT_LOGIN_PATH
    max_connections: int = 10
    verify_ssl: bool = True

    def __post_init__(self):
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))


@dataclass(frozen=True)
class PrivateKeyCredential:
    """A stored private key and the username it is registered under."""

    username: str
    private_key: str  # PEM or OpenSSH private key text
    passphrase: Optional[str] = None
    domain: Optional[str] = None  # hostname glob, None matches any host
    schemes: Optional[Tuple[str, ...]] = None  # e.g. ("https",), None matches any scheme
    description: str = ""


@dataclass(frozen=True)
class UsernamePasswordCredential:
    """A stored username/password pair."""

    username: str
    password: str
    domain: Optional[str] = None
    schemes: Optional[Tuple[str, ...]] = None
    description: str = ""


class LoginError(Exception):
    """The signed login handshake could not be completed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"LoginError: {message}")


class SignatureError(Exception):
    """Signature creation or verification failed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"SignatureError: {message}")
