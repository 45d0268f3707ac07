"""HTTP Signatures for the package manager login.

Implements the ``Authorization: Signature`` scheme of
draft-cavage-http-signatures, signing ``(request-target)``, ``host`` and
``date`` with an RSA, ECDSA or Ed25519 key.
"""

import base64
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence, Tuple
from urllib.parse import urlparse

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .identity import KeyIdResolver
from .keys import Key, Keychain
from .types import SignatureError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = ("(request-target)", "host", "date")


def create_signing_string(
    method: str,
    url: str,
    headers: dict,
    header_names: Sequence[str] = DEFAULT_HEADERS,
) -> str:
    """Create the string that is signed for a request.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Full request URL
        headers: Request headers, looked up case-insensitively
        header_names: Lowercase names of the signed components

    Raises:
        SignatureError: If a signed header is missing from the request
    """
    parsed = urlparse(url)
    target = parsed.path or "/"
    if parsed.query:
        target = f"{target}?{parsed.query}"

    header_lookup = {k.lower(): v for k, v in headers.items()}

    lines = []
    for name in header_names:
        if name == "(request-target)":
            lines.append(f"(request-target): {method.lower()} {target}")
        elif name in header_lookup:
            lines.append(f"{name}: {header_lookup[name]}")
        else:
            raise SignatureError(f"Missing signed header {name!r}")

    return "\n".join(lines)


def sign_request(
    method: str,
    url: str,
    headers: dict,
    key: Key,
    key_id: str,
    header_names: Sequence[str] = DEFAULT_HEADERS,
) -> dict:
    """Sign an HTTP request.

    Args:
        method: HTTP method
        url: Full request URL
        headers: Request headers
        key: Signing key
        key_id: Identity presented to the server (``/{user}/{fingerprint}``)
        header_names: Signed components

    Returns:
        Copy of headers with Host, Date and Authorization set
    """
    if key.algorithm is None:
        raise SignatureError(f"Key {key!r} has no HTTP signature algorithm")

    headers = dict(headers)
    lower = {k.lower() for k in headers}

    if "host" not in lower:
        headers["Host"] = urlparse(url).netloc

    if "date" not in lower:
        now = datetime.now(timezone.utc)
        headers["Date"] = now.strftime("%a, %d %b %Y %H:%M:%S GMT")

    signing_string = create_signing_string(method, url, headers, header_names)
    signature_b64 = base64.b64encode(key.sign(signing_string.encode())).decode()

    headers["Authorization"] = (
        f'Signature keyId="{key_id}",algorithm="{key.algorithm}",'
        f'headers="{" ".join(header_names)}",signature="{signature_b64}"'
    )
    return headers


def parse_authorization(value: str) -> Dict[str, str]:
    """Parse an ``Authorization: Signature ...`` header into its parameters."""
    scheme, _, params = value.partition(" ")
    if scheme.lower() != "signature" or not params:
        raise SignatureError("Not a Signature authorization header")

    parsed = {}
    for item in params.split(","):
        name, sep, quoted = item.strip().partition("=")
        if not sep or len(quoted) < 2 or quoted[0] != '"' or quoted[-1] != '"':
            raise SignatureError(f"Invalid signature parameter {item.strip()!r}")
        parsed[name] = quoted[1:-1]

    for required in ("keyId", "signature"):
        if required not in parsed:
            raise SignatureError(f"Missing signature parameter {required!r}")

    return parsed


def verify_authorization(method: str, url: str, headers: dict, public_key) -> str:
    """Verify the Signature authorization header of a request.

    Returns:
        The keyId that signed the request

    Raises:
        SignatureError: If the header is missing, malformed or invalid
    """
    header_lookup = {k.lower(): v for k, v in headers.items()}
    authorization = header_lookup.get("authorization")
    if not authorization:
        raise SignatureError("Missing Authorization header")

    params = parse_authorization(authorization)
    header_names = params.get("headers", "date").split()
    signing_string = create_signing_string(method, url, headers, header_names).encode()

    try:
        signature = base64.b64decode(params["signature"], validate=True)
    except ValueError:
        raise SignatureError("Invalid signature encoding")

    try:
        if isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signature, signing_string, padding.PKCS1v15(), hashes.SHA256())
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, signing_string, ec.ECDSA(hashes.SHA256()))
        elif isinstance(public_key, Ed25519PublicKey):
            public_key.verify(signature, signing_string)
        else:
            raise SignatureError(f"Unsupported public key type {type(public_key).__name__}")
    except InvalidSignature:
        raise SignatureError("Signature verification failed")

    return params["keyId"]


class Signer:
    """Signs requests with the first usable key of a keychain.

    A key is usable when it has a signature algorithm and the resolver
    returns an identity for it.
    """

    def __init__(self, keychain: Keychain, key_id: KeyIdResolver):
        self.keychain = keychain
        self.key_id = key_id

    def select_key(self) -> Optional[Tuple[Key, str]]:
        for key in self.keychain:
            if key.algorithm is None:
                continue
            identity = self.key_id(key)
            if identity:
                return key, identity
        return None

    def sign(self, method: str, url: str, headers: Optional[dict] = None) -> Optional[dict]:
        """Return signed headers, or None if no key can sign."""
        selected = self.select_key()
        if selected is None:
            return None
        key, identity = selected
        logger.debug("Signing %s %s as %s", method, url, identity)
        return sign_request(method, url, headers or {}, key, identity)
