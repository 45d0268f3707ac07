"""Shared fixtures: generated keys and a simulated Granite login endpoint."""

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from graniteclient import ClientConfig, PrivateKeyCredential, TransportFactory
from graniteclient.signing import verify_authorization

BASE_URL = "http://author.example.com:4502"


def pem(private_key, passphrase=None) -> str:
    encryption = (
        serialization.BestAvailableEncryption(passphrase.encode())
        if passphrase
        else serialization.NoEncryption()
    )
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    ).decode()


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def ed25519_key():
    return Ed25519PrivateKey.generate()


@pytest.fixture
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL, request_timeout=5000, service_timeout=5000)


class LoginServer:
    """Mock login endpoint that verifies signatures against registered keys.

    Answers 405 for a valid signature from a registered key and 401
    otherwise, like a Granite instance with the signature handler installed.
    """

    def __init__(self, status_on_success: int = 405):
        self.public_keys = {}
        self.status_on_success = status_on_success
        self.requests = []

    def register(self, key_id: str, public_key) -> None:
        self.public_keys[key_id] = public_key

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        headers = dict(request.headers)
        for key_id, public_key in self.public_keys.items():
            try:
                if verify_authorization(request.method, str(request.url), headers, public_key) == key_id:
                    return httpx.Response(self.status_on_success)
            except Exception:
                continue
        return httpx.Response(401)


@pytest.fixture
def server():
    return LoginServer()


@pytest.fixture
def factory(server):
    return TransportFactory(transport=httpx.MockTransport(server))


def key_credential(private_key, username="admin", passphrase=None, **kwargs) -> PrivateKeyCredential:
    return PrivateKeyCredential(
        username=username,
        private_key=pem(private_key, passphrase),
        passphrase=passphrase,
        **kwargs,
    )
