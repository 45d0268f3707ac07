"""graniteclient - HTTP Signature login for the Granite package manager.

Signs a login request with SSH-style private keys, then hands the
authenticated client to a caller-supplied operation.
"""

from .client import PackageManagerClient
from .credentials import CredentialStore, DomainRequirement
from .executor import do_login, execute
from .identity import key_id_resolver
from .keys import Key, Keychain, build_keychain, read_key, ssh_fingerprint
from .listener import LogTaskListener, TaskListener
from .login import login
from .signing import (
    Signer,
    create_signing_string,
    parse_authorization,
    sign_request,
    verify_authorization,
)
from .transport import (
    AsyncTransport,
    TransportFactory,
    get_factory_instance,
    set_factory_instance,
)
from .types import (
    ClientConfig,
    LoginError,
    PrivateKeyCredential,
    SignatureError,
    UsernamePasswordCredential,
)

__version__ = "0.1.0"
__all__ = [
    # Entry point
    "execute",
    "do_login",
    "login",
    # Client and transport
    "PackageManagerClient",
    "AsyncTransport",
    "TransportFactory",
    "get_factory_instance",
    "set_factory_instance",
    # Types
    "ClientConfig",
    "PrivateKeyCredential",
    "UsernamePasswordCredential",
    "LoginError",
    "SignatureError",
    # Keys
    "Key",
    "Keychain",
    "build_keychain",
    "read_key",
    "ssh_fingerprint",
    "key_id_resolver",
    # Signing utilities
    "Signer",
    "create_signing_string",
    "sign_request",
    "parse_authorization",
    "verify_authorization",
    # Collaborators
    "CredentialStore",
    "DomainRequirement",
    "TaskListener",
    "LogTaskListener",
]
