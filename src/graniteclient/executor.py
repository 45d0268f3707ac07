"""Runs operations against an authenticated package manager client."""

import logging
from typing import Callable, Optional, TypeVar

from .client import PackageManagerClient
from .credentials import CredentialStore, DomainRequirement
from .identity import key_id_resolver
from .keys import build_keychain
from .listener import DEFAULT_LISTENER, TaskListener
from .login import login
from .signing import Signer
from .transport import TransportFactory, get_factory_instance
from .types import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def execute(
    operation: Callable[[PackageManagerClient], T],
    config: ClientConfig,
    listener: Optional[TaskListener] = None,
    *,
    credentials: Optional[CredentialStore] = None,
    factory: Optional[TransportFactory] = None,
) -> T:
    """Build a client for ``config``, log it in and pass it to ``operation``.

    A failed login is reported through ``listener`` as a fatal error, but
    the operation still runs. The transport is released on every exit path
    without waiting for teardown to finish.

    Args:
        operation: Called with the client; its result is returned
        config: Connection settings
        listener: Receives diagnostics, defaults to a logging listener
        credentials: Source of keys and passwords, defaults to an empty store
        factory: Transport factory, defaults to the process-wide instance

    Raises:
        LoginError: If the login request itself fails or times out
    """
    listener = listener if listener is not None else DEFAULT_LISTENER
    credentials = credentials if credentials is not None else CredentialStore()
    factory = factory if factory is not None else get_factory_instance()

    transport = factory.new_instance(config)
    client = PackageManagerClient.from_config(transport, config)

    try:
        if not do_login(client, credentials):
            listener.fatal_error("Failed to login to %s", config.base_url)
        return operation(client)
    finally:
        transport.close_asynchronously()


def do_login(client: PackageManagerClient, credentials: CredentialStore) -> bool:
    """Log the client in with the signing keys scoped to its base URL."""
    requirement = DomainRequirement.from_uri(client.base_url)
    keychain, usernames = build_keychain(credentials.lookup_keys(requirement))
    signer = Signer(keychain, key_id_resolver(usernames))

    logged_in = login(client, signer)

    if not logged_in:
        # password credentials are looked up but not used to log in
        passwords = credentials.lookup_passwords(requirement)
        logger.debug(
            "Signature login to %s failed; %d password credential(s) available but unused",
            client.base_url,
            len(passwords),
        )
    return logged_in
