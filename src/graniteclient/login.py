"""Signed login handshake.

The login endpoint only accepts POST. A GET carrying a valid signature is
authenticated before the method check, so the server answers
``405 Method Not Allowed``; that status is the success signal. Any other
status means the signature was not accepted.
"""

import logging

import httpx

from .client import PackageManagerClient
from .signing import Signer
from .transport import wait_for
from .types import LoginError

logger = logging.getLogger(__name__)

LOGIN_SUCCESS_STATUS = 405


async def signed_login(client: httpx.AsyncClient, signer: Signer, url: str) -> bool:
    """Send one signed GET to the login URL on the I/O loop."""
    headers = signer.sign("GET", url)
    if headers is None:
        logger.debug("No key in the keychain can sign for %s", url)
        return False

    response = await client.get(url, headers=headers)
    logger.debug("Login to %s returned status %s", url, response.status_code)
    return response.status_code == LOGIN_SUCCESS_STATUS


def login(client: PackageManagerClient, signer: Signer) -> bool:
    """Authenticate ``client`` with an HTTP signature.

    Waits up to the client's service timeout for the handshake, or without a
    bound when the timeout is zero or less.

    Returns:
        True if the server accepted the signature, False otherwise

    Raises:
        LoginError: If the request fails, cannot be signed or times out. The
            original exception is chained as ``__cause__``.
    """
    try:
        future = client.transport.submit(signed_login(client.client, signer, client.login_url))
        return wait_for(future, client.service_timeout)
    except Exception as e:
        raise LoginError("Failed to login using HTTP Signature.") from e
