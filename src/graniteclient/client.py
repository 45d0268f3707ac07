"""Package manager client bound to an asynchronous transport.

The client holds the connection settings for one Granite instance and
runs requests on the transport's I/O loop. Cookies set by a successful
login are kept on the shared ``httpx.AsyncClient`` and sent with every
later request.
"""

from typing import Optional
from urllib.parse import urljoin

import httpx

from .transport import AsyncTransport, wait_for
from .types import ClientConfig


class PackageManagerClient:
    """Client for the Granite package manager service.

    Usage:
        client = PackageManagerClient(transport, base_url="http://localhost:4502")
        response = client.request("GET", "/crx/packmgr/service/.json/?cmd=ls")
    """

    def __init__(
        self,
        transport: AsyncTransport,
        base_url: str = ClientConfig.DEFAULT_BASE_URL,
        request_timeout: int = 60000,
        service_timeout: int = 60000,
        login_path: str = ClientConfig.DEFAULT_LOGIN_PATH,
    ):
        """Initialize the client.

        Args:
            transport: Transport that performs the HTTP calls
            base_url: Base URL of the Granite instance
            request_timeout: Per-request timeout in milliseconds
            service_timeout: Maximum wait for a service call in milliseconds,
                zero or less waits without a bound
            login_path: Path of the login endpoint
        """
        self.transport = transport
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.service_timeout = service_timeout
        self.login_path = login_path

    @classmethod
    def from_config(cls, transport: AsyncTransport, config: ClientConfig) -> "PackageManagerClient":
        return cls(
            transport,
            base_url=config.base_url,
            request_timeout=config.request_timeout,
            service_timeout=config.service_timeout,
            login_path=config.login_path,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """The underlying asynchronous HTTP client."""
        return self.transport.client

    @property
    def login_url(self) -> str:
        return self.url(self.login_path)

    def url(self, path: str) -> str:
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[dict] = None,
        **kwargs,
    ) -> httpx.Response:
        """Make an HTTP request relative to the base URL and wait for it.

        Extra keyword arguments are passed to ``httpx.AsyncClient.request``.

        Raises:
            TimeoutError: If no response arrives within the service timeout
            httpx.HTTPError: On transport errors
        """
        coro = self.client.request(method, self.url(path), headers=headers, **kwargs)
        return wait_for(self.transport.submit(coro), self.service_timeout)

    def __repr__(self) -> str:
        return f"PackageManagerClient(base_url={self.base_url!r})"
