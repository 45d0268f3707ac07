"""Asynchronous HTTP transport and the factory that builds it.

Each transport owns an ``httpx.AsyncClient`` and a private asyncio event
loop running on a daemon thread. Callers submit coroutines from their own
thread and wait on the returned future.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Coroutine, Optional

import httpx

from .types import ClientConfig

logger = logging.getLogger(__name__)

USER_AGENT = "graniteclient"


def wait_for(future: concurrent.futures.Future, timeout_ms: int):
    """Wait for a submitted coroutine's result.

    A positive ``timeout_ms`` bounds the wait; on timeout the coroutine is
    cancelled and ``TimeoutError`` is raised. Zero or less waits without
    a bound.
    """
    if timeout_ms > 0:
        try:
            return future.result(timeout=timeout_ms / 1000.0)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise TimeoutError(f"No response within {timeout_ms} ms")
    return future.result()


class AsyncTransport:
    """An ``httpx.AsyncClient`` bound to its own I/O thread."""

    def __init__(self, client: httpx.AsyncClient, name: str = "graniteclient-io"):
        self.client = client
        self._closed = False
        self._lock = threading.Lock()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, coro: Coroutine) -> concurrent.futures.Future:
        """Schedule a coroutine on the I/O loop."""
        if self._closed:
            coro.close()
            raise RuntimeError("Transport is closed")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def close_asynchronously(self) -> Optional[concurrent.futures.Future]:
        """Request teardown without waiting for it.

        Closes the HTTP client, cancels anything still running and stops
        the I/O loop. Only the first call has an effect.
        """
        with self._lock:
            if self._closed:
                return None
            self._closed = True
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), self._loop)
        future.add_done_callback(lambda _: self._loop.call_soon_threadsafe(self._loop.stop))
        return future

    async def _shutdown(self) -> None:
        current = asyncio.current_task()
        pending = [t for t in asyncio.all_tasks() if t is not current]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        try:
            await self.client.aclose()
        except Exception:
            logger.warning("Error while closing HTTP client", exc_info=True)


class TransportFactory:
    """Builds transports from a client configuration.

    Args:
        transport: Optional httpx transport (e.g. ``httpx.MockTransport``)
        proxy: Optional proxy URL for all requests
        headers: Extra default headers
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        proxy: Optional[str] = None,
        headers: Optional[dict] = None,
    ):
        self.transport = transport
        self.proxy = proxy
        self.headers = {"User-Agent": USER_AGENT, **(headers or {})}

    def new_client(self, config: ClientConfig) -> httpx.AsyncClient:
        timeout = config.request_timeout / 1000.0 if config.request_timeout > 0 else None
        kwargs = {}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=config.max_connections),
            verify=config.verify_ssl,
            headers=self.headers,
            follow_redirects=False,
            **kwargs,
        )

    def new_instance(self, config: ClientConfig) -> AsyncTransport:
        return AsyncTransport(self.new_client(config))


_factory_lock = threading.Lock()
_factory: Optional[TransportFactory] = None


def get_factory_instance() -> TransportFactory:
    """Return the process-wide transport factory, creating it on first use."""
    global _factory
    with _factory_lock:
        if _factory is None:
            _factory = TransportFactory()
        return _factory


def set_factory_instance(factory: Optional[TransportFactory]) -> None:
    """Replace the process-wide factory. None restores the default."""
    global _factory
    with _factory_lock:
        _factory = factory
