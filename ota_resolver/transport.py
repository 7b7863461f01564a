"""Per-call connection tracking so a blocked hop can be aborted."""

from __future__ import annotations

import socket
import threading
from typing import Any, Callable

import requests
from requests.adapters import DEFAULT_POOLBLOCK, HTTPAdapter
from urllib3 import HTTPConnectionPool, HTTPSConnectionPool, PoolManager


class CancelToken:
    """Cancellation handle for a single ``resolve`` call.

    ``cancel`` may be called from any thread. It shuts down the socket of the
    connection currently checked out for the call, which wakes a blocked
    connect/read, and closes the current response.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._connection: Any = None
        self._response: requests.Response | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            connection, response = self._connection, self._response
        sock = getattr(connection, "sock", None)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        if response is not None:
            response.close()

    def attach_connection(self, connection: Any) -> None:
        with self._lock:
            self._connection = connection

    def attach_response(self, response: requests.Response | None) -> None:
        with self._lock:
            self._response = response


class _TrackedPoolMixin:
    checkout_hook: Callable[[Any], None] | None = None

    def _get_conn(self, timeout: float | None = None) -> Any:
        conn = super()._get_conn(timeout=timeout)  # type: ignore[misc]
        if self.checkout_hook is not None:
            self.checkout_hook(conn)
        return conn


class _TrackedHTTPConnectionPool(_TrackedPoolMixin, HTTPConnectionPool):
    pass


class _TrackedHTTPSConnectionPool(_TrackedPoolMixin, HTTPSConnectionPool):
    pass


class _TrackingPoolManager(PoolManager):
    def __init__(self, *args: Any, checkout_hook: Callable[[Any], None], **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.pool_classes_by_scheme = {
            "http": _TrackedHTTPConnectionPool,
            "https": _TrackedHTTPSConnectionPool,
        }
        self._checkout_hook = checkout_hook

    def _new_pool(self, scheme: str, host: str, port: int, request_context: Any = None) -> Any:
        pool = super()._new_pool(scheme, host, port, request_context=request_context)
        pool.checkout_hook = self._checkout_hook
        return pool


class TrackingAdapter(HTTPAdapter):
    """HTTPAdapter that reports every connection it hands out to a token."""

    def __init__(self, token: CancelToken, **kwargs: Any) -> None:
        self._token = token
        super().__init__(**kwargs)

    def init_poolmanager(
        self, connections: int, maxsize: int, block: bool = DEFAULT_POOLBLOCK, **pool_kwargs: Any
    ) -> None:
        self._pool_connections = connections
        self._pool_maxsize = maxsize
        self._pool_block = block
        self.poolmanager = _TrackingPoolManager(
            num_pools=connections,
            maxsize=maxsize,
            block=block,
            checkout_hook=self._token.attach_connection,
            **pool_kwargs,
        )


def mount_tracking(session: requests.Session, token: CancelToken) -> None:
    adapter = TrackingAdapter(token)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
