"""ZooKeeper session management.

A single :class:`ConnectionManager` owns the kazoo session used by every
watched path cache and lookup.  Reads follow two contracts:

* :meth:`ConnectionManager.get_data` is fail-soft: any error is logged
  and reported as ``None``, so watch handlers can drop the event and
  wait for the next one.
* :meth:`ConnectionManager.get_children` is fail-loud: errors surface
  as :class:`~druid_discovery.exceptions.ServiceLookupError`.

Watches are kazoo recipes, which re-arm themselves after every
notification and after session loss.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from kazoo.client import KazooClient, KazooState
from kazoo.exceptions import NoNodeError
from kazoo.recipe.watchers import ChildrenWatch, DataWatch
from kazoo.retry import KazooRetry

from ..config import RetryPolicy
from ..exceptions import ConnectionNotStartedError, ServiceLookupError
from .compression import GzipCompressionProvider

logger = logging.getLogger(__name__)

# Default settings
_DEFAULT_SESSION_TIMEOUT_MS = 30000
_DEFAULT_CONNECT_TIMEOUT = 15.0
_BACKOFF_FACTOR = 2


def build_retry(policy: RetryPolicy) -> KazooRetry:
    """Translate a :class:`RetryPolicy` into a bounded exponential kazoo retry."""
    return KazooRetry(
        max_tries=policy.max_retries,
        delay=policy.initial_delay_ms / 1000.0,
        backoff=_BACKOFF_FACTOR,
        max_delay=policy.max_delay_ms / 1000.0,
    )


class ConnectionManager:
    """Owner of the ZooKeeper session.

    Parameters:
        hosts:
            ZooKeeper connect string (``host:port[,host:port...]``).
        session_timeout_ms:
            Requested session timeout in milliseconds.
        compression_enabled:
            Whether payloads written through this client are gzipped.
            Reads always accept both gzipped and plain payloads.
        retry:
            Backoff policy for connecting and for individual commands.
        connect_timeout:
            Seconds :meth:`start` waits for the first connection.
        client_factory:
            Builds the underlying client; defaults to
            :class:`kazoo.client.KazooClient`.
    """

    def __init__(
        self,
        hosts: str,
        session_timeout_ms: int = _DEFAULT_SESSION_TIMEOUT_MS,
        compression_enabled: bool = True,
        retry: RetryPolicy | None = None,
        connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT,
        client_factory: Callable[..., Any] = KazooClient,
    ) -> None:
        self._hosts = hosts
        self._session_timeout_ms = session_timeout_ms
        self._connect_timeout = connect_timeout
        self._retry_policy = retry or RetryPolicy()
        self._client_factory = client_factory
        self._compression = GzipCompressionProvider(compression_enabled)

        self._client: Any | None = None

    @classmethod
    def connect(
        cls,
        hosts: str,
        session_timeout_ms: int = _DEFAULT_SESSION_TIMEOUT_MS,
        compression_enabled: bool = True,
        **kwargs: Any,
    ) -> ConnectionManager:
        """Build a manager and start its session."""
        manager = cls(
            hosts,
            session_timeout_ms=session_timeout_ms,
            compression_enabled=compression_enabled,
            **kwargs,
        )
        manager.start()
        return manager

    # ── Properties ────────────────────────────────────────────────

    @property
    def hosts(self) -> str:
        return self._hosts

    @property
    def compression(self) -> GzipCompressionProvider:
        return self._compression

    @property
    def is_started(self) -> bool:
        return self._client is not None

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> None:
        """Create the session and block until it is connected.

        Raises:
            kazoo.handlers.threading.KazooTimeoutError: If no server
                could be reached within ``connect_timeout``.
        """
        if self._client is not None:
            return
        client = self._client_factory(
            hosts=self._hosts,
            timeout=self._session_timeout_ms / 1000.0,
            connection_retry=build_retry(self._retry_policy),
            command_retry=build_retry(self._retry_policy),
        )
        client.add_listener(self._on_state_change)
        logger.info(
            "Connecting to ZooKeeper at %s (session timeout %d ms)",
            self._hosts,
            self._session_timeout_ms,
        )
        try:
            client.start(timeout=self._connect_timeout)
        except Exception:
            logger.error("Could not connect to ZooKeeper at %s", self._hosts)
            client.stop()
            raise
        self._client = client

    def close(self) -> None:
        """Stop the session and release the client."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.stop()
            client.close()
        except Exception:
            logger.warning("Error while closing ZooKeeper client", exc_info=True)
        logger.info("ZooKeeper connection to %s closed", self._hosts)

    # ── Reads ─────────────────────────────────────────────────────

    def get_data(self, path: str) -> bytes | None:
        """Fetch and decompress the data of *path*.

        Returns:
            The payload, or None if it could not be read for any reason.
        """
        try:
            data, _stat = self._require_client().get(path)
        except NoNodeError:
            logger.warning("Node %s does not exist, no data to read", path)
            return None
        except Exception:
            logger.error("Exception occurred while getting data for node %s", path, exc_info=True)
            return None
        if data is None:
            return None
        return self._compression.decompress(path, data)

    def get_children(self, path: str) -> list[str]:
        """List the children of *path*.

        Raises:
            ServiceLookupError: If the listing fails for any reason,
                including a missing path or a lost connection.
        """
        try:
            return list(self._require_client().get_children(path))
        except Exception as e:
            raise ServiceLookupError(path=path, cause=e) from e

    # ── Watch recipes ─────────────────────────────────────────────

    def data_watch(self, path: str, func: Callable[..., Any]) -> DataWatch:
        """Attach a kazoo :class:`~kazoo.recipe.watchers.DataWatch` to *path*.

        *func* is called with ``(data, stat, event)`` right away and on
        every change, including creation and deletion of *path*.  The
        recipe re-arms itself across reconnects and session loss.
        Returning False from *func* removes the watch.
        """
        return self._require_client().DataWatch(path, func)

    def children_watch(self, path: str, func: Callable[[list[str]], Any]) -> ChildrenWatch:
        """Attach a kazoo :class:`~kazoo.recipe.watchers.ChildrenWatch` to *path*.

        *func* is called with the child names right away and whenever
        they change.  The recipe stops by itself once *path* is deleted.
        Returning False from *func* removes the watch.
        """
        return self._require_client().ChildrenWatch(path, func)

    # ── Session events ────────────────────────────────────────────

    def _on_state_change(self, state: str) -> None:
        if state == KazooState.LOST:
            logger.warning("ZooKeeper session to %s lost", self._hosts)
        elif state == KazooState.SUSPENDED:
            logger.warning("ZooKeeper connection to %s suspended", self._hosts)
        elif state == KazooState.CONNECTED:
            logger.info("ZooKeeper connection to %s established", self._hosts)

    def _require_client(self) -> Any:
        client = self._client
        if client is None:
            raise ConnectionNotStartedError()
        return client
