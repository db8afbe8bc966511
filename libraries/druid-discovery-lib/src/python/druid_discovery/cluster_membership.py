"""Druid cluster membership — main entry point.

Wires the ZooKeeper session, the announcement and broker caches, the
per-server segment caches and the service lookup together.

Usage::

    from druid_discovery import DiscoveryOptions, DruidClusterMembership

    def on_segment_change(payload: bytes) -> None:
        ...  # recompute the datasource time boundary

    membership = DruidClusterMembership(
        DiscoveryOptions(zk_hosts="zk1:2181,zk2:2181"),
        on_segment_change=on_segment_change,
    )
    membership.start()

    broker = membership.get_broker()          # round robin
    coordinator = membership.get_service("coordinator")

    membership.close()
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor

from .config import DiscoveryOptions
from .connection.connection_manager import ConnectionManager
from .decoding import NodeDecoder, decode_node_descriptor
from .discovery.service_lookup import ServiceLookup
from .models import StartMode
from .watching.announcement_watcher import AnnouncementWatcher
from .watching.broker_roster import BrokerRoster
from .watching.broker_watcher import BrokerWatcher
from .watching.segment_watcher import SegmentCallback, SegmentWatcher
from .watching.server_segment_registry import ServerSegmentRegistry
from .watching.watched_path_cache import WatchedPathCache

logger = logging.getLogger(__name__)

_BROKER_SERVICE_NAME = "broker"


class DruidClusterMembership:
    """Live view of the data servers and brokers of one Druid cluster.

    Parameters:
        options: Cluster location and session settings.
        on_segment_change: Called with the raw payload of every segment
            that appears on or disappears from a data server.
        decode: Turns discovery payloads into node descriptors.
        executor: Dispatch pool for all cache events.  If None, a pool
            of ``options.dispatch_threads`` workers is created and shut
            down on :meth:`close`.
        connection: An existing, unstarted or started
            :class:`ConnectionManager`.  If None, one is built from
            *options* and closed on :meth:`close`; a supplied one is
            started but left open.
    """

    def __init__(
        self,
        options: DiscoveryOptions,
        on_segment_change: SegmentCallback,
        decode: NodeDecoder = decode_node_descriptor,
        executor: Executor | None = None,
        connection: ConnectionManager | None = None,
    ) -> None:
        self._options = options
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=options.dispatch_threads,
            thread_name_prefix="druid-discovery",
        )
        self._owns_connection = connection is None
        self._connection = connection or ConnectionManager(
            options.zk_hosts,
            session_timeout_ms=options.zk_session_timeout_ms,
            compression_enabled=options.zk_enable_compression,
            retry=options.retry,
            connect_timeout=options.zk_connect_timeout_s,
        )

        # ── Lookup ────────────────────────────────────────────────
        self._lookup = ServiceLookup(
            self._connection,
            options.discovery_path,
            name_prefix=options.zk_druid_path if options.zk_qualify_discovery_names else None,
            decode=decode,
        )

        # ── Data servers ──────────────────────────────────────────
        self._registry = ServerSegmentRegistry()
        self._announcements_cache = WatchedPathCache(
            self._connection,
            options.announcements_path,
            self._executor,
        )
        self._announcements_cache.add_listener(
            AnnouncementWatcher(
                connection=self._connection,
                registry=self._registry,
                segments_path=options.segments_path,
                segment_watcher=SegmentWatcher(self._connection, on_segment_change),
                executor=self._executor,
            )
        )

        # ── Brokers ───────────────────────────────────────────────
        brokers_path = self._lookup.service_path(_BROKER_SERVICE_NAME)
        self._roster = BrokerRoster(
            bootstrap=lambda: self._lookup.get_services(_BROKER_SERVICE_NAME),
            service_name=_BROKER_SERVICE_NAME,
            service_path=brokers_path,
        )
        self._brokers_cache = WatchedPathCache(self._connection, brokers_path, self._executor)
        self._brokers_cache.add_listener(BrokerWatcher(self._connection, self._roster, decode))

        self._lifecycle_lock = threading.Lock()
        self._running = False

    # ── Properties ────────────────────────────────────────────────

    @property
    def options(self) -> DiscoveryOptions:
        return self._options

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def registry(self) -> ServerSegmentRegistry:
        return self._registry

    @property
    def roster(self) -> BrokerRoster:
        return self._roster

    @property
    def is_running(self) -> bool:
        return self._running

    # ── Lifecycle ─────────────────────────────────────────────────

    def start(self) -> None:
        """Connect to ZooKeeper and start watching the cluster."""
        with self._lifecycle_lock:
            if self._running:
                return
            self._connection.start()
            # Brokers have no other materialization path, so their
            # initial children are delivered as events.
            self._brokers_cache.start(StartMode.POST_INITIALIZED)
            self._announcements_cache.start(StartMode.SILENT_BUILD)
            self._running = True
        logger.info("Watching Druid cluster at %s%s", self._options.zk_hosts, self._options.zk_druid_path)

    def close(self) -> None:
        """Stop all watches and release the session."""
        with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False
            self._announcements_cache.close()
            self._brokers_cache.close()
            closed = self._registry.close_all()
            if closed:
                logger.info("Closed segment caches of %d servers", len(closed))
            if self._owns_executor:
                self._executor.shutdown(wait=True)
            if self._owns_connection:
                self._connection.close()

    def __enter__(self) -> DruidClusterMembership:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Public API ────────────────────────────────────────────────

    def get_services(self, name: str) -> list[str]:
        """Return ``address:port`` of every live instance of service *name*."""
        return self._lookup.get_services(name)

    def get_service(self, name: str) -> str:
        """Return one live instance of service *name*."""
        return self._lookup.get_service(name)

    def get_broker(self) -> str:
        """Return the next broker in round-robin order."""
        return self._roster.next()

    def brokers(self) -> list[str]:
        """Return the known brokers in rotation order."""
        return self._roster.snapshot()

    def active_servers(self) -> list[str]:
        """Return the keys of the data servers currently watched."""
        return self._registry.keys()
