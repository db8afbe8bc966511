"""Druid Discovery Library — ZooKeeper-backed Druid cluster membership.

Tracks the data servers of a Druid cluster and the segments they serve,
keeps a round-robin roster of query brokers, and resolves any named
service registered under the cluster's discovery path.

Quick Start::

    from druid_discovery import DiscoveryOptions, DruidClusterMembership

    options = DiscoveryOptions(zk_hosts="zk1:2181", zk_druid_path="/druid")

    with DruidClusterMembership(options, on_segment_change=print) as cluster:
        broker = cluster.get_broker()
        overlords = cluster.get_services("overlord")
"""

__version__ = "0.1.0"

from .cluster_membership import DruidClusterMembership
from .config import DiscoveryOptions, RetryPolicy, dump_options, load_options
from .connection.compression import GzipCompressionProvider
from .connection.connection_manager import ConnectionManager
from .decoding import NodeDecoder, decode_node_descriptor
from .discovery.service_lookup import ServiceLookup
from .exceptions import (
    ConnectionNotStartedError,
    DruidDiscoveryError,
    NodeDecodeError,
    ServiceLookupError,
    ServiceNotFoundError,
)
from .models import (
    CacheState,
    NodeDescriptor,
    PathEvent,
    PathEventType,
    StartMode,
)
from .watching import (
    AnnouncementWatcher,
    BrokerRoster,
    BrokerWatcher,
    SegmentWatcher,
    ServerSegmentRegistry,
    WatchedPathCache,
)

__all__ = [
    # Main entry point
    "DruidClusterMembership",
    # Configuration
    "DiscoveryOptions",
    "RetryPolicy",
    "dump_options",
    "load_options",
    # Connection
    "ConnectionManager",
    "GzipCompressionProvider",
    # Decoding
    "NodeDecoder",
    "decode_node_descriptor",
    # Lookup
    "ServiceLookup",
    # Watching
    "AnnouncementWatcher",
    "BrokerRoster",
    "BrokerWatcher",
    "SegmentWatcher",
    "ServerSegmentRegistry",
    "WatchedPathCache",
    # Models
    "CacheState",
    "NodeDescriptor",
    "PathEvent",
    "PathEventType",
    "StartMode",
    # Exceptions
    "ConnectionNotStartedError",
    "DruidDiscoveryError",
    "NodeDecodeError",
    "ServiceLookupError",
    "ServiceNotFoundError",
]
